"""Single-flight guard for user-triggered refreshes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RefreshOutcome(Generic[T]):
    started: bool
    value: T | None = None
    message: str = ""


class RefreshCoordinator:
    """Allow at most one refresh of a resource at a time.

    A request made while a refresh is in flight is answered immediately
    with ``started=False``; it is neither queued nor merged.
    """

    def __init__(self, name: str = "refresh") -> None:
        self._name = name
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def run(self, fn: Callable[[], Awaitable[T]]) -> RefreshOutcome[T]:
        if self._in_flight:
            log.info("refresh_skipped", name=self._name)
            return RefreshOutcome(started=False, message=f"{self._name} already in progress")
        self._in_flight = True
        try:
            value = await fn()
        finally:
            self._in_flight = False
        return RefreshOutcome(started=True, value=value)
