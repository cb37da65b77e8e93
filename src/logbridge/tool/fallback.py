"""Prioritized strategies driven by a first-success combinator.

Every fallback chain in the engine (command dialects, log fetch methods)
is a list of strategies. ``first_success`` attempts them strictly in
order and returns the first result; a strategy is attempted only after
the previous one has failed.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

import structlog

from logbridge.core.errors import LogBridgeError

log = structlog.get_logger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

# Failures a strategy may report and the chain absorbs
RECOVERABLE: tuple[type[BaseException], ...] = (LogBridgeError, OSError, UnicodeDecodeError)


class Strategy(Protocol[T_co]):
    """One way of producing a value."""

    @property
    def name(self) -> str: ...

    async def attempt(self) -> T_co: ...


@dataclass
class FunctionStrategy(Generic[T]):
    """Strategy backed by a zero-argument coroutine function."""

    name: str
    func: Callable[[], Awaitable[T]]

    async def attempt(self) -> T:
        return await self.func()


@dataclass(frozen=True, slots=True)
class FailedAttempt:
    name: str
    error: BaseException

    @property
    def reason(self) -> str:
        return str(getattr(self.error, "message", None) or self.error) or type(self.error).__name__


class StrategiesExhaustedError(Exception):
    """Every strategy in a chain failed."""

    def __init__(self, attempts: list[FailedAttempt]) -> None:
        names = ", ".join(a.name for a in attempts) or "none"
        super().__init__(f"All strategies failed: {names}")
        self.attempts = attempts

    def summary(self) -> list[tuple[str, str]]:
        return [(a.name, a.reason) for a in self.attempts]


async def first_success(
    strategies: Iterable[Strategy[T]],
    *,
    recoverable: tuple[type[BaseException], ...] = RECOVERABLE,
) -> tuple[str, T]:
    """Attempt *strategies* in order; return ``(name, value)`` of the first success.

    Raises:
        StrategiesExhaustedError: Every strategy raised a recoverable error.
    """
    attempts: list[FailedAttempt] = []
    for strategy in strategies:
        try:
            value = await strategy.attempt()
        except recoverable as e:
            log.debug("strategy_failed", strategy=strategy.name, error=str(e))
            attempts.append(FailedAttempt(strategy.name, e))
            continue
        if attempts:
            log.info("strategy_fallback_succeeded", strategy=strategy.name, failed=len(attempts))
        return strategy.name, value
    raise StrategiesExhaustedError(attempts)
