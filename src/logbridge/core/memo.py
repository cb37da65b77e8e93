"""Time-bounded memoization owned by the component that needs it."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class MemoEntry(Generic[T]):
    value: T
    captured_at: float


class TtlMemo(Generic[T]):
    """Keyed memo of ``{value, captured_at}`` entries with a TTL checked on read.

    The clock is injectable so staleness can be exercised without sleeping.
    """

    def __init__(self, ttl_sec: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_sec = ttl_sec
        self._clock = clock
        self._entries: dict[str, MemoEntry[T]] = {}

    def get(self, key: str = "") -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.captured_at > self._ttl_sec:
            return None
        return entry.value

    def set(self, value: T, key: str = "") -> T:
        self._entries[key] = MemoEntry(value=value, captured_at=self._clock())
        return value

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or every key when *key* is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
