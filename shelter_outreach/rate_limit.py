"""Spacing between consecutive dispatches to the send capability."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class DelayPolicy:
    """Minimum number of seconds between two consecutive sends."""

    delay_seconds: float = 0.0

    @classmethod
    def per_minute(cls, calls_per_minute: Optional[float]) -> "DelayPolicy":
        if not calls_per_minute:
            return cls()
        return cls(delay_seconds=60.0 / float(calls_per_minute))


class RateLimiter:
    """Enforces a minimum interval between calls to :meth:`acquire`.

    The first call never waits, so nothing is slept after the final dispatch
    of a batch.
    """

    def __init__(
        self,
        policy: Optional[DelayPolicy] = None,
        *,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._interval = max((policy or DelayPolicy()).delay_seconds, 0.0)
        self._monotonic = monotonic
        self._sleep = sleep
        self._next_available: Optional[float] = None

    @property
    def interval(self) -> float:
        return self._interval

    def acquire(self) -> float:
        """Block until the next call is allowed; returns the seconds waited."""

        waited = 0.0
        now = self._monotonic()
        if self._next_available is not None and now < self._next_available:
            waited = self._next_available - now
            self._sleep(waited)
            now = self._monotonic()
        self._next_available = now + self._interval
        return waited

    def reset(self) -> None:
        self._next_available = None


__all__ = ["DelayPolicy", "RateLimiter"]
