"""Time source used by the scheduler; swapped for a fixed clock in tests."""
from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:  # pragma: no cover - runtime protocol
        ...

    def weekday(self, timestamp: datetime) -> int:  # pragma: no cover - runtime protocol
        ...

    def hour(self, timestamp: datetime) -> int:  # pragma: no cover - runtime protocol
        ...


class SystemClock:
    """Local wall-clock time. Weekdays follow :meth:`datetime.weekday` (Monday is 0)."""

    def now(self) -> datetime:
        return datetime.now()

    def weekday(self, timestamp: datetime) -> int:
        return timestamp.weekday()

    def hour(self, timestamp: datetime) -> int:
        return timestamp.hour


__all__ = ["Clock", "SystemClock"]
