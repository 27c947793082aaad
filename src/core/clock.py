"""Time source used for date validation and transition timestamps."""

from datetime import datetime, timedelta, timezone
from typing import Protocol


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock that only moves when told to. Used by tests and replays."""

    def __init__(self, current: datetime | None = None):
        self._current = ensure_utc(current or datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._current

    def set(self, value: datetime) -> None:
        self._current = ensure_utc(value)

    def advance(self, delta: timedelta) -> datetime:
        self._current = self._current + delta
        return self._current
