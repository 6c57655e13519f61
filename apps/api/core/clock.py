"""
Injectable clock.

Dates are UTC-anchored calendar dates (YYYY-MM-DD). Routers depend on
`get_clock` so tests can pin "now".
"""
from datetime import date, datetime, timedelta, timezone


class Clock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()

    def hour(self) -> int:
        return self.now().hour


class FixedClock(Clock):
    """Clock frozen at a given instant (naive values are treated as UTC)."""

    def __init__(self, at: datetime):
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, delta: timedelta) -> None:
        self._at = self._at + delta


_system_clock = Clock()


def get_clock() -> Clock:
    return _system_clock
