"""Calendar day keys and injectable clocks.

Every streak and "completed today" check goes through a day key: the
``YYYY-MM-DD`` date of an instant in the user's local timezone. Clocks are
passed explicitly so tests can pin "now".
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")


def parse_day(key: str) -> date:
    """Parse a ``YYYY-MM-DD`` key. Raises ValueError on anything else."""
    return date.fromisoformat(key[:10])


def day_key(value: date | datetime | str, tz: tzinfo | None = None) -> str:
    """Normalize an instant, date or ISO string to a local day key.

    Aware datetimes are converted to *tz* first; naive ones are taken as
    already local. Plain dates and date strings pass through unchanged.
    """
    if isinstance(value, str):
        if len(value) == 10:
            return parse_day(value).isoformat()
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz is not None:
            value = value.astimezone(tz)
        return value.date().isoformat()
    return value.isoformat()


def previous_day(key: str) -> str:
    return (parse_day(key) - timedelta(days=1)).isoformat()


class Clock:
    """Wall clock bound to the user's timezone."""

    def __init__(self, tz: tzinfo = UTC, now_fn: Callable[[tzinfo], datetime] | None = None):
        self.tz = tz
        self._now_fn = now_fn or (lambda zone: datetime.now(zone))

    def now(self) -> datetime:
        return self._now_fn(self.tz).astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def today_key(self) -> str:
        return self.today().isoformat()

    def day_key(self, value: date | datetime | str) -> str:
        return day_key(value, self.tz)

    def iso_now(self) -> str:
        """Current instant as an ISO string with seconds precision."""
        return self.now().isoformat(timespec="seconds")


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, instant: datetime, tz: tzinfo = UTC):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=tz)
        self._instant = instant
        super().__init__(tz, now_fn=lambda _zone: self._instant)

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self.tz)
        self._instant = instant

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by ``timedelta(**kwargs)`` and return the new instant."""
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant
