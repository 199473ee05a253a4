from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable


@dataclass(frozen=True)
class LocalNow:
    day: str
    hour: int
    minute: int


def venue_timezone(utc_offset_hours: int) -> timezone:
    return timezone(timedelta(hours=utc_offset_hours))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VenueClock:
    """Current time at the venue's fixed UTC offset, independent of the host timezone."""

    def __init__(self, utc_offset_hours: int, source: Callable[[], datetime] = utc_now) -> None:
        self.tz = venue_timezone(utc_offset_hours)
        self._source = source

    def now(self) -> LocalNow:
        local = self._source().astimezone(self.tz)
        return LocalNow(day=local.date().isoformat(), hour=local.hour, minute=local.minute)
