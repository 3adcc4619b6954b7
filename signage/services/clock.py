from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Optional, Protocol, runtime_checkable
from zoneinfo import ZoneInfo


@runtime_checkable
class Clock(Protocol):
    tz: tzinfo

    def now(self) -> datetime:
        """Current local time (timezone-aware)."""


class SystemClock:
    def __init__(self, tz_name: str = "Asia/Seoul"):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """
    Deterministic clock for tests and previews.
    Time moves only through `set` / `advance`.
    """

    def __init__(self, at: datetime, tz_name: str = "Asia/Seoul"):
        self.tz = ZoneInfo(tz_name)
        self._now = localize(at, self.tz)

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = localize(at, self.tz)

    def advance(self, **kwargs: float) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Naive values are read as local time; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def parse_instant(raw: Optional[str], clock: Clock) -> datetime:
    """
    ISO-8601 string -> local aware datetime. Empty means now.
    Raises ValueError on garbage (callers turn that into a 400).
    """
    if not raw:
        return clock.now()
    return localize(datetime.fromisoformat(raw), clock.tz)
