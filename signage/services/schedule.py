"""
Content schedule evaluation.

Decides whether a content item is visible at a given instant and derives
the ordered playlist a device should show. Everything here is pure: no
storage, no clock reads. Bad schedule data never raises, it just makes the
item invisible.
"""
from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, time
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from signage.models.content import ContentItem

log = logging.getLogger("schedule")

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


# =========================
# PARSING
# =========================

def parse_time_of_day(value: Optional[str]) -> Optional[int]:
    """"HH:MM" (seconds tolerated and dropped) -> minutes since midnight."""
    if not isinstance(value, str):
        return None
    m = _TIME_RE.match(value)
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def parse_date(value: Union[date, str, None]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def parse_days_of_week(value: Union[Iterable[int], str, None]) -> Optional[FrozenSet[int]]:
    """
    "1,3,5" or [1, 3, 5] -> frozenset({1, 3, 5}), Sunday = 0.
    Any token outside 0..6 invalidates the whole rule.
    """
    if value is None:
        return None
    if isinstance(value, str):
        tokens = [t.strip() for t in value.split(",") if t.strip()]
    else:
        try:
            tokens = list(value)
        except TypeError:
            return None

    days = set()
    for token in tokens:
        if isinstance(token, bool):
            return None
        try:
            day = int(token)
        except (TypeError, ValueError):
            return None
        if day < 0 or day > 6:
            return None
        days.add(day)
    return frozenset(days) if days else None


def weekday_number(day: date) -> int:
    """Sunday = 0 ... Saturday = 6."""
    return day.isoweekday() % 7


def minute_of_day(value: Union[datetime, time]) -> int:
    return value.hour * 60 + value.minute


# =========================
# RULES
# =========================

def _date_rule_allows(item: ContentItem, day: date) -> bool:
    kind = item.scheduleKind

    if kind == "always":
        return True

    if kind == "specific_date":
        target = parse_date(item.specificDate)
        return target is not None and target == day

    if kind == "days_of_week":
        days = parse_days_of_week(item.daysOfWeek)
        return days is not None and weekday_number(day) in days

    if kind == "date_range":
        start = parse_date(item.startDate)
        end = parse_date(item.endDate)
        if start is None or end is None:
            return False
        return start <= day <= end

    log.debug("schedule_kind_unknown", extra={"content_id": item.id, "kind": kind})
    return False


def _time_window_allows(item: ContentItem, now: datetime) -> bool:
    # the window only applies when both bounds are set (empty string = unset)
    if not item.startTime or not item.endTime:
        return True

    start = parse_time_of_day(item.startTime)
    end = parse_time_of_day(item.endTime)
    if start is None or end is None:
        log.debug(
            "schedule_window_invalid",
            extra={"content_id": item.id, "start": item.startTime, "end": item.endTime},
        )
        return False

    current = minute_of_day(now)
    if start <= end:
        return start <= current < end
    # 22:00-02:00 style window, anchored on the calendar date of `now`
    return current >= start or current < end


# =========================
# PUBLIC API
# =========================

def is_visible(item: ContentItem, now: datetime) -> bool:
    if not item.active:
        return False
    if not _time_window_allows(item, now):
        return False
    return _date_rule_allows(item, now.date())


def visible_content_for_device(items: Iterable[ContentItem], now: datetime) -> List[ContentItem]:
    """
    Items visible at `now`, ascending by `order`. sorted() is stable, so
    equal orders keep their input position. Never synthesizes a fallback.
    """
    return sorted((i for i in items if is_visible(i, now)), key=lambda i: i.order)


def scheduled_on(item: ContentItem, day: date) -> bool:
    """Calendar view: is the item scheduled at some point of `day` (time window ignored)."""
    return item.active and _date_rule_allows(item, day)


def schedule_for_month(items: Iterable[ContentItem], year: int, month: int) -> Dict[str, List[ContentItem]]:
    """ISO date -> items scheduled that day, ordered. Days with nothing are omitted."""
    items = list(items)
    _, days_in_month = calendar.monthrange(year, month)

    result: Dict[str, List[ContentItem]] = {}
    for d in range(1, days_in_month + 1):
        day = date(year, month, d)
        scheduled = sorted((i for i in items if scheduled_on(i, day)), key=lambda i: i.order)
        if scheduled:
            result[day.isoformat()] = scheduled
    return result


def format_days_of_week(value: Union[Iterable[int], str, None]) -> str:
    days = parse_days_of_week(value)
    if not days:
        return ""
    if days == frozenset({1, 2, 3, 4, 5}):
        return "Weekdays"
    if days == frozenset({0, 6}):
        return "Weekends"
    return ", ".join(WEEKDAY_LABELS[d] for d in sorted(days))


def describe_schedule(item: ContentItem) -> str:
    """One-line summary for admin screens, e.g. "Weekdays | 09:00 ~ 17:00"."""
    parts: List[str] = []
    kind = item.scheduleKind

    if kind == "always":
        parts.append("Always")
    elif kind == "specific_date":
        parts.append(str(item.specificDate or ""))
    elif kind == "days_of_week":
        parts.append(format_days_of_week(item.daysOfWeek))
    elif kind == "date_range":
        parts.append(f"{item.startDate} ~ {item.endDate}")
    else:
        parts.append("Invalid schedule")

    if item.startTime and item.endTime:
        parts.append(f"{item.startTime} ~ {item.endTime}")

    return " | ".join(p for p in parts if p)
