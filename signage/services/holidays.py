"""
Holiday calendar data for the admin schedule viewer.

Presentation only: nothing in here feeds content visibility. Providers
implement `holidays_for_year(year) -> {date: name}`; the default one carries
the South Korean public holidays with the substitute-holiday rule applied.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Protocol, runtime_checkable

HOLIDAY_SEPARATOR = " / "


@runtime_checkable
class HolidayProvider(Protocol):
    def holidays_for_year(self, year: int) -> Dict[date, str]:
        ...


def split_holiday_names(name: str) -> List[str]:
    return [n.strip() for n in name.split(HOLIDAY_SEPARATOR) if n.strip()]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_sunday(day: date) -> bool:
    return day.weekday() == 6


# =========================
# STATIC DATA
# =========================

FIXED_HOLIDAYS = (
    (1, 1, "New Year's Day"),
    (3, 1, "Independence Movement Day"),
    (5, 5, "Children's Day"),
    (6, 6, "Memorial Day"),
    (8, 15, "Liberation Day"),
    (10, 3, "National Foundation Day"),
    (10, 9, "Hangul Day"),
    (12, 25, "Christmas Day"),
)

# reinstated as a public holiday from 2026
CONSTITUTION_DAY = (7, 17, "Constitution Day")
CONSTITUTION_DAY_SINCE = 2026

# lunar-calendar holidays, resolved per year
LUNAR_HOLIDAYS: Dict[int, Dict[str, str]] = {
    2024: {
        "2024-02-09": "Seollal Holiday",
        "2024-02-10": "Seollal",
        "2024-02-11": "Seollal Holiday",
        "2024-05-15": "Buddha's Birthday",
        "2024-09-16": "Chuseok Holiday",
        "2024-09-17": "Chuseok",
        "2024-09-18": "Chuseok Holiday",
    },
    2025: {
        "2025-01-28": "Seollal Holiday",
        "2025-01-29": "Seollal",
        "2025-01-30": "Seollal Holiday",
        "2025-05-05": "Buddha's Birthday",
        "2025-10-05": "Chuseok Holiday",
        "2025-10-06": "Chuseok",
        "2025-10-07": "Chuseok Holiday",
    },
    2026: {
        "2026-02-16": "Seollal Holiday",
        "2026-02-17": "Seollal",
        "2026-02-18": "Seollal Holiday",
        "2026-05-24": "Buddha's Birthday",
        "2026-09-24": "Chuseok Holiday",
        "2026-09-25": "Chuseok",
        "2026-09-26": "Chuseok Holiday",
    },
    2027: {
        "2027-02-06": "Seollal Holiday",
        "2027-02-07": "Seollal",
        "2027-02-08": "Seollal Holiday",
        "2027-05-13": "Buddha's Birthday",
        "2027-09-14": "Chuseok Holiday",
        "2027-09-15": "Chuseok",
        "2027-09-16": "Chuseok Holiday",
    },
    2028: {
        "2028-01-26": "Seollal Holiday",
        "2028-01-27": "Seollal",
        "2028-01-28": "Seollal Holiday",
        "2028-05-02": "Buddha's Birthday",
        "2028-10-02": "Chuseok Holiday",
        "2028-10-03": "Chuseok",
        "2028-10-04": "Chuseok Holiday",
    },
    2029: {
        "2029-02-12": "Seollal Holiday",
        "2029-02-13": "Seollal",
        "2029-02-14": "Seollal Holiday",
        "2029-05-20": "Buddha's Birthday",
        "2029-09-21": "Chuseok Holiday",
        "2029-09-22": "Chuseok",
        "2029-09-23": "Chuseok Holiday",
    },
    2030: {
        "2030-02-02": "Seollal Holiday",
        "2030-02-03": "Seollal",
        "2030-02-04": "Seollal Holiday",
        "2030-05-09": "Buddha's Birthday",
        "2030-09-11": "Chuseok Holiday",
        "2030-09-12": "Chuseok",
        "2030-09-13": "Chuseok Holiday",
    },
}

# multi-day lunar breaks get at most one substitute day per break
LUNAR_GROUPS = ("Seollal", "Chuseok")

# single-day holidays eligible for a substitute day
SUBSTITUTE_ELIGIBLE = (
    "Children's Day",
    "Independence Movement Day",
    "Liberation Day",
    "National Foundation Day",
    "Hangul Day",
    "Buddha's Birthday",
    "Christmas Day",
    "Constitution Day",
)


# =========================
# PROVIDER
# =========================

class KoreanHolidayProvider:
    def holidays_for_year(self, year: int) -> Dict[date, str]:
        holidays: Dict[date, str] = {}

        def add(day: date, name: str) -> None:
            existing = holidays.get(day)
            if not existing:
                holidays[day] = name
            elif name not in split_holiday_names(existing):
                holidays[day] = f"{existing}{HOLIDAY_SEPARATOR}{name}"

        for month, dom, name in FIXED_HOLIDAYS:
            add(date(year, month, dom), name)

        if year >= CONSTITUTION_DAY_SINCE:
            month, dom, name = CONSTITUTION_DAY
            add(date(year, month, dom), name)

        for raw, name in LUNAR_HOLIDAYS.get(year, {}).items():
            add(date.fromisoformat(raw), name)

        return add_substitute_holidays(holidays)


def add_substitute_holidays(holidays: Dict[date, str]) -> Dict[date, str]:
    """
    Returns a copy of `holidays` with substitute days added:
    - a lunar break (Seollal / Chuseok) that includes a Sunday, or a weekday
      already shared with another holiday, gets one substitute day
    - an eligible single-day holiday on a weekend, or on a weekday shared
      with another holiday, gets one substitute day
    A substitute is the first following day that is neither a weekend nor
    already a holiday (substitutes included).
    """
    result = dict(holidays)
    added_labels = set()

    def has_multiple_names(day: date) -> bool:
        return len(split_holiday_names(holidays.get(day, ""))) > 1

    def add_substitute(trigger: date, label: str) -> None:
        if label in added_labels:
            return
        candidate = trigger + timedelta(days=1)
        while candidate in result or is_weekend(candidate):
            candidate += timedelta(days=1)
        result[candidate] = f"Substitute Holiday ({label})"
        added_labels.add(label)

    for keyword in LUNAR_GROUPS:
        group = [d for d, name in holidays.items() if keyword in name]
        if not group:
            continue

        trigger = next((d for d in group if is_sunday(d)), None)
        if trigger is None:
            trigger = next(
                (d for d in group if not is_weekend(d) and has_multiple_names(d)),
                None,
            )
        if trigger is not None:
            add_substitute(trigger, keyword)

    for day, name in holidays.items():
        names = split_holiday_names(name)
        target = next(
            (t for t in SUBSTITUTE_ELIGIBLE if any(t in n for n in names)),
            None,
        )
        if target is None:
            continue
        if is_weekend(day) or len(names) > 1:
            add_substitute(day, target)

    return result
