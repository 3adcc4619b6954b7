"""
Tests for content schedule evaluation.

Covers:
- fail-safe handling of malformed schedules
- inactive items
- each schedule kind (always, specific date, weekdays, date range)
- the daily time-of-day window, including windows that wrap midnight
- playlist ordering
- the calendar helpers used by the admin month view
"""
import logging
from datetime import date, datetime, timedelta

import pytest

from conftest import make_item
from signage.services.schedule import (
    describe_schedule,
    format_days_of_week,
    is_visible,
    parse_date,
    parse_days_of_week,
    parse_time_of_day,
    schedule_for_month,
    scheduled_on,
    visible_content_for_device,
    weekday_number,
)

# one instant per weekday, 2025-01-12 is a Sunday
WEEK = [datetime(2025, 1, 12, 12, 0) + timedelta(days=i) for i in range(7)]


# =============================================================================
# Parsing
# =============================================================================

class TestParsing:

    @pytest.mark.parametrize("raw, minutes", [
        ("00:00", 0),
        ("09:30", 570),
        ("9:05", 545),
        ("23:59", 1439),
        ("17:00:45", 1020),
    ])
    def test_parse_time_of_day(self, raw, minutes):
        assert parse_time_of_day(raw) == minutes

    @pytest.mark.parametrize("raw", ["24:00", "12:60", "noon", "", "12", None, 930])
    def test_parse_time_of_day_rejects_garbage(self, raw):
        assert parse_time_of_day(raw) is None

    def test_parse_date_accepts_dates_and_iso_strings(self):
        assert parse_date("2025-01-10") == date(2025, 1, 10)
        assert parse_date("2025-01-10T08:00:00") == date(2025, 1, 10)
        assert parse_date(date(2025, 1, 10)) == date(2025, 1, 10)
        assert parse_date(datetime(2025, 1, 10, 23, 0)) == date(2025, 1, 10)

    @pytest.mark.parametrize("raw", ["2025-13-01", "10/01/2025", "", None, 20250110])
    def test_parse_date_rejects_garbage(self, raw):
        assert parse_date(raw) is None

    def test_parse_days_of_week(self):
        assert parse_days_of_week("1,3,5") == frozenset({1, 3, 5})
        assert parse_days_of_week(" 0 , 6 ") == frozenset({0, 6})
        assert parse_days_of_week([2, 2, 4]) == frozenset({2, 4})

    @pytest.mark.parametrize("raw", ["1,7", "mon", "", [], [-1], None, "1,,x"])
    def test_parse_days_of_week_invalid_is_none(self, raw):
        assert parse_days_of_week(raw) is None

    def test_weekday_number_starts_on_sunday(self):
        assert [weekday_number(d.date()) for d in WEEK] == [0, 1, 2, 3, 4, 5, 6]


# =============================================================================
# is_visible
# =============================================================================

class TestFailSafe:

    @pytest.mark.parametrize("fields", [
        {"scheduleKind": None},
        {"scheduleKind": "monthly"},
        {"scheduleKind": "specific_date"},
        {"scheduleKind": "specific_date", "specificDate": "not-a-date"},
        {"scheduleKind": "days_of_week"},
        {"scheduleKind": "days_of_week", "daysOfWeek": "funday"},
        {"scheduleKind": "date_range", "startDate": "2025-01-01"},
        {"scheduleKind": "date_range", "endDate": "2025-12-31"},
        {"scheduleKind": "always", "startTime": "nine", "endTime": "17:00"},
    ])
    def test_malformed_items_are_never_visible(self, fields):
        item = make_item(**fields)
        for now in WEEK:
            assert is_visible(item, now) is False

    def test_skipped_items_are_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="schedule"):
            is_visible(make_item(scheduleKind="monthly"), WEEK[0])
            is_visible(make_item(startTime="nine", endTime="17:00"), WEEK[0])

        events = [r.getMessage() for r in caplog.records if r.name == "schedule"]
        assert events == ["schedule_kind_unknown", "schedule_window_invalid"]

    def test_inactive_dominates_every_schedule(self):
        items = [
            make_item(active=False),
            make_item(active=False, scheduleKind="days_of_week", daysOfWeek="0,1,2,3,4,5,6"),
            make_item(active=False, scheduleKind="date_range", startDate="2000-01-01", endDate="2100-01-01"),
        ]
        for item in items:
            for now in WEEK:
                assert is_visible(item, now) is False


class TestScheduleKinds:

    def test_always(self):
        item = make_item(scheduleKind="always")
        assert all(is_visible(item, now) for now in WEEK)

    def test_specific_date(self):
        item = make_item(scheduleKind="specific_date", specificDate="2025-01-15")
        assert is_visible(item, datetime(2025, 1, 15, 0, 0))
        assert is_visible(item, datetime(2025, 1, 15, 23, 59))
        assert not is_visible(item, datetime(2025, 1, 14, 23, 59))
        assert not is_visible(item, datetime(2025, 1, 16, 0, 0))

    def test_date_range_is_inclusive(self):
        item = make_item(scheduleKind="date_range", startDate="2025-01-10", endDate="2025-01-12")
        for d in (10, 11, 12):
            assert is_visible(item, datetime(2025, 1, d, 12, 0))
        assert not is_visible(item, datetime(2025, 1, 9, 12, 0))
        assert not is_visible(item, datetime(2025, 1, 13, 12, 0))

    def test_inverted_date_range_is_never_visible(self):
        item = make_item(scheduleKind="date_range", startDate="2025-01-12", endDate="2025-01-10")
        assert not is_visible(item, datetime(2025, 1, 11, 12, 0))

    def test_days_of_week(self):
        item = make_item(scheduleKind="days_of_week", daysOfWeek="1,3,5")
        visible = [weekday_number(now.date()) for now in WEEK if is_visible(item, now)]
        assert visible == [1, 3, 5]

    def test_days_of_week_ignores_the_date(self):
        item = make_item(scheduleKind="days_of_week", daysOfWeek=[1, 3, 5])
        # Mondays across several months
        for monday in (datetime(2025, 3, 3, 9), datetime(2026, 6, 1, 9), datetime(2024, 12, 30, 9)):
            assert is_visible(item, monday)


class TestTimeWindow:

    def test_window_composes_with_always(self):
        item = make_item(startTime="09:00", endTime="17:00")
        assert is_visible(item, datetime(2025, 1, 15, 12, 0))
        assert is_visible(item, datetime(2025, 1, 15, 9, 0))
        assert not is_visible(item, datetime(2025, 1, 15, 8, 59))
        assert not is_visible(item, datetime(2025, 1, 15, 17, 0))

    def test_window_uses_minute_resolution(self):
        item = make_item(startTime="09:00", endTime="17:00")
        assert is_visible(item, datetime(2025, 1, 15, 16, 59, 59))

    def test_window_composes_with_date_rule(self):
        item = make_item(
            scheduleKind="days_of_week", daysOfWeek="3", startTime="09:00", endTime="17:00",
        )
        assert is_visible(item, datetime(2025, 1, 15, 10, 0))      # Wed, in window
        assert not is_visible(item, datetime(2025, 1, 15, 18, 0))  # Wed, after window
        assert not is_visible(item, datetime(2025, 1, 16, 10, 0))  # Thu

    def test_single_bound_is_ignored(self):
        assert is_visible(make_item(startTime="23:00"), datetime(2025, 1, 15, 1, 0))
        assert is_visible(make_item(endTime="01:00"), datetime(2025, 1, 15, 12, 0))

    def test_empty_string_bounds_mean_no_window(self):
        now = datetime(2025, 1, 15, 3, 0)
        assert is_visible(make_item(startTime="", endTime=""), now)
        assert is_visible(make_item(startTime="09:00", endTime=""), now)
        assert is_visible(make_item(startTime="", endTime="17:00"), now)

    def test_window_wrapping_midnight(self):
        item = make_item(startTime="22:00", endTime="02:00")
        assert is_visible(item, datetime(2025, 1, 15, 22, 0))
        assert is_visible(item, datetime(2025, 1, 15, 23, 30))
        assert is_visible(item, datetime(2025, 1, 15, 1, 59))
        assert not is_visible(item, datetime(2025, 1, 15, 2, 0))
        assert not is_visible(item, datetime(2025, 1, 15, 12, 0))

    def test_empty_window_is_never_visible(self):
        item = make_item(startTime="10:00", endTime="10:00")
        assert not is_visible(item, datetime(2025, 1, 15, 10, 0))


# =============================================================================
# visible_content_for_device
# =============================================================================

class TestVisibleContent:

    def test_sorted_by_order_with_stable_ties(self):
        items = [
            make_item(id="A", order=2),
            make_item(id="B", order=1),
            make_item(id="C", order=1),
        ]
        result = visible_content_for_device(items, WEEK[3])
        assert [i.id for i in result] == ["B", "C", "A"]

    def test_filters_invisible_items(self):
        items = [
            make_item(id="A", order=1),
            make_item(id="B", order=0, active=False),
            make_item(id="C", order=2, scheduleKind="specific_date", specificDate="1999-01-01"),
        ]
        assert [i.id for i in visible_content_for_device(items, WEEK[0])] == ["A"]

    def test_nothing_visible_returns_empty_list(self):
        items = [make_item(active=False)]
        assert visible_content_for_device(items, WEEK[0]) == []
        assert visible_content_for_device([], WEEK[0]) == []


# =============================================================================
# Calendar helpers
# =============================================================================

class TestCalendar:

    def test_scheduled_on_ignores_time_window(self):
        item = make_item(startTime="09:00", endTime="10:00")
        assert scheduled_on(item, date(2025, 1, 15))

    def test_scheduled_on_respects_active(self):
        assert not scheduled_on(make_item(active=False), date(2025, 1, 15))

    def test_schedule_for_month(self):
        items = [
            make_item(id="range", order=2, scheduleKind="date_range",
                      startDate="2025-01-30", endDate="2025-02-02"),
            make_item(id="fri", order=1, scheduleKind="days_of_week", daysOfWeek="5"),
            make_item(id="bad", order=0, scheduleKind="nope"),
        ]
        month = schedule_for_month(items, 2025, 2)

        assert set(month) == {"2025-02-01", "2025-02-02", "2025-02-07", "2025-02-14",
                              "2025-02-21", "2025-02-28"}
        assert [i.id for i in month["2025-02-07"]] == ["fri"]
        assert [i.id for i in month["2025-02-01"]] == ["range"]

    def test_schedule_for_month_orders_each_day(self):
        items = [
            make_item(id="b", order=5),
            make_item(id="a", order=1, scheduleKind="specific_date", specificDate="2025-02-10"),
        ]
        month = schedule_for_month(items, 2025, 2)
        assert len(month) == 28
        assert [i.id for i in month["2025-02-10"]] == ["a", "b"]


class TestDescribeSchedule:

    @pytest.mark.parametrize("raw, label", [
        ("1,2,3,4,5", "Weekdays"),
        ("0,6", "Weekends"),
        ("1,3", "Mon, Wed"),
        ("bad", ""),
    ])
    def test_format_days_of_week(self, raw, label):
        assert format_days_of_week(raw) == label

    def test_describe(self):
        assert describe_schedule(make_item()) == "Always"
        assert describe_schedule(
            make_item(scheduleKind="days_of_week", daysOfWeek="1,2,3,4,5", startTime="09:00", endTime="17:00")
        ) == "Weekdays | 09:00 ~ 17:00"
        assert describe_schedule(
            make_item(scheduleKind="date_range", startDate="2025-01-10", endDate="2025-01-12")
        ) == "2025-01-10 ~ 2025-01-12"
        assert describe_schedule(make_item(scheduleKind="weird")) == "Invalid schedule"
