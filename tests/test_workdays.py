from datetime import date, timedelta

import pytest

from burndown_planner.workdays import add_workdays, is_workday, next_workday, workdays_diff

FRIDAY = date(2025, 3, 7)
SATURDAY = date(2025, 3, 8)
SUNDAY = date(2025, 3, 9)
MONDAY = date(2025, 3, 10)


def test_weekends_are_not_workdays():
    assert is_workday(FRIDAY)
    assert is_workday(MONDAY)
    assert not is_workday(SATURDAY)
    assert not is_workday(SUNDAY)


def test_next_workday_snaps_weekend_to_monday():
    assert next_workday(SATURDAY) == MONDAY
    assert next_workday(SUNDAY) == MONDAY
    assert next_workday(FRIDAY) == FRIDAY


class TestAddWorkdays:
    def test_skips_weekend(self):
        assert add_workdays(FRIDAY, 1) == MONDAY
        assert add_workdays(date(2025, 3, 3), 5) == MONDAY

    def test_from_weekend_start(self):
        assert add_workdays(SATURDAY, 1) == MONDAY
        assert add_workdays(SATURDAY, 2) == date(2025, 3, 11)

    def test_zero_returns_workday(self):
        assert add_workdays(SUNDAY, 0) == MONDAY
        assert add_workdays(FRIDAY, 0) == FRIDAY

    def test_result_is_always_a_workday(self):
        start = date(2025, 3, 1)
        for offset in range(0, 30):
            assert is_workday(add_workdays(start, offset))

    def test_negative_is_rejected(self):
        with pytest.raises(ValueError):
            add_workdays(MONDAY, -1)


class TestWorkdaysDiff:
    def test_counts_half_open_window(self):
        assert workdays_diff(date(2025, 3, 3), MONDAY) == 5
        assert workdays_diff(FRIDAY, MONDAY) == 1

    def test_is_signed(self):
        assert workdays_diff(MONDAY, date(2025, 3, 3)) == -5

    def test_same_day_and_weekend_only(self):
        assert workdays_diff(MONDAY, MONDAY) == 0
        assert workdays_diff(SATURDAY, MONDAY) == 0


def _walk_add(value, workdays):
    current = value
    while workdays:
        current += timedelta(days=1)
        if is_workday(current):
            workdays -= 1
    return current


def _walk_diff(first, second):
    start, end = sorted((first, second))
    count = sum(1 for offset in range((end - start).days) if is_workday(start + timedelta(days=offset)))
    return count if first < second else -count


def test_week_arithmetic_matches_day_walk():
    start = date(2025, 3, 1)
    for day in range(7):
        origin = start + timedelta(days=day)
        for workdays in (1, 4, 5, 6, 9, 10, 23):
            assert add_workdays(origin, workdays) == _walk_add(origin, workdays)
        for span in (0, 3, 7, 12, 30):
            other = origin + timedelta(days=span)
            assert workdays_diff(origin, other) == _walk_diff(origin, other)
            assert workdays_diff(other, origin) == _walk_diff(other, origin)


class TestCalendarEnd:
    def test_last_date_is_a_workday(self):
        assert is_workday(date.max)
        assert next_workday(date.max) == date.max

    def test_add_past_last_date_is_pinned(self):
        assert add_workdays(date(9999, 12, 30), 5) == date.max
        assert add_workdays(date(2025, 3, 3), 5_000_000) == date.max
        assert add_workdays(date(2025, 3, 3), 10**30) == date.max

    def test_long_spans(self):
        assert add_workdays(MONDAY, 5 * 52) == MONDAY + timedelta(weeks=52)
        assert workdays_diff(MONDAY, MONDAY + timedelta(weeks=52)) == 260
        assert workdays_diff(date.min, date.max) > 2_500_000
