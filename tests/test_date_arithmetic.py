"""
Tests for working-day date arithmetic.
"""

from datetime import date, timedelta

import pytest

from conftest import exception, recurring, specific
from order_scheduler.core.date_arithmetic import (
    coerce_working_days,
    compute_end_date,
    compute_start_date,
    latest_start_date,
)
from order_scheduler.errors import InvalidRange, NoWorkingDayFound


class TestComputeStartDate:
    """Tests for compute_start_date."""

    def test_weekend_scenario(self, weekend_rules):
        """Five working days ending Wednesday 2024-01-10 start on Thursday 2024-01-04."""
        result = compute_start_date(date(2024, 1, 10), 5, weekend_rules)

        assert result.start_date == date(2024, 1, 4)
        assert result.holiday_dates == [date(2024, 1, 6), date(2024, 1, 7)]
        assert (date(2024, 1, 10) - result.start_date).days + 1 == 7

    @pytest.mark.parametrize("end", [date(2024, 1, 10), date(2024, 1, 7), date(2024, 2, 29)])
    def test_single_day_starts_on_end(self, end, weekend_rules):
        assert compute_start_date(end, 1, weekend_rules).start_date == end

    def test_single_day_on_holiday_lists_end(self):
        rules = [specific(date(2024, 12, 25))]
        result = compute_start_date(date(2024, 12, 25), 1, rules)

        assert result.start_date == date(2024, 12, 25)
        assert result.holiday_dates == [date(2024, 12, 25)]

    def test_single_day_on_working_day(self):
        result = compute_start_date(date(2024, 12, 24), 1, [specific(date(2024, 12, 25))])
        assert result.holiday_dates == []

    @pytest.mark.parametrize("n", [2, 5, 30])
    def test_no_holidays_is_plain_subtraction(self, n):
        end = date(2024, 3, 15)
        result = compute_start_date(end, n, [])
        assert result.start_date == end - timedelta(days=n - 1)
        assert result.holiday_dates == []

    def test_end_date_counts_even_if_holiday(self, weekend_rules):
        # Sunday end date counts as the first working day
        result = compute_start_date(date(2024, 1, 7), 2, weekend_rules)
        assert result.start_date == date(2024, 1, 5)
        assert result.holiday_dates == [date(2024, 1, 6), date(2024, 1, 7)]

    def test_exception_counts_as_working_day(self, weekend_rules):
        rules = weekend_rules + [exception(date(2024, 1, 6))]
        result = compute_start_date(date(2024, 1, 8), 2, rules)
        assert result.start_date == date(2024, 1, 6)
        assert result.holiday_dates == [date(2024, 1, 7)]

    def test_zero_working_days_raises(self):
        with pytest.raises(InvalidRange):
            compute_start_date(date(2024, 1, 10), 0, [])

    def test_every_day_holiday_raises(self):
        rules = [recurring(weekday) for weekday in range(7)]
        with pytest.raises(NoWorkingDayFound) as exc_info:
            compute_start_date(date(2024, 6, 1), 2, rules, max_days=60)
        assert exc_info.value.max_days == 60

    def test_walk_bound_is_configurable(self):
        # Nine working days need at least eight steps back
        with pytest.raises(NoWorkingDayFound):
            compute_start_date(date(2024, 1, 10), 9, [], max_days=5)


class TestComputeEndDate:
    """Tests for compute_end_date."""

    def test_skips_weekend(self, weekend_rules):
        assert compute_end_date(date(2024, 1, 5), 3, weekend_rules) == date(2024, 1, 9)

    def test_single_day(self, weekend_rules):
        assert compute_end_date(date(2024, 1, 6), 1, weekend_rules) == date(2024, 1, 6)

    def test_every_day_holiday_raises(self):
        rules = [recurring(weekday) for weekday in range(7)]
        with pytest.raises(NoWorkingDayFound):
            compute_end_date(date(2024, 6, 1), 3, rules, max_days=30)

    @pytest.mark.parametrize(
        "end,n",
        [
            (date(2024, 1, 10), 5),
            (date(2024, 1, 8), 2),
            (date(2024, 1, 19), 10),
            (date(2024, 2, 1), 1),
        ],
    )
    def test_round_trip(self, end, n, weekend_rules):
        start = compute_start_date(end, n, weekend_rules).start_date
        assert compute_end_date(start, n, weekend_rules) == end

    def test_round_trip_breaks_when_end_is_holiday(self, weekend_rules):
        # The backward walk counts the Sunday end date, the forward walk skips it
        end = date(2024, 1, 7)
        start = compute_start_date(end, 3, weekend_rules).start_date

        assert start == date(2024, 1, 4)
        assert compute_end_date(start, 3, weekend_rules) == date(2024, 1, 8)


class TestHelpers:
    """Tests for coerce_working_days and latest_start_date."""

    @pytest.mark.parametrize(
        "value,expected",
        [(3, 3), ("4", 4), (0, 1), (-5, 1), (None, 1), ("abc", 1)],
    )
    def test_coerce_working_days(self, value, expected):
        assert coerce_working_days(value) == expected

    def test_latest_start_date(self, weekend_rules):
        assert latest_start_date(date(2024, 1, 10), 5, weekend_rules) == date(2024, 1, 4)


class TestCalendarBounds:
    """Walks that reach the first or last representable date."""

    def test_single_day_on_last_date(self):
        result = compute_start_date(date.max, 1, [])

        assert result.start_date == date.max
        assert result.holiday_dates == []

    def test_backward_from_last_date(self):
        result = compute_start_date(date.max, 3, [specific(date.max)])

        assert result.start_date == date(9999, 12, 29)
        assert result.holiday_dates == [date.max]

    def test_backward_reaches_first_date(self):
        assert compute_start_date(date(1, 1, 2), 2, []).start_date == date.min

    def test_backward_past_first_date_raises(self):
        with pytest.raises(InvalidRange, match="supported date range"):
            compute_start_date(date.min, 2, [])

    def test_forward_single_day_on_last_date(self):
        assert compute_end_date(date.max, 1, []) == date.max

    def test_forward_past_last_date_raises(self):
        with pytest.raises(InvalidRange, match="supported date range"):
            compute_end_date(date.max, 2, [])

    def test_holiday_on_last_date_pushes_walk_past_it(self):
        with pytest.raises(InvalidRange):
            compute_end_date(date(9999, 12, 30), 2, [specific(date.max)])
