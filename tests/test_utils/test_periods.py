"""Tests for YYYY-MM period helpers."""

from datetime import date, datetime

import pytest

from clean_village.utils.periods import (
    in_period,
    month_index,
    parse_year_month,
    period_key,
    shift_month,
)


class TestPeriodKey:
    def test_zero_padded(self):
        assert period_key(2024, 3) == "2024-03"

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month(self, month):
        with pytest.raises(ValueError):
            period_key(2024, month)


class TestInPeriod:
    def test_prefix_match(self):
        assert in_period("2024-03-31", "2024-03")
        assert in_period("2024-03-05T10:00:00", "2024-03")

    def test_other_month(self):
        assert not in_period("2024-04-01", "2024-03")

    @pytest.mark.parametrize("value", ["", None, "03/05/2024", 20240305])
    def test_malformed_never_matches(self, value):
        assert not in_period(value, "2024-03")


class TestParseYearMonth:
    def test_string(self):
        assert parse_year_month("2024-03-05") == (2024, 3)

    def test_date_objects(self):
        assert parse_year_month(date(2024, 1, 31)) == (2024, 1)
        assert parse_year_month(datetime(2023, 12, 1, 8)) == (2023, 12)

    @pytest.mark.parametrize("value", ["2024", "2024-13-01", "abcd-ef",
                                       None, 2024])
    def test_unreadable(self, value):
        assert parse_year_month(value) is None


class TestMonthArithmetic:
    def test_month_index_ordering(self):
        assert month_index(2025, 1) - month_index(2024, 12) == 1

    def test_shift_across_years(self):
        assert shift_month(2024, 11, 3) == (2025, 2)
        assert shift_month(2024, 1, -1) == (2023, 12)
