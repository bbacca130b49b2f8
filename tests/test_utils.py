"""Tests for utils.py - month and input helpers."""

from datetime import date
from decimal import Decimal

import pytest

from utils import (
    format_hours,
    format_percentage,
    month_bounds,
    month_label,
    parse_hours,
    parse_month_label,
    report_filename,
    shift_month,
)


class TestMonthBounds:
    """Tests for month_bounds function."""

    def test_regular_month(self):
        assert month_bounds(2024, 3) == (date(2024, 3, 1), date(2024, 4, 1))

    def test_december_rolls_into_next_year(self):
        assert month_bounds(2024, 12) == (date(2024, 12, 1), date(2025, 1, 1))

    def test_february_leap_year(self):
        start, end = month_bounds(2024, 2)
        assert start == date(2024, 2, 1)
        assert end == date(2024, 3, 1)

    def test_last_day_of_december_inside_range(self):
        start, end = month_bounds(2023, 12)
        assert start <= date(2023, 12, 31) < end
        assert not date(2024, 1, 1) < end


class TestMonthLabel:
    def test_zero_padded(self):
        assert month_label(2024, 3) == "2024-03"

    def test_report_filename(self):
        assert report_filename(2024, 3) == "Report_2024-03.pdf"
        assert report_filename(2025, 11) == "Report_2025-11.pdf"

    def test_parse_month_label(self):
        assert parse_month_label("2024-03") == (2024, 3)
        assert parse_month_label(" 2024-12 ") == (2024, 12)

    @pytest.mark.parametrize("label", ["2024", "2024-13", "2024-00", "abcd-ef", ""])
    def test_parse_month_label_invalid(self, label):
        with pytest.raises(ValueError):
            parse_month_label(label)


class TestShiftMonth:
    def test_forward(self):
        assert shift_month(2024, 3, 1) == (2024, 4)

    def test_forward_across_year(self):
        assert shift_month(2024, 12, 1) == (2025, 1)

    def test_backward_across_year(self):
        assert shift_month(2024, 1, -1) == (2023, 12)


class TestParseHours:
    """Tests for parse_hours function."""

    def test_decimal_point(self):
        assert parse_hours("3.5") == Decimal("3.5")

    def test_decimal_comma(self):
        assert parse_hours("3,5") == Decimal("3.5")

    def test_whitespace(self):
        assert parse_hours("  8 ") == Decimal("8")

    def test_zero_allowed(self):
        assert parse_hours("0") == Decimal("0")

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="Enter the number of hours"):
            parse_hours("   ")

    @pytest.mark.parametrize("text", ["abc", "1.2.3", "NaN", "Infinity", "--1"])
    def test_non_numeric_rejected(self, text):
        with pytest.raises(ValueError):
            parse_hours(text)

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            parse_hours("-1")

    @pytest.mark.parametrize("text", ["1e400", "24.01", "100"])
    def test_more_than_a_day_rejected(self, text):
        with pytest.raises(ValueError, match="cannot exceed 24"):
            parse_hours(text)

    def test_full_day_allowed(self):
        assert parse_hours("24") == Decimal("24")


class TestFormatting:
    def test_format_hours(self):
        assert format_hours(Decimal("5")) == "5.00"

    def test_format_percentage(self):
        assert format_percentage(Decimal("33.333333")) == "33.33%"
