"""Tests for statement date parsing and month keys."""

from datetime import date

import pytest

from finance_helper.utils.date_utils import (
    compile_date_format,
    month_key,
    parse_date,
    parse_date_with_format,
    parse_iso_date,
    shift_month_key,
)


class TestParseDateWithFormat:
    """Tests for strict parsing against an explicit format."""

    def test_day_month_year(self) -> None:
        assert parse_date_with_format("15/03/2024", "DD/MM/YYYY") == date(2024, 3, 15)

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert parse_date_with_format("  15/03/2024 ", "DD/MM/YYYY") == date(2024, 3, 15)

    def test_impossible_date_is_rejected(self) -> None:
        """31 February must not roll over into March."""
        with pytest.raises(ValueError):
            parse_date_with_format("31/02/2024", "DD/MM/YYYY")

    def test_leap_day(self) -> None:
        assert parse_date_with_format("29/02/2024", "DD/MM/YYYY") == date(2024, 2, 29)
        with pytest.raises(ValueError):
            parse_date_with_format("29/02/2023", "DD/MM/YYYY")

    def test_no_fallback_to_iso(self) -> None:
        """An ISO date does not satisfy a DD/MM/YYYY format."""
        with pytest.raises(ValueError):
            parse_date_with_format("2024-03-15", "DD/MM/YYYY")

    def test_strict_digit_count(self) -> None:
        with pytest.raises(ValueError):
            parse_date_with_format("5/3/2024", "DD/MM/YYYY")
        assert parse_date_with_format("5/3/2024", "D/M/YYYY") == date(2024, 3, 5)

    def test_month_abbreviation(self) -> None:
        assert parse_date_with_format("15 Mar 2024", "DD MMM YYYY") == date(2024, 3, 15)

    def test_two_digit_year(self) -> None:
        assert parse_date_with_format("15/03/24", "DD/MM/YY") == date(2024, 3, 15)
        assert parse_date_with_format("15/03/99", "DD/MM/YY") == date(1999, 3, 15)

    def test_format_without_day_is_invalid(self) -> None:
        with pytest.raises(ValueError):
            compile_date_format("MM/YYYY")


class TestParseIsoDate:
    """Tests for ISO-like auto-detection."""

    @pytest.mark.parametrize(
        "raw",
        ["2024-03-15", "2024/03/15", "20240315", "2024-3-15", "2024-03-15T09:30:00", "2024-03-15 09:30"],
    )
    def test_accepted_spellings(self, raw: str) -> None:
        assert parse_iso_date(raw) == date(2024, 3, 15)

    def test_day_first_is_not_iso(self) -> None:
        with pytest.raises(ValueError):
            parse_iso_date("15/03/2024")

    def test_impossible_date_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_iso_date("2024-02-30")


class TestParseDate:
    """Tests for the parse_date dispatcher."""

    def test_empty_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_date("   ")

    def test_uses_format_when_given(self) -> None:
        assert parse_date("01/02/2024", "DD/MM/YYYY") == date(2024, 2, 1)

    def test_auto_detects_without_format(self) -> None:
        assert parse_date("2024-02-01") == date(2024, 2, 1)


class TestMonthKeys:
    """Tests for YYYY-MM month keys."""

    def test_month_key(self) -> None:
        assert month_key(date(2024, 3, 15)) == "2024-03"

    def test_shift_back_across_year(self) -> None:
        assert shift_month_key("2024-01", -1) == "2023-12"

    def test_shift_year(self) -> None:
        assert shift_month_key("2024-03", -12) == "2023-03"

    def test_shift_forward(self) -> None:
        assert shift_month_key("2024-12", 1) == "2025-01"
