"""Tests for amount parsing, regex compilation, and output sanitising."""

import re
from decimal import Decimal

import pytest

from finance_helper.utils.decimal_utils import format_currency, parse_amount, to_decimal
from finance_helper.utils.regex_utils import (
    MAX_PATTERN_LENGTH,
    compile_user_pattern,
    is_safe_pattern,
    translate_flags,
)
from finance_helper.utils.sanitize import sanitize_for_csv


class TestParseAmount:
    """Tests for parse_amount."""

    def test_thousands_separators_are_removed(self) -> None:
        assert parse_amount("1,234.50") == Decimal("1234.50")

    def test_sign_is_kept(self) -> None:
        assert parse_amount("-45.00") == Decimal("-45.00")

    @pytest.mark.parametrize(
        "raw", ["", "   ", "abc", "12.3.4", "NaN", "Infinity", "1_000", "-4_5.00"]
    )
    def test_invalid_amounts(self, raw: str) -> None:
        with pytest.raises(ValueError):
            parse_amount(raw)


class TestToDecimal:
    """Tests for to_decimal."""

    def test_float_keeps_short_representation(self) -> None:
        assert to_decimal(45.1) == Decimal("45.1")

    def test_int(self) -> None:
        assert to_decimal(-3) == Decimal("-3")

    def test_bool_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            to_decimal(True)

    def test_none_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            to_decimal(None)


class TestFormatCurrency:
    """Tests for format_currency."""

    def test_negative_with_symbol(self) -> None:
        assert format_currency(Decimal("-1234.5"), "$") == "-$1,234.50"

    def test_rounds_half_up(self) -> None:
        assert format_currency(Decimal("0.005")) == "0.01"


class TestTranslateFlags:
    """Tests for flag letters."""

    def test_default_is_ignore_case(self) -> None:
        assert translate_flags(None) == re.IGNORECASE

    def test_empty_is_case_sensitive(self) -> None:
        assert translate_flags("") == 0

    def test_combined(self) -> None:
        assert translate_flags("ims") == re.IGNORECASE | re.MULTILINE | re.DOTALL

    def test_global_and_unicode_are_ignored(self) -> None:
        assert translate_flags("gu") == 0

    def test_unknown_letter(self) -> None:
        with pytest.raises(ValueError):
            translate_flags("x")


class TestCompileUserPattern:
    """Tests for compile_user_pattern."""

    def test_valid_pattern(self) -> None:
        regex = compile_user_pattern("coffee")
        assert regex is not None
        assert regex.search("COFFEE HOUSE")

    def test_case_sensitive_with_empty_flags(self) -> None:
        regex = compile_user_pattern("coffee", "")
        assert regex is not None
        assert regex.search("COFFEE HOUSE") is None

    def test_invalid_pattern_returns_none(self) -> None:
        assert compile_user_pattern("([unclosed") is None

    def test_unknown_flag_returns_none(self) -> None:
        assert compile_user_pattern("coffee", "q") is None

    def test_empty_pattern_returns_none(self) -> None:
        assert compile_user_pattern("") is None

    def test_nested_quantifier_returns_none(self) -> None:
        assert compile_user_pattern("(a+)+") is None

    def test_invalid_pattern_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        compile_user_pattern("([unclosed", owner="rule 7")
        assert "rule 7" in caplog.text


class TestIsSafePattern:
    """Tests for the catastrophic backtracking guard."""

    def test_simple_alternation_is_safe(self) -> None:
        assert is_safe_pattern(r"supermarket|PAK\s*N\s*SAVE") == (True, "")

    @pytest.mark.parametrize(
        "pattern",
        [r"PAK ?N ?SAVE(?: AUCKLAND)?", r"(online\s+)?grocer", r"(\d+)?countdown", r"(a+){2}"],
    )
    def test_optional_groups_are_safe(self, pattern: str) -> None:
        assert is_safe_pattern(pattern) == (True, "")

    @pytest.mark.parametrize(
        "pattern", [r"(a+)+", r"(\w*)*x", r"(?:ab+)+", r"(x|y+){2,}", r"((a+)b)*"]
    )
    def test_nested_unbounded_quantifiers_are_unsafe(self, pattern: str) -> None:
        is_safe, reason = is_safe_pattern(pattern)
        assert not is_safe
        assert "nested quantifier" in reason

    def test_quantifiers_inside_character_class_are_ignored(self) -> None:
        assert is_safe_pattern(r"([+*]x)+") == (True, "")

    def test_overlong_pattern(self) -> None:
        is_safe, reason = is_safe_pattern("a" * (MAX_PATTERN_LENGTH + 1))
        assert not is_safe
        assert "limit" in reason


class TestSanitizeForCsv:
    """Tests for formula-injection neutralising."""

    @pytest.mark.parametrize("value", ["=SUM(A1)", "+1", "-cmd", "@x"])
    def test_formula_prefix_is_escaped(self, value: str) -> None:
        assert sanitize_for_csv(value) == "'" + value

    def test_plain_text_unchanged(self) -> None:
        assert sanitize_for_csv("PAK N SAVE") == "PAK N SAVE"

    def test_none(self) -> None:
        assert sanitize_for_csv(None) is None
