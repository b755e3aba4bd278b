"""
Tests for intake field validation.

Covers:
- parse_amount: accepted types, positivity, precision, float refusal
- parse_budget_amount: zero allowed, negative refused
- parse_execution_date: date / datetime / ISO string
- require_text / optional_text: blanks, stripping, length limits
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from budget_kernel.domain.validation import (
    optional_text,
    parse_amount,
    parse_budget_amount,
    parse_execution_date,
    require_text,
)
from budget_kernel.exceptions import ErrorKind, ValidationError


class TestParseAmount:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("300000"), Decimal("300000")),
            ("300000.50", Decimal("300000.50")),
            (" 12.5 ", Decimal("12.5")),
            (42, Decimal("42")),
            ("0.000000001", Decimal("0.000000001")),
        ],
    )
    def test_accepted(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [0, "0", Decimal("-1"), "-0.01"])
    def test_non_positive_refused(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount(value)
        assert exc_info.value.field == "amount"
        assert exc_info.value.kind == ErrorKind.BAD_REQUEST

    def test_float_refused(self):
        with pytest.raises(ValidationError, match="float"):
            parse_amount(0.1)

    def test_bool_refused(self):
        with pytest.raises(ValidationError):
            parse_amount(True)

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", None, [1]])
    def test_garbage_refused(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value)

    def test_too_many_decimal_places_refused(self):
        with pytest.raises(ValidationError, match="decimal places"):
            parse_amount("1.0000000001")

    def test_trailing_zeros_do_not_count_as_precision(self):
        assert parse_amount("5.000000000000") == Decimal("5")


class TestParseBudgetAmount:
    def test_zero_allowed(self):
        assert parse_budget_amount("0") == Decimal("0")

    def test_negative_refused(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_budget_amount("-5")
        assert exc_info.value.field == "current_budget"


class TestParseExecutionDate:
    def test_date_passthrough(self):
        assert parse_execution_date(date(2025, 3, 15)) == date(2025, 3, 15)

    def test_datetime_truncated(self):
        assert parse_execution_date(datetime(2025, 3, 15, 17, 30)) == date(2025, 3, 15)

    def test_iso_string(self):
        assert parse_execution_date("2025-03-15") == date(2025, 3, 15)

    @pytest.mark.parametrize("value", ["15/03/2025", "2025-13-01", "", 20250315])
    def test_invalid_refused(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_execution_date(value)
        assert exc_info.value.field == "execution_date"


class TestText:
    def test_require_text_strips(self):
        assert require_text("  Foundation pour  ", "purpose", 100) == "Foundation pour"

    @pytest.mark.parametrize("value", [None, "", "   ", 12])
    def test_require_text_refuses_blank(self, value):
        with pytest.raises(ValidationError, match="required"):
            require_text(value, "purpose", 100)

    def test_length_limit(self):
        assert require_text("x" * 10, "purpose", 10) == "x" * 10
        with pytest.raises(ValidationError, match="at most 10"):
            require_text("x" * 11, "purpose", 10)

    def test_optional_text_blank_becomes_none(self):
        assert optional_text(None, "note", 10) is None
        assert optional_text("   ", "note", 10) is None
        assert optional_text(" ok ", "note", 10) == "ok"

    def test_optional_text_wrong_type(self):
        with pytest.raises(ValidationError):
            optional_text(5, "note", 10)
