"""
Input validation for execution requests and decisions.

Pure checks with no I/O.  Every public function either returns the
normalized value or raises ``ValidationError`` naming the field.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from budget_kernel.db.types import MONEY_DECIMAL_PLACES, ZERO
from budget_kernel.exceptions import ValidationError


def _to_decimal(value: Any, field: str) -> Decimal:
    """Accept Decimal, int or numeric string; never float (or bool)."""
    if isinstance(value, (bool, float)):
        raise ValidationError(field, f"must be a Decimal, not {type(value).__name__}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(field, f"not a number: {value!r}") from None
    else:
        raise ValidationError(field, f"unsupported type {type(value).__name__}")

    if not amount.is_finite():
        raise ValidationError(field, "must be finite")
    exponent = amount.normalize().as_tuple().exponent
    if isinstance(exponent, int) and -exponent > MONEY_DECIMAL_PLACES:
        raise ValidationError(
            field, f"at most {MONEY_DECIMAL_PLACES} decimal places allowed"
        )
    return amount


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    amount = _to_decimal(value, field)
    if amount <= ZERO:
        raise ValidationError(field, "must be greater than zero")
    return amount


def parse_budget_amount(value: Any, field: str = "current_budget") -> Decimal:
    """Like ``parse_amount`` but a zero budget is allowed."""
    amount = _to_decimal(value, field)
    if amount < ZERO:
        raise ValidationError(field, "must not be negative")
    return amount


def parse_execution_date(value: Any, field: str = "execution_date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(field, f"not an ISO-8601 date: {value!r}") from None
    raise ValidationError(field, f"unsupported type {type(value).__name__}")


def require_text(value: Any, field: str, max_length: int) -> str:
    """Mandatory, non-blank text no longer than ``max_length``."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    return optional_text(value, field, max_length)


def optional_text(value: Any, field: str, max_length: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, "must be a string")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(field, f"must be at most {max_length} characters")
    return text or None
