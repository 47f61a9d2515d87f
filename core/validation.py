"""Input validation and the calculation error taxonomy.

Every calculator checks its documented preconditions through these helpers
before computing anything.  A violation raises :class:`CalculationError` with
a message naming the offending field; nothing is clamped or silently fixed.
Each helper returns the normalized value so calculators can validate inline::

    income = require_positive(gross_monthly_income, "gross_monthly_income",
                              "Gross monthly income")
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from core.utils import to_date, to_decimal


class CalculationError(ValueError):
    """A calculator precondition was violated.

    ``field`` holds the snake_case input name so the HTTP layer can point the
    caller at the value to correct.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message

    def as_dict(self) -> dict:
        return {"code": "VALIDATION_ERROR", "field": self.field, "message": self.message}


def _number(value, field: str, label: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError:
        raise CalculationError(field, f"{label} must be a number") from None


def require_positive(value, field: str, label: str) -> Decimal:
    amount = _number(value, field, label)
    if amount <= 0:
        raise CalculationError(field, f"{label} must be greater than zero")
    return amount


def require_non_negative(value, field: str, label: str) -> Decimal:
    amount = _number(value, field, label)
    if amount < 0:
        raise CalculationError(field, f"{label} cannot be negative")
    return amount


def require_fraction(value, field: str, label: str) -> Decimal:
    """Fractions are percentages written as decimals: 0.25 for 25%."""

    ratio = _number(value, field, label)
    if ratio < 0 or ratio > 1:
        raise CalculationError(field, f"{label} must be between 0 and 1")
    return ratio


def require_whole_number(value, field: str, label: str, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise CalculationError(field, f"{label} must be a whole number")
    number = _number(value, field, label)
    if number != number.to_integral_value():
        raise CalculationError(field, f"{label} must be a whole number")
    if number < minimum:
        if minimum == 1:
            raise CalculationError(field, f"{label} must be greater than zero")
        raise CalculationError(field, f"{label} must be at least {minimum}")
    return int(number)


def require_choice(value, field: str, label: str, allowed: Iterable[str]) -> str:
    allowed = list(allowed)
    choice = getattr(value, "value", value)
    if choice not in allowed:
        raise CalculationError(field, f"{label} must be one of: {', '.join(allowed)}")
    return choice


def require_flag(value, field: str, label: str) -> bool:
    if not isinstance(value, bool):
        raise CalculationError(field, f"{label} must be true or false")
    return value


def require_date(value, field: str, label: str) -> date:
    try:
        return to_date(value)
    except (TypeError, ValueError, OverflowError):
        raise CalculationError(field, f"{label} must be a valid date") from None
