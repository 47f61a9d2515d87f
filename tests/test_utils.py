import pathlib
import sys
from datetime import date, datetime
from decimal import Decimal

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from core.utils import (
    format_money,
    format_percent,
    months_before,
    months_between,
    nz,
    round_money,
    round_ratio,
    to_date,
    to_decimal,
)
from core.validation import (
    CalculationError,
    require_choice,
    require_date,
    require_fraction,
    require_whole_number,
)


def test_to_decimal_avoids_float_drift():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(" 1.5 ") == Decimal("1.5")
    for bad in (True, None, float("nan"), "abc"):
        with pytest.raises(ValueError):
            to_decimal(bad)


def test_rounding_is_half_up():
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(Decimal("2.335")) == Decimal("2.34")
    assert round_ratio(Decimal("0.33335")) == Decimal("0.3334")


def test_nz_only_fills_blanks():
    assert nz(None) == 0
    assert nz("  ", Decimal("5")) == Decimal("5")
    assert nz("12") == "12"


def test_formatting():
    assert format_money(Decimal("3250")) == "$3,250.00"
    assert format_percent(Decimal("0.35")) == "35.0"
    assert format_percent(Decimal("0.31"), None) == "31"
    assert format_percent(Decimal("0.60"), None) == "60"


def test_months_between_ignores_day():
    assert months_between(date(2024, 1, 31), date(2024, 2, 1)) == 1
    assert months_between(date(2020, 1, 15), date(2025, 6, 1)) == 65


def test_months_before_clamps_to_month_end():
    assert months_before(date(2024, 3, 31), 1) == date(2024, 2, 29)
    assert months_before(date(2025, 6, 1), 12) == date(2024, 6, 1)


def test_to_date_accepts_iso_and_datetime():
    assert to_date("2024-09-01") == date(2024, 9, 1)
    assert to_date("2024-09-01T10:30:00Z") == date(2024, 9, 1)
    assert to_date(datetime(2024, 9, 1, 23, 59)) == date(2024, 9, 1)


def test_validators_name_the_field():
    with pytest.raises(CalculationError, match="Target must be between 0 and 1") as exc:
        require_fraction(-0.1, "target", "Target")
    assert exc.value.as_dict() == {
        "code": "VALIDATION_ERROR",
        "field": "target",
        "message": "Target must be between 0 and 1",
    }
    with pytest.raises(CalculationError, match="Term must be a number"):
        require_whole_number("twelve", "term", "Term")
    with pytest.raises(CalculationError, match="Term must be a whole number"):
        require_whole_number(1.5, "term", "Term")
    with pytest.raises(CalculationError, match="Start must be a valid date"):
        require_date("not a date", "start", "Start")
    assert require_choice("VA", "loan_type", "Loan type", ["VA", "FHA"]) == "VA"


def test_calculation_error_is_value_error():
    assert issubclass(CalculationError, ValueError)
