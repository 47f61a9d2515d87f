"""Decimal rounding and calendar helpers shared by the calculators."""
from __future__ import annotations

import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dateutil import parser
from dateutil.relativedelta import relativedelta

CENT = Decimal("0.01")
RATIO_STEP = Decimal("0.0001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(x) -> Decimal:
    """Convert ``x`` to :class:`~decimal.Decimal` without binary float drift.

    Floats are routed through ``str`` so ``0.1`` becomes ``Decimal("0.1")``
    rather than the 55-digit binary expansion.  ``None``, booleans, NaN and
    unparseable strings raise ``ValueError``.
    """

    if isinstance(x, bool) or x is None:
        raise ValueError(f"not a number: {x!r}")
    if isinstance(x, Decimal):
        value = x
    elif isinstance(x, float):
        if math.isnan(x) or math.isinf(x):
            raise ValueError(f"not a finite number: {x!r}")
        value = Decimal(str(x))
    else:
        try:
            value = Decimal(str(x).strip())
        except InvalidOperation:
            raise ValueError(f"not a number: {x!r}") from None
    if not value.is_finite():
        raise ValueError(f"not a finite number: {x!r}")
    return value


def nz(x, default=ZERO):
    """Return ``x``, or ``default`` when it was left blank.

    Optional inputs arrive as ``None`` or empty strings from forms and
    extracted documents; this substitutes the documented default and leaves
    conversion and range checks to the validators.
    """

    if x is None or (isinstance(x, str) and not x.strip()):
        return default
    return x


def round_money(x: Decimal) -> Decimal:
    return x.quantize(CENT, rounding=ROUND_HALF_UP)


def round_ratio(x: Decimal) -> Decimal:
    return x.quantize(RATIO_STEP, rounding=ROUND_HALF_UP)


def as_percentage(ratio: Decimal) -> Decimal:
    """Express a fraction as a percentage rounded to two places (0.4 -> 40.00)."""

    return (ratio * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def format_percent(ratio: Decimal, places: int | None = 1) -> str:
    """Render a fraction as a percentage string for warning text.

    ``places=None`` trims trailing zeros (``0.31`` -> ``"31"``).
    """

    pct = ratio * HUNDRED
    if places is None:
        return format(pct.normalize(), "f")
    step = Decimal(1).scaleb(-places)
    return str(pct.quantize(step, rounding=ROUND_HALF_UP))


def format_money(x: Decimal) -> str:
    return f"${round_money(x):,.2f}"


def to_date(value) -> date:
    """Coerce ``value`` to a calendar date.

    Accepts ``date``/``datetime`` objects and ISO-like strings.  Only the
    calendar date matters to the guideline tests, so time and zone are dropped.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        return parser.isoparse(value.strip()).date()
    raise ValueError(f"not a date: {value!r}")


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``; day of month ignored."""

    return (end.year - start.year) * 12 + (end.month - start.month)


def months_before(d: date, months: int) -> date:
    return d - relativedelta(months=months)
