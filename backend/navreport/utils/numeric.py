# backend/navreport/utils/numeric.py
"""
Decimal helpers shared by the performance engine.

Rounding policy:
    - Percentages (returns, drawdowns) are TRUNCATED toward zero to 2 dp,
      so a displayed return never overstates the real one.
    - Curve points (equity, drawdown, benchmark) are rounded half-up to
      2 dp; they are chart data and are never compounded further.
    - Currency amounts are rounded half-up to 2 dp.

All helpers accept None and return None, so "metric unavailable" flows
through without special-casing at every call site.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from navreport.services.constants import (
    CURRENCY_PRECISION,
    CURVE_PRECISION,
    HUNDRED,
    PERCENT_PRECISION,
)


def parse_decimal(value: Any) -> Decimal | None:
    """
    Convert a raw numeric value to Decimal.

    Accepts Decimal, int, float and numeric strings (surrounding whitespace
    and thousands separators are tolerated). Floats go through str() so
    0.1 stays 0.1.

    Returns:
        Decimal, or None for None / empty string / non-finite values

    Raises:
        ValueError: If the value is present but not numeric
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a numeric value: {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"Not a numeric value: {value!r}") from e
    else:
        raise ValueError(f"Unsupported numeric type {type(value).__name__}: {value!r}")

    if not result.is_finite():
        return None
    return result


def truncate_percent(value: Decimal | None) -> Decimal | None:
    """Truncate a percentage toward zero to 2 dp (12.349 -> 12.34, -3.019 -> -3.01)."""
    if value is None:
        return None
    result = value.quantize(PERCENT_PRECISION, rounding=ROUND_DOWN)
    # -0.00 and 0.00 must serialize identically
    return result if result else abs(result)


def round_curve(value: Decimal | None) -> Decimal | None:
    """Round a chart point half-up to 2 dp."""
    if value is None:
        return None
    result = value.quantize(CURVE_PRECISION, rounding=ROUND_HALF_UP)
    return result if result else abs(result)


def quantize_currency(value: Decimal | None) -> Decimal | None:
    """Round a currency amount half-up to 2 dp."""
    if value is None:
        return None
    result = value.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)
    return result if result else abs(result)


def percent_change(start: Decimal, end: Decimal) -> Decimal:
    """(end - start) / start * 100, unrounded. Caller guarantees start != 0."""
    return (end - start) / start * HUNDRED
