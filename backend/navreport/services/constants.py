# backend/navreport/services/constants.py
"""
Centralized constants for the NAV reporting services.

This module provides a single source of truth for all business constants
used by the performance engine. Centralizing these values:

1. Prevents inconsistencies from duplicate definitions
2. Makes it easy to tune parameters in one place
3. Documents the meaning and units of each constant

Usage:
    from navreport.services.constants import (
        BASELINE_NAV,
        TRAILING_WINDOWS,
        IMPLAUSIBLE_RETURN_THRESHOLD,
    )
"""

from decimal import Decimal


# =============================================================================
# DECIMAL HELPERS
# =============================================================================

ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# CALENDAR CONSTANTS
# =============================================================================

# Calendar days in a year, used as the CAGR exponent base and as the
# threshold between absolute and annualized headline returns
CALENDAR_DAYS_PER_YEAR: int = 365


# =============================================================================
# NAV BASELINE
# =============================================================================

# Every NAV series is indexed to start at 100
BASELINE_NAV: Decimal = Decimal("100")

# A first NAV within this distance of 100 is treated as the baseline itself,
# otherwise a synthetic 100 point is inserted one day before the first record
BASELINE_TOLERANCE: Decimal = Decimal("0.01")


# =============================================================================
# TRAILING RETURN WINDOWS
# =============================================================================

# Label -> lookback in calendar days, in display order
TRAILING_WINDOWS: dict[str, int] = {
    "5D": 5,
    "10D": 10,
    "15D": 15,
    "1M": 30,
    "3M": 90,
    "6M": 180,
    "1Y": 365,
    "2Y": 730,
    "5Y": 1825,
}

SINCE_INCEPTION_LABEL: str = "SinceInception"

# All labels reported in a TrailingReturnSet, in display order
TRAILING_LABELS: tuple[str, ...] = (*TRAILING_WINDOWS.keys(), SINCE_INCEPTION_LABEL)


# =============================================================================
# SANITY GUARDS
# =============================================================================

# Any trailing return whose magnitude exceeds this percentage is treated as
# bad data (a near-zero base NAV) and reported as unavailable
IMPLAUSIBLE_RETURN_THRESHOLD: Decimal = Decimal("10000")


# =============================================================================
# DISPLAY PRECISION
# =============================================================================

# Percentages are truncated toward zero to 2 decimal places
PERCENT_PRECISION: Decimal = Decimal("0.01")

# Currency amounts (deposits, P&L, portfolio value) are quantized to 2 dp
CURRENCY_PRECISION: Decimal = Decimal("0.01")

# Chart points (equity, drawdown, benchmark curves) are rounded to 2 dp
CURVE_PRECISION: Decimal = Decimal("0.01")


# =============================================================================
# PERIOD LABELS
# =============================================================================

MONTH_NAMES: tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

QUARTER_LABELS: tuple[str, ...] = ("Q1", "Q2", "Q3", "Q4")


# =============================================================================
# NAMED REPORTING PERIODS
# =============================================================================

# Named periods accepted by the report request, resolved in the
# reporting time zone (see settings.reporting_timezone)
NAMED_PERIODS: tuple[str, ...] = (
    "today",
    "yesterday",
    "this_week",
    "last_week",
    "this_month",
    "last_month",
    "this_year",
)

DEFAULT_REPORTING_TIMEZONE: str = "Asia/Kolkata"
