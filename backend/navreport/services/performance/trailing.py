# backend/navreport/services/performance/trailing.py
"""
Trailing return and drawdown calculations.

This module contains pure functions over a baseline-resolved NAV series:
- Trailing returns over fixed calendar-day lookback windows
- Since-inception return
- Headline return (absolute under a year, CAGR from a year on)
- Maximum drawdown and current drawdown

All percentages are truncated toward zero to 2 dp.

Formulas:
    Window return   = (NAV_latest - NAV_base) / NAV_base * 100
                      base = most recent record on or before
                             (latest_date - window_days) with NAV > 0

    Headline return = (NAV_latest / 100 - 1) * 100              if days < 365
                    = ((NAV_latest / 100)^(365 / days) - 1) * 100  otherwise

    Drawdown_t      = (NAV_t - max(NAV_0..NAV_t)) / max(NAV_0..NAV_t) * 100
    MDD             = min over t of Drawdown_t
    Current DD      = (NAV_latest - max(all NAV)) / max(all NAV) * 100

A window with no qualifying base record is unavailable (None), never 0 and
never extrapolated. A return whose magnitude exceeds the plausibility
threshold is also reported as None: it almost always means a mis-keyed or
near-zero base NAV.
"""

import logging
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal

from navreport.services.constants import (
    CALENDAR_DAYS_PER_YEAR,
    HUNDRED,
    IMPLAUSIBLE_RETURN_THRESHOLD,
    ONE,
    SINCE_INCEPTION_LABEL,
    TRAILING_WINDOWS,
    ZERO,
)
from navreport.services.exceptions import DataGapError, ImplausibleValueError
from navreport.services.performance.types import DailyRecord, TrailingReturnSet
from navreport.utils.context import get_account_id
from navreport.utils.numeric import percent_change, truncate_percent

logger = logging.getLogger(__name__)


# =============================================================================
# RECORD LOOKUP
# =============================================================================

def find_latest_record(records: Sequence[DailyRecord]) -> DailyRecord | None:
    """Last record carrying a positive NAV."""
    for record in reversed(records):
        if record.has_nav:
            return record
    return None


def find_base_record(records: Sequence[DailyRecord], target_date: date) -> DailyRecord | None:
    """
    Most recent record on or before target_date with a positive NAV.

    Args:
        records: Series sorted by date ascending
        target_date: Window start (latest_date - window_days)
    """
    base = None
    for record in records:
        if record.date > target_date:
            break
        if record.has_nav:
            base = record
    return base


def _checked_return(
        metric: str,
        base: DailyRecord,
        latest: DailyRecord,
        threshold: Decimal,
) -> Decimal:
    """
    Percent change from base to latest, truncated to 2 dp.

    Raises:
        ImplausibleValueError: If |value| exceeds threshold
    """
    value = percent_change(base.nav, latest.nav)
    if abs(value) > threshold:
        raise ImplausibleValueError(
            metric,
            value,
            threshold,
            base_date=base.date,
            base_nav=base.nav,
            latest_date=latest.date,
            latest_nav=latest.nav,
            account_id=get_account_id(),
        )
    return truncate_percent(value)


# =============================================================================
# TRAILING RETURNS
# =============================================================================

def calculate_window_return(
        records: Sequence[DailyRecord],
        label: str,
        days: int,
        threshold: Decimal = IMPLAUSIBLE_RETURN_THRESHOLD,
) -> Decimal:
    """
    Return over the last `days` calendar days, truncated to 2 dp.

    Raises:
        DataGapError: If no record qualifies as the window base
        ImplausibleValueError: If the return exceeds the threshold
    """
    latest = find_latest_record(records)
    if latest is None:
        raise DataGapError(label, date.min, account_id=get_account_id())

    target_date = latest.date - timedelta(days=days)
    base = find_base_record(records, target_date)
    if base is None:
        raise DataGapError(label, target_date, account_id=get_account_id())

    return _checked_return(label, base, latest, threshold)


def calculate_since_inception(
        records: Sequence[DailyRecord],
        threshold: Decimal = IMPLAUSIBLE_RETURN_THRESHOLD,
        inception: date | None = None,
) -> Decimal:
    """
    Return from the earliest positive NAV to the latest one.

    The base is the earliest positive NAV that differs from the latest NAV,
    so a series that has not moved since inception has no return to report.

    When `inception` is given (a benchmark measured over a portfolio's
    life) the base is instead the last positive NAV on or before that date,
    or the first one after it when the series starts later.

    Raises:
        DataGapError: If no such base exists
        ImplausibleValueError: If the return exceeds the threshold
    """
    latest = find_latest_record(records)
    if latest is None:
        raise DataGapError(SINCE_INCEPTION_LABEL, date.min, account_id=get_account_id())

    if inception is not None:
        base = find_base_record(records, inception) or next(
            (r for r in records if r.has_nav),
            None,
        )
    else:
        base = next(
            (r for r in records if r.has_nav and r.nav != latest.nav),
            None,
        )
    if base is None:
        raise DataGapError(SINCE_INCEPTION_LABEL, latest.date, account_id=get_account_id())

    return _checked_return(SINCE_INCEPTION_LABEL, base, latest, threshold)


def _guarded(label: str, compute) -> Decimal | None:
    """Run one metric, degrading analytics conditions to None."""
    try:
        return compute()
    except DataGapError as e:
        logger.debug(f"{label}: {e}", extra={"metric": label, "date": e.target_date.isoformat()})
        return None
    except ImplausibleValueError as e:
        logger.warning(
            f"Dropping implausible trailing return: {e}",
            extra={
                "metric": label,
                "value": str(e.value),
                "base_date": e.base_date.isoformat(),
                "base_nav": str(e.base_nav),
                "date": e.latest_date.isoformat(),
                "latest_nav": str(e.latest_nav),
            },
        )
        return None


# =============================================================================
# HEADLINE RETURN
# =============================================================================

def calculate_headline_return(
        records: Sequence[DailyRecord],
        baseline_nav: Decimal | None,
) -> Decimal | None:
    """
    Since-baseline return: absolute under one year, annualized (CAGR) after.

    Args:
        records: Baseline-resolved series (first record is the baseline)
        baseline_nav: NAV the series starts from (normally 100)

    Returns:
        Percent truncated to 2 dp, or None without a usable NAV
    """
    latest = find_latest_record(records)
    if latest is None or baseline_nav is None or baseline_nav <= ZERO or not records:
        return None

    days = (latest.date - records[0].date).days
    ratio = latest.nav / baseline_nav

    if days < CALENDAR_DAYS_PER_YEAR:
        return truncate_percent((ratio - ONE) * HUNDRED)

    # ratio > 0 here, so a fractional Decimal power is defined
    cagr = ratio ** (Decimal(CALENDAR_DAYS_PER_YEAR) / Decimal(days)) - ONE
    return truncate_percent(cagr * HUNDRED)


# =============================================================================
# DRAWDOWN
# =============================================================================

def calculate_drawdown_series(records: Sequence[DailyRecord]) -> list[tuple[date, Decimal]]:
    """
    Unrounded drawdown from the running peak for every positive-NAV record.

    Single forward pass; the first point is always 0.
    """
    series: list[tuple[date, Decimal]] = []
    peak: Decimal | None = None

    for record in records:
        if not record.has_nav:
            continue
        if peak is None or record.nav > peak:
            peak = record.nav
        series.append((record.date, percent_change(peak, record.nav)))

    return series


def calculate_max_drawdown(records: Sequence[DailyRecord]) -> Decimal:
    """Most negative running-peak drawdown, truncated to 2 dp (<= 0)."""
    worst = min((dd for _, dd in calculate_drawdown_series(records)), default=ZERO)
    return truncate_percent(min(worst, ZERO))


def calculate_current_drawdown(records: Sequence[DailyRecord]) -> Decimal:
    """Latest NAV against the peak of the whole series, truncated (<= 0)."""
    navs = [r.nav for r in records if r.has_nav]
    if not navs:
        return ZERO
    peak = max(navs)
    return truncate_percent(min(percent_change(peak, navs[-1]), ZERO))


# =============================================================================
# CALCULATOR
# =============================================================================

class TrailingReturnCalculator:
    """
    Computes the full TrailingReturnSet for one series.

    Usage:
        result = TrailingReturnCalculator.calculate_all(resolution.records)
        one_year = result.get("1Y")
    """

    @staticmethod
    def calculate_all(
            records: Sequence[DailyRecord],
            threshold: Decimal = IMPLAUSIBLE_RETURN_THRESHOLD,
            inception: date | None = None,
    ) -> TrailingReturnSet:
        """
        Args:
            records: Baseline-resolved series sorted by date
            threshold: Plausibility threshold in percent
            inception: Anchor date for SinceInception (default: the
                       series' own first moving NAV)

        Returns:
            TrailingReturnSet; every label is None for an empty series
        """
        result = TrailingReturnSet()
        latest = find_latest_record(records)
        if latest is None:
            return result

        for label, days in TRAILING_WINDOWS.items():
            result.returns[label] = _guarded(
                label,
                lambda d=days, lb=label: calculate_window_return(records, lb, d, threshold),
            )

        result.returns[SINCE_INCEPTION_LABEL] = _guarded(
            SINCE_INCEPTION_LABEL,
            lambda: calculate_since_inception(records, threshold, inception),
        )

        result.mdd = calculate_max_drawdown(records)
        result.current_dd = calculate_current_drawdown(records)
        result.as_of = latest.date

        return result
