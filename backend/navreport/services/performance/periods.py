# backend/navreport/services/performance/periods.py
"""
Monthly and quarterly P&L tables.

Buckets a baseline-resolved series by calendar month or calendar quarter
and reports, per bucket:

    percent_return = (end_nav / start_nav - 1) * 100     (truncated, 2 dp)
    cash_pnl       = sum of daily pnl
    capital_in_out = sum of daily external flows

start_nav is the previous bucket's closing NAV; the first bucket opens at
the baseline NAV. end_nav is the last positive NAV inside the bucket. A
bucket with no usable NAV reports percent_return = None and the previous
close carries forward to the next bucket.

Each year is rolled up by compounding its reported bucket percents:

    total_percent = (prod(1 + r_i / 100) - 1) * 100      (truncated, 2 dp)

Compounding uses the truncated figures shown in the table, so the yearly
total is reproducible from the displayed rows.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Literal

from navreport.services.constants import HUNDRED, MONTH_NAMES, ONE, QUARTER_LABELS, ZERO
from navreport.services.performance.types import (
    BaselineResolution,
    DailyRecord,
    PeriodEntry,
    PeriodPnl,
    YearPnl,
)
from navreport.utils.numeric import quantize_currency, truncate_percent

logger = logging.getLogger(__name__)

Frequency = Literal["monthly", "quarterly"]


# =============================================================================
# HELPERS
# =============================================================================

def _bucket_key(record: DailyRecord, frequency: Frequency) -> tuple[int, int]:
    """(year, zero-based month or quarter index)."""
    if frequency == "monthly":
        return record.date.year, record.date.month - 1
    return record.date.year, (record.date.month - 1) // 3


def _bucket_label(index: int, frequency: Frequency) -> str:
    return MONTH_NAMES[index] if frequency == "monthly" else QUARTER_LABELS[index]


def _group_buckets(
        records: Iterable[DailyRecord],
        frequency: Frequency,
) -> list[tuple[tuple[int, int], list[DailyRecord]]]:
    """Consecutive records grouped by bucket, chronological."""
    groups: list[tuple[tuple[int, int], list[DailyRecord]]] = []
    for record in records:
        key = _bucket_key(record, frequency)
        if groups and groups[-1][0] == key:
            groups[-1][1].append(record)
        else:
            groups.append((key, [record]))
    return groups


def compound_percents(percents: Iterable[Decimal | None]) -> Decimal | None:
    """
    Geometrically link period percents, skipping unavailable ones.

    Returns:
        Compounded percent truncated to 2 dp, or None if none are available

    Example:
        >>> compound_percents([Decimal("10"), Decimal("-5")])
        Decimal('4.50')
    """
    growth = ONE
    seen = False
    for pct in percents:
        if pct is None:
            continue
        growth *= ONE + pct / HUNDRED
        seen = True
    if not seen:
        return None
    return truncate_percent((growth - ONE) * HUNDRED)


# =============================================================================
# AGGREGATION
# =============================================================================

def aggregate_periods(
        resolution: BaselineResolution,
        frequency: Frequency = "monthly",
) -> PeriodPnl:
    """
    Build the P&L table for one frequency.

    Args:
        resolution: Baseline-resolved series
        frequency: "monthly" or "quarterly"

    Returns:
        Year -> YearPnl, years ascending; empty for an empty series
    """
    table: PeriodPnl = {}
    if resolution.is_empty:
        return table

    # Synthetic baseline never forms its own bucket; it only opens the first one
    previous_close = resolution.baseline_nav

    for (year, index), bucket in _group_buckets(resolution.real_records, frequency):
        navs = [r.nav for r in bucket if r.has_nav]
        end_nav = navs[-1] if navs else None

        if end_nav is not None and previous_close is not None and previous_close > ZERO:
            percent = truncate_percent((end_nav / previous_close - ONE) * HUNDRED)
        else:
            percent = None

        label = _bucket_label(index, frequency)
        entry = PeriodEntry(
            label=label,
            percent_return=percent,
            cash_pnl=quantize_currency(sum((r.pnl for r in bucket), ZERO)),
            capital_in_out=quantize_currency(sum((r.cash_in_out for r in bucket), ZERO)),
            start_nav=previous_close,
            end_nav=end_nav,
        )

        if end_nav is None:
            logger.debug(f"{year} {label}: no usable NAV; carrying close {previous_close} forward")
        else:
            previous_close = end_nav

        table.setdefault(year, YearPnl(year=year)).periods[label] = entry

    for year_pnl in table.values():
        _roll_up_year(year_pnl)

    return table


def _roll_up_year(year_pnl: YearPnl) -> None:
    entries = list(year_pnl.periods.values())
    year_pnl.total_percent = compound_percents(e.percent_return for e in entries)
    year_pnl.total_cash = quantize_currency(sum((e.cash_pnl for e in entries), ZERO))
    year_pnl.total_capital_in_out = quantize_currency(
        sum((e.capital_in_out for e in entries), ZERO)
    )


class PeriodAggregator:
    """
    Builds both P&L tables for one series.

    Usage:
        monthly, quarterly = PeriodAggregator.calculate_all(resolution)
        march = monthly[2024].periods["March"]
    """

    @staticmethod
    def calculate_all(resolution: BaselineResolution) -> tuple[PeriodPnl, PeriodPnl]:
        return (
            aggregate_periods(resolution, "monthly"),
            aggregate_periods(resolution, "quarterly"),
        )

