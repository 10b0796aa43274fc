# backend/navreport/services/performance/aggregation.py
"""
Multi-account consolidation.

Merges the per-account results of an investor into one "Total Portfolio"
view. Two kinds of figures are combined differently:

    Currency figures (deposits, current value, exposure, profit, cash
    flows, period cash P&L): plain sums across accounts.

    Percentages (returns, drawdowns, period returns): never averaged.
    They are re-derived from a synthesized combined series whose NAV is
    chain-linked from the summed portfolio values with the Daily Linking
    Method, so each account weighs in proportion to its capital:

        V_t   = sum of account portfolio values on t (last known value
                carried forward for accounts that do not report on t)
        CF_t  = sum of account external flows on t
        NAV_t = NAV_{t-1} * (V_t - CF_t) / V_{t-1}

    The first combined day has no previous value; its growth is taken from
    the day's P&L against the capital it was earned on:

        NAV_0 = 100 * V_0 / (V_0 - pnl_0)

When an account supplies no portfolio values at all the value-weighted
series cannot be built; the combined NAV falls back to the per-date mean
of account NAVs and a warning is attached to the consolidated report.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Literal

from navreport.services.constants import BASELINE_NAV, ZERO
from navreport.services.performance.curves import average_by_date
from navreport.services.performance.types import AccountAggregate, CashFlow, DailyRecord
from navreport.utils.numeric import quantize_currency

logger = logging.getLogger(__name__)

CombinationMethod = Literal["value_weighted", "nav_average"]


@dataclass
class CombinedSeries:
    """
    Synthesized daily series for a group of accounts.

    Attributes:
        records: One DailyRecord per date, ascending
        method: How the combined NAV was derived
        warnings: Data-quality notes for the consolidated report
    """
    records: tuple[DailyRecord, ...]
    method: CombinationMethod
    warnings: list[str] = field(default_factory=list)


@dataclass
class CurrencyTotals:
    """Summed currency figures of a group of accounts."""
    amount_deposited: Decimal = ZERO
    current_value: Decimal = ZERO
    current_exposure: Decimal = ZERO
    total_profit: Decimal = ZERO


# =============================================================================
# SERIES SYNTHESIS
# =============================================================================

def _has_portfolio_values(records: Sequence[DailyRecord]) -> bool:
    return any(r.portfolio_value is not None for r in records)


def _sum_by_date(aggregates: Sequence[AccountAggregate]) -> dict[date, tuple[Decimal, Decimal]]:
    """Date -> (summed cash_in_out, summed pnl) across accounts."""
    totals: dict[date, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    for aggregate in aggregates:
        for record in aggregate.records:
            totals[record.date][0] += record.cash_in_out
            totals[record.date][1] += record.pnl
    return {d: (cash, pnl) for d, (cash, pnl) in totals.items()}


def _forward_filled(
        aggregates: Sequence[AccountAggregate],
        dates: Sequence[date],
        attribute: str,
) -> dict[date, Decimal | None]:
    """
    Date -> sum of each account's last known `attribute` on or before the date.

    Accounts contribute nothing before their first known value. None when
    no account has a value yet.
    """
    last_known: dict[str, Decimal] = {}
    by_account = {
        a.account_id: {r.date: getattr(r, attribute) for r in a.records}
        for a in aggregates
    }

    result: dict[date, Decimal | None] = {}
    for d in dates:
        for account_id, values in by_account.items():
            value = values.get(d)
            if value is not None:
                last_known[account_id] = value
        result[d] = sum(last_known.values(), ZERO) if last_known else None
    return result


def _value_weighted_series(aggregates: Sequence[AccountAggregate]) -> tuple[DailyRecord, ...]:
    flows = _sum_by_date(aggregates)
    dates = sorted(flows)
    values = _forward_filled(aggregates, dates, "portfolio_value")
    exposures = _forward_filled(aggregates, dates, "exposure_value")

    records: list[DailyRecord] = []
    nav = BASELINE_NAV
    previous_value: Decimal | None = None

    for d in dates:
        value = values[d]
        cash, pnl = flows[d]

        if value is not None:
            if previous_value is not None and previous_value > ZERO:
                nav = nav * (value - cash) / previous_value
            elif value - pnl > ZERO:
                # No capital base yet: grow by the day's P&L on opening capital
                nav = nav * value / (value - pnl)
            previous_value = value

        records.append(DailyRecord(
            date=d,
            nav=nav if value is not None else None,
            portfolio_value=value,
            exposure_value=exposures[d],
            cash_in_out=cash,
            pnl=pnl,
        ))

    return tuple(records)


def _nav_average_series(aggregates: Sequence[AccountAggregate]) -> tuple[DailyRecord, ...]:
    flows = _sum_by_date(aggregates)
    dates = sorted(flows)
    values = _forward_filled(aggregates, dates, "portfolio_value")
    exposures = _forward_filled(aggregates, dates, "exposure_value")
    navs = {d: nav for d, nav, _ in average_by_date(r for a in aggregates for r in a.records)}

    return tuple(
        DailyRecord(
            date=d,
            nav=navs.get(d),
            portfolio_value=values[d],
            exposure_value=exposures[d],
            cash_in_out=flows[d][0],
            pnl=flows[d][1],
        )
        for d in dates
    )


def combine_series(aggregates: Sequence[AccountAggregate]) -> CombinedSeries:
    """
    Synthesize the consolidated daily series.

    Args:
        aggregates: Per-account normalized records (no synthetic baseline)

    Returns:
        CombinedSeries; empty records when no account has data
    """
    populated = [a for a in aggregates if a.records]
    if not populated:
        return CombinedSeries(records=(), method="value_weighted")

    missing = [a.account_id for a in populated if not _has_portfolio_values(a.records)]
    if not missing:
        return CombinedSeries(records=_value_weighted_series(populated), method="value_weighted")

    warning = (
        f"Accounts without portfolio values ({', '.join(missing)}); "
        "consolidated returns use the average of account NAVs"
    )
    logger.warning(warning, extra={"metric": "combined_nav"})
    return CombinedSeries(
        records=_nav_average_series(populated),
        method="nav_average",
        warnings=[warning],
    )


# =============================================================================
# CURRENCY TOTALS
# =============================================================================

def sum_currency(aggregates: Sequence[AccountAggregate]) -> CurrencyTotals:
    """Sum each account's reported currency figures."""
    totals = CurrencyTotals()
    for aggregate in aggregates:
        report = aggregate.report
        totals.amount_deposited += report.amount_deposited
        totals.current_value += report.current_value
        totals.current_exposure += report.current_exposure
        totals.total_profit += report.total_profit

    return CurrencyTotals(
        amount_deposited=quantize_currency(totals.amount_deposited),
        current_value=quantize_currency(totals.current_value),
        current_exposure=quantize_currency(totals.current_exposure),
        total_profit=quantize_currency(totals.total_profit),
    )


def merge_cash_flows(aggregates: Sequence[AccountAggregate]) -> list[CashFlow]:
    """All accounts' cash flows tagged with their account, date ascending."""
    flows = [
        CashFlow(date=flow.date, amount=flow.amount, account_id=aggregate.account_id)
        for aggregate in aggregates
        for flow in aggregate.report.cash_flows
    ]
    flows.sort(key=lambda f: f.date)
    return flows


class AggregationCombinator:
    """
    Combines per-account aggregates into consolidated inputs.

    Usage:
        combined, totals, flows = AggregationCombinator.calculate_all(aggregates)
    """

    @staticmethod
    def calculate_all(
            aggregates: Sequence[AccountAggregate],
    ) -> tuple[CombinedSeries, CurrencyTotals, list[CashFlow]]:
        return combine_series(aggregates), sum_currency(aggregates), merge_cash_flows(aggregates)
