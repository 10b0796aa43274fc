# backend/navreport/services/performance/curves.py
"""
Equity and drawdown curves for charting.

Equity curve:
    NAV rebased so the first plotted point reads 100:
        value_t = NAV_t * 100 / NAV_first

Drawdown curve:
    The source-supplied drawdown when the date carries one, otherwise
    derived from the running peak of NAV:
        value_t = (NAV_t - peak_t) / peak_t * 100

Several records on the same date (one per sub-component of a multi-leg
account) are AVERAGED for that date, not summed.

Date filtering happens after the curves are built, so peak tracking and
rebasing reflect the full history even when the displayed window is
narrower. Pass rebase_to_window=True to re-anchor the filtered equity
curve at 100 instead.

Curve values are chart data: rounded half-up to 2 dp.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from navreport.services.constants import HUNDRED, ZERO
from navreport.services.performance.types import CurvePoint, DailyRecord
from navreport.utils.numeric import percent_change, round_curve

logger = logging.getLogger(__name__)


# =============================================================================
# DATE AVERAGING
# =============================================================================

def _mean(values: list[Decimal]) -> Decimal | None:
    if not values:
        return None
    return sum(values, ZERO) / Decimal(len(values))


def average_by_date(
        records: Iterable[DailyRecord],
) -> list[tuple[date, Decimal | None, Decimal | None]]:
    """
    Collapse records sharing a date.

    Returns:
        (date, mean positive NAV or None, mean source drawdown or None),
        sorted by date
    """
    navs: dict[date, list[Decimal]] = defaultdict(list)
    drawdowns: dict[date, list[Decimal]] = defaultdict(list)
    dates: set[date] = set()

    for record in records:
        dates.add(record.date)
        if record.has_nav:
            navs[record.date].append(record.nav)
        if record.drawdown_percent is not None:
            drawdowns[record.date].append(record.drawdown_percent)

    return [(d, _mean(navs[d]), _mean(drawdowns[d])) for d in sorted(dates)]


def filter_curve(
        points: Sequence[CurvePoint],
        start_date: date | None = None,
        end_date: date | None = None,
) -> list[CurvePoint]:
    """Keep points with start_date <= date <= end_date (both inclusive)."""
    return [
        p for p in points
        if (start_date is None or p.date >= start_date)
        and (end_date is None or p.date <= end_date)
    ]


def rebase_curve(points: Sequence[CurvePoint]) -> list[CurvePoint]:
    """Re-anchor an equity curve so its first point reads 100."""
    if not points or points[0].value <= ZERO:
        return list(points)
    first = points[0].value
    return [CurvePoint(p.date, round_curve(p.value * HUNDRED / first)) for p in points]


# =============================================================================
# CURVES
# =============================================================================

def build_equity_curve(
        records: Iterable[DailyRecord],
        start_date: date | None = None,
        end_date: date | None = None,
        rebase_to_window: bool = False,
) -> list[CurvePoint]:
    """
    Base-100 NAV curve.

    Args:
        records: Baseline-resolved series (duplicates per date allowed)
        start_date: Inclusive display start
        end_date: Inclusive display end
        rebase_to_window: Re-anchor the displayed window at 100

    Returns:
        One point per date with a usable NAV
    """
    averaged = [(d, nav) for d, nav, _ in average_by_date(records) if nav is not None]
    if not averaged:
        return []

    first_nav = averaged[0][1]
    full: list[CurvePoint] = [
        CurvePoint(d, nav * HUNDRED / first_nav) for d, nav in averaged
    ]

    window = filter_curve(full, start_date, end_date)
    if rebase_to_window:
        return rebase_curve(window)
    return [CurvePoint(p.date, round_curve(p.value)) for p in window]


def build_drawdown_curve(
        records: Iterable[DailyRecord],
        start_date: date | None = None,
        end_date: date | None = None,
) -> list[CurvePoint]:
    """
    Drawdown-from-peak curve in percent (every value <= 0).

    Source drawdowns win on the dates that carry them; the running peak is
    still tracked across those dates so derived points stay consistent.
    """
    points: list[CurvePoint] = []
    peak: Decimal | None = None

    for d, nav, source_dd in average_by_date(records):
        if nav is not None and (peak is None or nav > peak):
            peak = nav

        if source_dd is not None:
            value = source_dd
        elif nav is not None and peak is not None:
            value = percent_change(peak, nav)
        else:
            continue

        points.append(CurvePoint(d, round_curve(min(value, ZERO))))

    return filter_curve(points, start_date, end_date)


class CurveBuilder:
    """
    Builds both chart curves for one series.

    Usage:
        equity, drawdown = CurveBuilder.calculate_all(resolution.records)
    """

    @staticmethod
    def calculate_all(
            records: Sequence[DailyRecord],
            start_date: date | None = None,
            end_date: date | None = None,
            rebase_to_window: bool = False,
    ) -> tuple[list[CurvePoint], list[CurvePoint]]:
        equity = build_equity_curve(records, start_date, end_date, rebase_to_window)
        drawdown = build_drawdown_curve(records, start_date, end_date)
        logger.debug(f"Built curves: {len(equity)} equity points, {len(drawdown)} drawdown points")
        return equity, drawdown
