# backend/navreport/services/performance/baseline.py
"""
NAV baseline resolution.

Every NAV series is indexed to 100 at inception, but sources disagree on
whether the 100 point is stored: some start at exactly 100, others start
at the first day's post-trade NAV (e.g. 100.42). This module settles it
once so every downstream calculator uses the same starting point.

Rule:
    first NAV within BASELINE_TOLERANCE of 100 -> use the series as-is
    otherwise                                  -> prepend a synthetic
                                                  NAV-100 record dated one
                                                  day before the first record

Period convention (used by the period aggregator and headline return):
    The start NAV of any period is the NAV of the record immediately before
    the period; for the very first period that is the baseline NAV.
"""

import logging
from collections.abc import Sequence
from datetime import timedelta

from navreport.services.constants import BASELINE_NAV, BASELINE_TOLERANCE, ZERO
from navreport.services.performance.types import BaselineResolution, DailyRecord

logger = logging.getLogger(__name__)


def make_baseline_point(first: DailyRecord) -> DailyRecord:
    """Synthetic NAV-100 record dated the day before `first`."""
    return DailyRecord(
        date=first.date - timedelta(days=1),
        nav=BASELINE_NAV,
        portfolio_value=None,
        exposure_value=None,
        cash_in_out=ZERO,
        pnl=ZERO,
        drawdown_percent=ZERO,
        is_baseline=True,
    )


def resolve_baseline(records: Sequence[DailyRecord]) -> BaselineResolution:
    """
    Settle the NAV-100 starting point of a normalized series.

    Args:
        records: Normalized records, sorted ascending (no synthetic point)

    Returns:
        BaselineResolution with the (possibly extended) series

    Example:
        >>> res = resolve_baseline([DailyRecord(date(2024, 1, 2), Decimal("101.5"))])
        >>> [r.nav for r in res.records]
        [Decimal('100'), Decimal('101.5')]
    """
    if not records:
        return BaselineResolution(records=(), baseline_nav=None)

    first_nav = next((r.nav for r in records if r.has_nav), None)

    if first_nav is None:
        # Nothing to anchor; a lone baseline point would read as real data
        return BaselineResolution(records=tuple(records), baseline_nav=None)

    if abs(first_nav - BASELINE_NAV) <= BASELINE_TOLERANCE:
        return BaselineResolution(
            records=tuple(records),
            baseline_nav=first_nav,
            synthetic_inserted=False,
        )

    baseline = make_baseline_point(records[0])
    logger.debug(
        f"First NAV {first_nav} is not the baseline; "
        f"inserting NAV {BASELINE_NAV} on {baseline.date.isoformat()}"
    )
    return BaselineResolution(
        records=(baseline, *records),
        baseline_nav=BASELINE_NAV,
        synthetic_inserted=True,
    )
