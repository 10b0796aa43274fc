# backend/navreport/services/performance/benchmark.py
"""
Benchmark alignment and comparison.

Turns an arbitrary external index series into curves directly comparable
to a portfolio's equity and drawdown curves, and compares trailing returns
window by window.

Accepted input shapes (mixed within one series is fine):
    [{"date": "2024-01-01", "value": 21731.4}, ...]
    [{"date": "2024-01-01", "nav": "21731.40"}, ...]
    [["2024-01-01", 21731.4], ...]

Algorithm:
    1. Parse, drop rows without a usable positive value
    2. Sort by date, keep the first occurrence of each date
    3. If align_start_to precedes the first date, insert a synthetic point
       there carrying the first real value (so it normalizes to exactly 100)
    4. Normalize to base 100 using the first point
    5. Drawdown from running peak; optionally clamp positive noise to 0

The output is always a BenchmarkCurves with two lists, both empty when the
input has no usable rows.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from navreport.services.constants import (
    HUNDRED,
    IMPLAUSIBLE_RETURN_THRESHOLD,
    TRAILING_LABELS,
    ZERO,
)
from navreport.services.performance.trailing import TrailingReturnCalculator
from navreport.services.performance.types import (
    BenchmarkCurves,
    CurvePoint,
    DailyRecord,
    TrailingComparison,
    TrailingReturnSet,
)
from navreport.utils.date_utils import parse_date
from navreport.utils.numeric import parse_decimal, percent_change, round_curve

logger = logging.getLogger(__name__)

MDD_LABEL = "MDD"
CURRENT_DD_LABEL = "CurrentDD"


# =============================================================================
# PARSING
# =============================================================================

def _split_point(point: Any) -> tuple[Any, Any]:
    """Extract (raw_date, raw_value) from a mapping or a (date, value) pair."""
    if isinstance(point, Mapping):
        raw_value = point.get("value")
        if raw_value is None:
            raw_value = point.get("nav")
        return point.get("date"), raw_value
    if isinstance(point, Sequence) and not isinstance(point, str) and len(point) >= 2:
        return point[0], point[1]
    raise ValueError(f"Unsupported benchmark point: {point!r}")


def normalize_benchmark_series(raw: Iterable[Any]) -> list[tuple[date, Decimal]]:
    """
    Parse, sort and de-duplicate a raw benchmark series.

    Rows with an unparsable date or a missing / non-positive value are
    dropped with a WARNING.

    Returns:
        (date, value) pairs sorted ascending, first occurrence per date
    """
    parsed: list[tuple[date, Decimal]] = []
    dropped = 0

    for point in raw:
        try:
            raw_date, raw_value = _split_point(point)
            value = parse_decimal(raw_value)
            point_date = parse_date(raw_date)
        except (ValueError, TypeError) as e:
            logger.warning(f"Dropping benchmark point {point!r}: {e}", extra={"metric": "benchmark"})
            dropped += 1
            continue
        if value is None or value <= ZERO:
            dropped += 1
            continue
        parsed.append((point_date, value))

    # Stable sort keeps input order among equal dates, so the first seen wins
    parsed.sort(key=lambda item: item[0])

    series: list[tuple[date, Decimal]] = []
    for point_date, value in parsed:
        if series and series[-1][0] == point_date:
            continue
        series.append((point_date, value))

    if dropped:
        logger.warning(f"Benchmark series: {dropped} unusable points dropped, {len(series)} kept")

    return series


# =============================================================================
# CURVES
# =============================================================================

def build_benchmark_curves(
        raw: Iterable[Any],
        align_start_to: date | None = None,
        clamp_positive_drawdown_to_zero: bool = False,
) -> BenchmarkCurves:
    """
    Base-100 equity curve and drawdown curve for a benchmark series.

    Args:
        raw: Raw benchmark points (see module docstring)
        align_start_to: Portfolio start date; when earlier than the
                        benchmark's first date a synthetic leading point
                        is inserted there
        clamp_positive_drawdown_to_zero: Force any positive drawdown
                                         noise to 0

    Returns:
        BenchmarkCurves (both lists empty for unusable input)
    """
    series = normalize_benchmark_series(raw)
    if not series:
        return BenchmarkCurves()

    if align_start_to is not None and align_start_to < series[0][0]:
        series.insert(0, (align_start_to, series[0][1]))

    base = series[0][1]
    equity = [CurvePoint(d, round_curve(v * HUNDRED / base)) for d, v in series]

    drawdown: list[CurvePoint] = []
    peak = base
    for d, v in series:
        peak = max(peak, v)
        dd = percent_change(peak, v)
        if clamp_positive_drawdown_to_zero and dd > ZERO:
            dd = ZERO
        drawdown.append(CurvePoint(d, round_curve(dd)))

    return BenchmarkCurves(equity_curve=equity, drawdown_curve=drawdown)


# =============================================================================
# TRAILING COMPARISON
# =============================================================================

def benchmark_as_records(series: Sequence[tuple[date, Decimal]]) -> tuple[DailyRecord, ...]:
    """Wrap a normalized benchmark series as NAV records for the trailing calculator."""
    return tuple(DailyRecord(date=d, nav=v) for d, v in series)


def benchmark_trailing_returns(
        raw: Iterable[Any],
        threshold: Decimal = IMPLAUSIBLE_RETURN_THRESHOLD,
        as_of: date | None = None,
        inception: date | None = None,
) -> TrailingReturnSet:
    """
    Trailing returns, MDD and current DD of a raw benchmark series.

    Args:
        raw: Raw benchmark points
        threshold: Plausibility threshold in percent
        as_of: Portfolio's latest NAV date; later benchmark points are
               ignored so both sides measure the same windows
        inception: Portfolio's start date; SinceInception is measured
                   from the benchmark value on or before it
    """
    series = normalize_benchmark_series(raw)
    if as_of is not None:
        series = [(d, v) for d, v in series if d <= as_of]
    records = benchmark_as_records(series)
    return TrailingReturnCalculator.calculate_all(records, threshold, inception)


def combine_trailing(
        portfolio: TrailingReturnSet,
        benchmark: TrailingReturnSet | None,
) -> list[TrailingComparison]:
    """
    Pair portfolio and benchmark figures per window.

    A benchmark cell is blanked whenever the portfolio cell is unavailable,
    so the two columns always cover the same windows. MDD and current
    drawdown rows follow the window rows.
    """
    rows: list[TrailingComparison] = []

    for label in TRAILING_LABELS:
        portfolio_value = portfolio.get(label)
        benchmark_value = benchmark.get(label) if benchmark is not None else None
        rows.append(TrailingComparison(
            label=label,
            portfolio=portfolio_value,
            benchmark=benchmark_value if portfolio_value is not None else None,
        ))

    has_portfolio = portfolio.as_of is not None
    has_benchmark = benchmark is not None and benchmark.as_of is not None and has_portfolio
    rows.append(TrailingComparison(
        label=MDD_LABEL,
        portfolio=portfolio.mdd if has_portfolio else None,
        benchmark=benchmark.mdd if has_benchmark else None,
    ))
    rows.append(TrailingComparison(
        label=CURRENT_DD_LABEL,
        portfolio=portfolio.current_dd if has_portfolio else None,
        benchmark=benchmark.current_dd if has_benchmark else None,
    ))

    return rows
