# backend/navreport/services/performance/service.py
"""
Performance Report Service orchestrator.

This is the main entry point for the performance engine. It:
1. Resolves the reporting window (named period, as-of cutoff, date range)
2. Normalizes raw rows into a DailyRecord series
3. Settles the NAV-100 baseline
4. Delegates to the specialized calculators
5. Consolidates several accounts into one investor view
6. Aligns an optional benchmark series against the portfolio

Architecture:
    PerformanceReportService
        ├── uses → normalizer (raw rows -> DailyRecord)
        ├── uses → resolve_baseline (NAV-100 start)
        ├── uses → TrailingReturnCalculator (windows, MDD, current DD)
        ├── uses → PeriodAggregator (monthly / quarterly P&L)
        ├── uses → CurveBuilder (equity + drawdown curves)
        ├── uses → AggregationCombinator (multi-account)
        ├── uses → benchmark (curves + trailing comparison)
        ├── optional → DailyRecordSourceProtocol (load rows by account id)
        └── optional → BenchmarkSourceProtocol (load an index series)

Window semantics:
    The END of the window (end_date, data_as_of, or the end of a named
    period) is a hard cutoff: records after it are ignored, as if the
    report had been produced on that day.
    The START of the window is a display bound: curves and the cash-flow
    list are restricted to it and window_return measures performance
    inside it, but trailing returns, drawdowns and the P&L tables keep
    the full history so the baseline and running peak stay correct.

Precedence: period > data_as_of > start_date / end_date.

Nothing is cached; every call computes from its own copy of the input.

Usage:
    from navreport.services.performance import PerformanceReportService

    service = PerformanceReportService()
    result = service.account_report("ACC-001", rows, source_schema="pms")
    print(result.report.trailing_returns.get("1Y"))
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, tzinfo
from decimal import Decimal
from typing import Any

from navreport.services.constants import IMPLAUSIBLE_RETURN_THRESHOLD, ZERO
from navreport.services.exceptions import InvalidDateRangeError, ValidationError
from navreport.services.performance.aggregation import AggregationCombinator
from navreport.services.performance.baseline import resolve_baseline
from navreport.services.performance.benchmark import (
    benchmark_trailing_returns,
    build_benchmark_curves,
    combine_trailing,
)
from navreport.services.performance.curves import CurveBuilder, filter_curve
from navreport.services.performance.normalizer import (
    filter_records,
    normalize_records,
    read_master_sheet_csv,
)
from navreport.services.performance.periods import PeriodAggregator
from navreport.services.performance.trailing import (
    TrailingReturnCalculator,
    calculate_headline_return,
    find_latest_record,
)
from navreport.services.performance.types import (
    AccountAggregate,
    BaselineResolution,
    BenchmarkCurves,
    CashFlow,
    DailyRecord,
    DrawdownSummary,
    MultiAccountResult,
    PortfolioReport,
    SingleAccountResult,
)
from navreport.services.protocols import BenchmarkSourceProtocol, DailyRecordSourceProtocol
from navreport.utils.context import account_scope
from navreport.utils.date_utils import resolve_named_period, today_in
from navreport.utils.numeric import percent_change, quantize_currency, truncate_percent

logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST TYPES
# =============================================================================

@dataclass(frozen=True)
class ReportWindow:
    """
    Resolved reporting window.

    Attributes:
        start_date: Inclusive display start (None = from inception)
        end_date: Inclusive data cutoff (None = all data)
    """
    start_date: date | None = None
    end_date: date | None = None


@dataclass(frozen=True)
class AccountInput:
    """Raw rows of one account in a consolidated request."""
    account_id: str
    rows: Sequence[Mapping[str, Any]]
    source_schema: str = "canonical"


# =============================================================================
# SERVICE
# =============================================================================

class PerformanceReportService:
    """
    Builds single-account and consolidated performance reports.

    Collaborators are injected; the service holds no mutable state, so one
    instance can serve concurrent requests.
    """

    def __init__(
            self,
            record_source: DailyRecordSourceProtocol | None = None,
            benchmark_source: BenchmarkSourceProtocol | None = None,
            zone: tzinfo | None = None,
            implausible_return_threshold: Decimal = IMPLAUSIBLE_RETURN_THRESHOLD,
            clock: Callable[[], date] | None = None,
    ):
        """
        Args:
            record_source: Loads raw rows by account id (optional)
            benchmark_source: Loads raw benchmark series by symbol (optional)
            zone: Reporting time zone for named periods and timestamp inputs
            implausible_return_threshold: Trailing-return sanity guard, percent
            clock: Returns "today" in the reporting zone (tests override it)
        """
        self._record_source = record_source
        self._benchmark_source = benchmark_source
        self._zone = zone
        self._threshold = implausible_return_threshold
        self._clock = clock

    # =========================================================================
    # WINDOW
    # =========================================================================

    def _today(self) -> date:
        if self._clock is not None:
            return self._clock()
        if self._zone is not None:
            return today_in(self._zone)
        return date.today()

    def resolve_window(
            self,
            period: str | None = None,
            data_as_of: date | None = None,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> ReportWindow:
        """
        Resolve request filters to a ReportWindow.

        Raises:
            InvalidPeriodError: If period is not a known name
            InvalidDateRangeError: If start_date is after end_date
        """
        if period:
            start, end = resolve_named_period(period, self._today())
            return ReportWindow(start_date=start, end_date=end)

        if data_as_of is not None:
            return ReportWindow(start_date=None, end_date=data_as_of)

        if start_date is not None and end_date is not None and start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

        return ReportWindow(start_date=start_date, end_date=end_date)

    # =========================================================================
    # SINGLE ACCOUNT
    # =========================================================================

    def build_report(
            self,
            records: Sequence[DailyRecord],
            window: ReportWindow | None = None,
            benchmark: Sequence[Any] | None = None,
            align_benchmark: bool = True,
            rebase_to_window: bool = False,
    ) -> PortfolioReport:
        """
        Derive every analytic for one normalized series.

        Args:
            records: Normalized records (sorted, unique dates, no baseline)
            window: Reporting window (defaults to the full series)
            benchmark: Raw benchmark series to compare against (optional)
            align_benchmark: Start the benchmark curve at the portfolio's
                             first curve date when the benchmark starts later
            rebase_to_window: Re-anchor the displayed equity curve at 100

        Returns:
            PortfolioReport; the zero report for an empty series
        """
        window = window or ReportWindow()
        series = filter_records(records, end_date=window.end_date)
        resolution = resolve_baseline(series)

        if resolution.is_empty:
            logger.info("No records in window; returning empty report")
            report = PortfolioReport(warnings=["No records available for the requested window"])
            if benchmark is not None:
                self._attach_benchmark(report, benchmark, window, align_benchmark)
            return report

        trailing = TrailingReturnCalculator.calculate_all(resolution.records, self._threshold)
        monthly, quarterly = PeriodAggregator.calculate_all(resolution)
        equity, drawdown = CurveBuilder.calculate_all(
            resolution.records,
            start_date=window.start_date,
            end_date=window.end_date,
            rebase_to_window=rebase_to_window,
        )

        real = resolution.real_records
        report = PortfolioReport(
            amount_deposited=quantize_currency(sum((r.cash_in_out for r in real), ZERO)),
            current_value=quantize_currency(_latest_value(real, "portfolio_value")),
            current_exposure=quantize_currency(_latest_value(real, "exposure_value")),
            return_percent=calculate_headline_return(resolution.records, resolution.baseline_nav) or ZERO,
            window_return=_window_return(resolution, window.start_date),
            total_profit=quantize_currency(sum((r.pnl for r in real), ZERO)),
            trailing_returns=trailing,
            drawdown=DrawdownSummary(max_drawdown=trailing.mdd, current_drawdown=trailing.current_dd),
            equity_curve=equity,
            drawdown_curve=drawdown,
            monthly_pnl=monthly,
            quarterly_pnl=quarterly,
            cash_flows=_cash_flows(real, window.start_date),
            inception_date=real[0].date,
            data_as_of=real[-1].date,
            has_sufficient_data=trailing.as_of is not None,
        )

        if trailing.as_of is None:
            report.warnings.append("No record carries a usable NAV; returns are unavailable")

        if benchmark is not None:
            self._attach_benchmark(
                report, benchmark, window, align_benchmark, inception=resolution.records[0].date
            )

        logger.info(
            f"Report computed: {len(real)} records, "
            f"{report.inception_date.isoformat()} to {report.data_as_of.isoformat()}"
        )
        return report

    def account_report(
            self,
            account_id: str,
            rows: Sequence[Mapping[str, Any]],
            source_schema: str = "canonical",
            period: str | None = None,
            data_as_of: date | None = None,
            start_date: date | None = None,
            end_date: date | None = None,
            benchmark: Sequence[Any] | None = None,
            align_benchmark: bool = True,
            rebase_to_window: bool = False,
    ) -> SingleAccountResult:
        """
        Normalize raw rows and build the report for one account.

        Raises:
            ValidationError: On an unknown period, schema or inverted range
        """
        window = self.resolve_window(period, data_as_of, start_date, end_date)
        with account_scope(account_id):
            records = normalize_records(rows, source_schema, account_id=account_id, zone=self._zone)
            report = self.build_report(records, window, benchmark, align_benchmark, rebase_to_window)
        return SingleAccountResult(account_id=account_id, report=report)

    def master_sheet_report(
            self,
            account_id: str,
            csv_text: str,
            system_tag: str | None = None,
            **filters: Any,
    ) -> SingleAccountResult:
        """
        Report on one sub-portfolio of a master-sheet CSV export.

        Args:
            account_id: Account the report is labelled with
            csv_text: Master-sheet CSV content (header row first)
            system_tag: Sub-portfolio to keep (default: every row)
            **filters: Same keyword filters as account_report
        """
        rows = read_master_sheet_csv(csv_text, system_tag)
        logger.info(f"Read {len(rows)} master-sheet rows for account {account_id} (tag {system_tag!r})")
        return self.account_report(account_id, rows, source_schema="managed", **filters)

    def load_account_report(
            self,
            account_id: str,
            benchmark_symbol: str | None = None,
            **filters: Any,
    ) -> SingleAccountResult:
        """
        Fetch rows through the injected record source, then report.

        Raises:
            ValidationError: If no record source was configured
        """
        if self._record_source is None:
            raise ValidationError("No record source configured", field="account_id")

        window = self.resolve_window(
            filters.get("period"),
            filters.get("data_as_of"),
            filters.get("start_date"),
            filters.get("end_date"),
        )
        rows = self._record_source.fetch_records(account_id, None, window.end_date)
        benchmark = self._load_benchmark(benchmark_symbol, window)

        return self.account_report(
            account_id,
            rows,
            source_schema=self._record_source.source_schema(account_id),
            start_date=window.start_date,
            end_date=window.end_date,
            benchmark=benchmark,
            align_benchmark=filters.get("align_benchmark", True),
            rebase_to_window=filters.get("rebase_to_window", False),
        )

    # =========================================================================
    # MULTI ACCOUNT
    # =========================================================================

    def investor_report(
            self,
            investor_id: str,
            accounts: Sequence[AccountInput],
            period: str | None = None,
            data_as_of: date | None = None,
            start_date: date | None = None,
            end_date: date | None = None,
            benchmark: Sequence[Any] | None = None,
            align_benchmark: bool = True,
            rebase_to_window: bool = False,
    ) -> MultiAccountResult:
        """
        Build each account's report plus the consolidated total.

        Percentages of the total are re-derived from the value-weighted
        combined series; currency figures are summed account reports.

        Raises:
            ValidationError: On an unknown period, schema or inverted range
        """
        window = self.resolve_window(period, data_as_of, start_date, end_date)

        aggregates: list[AccountAggregate] = []
        for account in accounts:
            with account_scope(account.account_id):
                records = normalize_records(
                    account.rows,
                    account.source_schema,
                    account_id=account.account_id,
                    zone=self._zone,
                )
                records = filter_records(records, end_date=window.end_date)
                report = self.build_report(records, window, None, align_benchmark, rebase_to_window)
            aggregates.append(AccountAggregate(account.account_id, records, report))

        with account_scope(investor_id):
            total = self._consolidate(aggregates, window, benchmark, align_benchmark, rebase_to_window)

        return MultiAccountResult(
            investor_id=investor_id,
            total=total,
            accounts={a.account_id: a.report for a in aggregates},
        )

    def _consolidate(
            self,
            aggregates: Sequence[AccountAggregate],
            window: ReportWindow,
            benchmark: Sequence[Any] | None,
            align_benchmark: bool,
            rebase_to_window: bool,
    ) -> PortfolioReport:
        combined, totals, flows = AggregationCombinator.calculate_all(aggregates)

        total = self.build_report(combined.records, window, benchmark, align_benchmark, rebase_to_window)
        if not combined.records:
            return total

        total.amount_deposited = totals.amount_deposited
        total.current_value = totals.current_value
        total.current_exposure = totals.current_exposure
        total.total_profit = totals.total_profit
        total.cash_flows = [f for f in flows if window.start_date is None or f.date >= window.start_date]
        total.warnings.extend(combined.warnings)

        logger.info(
            f"Consolidated {len(aggregates)} accounts ({combined.method}), "
            f"{len(combined.records)} combined dates"
        )
        return total

    # =========================================================================
    # BENCHMARK
    # =========================================================================

    def benchmark_curves(
            self,
            raw: Sequence[Any],
            align_start_to: date | None = None,
            clamp_positive_drawdown_to_zero: bool = False,
    ) -> BenchmarkCurves:
        """Standalone benchmark alignment (no portfolio involved)."""
        return build_benchmark_curves(raw, align_start_to, clamp_positive_drawdown_to_zero)

    def _attach_benchmark(
            self,
            report: PortfolioReport,
            benchmark: Sequence[Any],
            window: ReportWindow,
            align: bool,
            inception: date | None = None,
    ) -> None:
        """
        Attach benchmark curves and the per-window comparison.

        Benchmark trailing figures are cut at the portfolio's latest NAV
        date and SinceInception is anchored at the portfolio's start, so
        each comparison row covers the same period on both sides.
        """
        align_to = report.equity_curve[0].date if align and report.equity_curve else None
        curves = build_benchmark_curves(benchmark, align_start_to=align_to)

        report.benchmark = BenchmarkCurves(
            equity_curve=filter_curve(curves.equity_curve, window.start_date, window.end_date),
            drawdown_curve=filter_curve(curves.drawdown_curve, window.start_date, window.end_date),
        )
        report.benchmark_trailing = combine_trailing(
            report.trailing_returns,
            benchmark_trailing_returns(
                benchmark,
                self._threshold,
                as_of=report.trailing_returns.as_of or window.end_date,
                inception=inception,
            ),
        )

    def _load_benchmark(self, symbol: str | None, window: ReportWindow) -> Sequence[Any] | None:
        if symbol is None or self._benchmark_source is None:
            return None
        return self._benchmark_source.fetch_series(symbol, None, window.end_date)


# =============================================================================
# HELPERS
# =============================================================================

def _latest_value(records: Sequence[DailyRecord], attribute: str) -> Decimal:
    """Last non-null value of `attribute`, or 0."""
    for record in reversed(records):
        value = getattr(record, attribute)
        if value is not None:
            return value
    return ZERO


def _cash_flows(records: Sequence[DailyRecord], start_date: date | None) -> list[CashFlow]:
    """Non-zero external flows inside the display window, date ascending."""
    return [
        CashFlow(date=r.date, amount=quantize_currency(r.cash_in_out))
        for r in records
        if r.cash_in_out != ZERO and (start_date is None or r.date >= start_date)
    ]


def _window_return(resolution: BaselineResolution, start_date: date | None) -> Decimal | None:
    """Latest NAV against the last positive NAV strictly before start_date."""
    if start_date is None:
        return None

    latest = find_latest_record(resolution.records)
    base = None
    for record in resolution.records:
        if record.date >= start_date:
            break
        if record.has_nav:
            base = record

    if latest is None or base is None or latest.date < start_date:
        return None
    return truncate_percent(percent_change(base.nav, latest.nav))
