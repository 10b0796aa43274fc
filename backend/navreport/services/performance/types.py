# backend/navreport/services/performance/types.py
"""
Data types for the performance engine.

All financial values use Decimal. Input-side types are frozen so a
calculator can never mutate the series another calculator is reading.

Architecture:
    - DailyRecord: One normalized day of an account's NAV history
    - BaselineResolution: A series with its NAV-100 baseline settled
    - TrailingReturnSet: Point-in-time returns per lookback window + drawdowns
    - PeriodEntry / YearPnl: Monthly or quarterly P&L table rows
    - CurvePoint / BenchmarkCurves: Chart series
    - PortfolioReport: Everything derived for one account (or a consolidation)
    - SingleAccountResult / MultiAccountResult: Tagged report variants
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Literal

from navreport.services.constants import TRAILING_LABELS, ZERO


# =============================================================================
# INPUT TYPES
# =============================================================================

@dataclass(frozen=True)
class DailyRecord:
    """
    A single day of an account's normalized history.

    Attributes:
        date: Calendar date of the record (unique per account)
        nav: Net Asset Value indexed to 100 at inception; None when the
             source row carried no usable NAV
        portfolio_value: Total account value in currency
        exposure_value: Market exposure in currency
        cash_in_out: Signed net external flow (+ deposit, - withdrawal)
        pnl: Profit/loss booked on the day
        drawdown_percent: Source-supplied drawdown, normalized to <= 0
        is_baseline: True only for the synthetic NAV-100 point
    """
    date: date
    nav: Decimal | None
    portfolio_value: Decimal | None = None
    exposure_value: Decimal | None = None
    cash_in_out: Decimal = ZERO
    pnl: Decimal = ZERO
    drawdown_percent: Decimal | None = None
    is_baseline: bool = False

    @property
    def has_nav(self) -> bool:
        """True when the record carries a strictly positive NAV."""
        return self.nav is not None and self.nav > ZERO


@dataclass(frozen=True)
class BaselineResolution:
    """
    A series whose starting NAV has been settled at 100.

    Attributes:
        records: Full series, including the synthetic baseline point if one
                 was inserted
        baseline_nav: NAV the first period starts from (None for empty input)
        synthetic_inserted: True when a NAV-100 point was prepended
    """
    records: tuple[DailyRecord, ...]
    baseline_nav: Decimal | None
    synthetic_inserted: bool = False

    @property
    def real_records(self) -> tuple[DailyRecord, ...]:
        """Records that came from the source (baseline point excluded)."""
        return tuple(r for r in self.records if not r.is_baseline)

    @property
    def is_empty(self) -> bool:
        return not self.real_records


@dataclass(frozen=True)
class CashFlow:
    """
    A dated external flow into (+) or out of (-) an account.

    Attributes:
        date: Date of the flow
        amount: Signed amount in account currency
        account_id: Originating account (set on consolidated reports)
    """
    date: date
    amount: Decimal
    account_id: str | None = None


# =============================================================================
# TRAILING RETURNS
# =============================================================================

@dataclass
class TrailingReturnSet:
    """
    Point-in-time returns over fixed lookback windows.

    Attributes:
        returns: Label -> percent (truncated to 2 dp) or None when the
                 window has no qualifying base record
        mdd: Maximum drawdown over the full series (<= 0)
        current_dd: Drawdown of the latest NAV from the series peak (<= 0)
        as_of: Date of the latest NAV the returns are measured to
    """
    returns: dict[str, Decimal | None] = field(
        default_factory=lambda: {label: None for label in TRAILING_LABELS}
    )
    mdd: Decimal = ZERO
    current_dd: Decimal = ZERO
    as_of: date | None = None

    def get(self, label: str) -> Decimal | None:
        return self.returns.get(label)


@dataclass
class TrailingComparison:
    """Portfolio and benchmark trailing return for one window label."""
    label: str
    portfolio: Decimal | None
    benchmark: Decimal | None


# =============================================================================
# PERIOD P&L
# =============================================================================

@dataclass
class PeriodEntry:
    """
    One monthly or quarterly bucket of the P&L table.

    Attributes:
        label: Month name ("January") or quarter label ("Q1")
        percent_return: (end_nav / start_nav - 1) * 100, truncated; None when
                        the bucket has no usable NAV
        cash_pnl: Sum of daily pnl in the bucket
        capital_in_out: Sum of daily external flows in the bucket
        start_nav: NAV the bucket opened at (previous bucket's close)
        end_nav: Last usable NAV in the bucket
    """
    label: str
    percent_return: Decimal | None
    cash_pnl: Decimal = ZERO
    capital_in_out: Decimal = ZERO
    start_nav: Decimal | None = None
    end_nav: Decimal | None = None


@dataclass
class YearPnl:
    """
    A calendar year of P&L buckets.

    Attributes:
        year: Calendar year
        periods: Bucket label -> PeriodEntry, in calendar order
        total_percent: Bucket percents compounded; None if no bucket has one
        total_cash: Sum of bucket cash P&L
        total_capital_in_out: Sum of bucket external flows
    """
    year: int
    periods: dict[str, PeriodEntry] = field(default_factory=dict)
    total_percent: Decimal | None = None
    total_cash: Decimal = ZERO
    total_capital_in_out: Decimal = ZERO


# Year -> YearPnl, years ascending
PeriodPnl = dict[int, YearPnl]


# =============================================================================
# CURVES
# =============================================================================

@dataclass(frozen=True)
class CurvePoint:
    """A chart point: base-100 NAV for equity curves, signed percent for drawdowns."""
    date: date
    value: Decimal


@dataclass
class BenchmarkCurves:
    """Benchmark series aligned for comparison against a portfolio equity curve."""
    equity_curve: list[CurvePoint] = field(default_factory=list)
    drawdown_curve: list[CurvePoint] = field(default_factory=list)


# =============================================================================
# REPORTS
# =============================================================================

@dataclass
class DrawdownSummary:
    """Headline drawdown figures (both <= 0, truncated to 2 dp)."""
    max_drawdown: Decimal = ZERO
    current_drawdown: Decimal = ZERO


@dataclass
class PortfolioReport:
    """
    All analytics derived for one account or one consolidated investor view.

    Currency fields are quantized to 2 dp; percentages are truncated to 2 dp.
    An empty input series produces a report with zero-valued figures and
    empty curves/tables (has_sufficient_data = False), never an exception.

    Attributes:
        amount_deposited: Net external capital (sum of cash_in_out)
        current_value: Latest portfolio value
        current_exposure: Latest exposure value
        return_percent: Since-inception return from the 100 baseline;
                        absolute under one year, CAGR from one year on
        window_return: Return over the requested display window (latest
                       NAV against the last NAV before the window start);
                       None when no window start was requested
        total_profit: Sum of daily pnl
        trailing_returns: Lookback-window returns plus MDD / current DD
        drawdown: Headline MDD and current drawdown
        equity_curve: Base-100 NAV curve
        drawdown_curve: Drawdown from running peak, percent
        monthly_pnl: Year -> monthly buckets
        quarterly_pnl: Year -> quarterly buckets
        cash_flows: Non-zero external flows, date ascending
        inception_date: First real record date
        data_as_of: Last record date
        benchmark: Benchmark curves, when a benchmark series was supplied
        benchmark_trailing: Per-window portfolio vs benchmark comparison
    """
    amount_deposited: Decimal = ZERO
    current_value: Decimal = ZERO
    current_exposure: Decimal = ZERO
    return_percent: Decimal = ZERO
    window_return: Decimal | None = None
    total_profit: Decimal = ZERO
    trailing_returns: TrailingReturnSet = field(default_factory=TrailingReturnSet)
    drawdown: DrawdownSummary = field(default_factory=DrawdownSummary)
    equity_curve: list[CurvePoint] = field(default_factory=list)
    drawdown_curve: list[CurvePoint] = field(default_factory=list)
    monthly_pnl: PeriodPnl = field(default_factory=dict)
    quarterly_pnl: PeriodPnl = field(default_factory=dict)
    cash_flows: list[CashFlow] = field(default_factory=list)
    inception_date: date | None = None
    data_as_of: date | None = None
    benchmark: BenchmarkCurves | None = None
    benchmark_trailing: list[TrailingComparison] = field(default_factory=list)

    # Data quality
    has_sufficient_data: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass
class AccountAggregate:
    """
    Per-request unit consumed by the aggregation combinator.

    Attributes:
        account_id: Account identifier
        records: Normalized daily records (no synthetic baseline)
        report: Analytics derived from records
    """
    account_id: str
    records: tuple[DailyRecord, ...]
    report: PortfolioReport


@dataclass
class SingleAccountResult:
    """Report for a single account."""
    account_id: str
    report: PortfolioReport
    kind: Literal["single"] = "single"


@dataclass
class MultiAccountResult:
    """
    Consolidated report for an investor holding several accounts.

    Attributes:
        investor_id: Investor identifier
        total: Consolidated ("Total Portfolio") report
        accounts: Account id -> that account's own report, input order
    """
    investor_id: str
    total: PortfolioReport
    accounts: dict[str, PortfolioReport] = field(default_factory=dict)
    kind: Literal["multi"] = "multi"


ReportResult = SingleAccountResult | MultiAccountResult
