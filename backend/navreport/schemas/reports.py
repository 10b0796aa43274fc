# backend/navreport/schemas/reports.py
"""
Pydantic schemas for the report API.

These schemas define the request/response formats for:
- Single-account reports
- Consolidated investor reports
- Standalone benchmark curves

Design decisions:
- JSON keys are camelCase (amountDeposited, trailingReturns, ...);
  requests accept either camelCase or snake_case keys
- All numeric values are serialized as fixed 2-decimal STRINGS ("12.50")
- Percentages are in percent units ("12.50" = 12.5%)
- Null is returned when a percentage cannot be calculated
- Dates are YYYY-MM-DD
- Report responses carry an explicit `kind` tag ("single" / "multi")
- Raw records are passed through untyped; the record normalizer is the
  single parsing boundary for their contents
"""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model with camelCase aliases that also accepts field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# REQUESTS
# =============================================================================

class ReportFilters(CamelModel):
    """
    Window filters shared by report requests.

    Precedence: period > dataAsOf > startDate / endDate.
    """

    period: str | None = Field(
        None,
        description="Named period: today, yesterday, this_week, last_week, "
                    "this_month, last_month, this_year"
    )
    data_as_of: date | None = Field(None, description="Ignore records after this date")
    start_date: date | None = Field(None, description="Inclusive display window start")
    end_date: date | None = Field(None, description="Inclusive data cutoff")
    benchmark: list[Any] | None = Field(
        None,
        description="Benchmark series: [{date, value|nav}] or [[date, value]]"
    )
    align_benchmark: bool = Field(
        True,
        description="Start the benchmark curve at the portfolio's first curve date"
    )
    rebase_to_window: bool = Field(
        False,
        description="Re-anchor the displayed equity curve at 100"
    )


class AccountReportRequest(ReportFilters):
    """Raw records of one account."""

    source_schema: str = Field(
        "canonical",
        description="Record layout: managed, pms or canonical"
    )
    records: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Raw daily rows in the given layout"
    )


class MasterSheetReportRequest(ReportFilters):
    """Master-sheet CSV export of one account."""

    csv: str = Field(..., description="CSV content, header row first, positional columns")
    system_tag: str | None = Field(
        None,
        description="Keep only rows of this sub-portfolio tag"
    )


class AccountRecords(CamelModel):
    """One account inside a consolidated request."""

    account_id: str = Field(..., min_length=1)
    source_schema: str = "canonical"
    records: list[dict[str, Any]] = Field(default_factory=list)


class InvestorReportRequest(ReportFilters):
    """Raw records of every account an investor holds."""

    accounts: list[AccountRecords] = Field(..., min_length=1)

    @model_validator(mode="after")
    def unique_account_ids(self) -> "InvestorReportRequest":
        ids = [a.account_id for a in self.accounts]
        if len(ids) != len(set(ids)):
            raise ValueError("accountId values must be unique")
        return self


class BenchmarkCurvesRequest(CamelModel):
    """Standalone benchmark alignment."""

    series: list[Any] = Field(default_factory=list)
    align_start_to: date | None = None
    clamp_positive_drawdown_to_zero: bool = False


# =============================================================================
# RESPONSE BUILDING BLOCKS
# =============================================================================

class CurvePointResponse(CamelModel):
    date: date
    value: str


class CashFlowResponse(CamelModel):
    date: date
    amount: str
    account_id: str | None = None


class PeriodEntryResponse(CamelModel):
    """One month or quarter of the P&L table."""

    label: str
    percent_return: str | None = Field(None, description="Null when the bucket has no NAV")
    cash_pnl: str
    capital_in_out: str


class YearPnlResponse(CamelModel):
    """One calendar year of the P&L table."""

    year: int
    periods: dict[str, PeriodEntryResponse] = Field(
        default_factory=dict,
        description="Month name or quarter label -> bucket, calendar order"
    )
    total_percent: str | None = Field(None, description="Compounded bucket returns")
    total_cash: str
    total_capital_in_out: str


class TrailingReturnsResponse(CamelModel):
    """Lookback-window returns plus drawdowns."""

    returns: dict[str, str | None] = Field(
        ...,
        description="5D, 10D, 15D, 1M, 3M, 6M, 1Y, 2Y, 5Y, SinceInception"
    )
    mdd: str
    current_dd: str
    as_of: date | None = None


class DrawdownResponse(CamelModel):
    max_drawdown: str
    current_drawdown: str


class TrailingComparisonResponse(CamelModel):
    label: str
    portfolio: str | None = None
    benchmark: str | None = None


class BenchmarkCurvesResponse(CamelModel):
    """Benchmark curves, both empty for an unusable series."""

    equity_curve: list[CurvePointResponse] = Field(default_factory=list)
    drawdown_curve: list[CurvePointResponse] = Field(default_factory=list)


# =============================================================================
# REPORT RESPONSES
# =============================================================================

class PortfolioReportResponse(CamelModel):
    """Analytics for one account or one consolidated view."""

    amount_deposited: str
    current_value: str
    current_exposure: str
    return_percent: str
    window_return: str | None = None
    total_profit: str
    trailing_returns: TrailingReturnsResponse
    drawdown: DrawdownResponse
    equity_curve: list[CurvePointResponse]
    drawdown_curve: list[CurvePointResponse]
    monthly_pnl: dict[str, YearPnlResponse]
    quarterly_pnl: dict[str, YearPnlResponse]
    cash_flows: list[CashFlowResponse]
    inception_date: date | None = None
    data_as_of: date | None = None
    benchmark: BenchmarkCurvesResponse | None = None
    benchmark_trailing: list[TrailingComparisonResponse] = Field(default_factory=list)

    # Data quality
    has_sufficient_data: bool = Field(
        False,
        description="False when the window holds no usable NAV"
    )
    warnings: list[str] = Field(default_factory=list)


class SingleAccountReportResponse(CamelModel):
    kind: Literal["single"] = "single"
    account_id: str
    report: PortfolioReportResponse


class MultiAccountReportResponse(CamelModel):
    kind: Literal["multi"] = "multi"
    investor_id: str
    total: PortfolioReportResponse
    accounts: dict[str, PortfolioReportResponse]
