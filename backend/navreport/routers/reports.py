# backend/navreport/routers/reports.py
"""
Performance report endpoints.

Provides NAV-based analytics for already-fetched daily records:
- POST /reports/accounts/{account_id} - Report for a single account
- POST /reports/accounts/{account_id}/master-sheet - Same, from a master-sheet CSV export
- POST /reports/investors/{investor_id} - Consolidated report across accounts
- POST /benchmarks/curves - Benchmark equity/drawdown curves on their own

Optional body parameters (report endpoints):
- period: Named period (this_month, last_week, ...), resolved in the
  reporting time zone
- dataAsOf: Ignore records after this date
- startDate / endDate: Display window start / data cutoff
- benchmark: Benchmark series to align and compare against

Note: the engine never fetches records itself. Callers post the rows they
loaded; the record normalizer interprets them according to sourceSchema.
"""

from decimal import ROUND_HALF_UP, Decimal

from fastapi import APIRouter, Depends

from navreport.dependencies import get_report_service
from navreport.schemas.reports import (
    AccountReportRequest,
    BenchmarkCurvesRequest,
    BenchmarkCurvesResponse,
    CashFlowResponse,
    CurvePointResponse,
    DrawdownResponse,
    InvestorReportRequest,
    MasterSheetReportRequest,
    MultiAccountReportResponse,
    PeriodEntryResponse,
    PortfolioReportResponse,
    SingleAccountReportResponse,
    TrailingComparisonResponse,
    TrailingReturnsResponse,
    YearPnlResponse,
)
from navreport.services.performance import (
    AccountInput,
    BenchmarkCurves,
    CashFlow,
    CurvePoint,
    PerformanceReportService,
    PeriodPnl,
    PortfolioReport,
    TrailingReturnSet,
)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)

benchmark_router = APIRouter(
    prefix="/benchmarks",
    tags=["Benchmarks"],
)

_TWO_PLACES = Decimal("0.01")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _decimal_to_str(value: Decimal | None) -> str | None:
    """Fixed 2-decimal string for display ("12.5" -> "12.50"), None passes through."""
    if value is None:
        return None
    if isinstance(value, int):
        value = Decimal(value)
    return str(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def _map_curve(points: list[CurvePoint]) -> list[CurvePointResponse]:
    return [CurvePointResponse(date=p.date, value=_decimal_to_str(p.value)) for p in points]


def _map_cash_flows(flows: list[CashFlow]) -> list[CashFlowResponse]:
    return [
        CashFlowResponse(date=f.date, amount=_decimal_to_str(f.amount), account_id=f.account_id)
        for f in flows
    ]


def _map_period_pnl(table: PeriodPnl) -> dict[str, YearPnlResponse]:
    return {
        str(year): YearPnlResponse(
            year=year,
            periods={
                label: PeriodEntryResponse(
                    label=entry.label,
                    percent_return=_decimal_to_str(entry.percent_return),
                    cash_pnl=_decimal_to_str(entry.cash_pnl),
                    capital_in_out=_decimal_to_str(entry.capital_in_out),
                )
                for label, entry in table[year].periods.items()
            },
            total_percent=_decimal_to_str(table[year].total_percent),
            total_cash=_decimal_to_str(table[year].total_cash),
            total_capital_in_out=_decimal_to_str(table[year].total_capital_in_out),
        )
        for year in sorted(table)
    }


def _map_trailing(trailing: TrailingReturnSet) -> TrailingReturnsResponse:
    return TrailingReturnsResponse(
        returns={label: _decimal_to_str(value) for label, value in trailing.returns.items()},
        mdd=_decimal_to_str(trailing.mdd),
        current_dd=_decimal_to_str(trailing.current_dd),
        as_of=trailing.as_of,
    )


def _map_benchmark(curves: BenchmarkCurves | None) -> BenchmarkCurvesResponse | None:
    if curves is None:
        return None
    return BenchmarkCurvesResponse(
        equity_curve=_map_curve(curves.equity_curve),
        drawdown_curve=_map_curve(curves.drawdown_curve),
    )


def _map_report(report: PortfolioReport) -> PortfolioReportResponse:
    return PortfolioReportResponse(
        amount_deposited=_decimal_to_str(report.amount_deposited),
        current_value=_decimal_to_str(report.current_value),
        current_exposure=_decimal_to_str(report.current_exposure),
        return_percent=_decimal_to_str(report.return_percent),
        window_return=_decimal_to_str(report.window_return),
        total_profit=_decimal_to_str(report.total_profit),
        trailing_returns=_map_trailing(report.trailing_returns),
        drawdown=DrawdownResponse(
            max_drawdown=_decimal_to_str(report.drawdown.max_drawdown),
            current_drawdown=_decimal_to_str(report.drawdown.current_drawdown),
        ),
        equity_curve=_map_curve(report.equity_curve),
        drawdown_curve=_map_curve(report.drawdown_curve),
        monthly_pnl=_map_period_pnl(report.monthly_pnl),
        quarterly_pnl=_map_period_pnl(report.quarterly_pnl),
        cash_flows=_map_cash_flows(report.cash_flows),
        inception_date=report.inception_date,
        data_as_of=report.data_as_of,
        benchmark=_map_benchmark(report.benchmark),
        benchmark_trailing=[
            TrailingComparisonResponse(
                label=row.label,
                portfolio=_decimal_to_str(row.portfolio),
                benchmark=_decimal_to_str(row.benchmark),
            )
            for row in report.benchmark_trailing
        ],
        has_sufficient_data=report.has_sufficient_data,
        warnings=report.warnings,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/accounts/{account_id}",
    response_model=SingleAccountReportResponse,
    summary="Performance report for one account",
)
def create_account_report(
        account_id: str,
        body: AccountReportRequest,
        service: PerformanceReportService = Depends(get_report_service),
) -> SingleAccountReportResponse:
    """
    Compute trailing returns, drawdowns, P&L tables and curves for one account.

    An empty `records` list yields a zero-valued report, not an error.
    """
    result = service.account_report(
        account_id,
        body.records,
        source_schema=body.source_schema,
        period=body.period,
        data_as_of=body.data_as_of,
        start_date=body.start_date,
        end_date=body.end_date,
        benchmark=body.benchmark,
        align_benchmark=body.align_benchmark,
        rebase_to_window=body.rebase_to_window,
    )
    return SingleAccountReportResponse(
        account_id=result.account_id,
        report=_map_report(result.report),
    )


@router.post(
    "/accounts/{account_id}/master-sheet",
    response_model=SingleAccountReportResponse,
    summary="Performance report for one account from a master-sheet CSV",
)
def create_master_sheet_report(
        account_id: str,
        body: MasterSheetReportRequest,
        service: PerformanceReportService = Depends(get_report_service),
) -> SingleAccountReportResponse:
    """Read the CSV rows of one sub-portfolio and report on them (managed layout)."""
    result = service.master_sheet_report(
        account_id,
        body.csv,
        system_tag=body.system_tag,
        period=body.period,
        data_as_of=body.data_as_of,
        start_date=body.start_date,
        end_date=body.end_date,
        benchmark=body.benchmark,
        align_benchmark=body.align_benchmark,
        rebase_to_window=body.rebase_to_window,
    )
    return SingleAccountReportResponse(
        account_id=result.account_id,
        report=_map_report(result.report),
    )


@router.post(
    "/investors/{investor_id}",
    response_model=MultiAccountReportResponse,
    summary="Consolidated report across an investor's accounts",
)
def create_investor_report(
        investor_id: str,
        body: InvestorReportRequest,
        service: PerformanceReportService = Depends(get_report_service),
) -> MultiAccountReportResponse:
    """
    Compute every account's report plus the consolidated total.

    Currency figures of the total are summed; its percentages come from a
    value-weighted combined NAV series.
    """
    result = service.investor_report(
        investor_id,
        [AccountInput(a.account_id, a.records, a.source_schema) for a in body.accounts],
        period=body.period,
        data_as_of=body.data_as_of,
        start_date=body.start_date,
        end_date=body.end_date,
        benchmark=body.benchmark,
        align_benchmark=body.align_benchmark,
        rebase_to_window=body.rebase_to_window,
    )
    return MultiAccountReportResponse(
        investor_id=result.investor_id,
        total=_map_report(result.total),
        accounts={account_id: _map_report(r) for account_id, r in result.accounts.items()},
    )


@benchmark_router.post(
    "/curves",
    response_model=BenchmarkCurvesResponse,
    summary="Base-100 equity and drawdown curves for a benchmark series",
)
def create_benchmark_curves(
        body: BenchmarkCurvesRequest,
        service: PerformanceReportService = Depends(get_report_service),
) -> BenchmarkCurvesResponse:
    curves = service.benchmark_curves(
        body.series,
        align_start_to=body.align_start_to,
        clamp_positive_drawdown_to_zero=body.clamp_positive_drawdown_to_zero,
    )
    return _map_benchmark(curves)
