# backend/tests/services/performance/test_report_service.py
"""
Integration tests for PerformanceReportService.

These tests run the full pipeline (normalize -> baseline -> calculators)
on small hand-checkable series.

Test Coverage:
- resolve_window: named periods, precedence, invalid input
- account_report: headline figures, tables, curves, cash flows
- Window semantics: end is a cutoff, start is a display bound
- Zero-data contract and NAV-less series
- Idempotence
- Benchmark attachment
- investor_report: value-weighted total, summed currency figures
- load_account_report: injected record / benchmark sources
"""

from datetime import date
from decimal import Decimal

import pytest

from navreport.services.exceptions import (
    InvalidDateRangeError,
    InvalidPeriodError,
    UnknownSourceSchemaError,
    ValidationError,
)
from navreport.services.performance import (
    AccountInput,
    PerformanceReportService,
    ReportWindow,
)


# =============================================================================
# WINDOW RESOLUTION
# =============================================================================

class TestResolveWindow:
    """Clock reads Friday 2024-03-15."""

    def test_named_period(self, report_service):
        window = report_service.resolve_window(period="last_month")

        assert window == ReportWindow(date(2024, 2, 1), date(2024, 2, 29))

    def test_period_wins_over_other_filters(self, report_service):
        window = report_service.resolve_window(
            period="this_week",
            data_as_of=date(2024, 1, 31),
            start_date=date(2023, 1, 1),
        )

        assert window == ReportWindow(date(2024, 3, 11), date(2024, 3, 17))

    def test_data_as_of_wins_over_range(self, report_service):
        window = report_service.resolve_window(
            data_as_of=date(2024, 1, 31),
            start_date=date(2023, 1, 1),
            end_date=date(2024, 3, 1),
        )

        assert window == ReportWindow(None, date(2024, 1, 31))

    def test_explicit_range(self, report_service):
        window = report_service.resolve_window(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))

        assert window == ReportWindow(date(2024, 1, 1), date(2024, 1, 31))

    def test_invalid_period(self, report_service):
        with pytest.raises(InvalidPeriodError):
            report_service.resolve_window(period="fortnight")

    def test_inverted_range(self, report_service):
        with pytest.raises(InvalidDateRangeError):
            report_service.resolve_window(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))


# =============================================================================
# SINGLE ACCOUNT
# =============================================================================

class TestAccountReport:
    """Full report for the sample_rows series (first NAV 101, so a 100 baseline is inserted)."""

    def test_kind_and_account(self, report_service, sample_rows):
        result = report_service.account_report("ACC-001", sample_rows)

        assert result.kind == "single"
        assert result.account_id == "ACC-001"

    def test_headline_figures(self, report_service, sample_rows):
        report = report_service.account_report("ACC-001", sample_rows).report

        assert report.amount_deposited == Decimal("150000.00")
        assert report.current_value == Decimal("154000.00")
        assert report.current_exposure == Decimal("90000.00")
        assert report.total_profit == Decimal("4000.00")
        assert report.return_percent == Decimal("4.00")
        assert report.window_return is None
        assert report.inception_date == date(2024, 1, 2)
        assert report.data_as_of == date(2024, 2, 2)
        assert report.has_sufficient_data is True
        assert report.warnings == []

    def test_trailing_returns(self, report_service, sample_rows):
        trailing = report_service.account_report("ACC-001", sample_rows).report.trailing_returns

        # 104 / 103 - 1
        assert trailing.get("5D") == Decimal("0.97")
        assert trailing.get("1M") == Decimal("0.97")
        assert trailing.get("3M") is None
        assert trailing.get("SinceInception") == Decimal("4.00")
        assert trailing.mdd == Decimal("-3.88")
        assert trailing.current_dd == Decimal("0")

    def test_period_tables(self, report_service, sample_rows):
        report = report_service.account_report("ACC-001", sample_rows).report

        year = report.monthly_pnl[2024]
        assert year.periods["January"].percent_return == Decimal("3.00")
        assert year.periods["January"].cash_pnl == Decimal("3000.00")
        assert year.periods["February"].percent_return == Decimal("0.97")
        assert year.total_percent == Decimal("3.99")
        assert report.quarterly_pnl[2024].periods["Q1"].percent_return == Decimal("4.00")

    def test_curves_start_at_baseline(self, report_service, sample_rows):
        report = report_service.account_report("ACC-001", sample_rows).report

        assert report.equity_curve[0].date == date(2024, 1, 1)
        assert [p.value for p in report.equity_curve] == [
            Decimal("100"), Decimal("101"), Decimal("103"), Decimal("99"), Decimal("104"),
        ]
        assert [p.value for p in report.drawdown_curve] == [
            Decimal("0"), Decimal("0"), Decimal("0"), Decimal("-3.88"), Decimal("0"),
        ]

    def test_cash_flows(self, report_service, sample_rows):
        flows = report_service.account_report("ACC-001", sample_rows).report.cash_flows

        assert [(f.date, f.amount) for f in flows] == [
            (date(2024, 1, 2), Decimal("100000.00")),
            (date(2024, 2, 2), Decimal("50000.00")),
        ]

    def test_unknown_schema(self, report_service, sample_rows):
        with pytest.raises(UnknownSourceSchemaError):
            report_service.account_report("ACC-001", sample_rows, source_schema="xls")

    def test_idempotent(self, report_service, sample_rows):
        first = report_service.account_report("ACC-001", sample_rows)
        second = report_service.account_report("ACC-001", sample_rows)

        assert first == second


class TestReportWindow:
    """End bound cuts data off; start bound only limits what is displayed."""

    def test_data_as_of_cuts_off_later_records(self, report_service, sample_rows):
        report = report_service.account_report(
            "ACC-001", sample_rows, data_as_of=date(2024, 1, 31)
        ).report

        assert report.data_as_of == date(2024, 1, 3)
        assert report.current_value == Decimal("103000.00")
        assert report.amount_deposited == Decimal("100000.00")
        assert report.return_percent == Decimal("3.00")

    def test_start_date_limits_display_only(self, report_service, sample_rows):
        report = report_service.account_report(
            "ACC-001", sample_rows, start_date=date(2024, 2, 1)
        ).report

        assert [p.value for p in report.equity_curve] == [Decimal("99"), Decimal("104")]
        assert [f.date for f in report.cash_flows] == [date(2024, 2, 2)]
        assert report.window_return == Decimal("0.97")
        # Full history still drives trailing figures and tables
        assert report.trailing_returns.get("SinceInception") == Decimal("4.00")
        assert 2024 in report.monthly_pnl
        assert report.monthly_pnl[2024].periods["January"].percent_return == Decimal("3.00")

    def test_named_period(self, report_service, sample_rows):
        report = report_service.account_report("ACC-001", sample_rows, period="last_month").report

        assert report.equity_curve[0].date == date(2024, 2, 1)
        assert report.window_return == Decimal("0.97")

    def test_rebase_to_window(self, report_service, sample_rows):
        report = report_service.account_report(
            "ACC-001", sample_rows, start_date=date(2024, 2, 1), rebase_to_window=True
        ).report

        # 104 / 99 * 100 = 105.0505...
        assert [p.value for p in report.equity_curve] == [Decimal("100.00"), Decimal("105.05")]


class TestEmptyAndSparseInput:
    def test_empty_input_gives_zero_report(self, report_service):
        report = report_service.account_report("ACC-001", []).report

        assert report.amount_deposited == Decimal("0")
        assert report.current_value == Decimal("0")
        assert report.return_percent == Decimal("0")
        assert report.total_profit == Decimal("0")
        assert report.equity_curve == []
        assert report.drawdown_curve == []
        assert report.monthly_pnl == {}
        assert report.quarterly_pnl == {}
        assert report.cash_flows == []
        assert all(v is None for v in report.trailing_returns.returns.values())
        assert report.has_sufficient_data is False
        assert report.warnings

    def test_series_without_nav(self, report_service):
        rows = [
            {"date": "2024-01-02", "portfolio_value": "1000", "cash_in_out": "1000"},
            {"date": "2024-01-03", "portfolio_value": "1010", "pnl": "10"},
        ]

        report = report_service.account_report("ACC-001", rows).report

        assert report.has_sufficient_data is False
        assert report.current_value == Decimal("1010.00")
        assert report.return_percent == Decimal("0")
        assert report.equity_curve == []
        assert report.monthly_pnl[2024].periods["January"].percent_return is None
        assert any("usable NAV" in w for w in report.warnings)


class TestBenchmarkAttachment:
    def test_benchmark_aligned_to_portfolio_start(self, report_service, sample_rows):
        benchmark = [["2024-01-10", 200], ["2024-02-02", 210]]

        report = report_service.account_report("ACC-001", sample_rows, benchmark=benchmark).report

        curve = report.benchmark.equity_curve
        assert curve[0].date == date(2024, 1, 1)
        assert [p.value for p in curve] == [Decimal("100.00"), Decimal("100.00"), Decimal("105.00")]

        rows = {row.label: row for row in report.benchmark_trailing}
        assert rows["5D"].portfolio == Decimal("0.97")
        assert rows["5D"].benchmark == Decimal("5.00")
        assert rows["3M"].benchmark is None

    def test_alignment_can_be_disabled(self, report_service, sample_rows):
        benchmark = [["2024-01-10", 200], ["2024-02-02", 210]]

        report = report_service.account_report(
            "ACC-001", sample_rows, benchmark=benchmark, align_benchmark=False
        ).report

        assert report.benchmark.equity_curve[0].date == date(2024, 1, 10)

    def test_comparison_follows_portfolio_cutoff_and_inception(self, report_service, sample_rows):
        # Benchmark history starts years earlier and runs past the cutoff
        benchmark = [
            ["2020-01-01", 50],
            ["2024-01-01", 100],
            ["2024-01-25", 105],
            ["2024-02-01", 110],
            ["2024-03-10", 200],
        ]

        report = report_service.account_report(
            "ACC-001", sample_rows, data_as_of=date(2024, 2, 1), benchmark=benchmark
        ).report

        rows = {row.label: row for row in report.benchmark_trailing}
        assert report.trailing_returns.as_of == date(2024, 2, 1)
        assert rows["5D"].portfolio == Decimal("-3.88")
        assert rows["5D"].benchmark == Decimal("4.76")
        assert rows["1M"].portfolio == Decimal("-1.98")
        assert rows["1M"].benchmark == Decimal("10.00")
        assert rows["SinceInception"].portfolio == Decimal("-1.00")
        assert rows["SinceInception"].benchmark == Decimal("10.00")
        assert rows["1Y"].benchmark is None
        assert report.benchmark.equity_curve[-1].date == date(2024, 2, 1)

    def test_no_benchmark(self, report_service, sample_rows):
        report = report_service.account_report("ACC-001", sample_rows).report

        assert report.benchmark is None
        assert report.benchmark_trailing == []

    def test_standalone_curves(self, report_service):
        curves = report_service.benchmark_curves([["2024-02-01", 50], ["2024-02-02", 55]])

        assert [p.value for p in curves.equity_curve] == [Decimal("100.00"), Decimal("110.00")]


MASTER_SHEET = (
    "System Tag,Date,Portfolio Value,Cash In/Out,NAV,Prev NAV,PnL,Daily P&L %,"
    "Exposure Value,Prev Portfolio Value,Prev Exposure Value,Prev Pnl,Drawdown %\n"
    "Zerodha Total Portfolio,2024-01-02,1000000,1000000,100,,0,0,950000,,,,0\n"
    "Zerodha Total Portfolio,2024-01-03,1010000,0,101,100,10000,1,960000,,,,0\n"
    "Other Strategy,2024-01-02,50000,50000,100,,0,0,0,,,,0\n"
)


class TestMasterSheetReport:
    def test_reports_one_sub_portfolio(self, report_service):
        result = report_service.master_sheet_report(
            "ACC-001", MASTER_SHEET, system_tag="Zerodha Total Portfolio"
        )

        report = result.report
        assert result.account_id == "ACC-001"
        assert report.amount_deposited == Decimal("1000000.00")
        assert report.current_value == Decimal("1010000.00")
        assert report.current_exposure == Decimal("960000.00")
        assert report.return_percent == Decimal("1.00")
        assert report.inception_date == date(2024, 1, 2)

    def test_filters_pass_through(self, report_service):
        result = report_service.master_sheet_report(
            "ACC-001", MASTER_SHEET, system_tag="Zerodha Total Portfolio", data_as_of=date(2024, 1, 2)
        )

        assert result.report.data_as_of == date(2024, 1, 2)
        assert result.report.current_value == Decimal("1000000.00")


# =============================================================================
# MULTI ACCOUNT
# =============================================================================

INVESTOR_ACCOUNTS = [
    AccountInput("A", [
        {"date": "2024-01-02", "nav": "100", "portfolio_value": "100000", "cash_in_out": "100000"},
        {"date": "2024-01-03", "nav": "102", "portfolio_value": "102000", "pnl": "2000"},
        {"date": "2024-02-02", "nav": "104", "portfolio_value": "154000",
         "cash_in_out": "50000", "pnl": "2000"},
    ]),
    AccountInput("B", [
        {"date": "2024-01-02", "nav": "100", "portfolio_value": "300000", "cash_in_out": "300000"},
        {"date": "2024-02-02", "nav": "98", "portfolio_value": "294000", "pnl": "-6000"},
    ]),
]


class TestInvestorReport:
    """Consolidated report for two accounts of different size."""

    def test_kind_and_accounts(self, report_service):
        result = report_service.investor_report("INV-1", INVESTOR_ACCOUNTS)

        assert result.kind == "multi"
        assert result.investor_id == "INV-1"
        assert list(result.accounts) == ["A", "B"]
        assert result.accounts["A"].return_percent == Decimal("4.00")
        assert result.accounts["B"].return_percent == Decimal("-2.00")

    def test_total_return_is_value_weighted(self, report_service):
        total = report_service.investor_report("INV-1", INVESTOR_ACCOUNTS).total

        # Combined NAV 100 -> 100.5 -> 99.5; a plain average would give +1.00
        assert total.return_percent == Decimal("-0.50")
        assert total.monthly_pnl[2024].periods["January"].percent_return == Decimal("0.50")
        assert total.monthly_pnl[2024].periods["February"].percent_return == Decimal("-0.99")

    def test_currency_figures_are_summed(self, report_service):
        total = report_service.investor_report("INV-1", INVESTOR_ACCOUNTS).total

        assert total.amount_deposited == Decimal("450000.00")
        assert total.current_value == Decimal("448000.00")
        assert total.total_profit == Decimal("-2000.00")

    def test_cash_flows_tagged_by_account(self, report_service):
        flows = report_service.investor_report("INV-1", INVESTOR_ACCOUNTS).total.cash_flows

        assert [(f.date.day, f.account_id, f.amount) for f in flows] == [
            (2, "A", Decimal("100000.00")),
            (2, "B", Decimal("300000.00")),
            (2, "A", Decimal("50000.00")),
        ]

    def test_benchmark_only_on_total(self, report_service):
        result = report_service.investor_report(
            "INV-1", INVESTOR_ACCOUNTS, benchmark=[["2024-01-02", 100], ["2024-02-02", 101]]
        )

        assert result.total.benchmark is not None
        assert result.accounts["A"].benchmark is None

    def test_accounts_without_data(self, report_service):
        result = report_service.investor_report("INV-1", [AccountInput("A", [])])

        assert result.total.equity_curve == []
        assert result.total.has_sufficient_data is False


# =============================================================================
# INJECTED SOURCES
# =============================================================================

class FakeRecordSource:
    """In-memory DailyRecordSourceProtocol."""

    def __init__(self, rows):
        self.rows = rows
        self.calls = []

    def fetch_records(self, account_id, start_date=None, end_date=None):
        self.calls.append((account_id, start_date, end_date))
        return self.rows

    def source_schema(self, account_id):
        return "canonical"


class FakeBenchmarkSource:
    """In-memory BenchmarkSourceProtocol."""

    def fetch_series(self, symbol, start_date=None, end_date=None):
        return [["2024-01-02", 100], ["2024-02-02", 102]]


class TestLoadAccountReport:
    def test_loads_through_sources(self, sample_rows):
        source = FakeRecordSource(sample_rows)
        service = PerformanceReportService(
            record_source=source,
            benchmark_source=FakeBenchmarkSource(),
            clock=lambda: date(2024, 3, 15),
        )

        result = service.load_account_report(
            "ACC-001", benchmark_symbol="NIFTY50", data_as_of=date(2024, 1, 31)
        )

        assert source.calls == [("ACC-001", None, date(2024, 1, 31))]
        assert result.report.data_as_of == date(2024, 1, 3)
        assert result.report.benchmark is not None

    def test_without_record_source(self, report_service):
        with pytest.raises(ValidationError):
            report_service.load_account_report("ACC-001")
