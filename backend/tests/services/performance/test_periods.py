# backend/tests/services/performance/test_periods.py
"""
Unit tests for the monthly and quarterly P&L tables.

Test Coverage:
- First bucket opens at the baseline, later buckets at the previous close
- Buckets without NAV: percent None, close carried forward
- Yearly totals compound (never sum) the bucket percents
- Cash P&L and capital flows per bucket and per year
- Quarter bucketing and multi-year ordering
"""

from datetime import date
from decimal import Decimal

from navreport.services.performance.baseline import resolve_baseline
from navreport.services.performance.periods import (
    PeriodAggregator,
    aggregate_periods,
    compound_percents,
)
from navreport.services.performance.types import DailyRecord


def _record(d: date, nav, pnl="0", cash="0") -> DailyRecord:
    return DailyRecord(
        date=d,
        nav=Decimal(nav) if nav is not None else None,
        pnl=Decimal(pnl),
        cash_in_out=Decimal(cash),
    )


# =============================================================================
# COMPOUNDING
# =============================================================================

class TestCompoundPercents:
    def test_compounds_not_sums(self):
        # 1.10 * 0.95 = 1.045
        assert compound_percents([Decimal("10"), Decimal("-5")]) == Decimal("4.50")

    def test_skips_unavailable(self):
        assert compound_percents([Decimal("10"), None, Decimal("10")]) == Decimal("21.00")

    def test_nothing_available(self):
        assert compound_percents([None, None]) is None
        assert compound_percents([]) is None


# =============================================================================
# MONTHLY TABLE
# =============================================================================

class TestMonthlyTable:
    """Tests for aggregate_periods(..., "monthly")."""

    def test_first_month_opens_at_synthetic_baseline(self):
        records = [
            _record(date(2024, 1, 15), "101.5"),
            _record(date(2024, 1, 31), "104.2"),
            _record(date(2024, 2, 29), "99.0"),
        ]

        table = aggregate_periods(resolve_baseline(records), "monthly")

        january = table[2024].periods["January"]
        # (104.2 / 100 - 1) * 100, not measured from the first real NAV 101.5
        assert january.percent_return == Decimal("4.20")
        assert january.start_nav == Decimal("100")
        assert january.end_nav == Decimal("104.2")

    def test_later_months_open_at_previous_close(self):
        records = [
            _record(date(2024, 1, 15), "101.5"),
            _record(date(2024, 1, 31), "104.2"),
            _record(date(2024, 2, 29), "99.0"),
        ]

        table = aggregate_periods(resolve_baseline(records), "monthly")

        february = table[2024].periods["February"]
        # (99 / 104.2 - 1) * 100 = -4.9904...
        assert february.percent_return == Decimal("-4.99")
        assert february.start_nav == Decimal("104.2")

    def test_year_total_compounds(self):
        records = [
            _record(date(2024, 1, 15), "101.5"),
            _record(date(2024, 1, 31), "104.2"),
            _record(date(2024, 2, 29), "99.0"),
        ]

        table = aggregate_periods(resolve_baseline(records), "monthly")

        # 1.042 * 0.9501 = 0.9900042 -> -0.99; the plain sum would be -0.79
        assert table[2024].total_percent == Decimal("-0.99")

    def test_month_without_nav_carries_close_forward(self):
        records = [
            _record(date(2024, 1, 1), "100"),
            _record(date(2024, 1, 31), "110"),
            _record(date(2024, 2, 15), None, pnl="500"),
            _record(date(2024, 3, 31), "121"),
        ]

        table = aggregate_periods(resolve_baseline(records), "monthly")
        months = table[2024].periods

        assert months["January"].percent_return == Decimal("10.00")
        assert months["February"].percent_return is None
        assert months["February"].cash_pnl == Decimal("500.00")
        # March measured from January's close
        assert months["March"].percent_return == Decimal("10.00")
        assert table[2024].total_percent == Decimal("21.00")

    def test_cash_columns_are_summed(self):
        records = [
            _record(date(2024, 1, 1), "100", pnl="0", cash="100000"),
            _record(date(2024, 1, 2), "101", pnl="1000.005"),
            _record(date(2024, 1, 3), "100.5", pnl="-500"),
            _record(date(2024, 2, 1), "102", pnl="1500", cash="-20000"),
        ]

        table = aggregate_periods(resolve_baseline(records), "monthly")
        year = table[2024]

        assert year.periods["January"].cash_pnl == Decimal("500.01")
        assert year.periods["January"].capital_in_out == Decimal("100000.00")
        assert year.periods["February"].capital_in_out == Decimal("-20000.00")
        assert year.total_cash == Decimal("2000.01")
        assert year.total_capital_in_out == Decimal("80000.00")

    def test_months_in_calendar_order(self):
        records = [
            _record(date(2024, 1, 31), "100"),
            _record(date(2024, 3, 31), "101"),
            _record(date(2024, 4, 30), "102"),
        ]

        table = aggregate_periods(resolve_baseline(records), "monthly")

        assert list(table[2024].periods) == ["January", "March", "April"]

    def test_empty_series(self):
        assert aggregate_periods(resolve_baseline([]), "monthly") == {}


# =============================================================================
# QUARTERLY TABLE
# =============================================================================

class TestQuarterlyTable:
    def test_quarter_buckets_across_years(self):
        records = [
            _record(date(2023, 11, 30), "100"),
            _record(date(2023, 12, 29), "105"),
            _record(date(2024, 2, 29), "110.25"),
            _record(date(2024, 5, 31), "99.225"),
        ]

        table = aggregate_periods(resolve_baseline(records), "quarterly")

        assert list(table) == [2023, 2024]
        assert table[2023].periods["Q4"].percent_return == Decimal("5.00")
        assert table[2024].periods["Q1"].percent_return == Decimal("5.00")
        assert table[2024].periods["Q2"].percent_return == Decimal("-10.00")
        # 1.05 * 0.90 = 0.945
        assert table[2024].total_percent == Decimal("-5.50")

    def test_calculate_all_returns_both_tables(self):
        records = [_record(date(2024, 1, 31), "100"), _record(date(2024, 4, 30), "104")]

        monthly, quarterly = PeriodAggregator.calculate_all(resolve_baseline(records))

        assert set(monthly[2024].periods) == {"January", "April"}
        assert set(quarterly[2024].periods) == {"Q1", "Q2"}
        assert quarterly[2024].periods["Q2"].percent_return == Decimal("4.00")
