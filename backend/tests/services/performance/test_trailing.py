# backend/tests/services/performance/test_trailing.py
"""
Unit tests for trailing return and drawdown calculations.

These tests verify the pure calculation logic with hand-checkable values.

Test Coverage:
- find_base_record: most recent qualifying record on or before a date
- calculate_window_return: truncation, data gaps, plausibility guard
- calculate_since_inception: earliest NAV that differs from the latest
- calculate_headline_return: absolute vs CAGR
- Drawdowns: series, MDD, current DD
- TrailingReturnCalculator.calculate_all: degradation to None
"""

from datetime import date
from decimal import Decimal

import pytest

from navreport.services.constants import TRAILING_LABELS
from navreport.services.exceptions import DataGapError, ImplausibleValueError
from navreport.services.performance.baseline import resolve_baseline
from navreport.services.performance.trailing import (
    TrailingReturnCalculator,
    calculate_current_drawdown,
    calculate_drawdown_series,
    calculate_headline_return,
    calculate_max_drawdown,
    calculate_since_inception,
    calculate_window_return,
    find_base_record,
    find_latest_record,
)
from navreport.services.performance.types import DailyRecord


# =============================================================================
# RECORD LOOKUP
# =============================================================================

class TestRecordLookup:
    def test_latest_skips_missing_nav(self, make_records):
        records = make_records([100, 101, None])

        assert find_latest_record(records).date == date(2024, 1, 2)

    def test_base_is_most_recent_on_or_before_target(self, make_records):
        records = make_records([100, 101, None, 103])

        # Jan 3 has no NAV, so Jan 2 is the base
        base = find_base_record(records, date(2024, 1, 3))

        assert base.date == date(2024, 1, 2)

    def test_no_base_before_series(self, make_records):
        records = make_records([100, 101])

        assert find_base_record(records, date(2023, 12, 31)) is None


# =============================================================================
# WINDOW RETURNS
# =============================================================================

class TestWindowReturn:
    """Tests for calculate_window_return."""

    def test_five_day_return(self, make_records):
        # NAV 100..110 on Jan 1..11; 5D base is Jan 6 (NAV 105)
        records = make_records(range(100, 111))

        result = calculate_window_return(records, "5D", 5)

        # (110 - 105) / 105 * 100 = 4.7619...
        assert result == Decimal("4.76")

    def test_negative_return_truncates_toward_zero(self):
        records = (
            DailyRecord(date(2024, 1, 1), Decimal("103")),
            DailyRecord(date(2024, 1, 6), Decimal("100")),
        )

        result = calculate_window_return(records, "5D", 5)

        # -2.9126... truncates to -2.91, not -2.92
        assert result == Decimal("-2.91")

    def test_window_longer_than_history_raises_data_gap(self, make_records):
        records = make_records([100, 101, 102, 103, 104])

        with pytest.raises(DataGapError) as exc_info:
            calculate_window_return(records, "1Y", 365)

        assert exc_info.value.metric == "1Y"
        assert exc_info.value.target_date == date(2023, 1, 5)

    def test_empty_series_raises_data_gap(self):
        with pytest.raises(DataGapError):
            calculate_window_return((), "5D", 5)

    def test_implausible_return_raises(self):
        records = (
            DailyRecord(date(2024, 1, 1), Decimal("0.001")),
            DailyRecord(date(2024, 1, 10), Decimal("100")),
        )

        with pytest.raises(ImplausibleValueError) as exc_info:
            calculate_window_return(records, "5D", 5)

        assert exc_info.value.threshold == Decimal("10000")
        assert exc_info.value.base_nav == Decimal("0.001")
        assert exc_info.value.latest_date == date(2024, 1, 10)


class TestSinceInception:
    def test_measured_from_first_nav(self, make_records):
        records = make_records([100, 110, 90, 95])

        assert calculate_since_inception(records) == Decimal("-5.00")

    def test_flat_series_has_no_return(self, make_records):
        with pytest.raises(DataGapError):
            calculate_since_inception(make_records([100, 100, 100]))

    def test_anchored_at_inception_date(self, make_records):
        records = make_records([50, 100, 105, 110])

        # Jan 2 anchor skips the earlier history
        assert calculate_since_inception(records, inception=date(2024, 1, 2)) == Decimal("10.00")

    def test_anchor_before_series_uses_first_nav(self, make_records):
        records = make_records([100, 110], start=date(2024, 2, 1))

        assert calculate_since_inception(records, inception=date(2024, 1, 1)) == Decimal("10.00")


# =============================================================================
# HEADLINE RETURN
# =============================================================================

class TestHeadlineReturn:
    """Absolute under one year, CAGR from one year on."""

    def test_absolute_under_one_year(self, make_records):
        resolution = resolve_baseline(make_records(["101", "112.345"]))

        result = calculate_headline_return(resolution.records, resolution.baseline_nav)

        assert result == Decimal("12.34")

    def test_exactly_one_year_equals_absolute(self):
        records = (
            DailyRecord(date(2023, 1, 1), Decimal("100")),
            DailyRecord(date(2024, 1, 1), Decimal("110")),
        )

        assert calculate_headline_return(records, Decimal("100")) == Decimal("10.00")

    def test_two_years_is_annualized(self):
        # 730 days, NAV 100 -> 121: (1.21 ^ 0.5 - 1) * 100 = 10%
        records = (
            DailyRecord(date(2021, 1, 1), Decimal("100")),
            DailyRecord(date(2023, 1, 1), Decimal("121")),
        )

        assert calculate_headline_return(records, Decimal("100")) == Decimal("10.00")

    def test_irrational_root_stays_decimal(self):
        # sqrt(1.5) = 1.224744...
        records = (
            DailyRecord(date(2021, 1, 1), Decimal("100")),
            DailyRecord(date(2023, 1, 1), Decimal("150")),
        )

        result = calculate_headline_return(records, Decimal("100"))

        assert isinstance(result, Decimal)
        assert result == Decimal("22.47")

    def test_no_nav_returns_none(self):
        records = (DailyRecord(date(2024, 1, 1), None),)

        assert calculate_headline_return(records, None) is None


# =============================================================================
# DRAWDOWN
# =============================================================================

class TestDrawdown:
    """Running-peak drawdown, MDD and current drawdown."""

    def test_drawdown_series(self, make_records):
        series = calculate_drawdown_series(make_records([100, 110, 90, 95]))

        values = [dd for _, dd in series]
        assert values[0] == 0
        assert values[1] == 0
        assert values[2].quantize(Decimal("0.0001")) == Decimal("-18.1818")
        assert values[3].quantize(Decimal("0.0001")) == Decimal("-13.6364")

    def test_max_drawdown(self, make_records):
        assert calculate_max_drawdown(make_records([100, 110, 90, 95])) == Decimal("-18.18")

    def test_mdd_is_worst_point_not_endpoint(self, make_records):
        records = make_records([100, 80, 120, 118])

        assert calculate_max_drawdown(records) == Decimal("-20.00")
        # (118 - 120) / 120 = -1.666...
        assert calculate_current_drawdown(records) == Decimal("-1.66")

    def test_current_drawdown_at_peak_is_zero(self, make_records):
        assert calculate_current_drawdown(make_records([100, 90, 130])) == Decimal("0")

    def test_both_are_never_positive(self, make_records):
        records = make_records([100, 105, 120])

        assert calculate_max_drawdown(records) <= 0
        assert calculate_current_drawdown(records) <= 0

    def test_empty_series_is_zero(self):
        assert calculate_max_drawdown(()) == Decimal("0")
        assert calculate_current_drawdown(()) == Decimal("0")


# =============================================================================
# CALCULATOR
# =============================================================================

class TestTrailingReturnCalculator:
    """Tests for TrailingReturnCalculator.calculate_all."""

    def test_short_history_reports_none_not_zero(self, make_records):
        records = make_records([100, 101, 102, 103, 104, 105])

        result = TrailingReturnCalculator.calculate_all(records)

        assert result.get("5D") == Decimal("5.00")
        assert result.get("1M") is None
        assert result.get("1Y") is None
        assert result.get("SinceInception") == Decimal("5.00")
        assert result.as_of == date(2024, 1, 6)

    def test_every_label_present(self, make_records):
        result = TrailingReturnCalculator.calculate_all(make_records([100, 101]))

        assert tuple(result.returns) == TRAILING_LABELS

    def test_implausible_return_degrades_to_none(self, caplog):
        records = (
            DailyRecord(date(2024, 1, 1), Decimal("0.001")),
            DailyRecord(date(2024, 1, 10), Decimal("100")),
        )

        result = TrailingReturnCalculator.calculate_all(records)

        assert result.get("5D") is None
        assert result.get("SinceInception") is None
        assert "implausible" in caplog.text
        assert "NAV 0.001 on 2024-01-01 to 100 on 2024-01-10" in caplog.text

    def test_custom_threshold(self, make_records):
        records = make_records([100, 101, 102, 103, 104, 200])

        result = TrailingReturnCalculator.calculate_all(records, threshold=Decimal("50"))

        assert result.get("5D") is None

    def test_empty_series(self):
        result = TrailingReturnCalculator.calculate_all(())

        assert all(value is None for value in result.returns.values())
        assert result.mdd == Decimal("0")
        assert result.as_of is None
