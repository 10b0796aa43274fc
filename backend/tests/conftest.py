# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Series factories (DailyRecord tuples, raw canonical rows)
- A report service with a fixed clock
- A FastAPI TestClient wired to that service
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("APP_NAME", "Test App")

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from navreport.services.performance import DailyRecord, PerformanceReportService

# "Today" for every test that depends on the clock (a Friday)
FIXED_TODAY = date(2024, 3, 15)


# =============================================================================
# SERIES FACTORIES
# =============================================================================

@pytest.fixture
def make_records() -> Callable[..., tuple[DailyRecord, ...]]:
    """
    Factory for consecutive daily records.

    Usage:
        records = make_records(["100", "110", "90", "95"])
        records = make_records([100, 101], start=date(2024, 2, 1))
    """

    def _make(navs, start: date = date(2024, 1, 1), step_days: int = 1) -> tuple[DailyRecord, ...]:
        return tuple(
            DailyRecord(
                date=start + timedelta(days=i * step_days),
                nav=Decimal(str(nav)) if nav is not None else None,
            )
            for i, nav in enumerate(navs)
        )

    return _make


@pytest.fixture
def sample_rows() -> list[dict]:
    """
    Canonical rows for one account, first NAV off the baseline.

    2024-01-02  NAV 101  deposit 100,000
    2024-01-03  NAV 103
    2024-02-01  NAV  99  (drawdown from 103)
    2024-02-02  NAV 104  deposit 50,000
    """
    return [
        {"date": "2024-01-02", "nav": "101", "portfolio_value": "101000",
         "exposure_value": "90000", "cash_in_out": "100000", "pnl": "1000"},
        {"date": "2024-01-03", "nav": "103", "portfolio_value": "103000",
         "cash_in_out": "0", "pnl": "2000"},
        {"date": "2024-02-01", "nav": "99", "portfolio_value": "99000",
         "cash_in_out": "0", "pnl": "-4000"},
        {"date": "2024-02-02", "nav": "104", "portfolio_value": "154000",
         "cash_in_out": "50000", "pnl": "5000"},
    ]


# =============================================================================
# SERVICE / APP FIXTURES
# =============================================================================

@pytest.fixture
def report_service() -> PerformanceReportService:
    """Report service whose clock always reads FIXED_TODAY."""
    return PerformanceReportService(clock=lambda: FIXED_TODAY)


@pytest.fixture
def client(report_service: PerformanceReportService) -> Iterator[TestClient]:
    """TestClient with the report service dependency overridden."""
    from navreport.dependencies import get_report_service
    from navreport.main import app

    app.dependency_overrides[get_report_service] = lambda: report_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
