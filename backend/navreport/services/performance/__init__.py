# backend/navreport/services/performance/__init__.py
"""
Performance Engine Package.

This package turns daily NAV / portfolio-value / cash-flow records into
client-facing analytics:
- Trailing returns (5D ... 5Y, since inception), MDD and current drawdown
- Monthly and quarterly P&L tables with compounded yearly totals
- Base-100 equity curve and drawdown curve
- Benchmark curves aligned to the portfolio, trailing comparison
- Consolidated multi-account ("Total Portfolio") reports

Architecture:
    performance/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Records, results, tagged report variants
    ├── normalizer.py            # Raw rows -> DailyRecord
    ├── baseline.py              # NAV-100 baseline
    ├── trailing.py              # Trailing returns and drawdowns
    ├── periods.py               # Period P&L tables
    ├── curves.py                # Equity and drawdown curves
    ├── benchmark.py             # Benchmark alignment
    ├── aggregation.py           # Multi-account consolidation
    └── service.py               # PerformanceReportService (orchestrator)

Usage:
    from navreport.services.performance import PerformanceReportService

    service = PerformanceReportService()
    result = service.account_report("ACC-001", rows, source_schema="managed")

    if result.kind == "single":
        print(result.report.return_percent)
"""

from navreport.services.performance.service import (
    AccountInput,
    PerformanceReportService,
    ReportWindow,
)
from navreport.services.performance.types import (
    AccountAggregate,
    BaselineResolution,
    BenchmarkCurves,
    CashFlow,
    CurvePoint,
    DailyRecord,
    DrawdownSummary,
    MultiAccountResult,
    PeriodEntry,
    PeriodPnl,
    PortfolioReport,
    ReportResult,
    SingleAccountResult,
    TrailingComparison,
    TrailingReturnSet,
    YearPnl,
)

__all__ = [
    # Service
    "PerformanceReportService",
    "ReportWindow",
    "AccountInput",
    # Types
    "AccountAggregate",
    "BaselineResolution",
    "BenchmarkCurves",
    "CashFlow",
    "CurvePoint",
    "DailyRecord",
    "DrawdownSummary",
    "MultiAccountResult",
    "PeriodEntry",
    "PeriodPnl",
    "PortfolioReport",
    "ReportResult",
    "SingleAccountResult",
    "TrailingComparison",
    "TrailingReturnSet",
    "YearPnl",
]
