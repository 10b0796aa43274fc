# backend/navreport/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates the performance
engine separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive raw records as parameters, or through injected sources
- Are easily testable via dependency injection

Usage:
    from navreport.services.performance import PerformanceReportService
    from navreport.services import ValidationError, InvalidPeriodError

Architecture:
    services/
    ├── __init__.py                  # This file - exception exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Business constants
    ├── protocols.py                 # Collaborator interfaces (Protocol classes)
    └── performance/                 # Performance engine
        ├── types.py                 # Records, results, report variants
        ├── normalizer.py            # Raw rows -> DailyRecord series
        ├── baseline.py              # NAV-100 baseline resolution
        ├── trailing.py              # Trailing returns, MDD, current DD
        ├── periods.py               # Monthly / quarterly P&L tables
        ├── curves.py                # Equity and drawdown curves
        ├── benchmark.py             # Benchmark alignment and comparison
        ├── aggregation.py           # Multi-account consolidation
        └── service.py               # PerformanceReportService (orchestrator)
"""

from navreport.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPeriodError,
    InvalidDateRangeError,
    UnknownSourceSchemaError,
    AnalyticsError,
    DataGapError,
    ImplausibleValueError,
    MalformedRecordError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidPeriodError",
    "InvalidDateRangeError",
    "UnknownSourceSchemaError",
    "AnalyticsError",
    "DataGapError",
    "ImplausibleValueError",
    "MalformedRecordError",
]
