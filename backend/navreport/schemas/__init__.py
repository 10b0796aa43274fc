# backend/navreport/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

This package contains all Pydantic schemas organized by domain:
- reports: Report requests, report and benchmark responses
- errors: Error response formats

Usage:
    from navreport.schemas import AccountReportRequest, SingleAccountReportResponse
    from navreport.schemas import ErrorDetail
"""

from navreport.schemas.errors import (
    ErrorDetail,
    ValidationErrorDetail,
)
from navreport.schemas.reports import (
    # Requests
    ReportFilters,
    AccountReportRequest,
    MasterSheetReportRequest,
    AccountRecords,
    InvestorReportRequest,
    BenchmarkCurvesRequest,
    # Building blocks
    CurvePointResponse,
    CashFlowResponse,
    PeriodEntryResponse,
    YearPnlResponse,
    TrailingReturnsResponse,
    DrawdownResponse,
    TrailingComparisonResponse,
    BenchmarkCurvesResponse,
    # Reports
    PortfolioReportResponse,
    SingleAccountReportResponse,
    MultiAccountReportResponse,
)

__all__ = [
    # Requests
    "ReportFilters",
    "AccountReportRequest",
    "MasterSheetReportRequest",
    "AccountRecords",
    "InvestorReportRequest",
    "BenchmarkCurvesRequest",

    # Building blocks
    "CurvePointResponse",
    "CashFlowResponse",
    "PeriodEntryResponse",
    "YearPnlResponse",
    "TrailingReturnsResponse",
    "DrawdownResponse",
    "TrailingComparisonResponse",
    "BenchmarkCurvesResponse",

    # Reports
    "PortfolioReportResponse",
    "SingleAccountReportResponse",
    "MultiAccountReportResponse",

    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
]
