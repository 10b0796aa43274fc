# backend/navreport/routers/__init__.py
"""
API routers for the NAV reporting engine.

Each router handles a specific concern:
- reports: Single-account and consolidated investor reports
- benchmarks: Standalone benchmark curve alignment
"""

from navreport.routers.reports import benchmark_router as benchmarks_router
from navreport.routers.reports import router as reports_router

__all__ = [
    "reports_router",
    "benchmarks_router",
]
