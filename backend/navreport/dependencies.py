# backend/navreport/dependencies.py
"""
Dependency injection module for FastAPI services.

The report service is stateless, so one instance is shared across all
requests. It is built lazily on first use from the application settings,
which keeps importing this module free of side effects.

Tests swap the service through FastAPI's dependency overrides:

    app.dependency_overrides[get_report_service] = lambda: PerformanceReportService(
        clock=lambda: date(2024, 3, 15),
    )

Usage in routers:
    from navreport.dependencies import get_report_service

    @router.post("/")
    def create_report(service: PerformanceReportService = Depends(get_report_service)):
        ...
"""

import logging
from functools import lru_cache

from navreport.config import settings
from navreport.services.performance import PerformanceReportService

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================

@lru_cache(maxsize=1)
def get_report_service() -> PerformanceReportService:
    """
    Get the shared PerformanceReportService.

    Named periods and timestamp inputs are resolved in
    settings.reporting_timezone.
    """
    logger.info(
        f"Creating PerformanceReportService (timezone={settings.reporting_timezone}, "
        f"implausible_return_threshold={settings.implausible_return_threshold})"
    )
    return PerformanceReportService(
        zone=settings.reporting_zone,
        implausible_return_threshold=settings.implausible_return_threshold,
    )
