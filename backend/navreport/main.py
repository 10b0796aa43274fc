# backend/navreport/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from navreport import __version__
from navreport.config import settings
from navreport.middleware import CorrelationIdMiddleware
from navreport.routers import benchmarks_router, reports_router
from navreport.schemas.errors import ErrorDetail, ValidationErrorDetail
from navreport.services.exceptions import (
    InvalidDateRangeError,
    InvalidPeriodError,
    ServiceError,
    UnknownSourceSchemaError,
    ValidationError,
)
from navreport.utils import get_correlation_id, setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="NAV-based portfolio performance reporting API",
    version=__version__,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions carry no HTTP knowledge; these handlers map them
# to consistent ErrorDetail responses.
# =============================================================================

def _error_response(status_code: int, error: str, message: str, details: dict | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(
            error=error,
            message=message,
            details=details,
            correlation_id=get_correlation_id(),
        ).model_dump(),
    )


@app.exception_handler(InvalidPeriodError)
async def invalid_period_handler(request: Request, exc: InvalidPeriodError) -> JSONResponse:
    """Handle unknown named periods (400)."""
    logger.warning(f"Invalid period: {exc.period}")
    return _error_response(
        400,
        "InvalidPeriodError",
        str(exc),
        {"period": exc.period, "valid_options": list(exc.valid_periods)},
    )


@app.exception_handler(UnknownSourceSchemaError)
async def unknown_schema_handler(request: Request, exc: UnknownSourceSchemaError) -> JSONResponse:
    """Handle unknown record layouts (400)."""
    logger.warning(f"Unknown source schema: {exc.schema}")
    return _error_response(
        400,
        "UnknownSourceSchemaError",
        str(exc),
        {"source_schema": exc.schema, "valid_options": exc.known_schemas},
    )


@app.exception_handler(InvalidDateRangeError)
async def invalid_date_range_handler(request: Request, exc: InvalidDateRangeError) -> JSONResponse:
    """Handle inverted date ranges (400)."""
    logger.warning(f"Invalid date range: {exc.start_date} > {exc.end_date}")
    return _error_response(
        400,
        "InvalidDateRangeError",
        str(exc),
        {"start_date": exc.start_date.isoformat(), "end_date": exc.end_date.isoformat()},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle other caller errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(
        400,
        "ValidationError",
        str(exc),
        {"field": exc.field} if exc.field else None,
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return _error_response(500, "ServiceError", str(exc), None)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts the default {"detail": "..."} format to ErrorDetail, including
    404s for unknown routes raised by Starlette itself.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        500: "InternalServerError",
    }
    response = _error_response(
        exc.status_code,
        error_types.get(exc.status_code, "HTTPError"),
        str(exc.detail) if exc.detail else "An error occurred",
        None,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request body validation errors to ValidationErrorDetail (422)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            details=errors,
            correlation_id=get_correlation_id(),
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log with traceback, return a generic 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, "InternalServerError", "An unexpected error occurred", None)


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(reports_router)  # /reports/*
app.include_router(benchmarks_router)  # /benchmarks/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
def root() -> dict:
    """Service banner."""
    return {"name": settings.app_name, "version": __version__}


@app.get("/health", tags=["Health"])
def health_check() -> dict:
    """Liveness probe."""
    return {"status": "healthy", "environment": settings.environment}
