# backend/navreport/schemas/errors.py
"""
Pydantic schemas for error responses.

Every error body carries the request's correlation ID so a client-side
report of a failed request can be matched to the server log lines.
Used by the global exception handlers in main.py.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error response format."""

    error: str = Field(
        ...,
        description="Error type/code (e.g., 'InvalidPeriodError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context (e.g., the offending field)"
    )
    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID (also in the X-Correlation-ID header)"
    )


class ValidationErrorDetail(BaseModel):
    """Request body validation failure (422)."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="One entry per invalid field: field path, message, type"
    )
    correlation_id: str | None = Field(default=None)
