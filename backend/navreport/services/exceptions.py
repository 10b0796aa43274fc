# backend/navreport/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer is responsible for mapping these to appropriate HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidPeriodError
    │   ├── InvalidDateRangeError
    │   └── UnknownSourceSchemaError
    └── AnalyticsError
        ├── DataGapError
        ├── ImplausibleValueError
        └── MalformedRecordError

The AnalyticsError family never leaves the performance engine: calculators
raise them internally, and the component boundary logs the condition and
degrades the affected metric to None (or drops the affected row).
"""

from datetime import date
from decimal import Decimal
from typing import Any


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when caller-supplied parameters are invalid.

    This is for programmatic validation errors (unknown period names,
    inverted date ranges, unknown record layouts), NOT for request body
    validation which is handled by Pydantic.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidPeriodError(ValidationError):
    """
    Raised when an unknown named reporting period is requested.

    Valid periods are listed in constants.NAMED_PERIODS.
    """

    def __init__(self, period: str, valid_periods: tuple[str, ...]) -> None:
        self.period = period
        self.valid_periods = valid_periods
        super().__init__(
            f"Invalid period: '{period}'. Valid options: {', '.join(valid_periods)}",
            field="period",
        )


class InvalidDateRangeError(ValidationError):
    """Raised when start_date is after end_date."""

    def __init__(self, start_date: date, end_date: date) -> None:
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"start_date ({start_date.isoformat()}) must be on or before "
            f"end_date ({end_date.isoformat()})",
            field="start_date",
        )


class UnknownSourceSchemaError(ValidationError):
    """Raised when raw records are tagged with an unregistered source layout."""

    def __init__(self, schema: str, known_schemas: list[str]) -> None:
        self.schema = schema
        self.known_schemas = known_schemas
        super().__init__(
            f"Unknown source schema: '{schema}'. Valid options: {', '.join(known_schemas)}",
            field="source_schema",
        )


# =============================================================================
# ANALYTICS ERRORS
# =============================================================================


class AnalyticsError(ServiceError):
    """
    Base exception for analytics calculation conditions.

    Attributes:
        account_id: Account the condition was detected on (optional)
        metric: Metric being computed when the condition was hit (optional)
    """

    def __init__(
            self,
            message: str,
            account_id: str | None = None,
            metric: str | None = None,
    ) -> None:
        self.account_id = account_id
        self.metric = metric
        super().__init__(message)


class DataGapError(AnalyticsError):
    """
    Raised when no base record exists for a trailing window.

    Not an error for the caller: the metric is reported as unavailable.
    """

    def __init__(
            self,
            metric: str,
            target_date: date,
            account_id: str | None = None,
    ) -> None:
        self.target_date = target_date
        super().__init__(
            f"No usable NAV on or before {target_date.isoformat()} for {metric}",
            account_id=account_id,
            metric=metric,
        )


class ImplausibleValueError(AnalyticsError):
    """
    Raised when a computed return exceeds the sanity threshold.

    Usually the symptom of a near-zero or mis-keyed base NAV.

    Attributes:
        base_date, base_nav: Record the return was measured from
        latest_date, latest_nav: Record the return was measured to
    """

    def __init__(
            self,
            metric: str,
            value: Decimal,
            threshold: Decimal,
            base_date: date,
            base_nav: Decimal,
            latest_date: date,
            latest_nav: Decimal,
            account_id: str | None = None,
    ) -> None:
        self.value = value
        self.threshold = threshold
        self.base_date = base_date
        self.base_nav = base_nav
        self.latest_date = latest_date
        self.latest_nav = latest_nav
        super().__init__(
            f"{metric} return of {value}% exceeds the plausibility threshold of {threshold}% "
            f"(NAV {base_nav} on {base_date.isoformat()} to {latest_nav} on {latest_date.isoformat()})",
            account_id=account_id,
            metric=metric,
        )


class MalformedRecordError(AnalyticsError):
    """
    Raised when a raw record field cannot be parsed.

    Attributes:
        field: Name of the raw field
        raw_value: The value that failed to parse
    """

    def __init__(
            self,
            field: str,
            raw_value: Any,
            account_id: str | None = None,
    ) -> None:
        self.field = field
        self.raw_value = raw_value
        super().__init__(
            f"Cannot parse field '{field}' from value {raw_value!r}",
            account_id=account_id,
            metric=field,
        )


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidPeriodError",
    "InvalidDateRangeError",
    "UnknownSourceSchemaError",
    # Analytics
    "AnalyticsError",
    "DataGapError",
    "ImplausibleValueError",
    "MalformedRecordError",
]
