# backend/navreport/utils/__init__.py
"""
Utility modules for the NAV reporting engine.

This package contains cross-cutting utilities used throughout the application:
- logging: Logging configuration with correlation and account IDs
- context: Request-scoped context (correlation ID, account scope)
- date_utils: Named reporting periods and date parsing
- numeric: Decimal parsing, truncation and rounding helpers

Usage:
    from navreport.utils import setup_logging, get_logger
    from navreport.utils import account_scope
    from navreport.utils.date_utils import resolve_named_period
"""

from navreport.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    get_account_id,
    account_scope,
)
from navreport.utils.logging import setup_logging, get_logger

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_account_id",
    "account_scope",
]
