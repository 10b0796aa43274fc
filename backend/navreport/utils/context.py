# backend/navreport/utils/context.py
"""
Request context management for the NAV reporting engine.

This module provides context storage for request-scoped data:
- Correlation ID for request tracing
- Account ID of the series currently being computed

Uses Python's contextvars so values are isolated per request (and per
thread when FastAPI runs sync endpoints in its threadpool).

Usage:
    from navreport.utils.context import account_scope, get_account_id

    with account_scope("ACC-001"):
        ...  # every log line emitted here carries account_id=ACC-001
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

# Correlation ID for request tracing
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Account whose series is being normalized / computed
_account_id_var: ContextVar[str | None] = ContextVar("account_id", default=None)


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """
    Get the current request's correlation ID.

    Returns:
        The correlation ID for the current request, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request.

    This should be called by middleware at the start of each request.
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID at the end of a request."""
    _correlation_id_var.set(None)


# =============================================================================
# ACCOUNT SCOPE
# =============================================================================

def get_account_id() -> str | None:
    """Account currently in scope, or None outside a computation."""
    return _account_id_var.get()


@contextmanager
def account_scope(account_id: str | None) -> Iterator[None]:
    """
    Bind an account id to the current context for the duration of a block.

    Nested scopes restore the outer account on exit, so a consolidated
    report can compute each account inside its own scope.
    """
    token = _account_id_var.set(account_id)
    try:
        yield
    finally:
        _account_id_var.reset(token)
