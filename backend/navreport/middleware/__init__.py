# backend/navreport/middleware/__init__.py
"""
Middleware components for the NAV reporting engine.

This package contains ASGI middleware for:
- Correlation ID tracking for request tracing

Usage:
    from navreport.middleware import CorrelationIdMiddleware

    app.add_middleware(CorrelationIdMiddleware)
"""

from navreport.middleware.correlation import CorrelationIdMiddleware

__all__ = [
    "CorrelationIdMiddleware",
]
