# backend/navreport/__init__.py
"""NAV-based portfolio performance reporting engine."""

__version__ = "0.1.0"
