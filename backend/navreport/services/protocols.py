# backend/navreport/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Existing record stores satisfy protocols without modification
- Test fakes work without explicit inheritance
- Clear documentation of what the report service needs from the outside

The performance engine itself never fetches anything. These protocols
describe the collaborators a host application plugs into
PerformanceReportService when it wants the service to load records
by account id instead of receiving them in the request.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any, Protocol


class DailyRecordSourceProtocol(Protocol):
    """Supplies raw daily rows for one account."""

    def fetch_records(
        self,
        account_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Sequence[Mapping[str, Any]]:
        ...

    def source_schema(self, account_id: str) -> str:
        """Name of the record layout the rows use (e.g. 'managed', 'pms')."""
        ...


class BenchmarkSourceProtocol(Protocol):
    """Supplies a raw benchmark index series."""

    def fetch_series(
        self,
        symbol: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Sequence[Any]:
        ...
