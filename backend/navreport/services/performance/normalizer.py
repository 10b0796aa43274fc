# backend/navreport/services/performance/normalizer.py
"""
Record normalization for the performance engine.

Raw daily rows arrive in several source layouts (managed-account master
sheets, PMS reports, already-canonical rows). This module is the single
parsing boundary: everything downstream sees only typed, sorted, de-duplicated
DailyRecord tuples.

Source layouts:
    Layout      Date          Cash flow        Drawdown
    --------------------------------------------------------------
    managed     date          capital_in_out   drawdown
    pms         report_date   cash_in_out      drawdown_percent
    canonical   date          cash_in_out      drawdown_percent
                              (camelCase keys are also accepted)

Parsing rules:
    - Numbers may be str / int / float / Decimal. None, "" and non-finite
      values mean "absent"; absent NAV stays None (never coerced to 0).
    - Absent cash_in_out / pnl become 0 since they are only ever summed.
    - Source drawdowns are positive magnitudes in some layouts; they are
      stored as -abs(x) so every drawdown in the engine is <= 0.
    - A row whose date cannot be parsed is dropped with a WARNING.
    - A row with a present but unparsable number is dropped with a WARNING
      naming the account, date and field; it never contributes a zeroed
      cash flow.
    - Duplicate dates keep the first row seen, in input order.

Master-sheet CSV exports (one file, many sub-portfolios keyed by a system
tag column) are read with read_master_sheet_csv() and then normalized with
the managed layout.
"""

import csv
import io
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, tzinfo
from decimal import Decimal
from typing import Any

from navreport.services.constants import ZERO
from navreport.services.exceptions import MalformedRecordError, UnknownSourceSchemaError
from navreport.services.performance.types import DailyRecord
from navreport.utils.date_utils import parse_date
from navreport.utils.numeric import parse_decimal

logger = logging.getLogger(__name__)


# =============================================================================
# SOURCE LAYOUTS
# =============================================================================

@dataclass(frozen=True)
class SourceSchema:
    """
    Field mapping from one raw layout onto DailyRecord.

    Each attribute lists the raw keys tried, in order; the first key
    present in the row wins.
    """
    name: str
    date: tuple[str, ...]
    nav: tuple[str, ...]
    portfolio_value: tuple[str, ...]
    exposure_value: tuple[str, ...]
    cash_in_out: tuple[str, ...]
    pnl: tuple[str, ...]
    drawdown: tuple[str, ...]


MANAGED_SCHEMA = SourceSchema(
    name="managed",
    date=("date",),
    nav=("nav",),
    portfolio_value=("portfolio_value",),
    exposure_value=("exposure_value",),
    cash_in_out=("capital_in_out",),
    pnl=("pnl",),
    drawdown=("drawdown",),
)

PMS_SCHEMA = SourceSchema(
    name="pms",
    date=("report_date",),
    nav=("nav",),
    portfolio_value=("portfolio_value",),
    exposure_value=("exposure_value",),
    cash_in_out=("cash_in_out",),
    pnl=("pnl",),
    drawdown=("drawdown_percent",),
)

CANONICAL_SCHEMA = SourceSchema(
    name="canonical",
    date=("date",),
    nav=("nav",),
    portfolio_value=("portfolio_value", "portfolioValue"),
    exposure_value=("exposure_value", "exposureValue"),
    cash_in_out=("cash_in_out", "cashInOut"),
    pnl=("pnl",),
    drawdown=("drawdown_percent", "drawdownPercent"),
)

SOURCE_SCHEMAS: dict[str, SourceSchema] = {
    schema.name: schema
    for schema in (MANAGED_SCHEMA, PMS_SCHEMA, CANONICAL_SCHEMA)
}

# Master-sheet CSV column order (header row is skipped)
MASTER_SHEET_COLUMNS: tuple[str, ...] = (
    "system_tag",
    "date",
    "portfolio_value",
    "capital_in_out",
    "nav",
    "prev_nav",
    "pnl",
    "daily_pnl_percent",
    "exposure_value",
    "prev_portfolio_value",
    "prev_exposure_value",
    "prev_pnl",
    "drawdown",
)


def get_source_schema(name: str) -> SourceSchema:
    """
    Look up a registered source layout by name.

    Raises:
        UnknownSourceSchemaError: If no layout is registered under name
    """
    try:
        return SOURCE_SCHEMAS[name]
    except KeyError:
        raise UnknownSourceSchemaError(name, sorted(SOURCE_SCHEMAS)) from None


# =============================================================================
# FIELD PARSING
# =============================================================================

def _lookup(row: Mapping[str, Any], keys: tuple[str, ...]) -> tuple[str, Any]:
    for key in keys:
        if key in row:
            return key, row[key]
    return keys[0], None


def _parse_number(key: str, raw: Any, account_id: str | None) -> Decimal | None:
    """
    Parse one numeric field.

    Raises:
        MalformedRecordError: If the value is present but not numeric
    """
    try:
        return parse_decimal(raw)
    except ValueError:
        raise MalformedRecordError(key, raw, account_id=account_id) from None


def _parse_row(
        row: Mapping[str, Any],
        schema: SourceSchema,
        account_id: str | None,
        zone: tzinfo | None,
) -> DailyRecord | None:
    """Convert one raw row, or return None when its date or a number is unusable."""
    date_key, raw_date = _lookup(row, schema.date)
    try:
        record_date = parse_date(raw_date, zone)
    except (ValueError, TypeError):
        logger.warning(
            f"Dropping row for account {account_id} with unparsable {date_key}: {raw_date!r}",
            extra={"metric": date_key, "date": str(raw_date)},
        )
        return None

    def field_value(keys: tuple[str, ...]) -> Decimal | None:
        key, raw = _lookup(row, keys)
        return _parse_number(key, raw, account_id)

    try:
        nav = field_value(schema.nav)
        portfolio_value = field_value(schema.portfolio_value)
        exposure_value = field_value(schema.exposure_value)
        cash_in_out = field_value(schema.cash_in_out)
        pnl = field_value(schema.pnl)
        drawdown = field_value(schema.drawdown)
    except MalformedRecordError as e:
        logger.warning(
            f"Dropping row for account {account_id} on {record_date.isoformat()}: {e}",
            extra={"metric": e.field, "date": record_date.isoformat(), "value": repr(e.raw_value)},
        )
        return None

    return DailyRecord(
        date=record_date,
        nav=nav,
        portfolio_value=portfolio_value,
        exposure_value=exposure_value,
        cash_in_out=cash_in_out if cash_in_out is not None else ZERO,
        pnl=pnl if pnl is not None else ZERO,
        drawdown_percent=-abs(drawdown) if drawdown is not None else None,
    )


# =============================================================================
# PUBLIC API
# =============================================================================

def normalize_records(
        rows: Iterable[Mapping[str, Any]],
        source_schema: str | SourceSchema = "canonical",
        account_id: str | None = None,
        zone: tzinfo | None = None,
) -> tuple[DailyRecord, ...]:
    """
    Convert raw rows to a sorted, de-duplicated DailyRecord series.

    Args:
        rows: Raw rows as mappings
        source_schema: Registered layout name or a SourceSchema
        account_id: Account the rows belong to (for diagnostics)
        zone: Time zone timestamp inputs are converted to before taking
              the calendar date

    Returns:
        Records sorted by date ascending, one per date (first seen wins)

    Raises:
        UnknownSourceSchemaError: If source_schema names no registered layout
    """
    schema = source_schema if isinstance(source_schema, SourceSchema) else get_source_schema(source_schema)

    by_date: dict[date, DailyRecord] = {}
    dropped = 0
    duplicates = 0

    for row in rows:
        record = _parse_row(row, schema, account_id, zone)
        if record is None:
            dropped += 1
            continue
        if record.date in by_date:
            duplicates += 1
            continue
        by_date[record.date] = record

    if dropped or duplicates:
        logger.warning(
            f"Normalized {len(by_date)} records for account {account_id}: "
            f"{dropped} dropped (unparsable date or number), {duplicates} duplicate dates ignored"
        )
    else:
        logger.debug(f"Normalized {len(by_date)} records for account {account_id} ({schema.name})")

    return tuple(by_date[d] for d in sorted(by_date))


def filter_records(
        records: Iterable[DailyRecord],
        start_date: date | None = None,
        end_date: date | None = None,
) -> tuple[DailyRecord, ...]:
    """Keep records with start_date <= date <= end_date (either bound optional)."""
    return tuple(
        r for r in records
        if (start_date is None or r.date >= start_date)
        and (end_date is None or r.date <= end_date)
    )


def read_master_sheet_csv(text: str, system_tag: str | None = None) -> list[dict[str, str]]:
    """
    Read a master-sheet CSV export into raw managed-layout rows.

    The first line is a header and is skipped; columns are positional
    (see MASTER_SHEET_COLUMNS). Blank lines are ignored.

    Args:
        text: CSV file content
        system_tag: Keep only rows for this sub-portfolio tag
                    (compared after stripping whitespace)

    Returns:
        Rows keyed by MASTER_SHEET_COLUMNS, ready for
        normalize_records(rows, "managed")
    """
    reader = csv.reader(io.StringIO(text))
    next(reader, None)

    rows: list[dict[str, str]] = []
    for columns in reader:
        if not any(c.strip() for c in columns):
            continue
        row = {
            name: columns[i].strip() if i < len(columns) else ""
            for i, name in enumerate(MASTER_SHEET_COLUMNS)
        }
        if system_tag is not None and row["system_tag"] != system_tag.strip():
            continue
        rows.append(row)

    return rows
