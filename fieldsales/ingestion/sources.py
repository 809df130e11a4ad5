"""
Record Sources

Where the reporting engine gets its sales and attendance snapshot from:
- DatabaseRecordSource: the ``sales_records`` / ``attendance_records`` tables
- EventLogSource: the newline-delimited JSON activity log written by the
  field app (no packaging-unit detail)
- SourceChain: ordered fallback across sources
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

import polars as pl
import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldsales.analytics.calendar import ZoneLike
from fieldsales.analytics.records import AttendanceRecord, SalesRecord
from fieldsales.database.models import AttendanceRecordRow, SalesRecordRow
from fieldsales.errors import RecordSourceError, RecordSourceUnavailable
from fieldsales.transformation.cleaners import RecordCleaner

logger = structlog.get_logger(__name__)

PIECE_LABEL = "ชิ้น"


def narrowing_name(value: Optional[str]) -> Optional[str]:
    """Name usable for exact narrowing; blank and "all" mean no narrowing"""
    if value is None:
        return None
    text = value.strip()
    if not text or text.casefold() == "all":
        return None
    return text


@dataclass(frozen=True)
class FetchQuery:
    """Inclusive day window plus optional exact-name narrowing"""
    first_day: date
    last_day: date
    employee: Optional[str] = None
    store: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "employee", narrowing_name(self.employee))
        object.__setattr__(self, "store", narrowing_name(self.store))

    @property
    def first_key(self) -> str:
        return self.first_day.isoformat()

    @property
    def last_key(self) -> str:
        return self.last_day.isoformat()

    def admits(self, record: Union[SalesRecord, AttendanceRecord]) -> bool:
        if not self.first_key <= record.day_key <= self.last_key:
            return False
        if self.employee and record.employee_name.casefold() != self.employee.casefold():
            return False
        if self.store and record.store_name.casefold() != self.store.casefold():
            return False
        return True


@dataclass(frozen=True)
class SourceCapabilities:
    """What a source can tell apart"""
    unit_granularity: bool = True
    attendance: bool = True


class RecordSource(Protocol):
    name: str
    capabilities: SourceCapabilities

    async def fetch_sales(self, query: FetchQuery) -> List[SalesRecord]:
        ...

    async def fetch_attendance(self, query: FetchQuery) -> List[AttendanceRecord]:
        ...


# =============================================================================
# DATABASE
# =============================================================================

class DatabaseRecordSource:
    """
    Primary source backed by the event tables.

    The day-key window and name narrowing run server-side; cleaning and the
    final day-key derivation run on the rows that come back.
    """

    name = "database"
    capabilities = SourceCapabilities()

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], zone: ZoneLike):
        self._session_factory = session_factory
        self.zone = zone

    def _narrow(self, stmt, model, query: FetchQuery):
        stmt = stmt.where(model.day_key >= query.first_key, model.day_key <= query.last_key)
        if query.employee:
            stmt = stmt.where(func.lower(model.employee_name) == query.employee.strip().lower())
        if query.store:
            stmt = stmt.where(func.lower(model.store_name) == query.store.strip().lower())
        return stmt

    async def _rows(self, stmt) -> List[Dict[str, Any]]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings().all()]
        except Exception as e:
            raise RecordSourceError(self.name, str(e)) from e

    async def fetch_sales(self, query: FetchQuery) -> List[SalesRecord]:
        model = SalesRecordRow
        stmt = self._narrow(
            select(
                model.sold_at.label("timestamp"),
                model.employee_name,
                model.store_name,
                model.product_code,
                model.product_name,
                model.unit_label,
                model.quantity,
                model.unit_price,
                model.total,
                model.status,
            ),
            model,
            query,
        ).order_by(model.sold_at)

        rows = await self._rows(stmt)
        records = [r for r in RecordCleaner(self.zone).sales_records(rows) if query.admits(r)]
        logger.debug("Fetched sales from database", rows=len(rows), records=len(records))
        return records

    async def fetch_attendance(self, query: FetchQuery) -> List[AttendanceRecord]:
        model = AttendanceRecordRow
        stmt = self._narrow(
            select(
                model.recorded_at.label("timestamp"),
                model.employee_name,
                model.store_name,
                model.status,
            ),
            model,
            query,
        ).order_by(model.recorded_at)

        rows = await self._rows(stmt)
        records = [r for r in RecordCleaner(self.zone).attendance_records(rows) if query.admits(r)]
        logger.debug("Fetched attendance from database", rows=len(rows), records=len(records))
        return records


# =============================================================================
# ACTIVITY LOG
# =============================================================================

def _meta(entry: Dict[str, Any]) -> Dict[str, Any]:
    return entry.get("metadata") or {}


def sales_rows_from_log(entry: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Raw sales rows of one ``sales`` log entry.

    An entry carries either an ``items`` list or a single product at the
    top level of its metadata. Unit names are not kept: every line counts
    as pieces.
    """
    meta = _meta(entry)
    shared = {
        "timestamp": meta.get("timestamp") or entry.get("timestamp"),
        "employee_name": meta.get("employeeName") or entry.get("actor_name"),
        "store_name": meta.get("storeName"),
        "status": meta.get("status"),
    }
    items = meta.get("items") or [meta]
    return [
        {
            **shared,
            "product_code": item.get("productCode"),
            "product_name": item.get("productName"),
            "unit_label": PIECE_LABEL,
            "quantity": item.get("quantity"),
            "unit_price": item.get("unitPrice"),
            "total": item.get("total"),
        }
        for item in items
        if item
    ]


def attendance_row_from_log(entry: Dict[str, Any]) -> Dict[str, Any]:
    meta = _meta(entry)
    return {
        "timestamp": meta.get("timestamp") or entry.get("timestamp"),
        "employee_name": meta.get("employeeName") or entry.get("actor_name"),
        "store_name": meta.get("storeName"),
        "status": meta.get("status") or "check-in",
    }


class EventLogSource:
    """
    Secondary source reading the field app's activity log.

    One JSON object per line with ``timestamp``, ``scope`` and a
    ``metadata`` object; only the ``sales`` and ``attendance`` scopes are
    read.
    """

    name = "activity_log"
    capabilities = SourceCapabilities(unit_granularity=False)

    def __init__(self, path: Union[str, Path], zone: ZoneLike):
        self.path = Path(path)
        self.zone = zone

    def _load(self, scope: str) -> List[Dict[str, Any]]:
        if not self.path.exists():
            raise RecordSourceError(self.name, f"activity log not found: {self.path}")
        # no history yet
        if self.path.stat().st_size == 0 or not self.path.read_bytes().strip():
            return []
        try:
            df = pl.read_ndjson(self.path, infer_schema_length=None)
        except Exception as e:
            raise RecordSourceError(self.name, f"unreadable activity log: {e}") from e

        if df.is_empty() or "scope" not in df.columns:
            return []
        return df.filter(pl.col("scope") == scope).to_dicts()

    async def fetch_sales(self, query: FetchQuery) -> List[SalesRecord]:
        entries = await asyncio.to_thread(self._load, "sales")
        rows = [row for entry in entries for row in sales_rows_from_log(entry)]
        records = [r for r in RecordCleaner(self.zone).sales_records(rows) if query.admits(r)]
        logger.debug("Fetched sales from activity log", entries=len(entries), records=len(records))
        return records

    async def fetch_attendance(self, query: FetchQuery) -> List[AttendanceRecord]:
        entries = await asyncio.to_thread(self._load, "attendance")
        rows = [attendance_row_from_log(entry) for entry in entries]
        records = [r for r in RecordCleaner(self.zone).attendance_records(rows) if query.admits(r)]
        logger.debug("Fetched attendance from activity log", entries=len(entries), records=len(records))
        return records


# =============================================================================
# FALLBACK CHAIN
# =============================================================================

@dataclass
class FetchResult:
    """Snapshot delivered by the first source that succeeded"""
    source: str
    degraded: bool
    capabilities: SourceCapabilities
    sales: List[SalesRecord] = field(default_factory=list)
    attendance: List[AttendanceRecord] = field(default_factory=list)


class SourceChain:
    """
    Tries each source in order until one delivers.

    A source that raises is logged and skipped; a snapshot from any source
    but the first is marked degraded. When every source fails the chain
    raises RecordSourceUnavailable.
    """

    def __init__(self, sources: Sequence[RecordSource]):
        if not sources:
            raise ValueError("SourceChain needs at least one source")
        self.sources = list(sources)

    async def fetch(
        self,
        query: FetchQuery,
        sales: bool = True,
        attendance: bool = False,
    ) -> FetchResult:
        failures: Dict[str, str] = {}

        for index, source in enumerate(self.sources):
            try:
                result = FetchResult(
                    source=source.name,
                    degraded=index > 0,
                    capabilities=source.capabilities,
                )
                if sales:
                    result.sales = await source.fetch_sales(query)
                if attendance:
                    result.attendance = await source.fetch_attendance(query)
            except Exception as e:
                failures[source.name] = str(e)
                logger.warning(
                    "Record source failed, trying next",
                    source=source.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if result.degraded:
                logger.warning("Serving from fallback record source", source=source.name, failed=list(failures))
            return result

        logger.error("All record sources failed", failures=failures)
        raise RecordSourceUnavailable(failures)
