"""
API Dependencies

Report service wiring, request-scoped cancellation and error mapping
shared by the report routes.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import HTTPException, Request
import structlog

from fieldsales.analytics.ranges import DateRangeInput
from fieldsales.config import Settings
from fieldsales.database.connection import get_session_factory
from fieldsales.database.directory import DatabaseDirectory
from fieldsales.errors import ReportError
from fieldsales.ingestion.sources import DatabaseRecordSource, EventLogSource, SourceChain
from fieldsales.reporting.service import ReportService

logger = structlog.get_logger(__name__)

DISCONNECT_POLL_SECONDS = 0.25


def build_report_service(settings: Settings) -> ReportService:
    """
    Report service over the database with the activity log as fallback.

    When the database is not initialized only the activity log is used and
    id lookups are unavailable.
    """
    reporting = settings.reporting
    zone = reporting.zone
    sources = []
    directory = None

    try:
        factory = get_session_factory()
    except RuntimeError:
        logger.warning("Database not initialized, serving reports from the activity log only")
    else:
        sources.append(DatabaseRecordSource(factory, zone))
        directory = DatabaseDirectory(factory)

    sources.append(EventLogSource(reporting.event_log_path, zone))
    return ReportService(SourceChain(sources), directory, reporting)


def get_report_service(request: Request) -> ReportService:
    service = getattr(request.app.state, "report_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Report service not ready")
    return service


def parse_ranges(values: Optional[List[str]]) -> List[DateRangeInput]:
    """Repeated ``range=START[:END]`` parameters"""
    return [DateRangeInput.from_param(value) for value in values or [] if value]


def http_error(error: ReportError) -> HTTPException:
    headers = {"Retry-After": "30"} if error.retryable else None
    if error.status_code >= 500:
        logger.error("Report failed", error=error.message, status_code=error.status_code)
    else:
        logger.info("Report rejected", error=error.message, status_code=error.status_code)
    return HTTPException(status_code=error.status_code, detail=error.message, headers=headers)


@asynccontextmanager
async def cancel_on_disconnect(request: Request) -> AsyncIterator[asyncio.Event]:
    """Event that is set once the client goes away"""
    cancel = asyncio.Event()

    async def watch() -> None:
        while not cancel.is_set():
            if await request.is_disconnected():
                logger.info("Client disconnected", path=request.url.path)
                cancel.set()
                return
            await asyncio.sleep(DISCONNECT_POLL_SECONDS)

    watcher = asyncio.create_task(watch())
    try:
        yield cancel
    finally:
        watcher.cancel()
