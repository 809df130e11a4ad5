"""
Dashboard API Endpoints

Live KPI snapshot for the admin dashboard.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
import structlog

from fieldsales.errors import ReportError
from fieldsales.reporting.dashboard import DashboardQuery
from fieldsales.reporting.schemas import DashboardSnapshot
from fieldsales.reporting.service import ReportService
from fieldsales.serving.api.dependencies import cancel_on_disconnect, get_report_service, http_error

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/snapshot", response_model=DashboardSnapshot)
async def get_dashboard_snapshot(
    request: Request,
    range_mode: str = Query("month", description="day, week, month or year"),
    range_value: Optional[str] = Query(None, description="YYYY-MM-DD, YYYY-MM or YYYY depending on mode"),
    store_id: Optional[str] = None,
    employee_id: Optional[str] = None,
    store: Optional[str] = Query(None, description="Store name; ignored when store_id is given"),
    employee: Optional[str] = Query(None, description="Employee name; ignored when employee_id is given"),
    attendance_status: Optional[str] = Query(None, description="check-in, check-out or all"),
    sales_status: Optional[str] = None,
    time_from: Optional[str] = Query(None, description="HH:MM"),
    time_to: Optional[str] = Query(None, description="HH:MM"),
    service: ReportService = Depends(get_report_service),
) -> DashboardSnapshot:
    """
    Dashboard snapshot: KPIs against the previous window, daily timelines,
    store, employee and status breakdowns, alerts and the rolling performance
    timeline.
    """
    logger.info("get_dashboard_snapshot called", range_mode=range_mode, range_value=range_value)

    try:
        query = DashboardQuery(
            range_mode=range_mode,
            range_value=range_value,
            store=await service.resolve_store(store_id) or store,
            employee=await service.resolve_employee(employee_id) or employee,
            attendance_status=attendance_status,
            sales_status=sales_status,
            time_from=time_from,
            time_to=time_to,
        )
        async with cancel_on_disconnect(request) as cancel:
            return await service.dashboard(query, cancel=cancel)
    except ReportError as e:
        raise http_error(e) from e
