"""
Report API Endpoints

Sales, sales-comparison, ROI, product and attendance reports. Date ranges
are passed as repeated ``range=YYYY-MM-DD:YYYY-MM-DD`` parameters; without
any the trailing default window is used.
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
import structlog

from fieldsales.errors import ReportError
from fieldsales.reporting.comparison import ComparisonQuery
from fieldsales.reporting.products import ProductReportQuery
from fieldsales.reporting.sales_report import SalesReportQuery, parse_group_by
from fieldsales.reporting.schemas import (
    AttendanceReport,
    ProductSalesReport,
    RoiReport,
    SalesComparisonReport,
    SalesReport,
)
from fieldsales.reporting.service import ReportService
from fieldsales.serving.api.dependencies import (
    cancel_on_disconnect,
    get_report_service,
    http_error,
    parse_ranges,
)

router = APIRouter()
logger = structlog.get_logger(__name__)

RANGE_DESCRIPTION = "YYYY-MM-DD:YYYY-MM-DD, repeatable"


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    request: Request,
    ranges: Optional[List[str]] = Query(None, alias="range", description=RANGE_DESCRIPTION),
    group_by: str = Query("detail", description="detail, daily, monthly, quarterly or yearly"),
    employee_id: Optional[str] = None,
    employee: Optional[str] = Query(None, description="Employee name; ignored when employee_id is given"),
    store: Optional[str] = None,
    status: Optional[str] = None,
    time_from: Optional[str] = Query(None, description="HH:MM"),
    time_to: Optional[str] = Query(None, description="HH:MM"),
    page: int = Query(1, ge=1, le=1000),
    page_size: int = Query(20, ge=10, le=200),
    show_all_days: bool = False,
    target: Optional[float] = Query(None, ge=0, description="Revenue target for achievement percent"),
    service: ReportService = Depends(get_report_service),
) -> SalesReport:
    """Sales report grouped per product, store and period, paginated."""
    logger.info("get_sales_report called", group_by=group_by, page=page, page_size=page_size)

    try:
        query = SalesReportQuery(
            ranges=service.ranges(parse_ranges(ranges)),
            group_by=parse_group_by(group_by),
            employee=employee,
            store=store,
            status=status,
            time_from=time_from,
            time_to=time_to,
            page=page,
            page_size=page_size,
            show_all_days=show_all_days,
            target=Decimal(str(target)) if target is not None else None,
        )
        async with cancel_on_disconnect(request) as cancel:
            return await service.sales_report(query, employee_id=employee_id, cancel=cancel)
    except ReportError as e:
        raise http_error(e) from e


@router.get("/sales-comparison", response_model=SalesComparisonReport)
async def get_sales_comparison(
    request: Request,
    year: int = Query(..., description="Calendar or Buddhist-era year"),
    start_month: int = Query(1, ge=1, le=12),
    end_month: int = Query(12, ge=1, le=12),
    employee_id: Optional[str] = None,
    employee: Optional[str] = None,
    store: Optional[str] = None,
    service: ReportService = Depends(get_report_service),
) -> SalesComparisonReport:
    """Month-by-month product comparison for one year."""
    logger.info("get_sales_comparison called", year=year, start_month=start_month, end_month=end_month)

    try:
        query = ComparisonQuery(
            year=year,
            start_month=start_month,
            end_month=end_month,
            employee=await service.resolve_employee(employee_id) or employee,
            store=store,
        )
        async with cancel_on_disconnect(request) as cancel:
            return await service.sales_comparison(query, cancel=cancel)
    except ReportError as e:
        raise http_error(e) from e


@router.get("/roi", response_model=RoiReport)
async def get_roi_report(
    request: Request,
    employee_id: str = Query(..., description="Employee to report on"),
    ranges: Optional[List[str]] = Query(None, alias="range", description=RANGE_DESCRIPTION),
    store: Optional[str] = None,
    service: ReportService = Depends(get_report_service),
) -> RoiReport:
    """Return on investment of one employee."""
    logger.info("get_roi_report called", employee_id=employee_id)

    try:
        date_ranges = service.ranges(parse_ranges(ranges))
        async with cancel_on_disconnect(request) as cancel:
            return await service.roi(employee_id, date_ranges, store=store, cancel=cancel)
    except ReportError as e:
        raise http_error(e) from e


@router.get("/products", response_model=ProductSalesReport)
async def get_product_report(
    request: Request,
    ranges: Optional[List[str]] = Query(None, alias="range", description=RANGE_DESCRIPTION),
    employees: Optional[List[str]] = Query(None, alias="employee", description="Employee name, repeatable"),
    stores: Optional[List[str]] = Query(None, alias="store", description="Store name, repeatable"),
    service: ReportService = Depends(get_report_service),
) -> ProductSalesReport:
    """Per-product unit mix, store breakdown and best sellers."""
    logger.info("get_product_report called", employees=employees, stores=stores)

    try:
        query = ProductReportQuery(
            ranges=service.ranges(parse_ranges(ranges)),
            employees=tuple(name for name in employees or [] if name.strip()),
            stores=tuple(name for name in stores or [] if name.strip()),
        )
        async with cancel_on_disconnect(request) as cancel:
            return await service.products(query, cancel=cancel)
    except ReportError as e:
        raise http_error(e) from e


@router.get("/attendance", response_model=AttendanceReport)
async def get_attendance_report(
    request: Request,
    employee_id: str = Query(..., description="Employee to report on"),
    ranges: Optional[List[str]] = Query(None, alias="range", description=RANGE_DESCRIPTION),
    store_id: Optional[str] = None,
    page: int = Query(1, description="Month page, 1-based"),
    service: ReportService = Depends(get_report_service),
) -> AttendanceReport:
    """Daily attendance sheet of one employee, one month per page."""
    logger.info("get_attendance_report called", employee_id=employee_id, store_id=store_id, page=page)

    try:
        date_ranges = service.ranges(parse_ranges(ranges))
        store = await service.resolve_store(store_id)
        async with cancel_on_disconnect(request) as cancel:
            return await service.attendance_report(
                employee_id, date_ranges, store=store, page=page, cancel=cancel
            )
    except ReportError as e:
        raise http_error(e) from e
