"""
Report Service

Async entry point for every report. Resolves ids through the directory,
fetches one record snapshot from the source chain, and hands it to the
matching report builder. A request can be cancelled through an
``asyncio.Event``; cancellation is honoured up to the moment aggregation
starts.
"""

import asyncio
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from operator import attrgetter
from typing import Callable, List, Optional, Sequence

import structlog

from fieldsales.analytics import calendar
from fieldsales.analytics.ranges import DateRange, DateRangeInput, normalize_ranges
from fieldsales.config.settings import ReportingSettings
from fieldsales.database.directory import Directory
from fieldsales.errors import (
    EmployeeNotFound,
    RecordSourceUnavailable,
    ReportCancelled,
    ReportValidationError,
)
from fieldsales.ingestion.sources import FetchQuery, FetchResult, SourceChain
from fieldsales.reporting.attendance import AttendanceReportQuery, build_attendance_report
from fieldsales.reporting.common import source_info, utc_now
from fieldsales.reporting.comparison import ComparisonQuery, build_sales_comparison
from fieldsales.reporting.dashboard import DashboardConfig, DashboardQuery, build_dashboard, fetch_span
from fieldsales.reporting.products import ProductReportQuery, build_product_report
from fieldsales.reporting.roi import ExpensePlan, RoiConfig, RoiQuery, build_roi_report
from fieldsales.reporting.sales_report import SalesReportQuery, build_sales_report
from fieldsales.reporting.schemas import (
    AttendanceReport,
    DashboardSnapshot,
    ProductSalesReport,
    RoiReport,
    SalesComparisonReport,
    SalesReport,
)

logger = structlog.get_logger(__name__)


def _check_cancelled(cancel: Optional[asyncio.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        logger.info("Report request cancelled", stage=stage)
        raise ReportCancelled(f"Report request cancelled {stage}")


def _span(ranges: Sequence[DateRange]):
    return min(r.first_day for r in ranges), max(r.last_day for r in ranges)


def _month_of(ranges: Sequence[DateRange]) -> str:
    return ranges[0].first_day.strftime("%Y-%m")


class ReportService:
    """
    Builds reports from a SourceChain snapshot.

    Example:
        service = ReportService(chain, directory, settings.reporting)
        report = await service.sales_report(SalesReportQuery(ranges=service.ranges(None)))
    """

    def __init__(
        self,
        sources: SourceChain,
        directory: Optional[Directory] = None,
        settings: Optional[ReportingSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.sources = sources
        self.directory = directory
        self.settings = settings or ReportingSettings()
        self._clock = clock

    @property
    def zone(self):
        return self.settings.zone

    @property
    def locale(self) -> str:
        return self.settings.label_locale

    def today(self) -> date:
        return calendar.today(self.zone, self._clock())

    def ranges(self, inputs: Optional[Sequence[DateRangeInput]]) -> List[DateRange]:
        """Normalize request ranges, falling back to the trailing default window"""
        return normalize_ranges(
            inputs,
            self.zone,
            today=self.today(),
            locale=self.locale,
            default_days=self.settings.default_range_days,
        )

    @property
    def dashboard_config(self) -> DashboardConfig:
        return DashboardConfig(
            locale=self.locale,
            lookback_days=self.settings.dashboard_lookback_days,
            timeline_days=self.settings.performance_timeline_days,
            sales_drop_alert_percent=self.settings.sales_drop_alert_percent,
            checkin_drop_alert_percent=self.settings.checkin_drop_alert_percent,
        )

    @property
    def roi_config(self) -> RoiConfig:
        return RoiConfig(
            locale=self.locale,
            daily_allowance=Decimal(str(self.settings.daily_allowance)),
            profit_margin=Decimal(str(self.settings.estimated_profit_margin)),
            top_products=self.settings.top_products,
        )

    # =========================================================================
    # DIRECTORY
    # =========================================================================

    def _directory(self) -> Directory:
        if self.directory is None:
            raise RecordSourceUnavailable({"directory": "not configured"})
        return self.directory

    async def resolve_employee(self, employee_id: Optional[str]) -> Optional[str]:
        """Employee name for ``employee_id``; None when no id was given"""
        if not employee_id:
            return None
        name = await self._directory().employee_name(employee_id)
        if not name:
            raise EmployeeNotFound(employee_id)
        return name

    async def resolve_store(self, store_id: Optional[str]) -> Optional[str]:
        if not store_id:
            return None
        name = await self._directory().store_name(store_id)
        if not name:
            raise ReportValidationError(f"Store not found: {store_id}")
        return name

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    async def _fetch(
        self,
        first_day: date,
        last_day: date,
        employee: Optional[str] = None,
        store: Optional[str] = None,
        attendance: bool = False,
        cancel: Optional[asyncio.Event] = None,
        sales: bool = True,
    ) -> FetchResult:
        _check_cancelled(cancel, "before fetch")
        result = await self.sources.fetch(
            FetchQuery(first_day=first_day, last_day=last_day, employee=employee, store=store),
            sales=sales,
            attendance=attendance,
        )
        _check_cancelled(cancel, "before aggregation")

        result.sales = sorted(result.sales, key=attrgetter("timestamp"))
        result.attendance = sorted(result.attendance, key=attrgetter("timestamp"))
        logger.debug(
            "Snapshot fetched",
            source=result.source,
            degraded=result.degraded,
            first_day=first_day.isoformat(),
            last_day=last_day.isoformat(),
            sales=len(result.sales),
            attendance=len(result.attendance),
        )
        return result

    @staticmethod
    def _source(result: FetchResult):
        return source_info(result.source, result.degraded, result.capabilities.unit_granularity)

    def _validate_page(self, page: int, page_size: int) -> None:
        settings = self.settings
        if not 1 <= page <= settings.max_page:
            raise ReportValidationError(f"page must be between 1 and {settings.max_page}, got {page}")
        if not settings.min_page_size <= page_size <= settings.max_page_size:
            raise ReportValidationError(
                f"page_size must be between {settings.min_page_size} and {settings.max_page_size}, got {page_size}"
            )

    # =========================================================================
    # REPORTS
    # =========================================================================

    async def dashboard(self, query: DashboardQuery, cancel: Optional[asyncio.Event] = None) -> DashboardSnapshot:
        today = self.today()
        config = self.dashboard_config
        first_day, last_day = fetch_span(query, today, config)

        result = await self._fetch(
            first_day, last_day, query.employee, query.store, attendance=True, cancel=cancel
        )
        return build_dashboard(
            result.sales,
            result.attendance,
            query,
            self.zone,
            today,
            config,
            source=self._source(result),
            generated_at=self._clock(),
        )

    async def sales_report(
        self,
        query: SalesReportQuery,
        employee_id: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> SalesReport:
        """
        Grouped sales report.

        With an ``employee_id`` the employee filter is resolved by id and,
        unless the query carries a target, the employee's monthly target for
        the month of the first range is attached.
        """
        self._validate_page(query.page, query.page_size)

        if employee_id:
            employee = await self.resolve_employee(employee_id)
            target = query.target
            if target is None and self.directory is not None:
                target = await self.directory.monthly_target(employee_id, _month_of(query.ranges))
            query = replace(query, employee=employee, target=target)

        first_day, last_day = _span(query.ranges)
        result = await self._fetch(first_day, last_day, query.employee, query.store, cancel=cancel)
        return build_sales_report(
            result.sales,
            query,
            self.zone,
            self.locale,
            source=self._source(result),
            generated_at=self._clock(),
        )

    async def sales_comparison(
        self,
        query: ComparisonQuery,
        cancel: Optional[asyncio.Event] = None,
    ) -> SalesComparisonReport:
        query = query.validated()
        window = query.date_range(self.zone, self.locale)

        result = await self._fetch(window.first_day, window.last_day, query.employee, query.store, cancel=cancel)
        return build_sales_comparison(
            result.sales,
            query,
            self.zone,
            self.locale,
            source=self._source(result),
            generated_at=self._clock(),
        )

    async def roi(
        self,
        employee_id: Optional[str],
        ranges: Sequence[DateRange],
        store: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> RoiReport:
        """ROI report for one employee; the expense plan is the one for the first range's month"""
        if not employee_id:
            raise ReportValidationError("ROI report requires employee_id")

        employee = await self.resolve_employee(employee_id)
        plan = ExpensePlan()
        if self.directory is not None:
            plan = await self.directory.expense_plan(employee_id, _month_of(ranges))

        query = RoiQuery(
            employee_name=employee,
            ranges=ranges,
            employee_id=employee_id,
            store=store,
            expenses=plan,
        )
        first_day, last_day = _span(ranges)
        result = await self._fetch(first_day, last_day, employee, store, attendance=True, cancel=cancel)
        return build_roi_report(
            result.sales,
            result.attendance,
            query,
            self.zone,
            self.roi_config,
            source=self._source(result),
            generated_at=self._clock(),
        )

    async def products(
        self,
        query: ProductReportQuery,
        cancel: Optional[asyncio.Event] = None,
    ) -> ProductSalesReport:
        first_day, last_day = _span(query.ranges)
        # Multi-select filters cannot be pushed to a single-name fetch
        employee = query.employees[0] if len(query.employees) == 1 else None
        store = query.stores[0] if len(query.stores) == 1 else None

        result = await self._fetch(first_day, last_day, employee, store, cancel=cancel)
        return build_product_report(
            result.sales,
            query,
            self.zone,
            self.locale,
            source=self._source(result),
            generated_at=self._clock(),
        )

    async def attendance_report(
        self,
        employee_id: Optional[str],
        ranges: Sequence[DateRange],
        store: Optional[str] = None,
        page: int = 1,
        cancel: Optional[asyncio.Event] = None,
    ) -> AttendanceReport:
        """Attendance sheet for one employee, one month per page"""
        if not employee_id:
            raise ReportValidationError("Attendance report requires employee_id")
        if not 1 <= page <= self.settings.max_page:
            raise ReportValidationError(f"page must be between 1 and {self.settings.max_page}, got {page}")

        employee = await self.resolve_employee(employee_id)
        query = AttendanceReportQuery(
            employee_name=employee,
            ranges=ranges,
            employee_id=employee_id,
            store=store,
            page=page,
        )
        first_day, last_day = _span(ranges)
        result = await self._fetch(
            first_day, last_day, employee, store, attendance=True, cancel=cancel, sales=False
        )
        return build_attendance_report(
            result.attendance,
            query,
            self.zone,
            self.locale,
            source=self._source(result),
            generated_at=self._clock(),
        )
