"""
ROI Report

Single-employee return on investment: sales totals against an expense plan
plus a daily attendance allowance, work efficiency from check-in/check-out
pairs, a zero-filled daily trend and the top products by revenue.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from fieldsales.analytics.aggregator import (
    PRODUCT,
    STORE,
    UNIT,
    aggregate,
    build_time_buckets,
)
from fieldsales.analytics.filters import RecordFilter
from fieldsales.analytics.calendar import ZoneLike
from fieldsales.analytics.metrics import ratio_percent, roi, safe_divide, top_n
from fieldsales.analytics.ranges import DateRange, format_day_label, range_summary
from fieldsales.analytics.records import AttendanceRecord, SalesRecord, to_decimal
from fieldsales.errors import ReportValidationError
from fieldsales.reporting.common import dimension_rows, echo_ranges, money, ticket, utc_now
from fieldsales.reporting.schemas import (
    ExpenseLine,
    RoiBreakdowns,
    RoiFilters,
    RoiReport,
    RoiSummary,
    RoiTrendPoint,
    SourceInfo,
    TopProduct,
    WorkEfficiency,
)

logger = structlog.get_logger(__name__)

SECONDS_PER_HOUR = Decimal(3600)


@dataclass(frozen=True)
class ExpenseItem:
    label: str
    amount: Decimal


@dataclass(frozen=True)
class ExpensePlan:
    """Externally supplied expenses for the reporting period"""
    baseline: Decimal = Decimal(0)
    items: Tuple[ExpenseItem, ...] = ()


@dataclass(frozen=True)
class RoiQuery:
    employee_name: str
    ranges: Sequence[DateRange]
    employee_id: Optional[str] = None
    store: Optional[str] = None
    expenses: ExpensePlan = field(default_factory=ExpensePlan)


@dataclass(frozen=True)
class RoiConfig:
    locale: str = "th"
    daily_allowance: Decimal = Decimal(150)
    profit_margin: Decimal = Decimal("0.30")
    top_products: int = 5


@dataclass
class AttendanceDay:
    """Earliest check-in and latest check-out of one local day"""
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    store_name: str = ""

    @property
    def hours(self) -> Optional[Decimal]:
        """Span in hours when both events exist and it lies strictly within (0, 24)"""
        if self.check_in is None or self.check_out is None:
            return None
        hours = Decimal(str((self.check_out - self.check_in).total_seconds())) / SECONDS_PER_HOUR
        return hours if 0 < hours < 24 else None


@dataclass(frozen=True)
class AttendanceSummary:
    working_days: int
    fully_attended_days: int
    total_hours: Decimal
    working_day_keys: frozenset


def attendance_days(records: Sequence[AttendanceRecord]) -> Dict[str, AttendanceDay]:
    """Group events by day key; the store is the first one seen that day"""
    days: Dict[str, AttendanceDay] = {}
    for record in records:
        day = days.setdefault(record.day_key, AttendanceDay())
        if not day.store_name and record.store_name:
            day.store_name = record.store_name
        if record.is_check_in:
            if day.check_in is None or record.timestamp < day.check_in:
                day.check_in = record.timestamp
        elif record.is_check_out:
            if day.check_out is None or record.timestamp > day.check_out:
                day.check_out = record.timestamp
    return days


def summarize_attendance(records: Sequence[AttendanceRecord]) -> AttendanceSummary:
    """
    Per-day attendance span.

    A day with a check-in is a working day. Hours count only on days with
    both events and a span strictly between 0 and 24 hours, measured from
    the earliest check-in to the latest check-out.
    """
    days = attendance_days(records)

    working = frozenset(key for key, day in days.items() if day.check_in is not None)
    fully_attended = 0
    total_hours = Decimal(0)
    for day in days.values():
        if day.check_in is None or day.check_out is None:
            continue
        fully_attended += 1
        total_hours += day.hours or Decimal(0)

    return AttendanceSummary(
        working_days=len(working),
        fully_attended_days=fully_attended,
        total_hours=total_hours,
        working_day_keys=working,
    )


def expense_lines(plan: ExpensePlan, allowance: Decimal, allowance_days: int, total: Decimal) -> List[ExpenseLine]:
    """Plan items plus the allowance line, largest amount first"""
    lines = [(item.label, to_decimal(item.amount)) for item in plan.items]
    if allowance > 0:
        lines.append((f"เบี้ยเลี้ยง ({allowance_days} วัน)", allowance))
    lines.sort(key=lambda line: line[1], reverse=True)
    return [
        ExpenseLine(label=label, amount=money(amount), percent=money(ratio_percent(amount, total)))
        for label, amount in lines
    ]


def build_roi_report(
    sales: Sequence[SalesRecord],
    attendance: Sequence[AttendanceRecord],
    query: RoiQuery,
    zone: ZoneLike,
    config: RoiConfig = RoiConfig(),
    source: Optional[SourceInfo] = None,
    generated_at: Optional[datetime] = None,
) -> RoiReport:
    """Assemble the ROI report for one employee"""
    if not query.employee_name or not query.employee_name.strip():
        raise ReportValidationError("ROI report requires an employee")

    record_filter = RecordFilter(ranges=query.ranges, employee=query.employee_name, store=query.store)
    filtered_sales = record_filter.apply(sales, zone)
    filtered_attendance = RecordFilter(ranges=query.ranges, employee=query.employee_name).apply(attendance, zone)

    result = aggregate(
        filtered_sales,
        build_time_buckets(query.ranges),
        [PRODUCT, STORE, UNIT],
    )
    total = result.total()
    presence = summarize_attendance(filtered_attendance)

    allowance = to_decimal(config.daily_allowance) * presence.fully_attended_days
    total_expenses = to_decimal(query.expenses.baseline) + allowance
    metrics = roi(total.revenue_sum, total_expenses)
    margin = to_decimal(config.profit_margin)

    # spread over working days, or over every day when nobody checked in
    if presence.working_days:
        expense_days = presence.working_day_keys
    else:
        expense_days = frozenset(bucket.key for bucket in result.timeline)
    daily_expense = total_expenses / (len(expense_days) or 1)
    timeline = []
    for bucket in result.timeline:
        expenses = daily_expense if bucket.key in expense_days else Decimal(0)
        profit = bucket.cell.revenue_sum * margin
        timeline.append(
            RoiTrendPoint(
                day_key=bucket.key,
                label=format_day_label(bucket.first_day, config.locale),
                sales=money(bucket.cell.revenue_sum),
                transactions=bucket.cell.count,
                estimated_profit=money(profit),
                expenses=money(expenses),
                net=money(bucket.cell.revenue_sum - expenses),
            )
        )

    top_products = []
    for key, cell in top_n(result.by_dimension[PRODUCT.name], config.top_products):
        code, _, name = key.partition("::")
        top_products.append(
            TopProduct(
                product_code=code,
                product_name=name,
                quantity=money(cell.quantity_sum),
                revenue=money(cell.revenue_sum),
                estimated_profit=money(cell.revenue_sum * margin),
                share_percent=money(ratio_percent(cell.revenue_sum, total.revenue_sum)),
            )
        )

    logger.info(
        "ROI report assembled",
        employee=query.employee_name,
        total_sales=str(total.revenue_sum),
        total_expenses=str(total_expenses),
        working_days=presence.working_days,
    )

    return RoiReport(
        filters=RoiFilters(
            employee_id=query.employee_id,
            employee_name=query.employee_name,
            store=query.store or None,
            ranges=echo_ranges(query.ranges),
            range_summary=range_summary(query.ranges),
        ),
        summary=RoiSummary(
            total_sales=money(metrics.total_sales),
            total_expenses=money(metrics.total_expenses),
            net_profit=money(metrics.net_profit),
            roi_percent=money(metrics.roi_percent),
            revenue_per_expense=money(metrics.revenue_per_expense),
            expense_ratio=money(metrics.expense_ratio),
            transactions=total.count,
            quantity=money(total.quantity_sum),
            average_ticket=money(ticket(total)),
            estimated_profit=money(total.revenue_sum * margin),
        ),
        expenses=expense_lines(query.expenses, allowance, presence.fully_attended_days, total_expenses),
        work_efficiency=WorkEfficiency(
            working_days=presence.working_days,
            fully_attended_days=presence.fully_attended_days,
            total_hours=money(presence.total_hours),
            avg_hours_per_day=money(safe_divide(presence.total_hours, presence.working_days)),
            avg_revenue_per_day=money(safe_divide(total.revenue_sum, presence.working_days)),
            avg_revenue_per_hour=money(safe_divide(total.revenue_sum, presence.total_hours)),
        ),
        breakdowns=RoiBreakdowns(
            by_store=dimension_rows(result.by_dimension[STORE.name]),
            by_unit=dimension_rows(result.by_dimension[UNIT.name]),
        ),
        timeline=timeline,
        top_products=top_products,
        source=source or SourceInfo(name="snapshot"),
        generated_at=generated_at or utc_now(),
    )
