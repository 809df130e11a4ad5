"""
Dashboard Snapshot

Compares the selected calendar window (day, week, month or year) with the
window immediately before it, raises drop alerts, and adds a rolling
performance timeline that always ends today.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple
import re

import structlog

from fieldsales.analytics.aggregator import (
    EMPLOYEE,
    STATUS,
    STORE,
    AggregationCell,
    AggregationResult,
    aggregate,
    build_time_buckets,
    status_key,
)
from fieldsales.analytics.calendar import Granularity, ZoneLike, add_days, add_months, parse_day_key, period_start
from fieldsales.analytics.filters import (
    RecordFilter,
    format_time_of_day,
    normalize_attendance_status,
    parse_time_of_day,
)
from fieldsales.analytics.metrics import derive, percent_change
from fieldsales.analytics.ranges import DateRange, build_range, format_day_label, format_period_label
from fieldsales.analytics.records import AttendanceRecord, AttendanceStatus, SalesRecord
from fieldsales.errors import ReportValidationError
from fieldsales.reporting.common import dimension_rows, money, ticket, timeline_points, utc_now
from fieldsales.reporting.schemas import (
    AttendancePoint,
    DashboardBreakdowns,
    DashboardFilters,
    DashboardSnapshot,
    DashboardSummary,
    KpiMetric,
    PerformancePoint,
    PerformanceRollup,
    SourceInfo,
)

logger = structlog.get_logger(__name__)

MONTH_VALUE = re.compile(r"^(\d{4})-(\d{1,2})$")
YEAR_VALUE = re.compile(r"^(\d{4})$")


class RangeMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class DashboardQuery:
    """Dashboard request parameters, already resolved to names"""
    range_mode: str = RangeMode.MONTH.value
    range_value: Optional[str] = None
    store: Optional[str] = None
    employee: Optional[str] = None
    attendance_status: Optional[str] = None
    sales_status: Optional[str] = None
    time_from: Optional[str] = None
    time_to: Optional[str] = None


@dataclass(frozen=True)
class DashboardConfig:
    locale: str = "th"
    lookback_days: int = 7
    timeline_days: int = 14
    sales_drop_alert_percent: float = -20.0
    checkin_drop_alert_percent: float = -15.0


@dataclass(frozen=True)
class DashboardWindow:
    """Current and previous inclusive day spans for a range mode"""
    mode: RangeMode
    value: str
    first_day: date
    last_day: date
    previous_first_day: date
    previous_last_day: date


def parse_range_mode(value: Optional[str]) -> RangeMode:
    if not value:
        return RangeMode.MONTH
    try:
        return RangeMode(value.strip().lower())
    except ValueError:
        allowed = [mode.value for mode in RangeMode]
        raise ReportValidationError(f"Unknown range mode '{value}', expected one of: {allowed}") from None


def resolve_window(mode: RangeMode, value: Optional[str], today: date) -> DashboardWindow:
    """
    Window for ``mode`` anchored on ``value``; an unusable value falls back
    to the period containing ``today``.
    """
    raw = (value or "").strip()

    if mode == RangeMode.YEAR:
        match = YEAR_VALUE.match(raw)
        year = int(match.group(1)) if match else today.year
        first, last = date(year, 1, 1), date(year, 12, 31)
        return DashboardWindow(mode, str(year), first, last, date(year - 1, 1, 1), date(year - 1, 12, 31))

    if mode == RangeMode.MONTH:
        match = MONTH_VALUE.match(raw)
        first = today.replace(day=1)
        if match and 1 <= int(match.group(2)) <= 12:
            first = date(int(match.group(1)), int(match.group(2)), 1)
        last = add_days(add_months(first, 1), -1)
        previous_first = add_months(first, -1)
        return DashboardWindow(
            mode, f"{first.year:04d}-{first.month:02d}", first, last, previous_first, add_days(first, -1)
        )

    anchor = parse_day_key(raw) or today
    if mode == RangeMode.WEEK:
        first = period_start(anchor, Granularity.WEEK)
        return DashboardWindow(
            mode, first.isoformat(), first, add_days(first, 6), add_days(first, -7), add_days(first, -1)
        )

    previous = add_days(anchor, -1)
    return DashboardWindow(mode, anchor.isoformat(), anchor, anchor, previous, previous)


def fetch_span(query: DashboardQuery, today: date, config: DashboardConfig) -> Tuple[date, date]:
    """Inclusive day span whose records a snapshot needs"""
    window = resolve_window(parse_range_mode(query.range_mode), query.range_value, today)
    timeline_start = add_days(today, -(config.timeline_days - 1))
    return min(window.previous_first_day, timeline_start), max(window.last_day, today)


def _kpi(current, previous) -> KpiMetric:
    metric = derive(current, previous)
    return KpiMetric(
        value=money(metric.value),
        previous_value=money(metric.previous_value),
        delta_percent=money(metric.delta_percent),
    )


def _attendance_counts(result: AggregationResult) -> Tuple[int, int, int]:
    """(check-ins, check-outs, distinct employees with a check-in)"""
    check_ins = check_outs = 0
    for bucket in result.timeline:
        check_ins += _segment_count(bucket.segments.get(AttendanceStatus.CHECK_IN.value))
        check_outs += _segment_count(bucket.segments.get(AttendanceStatus.CHECK_OUT.value))
    employees = result.segments.get(EMPLOYEE.name)
    active = 0
    if employees is not None:
        active = sum(
            1 for (_, status), cell in employees.items()
            if status == AttendanceStatus.CHECK_IN.value and cell.count > 0
        )
    return check_ins, check_outs, active


def _segment_count(cell: Optional[AggregationCell]) -> int:
    return cell.count if cell is not None else 0


def _attendance_status_key(record: AttendanceRecord) -> str:
    return AttendanceStatus(record.status).value


def build_dashboard(
    sales: Sequence[SalesRecord],
    attendance: Sequence[AttendanceRecord],
    query: DashboardQuery,
    zone: ZoneLike,
    today: date,
    config: DashboardConfig = DashboardConfig(),
    source: Optional[SourceInfo] = None,
    generated_at: Optional[datetime] = None,
) -> DashboardSnapshot:
    """Assemble the dashboard snapshot from a fetched record snapshot"""
    mode = parse_range_mode(query.range_mode)
    attendance_status = normalize_attendance_status(query.attendance_status)
    window = resolve_window(mode, query.range_value, today)
    locale = config.locale

    current_range = build_range(window.first_day, window.last_day, zone, locale)
    previous_range = build_range(window.previous_first_day, window.previous_last_day, zone, locale)
    time_from = parse_time_of_day(query.time_from)
    time_to = parse_time_of_day(query.time_to)

    def sales_filter(ranges: List[DateRange], with_status: bool = True) -> RecordFilter:
        return RecordFilter(
            ranges=ranges,
            employee=query.employee,
            store=query.store,
            status=query.sales_status if with_status else None,
            time_from=time_from,
            time_to=time_to,
        )

    def attendance_filter(ranges: List[DateRange]) -> RecordFilter:
        return RecordFilter(
            ranges=ranges,
            employee=query.employee,
            store=query.store,
            status=attendance_status,
            time_from=time_from,
            time_to=time_to,
        )

    # Buckets: daily, except a year window which is shown per month
    granularity = Granularity.MONTH if mode == RangeMode.YEAR else Granularity.DAY
    attendance_by_employee = EMPLOYEE.segmented(_attendance_status_key)

    current_sales = aggregate(
        sales_filter([current_range]).apply(sales, zone),
        build_time_buckets([current_range], granularity),
        [STORE, EMPLOYEE, STATUS],
        granularity=granularity,
    )
    previous_sales = aggregate(
        sales_filter([previous_range]).apply(sales, zone),
        build_time_buckets([previous_range], granularity),
        granularity=granularity,
    )
    current_attendance = aggregate(
        attendance_filter([current_range]).apply(attendance, zone),
        build_time_buckets([current_range], granularity),
        [attendance_by_employee],
        granularity=granularity,
        bucket_segment_fn=_attendance_status_key,
    )
    previous_attendance = aggregate(
        attendance_filter([previous_range]).apply(attendance, zone),
        build_time_buckets([previous_range], granularity),
        [attendance_by_employee],
        granularity=granularity,
        bucket_segment_fn=_attendance_status_key,
    )

    statuses = {status_key(record) for record in sales_filter([current_range], with_status=False).apply(sales, zone)}

    current_total = current_sales.total()
    previous_total = previous_sales.total()
    check_ins, check_outs, active = _attendance_counts(current_attendance)
    prev_check_ins, prev_check_outs, prev_active = _attendance_counts(previous_attendance)

    summary = DashboardSummary(
        revenue=_kpi(current_total.revenue_sum, previous_total.revenue_sum),
        transactions=_kpi(current_total.count, previous_total.count),
        quantity=_kpi(current_total.quantity_sum, previous_total.quantity_sum),
        average_ticket=_kpi(ticket(current_total), ticket(previous_total)),
        check_ins=_kpi(check_ins, prev_check_ins),
        check_outs=_kpi(check_outs, prev_check_outs),
        active_employees=_kpi(active, prev_active),
    )

    alerts = build_alerts(
        percent_change(current_total.revenue_sum, previous_total.revenue_sum),
        percent_change(check_ins, prev_check_ins),
        config,
    )

    performance, rollup = _performance_timeline(
        sales, attendance, sales_filter, attendance_filter, zone, today, config,
    )

    attendance_timeline = [
        AttendancePoint(
            key=bucket.key,
            label=format_period_label(granularity, bucket.first_day, bucket.last_day, locale),
            check_ins=_segment_count(bucket.segments.get(AttendanceStatus.CHECK_IN.value)),
            check_outs=_segment_count(bucket.segments.get(AttendanceStatus.CHECK_OUT.value)),
        )
        for bucket in current_attendance.timeline
    ]

    logger.info(
        "Dashboard snapshot assembled",
        mode=mode.value,
        value=window.value,
        transactions=current_total.count,
        check_ins=check_ins,
        alerts=len(alerts),
    )

    return DashboardSnapshot(
        filters=DashboardFilters(
            range_mode=mode.value,
            range_value=window.value,
            range_label=current_range.label,
            range_start=current_range.start,
            range_end=current_range.end,
            previous_range_start=previous_range.start,
            previous_range_end=previous_range.end,
            store=query.store or None,
            employee=query.employee or None,
            attendance_status=attendance_status.value if attendance_status else "all",
            sales_status=(query.sales_status or "").strip() or "all",
            time_from=format_time_of_day(time_from),
            time_to=format_time_of_day(time_to),
        ),
        summary=summary,
        alerts=alerts,
        breakdowns=DashboardBreakdowns(
            by_store=dimension_rows(current_sales.by_dimension[STORE.name]),
            by_employee=dimension_rows(current_sales.by_dimension[EMPLOYEE.name]),
            by_status=dimension_rows(current_sales.by_dimension[STATUS.name]),
        ),
        timeline=timeline_points(current_sales.timeline, granularity, locale),
        attendance_timeline=attendance_timeline,
        performance_timeline=performance,
        performance_rollup=rollup,
        available_statuses=sorted(statuses),
        source=source or SourceInfo(name="snapshot"),
        generated_at=generated_at or utc_now(),
    )


def build_alerts(sales_change, check_in_change, config: DashboardConfig) -> List[str]:
    alerts = []
    if sales_change < config.sales_drop_alert_percent:
        alerts.append(
            f"ยอดขายลดลงมากกว่า {abs(config.sales_drop_alert_percent):g}% เมื่อเทียบกับช่วงก่อนหน้า"
        )
    if check_in_change < config.checkin_drop_alert_percent:
        alerts.append(f"จำนวนการเช็กอินลดลงมากกว่า {abs(config.checkin_drop_alert_percent):g}%")
    return alerts


def _performance_timeline(sales, attendance, sales_filter, attendance_filter, zone, today, config):
    """Rolling daily series ending today, plus the latest-vs-previous lookback rollup"""
    timeline_range = build_range(add_days(today, -(config.timeline_days - 1)), today, zone, config.locale)

    sales_result = aggregate(
        sales_filter([timeline_range]).apply(sales, zone),
        build_time_buckets([timeline_range]),
    )
    attendance_result = aggregate(
        attendance_filter([timeline_range]).apply(attendance, zone),
        build_time_buckets([timeline_range]),
        bucket_segment_fn=_attendance_status_key,
    )

    points = []
    for sales_bucket, attendance_bucket in zip(sales_result.timeline, attendance_result.timeline):
        points.append(
            PerformancePoint(
                day_key=sales_bucket.key,
                label=format_day_label(sales_bucket.first_day, config.locale),
                revenue=money(sales_bucket.cell.revenue_sum),
                transactions=sales_bucket.cell.count,
                quantity=money(sales_bucket.cell.quantity_sum),
                check_ins=_segment_count(attendance_bucket.segments.get(AttendanceStatus.CHECK_IN.value)),
                check_outs=_segment_count(attendance_bucket.segments.get(AttendanceStatus.CHECK_OUT.value)),
            )
        )

    days = max(config.lookback_days, 0)
    current = points[-days:] if days else []
    previous = points[-2 * days:-days] if days else []
    current_revenue = sum(point.revenue for point in current)
    previous_revenue = sum(point.revenue for point in previous)
    current_check_ins = sum(point.check_ins for point in current)
    previous_check_ins = sum(point.check_ins for point in previous)

    rollup = PerformanceRollup(
        days=days,
        current_revenue=money(current_revenue),
        previous_revenue=money(previous_revenue),
        revenue_delta_percent=money(percent_change(current_revenue, previous_revenue)),
        current_check_ins=current_check_ins,
        previous_check_ins=previous_check_ins,
        check_ins_delta_percent=money(percent_change(current_check_ins, previous_check_ins)),
    )
    return points, rollup
