"""
Attendance Report

Per-employee attendance sheet: one row for every day the ranges cover,
present or absent, with the first check-in, last check-out, store and
working hours. Rows are grouped by month and paged one month at a time.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

import structlog

from fieldsales.analytics.calendar import Granularity, ZoneLike, period_key, zoned_parts
from fieldsales.analytics.filters import RecordFilter, format_time_of_day
from fieldsales.analytics.metrics import ratio_percent, safe_divide
from fieldsales.analytics.ranges import (
    ENGLISH_MONTHS,
    THAI_MONTHS,
    DateRange,
    display_year,
    expand_dates,
    format_day_label,
    range_summary,
    weekday_name,
)
from fieldsales.analytics.records import AttendanceRecord
from fieldsales.errors import ReportValidationError
from fieldsales.reporting.common import echo_ranges, money, paginate, utc_now
from fieldsales.reporting.roi import AttendanceDay, attendance_days, summarize_attendance
from fieldsales.reporting.schemas import (
    AttendanceDayRow,
    AttendanceMonth,
    AttendanceReport,
    AttendanceReportFilters,
    AttendanceReportSummary,
    SourceInfo,
)

logger = structlog.get_logger(__name__)

PRESENT = "present"
ABSENT = "absent"


@dataclass(frozen=True)
class AttendanceReportQuery:
    employee_name: str
    ranges: Sequence[DateRange]
    employee_id: Optional[str] = None
    store: Optional[str] = None
    page: int = 1


def month_label(value: date, locale: str = "th") -> str:
    """Full month name and year, e.g. ``มกราคม 2568``"""
    names = THAI_MONTHS if locale == "th" else ENGLISH_MONTHS
    return f"{names[value.month - 1]} {display_year(value.year, locale)}"


def _local_time(instant: Optional[datetime], zone: ZoneLike) -> Optional[str]:
    if instant is None:
        return None
    return format_time_of_day(zoned_parts(instant, zone).minute_of_day)


def _day_row(value: date, day: Optional[AttendanceDay], zone: ZoneLike, locale: str) -> AttendanceDayRow:
    present = day is not None and (day.check_in is not None or day.check_out is not None)
    hours = day.hours if present else None
    return AttendanceDayRow(
        day_key=value.isoformat(),
        label=format_day_label(value, locale),
        weekday=weekday_name(value, locale),
        status=PRESENT if present else ABSENT,
        store_name=(day.store_name or None) if present else None,
        check_in_time=_local_time(day.check_in, zone) if present else None,
        check_out_time=_local_time(day.check_out, zone) if present else None,
        working_hours=money(hours) if hours is not None else None,
    )


def build_attendance_report(
    attendance: Sequence[AttendanceRecord],
    query: AttendanceReportQuery,
    zone: ZoneLike,
    locale: str = "th",
    source: Optional[SourceInfo] = None,
    generated_at: Optional[datetime] = None,
) -> AttendanceReport:
    """Assemble the attendance sheet of one employee"""
    if not query.employee_name or not query.employee_name.strip():
        raise ReportValidationError("Attendance report requires an employee")

    records = RecordFilter(
        ranges=query.ranges, employee=query.employee_name, store=query.store
    ).apply(attendance, zone)
    days = attendance_days(records)

    rows_by_month: Dict[str, List[AttendanceDayRow]] = {}
    first_days: Dict[str, date] = {}
    for value in expand_dates(query.ranges):
        key = period_key(value, Granularity.MONTH)
        first_days.setdefault(key, value)
        rows_by_month.setdefault(key, []).append(_day_row(value, days.get(value.isoformat()), zone, locale))

    months = [
        AttendanceMonth(
            month_key=key,
            label=month_label(first_days[key], locale),
            year=first_days[key].year,
            month=first_days[key].month,
            row_count=len(rows),
            present_days=sum(1 for row in rows if row.status == PRESENT),
        )
        for key, rows in sorted(rows_by_month.items())
    ]
    page = paginate(months, query.page, 1)
    current = page.items[0] if page.items else None

    total_days = sum(month.row_count for month in months)
    present_days = sum(month.present_days for month in months)
    presence = summarize_attendance(records)

    logger.info(
        "Attendance report assembled",
        employee=query.employee_name,
        days=total_days,
        present_days=present_days,
        months=len(months),
    )

    return AttendanceReport(
        filters=AttendanceReportFilters(
            employee_id=query.employee_id,
            employee_name=query.employee_name,
            store=query.store or None,
            ranges=echo_ranges(query.ranges),
            range_summary=range_summary(query.ranges),
        ),
        summary=AttendanceReportSummary(
            total_days=total_days,
            present_days=present_days,
            absent_days=total_days - present_days,
            attendance_rate=money(ratio_percent(present_days, total_days)),
            fully_attended_days=presence.fully_attended_days,
            total_hours=money(presence.total_hours),
            avg_hours_per_day=money(safe_divide(presence.total_hours, presence.fully_attended_days)),
        ),
        current_month=current,
        months=months,
        rows=rows_by_month[current.month_key] if current else [],
        pagination=page.info,
        source=source or SourceInfo(name="snapshot"),
        generated_at=generated_at or utc_now(),
    )
