"""
Record Filtering

Selects the event records matching a range union plus optional employee,
store, status and time-of-day constraints. Text comparisons are
case-insensitive for every report.
"""

from dataclasses import dataclass
from typing import Collection, FrozenSet, Iterable, List, Optional, Sequence, TypeVar, Union
import re

from fieldsales.analytics.calendar import ZoneLike, zoned_parts
from fieldsales.analytics.ranges import DateRange, in_any_range
from fieldsales.analytics.records import AttendanceStatus
from fieldsales.errors import ReportValidationError

TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
ALL = "all"

R = TypeVar("R")


def parse_time_of_day(value: Optional[str]) -> Optional[int]:
    """``HH:MM`` to minutes after midnight; None when absent or invalid"""
    if not value:
        return None
    match = TIME_OF_DAY_PATTERN.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_time_of_day(minutes: Optional[int]) -> Optional[str]:
    if minutes is None:
        return None
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _fold(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    if not text or text.casefold() == ALL:
        return None
    return text.casefold()


def _fold_choices(value: Union[str, Collection[str], None]) -> Optional[FrozenSet[str]]:
    """A single value or a multi-select list, folded; None when unconstrained"""
    if value is None:
        return None
    values = [value] if isinstance(value, str) else list(value)
    folded = frozenset(text for text in (_fold(item) for item in values) if text is not None)
    return folded or None


def _folded_field(value) -> str:
    value = getattr(value, "value", value)
    return (value or "").strip().casefold()


def normalize_attendance_status(value: Optional[str]) -> Optional[AttendanceStatus]:
    """``all``/empty means no constraint; anything unknown is rejected"""
    if value is None or not value.strip() or value.strip().casefold() == ALL:
        return None
    try:
        return AttendanceStatus(value.strip().casefold())
    except ValueError:
        allowed = [ALL] + [status.value for status in AttendanceStatus]
        raise ReportValidationError(
            f"Unknown attendance status '{value}', expected one of: {allowed}"
        ) from None


@dataclass(frozen=True)
class RecordFilter:
    """
    Resolved filter constraints.

    Empty strings and ``all`` are treated as "no constraint". Employee and
    store accept either one name or a multi-select collection of names.
    """
    ranges: Sequence[DateRange]
    employee: Union[str, Collection[str], None] = None
    store: Union[str, Collection[str], None] = None
    status: Optional[str] = None
    time_from: Optional[int] = None
    time_to: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "employee", _fold_choices(self.employee))
        object.__setattr__(self, "store", _fold_choices(self.store))
        status = self.status.value if isinstance(self.status, AttendanceStatus) else self.status
        object.__setattr__(self, "status", _fold(status))

    def matches(self, record, zone: ZoneLike) -> bool:
        if not in_any_range(record.timestamp, self.ranges):
            return False
        if self.employee is not None and _folded_field(record.employee_name) not in self.employee:
            return False
        if self.store is not None and _folded_field(record.store_name) not in self.store:
            return False
        if self.status is not None and _folded_field(record.status) != self.status:
            return False
        if self.time_from is not None or self.time_to is not None:
            minute = zoned_parts(record.timestamp, zone).minute_of_day
            if self.time_from is not None and minute < self.time_from:
                return False
            if self.time_to is not None and minute > self.time_to:
                return False
        return True

    def apply(self, records: Iterable[R], zone: ZoneLike) -> List[R]:
        return [record for record in records if self.matches(record, zone)]


def filter_records(
    records: Iterable[R],
    ranges: Sequence[DateRange],
    zone: ZoneLike,
    employee: Union[str, Collection[str], None] = None,
    store: Union[str, Collection[str], None] = None,
    status: Optional[str] = None,
    time_from: Optional[str] = None,
    time_to: Optional[str] = None,
) -> List[R]:
    """
    Records falling in any range and satisfying every given constraint.

    Input order is preserved and the input is not modified. Time bounds are
    ``HH:MM`` strings; an invalid bound is ignored.
    """
    record_filter = RecordFilter(
        ranges=ranges,
        employee=employee,
        store=store,
        status=status,
        time_from=parse_time_of_day(time_from),
        time_to=parse_time_of_day(time_to),
    )
    return record_filter.apply(records, zone)
