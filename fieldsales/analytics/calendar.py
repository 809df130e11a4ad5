"""
Calendar Module

Zone-aware conversions between absolute instants and civil calendar time.

All instants handled by the engine are timezone-aware datetimes; naive
datetimes are read as UTC. Day keys are ``YYYY-MM-DD`` strings of the civil
date in the reporting zone, and every period boundary is an aware UTC
instant so that half-open comparisons work across zones.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo
import re

ZoneLike = Union[str, tzinfo]

DAY_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class Granularity(str, Enum):
    """Calendar period width used for time buckets"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclass(frozen=True)
class ZonedParts:
    """Civil time fields of an instant in a given zone"""
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    @property
    def date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def minute_of_day(self) -> int:
        return self.hour * 60 + self.minute


def resolve_zone(zone: ZoneLike) -> tzinfo:
    """Accept an IANA name or a tzinfo instance"""
    if isinstance(zone, str):
        return ZoneInfo(zone)
    return zone


def as_utc(instant: datetime) -> datetime:
    """Normalize an instant to an aware UTC datetime"""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def zoned_parts(instant: datetime, zone: ZoneLike) -> ZonedParts:
    """Civil fields of ``instant`` as seen in ``zone``"""
    local = as_utc(instant).astimezone(resolve_zone(zone))
    return ZonedParts(
        year=local.year,
        month=local.month,
        day=local.day,
        hour=local.hour,
        minute=local.minute,
        second=local.second,
    )


def day_key(parts: Union[ZonedParts, date]) -> str:
    """Format civil date fields as ``YYYY-MM-DD``"""
    return f"{parts.year:04d}-{parts.month:02d}-{parts.day:02d}"


def instant_day_key(instant: datetime, zone: ZoneLike) -> str:
    return day_key(zoned_parts(instant, zone))


def zoned_instant(
    zone: ZoneLike,
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """
    Instant whose civil time in ``zone`` equals the given fields.

    Starts from a trial instant that reads the civil time as UTC, then
    corrects it by the difference between the requested and the observed
    civil time. The correction runs twice: the first pass can land on the
    other side of a DST transition, the second settles on the right offset.

    Returns:
        Aware datetime in UTC.
    """
    wanted = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    instant = wanted
    for _ in range(2):
        parts = zoned_parts(instant, zone)
        observed = datetime(
            parts.year, parts.month, parts.day,
            parts.hour, parts.minute, parts.second,
            tzinfo=timezone.utc,
        )
        instant = instant - (observed - wanted)
    return instant


def start_of_date(value: date, zone: ZoneLike) -> datetime:
    """Instant of local midnight starting ``value``"""
    return zoned_instant(zone, value.year, value.month, value.day)


# =============================================================================
# DATE ARITHMETIC
# =============================================================================

def parse_day_key(value: Optional[str]) -> Optional[date]:
    """Strict ``YYYY-MM-DD`` parse; None for any malformed or impossible date"""
    if not value:
        return None
    match = DAY_KEY_PATTERN.match(value.strip())
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def iter_dates(start: date, end_inclusive: date) -> Iterator[date]:
    current = start
    while current <= end_inclusive:
        yield current
        current += timedelta(days=1)


def iter_day_keys(start: datetime, end: datetime, zone: ZoneLike) -> Iterator[str]:
    """Day keys of every local day touched by the half-open span ``[start, end)``"""
    if end <= start:
        return
    first = zoned_parts(start, zone).date
    last = zoned_parts(end - timedelta(microseconds=1), zone).date
    for value in iter_dates(first, last):
        yield value.isoformat()


def shift_day_key(value: str, days: int) -> Optional[str]:
    parsed = parse_day_key(value)
    if parsed is None:
        return None
    return add_days(parsed, days).isoformat()


def add_months(value: date, months: int) -> date:
    """First day of the month ``months`` after the month of ``value``"""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def period_start(value: date, granularity: Granularity) -> date:
    """First civil date of the period containing ``value``"""
    if granularity == Granularity.DAY:
        return value
    if granularity == Granularity.WEEK:
        return value - timedelta(days=value.weekday())
    if granularity == Granularity.MONTH:
        return value.replace(day=1)
    if granularity == Granularity.QUARTER:
        return date(value.year, (value.month - 1) // 3 * 3 + 1, 1)
    return date(value.year, 1, 1)


def next_period_start(value: date, granularity: Granularity) -> date:
    start = period_start(value, granularity)
    if granularity == Granularity.DAY:
        return start + timedelta(days=1)
    if granularity == Granularity.WEEK:
        return start + timedelta(days=7)
    if granularity == Granularity.MONTH:
        return add_months(start, 1)
    if granularity == Granularity.QUARTER:
        return add_months(start, 3)
    return date(start.year + 1, 1, 1)


def period_key(value: date, granularity: Granularity) -> str:
    """
    Stable key of the period containing ``value``.

    day ``2025-01-05``, week ``2025-01-06`` (its Monday), month ``2025-01``,
    quarter ``2025-Q1``, year ``2025``.
    """
    if granularity in (Granularity.DAY, Granularity.WEEK):
        return period_start(value, granularity).isoformat()
    if granularity == Granularity.MONTH:
        return f"{value.year:04d}-{value.month:02d}"
    if granularity == Granularity.QUARTER:
        return f"{value.year:04d}-Q{(value.month - 1) // 3 + 1}"
    return f"{value.year:04d}"


# =============================================================================
# ZONED PERIOD BOUNDARIES
# =============================================================================

def _start_of(instant: datetime, zone: ZoneLike, granularity: Granularity) -> datetime:
    local_date = zoned_parts(instant, zone).date
    return start_of_date(period_start(local_date, granularity), zone)


def _end_of(instant: datetime, zone: ZoneLike, granularity: Granularity) -> datetime:
    local_date = zoned_parts(instant, zone).date
    return start_of_date(next_period_start(local_date, granularity), zone)


def start_of_day(instant: datetime, zone: ZoneLike) -> datetime:
    return _start_of(instant, zone, Granularity.DAY)


def end_of_day(instant: datetime, zone: ZoneLike) -> datetime:
    """Exclusive end: the start of the following day"""
    return _end_of(instant, zone, Granularity.DAY)


def start_of_week(instant: datetime, zone: ZoneLike) -> datetime:
    """Local Monday midnight of the week containing ``instant``"""
    return _start_of(instant, zone, Granularity.WEEK)


def end_of_week(instant: datetime, zone: ZoneLike) -> datetime:
    return _end_of(instant, zone, Granularity.WEEK)


def start_of_month(instant: datetime, zone: ZoneLike) -> datetime:
    return _start_of(instant, zone, Granularity.MONTH)


def end_of_month(instant: datetime, zone: ZoneLike) -> datetime:
    return _end_of(instant, zone, Granularity.MONTH)


def start_of_quarter(instant: datetime, zone: ZoneLike) -> datetime:
    return _start_of(instant, zone, Granularity.QUARTER)


def end_of_quarter(instant: datetime, zone: ZoneLike) -> datetime:
    return _end_of(instant, zone, Granularity.QUARTER)


def start_of_year(instant: datetime, zone: ZoneLike) -> datetime:
    return _start_of(instant, zone, Granularity.YEAR)


def end_of_year(instant: datetime, zone: ZoneLike) -> datetime:
    return _end_of(instant, zone, Granularity.YEAR)


def today(zone: ZoneLike, now: Optional[datetime] = None) -> date:
    """Civil date of ``now`` (default: current time) in ``zone``"""
    return zoned_parts(now or datetime.now(timezone.utc), zone).date
