"""
Range Normalization

Turns raw ``{start, end?}`` day-string pairs into canonical half-open
``[start, end)`` intervals with a human-readable label.

Malformed entries are dropped without raising; when nothing usable is left
a trailing window ending today is synthesized.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import structlog

from fieldsales.analytics.calendar import (
    Granularity,
    ZoneLike,
    add_days,
    as_utc,
    iter_dates,
    parse_day_key,
    start_of_date,
    today as zoned_today,
)

logger = structlog.get_logger(__name__)

BUDDHIST_ERA_OFFSET = 543
RANGE_SEPARATOR = " – "

THAI_MONTHS = [
    "มกราคม", "กุมภาพันธ์", "มีนาคม", "เมษายน", "พฤษภาคม", "มิถุนายน",
    "กรกฎาคม", "สิงหาคม", "กันยายน", "ตุลาคม", "พฤศจิกายน", "ธันวาคม",
]
THAI_MONTHS_SHORT = [
    "ม.ค.", "ก.พ.", "มี.ค.", "เม.ย.", "พ.ค.", "มิ.ย.",
    "ก.ค.", "ส.ค.", "ก.ย.", "ต.ค.", "พ.ย.", "ธ.ค.",
]
ENGLISH_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
ENGLISH_MONTHS_SHORT = [name[:3] for name in ENGLISH_MONTHS]


@dataclass(frozen=True)
class DateRangeInput:
    """Raw range as received from the request layer"""
    start: str
    end: Optional[str] = None

    @classmethod
    def from_param(cls, value: str) -> "DateRangeInput":
        """Parse ``START[:END]`` query parameter syntax"""
        start, _, end = value.partition(":")
        return cls(start=start, end=end or None)


@dataclass(frozen=True)
class DateRange:
    """Half-open interval of whole local days"""
    start: datetime
    end: datetime
    start_day_key: str
    end_day_key: str
    label: str
    # Inclusive civil dates, kept for day iteration
    first_day: date = field(repr=False, compare=False, default=None)
    last_day: date = field(repr=False, compare=False, default=None)

    def contains(self, instant: datetime) -> bool:
        instant = as_utc(instant)
        return self.start <= instant < self.end

    def iter_days(self) -> Iterable[date]:
        return iter_dates(self.first_day, self.last_day)

    @property
    def day_count(self) -> int:
        return (self.last_day - self.first_day).days + 1


def _format_day(value: date, locale: str, style: str) -> str:
    """style: 'full' (D Month YYYY), 'short' (D Mon YYYY), 'day_month' (D Mon), 'day' (D)"""
    if locale == "th":
        year = value.year + BUDDHIST_ERA_OFFSET
        long_names, short_names = THAI_MONTHS, THAI_MONTHS_SHORT
    else:
        year = value.year
        long_names, short_names = ENGLISH_MONTHS, ENGLISH_MONTHS_SHORT

    if style == "day":
        return str(value.day)
    if style == "day_month":
        return f"{value.day} {short_names[value.month - 1]}"
    if style == "short":
        return f"{value.day} {short_names[value.month - 1]} {year}"
    return f"{value.day} {long_names[value.month - 1]} {year}"


def format_range_label(first_day: date, last_day: date, locale: str = "th") -> str:
    """Label an inclusive day span, compacting shared month and year"""
    if first_day == last_day:
        return _format_day(first_day, locale, "full")
    if (first_day.year, first_day.month) == (last_day.year, last_day.month):
        return _format_day(first_day, locale, "day") + RANGE_SEPARATOR + _format_day(last_day, locale, "full")
    if first_day.year == last_day.year:
        return _format_day(first_day, locale, "day_month") + RANGE_SEPARATOR + _format_day(last_day, locale, "short")
    return _format_day(first_day, locale, "short") + RANGE_SEPARATOR + _format_day(last_day, locale, "short")


THAI_WEEKDAYS = ["จันทร์", "อังคาร", "พุธ", "พฤหัสบดี", "ศุกร์", "เสาร์", "อาทิตย์"]
ENGLISH_WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def format_day_label(value: date, locale: str = "th") -> str:
    """Short single-day label, e.g. ``5 ม.ค. 2568``"""
    return _format_day(value, locale, "short")


def weekday_name(value: date, locale: str = "th") -> str:
    names = THAI_WEEKDAYS if locale == "th" else ENGLISH_WEEKDAYS
    return names[value.weekday()]


def display_year(year: int, locale: str = "th") -> int:
    return year + BUDDHIST_ERA_OFFSET if locale == "th" else year


def format_period_label(granularity: Granularity, first_day: date, last_day: date, locale: str = "th") -> str:
    """Label of a calendar bucket spanning ``first_day`` to ``last_day``"""
    if granularity == Granularity.DAY:
        return format_day_label(first_day, locale)
    if granularity == Granularity.WEEK:
        return format_range_label(first_day, last_day, locale)
    year = display_year(first_day.year, locale)
    if granularity == Granularity.MONTH:
        names = THAI_MONTHS_SHORT if locale == "th" else ENGLISH_MONTHS_SHORT
        return f"{names[first_day.month - 1]} {year}"
    if granularity == Granularity.QUARTER:
        quarter = (first_day.month - 1) // 3 + 1
        return f"ไตรมาส {quarter} {year}" if locale == "th" else f"Q{quarter} {year}"
    return f"ปี {year}" if locale == "th" else str(year)


def build_range(first_day: date, last_day: date, zone: ZoneLike, locale: str = "th") -> DateRange:
    """Range covering ``first_day`` through ``last_day`` inclusive"""
    if last_day < first_day:
        first_day, last_day = last_day, first_day
    return DateRange(
        start=start_of_date(first_day, zone),
        end=start_of_date(add_days(last_day, 1), zone),
        start_day_key=first_day.isoformat(),
        end_day_key=last_day.isoformat(),
        label=format_range_label(first_day, last_day, locale),
        first_day=first_day,
        last_day=last_day,
    )


def default_range(zone: ZoneLike, today: Optional[date] = None, days: int = 30, locale: str = "th") -> DateRange:
    """Trailing window of ``days`` days ending today"""
    last_day = today or zoned_today(zone)
    return build_range(add_days(last_day, -(days - 1)), last_day, zone, locale)


def _coerce_input(raw: Union[DateRangeInput, dict, str, Tuple[str, Optional[str]]]) -> DateRangeInput:
    if isinstance(raw, DateRangeInput):
        return raw
    if isinstance(raw, str):
        return DateRangeInput.from_param(raw)
    if isinstance(raw, dict):
        return DateRangeInput(start=raw.get("start") or "", end=raw.get("end") or None)
    start, end = raw
    return DateRangeInput(start=start or "", end=end or None)


def normalize_ranges(
    inputs: Optional[Sequence[Union[DateRangeInput, dict, str]]],
    zone: ZoneLike,
    today: Optional[date] = None,
    locale: str = "th",
    default_days: int = 30,
) -> List[DateRange]:
    """
    Canonicalize raw range inputs.

    - missing ``end`` means a single day
    - reversed bounds are swapped
    - malformed entries are dropped
    - an empty result falls back to the trailing ``default_days`` window

    Returns:
        Ranges sorted by start, each with an exclusive ``end``.
    """
    ranges: List[DateRange] = []
    dropped = 0

    for raw in inputs or []:
        entry = _coerce_input(raw)
        first_day = parse_day_key(entry.start)
        last_day = parse_day_key(entry.end) if entry.end else first_day
        if first_day is None or last_day is None:
            dropped += 1
            continue
        ranges.append(build_range(first_day, last_day, zone, locale))

    if dropped:
        logger.debug("Dropped malformed ranges", dropped=dropped)

    if not ranges:
        return [default_range(zone, today=today, days=default_days, locale=locale)]

    ranges.sort(key=lambda r: r.start)
    return ranges


def expand_dates(ranges: Sequence[DateRange]) -> List[date]:
    """Sorted union of every civil date covered by ``ranges``"""
    covered = set()
    for date_range in ranges:
        covered.update(date_range.iter_days())
    return sorted(covered)


def expand_day_keys(ranges: Sequence[DateRange]) -> List[str]:
    return [value.isoformat() for value in expand_dates(ranges)]


def range_summary(ranges: Sequence[DateRange]) -> str:
    return ", ".join(date_range.label for date_range in ranges)


def in_any_range(instant: datetime, ranges: Sequence[DateRange]) -> bool:
    return any(date_range.contains(instant) for date_range in ranges)
