"""
Aggregation Module

Single-pass accumulation of event records into zero-filled calendar
buckets and per-dimension cells.

Sums are kept as Decimal so that totals do not depend on record order:
the same record set always yields identical cells regardless of how it
was scanned or partitioned.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple

import structlog

from fieldsales.analytics.calendar import Granularity, period_key, period_start
from fieldsales.analytics.ranges import DateRange, expand_dates
from fieldsales.analytics.records import (
    DEFAULT_SALES_STATUS,
    SalesRecord,
    dimension_value,
)

logger = structlog.get_logger(__name__)

ZERO = Decimal(0)


@dataclass
class AggregationCell:
    """Running count, quantity and revenue"""
    count: int = 0
    quantity_sum: Decimal = ZERO
    revenue_sum: Decimal = ZERO

    def add(self, quantity: Decimal = ZERO, revenue: Decimal = ZERO) -> None:
        self.count += 1
        self.quantity_sum += quantity
        self.revenue_sum += revenue

    def merge(self, other: "AggregationCell") -> "AggregationCell":
        return AggregationCell(
            count=self.count + other.count,
            quantity_sum=self.quantity_sum + other.quantity_sum,
            revenue_sum=self.revenue_sum + other.revenue_sum,
        )

    @property
    def is_empty(self) -> bool:
        return self.count == 0


class CellMap:
    """
    Mapping of key to AggregationCell with get-or-insert access.

    Iteration follows first-insertion order, which is the scan order of the
    records that created each key.
    """

    def __init__(self):
        self._cells: Dict[Hashable, AggregationCell] = {}

    def cell(self, key: Hashable) -> AggregationCell:
        found = self._cells.get(key)
        if found is None:
            found = AggregationCell()
            self._cells[key] = found
        return found

    def get(self, key: Hashable) -> Optional[AggregationCell]:
        return self._cells.get(key)

    def keys(self) -> List[Hashable]:
        return list(self._cells)

    def items(self) -> List[Tuple[Hashable, AggregationCell]]:
        return list(self._cells.items())

    def values(self) -> List[AggregationCell]:
        return list(self._cells.values())

    def total(self) -> AggregationCell:
        result = AggregationCell()
        for cell in self._cells.values():
            result = result.merge(cell)
        return result

    def __contains__(self, key: Hashable) -> bool:
        return key in self._cells

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"CellMap({self._cells!r})"


@dataclass
class TimeBucket:
    """One calendar period within the range union"""
    key: str
    period_start: date
    first_day: date
    last_day: date
    cell: AggregationCell = field(default_factory=AggregationCell)
    segments: CellMap = field(default_factory=CellMap)


@dataclass(frozen=True)
class DimensionSpec:
    """
    A grouping dimension.

    ``key_fn`` maps a record to its dimension key; ``segment_fn``, when set,
    additionally maintains a nested cell per ``(key, segment)``.
    """
    name: str
    key_fn: Callable[[object], Hashable]
    segment_fn: Optional[Callable[[object], Hashable]] = None

    def segmented(self, segment_fn: Callable[[object], Hashable]) -> "DimensionSpec":
        return DimensionSpec(self.name, self.key_fn, segment_fn)


def store_key(record) -> str:
    return dimension_value(record.store_name)


def employee_key(record) -> str:
    return dimension_value(record.employee_name)


def product_key(record: SalesRecord) -> str:
    return record.product_key


def unit_key(record: SalesRecord) -> str:
    return record.unit_category.value


def status_key(record) -> str:
    status = getattr(record.status, "value", record.status)
    return (status or DEFAULT_SALES_STATUS).strip().casefold() or DEFAULT_SALES_STATUS


STORE = DimensionSpec("store", store_key)
EMPLOYEE = DimensionSpec("employee", employee_key)
PRODUCT = DimensionSpec("product", product_key)
UNIT = DimensionSpec("unit", unit_key)
STATUS = DimensionSpec("status", status_key)


@dataclass
class AggregationResult:
    """Output of one aggregation pass"""
    timeline: List[TimeBucket]
    by_dimension: Dict[str, CellMap]
    segments: Dict[str, CellMap]
    skipped: int = 0

    def bucket(self, key: str) -> Optional[TimeBucket]:
        for bucket in self.timeline:
            if bucket.key == key:
                return bucket
        return None

    def total(self) -> AggregationCell:
        result = AggregationCell()
        for bucket in self.timeline:
            result = result.merge(bucket.cell)
        return result

    def segment(self, dimension: str, key: Hashable, segment: Hashable) -> AggregationCell:
        """Nested cell, or an empty cell when nothing was recorded"""
        cells = self.segments.get(dimension)
        found = cells.get((key, segment)) if cells is not None else None
        return found or AggregationCell()


def build_time_buckets(
    ranges: Sequence[DateRange],
    granularity: Granularity = Granularity.DAY,
) -> List[TimeBucket]:
    """
    Zero-filled buckets covering every civil day of the range union.

    Overlapping ranges are merged; each period appears exactly once, in
    chronological order.
    """
    buckets: Dict[str, TimeBucket] = {}
    for value in expand_dates(ranges):
        key = period_key(value, granularity)
        bucket = buckets.get(key)
        if bucket is None:
            buckets[key] = TimeBucket(
                key=key,
                period_start=period_start(value, granularity),
                first_day=value,
                last_day=value,
            )
        else:
            bucket.last_day = value
    return list(buckets.values())


def record_measure(record) -> Tuple[Decimal, Decimal]:
    """(quantity, revenue) contributed by a record; attendance counts only"""
    return getattr(record, "quantity", ZERO), getattr(record, "total", ZERO)


def aggregate(
    records: Iterable,
    buckets: List[TimeBucket],
    dimensions: Sequence[DimensionSpec] = (),
    granularity: Granularity = Granularity.DAY,
    bucket_segment_fn: Optional[Callable[[object], Hashable]] = None,
) -> AggregationResult:
    """
    Accumulate ``records`` into ``buckets`` and per-dimension cells in one pass.

    A record whose period has no bucket is skipped and counted; it then
    contributes to no dimension either, so timeline and dimension totals
    always agree.

    Args:
        records: Filtered sales or attendance records
        buckets: Pre-built buckets, see ``build_time_buckets``
        dimensions: Dimensions to group by
        granularity: Width of ``buckets``
        bucket_segment_fn: Optional per-bucket segment (e.g. unit category)
    """
    index = {bucket.key: bucket for bucket in buckets}
    by_dimension = {spec.name: CellMap() for spec in dimensions}
    segments = {spec.name: CellMap() for spec in dimensions if spec.segment_fn is not None}
    skipped = 0

    for record in records:
        try:
            record_date = date.fromisoformat(record.day_key)
        except (TypeError, ValueError):
            skipped += 1
            continue
        bucket = index.get(period_key(record_date, granularity))
        if bucket is None:
            skipped += 1
            continue

        quantity, revenue = record_measure(record)
        bucket.cell.add(quantity, revenue)
        if bucket_segment_fn is not None:
            bucket.segments.cell(bucket_segment_fn(record)).add(quantity, revenue)

        for spec in dimensions:
            key = spec.key_fn(record)
            by_dimension[spec.name].cell(key).add(quantity, revenue)
            if spec.segment_fn is not None:
                segments[spec.name].cell((key, spec.segment_fn(record))).add(quantity, revenue)

    if skipped:
        logger.warning("Records outside declared buckets were skipped", skipped=skipped)

    return AggregationResult(
        timeline=buckets,
        by_dimension=by_dimension,
        segments=segments,
        skipped=skipped,
    )
