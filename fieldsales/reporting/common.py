"""
Shared report assembly helpers: rounding, dimension rows, timelines,
unit-category cells and pagination.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Generic, Hashable, List, Optional, Sequence, TypeVar
import math

from fieldsales.analytics.aggregator import AggregationCell, CellMap, TimeBucket
from fieldsales.analytics.calendar import Granularity
from fieldsales.analytics.metrics import average_ticket, ratio_percent, round_money, top_n
from fieldsales.analytics.ranges import DateRange, format_period_label
from fieldsales.analytics.records import UNIT_ORDER, UnitCategory
from fieldsales.errors import ReportValidationError
from fieldsales.reporting.schemas import (
    DimensionRow,
    PageInfo,
    RangeEcho,
    SourceInfo,
    TimelinePoint,
    UnitSales,
)

T = TypeVar("T")


def money(value) -> float:
    return float(round_money(value))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def echo_ranges(ranges: Sequence[DateRange]) -> List[RangeEcho]:
    return [
        RangeEcho(start_day_key=r.start_day_key, end_day_key=r.end_day_key, label=r.label)
        for r in ranges
    ]


def unit_sales(category: UnitCategory, cell: Optional[AggregationCell]) -> UnitSales:
    """Unit cell with ``average_price = total / quantity`` (0 without quantity)"""
    cell = cell or AggregationCell()
    average = cell.revenue_sum / cell.quantity_sum if cell.quantity_sum > 0 else Decimal(0)
    return UnitSales(
        category=category.value,
        quantity=money(cell.quantity_sum),
        average_price=money(average),
        total=money(cell.revenue_sum),
    )


def unit_breakdown(lookup: Callable[[UnitCategory], Optional[AggregationCell]]) -> List[UnitSales]:
    """box, pack, piece cells in fixed order"""
    return [unit_sales(category, lookup(category)) for category in UNIT_ORDER]


def dimension_rows(
    cells: CellMap,
    label_fn: Callable[[Hashable], str] = str,
    limit: Optional[int] = None,
) -> List[DimensionRow]:
    """
    Dimension cells as rows sorted by revenue, highest first.

    Ties keep first-seen order. Shares are relative to the sum of all cells.
    """
    total = cells.total().revenue_sum
    return [
        DimensionRow(
            key=str(key),
            label=label_fn(key),
            count=cell.count,
            quantity=money(cell.quantity_sum),
            revenue=money(cell.revenue_sum),
            share_percent=money(ratio_percent(cell.revenue_sum, total)),
        )
        for key, cell in top_n(cells, limit)
    ]


def timeline_points(buckets: Sequence[TimeBucket], granularity: Granularity, locale: str) -> List[TimelinePoint]:
    return [
        TimelinePoint(
            key=bucket.key,
            label=format_period_label(granularity, bucket.first_day, bucket.last_day, locale),
            first_day=bucket.first_day,
            last_day=bucket.last_day,
            count=bucket.cell.count,
            quantity=money(bucket.cell.quantity_sum),
            revenue=money(bucket.cell.revenue_sum),
        )
        for bucket in buckets
    ]


def ticket(cell: AggregationCell) -> Decimal:
    return average_ticket(cell.revenue_sum, cell.count)


def source_info(name: str, degraded: bool = False, unit_granularity: bool = True) -> SourceInfo:
    return SourceInfo(name=name, degraded=degraded, unit_granularity=unit_granularity)


# =============================================================================
# PAGINATION
# =============================================================================

@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    info: PageInfo


def paginate(rows: Sequence[T], page: int, page_size: int) -> Page[T]:
    """
    Offset/limit slice of ``rows``.

    ``total_pages = ceil(len(rows) / page_size)``; a page past the end is
    empty rather than an error.
    """
    if page < 1:
        raise ReportValidationError(f"Page must be at least 1, got {page}")
    if page_size < 1:
        raise ReportValidationError(f"Page size must be at least 1, got {page_size}")

    total_rows = len(rows)
    total_pages = math.ceil(total_rows / page_size)
    offset = (page - 1) * page_size
    return Page(
        items=list(rows[offset:offset + page_size]),
        info=PageInfo(
            page=page,
            page_size=page_size,
            total_rows=total_rows,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )
