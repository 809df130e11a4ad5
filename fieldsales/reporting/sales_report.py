"""
Sales Report

Grouped, paginated sales rows. Every grouping mode runs the same single
aggregation pass; only the bucket width and the row key change.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Sequence

import structlog

from fieldsales.analytics.aggregator import (
    PRODUCT,
    STORE,
    UNIT,
    DimensionSpec,
    aggregate,
    build_time_buckets,
    unit_key,
)
from fieldsales.analytics.calendar import Granularity, ZoneLike, period_key, zoned_parts
from fieldsales.analytics.filters import RecordFilter, format_time_of_day, parse_time_of_day
from fieldsales.analytics.metrics import ratio_percent
from fieldsales.analytics.ranges import (
    DateRange,
    format_period_label,
    range_summary,
    weekday_name,
)
from fieldsales.analytics.records import SalesRecord, dimension_value
from fieldsales.errors import ReportValidationError
from fieldsales.reporting.common import (
    dimension_rows,
    echo_ranges,
    money,
    paginate,
    ticket,
    timeline_points,
    unit_breakdown,
    utc_now,
)
from fieldsales.reporting.schemas import (
    SalesReport,
    SalesReportBreakdowns,
    SalesReportFilters,
    SalesReportRow,
    SalesReportSummary,
    SourceInfo,
)

logger = structlog.get_logger(__name__)


class GroupBy(str, Enum):
    DETAIL = "detail"
    DAILY = "daily"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def granularity(self) -> Granularity:
        return {
            GroupBy.DETAIL: Granularity.DAY,
            GroupBy.DAILY: Granularity.DAY,
            GroupBy.MONTHLY: Granularity.MONTH,
            GroupBy.QUARTERLY: Granularity.QUARTER,
            GroupBy.YEARLY: Granularity.YEAR,
        }[self]

    @property
    def is_daily(self) -> bool:
        return self in (GroupBy.DETAIL, GroupBy.DAILY)


def parse_group_by(value: Optional[str]) -> GroupBy:
    if not value:
        return GroupBy.DETAIL
    try:
        return GroupBy(value.strip().lower())
    except ValueError:
        allowed = [mode.value for mode in GroupBy]
        raise ReportValidationError(f"Unknown grouping '{value}', expected one of: {allowed}") from None


@dataclass(frozen=True)
class SalesReportQuery:
    ranges: Sequence[DateRange]
    group_by: GroupBy = GroupBy.DETAIL
    employee: Optional[str] = None
    store: Optional[str] = None
    status: Optional[str] = None
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    page: int = 1
    page_size: int = 20
    show_all_days: bool = False
    target: Optional[Decimal] = None


@dataclass
class _RowKey:
    """Decoded row key: ``(order, period, code, store, name)``"""
    order: object
    period: str
    product_code: str
    store_name: str
    product_name: str


def _row_dimension(group_by: GroupBy) -> DimensionSpec:
    granularity = group_by.granularity

    def row_key(record: SalesRecord):
        period = period_key(date.fromisoformat(record.day_key), granularity)
        order = record.timestamp if group_by == GroupBy.DETAIL else period
        return (
            order,
            period,
            (record.product_code or "").strip(),
            dimension_value(record.store_name),
            dimension_value(record.product_name),
        )

    return DimensionSpec("row", row_key, unit_key)


def build_sales_report(
    sales: Sequence[SalesRecord],
    query: SalesReportQuery,
    zone: ZoneLike,
    locale: str = "th",
    source: Optional[SourceInfo] = None,
    generated_at: Optional[datetime] = None,
) -> SalesReport:
    """
    Assemble the grouped sales report.

    Rows are keyed by period, product code, store and product name; detail
    mode uses the sale instant as the period so every sale keeps its own
    row. With ``show_all_days`` a daily or detail report gets an empty row
    for every day without sales.
    """
    group_by = query.group_by
    granularity = group_by.granularity
    time_from = parse_time_of_day(query.time_from)
    time_to = parse_time_of_day(query.time_to)

    filtered = RecordFilter(
        ranges=query.ranges,
        employee=query.employee,
        store=query.store,
        status=query.status,
        time_from=time_from,
        time_to=time_to,
    ).apply(sales, zone)

    row_dimension = _row_dimension(group_by)
    result = aggregate(
        filtered,
        build_time_buckets(query.ranges, granularity),
        [STORE, PRODUCT, UNIT, row_dimension],
        granularity=granularity,
    )

    rows_by_period: Dict[str, List[SalesReportRow]] = {}
    row_cells = result.by_dimension[row_dimension.name]
    ordered_keys = sorted(row_cells.keys(), key=lambda key: key[0])
    for raw_key in ordered_keys:
        key = _RowKey(*raw_key)
        cell = row_cells.get(raw_key)
        rows_by_period.setdefault(key.period, []).append(
            SalesReportRow(
                period_key=key.period,
                period_label="",
                time=_local_time(key.order, zone) if group_by == GroupBy.DETAIL else None,
                sold_at=key.order if group_by == GroupBy.DETAIL else None,
                store_name=key.store_name,
                product_code=key.product_code,
                product_name=key.product_name,
                units=unit_breakdown(lambda category: result.segment(row_dimension.name, raw_key, category.value)),
                transactions=cell.count,
                quantity=money(cell.quantity_sum),
                unit_price=money(cell.revenue_sum / cell.quantity_sum if cell.quantity_sum > 0 else 0),
                total=money(cell.revenue_sum),
            )
        )

    rows: List[SalesReportRow] = []
    for bucket in result.timeline:
        label = format_period_label(granularity, bucket.first_day, bucket.last_day, locale)
        day_of_week = weekday_name(bucket.first_day, locale) if group_by.is_daily else ""
        period_rows = rows_by_period.get(bucket.key, [])
        if not period_rows and query.show_all_days and group_by.is_daily:
            period_rows = [SalesReportRow(period_key=bucket.key, period_label="", is_empty=True)]
        for index, row in enumerate(period_rows):
            rows.append(
                row.model_copy(
                    update={
                        "period_label": label,
                        "day_of_week": day_of_week,
                        "is_first_of_period": index == 0,
                    }
                )
            )

    page = paginate(rows, query.page, query.page_size)

    total = result.total()
    unit_cells = result.by_dimension[UNIT.name]
    achievement = None
    if query.target is not None and query.target > 0:
        achievement = money(ratio_percent(total.revenue_sum, query.target))

    logger.info(
        "Sales report assembled",
        group_by=group_by.value,
        rows=len(rows),
        transactions=total.count,
        page=query.page,
    )

    return SalesReport(
        filters=SalesReportFilters(
            ranges=echo_ranges(query.ranges),
            range_summary=range_summary(query.ranges),
            group_by=group_by.value,
            employee=query.employee or None,
            store=query.store or None,
            status=query.status or None,
            time_from=format_time_of_day(time_from),
            time_to=format_time_of_day(time_to),
            show_all_days=query.show_all_days,
        ),
        summary=SalesReportSummary(
            transactions=total.count,
            quantity=money(total.quantity_sum),
            amount=money(total.revenue_sum),
            average_ticket=money(ticket(total)),
            target=money(query.target) if query.target is not None else None,
            achievement_percent=achievement,
            unit_totals=unit_breakdown(lambda category: unit_cells.get(category.value)),
        ),
        breakdowns=SalesReportBreakdowns(
            by_store=dimension_rows(result.by_dimension[STORE.name]),
            by_product=dimension_rows(result.by_dimension[PRODUCT.name], _product_label),
            by_unit=dimension_rows(unit_cells),
        ),
        timeline=timeline_points(result.timeline, granularity, locale),
        rows=page.items,
        pagination=page.info,
        source=source or SourceInfo(name="snapshot"),
        generated_at=generated_at or utc_now(),
    )


def _local_time(instant: datetime, zone: ZoneLike) -> str:
    parts = zoned_parts(instant, zone)
    return f"{parts.hour:02d}:{parts.minute:02d}"


def _product_label(key: str) -> str:
    code, _, name = key.partition("::")
    return f"{code} {name}".strip()
