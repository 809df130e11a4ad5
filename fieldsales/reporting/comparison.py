"""
Sales Comparison

Twelve-month product matrix for one calendar year: unit-category cells per
product, a month-over-month series and each product's share of the year.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Sequence

import structlog

from fieldsales.analytics.aggregator import (
    PRODUCT,
    UNIT,
    AggregationCell,
    DimensionSpec,
    aggregate,
    build_time_buckets,
    product_key,
    unit_key,
)
from fieldsales.analytics.calendar import Granularity, ZoneLike, add_days, add_months
from fieldsales.analytics.filters import RecordFilter
from fieldsales.analytics.metrics import PeriodDelta, contribution_percent, month_over_month
from fieldsales.analytics.ranges import BUDDHIST_ERA_OFFSET, THAI_MONTHS, DateRange, build_range
from fieldsales.analytics.records import SalesRecord, UnitCategory
from fieldsales.errors import ReportValidationError
from fieldsales.reporting.common import dimension_rows, money, timeline_points, utc_now
from fieldsales.reporting.schemas import (
    ComparisonBreakdowns,
    ComparisonFilters,
    ComparisonSummary,
    MonthlySales,
    ProductComparisonRow,
    SalesComparisonReport,
    SourceInfo,
    UnitTypeSales,
)

logger = structlog.get_logger(__name__)

BUDDHIST_ERA_THRESHOLD = 2500


def normalize_year(year: int) -> int:
    """Buddhist-era years (above 2500) are converted to the common era"""
    return year - BUDDHIST_ERA_OFFSET if year > BUDDHIST_ERA_THRESHOLD else year


@dataclass(frozen=True)
class ComparisonQuery:
    year: int
    start_month: int = 1
    end_month: int = 12
    employee: Optional[str] = None
    store: Optional[str] = None

    def validated(self) -> "ComparisonQuery":
        for name, month in (("start_month", self.start_month), ("end_month", self.end_month)):
            if not 1 <= month <= 12:
                raise ReportValidationError(f"{name} must be between 1 and 12, got {month}")
        if self.start_month > self.end_month:
            raise ReportValidationError(
                f"start_month ({self.start_month}) is after end_month ({self.end_month})"
            )
        year = normalize_year(self.year)
        if not 1900 <= year <= 9998:
            raise ReportValidationError(f"Year out of range: {self.year}")
        return ComparisonQuery(year, self.start_month, self.end_month, self.employee, self.store)

    def date_range(self, zone: ZoneLike, locale: str = "th") -> DateRange:
        first = date(self.year, self.start_month, 1)
        last = add_days(add_months(date(self.year, self.end_month, 1), 1), -1)
        return build_range(first, last, zone, locale)


def _month_of(record: SalesRecord) -> int:
    return int(record.day_key[5:7])


PRODUCT_BY_UNIT = DimensionSpec("product_unit", product_key, unit_key)
PRODUCT_BY_MONTH = DimensionSpec("product_month", product_key, _month_of)


def _unit_type_sales(cell: AggregationCell) -> UnitTypeSales:
    average = cell.revenue_sum / cell.quantity_sum if cell.quantity_sum > 0 else 0
    return UnitTypeSales(
        quantity=money(cell.quantity_sum),
        avg_price=money(average),
        total_sales=money(cell.revenue_sum),
    )


def _monthly(deltas: List[PeriodDelta]) -> List[MonthlySales]:
    return [
        MonthlySales(
            month=delta.index + 1,
            month_name_th=THAI_MONTHS[delta.index],
            total_sales=money(delta.revenue),
            diff_amount=money(delta.diff_amount),
            diff_percent=money(delta.diff_percent) if delta.comparable else None,
            comparable=delta.comparable,
        )
        for delta in deltas
    ]


def _product_sort_key(key: str):
    code, _, name = key.partition("::")
    return code, name


def build_sales_comparison(
    sales: Sequence[SalesRecord],
    query: ComparisonQuery,
    zone: ZoneLike,
    locale: str = "th",
    source: Optional[SourceInfo] = None,
    generated_at: Optional[datetime] = None,
) -> SalesComparisonReport:
    """Assemble the comparison matrix; products are ordered by product code"""
    query = query.validated()
    window = query.date_range(zone, locale)

    filtered = RecordFilter(ranges=[window], employee=query.employee, store=query.store).apply(sales, zone)
    result = aggregate(
        filtered,
        build_time_buckets([window], Granularity.MONTH),
        [PRODUCT, UNIT, PRODUCT_BY_UNIT, PRODUCT_BY_MONTH],
        granularity=Granularity.MONTH,
    )

    grand_total = result.total().revenue_sum
    products: List[ProductComparisonRow] = []
    for key in sorted(result.by_dimension[PRODUCT.name].keys(), key=_product_sort_key):
        cell = result.by_dimension[PRODUCT.name].get(key)
        code, _, name = key.partition("::")
        series = [result.segment(PRODUCT_BY_MONTH.name, key, month) for month in range(1, 13)]
        products.append(
            ProductComparisonRow(
                product_code=code,
                product_name=name,
                box=_unit_type_sales(result.segment(PRODUCT_BY_UNIT.name, key, UnitCategory.BOX.value)),
                pack=_unit_type_sales(result.segment(PRODUCT_BY_UNIT.name, key, UnitCategory.PACK.value)),
                piece=_unit_type_sales(result.segment(PRODUCT_BY_UNIT.name, key, UnitCategory.PIECE.value)),
                monthly_sales=_monthly(month_over_month(series)),
                total_sales=money(cell.revenue_sum),
                contribution_percent=money(contribution_percent(cell, grand_total)),
            )
        )

    monthly_totals = [AggregationCell() for _ in range(12)]
    for bucket in result.timeline:
        monthly_totals[bucket.first_day.month - 1] = bucket.cell

    logger.info(
        "Sales comparison assembled",
        year=query.year,
        products=len(products),
        total=str(grand_total),
    )

    return SalesComparisonReport(
        filters=ComparisonFilters(
            year=query.year,
            start_month=query.start_month,
            end_month=query.end_month,
            month_names=THAI_MONTHS[query.start_month - 1:query.end_month],
            employee=query.employee or None,
            store=query.store or None,
        ),
        summary=ComparisonSummary(
            total_products=len(products),
            year_total_sales=money(grand_total),
            monthly_totals=_monthly(month_over_month(monthly_totals)),
        ),
        breakdowns=ComparisonBreakdowns(by_unit=dimension_rows(result.by_dimension[UNIT.name])),
        timeline=timeline_points(result.timeline, Granularity.MONTH, locale),
        products=products,
        source=source or SourceInfo(name="snapshot"),
        generated_at=generated_at or utc_now(),
    )
