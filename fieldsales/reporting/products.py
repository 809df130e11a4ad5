"""
Product Sales Report

Per-product unit mix, store breakdown, best employees and stores, and
each product's share of total revenue, over a multi-select of employees
and stores.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from fieldsales.analytics.aggregator import (
    EMPLOYEE,
    PRODUCT,
    STORE,
    UNIT,
    AggregationCell,
    DimensionSpec,
    aggregate,
    build_time_buckets,
    employee_key,
    product_key,
    store_key,
    unit_key,
)
from fieldsales.analytics.calendar import Granularity, ZoneLike
from fieldsales.analytics.filters import RecordFilter
from fieldsales.analytics.metrics import contribution_percent, top_n
from fieldsales.analytics.ranges import DateRange, range_summary
from fieldsales.analytics.records import UNIT_ORDER, SalesRecord
from fieldsales.reporting.common import echo_ranges, money, timeline_points, unit_sales, utc_now
from fieldsales.reporting.schemas import (
    ProductReportFilters,
    ProductReportSummary,
    ProductSalesReport,
    ProductSalesRow,
    RankedName,
    SourceInfo,
    StoreProductBreakdown,
    UnitSales,
)

logger = structlog.get_logger(__name__)

TOP_NAMES = 3

PRODUCT_BY_UNIT = DimensionSpec("product_unit", product_key, unit_key)
PRODUCT_BY_STORE = DimensionSpec("product_store", product_key, store_key)
PRODUCT_BY_EMPLOYEE = DimensionSpec("product_employee", product_key, employee_key)
PRODUCT_STORE_BY_UNIT = DimensionSpec(
    "product_store_unit", lambda record: (product_key(record), store_key(record)), unit_key
)


@dataclass(frozen=True)
class ProductReportQuery:
    ranges: Sequence[DateRange]
    employees: Sequence[str] = field(default_factory=tuple)
    stores: Sequence[str] = field(default_factory=tuple)


def _unit_map(lookup) -> Dict[str, UnitSales]:
    return {category.value: unit_sales(category, lookup(category)) for category in UNIT_ORDER}


def _by_product(cells) -> Dict[str, List[Tuple[str, AggregationCell]]]:
    """Regroup ``(product, segment)`` cells per product, keeping scan order"""
    grouped: Dict[str, List[Tuple[str, AggregationCell]]] = defaultdict(list)
    for (product, segment), cell in cells.items():
        grouped[product].append((segment, cell))
    return grouped


def _ranked(entries: List[Tuple[str, AggregationCell]]) -> List[RankedName]:
    return [
        RankedName(name=name, quantity=money(cell.quantity_sum), revenue=money(cell.revenue_sum))
        for name, cell in top_n(entries, TOP_NAMES)
    ]


def build_product_report(
    sales: Sequence[SalesRecord],
    query: ProductReportQuery,
    zone: ZoneLike,
    locale: str = "th",
    source: Optional[SourceInfo] = None,
    generated_at: Optional[datetime] = None,
) -> ProductSalesReport:
    """Assemble the product report; products are ranked by revenue"""
    filtered = RecordFilter(
        ranges=query.ranges,
        employee=list(query.employees) or None,
        store=list(query.stores) or None,
    ).apply(sales, zone)

    result = aggregate(
        filtered,
        build_time_buckets(query.ranges),
        [
            PRODUCT,
            EMPLOYEE,
            STORE,
            UNIT,
            PRODUCT_BY_UNIT,
            PRODUCT_BY_STORE,
            PRODUCT_BY_EMPLOYEE,
            PRODUCT_STORE_BY_UNIT,
        ],
    )

    last_sold: Dict[str, datetime] = {}
    for record in filtered:
        key = product_key(record)
        if key not in last_sold or record.timestamp > last_sold[key]:
            last_sold[key] = record.timestamp

    total = result.total()
    stores_per_product = _by_product(result.segments[PRODUCT_BY_STORE.name])
    employees_per_product = _by_product(result.segments[PRODUCT_BY_EMPLOYEE.name])

    products: List[ProductSalesRow] = []
    for key, cell in top_n(result.by_dimension[PRODUCT.name], None):
        code, _, name = key.partition("::")
        store_entries = stores_per_product.get(key, [])
        store_breakdown = [
            StoreProductBreakdown(
                store_name=store,
                quantity=money(store_cell.quantity_sum),
                revenue=money(store_cell.revenue_sum),
                units=_unit_map(
                    lambda category, store=store: result.segment(
                        PRODUCT_STORE_BY_UNIT.name, (key, store), category.value
                    )
                ),
            )
            for store, store_cell in top_n(store_entries, None)
        ]
        products.append(
            ProductSalesRow(
                product_key=key,
                product_code=code,
                product_name=name,
                unit_data=_unit_map(lambda category: result.segment(PRODUCT_BY_UNIT.name, key, category.value)),
                total_quantity=money(cell.quantity_sum),
                total_revenue=money(cell.revenue_sum),
                transactions=cell.count,
                average_unit_price=money(cell.revenue_sum / cell.quantity_sum if cell.quantity_sum > 0 else 0),
                contribution_percent=money(contribution_percent(cell, total.revenue_sum)),
                store_breakdown=store_breakdown,
                top_employees=_ranked(employees_per_product.get(key, [])),
                top_stores=_ranked(store_entries),
                last_sold_at=last_sold.get(key),
            )
        )

    unit_cells = result.by_dimension[UNIT.name]
    active_days = [bucket for bucket in result.timeline if not bucket.cell.is_empty]

    logger.info(
        "Product report assembled",
        products=len(products),
        transactions=total.count,
        employees=len(query.employees),
        stores=len(query.stores),
    )

    return ProductSalesReport(
        filters=ProductReportFilters(
            ranges=echo_ranges(query.ranges),
            range_summary=range_summary(query.ranges),
            employees=list(query.employees),
            stores=list(query.stores),
        ),
        summary=ProductReportSummary(
            total_quantity=money(total.quantity_sum),
            total_revenue=money(total.revenue_sum),
            transactions=total.count,
            unique_products=len(result.by_dimension[PRODUCT.name]),
            unique_employees=len(result.by_dimension[EMPLOYEE.name]),
            unique_stores=len(result.by_dimension[STORE.name]),
            unit_breakdown=_unit_map(lambda category: unit_cells.get(category.value)),
            all_stores=sorted(str(store) for store in result.by_dimension[STORE.name].keys()),
        ),
        timeline=timeline_points(active_days, Granularity.DAY, locale),
        products=products,
        source=source or SourceInfo(name="snapshot"),
        generated_at=generated_at or utc_now(),
    )
