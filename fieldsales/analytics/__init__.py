"""
Analytics Engine

Calendar bucketing, range normalization, filtering, aggregation and
derived metrics shared by every report.
"""
from .calendar import Granularity, zoned_instant, zoned_parts, day_key
from .ranges import DateRange, DateRangeInput, normalize_ranges, expand_day_keys, range_summary
from .records import (
    AttendanceRecord,
    AttendanceStatus,
    SalesRecord,
    UnitCategory,
    UNSPECIFIED,
    classify_unit,
)
from .filters import RecordFilter, filter_records, parse_time_of_day
from .aggregator import (
    AggregationCell,
    AggregationResult,
    CellMap,
    DimensionSpec,
    TimeBucket,
    aggregate,
    build_time_buckets,
)
from .metrics import (
    DerivedMetric,
    RoiMetrics,
    average_ticket,
    contribution_percent,
    derive,
    month_over_month,
    percent_change,
    roi,
    round_money,
    top_n,
)

__all__ = [
    "Granularity",
    "zoned_instant",
    "zoned_parts",
    "day_key",
    "DateRange",
    "DateRangeInput",
    "normalize_ranges",
    "expand_day_keys",
    "range_summary",
    "AttendanceRecord",
    "AttendanceStatus",
    "SalesRecord",
    "UnitCategory",
    "UNSPECIFIED",
    "classify_unit",
    "RecordFilter",
    "filter_records",
    "parse_time_of_day",
    "AggregationCell",
    "AggregationResult",
    "CellMap",
    "DimensionSpec",
    "TimeBucket",
    "aggregate",
    "build_time_buckets",
    "DerivedMetric",
    "RoiMetrics",
    "average_ticket",
    "contribution_percent",
    "derive",
    "month_over_month",
    "percent_change",
    "roi",
    "round_money",
    "top_n",
]
