"""
Unit Tests - Aggregation
"""
import random
from decimal import Decimal

from fieldsales.analytics.aggregator import (
    EMPLOYEE,
    PRODUCT,
    STORE,
    UNIT,
    aggregate,
    build_time_buckets,
    unit_key,
)
from fieldsales.analytics.calendar import Granularity
from fieldsales.analytics.records import UNSPECIFIED, UnitCategory, classify_unit


class TestTimeBuckets:
    """Tests for zero-filled bucket construction"""

    def test_daily_buckets_cover_union_once(self, make_range):
        buckets = build_time_buckets([make_range("2025-01-01", "2025-01-03"), make_range("2025-01-03", "2025-01-04")])
        assert [b.key for b in buckets] == ["2025-01-01", "2025-01-02", "2025-01-03", "2025-01-04"]
        assert all(b.cell.is_empty for b in buckets)

    def test_monthly_buckets_track_covered_days(self, make_range):
        buckets = build_time_buckets([make_range("2025-01-20", "2025-02-10")], Granularity.MONTH)

        assert [b.key for b in buckets] == ["2025-01", "2025-02"]
        assert buckets[0].first_day.isoformat() == "2025-01-20"
        assert buckets[1].last_day.isoformat() == "2025-02-10"


class TestAggregate:
    """Tests for single-pass accumulation"""

    def test_sums_and_zero_fill(self, make_sale, make_range):
        records = [
            make_sale(day="2025-01-01", quantity=2, unit_price="10.50"),
            make_sale(day="2025-01-01", quantity=1, unit_price=5),
            make_sale(day="2025-01-03", quantity=3, unit_price=1),
        ]
        result = aggregate(records, build_time_buckets([make_range("2025-01-01", "2025-01-03")]))

        day_one, day_two, day_three = result.timeline
        assert day_one.cell.count == 2
        assert day_one.cell.revenue_sum == Decimal("26.00")
        assert day_two.cell.is_empty
        assert day_three.cell.quantity_sum == Decimal(3)
        assert result.total().revenue_sum == Decimal("29.00")

    def test_dimensions_match_timeline_total(self, make_sale, make_range):
        records = [
            make_sale(store="A", employee="X", total=100),
            make_sale(store="B", employee="X", total=50),
            make_sale(store="A", employee="Y", total=25),
        ]
        result = aggregate(records, build_time_buckets([make_range("2025-01-15")]), [STORE, EMPLOYEE])

        stores = result.by_dimension[STORE.name]
        assert stores.get("A").revenue_sum == Decimal(125)
        assert stores.total().revenue_sum == result.total().revenue_sum
        assert result.by_dimension[EMPLOYEE.name].keys() == ["X", "Y"]

    def test_records_outside_buckets_skipped_everywhere(self, make_sale, make_range):
        records = [make_sale(day="2025-01-15", total=10), make_sale(day="2025-02-01", total=99)]
        result = aggregate(records, build_time_buckets([make_range("2025-01-15")]), [STORE])

        assert result.skipped == 1
        assert result.total().revenue_sum == Decimal(10)
        assert result.by_dimension[STORE.name].total().revenue_sum == Decimal(10)

    def test_order_independent(self, make_sale, make_range):
        records = [
            make_sale(day=f"2025-01-{day:02d}", quantity=day, unit_price="0.10", store=f"S{day % 3}")
            for day in range(1, 29)
        ]
        shuffled = list(records)
        random.Random(7).shuffle(shuffled)
        ranges = [make_range("2025-01-01", "2025-01-31")]

        first = aggregate(records, build_time_buckets(ranges), [STORE])
        second = aggregate(shuffled, build_time_buckets(ranges), [STORE])

        assert [b.cell for b in first.timeline] == [b.cell for b in second.timeline]
        for key in first.by_dimension[STORE.name]:
            assert first.by_dimension[STORE.name].get(key) == second.by_dimension[STORE.name].get(key)

    def test_empty_names_use_sentinel(self, make_sale, make_range):
        result = aggregate([make_sale(store="  ")], build_time_buckets([make_range("2025-01-15")]), [STORE])
        assert result.by_dimension[STORE.name].keys() == [UNSPECIFIED]

    def test_product_key_uses_sentinel(self, make_sale, make_range):
        record = make_sale(code=" ", name="")
        result = aggregate([record], build_time_buckets([make_range("2025-01-15")]), [PRODUCT])

        assert record.product_key == f"{UNSPECIFIED}::{UNSPECIFIED}"
        assert result.by_dimension[PRODUCT.name].keys() == [record.product_key]

    def test_segments(self, make_sale, make_range):
        records = [
            make_sale(code="P1", unit="กล่อง", quantity=1, unit_price=240),
            make_sale(code="P1", unit="ชิ้น", quantity=4, unit_price=10),
            make_sale(code="P2", unit="แพ็ค", quantity=2, unit_price=60),
        ]
        spec = PRODUCT.segmented(unit_key)
        result = aggregate(records, build_time_buckets([make_range("2025-01-15")]), [spec, UNIT])

        p1 = f"P1::{records[0].product_name}"
        assert result.segment(PRODUCT.name, p1, "box").revenue_sum == Decimal(240)
        assert result.segment(PRODUCT.name, p1, "piece").quantity_sum == Decimal(4)
        assert result.segment(PRODUCT.name, p1, "pack").is_empty
        assert result.by_dimension[UNIT.name].get("pack").revenue_sum == Decimal(120)


class TestUnitClassification:

    def test_keywords(self):
        assert classify_unit("กล่อง") == UnitCategory.BOX
        assert classify_unit("ลัง 12") == UnitCategory.BOX
        assert classify_unit("แพ็ค 6") == UnitCategory.PACK
        assert classify_unit("Pack") == UnitCategory.PACK

    def test_unmatched_is_piece(self):
        assert classify_unit("ขวด") == UnitCategory.PIECE
        assert classify_unit("") == UnitCategory.PIECE
        assert classify_unit(None) == UnitCategory.PIECE
