"""
Unit Tests - Product Sales Report
"""
import pytest

from fieldsales.analytics.calendar import zoned_instant
from fieldsales.reporting.products import ProductReportQuery, build_product_report


@pytest.fixture
def sales(make_sale):
    return [
        make_sale(day="2025-01-05", code="P1", name="Water", store="A", employee="X", unit="กล่อง", quantity=1, unit_price=240),
        make_sale(day="2025-01-05", code="P1", name="Water", store="B", employee="Y", unit="ชิ้น", quantity=10, unit_price=10),
        make_sale(day="2025-01-05", code="P2", name="Coffee", store="A", employee="X", unit="แพ็ค", quantity=2, unit_price=60),
        make_sale(day="2025-01-06", at="15:00", code="P1", name="Water", store="A", employee="Y", unit="ชิ้น", quantity=5, unit_price=10),
    ]


@pytest.fixture
def query(make_range):
    return ProductReportQuery(ranges=[make_range("2025-01-05", "2025-01-07")])


class TestBuildProductReport:
    """Tests for per-product assembly"""

    def test_products_ranked_by_revenue(self, sales, query, zone):
        report = build_product_report(sales, query, zone)
        water, coffee = report.products

        assert (water.product_code, coffee.product_code) == ("P1", "P2")
        assert water.product_key == "P1::Water"
        assert water.total_revenue == 390.0
        assert water.total_quantity == 16.0
        assert water.transactions == 3
        assert water.average_unit_price == 24.38
        assert water.contribution_percent == 76.47

    def test_unit_data(self, sales, query, zone):
        water = build_product_report(sales, query, zone).products[0]

        assert list(water.unit_data) == ["box", "pack", "piece"]
        assert water.unit_data["box"].total == 240.0
        assert water.unit_data["piece"].quantity == 15.0
        assert water.unit_data["piece"].average_price == 10.0
        assert water.unit_data["pack"].total == 0.0

    def test_store_breakdown_and_rankings(self, sales, query, zone):
        water = build_product_report(sales, query, zone).products[0]

        assert [(s.store_name, s.revenue) for s in water.store_breakdown] == [("A", 290.0), ("B", 100.0)]
        assert water.store_breakdown[0].units["piece"].total == 50.0
        assert [e.name for e in water.top_employees] == ["X", "Y"]
        assert water.top_employees[1].revenue == 150.0
        assert [s.name for s in water.top_stores] == ["A", "B"]

    def test_last_sold_at(self, sales, query, zone):
        water = build_product_report(sales, query, zone).products[0]
        assert water.last_sold_at == zoned_instant(zone, 2025, 1, 6, 15, 0)

    def test_summary(self, sales, query, zone):
        summary = build_product_report(sales, query, zone).summary

        assert summary.total_revenue == 510.0
        assert summary.unique_products == 2
        assert summary.unique_employees == 2
        assert summary.all_stores == ["A", "B"]
        assert summary.unit_breakdown["pack"].total == 120.0

    def test_timeline_lists_days_with_sales(self, sales, query, zone):
        report = build_product_report(sales, query, zone)
        assert [point.key for point in report.timeline] == ["2025-01-05", "2025-01-06"]

    def test_multi_select_filters(self, sales, make_range, zone):
        query = ProductReportQuery(ranges=[make_range("2025-01-05", "2025-01-07")], stores=("a",), employees=("X", "y"))
        report = build_product_report(sales, query, zone)

        assert report.summary.total_revenue == 410.0
        assert report.summary.all_stores == ["A"]
        assert report.filters.stores == ["a"]

    def test_empty(self, query, zone):
        report = build_product_report([], query, zone)
        assert report.products == []
        assert report.summary.total_revenue == 0.0
        assert report.timeline == []
