"""
Unit Tests - Sales Comparison
"""
import pytest

from fieldsales.errors import ReportValidationError
from fieldsales.reporting.comparison import ComparisonQuery, build_sales_comparison, normalize_year


@pytest.fixture
def sales(make_sale):
    return [
        make_sale(day="2025-01-10", code="P1", name="Water", unit="กล่อง", quantity=1, unit_price=100),
        make_sale(day="2025-03-02", code="P1", name="Water", unit="ชิ้น", quantity=15, unit_price=10),
        make_sale(day="2025-02-14", code="P2", name="Coffee", unit="แพ็ค", quantity=1, unit_price=50),
        make_sale(day="2024-12-31", code="P2", name="Coffee", unit="แพ็ค", quantity=9, unit_price=50),
    ]


class TestComparisonQuery:

    def test_buddhist_era_year(self):
        assert normalize_year(2568) == 2025
        assert normalize_year(2025) == 2025
        assert ComparisonQuery(year=2568).validated().year == 2025

    @pytest.mark.parametrize("start, end", [(0, 12), (1, 13), (6, 3)])
    def test_invalid_months(self, start, end):
        with pytest.raises(ReportValidationError):
            ComparisonQuery(year=2025, start_month=start, end_month=end).validated()


class TestBuildComparison:
    """Tests for the product-by-month matrix"""

    def test_products_ordered_by_code(self, sales, zone):
        report = build_sales_comparison(sales, ComparisonQuery(year=2025), zone)
        assert [p.product_code for p in report.products] == ["P1", "P2"]
        assert report.summary.total_products == 2
        assert report.summary.year_total_sales == 300.0

    def test_month_over_month_series(self, sales, zone):
        report = build_sales_comparison(sales, ComparisonQuery(year=2025), zone)
        water = report.products[0]
        months = water.monthly_sales

        assert len(months) == 12
        assert months[0].month_name_th == "มกราคม"
        assert months[0].diff_percent is None
        assert not months[0].comparable
        assert (months[1].total_sales, months[1].diff_percent) == (0.0, -100.0)
        assert (months[2].total_sales, months[2].diff_amount, months[2].diff_percent) == (150.0, 150.0, 100.0)
        assert months[3].diff_percent == -100.0
        assert months[4].diff_percent == 0.0

    def test_unit_cells_and_share(self, sales, zone):
        report = build_sales_comparison(sales, ComparisonQuery(year=2025), zone)
        water = report.products[0]

        assert water.box.total_sales == 100.0
        assert water.piece.quantity == 15.0
        assert water.piece.avg_price == 10.0
        assert water.pack.total_sales == 0.0
        assert water.total_sales == 250.0
        assert water.contribution_percent == 83.33

    def test_partial_year(self, sales, zone):
        report = build_sales_comparison(sales, ComparisonQuery(year=2568, start_month=2, end_month=3), zone)

        assert report.filters.year == 2025
        assert report.filters.month_names == ["กุมภาพันธ์", "มีนาคม"]
        assert report.summary.year_total_sales == 200.0
        assert [point.key for point in report.timeline] == ["2025-02", "2025-03"]

    def test_monthly_totals(self, sales, zone):
        report = build_sales_comparison(sales, ComparisonQuery(year=2025), zone)
        totals = [month.total_sales for month in report.summary.monthly_totals]
        assert totals[:4] == [100.0, 50.0, 150.0, 0.0]
