"""
Unit Tests - Sales Report
"""
from decimal import Decimal

import pytest

from fieldsales.errors import ReportValidationError
from fieldsales.reporting.common import paginate
from fieldsales.reporting.sales_report import (
    GroupBy,
    SalesReportQuery,
    build_sales_report,
    parse_group_by,
)


@pytest.fixture
def sales(make_sale):
    return [
        make_sale(day="2025-01-05", at="10:00", code="P1", name="Water", store="A", unit="กล่อง", quantity=1, unit_price=240),
        make_sale(day="2025-01-05", at="11:00", code="P1", name="Water", store="A", unit="ชิ้น", quantity=4, unit_price=10),
        make_sale(day="2025-01-05", at="09:00", code="P2", name="Coffee", store="B", unit="แพ็ค", quantity=2, unit_price=60),
        make_sale(day="2025-01-07", at="14:30", code="P1", name="Water", store="A", unit="ชิ้น", quantity=1, unit_price=10),
    ]


@pytest.fixture
def january(make_range):
    return [make_range("2025-01-05", "2025-01-07")]


class TestGrouping:
    """Tests for row grouping modes"""

    def test_detail_keeps_each_sale_in_time_order(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january, page_size=50), zone)

        assert [row.time for row in report.rows] == ["09:00", "10:00", "11:00", "14:30"]
        assert all(row.transactions == 1 for row in report.rows)
        assert report.rows[0].day_of_week == "อาทิตย์"
        assert report.rows[0].period_label == "5 ม.ค. 2568"

    def test_daily_merges_same_product_and_store(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january, group_by=GroupBy.DAILY, page_size=50), zone)

        water = report.rows[0]
        assert (water.period_key, water.product_code, water.store_name) == ("2025-01-05", "P1", "A")
        assert water.transactions == 2
        assert water.quantity == 5.0
        assert water.total == 280.0
        assert water.unit_price == 56.0
        assert [(unit.category, unit.total) for unit in water.units] == [("box", 240.0), ("pack", 0.0), ("piece", 40.0)]
        assert water.is_first_of_period
        assert not report.rows[1].is_first_of_period

    def test_show_all_days_adds_empty_rows(self, sales, january, zone):
        query = SalesReportQuery(ranges=january, group_by=GroupBy.DAILY, page_size=50, show_all_days=True)
        report = build_sales_report(sales, query, zone)

        assert [row.period_key for row in report.rows] == ["2025-01-05", "2025-01-05", "2025-01-06", "2025-01-07"]
        assert report.rows[2].is_empty
        assert report.rows[2].is_first_of_period

    def test_monthly(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january, group_by=GroupBy.MONTHLY), zone)

        assert [row.period_key for row in report.rows] == ["2025-01", "2025-01"]
        assert report.rows[0].quantity == 6.0
        assert report.rows[0].period_label == "ม.ค. 2568"
        assert report.timeline[0].key == "2025-01"

    def test_parse_group_by(self):
        assert parse_group_by(None) == GroupBy.DETAIL
        assert parse_group_by("Quarterly") == GroupBy.QUARTERLY
        with pytest.raises(ReportValidationError):
            parse_group_by("weekly")


class TestSummary:
    """Tests for summary totals"""

    def test_totals_and_unit_mix(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january), zone)
        summary = report.summary

        assert summary.transactions == 4
        assert summary.amount == 410.0
        assert summary.average_ticket == 102.5
        assert [unit.total for unit in summary.unit_totals] == [240.0, 120.0, 50.0]
        assert summary.unit_totals[2].average_price == 10.0
        assert summary.target is None
        assert summary.achievement_percent is None

    def test_target_achievement(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january, target=Decimal(820)), zone)
        assert report.summary.achievement_percent == 50.0

    def test_filters_echo(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january, store="a", time_from="10:00"), zone)

        assert report.summary.transactions == 3
        assert report.filters.range_summary == "5 – 7 มกราคม 2568"
        assert report.filters.time_from == "10:00"
        assert report.source.name == "snapshot"

    def test_breakdowns_share(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january), zone)
        by_store = report.breakdowns.by_store
        assert [row.key for row in by_store] == ["A", "B"]
        assert by_store[0].share_percent == pytest.approx(70.73)


class TestPagination:
    """Tests for offset pagination"""

    def test_last_page(self):
        page = paginate(list(range(45)), 3, 20)
        assert page.items == list(range(40, 45))
        assert page.info.total_pages == 3
        assert not page.info.has_next_page
        assert page.info.has_prev_page

    def test_page_past_end_is_empty(self):
        page = paginate(list(range(5)), 4, 10)
        assert page.items == []
        assert page.info.total_pages == 1

    def test_no_rows(self):
        page = paginate([], 1, 10)
        assert page.info.total_pages == 0
        assert not page.info.has_next_page

    def test_report_pages(self, sales, january, zone):
        report = build_sales_report(sales, SalesReportQuery(ranges=january, page=2, page_size=3), zone)
        assert len(report.rows) == 1
        assert report.pagination.total_rows == 4
        assert report.pagination.total_pages == 2
