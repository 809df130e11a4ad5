"""
Unit Tests - ROI Report
"""
from dataclasses import replace
from decimal import Decimal

import pytest

from fieldsales.errors import ReportValidationError
from fieldsales.reporting.roi import (
    ExpenseItem,
    ExpensePlan,
    RoiQuery,
    build_roi_report,
    summarize_attendance,
)


@pytest.fixture
def sales(make_sale):
    return [
        make_sale(day="2025-01-06", employee="X", code="P1", name="Water", total=1000),
        make_sale(day="2025-01-07", employee="X", code="P2", name="Coffee", store="B", total=500),
        make_sale(day="2025-01-08", employee="x", code="P1", name="Water", total=200),
        make_sale(day="2025-01-06", employee="Y", code="P1", name="Water", total=9999),
    ]


@pytest.fixture
def attendance(make_attendance):
    return [
        make_attendance(day="2025-01-06", at="08:00", employee="X", status="check-in"),
        make_attendance(day="2025-01-06", at="17:00", employee="X", status="check-out"),
        make_attendance(day="2025-01-07", at="09:00", employee="X", status="check-in"),
        make_attendance(day="2025-01-08", at="09:00", employee="Y", status="check-in"),
    ]


@pytest.fixture
def query(make_range):
    return RoiQuery(
        employee_name="X",
        ranges=[make_range("2025-01-06", "2025-01-08")],
        employee_id="emp-1",
        expenses=ExpensePlan(baseline=Decimal(300), items=(ExpenseItem("ค่าน้ำมัน", Decimal(200)),)),
    )


class TestAttendanceSummary:
    """Tests for working-day and hour derivation"""

    def test_working_and_full_days(self, attendance):
        own = [record for record in attendance if record.employee_name == "X"]
        summary = summarize_attendance(own)

        assert summary.working_days == 2
        assert summary.fully_attended_days == 1
        assert summary.total_hours == Decimal(9)
        assert summary.working_day_keys == frozenset({"2025-01-06", "2025-01-07"})

    def test_earliest_in_latest_out(self, make_attendance):
        summary = summarize_attendance([
            make_attendance(at="09:00", status="check-in"),
            make_attendance(at="08:00", status="check-in"),
            make_attendance(at="12:00", status="check-out"),
            make_attendance(at="16:00", status="check-out"),
        ])
        assert summary.total_hours == Decimal(8)

    def test_checkout_before_checkin_has_no_hours(self, make_attendance):
        summary = summarize_attendance([
            make_attendance(at="17:00", status="check-in"),
            make_attendance(at="08:00", status="check-out"),
        ])
        assert summary.fully_attended_days == 1
        assert summary.total_hours == Decimal(0)


class TestBuildRoiReport:
    """Tests for ROI assembly"""

    def test_summary(self, sales, attendance, query, zone):
        summary = build_roi_report(sales, attendance, query, zone).summary

        assert summary.total_sales == 1700.0
        assert summary.total_expenses == 450.0
        assert summary.net_profit == 1250.0
        assert summary.roi_percent == 277.78
        assert summary.revenue_per_expense == 3.78
        assert summary.expense_ratio == 26.47
        assert summary.transactions == 3
        assert summary.estimated_profit == 510.0

    def test_expense_lines_largest_first(self, sales, attendance, query, zone):
        lines = build_roi_report(sales, attendance, query, zone).expenses
        assert [(line.label, line.amount) for line in lines] == [("ค่าน้ำมัน", 200.0), ("เบี้ยเลี้ยง (1 วัน)", 150.0)]
        assert lines[1].percent == 33.33

    def test_work_efficiency(self, sales, attendance, query, zone):
        efficiency = build_roi_report(sales, attendance, query, zone).work_efficiency

        assert efficiency.working_days == 2
        assert efficiency.total_hours == 9.0
        assert efficiency.avg_hours_per_day == 4.5
        assert efficiency.avg_revenue_per_day == 850.0
        assert efficiency.avg_revenue_per_hour == 188.89

    def test_expenses_allocated_to_working_days(self, sales, attendance, query, zone):
        timeline = build_roi_report(sales, attendance, query, zone).timeline

        assert [point.expenses for point in timeline] == [225.0, 225.0, 0.0]
        assert [point.net for point in timeline] == [775.0, 275.0, 200.0]
        assert timeline[0].label == "6 ม.ค. 2568"

    def test_expenses_spread_over_range_without_attendance(self, sales, query, zone):
        """Without a working day every day carries an equal share"""
        report = build_roi_report(sales, [], query, zone)

        assert [point.expenses for point in report.timeline] == [100.0, 100.0, 100.0]
        assert sum(point.expenses for point in report.timeline) == report.summary.total_expenses
        assert [point.net for point in report.timeline] == [900.0, 400.0, 100.0]

    def test_top_products(self, sales, attendance, query, zone):
        top = build_roi_report(sales, attendance, query, zone).top_products

        assert [product.product_code for product in top] == ["P1", "P2"]
        assert top[0].revenue == 1200.0
        assert top[0].estimated_profit == 360.0
        assert top[0].share_percent == 70.59

    def test_store_narrows_sales_only(self, sales, attendance, query, zone):
        report = build_roi_report(sales, attendance, replace(query, store="b"), zone)
        assert report.summary.total_sales == 500.0
        assert report.work_efficiency.working_days == 2

    def test_no_activity(self, query, zone):
        report = build_roi_report([], [], query, zone)

        assert report.summary.total_expenses == 300.0
        assert report.summary.roi_percent == -100.0
        assert report.summary.expense_ratio == 0.0
        assert report.work_efficiency.avg_revenue_per_hour == 0.0

    def test_employee_required(self, make_range, zone):
        with pytest.raises(ReportValidationError):
            build_roi_report([], [], RoiQuery(employee_name=" ", ranges=[make_range("2025-01-06")]), zone)
