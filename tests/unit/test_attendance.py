"""
Unit Tests - Attendance Report
"""
from dataclasses import replace

import pytest

from fieldsales.errors import ReportValidationError
from fieldsales.reporting.attendance import AttendanceReportQuery, build_attendance_report, month_label
from fieldsales.reporting.roi import attendance_days


@pytest.fixture
def attendance(make_attendance):
    return [
        make_attendance(day="2025-01-30", at="08:00", employee="X", store="A", status="check-in"),
        make_attendance(day="2025-01-30", at="17:30", employee="X", store="A", status="check-out"),
        make_attendance(day="2025-01-31", at="18:00", employee="x", store="A", status="check-out"),
        make_attendance(day="2025-01-31", at="08:00", employee="Y", store="A", status="check-in"),
        make_attendance(day="2025-02-02", at="09:00", employee="X", store="B", status="check-in"),
    ]


@pytest.fixture
def query(make_range):
    return AttendanceReportQuery(
        employee_name="X",
        ranges=[make_range("2025-01-30", "2025-02-02")],
        employee_id="emp-1",
    )


class TestAttendanceDays:

    def test_first_in_last_out_and_store(self, make_attendance):
        days = attendance_days([
            make_attendance(at="09:00", store="", status="check-in"),
            make_attendance(at="08:00", store="A", status="check-in"),
            make_attendance(at="12:00", store="B", status="check-out"),
            make_attendance(at="17:00", store="B", status="check-out"),
        ])
        day = days["2025-01-15"]

        assert day.store_name == "A"
        assert day.hours == 9

    def test_hours_need_both_events(self, make_attendance):
        [day] = attendance_days([make_attendance(status="check-in")]).values()
        assert day.hours is None


class TestBuildAttendanceReport:
    """Tests for the daily attendance sheet"""

    def test_one_row_per_covered_day(self, attendance, query, zone):
        report = build_attendance_report(attendance, query, zone)

        assert [row.day_key for row in report.rows] == ["2025-01-30", "2025-01-31"]
        first, second = report.rows
        assert first.status == "present"
        assert (first.check_in_time, first.check_out_time) == ("08:00", "17:30")
        assert first.working_hours == 9.5
        assert first.store_name == "A"
        assert first.label == "30 ม.ค. 2568"
        assert first.weekday == "พฤหัสบดี"
        assert second.status == "present"
        assert second.check_in_time is None
        assert second.working_hours is None

    def test_absent_day(self, attendance, query, zone):
        rows = build_attendance_report(attendance, replace(query, page=2), zone).rows

        absent, present = rows
        assert absent.day_key == "2025-02-01"
        assert absent.status == "absent"
        assert absent.store_name is None
        assert present.store_name == "B"

    def test_months_and_pagination(self, attendance, query, zone):
        report = build_attendance_report(attendance, query, zone)

        assert [month.month_key for month in report.months] == ["2025-01", "2025-02"]
        assert [month.present_days for month in report.months] == [2, 1]
        assert report.current_month.label == "มกราคม 2568"
        assert report.pagination.page_size == 1
        assert report.pagination.total_pages == 2
        assert report.pagination.has_next_page
        assert not report.pagination.has_prev_page

    def test_page_past_last_month_is_empty(self, attendance, query, zone):
        report = build_attendance_report(attendance, replace(query, page=3), zone)

        assert report.rows == []
        assert report.current_month is None
        assert report.pagination.has_prev_page

    def test_summary(self, attendance, query, zone):
        summary = build_attendance_report(attendance, query, zone).summary

        assert (summary.total_days, summary.present_days, summary.absent_days) == (4, 3, 1)
        assert summary.attendance_rate == 75.0
        assert summary.fully_attended_days == 1
        assert summary.total_hours == 9.5
        assert summary.avg_hours_per_day == 9.5

    def test_store_filter(self, attendance, query, zone):
        report = build_attendance_report(attendance, replace(query, store="b"), zone)

        assert report.summary.present_days == 1
        assert report.filters.store == "b"

    def test_english_month_label(self, make_range):
        assert month_label(make_range("2025-02-01").first_day, "en") == "February 2025"

    def test_employee_required(self, make_range, zone):
        with pytest.raises(ReportValidationError):
            build_attendance_report([], AttendanceReportQuery(employee_name="", ranges=[make_range("2025-01-06")]), zone)
