"""
Unit Tests - Record Cleaning
"""
from datetime import datetime, timezone
from decimal import Decimal

import polars as pl

from fieldsales.analytics.records import AttendanceStatus
from fieldsales.transformation.cleaners import (
    ATTENDANCE_COLUMNS,
    RecordCleaner,
    clean_attendance_rows,
    clean_sales_rows,
    parse_instant,
)


class TestParseInstant:

    def test_zulu_suffix(self):
        assert parse_instant("2025-01-14T18:30:00Z") == datetime(2025, 1, 14, 18, 30, tzinfo=timezone.utc)

    def test_offset_normalized_to_utc(self):
        assert parse_instant("2025-01-15T01:30:00+07:00") == datetime(2025, 1, 14, 18, 30, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_instant("2025-01-14 18:30:00") == datetime(2025, 1, 14, 18, 30, tzinfo=timezone.utc)

    def test_garbage(self):
        assert parse_instant("yesterday") is None
        assert parse_instant("") is None


class TestRecordCleaner:
    """Tests for RecordCleaner"""

    def test_trim_strings(self):
        """Test string trimming"""
        cleaner = RecordCleaner("Asia/Bangkok")
        df = pl.DataFrame({
            "employee_name": ["  สมชาย  ", None],
            "store_name": [" โลตัส", "บิ๊กซี "],
        })

        result = cleaner._trim_strings(df, ["employee_name", "store_name"])

        assert result["employee_name"].to_list() == ["สมชาย", ""]
        assert result["store_name"].to_list() == ["โลตัส", "บิ๊กซี"]

    def test_to_frame_is_all_text(self):
        cleaner = RecordCleaner("Asia/Bangkok")
        df = cleaner.to_frame(
            [{"timestamp": datetime(2025, 1, 1), "employee_name": "A", "status": "check-in", "extra": 1}],
            ATTENDANCE_COLUMNS,
        )

        assert df.columns == list(ATTENDANCE_COLUMNS)
        assert all(dtype == pl.Utf8 for dtype in df.dtypes)
        assert df["store_name"].to_list() == [None]

    def test_sales_records(self):
        """Day keys follow the reporting zone and numbers become Decimal"""
        records = clean_sales_rows(
            [{
                "timestamp": "2025-01-14T18:30:00Z",
                "employee_name": " สมชาย ",
                "store_name": "โลตัส",
                "product_code": "P0001",
                "product_name": "น้ำดื่ม",
                "unit_label": "กล่อง",
                "quantity": "1,000",
                "unit_price": 2.5,
                "total": None,
                "status": "",
            }],
            "Asia/Bangkok",
        )

        [record] = records
        assert record.day_key == "2025-01-15"
        assert record.employee_name == "สมชาย"
        assert record.quantity == Decimal(1000)
        assert record.total == Decimal("2500.0")
        assert record.status == "completed"

    def test_explicit_total_kept(self):
        [record] = clean_sales_rows(
            [{"timestamp": "2025-01-15T03:00:00Z", "quantity": 2, "unit_price": 10, "total": "15", "status": "Completed"}],
            "Asia/Bangkok",
        )
        assert record.total == Decimal(15)
        assert record.status == "completed"
        assert record.product_code == ""

    def test_bad_timestamps_dropped_and_counted(self):
        cleaner = RecordCleaner("Asia/Bangkok")
        records = cleaner.sales_records([
            {"timestamp": "2025-01-15T03:00:00Z", "quantity": 1, "unit_price": 1},
            {"timestamp": "not a time", "quantity": 1, "unit_price": 1},
            {"timestamp": None, "quantity": 1, "unit_price": 1},
        ])

        assert len(records) == 1
        assert cleaner.stats.total_rows == 3
        assert cleaner.stats.invalid_timestamps == 1
        assert cleaner.stats.dropped_rows == 2

    def test_attendance_status_variants(self):
        cleaner = RecordCleaner("Asia/Bangkok")
        records = cleaner.attendance_records([
            {"timestamp": "2025-01-15T01:00:00Z", "employee_name": "A", "status": "CHECK_IN"},
            {"timestamp": "2025-01-15T10:00:00Z", "employee_name": "A", "status": "check out"},
            {"timestamp": "2025-01-15T11:00:00Z", "employee_name": "A", "status": "lunch"},
        ])

        assert [r.status for r in records] == [AttendanceStatus.CHECK_IN, AttendanceStatus.CHECK_OUT]
        assert cleaner.stats.invalid_statuses == 1

    def test_attendance_convenience(self):
        [record] = clean_attendance_rows(
            [{"timestamp": "2025-01-14T17:30:00Z", "employee_name": "A", "store_name": "S", "status": "check-in"}],
            "Asia/Bangkok",
        )
        assert record.day_key == "2025-01-15"
        assert record.is_check_in
