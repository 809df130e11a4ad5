"""
Record Cleaning Module

Turns raw sales and attendance rows (database rows or activity-log
entries) into the immutable records the reporting engine consumes.
Handles:
- String trimming and null filling
- Status normalization
- Timestamp parsing and day-key derivation in the reporting zone
- Numeric coercion to Decimal
- Dropping rows without a usable timestamp or status
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import polars as pl
import structlog

from fieldsales.analytics.calendar import ZoneLike, as_utc, instant_day_key
from fieldsales.analytics.records import (
    DEFAULT_SALES_STATUS,
    AttendanceRecord,
    AttendanceStatus,
    SalesRecord,
    to_decimal,
)

logger = structlog.get_logger(__name__)

SALES_COLUMNS = (
    "timestamp",
    "employee_name",
    "store_name",
    "product_code",
    "product_name",
    "unit_label",
    "quantity",
    "unit_price",
    "total",
    "status",
)

ATTENDANCE_COLUMNS = ("timestamp", "employee_name", "store_name", "status")

ATTENDANCE_STATUSES = [status.value for status in AttendanceStatus]


@dataclass
class CleaningStats:
    """Statistics from one cleaning run"""
    total_rows: int = 0
    rows_after_cleaning: int = 0
    invalid_timestamps: int = 0
    invalid_statuses: int = 0

    @property
    def dropped_rows(self) -> int:
        return self.total_rows - self.rows_after_cleaning


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def parse_instant(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 text to an aware UTC datetime; naive text is read as UTC"""
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


class RecordCleaner:
    """
    Cleaner for raw event rows.

    Raw rows are loaded into a Polars frame with every column as text so
    mixed inputs (numbers, numeric strings, datetimes) never break schema
    inference; numbers become Decimal only when records are built.

    Example:
        cleaner = RecordCleaner("Asia/Bangkok")
        records = cleaner.sales_records(rows)
        print(cleaner.stats.dropped_rows)
    """

    def __init__(self, zone: ZoneLike):
        self.zone = zone
        self.stats = CleaningStats()

    # =========================================================================
    # FRAME STAGE
    # =========================================================================

    def to_frame(self, rows: Iterable[Dict[str, Any]], columns: Tuple[str, ...]) -> pl.DataFrame:
        """Load raw rows as an all-text frame with exactly ``columns``"""
        data = [{column: _text(row.get(column)) for column in columns} for row in rows]
        return pl.DataFrame(data, schema={column: pl.Utf8 for column in columns})

    def _trim_strings(self, df: pl.DataFrame, columns: List[str]) -> pl.DataFrame:
        return df.with_columns(
            [pl.col(column).str.strip_chars().fill_null("").alias(column) for column in columns]
        )

    def clean_sales(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply sales-specific cleaning transformations"""
        df = self._trim_strings(
            df, ["employee_name", "store_name", "product_code", "product_name", "unit_label"]
        )

        # Blank status means a completed sale
        df = df.with_columns(
            pl.col("status").str.strip_chars().str.to_lowercase().fill_null("").alias("status")
        ).with_columns(
            pl.when(pl.col("status") == "")
            .then(pl.lit(DEFAULT_SALES_STATUS))
            .otherwise(pl.col("status"))
            .alias("status")
        )

        df = df.with_columns(
            [
                pl.col(column).str.strip_chars().str.replace_all(",", "").alias(column)
                for column in ("quantity", "unit_price", "total")
            ]
        )
        return df.filter(pl.col("timestamp").is_not_null() & (pl.col("timestamp").str.strip_chars() != ""))

    def clean_attendance(self, df: pl.DataFrame) -> pl.DataFrame:
        """Apply attendance-specific cleaning transformations"""
        df = self._trim_strings(df, ["employee_name", "store_name"])

        # check_in / "check in" / CHECK-IN all mean check-in
        df = df.with_columns(
            pl.col("status")
            .str.strip_chars()
            .str.to_lowercase()
            .str.replace_all(r"[_\s]+", "-")
            .fill_null("")
            .alias("status")
        )

        before = df.height
        df = df.filter(pl.col("status").is_in(ATTENDANCE_STATUSES))
        self.stats.invalid_statuses += before - df.height

        return df.filter(pl.col("timestamp").is_not_null() & (pl.col("timestamp").str.strip_chars() != ""))

    # =========================================================================
    # RECORD STAGE
    # =========================================================================

    def sales_records(self, rows: Iterable[Dict[str, Any]]) -> List[SalesRecord]:
        """Clean raw sales rows into records; unusable rows are dropped"""
        df = self.to_frame(rows, SALES_COLUMNS)
        self.stats.total_rows += df.height
        df = self.clean_sales(df)

        records: List[SalesRecord] = []
        for row in df.iter_rows(named=True):
            instant = parse_instant(row["timestamp"])
            if instant is None:
                self.stats.invalid_timestamps += 1
                continue

            quantity = to_decimal(row["quantity"])
            unit_price = to_decimal(row["unit_price"])
            total = quantity * unit_price if row["total"] in (None, "") else to_decimal(row["total"])

            records.append(
                SalesRecord(
                    timestamp=instant,
                    day_key=instant_day_key(instant, self.zone),
                    employee_name=row["employee_name"],
                    store_name=row["store_name"],
                    product_code=row["product_code"],
                    product_name=row["product_name"],
                    unit_label=row["unit_label"],
                    quantity=quantity,
                    unit_price=unit_price,
                    total=total,
                    status=row["status"],
                )
            )

        self.stats.rows_after_cleaning += len(records)
        self._log("sales")
        return records

    def attendance_records(self, rows: Iterable[Dict[str, Any]]) -> List[AttendanceRecord]:
        """Clean raw attendance rows into records; unusable rows are dropped"""
        df = self.to_frame(rows, ATTENDANCE_COLUMNS)
        self.stats.total_rows += df.height
        df = self.clean_attendance(df)

        records: List[AttendanceRecord] = []
        for row in df.iter_rows(named=True):
            instant = parse_instant(row["timestamp"])
            if instant is None:
                self.stats.invalid_timestamps += 1
                continue
            records.append(
                AttendanceRecord(
                    timestamp=instant,
                    day_key=instant_day_key(instant, self.zone),
                    employee_name=row["employee_name"],
                    store_name=row["store_name"],
                    status=AttendanceStatus(row["status"]),
                )
            )

        self.stats.rows_after_cleaning += len(records)
        self._log("attendance")
        return records

    def _log(self, kind: str) -> None:
        if self.stats.dropped_rows:
            logger.warning(
                "Dropped unusable rows",
                kind=kind,
                total=self.stats.total_rows,
                dropped=self.stats.dropped_rows,
                invalid_timestamps=self.stats.invalid_timestamps,
                invalid_statuses=self.stats.invalid_statuses,
            )


def clean_sales_rows(rows: Iterable[Dict[str, Any]], zone: ZoneLike) -> List[SalesRecord]:
    """Convenience function for one-off sales cleaning"""
    return RecordCleaner(zone).sales_records(rows)


def clean_attendance_rows(rows: Iterable[Dict[str, Any]], zone: ZoneLike) -> List[AttendanceRecord]:
    """Convenience function for one-off attendance cleaning"""
    return RecordCleaner(zone).attendance_records(rows)
