"""
Data Transformation Module
"""
from .cleaners import (
    CleaningStats,
    RecordCleaner,
    clean_attendance_rows,
    clean_sales_rows,
    parse_instant,
)

__all__ = [
    "CleaningStats",
    "RecordCleaner",
    "clean_attendance_rows",
    "clean_sales_rows",
    "parse_instant",
]
