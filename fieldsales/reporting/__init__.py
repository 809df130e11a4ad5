"""
Report Assembly

Builders that turn a record snapshot into the dashboard and report
payloads. ``fieldsales.reporting.service`` wires them to the record
sources.
"""
from .attendance import AttendanceReportQuery, build_attendance_report
from .comparison import ComparisonQuery, build_sales_comparison
from .dashboard import DashboardConfig, DashboardQuery, build_dashboard
from .products import ProductReportQuery, build_product_report
from .roi import ExpenseItem, ExpensePlan, RoiConfig, RoiQuery, build_roi_report
from .sales_report import GroupBy, SalesReportQuery, build_sales_report

__all__ = [
    "AttendanceReportQuery",
    "build_attendance_report",
    "ComparisonQuery",
    "build_sales_comparison",
    "DashboardConfig",
    "DashboardQuery",
    "build_dashboard",
    "ProductReportQuery",
    "build_product_report",
    "ExpenseItem",
    "ExpensePlan",
    "RoiConfig",
    "RoiQuery",
    "build_roi_report",
    "GroupBy",
    "SalesReportQuery",
    "build_sales_report",
]
