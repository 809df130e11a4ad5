"""
Report Response Models

Pydantic models for the report shapes. Every report carries the echoed
filters, summary totals, per-dimension breakdowns, a timeline, the record
source it was built from and a ``generated_at`` timestamp.

Money and percentages are floats rounded to two decimals at assembly time.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# SHARED
# =============================================================================

class RangeEcho(BaseModel):
    """Normalized date range as applied"""
    start_day_key: str
    end_day_key: str
    label: str


class SourceInfo(BaseModel):
    """Record source a report was built from"""
    name: str
    degraded: bool = False
    unit_granularity: bool = True


class UnitSales(BaseModel):
    """Sales of one unit category"""
    category: str
    quantity: float = 0.0
    average_price: float = 0.0
    total: float = 0.0


class DimensionRow(BaseModel):
    """One dimension value with its totals and share of the whole"""
    key: str
    label: str
    count: int
    quantity: float
    revenue: float
    share_percent: float


class TimelinePoint(BaseModel):
    """One zero-filled time bucket"""
    key: str
    label: str
    first_day: date
    last_day: date
    count: int
    quantity: float
    revenue: float


class KpiMetric(BaseModel):
    value: float
    previous_value: float
    delta_percent: float


class PageInfo(BaseModel):
    page: int
    page_size: int
    total_rows: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


# =============================================================================
# DASHBOARD
# =============================================================================

class DashboardFilters(BaseModel):
    range_mode: str
    range_value: str
    range_label: str
    range_start: datetime
    range_end: datetime
    previous_range_start: datetime
    previous_range_end: datetime
    store: Optional[str] = None
    employee: Optional[str] = None
    attendance_status: str = "all"
    sales_status: str = "all"
    time_from: Optional[str] = None
    time_to: Optional[str] = None


class DashboardSummary(BaseModel):
    revenue: KpiMetric
    transactions: KpiMetric
    quantity: KpiMetric
    average_ticket: KpiMetric
    check_ins: KpiMetric
    check_outs: KpiMetric
    active_employees: KpiMetric


class AttendancePoint(BaseModel):
    key: str
    label: str
    check_ins: int
    check_outs: int


class PerformancePoint(BaseModel):
    day_key: str
    label: str
    revenue: float
    transactions: int
    quantity: float
    check_ins: int
    check_outs: int


class PerformanceRollup(BaseModel):
    """Latest lookback window against the one before it"""
    days: int
    current_revenue: float
    previous_revenue: float
    revenue_delta_percent: float
    current_check_ins: int
    previous_check_ins: int
    check_ins_delta_percent: float


class DashboardBreakdowns(BaseModel):
    by_store: List[DimensionRow]
    by_employee: List[DimensionRow]
    by_status: List[DimensionRow]


class DashboardSnapshot(BaseModel):
    filters: DashboardFilters
    summary: DashboardSummary
    alerts: List[str]
    breakdowns: DashboardBreakdowns
    timeline: List[TimelinePoint]
    attendance_timeline: List[AttendancePoint]
    performance_timeline: List[PerformancePoint]
    performance_rollup: PerformanceRollup
    available_statuses: List[str]
    source: SourceInfo
    generated_at: datetime


# =============================================================================
# SALES REPORT
# =============================================================================

class SalesReportFilters(BaseModel):
    ranges: List[RangeEcho]
    range_summary: str
    group_by: str
    employee: Optional[str] = None
    store: Optional[str] = None
    status: Optional[str] = None
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    show_all_days: bool = False


class SalesReportRow(BaseModel):
    period_key: str
    period_label: str
    day_of_week: str = ""
    time: Optional[str] = None
    sold_at: Optional[datetime] = None
    store_name: str = ""
    product_code: str = ""
    product_name: str = ""
    units: List[UnitSales] = Field(default_factory=list)
    transactions: int = 0
    quantity: float = 0.0
    unit_price: float = 0.0
    total: float = 0.0
    is_first_of_period: bool = False
    is_empty: bool = False


class SalesReportSummary(BaseModel):
    transactions: int
    quantity: float
    amount: float
    average_ticket: float
    target: Optional[float] = None
    achievement_percent: Optional[float] = None
    unit_totals: List[UnitSales]


class SalesReportBreakdowns(BaseModel):
    by_store: List[DimensionRow]
    by_product: List[DimensionRow]
    by_unit: List[DimensionRow]


class SalesReport(BaseModel):
    filters: SalesReportFilters
    summary: SalesReportSummary
    breakdowns: SalesReportBreakdowns
    timeline: List[TimelinePoint]
    rows: List[SalesReportRow]
    pagination: PageInfo
    source: SourceInfo
    generated_at: datetime


# =============================================================================
# SALES COMPARISON
# =============================================================================

class ComparisonFilters(BaseModel):
    year: int
    start_month: int
    end_month: int
    month_names: List[str]
    employee: Optional[str] = None
    store: Optional[str] = None


class MonthlySales(BaseModel):
    """
    One month of a product's series.

    ``diff_percent`` is None on the first month, where no comparison exists.
    """
    month: int
    month_name_th: str
    total_sales: float
    diff_amount: float
    diff_percent: Optional[float] = None
    comparable: bool = False


class UnitTypeSales(BaseModel):
    quantity: float = 0.0
    avg_price: float = 0.0
    total_sales: float = 0.0


class ProductComparisonRow(BaseModel):
    product_code: str
    product_name: str
    box: UnitTypeSales
    pack: UnitTypeSales
    piece: UnitTypeSales
    monthly_sales: List[MonthlySales]
    total_sales: float
    contribution_percent: float


class ComparisonSummary(BaseModel):
    total_products: int
    year_total_sales: float
    monthly_totals: List[MonthlySales]


class ComparisonBreakdowns(BaseModel):
    by_unit: List[DimensionRow]


class SalesComparisonReport(BaseModel):
    filters: ComparisonFilters
    summary: ComparisonSummary
    breakdowns: ComparisonBreakdowns
    timeline: List[TimelinePoint]
    products: List[ProductComparisonRow]
    source: SourceInfo
    generated_at: datetime


# =============================================================================
# ROI REPORT
# =============================================================================

class RoiFilters(BaseModel):
    employee_id: Optional[str] = None
    employee_name: str
    store: Optional[str] = None
    ranges: List[RangeEcho]
    range_summary: str


class RoiSummary(BaseModel):
    total_sales: float
    total_expenses: float
    net_profit: float
    roi_percent: float
    revenue_per_expense: float
    expense_ratio: float
    transactions: int
    quantity: float
    average_ticket: float
    estimated_profit: float


class ExpenseLine(BaseModel):
    label: str
    amount: float
    percent: float


class WorkEfficiency(BaseModel):
    working_days: int
    fully_attended_days: int
    total_hours: float
    avg_hours_per_day: float
    avg_revenue_per_day: float
    avg_revenue_per_hour: float


class RoiTrendPoint(BaseModel):
    day_key: str
    label: str
    sales: float
    transactions: int
    estimated_profit: float
    expenses: float
    net: float


class TopProduct(BaseModel):
    product_code: str
    product_name: str
    quantity: float
    revenue: float
    estimated_profit: float
    share_percent: float


class RoiBreakdowns(BaseModel):
    by_store: List[DimensionRow]
    by_unit: List[DimensionRow]


class RoiReport(BaseModel):
    filters: RoiFilters
    summary: RoiSummary
    expenses: List[ExpenseLine]
    work_efficiency: WorkEfficiency
    breakdowns: RoiBreakdowns
    timeline: List[RoiTrendPoint]
    top_products: List[TopProduct]
    source: SourceInfo
    generated_at: datetime


# =============================================================================
# PRODUCT SALES REPORT
# =============================================================================

class ProductReportFilters(BaseModel):
    ranges: List[RangeEcho]
    range_summary: str
    employees: List[str] = Field(default_factory=list)
    stores: List[str] = Field(default_factory=list)


class RankedName(BaseModel):
    name: str
    quantity: float
    revenue: float


class StoreProductBreakdown(BaseModel):
    store_name: str
    quantity: float
    revenue: float
    units: Dict[str, UnitSales]


class ProductSalesRow(BaseModel):
    product_key: str
    product_code: str
    product_name: str
    unit_data: Dict[str, UnitSales]
    total_quantity: float
    total_revenue: float
    transactions: int
    average_unit_price: float
    contribution_percent: float
    store_breakdown: List[StoreProductBreakdown]
    top_employees: List[RankedName]
    top_stores: List[RankedName]
    last_sold_at: Optional[datetime] = None


class ProductReportSummary(BaseModel):
    total_quantity: float
    total_revenue: float
    transactions: int
    unique_products: int
    unique_employees: int
    unique_stores: int
    unit_breakdown: Dict[str, UnitSales]
    all_stores: List[str]


class ProductSalesReport(BaseModel):
    filters: ProductReportFilters
    summary: ProductReportSummary
    timeline: List[TimelinePoint]
    products: List[ProductSalesRow]
    source: SourceInfo
    generated_at: datetime


# =============================================================================
# ATTENDANCE REPORT
# =============================================================================

class AttendanceReportFilters(BaseModel):
    employee_id: Optional[str] = None
    employee_name: str
    store: Optional[str] = None
    ranges: List[RangeEcho]
    range_summary: str


class AttendanceDayRow(BaseModel):
    """One covered day; absent days carry no store or times"""
    day_key: str
    label: str
    weekday: str
    status: str
    store_name: Optional[str] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    working_hours: Optional[float] = None


class AttendanceMonth(BaseModel):
    month_key: str
    label: str
    year: int
    month: int
    row_count: int
    present_days: int


class AttendanceReportSummary(BaseModel):
    total_days: int
    present_days: int
    absent_days: int
    attendance_rate: float
    fully_attended_days: int
    total_hours: float
    avg_hours_per_day: float


class AttendanceReport(BaseModel):
    filters: AttendanceReportFilters
    summary: AttendanceReportSummary
    current_month: Optional[AttendanceMonth] = None
    months: List[AttendanceMonth]
    rows: List[AttendanceDayRow]
    pagination: PageInfo
    source: SourceInfo
    generated_at: datetime
