"""
Derived Metrics

Percent change, month-over-month deltas, ROI ratios, averages and top-N
rankings computed from aggregated cells. Division by zero is never an
error: each ratio has a fixed zero policy.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Hashable, List, Optional, Sequence, Tuple, Union
import math

from fieldsales.analytics.aggregator import AggregationCell, CellMap

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")
HUNDRED = Decimal(100)
ZERO = Decimal(0)


def _decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, float) and not math.isfinite(value):
        return ZERO
    return Decimal(str(value))


def round_money(value: Optional[Number]) -> Decimal:
    """Two-decimal currency rounding, halves away from zero"""
    return _decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_change(current: Optional[Number], previous: Optional[Number]) -> Decimal:
    """
    Relative change of ``current`` against ``previous`` in percent.

    A zero baseline yields 0 when ``current`` is also zero and 100 otherwise.
    Non-finite input is read as zero.
    """
    current_value = _decimal(current)
    previous_value = _decimal(previous)
    if previous_value == 0:
        return ZERO if current_value == 0 else HUNDRED
    return (current_value - previous_value) / abs(previous_value) * HUNDRED


def ratio_percent(part: Optional[Number], whole: Optional[Number]) -> Decimal:
    """``part / whole * 100``, or 0 when ``whole`` is not positive"""
    whole_value = _decimal(whole)
    if whole_value <= 0:
        return ZERO
    return _decimal(part) / whole_value * HUNDRED


def contribution_percent(cell: AggregationCell, grand_total: Optional[Number]) -> Decimal:
    """Share of ``grand_total`` revenue carried by ``cell``"""
    return ratio_percent(cell.revenue_sum, grand_total)


def safe_divide(numerator: Optional[Number], denominator: Optional[Number]) -> Decimal:
    denominator_value = _decimal(denominator)
    if denominator_value == 0:
        return ZERO
    return _decimal(numerator) / denominator_value


def average_ticket(total_revenue: Optional[Number], transaction_count: int) -> Decimal:
    if transaction_count <= 0:
        return ZERO
    return _decimal(total_revenue) / Decimal(transaction_count)


@dataclass(frozen=True)
class DerivedMetric:
    """A value next to its previous-period counterpart"""
    value: Decimal
    previous_value: Decimal
    delta_percent: Decimal


def derive(current: Optional[Number], previous: Optional[Number]) -> DerivedMetric:
    return DerivedMetric(
        value=_decimal(current),
        previous_value=_decimal(previous),
        delta_percent=percent_change(current, previous),
    )


@dataclass(frozen=True)
class PeriodDelta:
    """
    Change of one period against the one before it.

    ``comparable`` is False for the first period of a series, whose
    ``diff_percent`` is None rather than a numeric zero.
    """
    index: int
    revenue: Decimal
    diff_amount: Decimal
    diff_percent: Optional[Decimal]
    comparable: bool


def month_over_month(series: Sequence[Union[AggregationCell, Number]]) -> List[PeriodDelta]:
    """Sequential revenue deltas over a period series (cells or plain amounts)"""
    values = [
        item.revenue_sum if isinstance(item, AggregationCell) else _decimal(item)
        for item in series
    ]
    deltas: List[PeriodDelta] = []
    for index, value in enumerate(values):
        if index == 0:
            deltas.append(PeriodDelta(index, value, ZERO, None, False))
            continue
        previous = values[index - 1]
        deltas.append(
            PeriodDelta(
                index=index,
                revenue=value,
                diff_amount=value - previous,
                diff_percent=percent_change(value, previous),
                comparable=True,
            )
        )
    return deltas


def revenue_of(cell: AggregationCell) -> Decimal:
    return cell.revenue_sum


def top_n(
    cells: Union[CellMap, Sequence[Tuple[Hashable, AggregationCell]]],
    n: Optional[int],
    key: Callable[[AggregationCell], Number] = revenue_of,
) -> List[Tuple[Hashable, AggregationCell]]:
    """
    Highest ``n`` entries by ``key``, descending.

    The sort is stable: equal entries keep their insertion (scan) order.
    ``n=None`` returns the full ranking.
    """
    items = cells.items() if isinstance(cells, CellMap) else list(cells)
    ranked = sorted(items, key=lambda item: key(item[1]), reverse=True)
    return ranked if n is None else ranked[:max(n, 0)]


@dataclass(frozen=True)
class RoiMetrics:
    total_sales: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    roi_percent: Decimal
    revenue_per_expense: Decimal
    expense_ratio: Decimal


def roi(total_sales: Optional[Number], total_expenses: Optional[Number]) -> RoiMetrics:
    """Return-on-investment ratios with zero-expense and zero-sales policies"""
    sales = _decimal(total_sales)
    expenses = _decimal(total_expenses)
    net_profit = sales - expenses
    return RoiMetrics(
        total_sales=sales,
        total_expenses=expenses,
        net_profit=net_profit,
        roi_percent=net_profit / expenses * HUNDRED if expenses > 0 else ZERO,
        revenue_per_expense=sales / expenses if expenses > 0 else ZERO,
        expense_ratio=expenses / sales * HUNDRED if sales > 0 else ZERO,
    )
