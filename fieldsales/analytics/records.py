"""
Event Records

Immutable sales and attendance facts consumed by the reporting engine,
plus the unit-category classification of free-text packaging labels.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union

UNSPECIFIED = "ไม่ระบุ"
DEFAULT_SALES_STATUS = "completed"


class UnitCategory(str, Enum):
    """Canonical packaging unit"""
    BOX = "box"
    PACK = "pack"
    PIECE = "piece"


UNIT_KEYWORDS = {
    UnitCategory.BOX: ("กล่อง", "box", "ลัง"),
    UnitCategory.PACK: ("แพ็ค", "แพค", "pack"),
}

UNIT_ORDER = (UnitCategory.BOX, UnitCategory.PACK, UnitCategory.PIECE)


class AttendanceStatus(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


def classify_unit(unit_label: Any) -> UnitCategory:
    """Map any unit label to a category; unmatched labels are pieces"""
    if not unit_label:
        return UnitCategory.PIECE
    label = str(unit_label).casefold()
    for category, keywords in UNIT_KEYWORDS.items():
        if any(keyword in label for keyword in keywords):
            return category
    return UnitCategory.PIECE


def to_decimal(value: Any) -> Decimal:
    """Coerce numeric input to Decimal; unusable values become zero"""
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal(0)
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        result = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return result if result.is_finite() else Decimal(0)


def dimension_value(value: Union[str, None]) -> str:
    """Trimmed dimension value, or the unspecified sentinel when empty"""
    if value is None:
        return UNSPECIFIED
    text = str(value).strip()
    return text or UNSPECIFIED


@dataclass(frozen=True)
class SalesRecord:
    """One sold line item"""
    timestamp: datetime
    day_key: str
    employee_name: str
    store_name: str
    product_code: str
    product_name: str
    unit_label: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal
    status: str = DEFAULT_SALES_STATUS

    @property
    def unit_category(self) -> UnitCategory:
        return classify_unit(self.unit_label)

    @property
    def product_key(self) -> str:
        """``code::name`` with the unspecified sentinel for missing parts"""
        code = (self.product_code or "").strip() or UNSPECIFIED
        return f"{code}::{dimension_value(self.product_name)}"


@dataclass(frozen=True)
class AttendanceRecord:
    """A check-in or check-out event"""
    timestamp: datetime
    day_key: str
    employee_name: str
    store_name: str
    status: AttendanceStatus

    @property
    def is_check_in(self) -> bool:
        return self.status == AttendanceStatus.CHECK_IN

    @property
    def is_check_out(self) -> bool:
        return self.status == AttendanceStatus.CHECK_OUT


EventRecord = Union[SalesRecord, AttendanceRecord]
