"""
Database Models

Event tables written by the field app and read by the reporting engine,
plus the directory tables used to resolve request ids to names:

Event Tables:
- SalesRecordRow: one sold line item
- AttendanceRecordRow: check-in / check-out events

Directory Tables:
- Employee, Store
- ExpensePlanRow + ExpenseItemRow: monthly expense plan per employee
- MonthlyTarget: monthly revenue target per employee
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# DIRECTORY
# =============================================================================

class Employee(Base):
    """Field sales employee (PC)"""
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    province: Mapped[Optional[str]] = mapped_column(String(100))
    region: Mapped[Optional[str]] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    expense_plans: Mapped[List["ExpensePlanRow"]] = relationship(back_populates="employee")

    __table_args__ = (
        Index("idx_employees_name", "name"),
    )


class Store(Base):
    """Retail store visited by employees"""
    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    province: Mapped[Optional[str]] = mapped_column(String(100))
    region: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ExpensePlanRow(Base):
    """Baseline expenses of one employee for one month"""
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(ForeignKey("employees.id"), nullable=False)
    effective_month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    baseline: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    employee: Mapped["Employee"] = relationship(back_populates="expense_plans")
    items: Mapped[List["ExpenseItemRow"]] = relationship(
        back_populates="plan", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "effective_month", name="uq_expenses_employee_month"),
    )


class ExpenseItemRow(Base):
    """Labelled line of an expense plan"""
    __tablename__ = "expense_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    expense_id: Mapped[int] = mapped_column(ForeignKey("expenses.id"), nullable=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    plan: Mapped["ExpensePlanRow"] = relationship(back_populates="items")


class MonthlyTarget(Base):
    """Monthly revenue target of one employee"""
    __tablename__ = "monthly_targets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str] = mapped_column(ForeignKey("employees.id"), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    target_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="uq_targets_employee_month"),
    )


# =============================================================================
# EVENTS
# =============================================================================

class SalesRecordRow(Base):
    """One sold line item as submitted from the field"""
    __tablename__ = "sales_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sold_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    day_key: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD, reporting zone
    employee_name: Mapped[str] = mapped_column(String(200), default="")
    store_name: Mapped[str] = mapped_column(String(200), default="")
    product_code: Mapped[str] = mapped_column(String(100), default="")
    product_name: Mapped[str] = mapped_column(String(300), default="")
    unit_label: Mapped[str] = mapped_column(String(100), default="")
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    status: Mapped[str] = mapped_column(String(50), default="completed")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_sales_day_key", "day_key"),
        Index("idx_sales_employee_day", "employee_name", "day_key"),
        Index("idx_sales_store_day", "store_name", "day_key"),
    )


class AttendanceRecordRow(Base):
    """Check-in or check-out event"""
    __tablename__ = "attendance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    day_key: Mapped[str] = mapped_column(String(10), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(200), default="")
    store_name: Mapped[str] = mapped_column(String(200), default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # check-in | check-out
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_attendance_day_key", "day_key"),
        Index("idx_attendance_employee_day", "employee_name", "day_key"),
    )
