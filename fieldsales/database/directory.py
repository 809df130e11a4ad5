"""
Directory Lookups

Resolves request ids to the names recorded on events, and loads the
per-employee expense plan and monthly revenue target.
"""

from decimal import Decimal
from typing import Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldsales.database.models import Employee, ExpensePlanRow, MonthlyTarget, Store
from fieldsales.errors import RecordSourceError
from fieldsales.reporting.roi import ExpenseItem, ExpensePlan

logger = structlog.get_logger(__name__)


class Directory(Protocol):
    async def employee_name(self, employee_id: str) -> Optional[str]:
        ...

    async def store_name(self, store_id: str) -> Optional[str]:
        ...

    async def expense_plan(self, employee_id: str, month: str) -> ExpensePlan:
        ...

    async def monthly_target(self, employee_id: str, month: str) -> Optional[Decimal]:
        ...


class DatabaseDirectory:
    """Directory backed by the ``employees``, ``stores``, ``expenses`` and ``monthly_targets`` tables"""

    name = "directory"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _scalar(self, stmt):
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalars().first()
        except Exception as e:
            raise RecordSourceError(self.name, str(e)) from e

    async def employee_name(self, employee_id: str) -> Optional[str]:
        return await self._scalar(select(Employee.name).where(Employee.id == employee_id))

    async def store_name(self, store_id: str) -> Optional[str]:
        return await self._scalar(select(Store.name).where(Store.id == store_id))

    async def expense_plan(self, employee_id: str, month: str) -> ExpensePlan:
        """Expense plan for ``month`` (YYYY-MM); no plan means no expenses"""
        row = await self._scalar(
            select(ExpensePlanRow)
            .where(
                ExpensePlanRow.employee_id == employee_id,
                ExpensePlanRow.effective_month == month,
            )
        )
        if row is None:
            logger.debug("No expense plan", employee_id=employee_id, month=month)
            return ExpensePlan()

        return ExpensePlan(
            baseline=Decimal(row.baseline or 0),
            items=tuple(ExpenseItem(label=item.label, amount=Decimal(item.amount or 0)) for item in row.items),
        )

    async def monthly_target(self, employee_id: str, month: str) -> Optional[Decimal]:
        value = await self._scalar(
            select(MonthlyTarget.target_revenue).where(
                MonthlyTarget.employee_id == employee_id,
                MonthlyTarget.month == month,
            )
        )
        return Decimal(value) if value is not None else None
