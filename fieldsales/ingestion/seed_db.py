"""
Database Seeder

Loads the CSVs written by ``scripts/generate_dataset.py`` into the
reporting tables. Event rows go through the same cleaner the record
sources use, so stored day keys match the reporting zone.

Usage:
    python -m fieldsales.ingestion.seed_db
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List

import polars as pl
import structlog
from sqlalchemy import insert

from fieldsales.config import get_settings
from fieldsales.database.connection import close_database, get_db, get_engine, init_database
from fieldsales.database.models import (
    AttendanceRecordRow,
    Base,
    Employee,
    ExpenseItemRow,
    ExpensePlanRow,
    MonthlyTarget,
    SalesRecordRow,
    Store,
)
from fieldsales.transformation.cleaners import RecordCleaner

logger = structlog.get_logger(__name__)
settings = get_settings()

DATA_DIR = Path(__file__).resolve().parents[2] / "data" / "generated"
CHUNK_SIZE = 1000


async def execute_batch_insert(model: Any, records: List[Dict[str, Any]]) -> None:
    """Insert records in chunks using Core insert"""
    if not records:
        return

    async with get_db() as db:
        for i in range(0, len(records), CHUNK_SIZE):
            await db.execute(insert(model), records[i:i + CHUNK_SIZE])
    logger.info("Inserted records", table=model.__tablename__, count=len(records))


def read_rows(name: str) -> List[Dict[str, Any]]:
    path = DATA_DIR / name
    if not path.exists():
        logger.warning("Seed file missing, skipping", path=str(path))
        return []
    return pl.read_csv(path, infer_schema_length=0).to_dicts()


async def seed_directory() -> None:
    logger.info("Seeding employees and stores...")
    await execute_batch_insert(Employee, [
        {key: row[key] for key in ("id", "name", "phone", "province", "region")}
        for row in read_rows("employees.csv")
    ])
    await execute_batch_insert(Store, [
        {key: row[key] for key in ("id", "name", "province", "region")}
        for row in read_rows("stores.csv")
    ])


async def seed_plans() -> None:
    logger.info("Seeding expense plans and targets...")
    await execute_batch_insert(ExpensePlanRow, [
        {
            "id": int(row["id"]),
            "employee_id": row["employee_id"],
            "effective_month": row["effective_month"],
            "baseline": float(row["baseline"]),
        }
        for row in read_rows("expenses.csv")
    ])
    await execute_batch_insert(ExpenseItemRow, [
        {"expense_id": int(row["expense_id"]), "label": row["label"], "amount": float(row["amount"])}
        for row in read_rows("expense_items.csv")
    ])
    await execute_batch_insert(MonthlyTarget, [
        {"employee_id": row["employee_id"], "month": row["month"], "target_revenue": float(row["target_revenue"])}
        for row in read_rows("monthly_targets.csv")
    ])


async def seed_events() -> None:
    logger.info("Seeding sales and attendance...")
    cleaner = RecordCleaner(settings.reporting.zone)

    sales = cleaner.sales_records(read_rows("sales.csv"))
    await execute_batch_insert(SalesRecordRow, [
        {
            "sold_at": record.timestamp,
            "day_key": record.day_key,
            "employee_name": record.employee_name,
            "store_name": record.store_name,
            "product_code": record.product_code,
            "product_name": record.product_name,
            "unit_label": record.unit_label,
            "quantity": record.quantity,
            "unit_price": record.unit_price,
            "total": record.total,
            "status": record.status,
        }
        for record in sales
    ])

    attendance = cleaner.attendance_records(read_rows("attendance.csv"))
    await execute_batch_insert(AttendanceRecordRow, [
        {
            "recorded_at": record.timestamp,
            "day_key": record.day_key,
            "employee_name": record.employee_name,
            "store_name": record.store_name,
            "status": record.status.value,
        }
        for record in attendance
    ])


async def create_tables() -> None:
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def main():
    logger.info("Starting database seeding...", data_dir=str(DATA_DIR))
    await init_database()

    try:
        await create_tables()
        await seed_directory()
        await seed_plans()
        await seed_events()
        logger.info("Database seeding completed successfully!")
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await close_database()


if __name__ == "__main__":
    asyncio.run(main())
