"""
Test Suite Configuration
"""
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fieldsales.analytics.calendar import instant_day_key, zoned_instant
from fieldsales.analytics.ranges import build_range
from fieldsales.analytics.records import AttendanceRecord, AttendanceStatus, SalesRecord
from fieldsales.config import ReportingSettings, Settings
from fieldsales.database.models import Base


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def reporting_settings(tmp_path) -> ReportingSettings:
    """Reporting defaults with the activity log under a temp dir"""
    return ReportingSettings(
        timezone="Asia/Bangkok",
        label_locale="th",
        event_log_path=str(tmp_path / "activity_log.ndjson"),
    )


@pytest.fixture
def zone() -> ZoneInfo:
    return ZoneInfo("Asia/Bangkok")


@pytest.fixture
def make_range(zone):
    """Build an inclusive DateRange from ISO day keys"""
    def _make(first: str, last: str = None, locale: str = "th"):
        return build_range(date.fromisoformat(first), date.fromisoformat(last or first), zone, locale)
    return _make


@pytest.fixture
def make_sale(zone):
    """Sales record sold at a local Bangkok day and time"""
    def _make(
        day: str = "2025-01-15",
        at: str = "10:00",
        employee: str = "สมชาย ใจดี",
        store: str = "โลตัส สาขา 1",
        code: str = "P0001",
        name: str = "น้ำดื่ม 600 มล.",
        unit: str = "ชิ้น",
        quantity="1",
        unit_price="100",
        total=None,
        status: str = "completed",
    ) -> SalesRecord:
        year, month, day_of_month = (int(part) for part in day.split("-"))
        hour, minute = (int(part) for part in at.split(":"))
        instant = zoned_instant(zone, year, month, day_of_month, hour, minute)
        quantity = Decimal(str(quantity))
        unit_price = Decimal(str(unit_price))
        return SalesRecord(
            timestamp=instant,
            day_key=instant_day_key(instant, zone),
            employee_name=employee,
            store_name=store,
            product_code=code,
            product_name=name,
            unit_label=unit,
            quantity=quantity,
            unit_price=unit_price,
            total=Decimal(str(total)) if total is not None else quantity * unit_price,
            status=status,
        )
    return _make


@pytest.fixture
def make_attendance(zone):
    """Attendance event at a local Bangkok day and time"""
    def _make(
        day: str = "2025-01-15",
        at: str = "08:30",
        employee: str = "สมชาย ใจดี",
        store: str = "โลตัส สาขา 1",
        status: str = "check-in",
    ) -> AttendanceRecord:
        year, month, day_of_month = (int(part) for part in day.split("-"))
        hour, minute = (int(part) for part in at.split(":"))
        instant = zoned_instant(zone, year, month, day_of_month, hour, minute)
        return AttendanceRecord(
            timestamp=instant,
            day_key=instant_day_key(instant, zone),
            employee_name=employee,
            store_name=store,
            status=AttendanceStatus(status),
        )
    return _make


@pytest.fixture
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session
        await session.rollback()
