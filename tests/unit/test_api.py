"""
Unit Tests - Report API
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from fieldsales.errors import RecordSourceError
from fieldsales.ingestion.sources import SourceCapabilities, SourceChain
from fieldsales.reporting.roi import ExpensePlan
from fieldsales.reporting.service import ReportService
from fieldsales.serving.api.main import create_api_app

NOW = datetime(2025, 1, 20, 5, 0, tzinfo=timezone.utc)
JANUARY = "2025-01-01:2025-01-31"


class MemorySource:
    name = "database"
    capabilities = SourceCapabilities()

    def __init__(self, sales=(), attendance=()):
        self.sales = list(sales)
        self.attendance = list(attendance)

    async def fetch_sales(self, query):
        return [record for record in self.sales if query.admits(record)]

    async def fetch_attendance(self, query):
        return [record for record in self.attendance if query.admits(record)]


class DownSource:
    name = "database"
    capabilities = SourceCapabilities()

    async def fetch_sales(self, query):
        raise RecordSourceError(self.name, "connection refused")

    async def fetch_attendance(self, query):
        raise RecordSourceError(self.name, "connection refused")


class MemoryDirectory:

    async def employee_name(self, employee_id):
        return {"emp-1": "Somchai"}.get(employee_id)

    async def store_name(self, store_id):
        return {"store-1": "Lotus"}.get(store_id)

    async def expense_plan(self, employee_id, month):
        return ExpensePlan(baseline=Decimal(100))

    async def monthly_target(self, employee_id, month):
        return None


@pytest.fixture
def sales(make_sale):
    return [
        make_sale(day="2025-01-10", employee="Somchai", store="Lotus", code="P1", total=300),
        make_sale(day="2025-01-11", employee="Malee", store="Big C", code="P2", total=200),
    ]


@pytest.fixture
def make_client(reporting_settings):
    def _make(*sources):
        app = create_api_app()
        app.state.report_service = ReportService(
            SourceChain(list(sources)), MemoryDirectory(), reporting_settings, clock=lambda: NOW
        )
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client, sales, make_attendance):
    return make_client(MemorySource(sales, [make_attendance(day="2025-01-10", employee="Somchai")]))


class TestSalesEndpoint:
    """Tests for GET /api/v1/reports/sales"""

    def test_sales_report(self, client):
        response = client.get("/api/v1/reports/sales", params={"range": JANUARY, "group_by": "daily"})

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["amount"] == 500.0
        assert body["filters"]["group_by"] == "daily"
        assert body["pagination"]["total_rows"] == 2
        assert "X-Request-ID" in response.headers

    def test_repeated_ranges(self, client):
        response = client.get(
            "/api/v1/reports/sales",
            params=[("range", "2025-01-10"), ("range", "2025-01-11:2025-01-11")],
        )
        assert len(response.json()["filters"]["ranges"]) == 2

    def test_employee_id(self, client):
        response = client.get("/api/v1/reports/sales", params={"range": JANUARY, "employee_id": "emp-1"})
        assert response.json()["summary"]["amount"] == 300.0

    def test_unknown_grouping(self, client):
        response = client.get("/api/v1/reports/sales", params={"group_by": "weekly"})
        assert response.status_code == 400

    def test_page_size_out_of_bounds(self, client):
        response = client.get("/api/v1/reports/sales", params={"page_size": 5})
        assert response.status_code == 400

    def test_unknown_employee(self, client):
        response = client.get("/api/v1/reports/sales", params={"employee_id": "emp-404"})
        assert response.status_code == 404

    def test_all_sources_down(self, make_client):
        response = make_client(DownSource()).get("/api/v1/reports/sales")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"


class TestOtherReports:

    def test_comparison(self, client):
        response = client.get("/api/v1/reports/sales-comparison", params={"year": 2568})

        assert response.status_code == 200
        assert response.json()["filters"]["year"] == 2025

    def test_comparison_bad_months(self, client):
        response = client.get("/api/v1/reports/sales-comparison", params={"year": 2025, "start_month": 13})
        assert response.status_code == 400

    def test_roi(self, client):
        response = client.get("/api/v1/reports/roi", params={"employee_id": "emp-1", "range": JANUARY})

        assert response.status_code == 200
        assert response.json()["summary"]["total_sales"] == 300.0

    def test_roi_requires_employee(self, client):
        assert client.get("/api/v1/reports/roi").status_code == 400

    def test_attendance(self, client):
        response = client.get("/api/v1/reports/attendance", params={"employee_id": "emp-1", "range": JANUARY})

        assert response.status_code == 200
        body = response.json()
        assert body["current_month"]["month_key"] == "2025-01"
        assert len(body["rows"]) == 31
        assert body["summary"]["present_days"] == 1
        assert body["rows"][9]["status"] == "present"

    def test_attendance_requires_employee(self, client):
        assert client.get("/api/v1/reports/attendance", params={"range": JANUARY}).status_code == 400

    def test_attendance_unknown_store(self, client):
        response = client.get(
            "/api/v1/reports/attendance",
            params={"employee_id": "emp-1", "range": JANUARY, "store_id": "store-404"},
        )
        assert response.status_code == 400

    def test_products_multi_select(self, client):
        response = client.get(
            "/api/v1/reports/products",
            params=[("range", JANUARY), ("store", "Lotus"), ("store", "big c")],
        )

        assert response.status_code == 200
        assert response.json()["summary"]["unique_stores"] == 2

    def test_dashboard(self, client):
        response = client.get("/api/v1/dashboard/snapshot", params={"range_mode": "month", "range_value": "2025-01"})

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["revenue"]["value"] == 500.0
        assert body["summary"]["check_ins"]["value"] == 1

    def test_dashboard_store_id(self, client):
        response = client.get("/api/v1/dashboard/snapshot", params={"range_value": "2025-01", "store_id": "store-1"})
        assert response.json()["summary"]["revenue"]["value"] == 300.0

    def test_dashboard_bad_mode(self, client):
        response = client.get("/api/v1/dashboard/snapshot", params={"range_mode": "fortnight"})
        assert response.status_code == 400


class TestServiceWiring:

    def test_service_not_ready(self):
        client = TestClient(create_api_app())
        assert client.get("/api/v1/reports/sales").status_code == 503

    def test_liveness(self):
        client = TestClient(create_api_app())
        assert client.get("/api/v1/health/live").json() == {"status": "alive"}
