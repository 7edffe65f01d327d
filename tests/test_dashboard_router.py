"""
Unit and Integration tests for Dashboard Router
Run with: pytest tests/test_dashboard_router.py -v
"""

import csv
import io
import pytest
import httpx
from fastapi.testclient import TestClient
from openpyxl import load_workbook
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from conftest import auth_headers, signal
from plantpro.api.core.database import get_session_factory
from plantpro.api.core.security import create_access_token
from plantpro.api.main import app
from plantpro.api.models import UserRole

DASHBOARD = "/api/v1/dashboard"

# Create test client with raise_server_exceptions=False to report unhandled errors as 500
client = TestClient(app, raise_server_exceptions=False)

ALL_ROLE_ENDPOINTS = ["/summary", "/plant-lots", "/zones", "/quick-stats"]
ANALYST_ENDPOINTS = ["/production-trends", "/health-trends", "/alerts"]


@pytest.fixture
async def api(session_factory):
    """Async client against the app with the database swapped for the test SQLite"""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as api_client:
        yield api_client
    app.dependency_overrides.clear()


@pytest.fixture
async def plantation(factory, today):
    staff = await factory.user(UserRole.FIELD_STAFF, first_name="Ana", last_name="Reyes")
    tomato = await factory.species("Tomato")
    north = await factory.zone("North Field")

    first = await factory.lot(tomato, north, assigned_to_id=staff.id, current_yield=12.5)
    second = await factory.lot(tomato, north, planted_date=today - timedelta(days=5))
    await factory.log(first, staff, signal(80, issues=("aphids",)))
    await factory.log(first, staff, signal(60, disease=True))

    return {"first": first, "second": second}


class TestDashboardAuth:
    """Test authentication requirements for dashboard endpoints"""

    @pytest.mark.parametrize("path", ALL_ROLE_ENDPOINTS + ANALYST_ENDPOINTS)
    def test_requires_auth(self, path):
        response = client.get(f"{DASHBOARD}{path}")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_report_requires_auth(self):
        response = client.post(f"{DASHBOARD}/reports/generate", json={"format": "csv"})
        assert response.status_code == 401

    def test_invalid_token(self):
        response = client.get(
            f"{DASHBOARD}/summary",
            headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_token_without_role(self):
        token = create_access_token(data={"sub": "1"})
        response = client.get(f"{DASHBOARD}/summary", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_expired_token(self):
        token = create_access_token(
            data={"sub": "1", "role": UserRole.MANAGER.value},
            expires_delta=timedelta(minutes=-5)
        )
        response = client.get(f"{DASHBOARD}/summary", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.parametrize("path", ANALYST_ENDPOINTS)
    def test_field_staff_forbidden_on_analyst_endpoints(self, path):
        response = client.get(f"{DASHBOARD}{path}", headers=auth_headers(UserRole.FIELD_STAFF))
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

    def test_field_staff_cannot_generate_reports(self):
        response = client.post(
            f"{DASHBOARD}/reports/generate",
            json={"format": "csv"},
            headers=auth_headers(UserRole.FIELD_STAFF)
        )
        assert response.status_code == 403


class TestDashboardValidation:
    """Query validation happens before the service is reached"""

    @pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101", "sortOrder=sideways"])
    def test_invalid_plant_lot_query(self, query):
        response = client.get(
            f"{DASHBOARD}/plant-lots?{query}",
            headers=auth_headers(UserRole.MANAGER)
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("days", [0, 366])
    def test_trend_window_bounds(self, days):
        response = client.get(
            f"{DASHBOARD}/health-trends?days={days}",
            headers=auth_headers(UserRole.ANALYTICS)
        )
        assert response.status_code == 422

    def test_trend_days_forwarded(self):
        with patch(
            "plantpro.api.services.dashboard.DashboardService.get_production_trends",
            new_callable=AsyncMock,
            return_value={"daily": [], "weekly": [], "monthly": []}
        ) as mocked:
            response = client.get(
                f"{DASHBOARD}/production-trends?days=7",
                headers=auth_headers(UserRole.MANAGER)
            )

        assert response.status_code == 200
        mocked.assert_awaited_once_with(7)

    def test_unhandled_error_is_500(self):
        with patch(
            "plantpro.api.services.dashboard.DashboardService.get_dashboard_summary",
            new_callable=AsyncMock,
            side_effect=RuntimeError("store unavailable")
        ):
            response = client.get(f"{DASHBOARD}/summary", headers=auth_headers(UserRole.MANAGER))

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"


class TestDashboardEndpoints:
    """Endpoints against a seeded database"""

    async def test_summary(self, api, plantation):
        response = await api.get(f"{DASHBOARD}/summary", headers=auth_headers(UserRole.FIELD_STAFF))

        assert response.status_code == 200
        data = response.json()
        assert data["totalPlantLots"] == 2
        assert data["healthMetrics"]["averageHealthScore"] == 70
        assert data["healthMetrics"]["diseaseDetectionRate"] == 0.5
        assert "X-Process-Time" in response.headers

    async def test_plant_lots(self, api, plantation):
        response = await api.get(
            f"{DASHBOARD}/plant-lots",
            params={"sortBy": "healthScore", "sortOrder": "DESC", "limit": 1},
            headers=auth_headers(UserRole.MANAGER)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["totalPages"] == 2
        assert data["limit"] == 1
        lot = data["data"][0]
        assert lot["lotNumber"] == plantation["first"].lot_number
        assert lot["healthScore"] == 70
        assert lot["diseaseDetected"] is True
        assert lot["assignedTo"] == {"id": lot["assignedTo"]["id"], "firstName": "Ana", "lastName": "Reyes"}
        assert lot["zone"]["name"] == "North Field"

    async def test_plant_lots_filters(self, api, plantation):
        response = await api.get(
            f"{DASHBOARD}/plant-lots",
            params={"species": "tomato"},
            headers=auth_headers(UserRole.MANAGER)
        )
        assert response.json()["total"] == 0

    async def test_plant_lots_bad_sort(self, api, plantation):
        response = await api.get(
            f"{DASHBOARD}/plant-lots",
            params={"sortBy": "nope"},
            headers=auth_headers(UserRole.MANAGER)
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Bad request", "detail": "Unsupported sort field: nope"}

    async def test_zones(self, api, plantation):
        response = await api.get(f"{DASHBOARD}/zones", headers=auth_headers(UserRole.FIELD_STAFF))

        assert response.status_code == 200
        zones = response.json()
        assert zones[0]["zoneName"] == "North Field"
        assert zones[0]["species"] == [{"name": "Tomato", "count": 2}]

    async def test_trends(self, api, plantation):
        headers = auth_headers(UserRole.ANALYTICS)
        production = await api.get(f"{DASHBOARD}/production-trends", headers=headers)
        health = await api.get(f"{DASHBOARD}/health-trends", params={"days": 7}, headers=headers)

        assert production.status_code == 200
        assert production.json()["daily"][0]["planted"] == 1
        assert set(production.json()["daily"][0]) == {"date", "planted", "harvested", "yield"}
        assert health.status_code == 200
        assert health.json()["commonIssues"] == [{"issue": "aphids", "count": 1, "trend": "increasing"}]

    async def test_quick_stats_and_alerts(self, api, plantation):
        stats = await api.get(f"{DASHBOARD}/quick-stats", headers=auth_headers(UserRole.FIELD_STAFF))
        alerts = await api.get(f"{DASHBOARD}/alerts", headers=auth_headers(UserRole.MANAGER))

        assert stats.json()["averageHealthScore"] == 70
        assert alerts.status_code == 200
        assert alerts.json()["count"] == 1
        assert alerts.json()["alerts"][0]["title"] == "High Disease Detection Rate"


class TestReports:

    async def test_csv_report(self, api, plantation):
        response = await api.post(
            f"{DASHBOARD}/reports/generate",
            json={"format": "csv", "sortBy": "lotNumber", "sortOrder": "ASC"},
            headers=auth_headers(UserRole.ANALYTICS)
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="plantation-report-')
        assert disposition.endswith('.csv"')

        lines = response.text.strip().split("\n")
        assert lines[0].startswith('"Lot Number","Species"')
        assert len(lines) == 3
        assert lines[1].startswith(f'"{plantation["first"].lot_number}","Tomato"')

    async def test_json_report_with_trends(self, api, plantation):
        response = await api.post(
            f"{DASHBOARD}/reports/generate",
            json={"format": "json", "title": "Weekly", "includeHealthLogs": True, "includeAnalytics": True},
            headers=auth_headers(UserRole.MANAGER)
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        document = response.json()
        assert document["metadata"]["title"] == "Weekly"
        assert document["plantLots"]["total"] == 2
        assert {"summary", "zoneAnalytics", "healthTrends", "productionTrends"} <= set(document)

    async def test_excel_report(self, api, plantation):
        response = await api.post(
            f"{DASHBOARD}/reports/generate",
            json={"format": "excel"},
            headers=auth_headers(UserRole.MANAGER)
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == (
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert response.headers["content-disposition"].endswith('.xlsx"')
        # xlsx files are zip archives
        assert response.content[:2] == b"PK"

    async def test_pdf_report_is_html(self, api, plantation):
        response = await api.post(
            f"{DASHBOARD}/reports/generate",
            json={"format": "pdf"},
            headers=auth_headers(UserRole.MANAGER)
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert response.headers["content-disposition"].endswith('.html"')
        assert "<h3>Team Activity</h3>" in response.text

    async def test_csv_and_excel_rows_agree(self, api, plantation, factory):
        pepper = await factory.species("Pepper")
        south = await factory.zone("South Field")
        await factory.lot(pepper, south, current_yield=10)

        filters = {"sortBy": "lotNumber", "sortOrder": "ASC"}
        headers = auth_headers(UserRole.MANAGER)
        csv_response = await api.post(
            f"{DASHBOARD}/reports/generate", json={"format": "csv", **filters}, headers=headers
        )
        excel_response = await api.post(
            f"{DASHBOARD}/reports/generate", json={"format": "excel", **filters}, headers=headers
        )

        csv_rows = list(csv.reader(io.StringIO(csv_response.text)))[1:]
        sheet = load_workbook(io.BytesIO(excel_response.content))["Plant Lots"]
        sheet_rows = [[str(v) for v in row] for row in sheet.iter_rows(min_row=2, values_only=True)]

        assert len(csv_rows) == 3
        assert sheet_rows == csv_rows
        assert [row[5] for row in csv_rows] == ["12.5", "0", "10"]

    async def test_unknown_format(self, api, plantation):
        response = await api.post(
            f"{DASHBOARD}/reports/generate",
            json={"format": "docx"},
            headers=auth_headers(UserRole.MANAGER)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported report format: docx"

    async def test_missing_format(self, api):
        response = await api.post(
            f"{DASHBOARD}/reports/generate",
            json={},
            headers=auth_headers(UserRole.MANAGER)
        )
        assert response.status_code == 422
