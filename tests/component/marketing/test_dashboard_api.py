"""
Component Tests for the dashboard and calendar endpoints

FastAPI TestClient over the mock-backed service.
"""

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.marketing.data_contract import MarketingTestDataFactory


class TestDashboardEndpoint:
    """GET /api/v1/dashboard"""

    def test_requires_session(self, client, scenario_campaign):
        response = client.get("/api/v1/dashboard")

        assert response.status_code == 401
        assert response.json()["detail"] == "User authentication required"

    def test_rejects_garbage_token(self, client):
        response = client.get("/api/v1/dashboard", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401

    def test_month_mode(self, client, staff_headers, scenario_campaign):
        # When
        response = client.get(
            "/api/v1/dashboard",
            params={"mode": "month", "month": 4, "year": 2024},
            headers=staff_headers,
        )

        # Then
        assert response.status_code == 200
        data = response.json()
        assert [k["displayValue"] for k in data["kpis"]] == ["RM 12,500", "RM 200", "1", "0"]
        assert data["platformSeries"] == [{"name": "TikTok", "value": 1}]
        assert data["financialSeries"][0]["campaignId"] == "c1"
        assert data["description"] == "Performance for May 2024"
        assert data["dateFilter"]["start"] == "2024-05-01"
        assert data["dateFilter"]["end"] == "2024-05-31"
        assert data["error"] is None

    def test_defaults_to_current_month(self, client, staff_headers, scenario_campaign):
        response = client.get("/api/v1/dashboard", headers=staff_headers)

        data = response.json()
        assert data["dateFilter"]["month"] == 4
        assert data["dateFilter"]["year"] == 2024
        assert data["yearOptions"] == [2021, 2022, 2023, 2024, 2025, 2026]

    def test_range_mode(self, client, staff_headers, scenario_campaign):
        response = client.get(
            "/api/v1/dashboard",
            params={"mode": "range", "start": "2024-05-03", "end": "2024-05-10"},
            headers=staff_headers,
        )

        data = response.json()
        assert data["description"] == "Performance for selected range"
        # c1 still overlaps, its plan on May 2 does not fall inside
        assert data["kpis"][0]["value"] == 12500
        assert data["kpis"][1]["value"] == 0

    def test_range_mode_without_bounds_uses_selected_month(self, client, staff_headers, scenario_campaign):
        response = client.get(
            "/api/v1/dashboard",
            params={"mode": "range", "month": 5, "year": 2024},
            headers=staff_headers,
        )

        data = response.json()
        assert (data["dateFilter"]["start"], data["dateFilter"]["end"]) == ("2024-06-01", "2024-06-30")

    def test_invalid_range_is_empty_not_error(self, client, staff_headers, scenario_campaign):
        response = client.get(
            "/api/v1/dashboard",
            params={"mode": "range", "start": "yesterday", "end": "2024-05-31"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        assert [k["value"] for k in response.json()["kpis"]] == [0, 0, 0, 0]

    def test_month_out_of_range(self, client, staff_headers):
        response = client.get("/api/v1/dashboard", params={"month": 12}, headers=staff_headers)
        assert response.status_code == 422

    def test_store_failure_surfaces_error(self, client, staff_headers, mock_repository, scenario_campaign):
        mock_repository.fail("list_campaigns")

        response = client.get("/api/v1/dashboard", headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["error"]
        assert data["financialSeries"] == []


class TestCalendarEndpoints:

    def test_year_list(self, client, staff_headers, mock_repository):
        factory = MarketingTestDataFactory
        mock_repository.add_campaign(factory.make_campaign(
            campaign_id="C", start_date="2024-01-15", end_date="2024-03-01",
            plans=[factory.make_plan(plan_id="P", scheduled_date="2024-01-10")],
        ))

        response = client.get("/api/v1/calendar/year", params={"year": 2024}, headers=staff_headers)

        assert response.status_code == 200
        events = response.json()["events"]
        assert [(e["id"], e["sortDate"], e["kind"]) for e in events] == [
            ("P", "2024-01-10", "plan"),
            ("C", "2024-01-15", "campaign"),
        ]

    def test_month_grid(self, client, staff_headers, scenario_campaign):
        response = client.get(
            "/api/v1/calendar/month", params={"year": 2024, "month": 4}, headers=staff_headers
        )

        assert response.status_code == 200
        grid = response.json()["grid"]
        assert grid["padding"] == 3
        assert grid["days"][0]["campaigns"][0]["isCampaignStart"] is True
        assert grid["days"][1]["plans"][0]["plan"]["id"] == "p1"


class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "marketing_service"
        assert data["dependencies"] == {"postgres": "healthy"}

    def test_readiness(self, client):
        response = client.get("/health/ready")
        assert response.json()["ready"] is True

    def test_liveness(self, client):
        assert client.get("/health/live").json()["alive"] is True
