"""
Unit Tests for repeatable view assembly

The dashboard, year list and month grid are pure functions of their
inputs: the same campaigns and filter serialize to the same JSON, and the
campaigns are left untouched.
"""

import pytest
from datetime import date

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.marketing.data_contract import (
    MarketingTestDataFactory,
    PlanStatus,
)
from microservices.marketing_service.calendar_events import build_month_grid, build_year_events
from microservices.marketing_service.marketing_service import MarketingService


pytestmark = pytest.mark.unit


@pytest.fixture
def campaigns():
    factory = MarketingTestDataFactory
    return [
        factory.make_scenario_campaign(),
        factory.make_campaign(
            campaign_id="c2",
            start_date="2024-04-20",
            end_date="2024-05-10",
            actual_revenue=4300.5,
            plans=[
                factory.make_plan(plan_id="p2", scheduled_date="2024-05-02", cost=80, platform=["Instagram", "Facebook"]),
                factory.make_plan(plan_id="p3", scheduled_date="2024-05-09", status=PlanStatus.DRAFT, platform=[]),
                factory.make_plan(plan_id="p4", scheduled_date=None),
            ],
        ),
        factory.make_campaign(campaign_id="c3", start_date="bad", end_date="2024-05-31"),
    ]


@pytest.fixture
def service():
    return MarketingService(repository=None, today=lambda: date(2024, 5, 15))


class TestRepeatableViews:

    def test_dashboard_is_repeatable(self, service, campaigns):
        # Given
        before = [c.model_dump_json() for c in campaigns]
        date_filter = MarketingTestDataFactory.make_month_filter(2024, 4)

        # When
        first = service.build_dashboard(campaigns, date_filter)
        second = service.build_dashboard(campaigns, date_filter)

        # Then
        assert first.model_dump_json() == second.model_dump_json()
        assert [c.model_dump_json() for c in campaigns] == before

    def test_range_dashboard_is_repeatable(self, service, campaigns):
        date_filter = MarketingTestDataFactory.make_range_filter("2024-05-01", "2024-05-05")

        first = service.build_dashboard(campaigns, date_filter, branch_id="br_main")
        second = service.build_dashboard(campaigns, date_filter, branch_id="br_main")

        assert first.model_dump_json() == second.model_dump_json()

    def test_year_events_are_repeatable(self, campaigns):
        before = [c.model_dump_json() for c in campaigns]

        first = build_year_events(campaigns, 2024)
        second = build_year_events(campaigns, 2024)

        assert [e.model_dump_json() for e in first] == [e.model_dump_json() for e in second]
        assert [c.model_dump_json() for c in campaigns] == before

    def test_month_grid_is_repeatable(self, campaigns):
        before = [c.model_dump_json() for c in campaigns]

        first = build_month_grid(campaigns, 2024, 4)
        second = build_month_grid(campaigns, 2024, 4)

        assert first.model_dump_json() == second.model_dump_json()
        assert [c.model_dump_json() for c in campaigns] == before
