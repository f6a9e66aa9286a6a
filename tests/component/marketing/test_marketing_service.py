"""
Component Tests for MarketingService views and campaign maintenance

Dashboard, calendar and campaign list assembled from the mock Data Store,
plus campaign create/update/delete/status.
"""

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.marketing.data_contract import (
    CampaignStatus,
    CampaignUpdateRequest,
    EventKind,
    FilterMode,
    MarketingTestDataFactory,
)
from tests.component.marketing.conftest import TODAY
from microservices.marketing_service.marketing_repository import MarketingRepository
from microservices.marketing_service.marketing_service import MarketingService
from microservices.marketing_service.protocols import (
    CampaignNotFoundError,
    MarketingValidationError,
)


class TestDashboard:
    """Dashboard over the loaded campaigns"""

    @pytest.mark.asyncio
    async def test_scenario_dashboard(self, marketing_service, scenario_campaign):
        # Given: c1 with a published TikTok plan on May 2
        date_filter = MarketingTestDataFactory.make_month_filter(2024, 4)

        # When
        dashboard = await marketing_service.get_dashboard(date_filter)

        # Then
        revenue, spend, active, pending = dashboard.kpis
        assert revenue.display_value == "RM 12,500"
        assert spend.display_value == "RM 200"
        assert active.value == 1
        assert pending.value == 0
        assert [(p.name, p.value) for p in dashboard.platform_series] == [("TikTok", 1)]
        assert dashboard.financial_series[0].spend == 200
        assert dashboard.description == "Performance for May 2024"
        assert dashboard.campaign_count == 1
        assert dashboard.error is None

    @pytest.mark.asyncio
    async def test_default_filter_is_current_month(self, marketing_service, scenario_campaign):
        dashboard = await marketing_service.get_dashboard()

        assert dashboard.date_filter.mode == FilterMode.MONTH
        assert (dashboard.date_filter.month, dashboard.date_filter.year) == (4, 2024)
        assert dashboard.year_options == [2021, 2022, 2023, 2024, 2025, 2026]

    @pytest.mark.asyncio
    async def test_branch_filter(self, marketing_service, mock_repository, scenario_campaign):
        mock_repository.add_campaign(MarketingTestDataFactory.make_campaign(
            branch_id="br_penang", actual_revenue=3000,
        ))

        dashboard = await marketing_service.get_dashboard(
            MarketingTestDataFactory.make_month_filter(2024, 4), branch_id="br_penang"
        )

        assert dashboard.kpis[0].value == 3000
        assert dashboard.branch_id == "br_penang"

    @pytest.mark.asyncio
    async def test_plans_of_non_overlapping_campaigns_count_toward_spend(
        self, marketing_service, mock_repository
    ):
        """Plans come from every branch campaign, not only the overlapping ones"""
        factory = MarketingTestDataFactory
        mock_repository.add_campaign(factory.make_campaign(
            start_date="2024-01-01", end_date="2024-01-31", actual_revenue=999,
            plans=[factory.make_plan(scheduled_date="2024-05-20", cost=75)],
        ))

        dashboard = await marketing_service.get_dashboard(factory.make_month_filter(2024, 4))

        assert dashboard.kpis[0].value == 0
        assert dashboard.kpis[1].value == 75
        assert dashboard.financial_series == []

    @pytest.mark.asyncio
    async def test_invalid_range_gives_empty_dashboard(self, marketing_service, scenario_campaign):
        date_filter = MarketingTestDataFactory.make_range_filter("", "2024-05-31")

        dashboard = await marketing_service.get_dashboard(date_filter)

        assert [k.value for k in dashboard.kpis] == [0, 0, 0, 0]
        assert dashboard.description == "Performance for selected range"
        assert dashboard.error is None

    @pytest.mark.asyncio
    async def test_store_failure_gives_empty_dashboard_with_error(
        self, marketing_service, mock_repository, scenario_campaign
    ):
        # Given
        mock_repository.fail("list_campaigns")

        # When
        dashboard = await marketing_service.get_dashboard(MarketingTestDataFactory.make_month_filter(2024, 4))

        # Then: never a partial aggregate
        assert dashboard.error is not None
        assert "Connection refused" in dashboard.error
        assert [k.value for k in dashboard.kpis] == [0, 0, 0, 0]
        assert dashboard.financial_series == []

    @pytest.mark.asyncio
    async def test_malformed_stored_campaign_is_left_out(self, mock_db):
        # Given: the real repository reads one good and one malformed document
        good = MarketingTestDataFactory.make_scenario_campaign().model_dump(mode="json", by_alias=True)
        bad = MarketingTestDataFactory.make_campaign(campaign_id="c_bad").model_dump(mode="json", by_alias=True)
        bad["plans"] = [{"id": "p_bad", "title": "x", "scheduledDate": "2024-05-03", "status": "Archived"}]
        mock_db.set_rows_response([mock_db.document_row(good), mock_db.document_row(bad, as_text=True)])
        service = MarketingService(repository=MarketingRepository(db=mock_db), today=lambda: TODAY)

        # When
        dashboard = await service.get_dashboard(MarketingTestDataFactory.make_month_filter(2024, 4))
        calendar = await service.get_calendar_year(2024)

        # Then
        assert dashboard.error is None
        assert dashboard.kpis[0].value == 12500
        assert dashboard.campaign_count == 1
        assert "c_bad" not in {event.campaign_id for event in calendar.events}


class TestCalendar:

    @pytest.mark.asyncio
    async def test_year_events(self, marketing_service, mock_repository):
        factory = MarketingTestDataFactory
        mock_repository.add_campaign(factory.make_campaign(
            campaign_id="C", start_date="2024-01-15", end_date="2024-03-01",
            plans=[factory.make_plan(plan_id="P", scheduled_date="2024-01-10")],
        ))

        response = await marketing_service.get_calendar_year(2024)

        assert [(e.kind, e.id) for e in response.events] == [
            (EventKind.PLAN, "P"),
            (EventKind.CAMPAIGN, "C"),
        ]
        assert response.year_options[0] == 2019
        assert response.year_options[-1] == 2029

    @pytest.mark.asyncio
    async def test_year_events_category_filter(self, marketing_service, mock_repository):
        factory = MarketingTestDataFactory
        mock_repository.add_campaign(factory.make_campaign(campaign_id="food", category_id="cat_food"))
        mock_repository.add_campaign(factory.make_campaign(campaign_id="event", category_id="cat_event"))

        response = await marketing_service.get_calendar_year(2024, category_id="cat_event")

        assert {e.campaign_id for e in response.events} == {"event"}

    @pytest.mark.asyncio
    async def test_month_grid_defaults_to_today(self, marketing_service, scenario_campaign):
        response = await marketing_service.get_calendar_month()

        assert (response.grid.year, response.grid.month) == (2024, 4)
        assert len(response.grid.days) == 31

    @pytest.mark.asyncio
    async def test_month_grid_store_failure(self, marketing_service, mock_repository, scenario_campaign):
        mock_repository.fail("list_campaigns")

        response = await marketing_service.get_calendar_month(2024, 4)

        assert response.error is not None
        assert all(not day.campaigns for day in response.grid.days)

    @pytest.mark.asyncio
    async def test_month_grid_invalid_month(self, marketing_service):
        with pytest.raises(MarketingValidationError):
            await marketing_service.get_calendar_month(2024, 12)


class TestCampaignList:

    @pytest.mark.asyncio
    async def test_list_by_year_and_month(self, marketing_service, mock_repository, scenario_campaign):
        mock_repository.add_campaign(MarketingTestDataFactory.make_campaign(
            campaign_id="old", start_date="2022-01-01", end_date="2022-01-31",
        ))

        all_years = await marketing_service.list_campaigns()
        june = await marketing_service.list_campaigns(year="2024", month="5")

        assert all_years.total == 2
        assert [c.id for c in june.campaigns] == ["c1"]
        assert june.year_options == [2022, 2023, 2024, 2025, 2026]


class TestCampaignMaintenance:

    @pytest.mark.asyncio
    async def test_create_campaign_starts_in_planning(self, marketing_service, mock_repository):
        request = MarketingTestDataFactory.make_campaign_create_request()

        campaign = await marketing_service.create_campaign(request)

        assert campaign.id.startswith("cmp_")
        assert campaign.status == CampaignStatus.PLANNING
        assert campaign.plans == []
        assert mock_repository.campaigns[campaign.id].name == "Weekend Hi-Tea Launch"

    @pytest.mark.asyncio
    async def test_create_campaign_rejects_bad_date(self, marketing_service):
        request = MarketingTestDataFactory.make_campaign_create_request(end_date="30/06/2024")

        with pytest.raises(MarketingValidationError) as exc_info:
            await marketing_service.create_campaign(request)

        assert exc_info.value.field == "end_date"

    @pytest.mark.asyncio
    async def test_update_keeps_plans_and_status(self, marketing_service, scenario_campaign):
        request = CampaignUpdateRequest(name="Raya Open House", actual_revenue=15000)

        updated = await marketing_service.update_campaign("c1", request)

        assert updated.name == "Raya Open House"
        assert updated.actual_revenue == 15000
        assert updated.status == scenario_campaign.status
        assert [p.id for p in updated.plans] == ["p1"]

    @pytest.mark.asyncio
    async def test_update_cannot_clear_required_field(self, marketing_service, scenario_campaign):
        request = CampaignUpdateRequest(name=None)

        with pytest.raises(MarketingValidationError):
            await marketing_service.update_campaign("c1", request)

    @pytest.mark.asyncio
    async def test_update_missing_campaign(self, marketing_service):
        with pytest.raises(CampaignNotFoundError):
            await marketing_service.update_campaign("nope", CampaignUpdateRequest(name="x"))

    @pytest.mark.asyncio
    async def test_delete_campaign(self, marketing_service, mock_repository, scenario_campaign):
        await marketing_service.delete_campaign("c1")

        assert "c1" not in mock_repository.campaigns
        with pytest.raises(CampaignNotFoundError):
            await marketing_service.delete_campaign("c1")

    @pytest.mark.asyncio
    async def test_status_cycle_wraps(self, marketing_service, mock_repository):
        mock_repository.add_campaign(MarketingTestDataFactory.make_campaign(
            campaign_id="cyc", status=CampaignStatus.PLANNING,
        ))

        seen = []
        for _ in range(5):
            campaign = await marketing_service.advance_campaign_status("cyc")
            seen.append(campaign.status)

        assert seen == [
            CampaignStatus.ACTIVE,
            CampaignStatus.COMPLETED,
            CampaignStatus.ON_HOLD,
            CampaignStatus.CANCELLED,
            CampaignStatus.PLANNING,
        ]

    @pytest.mark.asyncio
    async def test_set_status(self, marketing_service, scenario_campaign):
        campaign = await marketing_service.set_campaign_status("c1", CampaignStatus.ON_HOLD)
        assert campaign.status == CampaignStatus.ON_HOLD
