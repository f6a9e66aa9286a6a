"""
Marketing Service Business Logic

Loads Data Store snapshots, runs the dashboard/calendar engine over them,
and implements campaign, plan and reference-data maintenance.
"""

import asyncio
import logging
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence

from core.jwt_manager import JWTManager, SessionClaims, SessionRole

from .calendar_events import build_month_grid, build_year_events
from .charts import financial_series, platform_series
from .date_ranges import (
    CALENDAR_YEAR_SPAN,
    CAMPAIGN_LIST_YEAR_SPAN,
    DASHBOARD_YEAR_SPAN,
    describe_filter,
    month_filter,
    parse_iso_date,
    year_options,
)
from .filters import (
    ALL,
    extract_plans,
    filter_by_branch,
    filter_campaign_list,
    filter_campaigns,
    select_window,
)
from .metrics import build_kpis
from .models import (
    Branch,
    BranchRequest,
    CalendarMonthResponse,
    CalendarYearResponse,
    Campaign,
    CampaignCreateRequest,
    CampaignListResponse,
    CampaignStatus,
    CampaignUpdateRequest,
    Category,
    DashboardResponse,
    DateFilter,
    EventType,
    LoginRequest,
    LoginResponse,
    MarketingPlan,
    NamedEntityRequest,
    PlanCreateRequest,
    PlanStatus,
    PlanUpdateRequest,
    User,
    UserCreateRequest,
    UserRole,
    UserUpdateRequest,
)
from .password_utils import hash_password, verify_password
from .protocols import (
    AuthenticationError,
    CampaignNotFoundError,
    DataStoreError,
    InvalidRangeError,
    MarketingRepositoryProtocol,
    MarketingValidationError,
    PlanNotFoundError,
    ReferenceNotFoundError,
)

logger = logging.getLogger(__name__)

SNAPSHOT_PARTS = ("campaigns", "branches", "categories", "event_types", "users")


# ====================
# Snapshots & view sessions
# ====================


@dataclass
class DataSnapshot:
    """
    One screen's dataset. A failed load yields an empty snapshot with
    error set, never a partial one.
    """
    campaigns: List[Campaign] = field(default_factory=list)
    branches: List[Branch] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    event_types: List[EventType] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ViewSession:
    """
    Tracks the loads of one open view.

    A load that completes after close() or after a newer load was started
    is discarded: load() returns None and the current snapshot is kept.
    """

    def __init__(self, service: "MarketingService", parts: Sequence[str] = SNAPSHOT_PARTS):
        self.service = service
        self.parts = tuple(parts)
        self.snapshot: Optional[DataSnapshot] = None
        self._generation = 0
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    async def load(self) -> Optional[DataSnapshot]:
        if self._closed:
            return None

        self._generation += 1
        generation = self._generation
        snapshot = await self.service.load_snapshot(self.parts)

        if self._closed or generation != self._generation:
            logger.debug(f"Discarding stale snapshot (generation {generation})")
            return None

        self.snapshot = snapshot
        return snapshot

    def close(self) -> None:
        self._closed = True


class MarketingService:
    """Marketing service business logic layer"""

    CAMPAIGN_STATUS_CYCLE = [
        CampaignStatus.PLANNING,
        CampaignStatus.ACTIVE,
        CampaignStatus.COMPLETED,
        CampaignStatus.ON_HOLD,
        CampaignStatus.CANCELLED,
    ]
    PLAN_STATUS_CYCLE = [
        PlanStatus.DRAFT,
        PlanStatus.SCHEDULED,
        PlanStatus.PUBLISHED,
        PlanStatus.CANCELLED,
    ]
    DEFAULT_PLATFORM = "Offline"

    def __init__(
        self,
        repository: MarketingRepositoryProtocol,
        jwt_manager: Optional[JWTManager] = None,
        today: Optional[Callable[[], date]] = None,
        seed_admin_username: str = "admin",
        seed_admin_password: Optional[str] = None,
    ):
        self.repository = repository
        self.jwt_manager = jwt_manager
        self._today = today or date.today
        self.seed_admin_username = seed_admin_username
        self.seed_admin_password = seed_admin_password

    def today(self) -> date:
        return self._today()

    # ====================
    # Snapshot loading
    # ====================

    async def load_snapshot(self, parts: Iterable[str] = SNAPSHOT_PARTS) -> DataSnapshot:
        """
        Fetch the requested collections concurrently.

        The first failure aborts the batch and the result is an empty
        snapshot carrying the error.
        """
        loaders = {
            "campaigns": self.repository.list_campaigns,
            "branches": self.repository.list_branches,
            "categories": self.repository.list_categories,
            "event_types": self.repository.list_event_types,
            "users": self.repository.list_users,
        }
        parts = list(parts)
        unknown = [p for p in parts if p not in loaders]
        if unknown:
            raise ValueError(f"Unknown snapshot parts: {unknown}")

        tasks = [asyncio.ensure_future(loaders[part]()) for part in parts]
        try:
            results = await asyncio.gather(*tasks)
        except DataStoreError as e:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning(f"Snapshot load failed, serving empty dataset: {e}")
            return DataSnapshot(error=str(e))

        return DataSnapshot(**dict(zip(parts, results)))

    def open_view(self, parts: Sequence[str] = SNAPSHOT_PARTS) -> ViewSession:
        return ViewSession(self, parts)

    # ====================
    # Dashboard
    # ====================

    def default_filter(self) -> DateFilter:
        today = self.today()
        return month_filter(today.year, today.month - 1)

    def build_dashboard(
        self,
        campaigns: List[Campaign],
        date_filter: DateFilter,
        branch_id: str = ALL,
        error: Optional[str] = None,
    ) -> DashboardResponse:
        """Pure dashboard aggregation over an already loaded campaign list"""
        branch_campaigns = filter_by_branch(campaigns, branch_id)
        interval = select_window(date_filter)
        if interval is None:
            in_window, entries = [], []
        else:
            in_window = filter_campaigns(branch_campaigns, interval)
            # plans are taken from every branch campaign, not only overlapping ones
            entries = extract_plans(branch_campaigns, interval)

        kpis = build_kpis(in_window, entries)
        return DashboardResponse(
            date_filter=date_filter,
            description=describe_filter(date_filter),
            branch_id=branch_id or ALL,
            kpis=kpis.as_list(),
            financial_series=financial_series(in_window, entries),
            platform_series=platform_series(entries),
            campaign_count=len(in_window),
            year_options=year_options(self.today().year, DASHBOARD_YEAR_SPAN),
            error=error,
        )

    async def get_dashboard(
        self,
        date_filter: Optional[DateFilter] = None,
        branch_id: str = ALL,
    ) -> DashboardResponse:
        date_filter = date_filter or self.default_filter()
        snapshot = await self.load_snapshot(["campaigns"])
        return self.build_dashboard(snapshot.campaigns, date_filter, branch_id, snapshot.error)

    # ====================
    # Calendar
    # ====================

    async def get_calendar_year(
        self,
        year: Optional[int] = None,
        branch_id: str = ALL,
        category_id: str = ALL,
    ) -> CalendarYearResponse:
        year = year or self.today().year
        snapshot = await self.load_snapshot(["campaigns"])
        campaigns = filter_campaigns(snapshot.campaigns, None, branch_id, category_id)
        try:
            events = build_year_events(campaigns, year)
        except InvalidRangeError as e:
            logger.debug(f"Calendar year matches nothing: {e}")
            events = []

        return CalendarYearResponse(
            year=year,
            events=events,
            year_options=year_options(self.today().year, CALENDAR_YEAR_SPAN),
            error=snapshot.error,
        )

    async def get_calendar_month(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        branch_id: str = ALL,
        category_id: str = ALL,
    ) -> CalendarMonthResponse:
        today = self.today()
        year = year or today.year
        month = today.month - 1 if month is None else month

        snapshot = await self.load_snapshot(["campaigns"])
        campaigns = filter_campaigns(snapshot.campaigns, None, branch_id, category_id)
        try:
            grid = build_month_grid(campaigns, year, month)
        except InvalidRangeError as e:
            raise MarketingValidationError(str(e), field="month") from e

        return CalendarMonthResponse(
            grid=grid,
            year_options=year_options(today.year, CALENDAR_YEAR_SPAN),
            error=snapshot.error,
        )

    # ====================
    # Campaigns
    # ====================

    async def list_campaigns(
        self,
        branch_id: str = ALL,
        category_id: str = ALL,
        year: str = ALL,
        month: str = ALL,
    ) -> CampaignListResponse:
        snapshot = await self.load_snapshot(["campaigns"])
        campaigns = filter_campaign_list(snapshot.campaigns, branch_id, category_id, year, month)
        return CampaignListResponse(
            campaigns=campaigns,
            total=len(campaigns),
            year_options=year_options(self.today().year, CAMPAIGN_LIST_YEAR_SPAN),
            error=snapshot.error,
        )

    async def get_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self.repository.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    async def create_campaign(self, request: CampaignCreateRequest) -> Campaign:
        """New campaigns start in Planning with no plans"""
        self._validate_dates(start_date=request.start_date, end_date=request.end_date)

        campaign = Campaign(
            id=f"cmp_{uuid.uuid4().hex[:16]}",
            status=CampaignStatus.PLANNING,
            plans=[],
            **request.model_dump(),
        )
        campaign = await self.repository.save_campaign(campaign)
        logger.info(f"Created campaign {campaign.id} ({campaign.name})")
        return campaign

    async def update_campaign(self, campaign_id: str, request: CampaignUpdateRequest) -> Campaign:
        """Merge the edit into the stored campaign; status and plans are kept"""
        campaign = await self.get_campaign(campaign_id)
        updates = request.model_dump(exclude_unset=True)
        for required in ("branch_id", "name", "start_date", "end_date"):
            if required in updates and updates[required] is None:
                raise MarketingValidationError(f"{required} cannot be cleared", field=required)

        updated = campaign.model_copy(update=updates)
        self._validate_dates(start_date=updated.start_date, end_date=updated.end_date)
        return await self.repository.save_campaign(updated)

    async def delete_campaign(self, campaign_id: str) -> None:
        deleted = await self.repository.delete_campaign(campaign_id)
        if not deleted:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        logger.info(f"Deleted campaign {campaign_id}")

    async def set_campaign_status(self, campaign_id: str, status: CampaignStatus) -> Campaign:
        campaign = await self.get_campaign(campaign_id)
        campaign = campaign.model_copy(update={"status": CampaignStatus(status)})
        return await self.repository.save_campaign(campaign)

    async def advance_campaign_status(self, campaign_id: str) -> Campaign:
        """Planning -> Active -> Completed -> On Hold -> Cancelled -> Planning"""
        campaign = await self.get_campaign(campaign_id)
        status = self._next_in_cycle(self.CAMPAIGN_STATUS_CYCLE, campaign.status)
        return await self.repository.save_campaign(campaign.model_copy(update={"status": status}))

    # ====================
    # Plans (read-modify-write on the parent campaign)
    # ====================

    async def add_plan(self, campaign_id: str, plan: MarketingPlan) -> Campaign:
        campaign = await self.get_campaign(campaign_id)
        plans = list(campaign.plans) + [plan]
        return await self.repository.save_campaign(campaign.model_copy(update={"plans": plans}))

    async def update_plan(self, campaign_id: str, plan: MarketingPlan) -> Campaign:
        campaign = await self.get_campaign(campaign_id)
        if campaign.find_plan(plan.id) is None:
            raise PlanNotFoundError(f"Plan {plan.id} not found in campaign {campaign_id}")
        plans = [plan if p.id == plan.id else p for p in campaign.plans]
        return await self.repository.save_campaign(campaign.model_copy(update={"plans": plans}))

    async def delete_plan(self, campaign_id: str, plan_id: str) -> Campaign:
        campaign = await self.get_campaign(campaign_id)
        if campaign.find_plan(plan_id) is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found in campaign {campaign_id}")
        plans = [p for p in campaign.plans if p.id != plan_id]
        return await self.repository.save_campaign(campaign.model_copy(update={"plans": plans}))

    async def create_plan(self, campaign_id: str, request: PlanCreateRequest) -> MarketingPlan:
        """Build a plan with a generated id and add it to the campaign"""
        self._validate_dates(scheduled_date=request.scheduled_date)
        data = request.model_dump()
        data["platform"] = self.normalize_platforms(request.platform)
        plan = MarketingPlan(id=f"pln_{uuid.uuid4().hex[:16]}", **data)
        await self.add_plan(campaign_id, plan)
        return plan

    async def edit_plan(self, campaign_id: str, plan_id: str, request: PlanUpdateRequest) -> MarketingPlan:
        campaign = await self.get_campaign(campaign_id)
        plan = campaign.find_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found in campaign {campaign_id}")

        updates = request.model_dump(exclude_unset=True)
        if "platform" in updates:
            updates["platform"] = self.normalize_platforms(updates["platform"])
        for required in ("title", "scheduled_date", "status"):
            if required in updates and updates[required] is None:
                raise MarketingValidationError(f"{required} cannot be cleared", field=required)

        updated = plan.model_copy(update=updates)
        self._validate_dates(scheduled_date=updated.scheduled_date)
        await self.update_plan(campaign_id, updated)
        return updated

    async def advance_plan_status(self, campaign_id: str, plan_id: str) -> MarketingPlan:
        """Draft -> Scheduled -> Published -> Cancelled -> Draft"""
        campaign = await self.get_campaign(campaign_id)
        plan = campaign.find_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found in campaign {campaign_id}")

        status = self._next_in_cycle(self.PLAN_STATUS_CYCLE, plan.status)
        updated = plan.model_copy(update={"status": status})
        await self.update_plan(campaign_id, updated)
        return updated

    @classmethod
    def normalize_platforms(cls, platforms: Optional[List[str]]) -> List[str]:
        """Trim, drop blanks and duplicates; an empty list becomes ["Offline"]"""
        result: List[str] = []
        for label in platforms or []:
            label = (label or "").strip()
            if label and label not in result:
                result.append(label)
        return result or [cls.DEFAULT_PLATFORM]

    # ====================
    # Reference data
    # ====================

    async def list_branches(self) -> List[Branch]:
        return await self.repository.list_branches()

    async def create_branch(self, request: BranchRequest) -> Branch:
        branch = Branch(id=f"br_{uuid.uuid4().hex[:12]}", **request.model_dump())
        return await self.repository.save_branch(branch)

    async def update_branch(self, branch_id: str, request: BranchRequest) -> Branch:
        self._require(await self.repository.list_branches(), branch_id, "branch")
        return await self.repository.save_branch(Branch(id=branch_id, **request.model_dump()))

    async def delete_branch(self, branch_id: str) -> None:
        if not await self.repository.delete_branch(branch_id):
            raise ReferenceNotFoundError(f"Branch not found: {branch_id}", entity="branch")

    async def list_categories(self) -> List[Category]:
        return await self.repository.list_categories()

    async def create_category(self, request: NamedEntityRequest) -> Category:
        category = Category(id=f"cat_{uuid.uuid4().hex[:12]}", name=request.name)
        return await self.repository.save_category(category)

    async def update_category(self, category_id: str, request: NamedEntityRequest) -> Category:
        self._require(await self.repository.list_categories(), category_id, "category")
        return await self.repository.save_category(Category(id=category_id, name=request.name))

    async def delete_category(self, category_id: str) -> None:
        if not await self.repository.delete_category(category_id):
            raise ReferenceNotFoundError(f"Category not found: {category_id}", entity="category")

    async def list_event_types(self) -> List[EventType]:
        return await self.repository.list_event_types()

    async def create_event_type(self, request: NamedEntityRequest) -> EventType:
        event_type = EventType(id=f"evt_{uuid.uuid4().hex[:12]}", name=request.name)
        return await self.repository.save_event_type(event_type)

    async def update_event_type(self, event_type_id: str, request: NamedEntityRequest) -> EventType:
        self._require(await self.repository.list_event_types(), event_type_id, "event type")
        return await self.repository.save_event_type(EventType(id=event_type_id, name=request.name))

    async def delete_event_type(self, event_type_id: str) -> None:
        if not await self.repository.delete_event_type(event_type_id):
            raise ReferenceNotFoundError(f"Event type not found: {event_type_id}", entity="event type")

    # ====================
    # Users & session
    # ====================

    async def list_users(self) -> List[User]:
        return await self.repository.list_users()

    async def create_user(self, request: UserCreateRequest) -> User:
        if await self.repository.get_user_by_username(request.username):
            raise MarketingValidationError(f"Username already exists: {request.username}", field="username")

        user = User(
            id=f"usr_{uuid.uuid4().hex[:12]}",
            username=request.username,
            name=request.name,
            role=request.role,
            password_hash=hash_password(request.password),
        )
        user = await self.repository.save_user(user)
        logger.info(f"Created user {user.username} ({user.role.value})")
        return user

    async def update_user(self, user_id: str, request: UserUpdateRequest) -> User:
        user = await self.repository.get_user(user_id)
        if not user:
            raise ReferenceNotFoundError(f"User not found: {user_id}", entity="user")

        updates = request.model_dump(exclude_unset=True, exclude={"password"})
        for required in ("name", "role"):
            if required in updates and updates[required] is None:
                raise MarketingValidationError(f"{required} cannot be cleared", field=required)
        if request.password:
            updates["password_hash"] = hash_password(request.password)

        return await self.repository.save_user(user.model_copy(update=updates))

    async def delete_user(self, user_id: str) -> None:
        if not await self.repository.delete_user(user_id):
            raise ReferenceNotFoundError(f"User not found: {user_id}", entity="user")

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """User on a username/password match, None otherwise"""
        user = await self.repository.get_user_by_username(username)
        if not user or not user.password_hash:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    async def login(self, request: LoginRequest) -> LoginResponse:
        if self.jwt_manager is None:
            raise AuthenticationError("Session tokens are not configured")

        user = await self.authenticate(request.username, request.password)
        if user is None:
            logger.info(f"Failed login for {request.username}")
            raise AuthenticationError("Invalid username or password")

        claims = SessionClaims(
            user_id=user.id,
            username=user.username,
            name=user.name,
            role=SessionRole(user.role.value),
        )
        token = self.jwt_manager.create_access_token(claims)
        return LoginResponse(
            access_token=token,
            expires_in=self.jwt_manager.access_token_expiry,
            user=user,
        )

    async def get_current_user(self, claims: SessionClaims) -> User:
        user = await self.repository.get_user(claims.user_id)
        if not user:
            raise ReferenceNotFoundError(f"User not found: {claims.user_id}", entity="user")
        return user

    async def initialize_defaults(self) -> Optional[User]:
        """Seed an admin account when no user exists"""
        if await self.repository.list_users():
            return None

        password = self.seed_admin_password
        if not password:
            password = secrets.token_urlsafe(12)
            logger.warning(
                f"No SEED_ADMIN_PASSWORD set; seeded '{self.seed_admin_username}' "
                f"with generated password: {password}"
            )

        user = User(
            id=f"usr_{uuid.uuid4().hex[:12]}",
            username=self.seed_admin_username,
            name="Administrator",
            role=UserRole.ADMIN,
            password_hash=hash_password(password),
        )
        user = await self.repository.save_user(user)
        logger.info(f"Seeded admin user {user.username}")
        return user

    # ====================
    # Helpers
    # ====================

    @staticmethod
    def _next_in_cycle(cycle: List, current):
        index = cycle.index(current)
        return cycle[(index + 1) % len(cycle)]

    @staticmethod
    def _require(entities: List, entity_id: str, entity: str) -> None:
        if not any(e.id == entity_id for e in entities):
            raise ReferenceNotFoundError(f"{entity.capitalize()} not found: {entity_id}", entity=entity)

    @staticmethod
    def _validate_dates(**dates: Optional[str]) -> None:
        for field_name, value in dates.items():
            if parse_iso_date(value) is None:
                raise MarketingValidationError(f"Invalid date for {field_name}: {value!r}", field=field_name)


__all__ = [
    "DataSnapshot",
    "ViewSession",
    "MarketingService",
    "SNAPSHOT_PARTS",
]
