"""
Marketing Service Data Models

Canonical data structures for the marketing service.

Entity models keep snake_case attributes in Python and use the camelCase
field names of the stored documents (branchId, startDate, scheduledDate,
actualRevenue, ...) on the wire and in the Data Store.
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    PLANNING = "Planning"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"
    CANCELLED = "Cancelled"


class PlanStatus(str, Enum):
    """Marketing plan status"""
    DRAFT = "Draft"
    SCHEDULED = "Scheduled"
    PUBLISHED = "Published"
    CANCELLED = "Cancelled"


class UserRole(str, Enum):
    """Platform user role"""
    ADMIN = "Admin"
    STAFF = "Staff"


class FilterMode(str, Enum):
    """Dashboard date filter mode"""
    MONTH = "month"
    RANGE = "range"


class EventKind(str, Enum):
    """Calendar event kind"""
    CAMPAIGN = "campaign"
    PLAN = "plan"


# =============================================================================
# BASE
# =============================================================================

class BaseContract(BaseModel):
    """Base model for all marketing contracts"""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _zero_if_missing(value: Any) -> Any:
    if value is None or value == "":
        return 0.0
    if isinstance(value, float) and not math.isfinite(value):
        return 0.0
    return value


# =============================================================================
# ENTITY MODELS
# =============================================================================

class MarketingPlan(BaseContract):
    """A single scheduled marketing activity owned by a campaign"""
    id: str
    title: str
    description: Optional[str] = None
    platform: List[str] = Field(default_factory=list, description="Free-form platform labels")
    scheduled_date: Optional[str] = Field(None, description="ISO calendar date")
    status: PlanStatus = PlanStatus.DRAFT
    budget: float = 0.0
    cost: float = 0.0

    @field_validator("budget", "cost", mode="before")
    @classmethod
    def default_amounts(cls, value):
        return _zero_if_missing(value)


class Campaign(BaseContract):
    """Time-bounded marketing initiative for one branch"""
    id: str
    branch_id: str
    category_id: Optional[str] = None
    event_type_id: Optional[str] = None
    name: str
    start_date: Optional[str] = Field(None, description="ISO calendar date")
    end_date: Optional[str] = Field(None, description="ISO calendar date")
    status: CampaignStatus = CampaignStatus.PLANNING
    target_revenue: float = 0.0
    actual_revenue: float = 0.0
    description: Optional[str] = None
    poster: Optional[str] = Field(None, description="Opaque poster reference")
    plans: List[MarketingPlan] = Field(default_factory=list)

    @field_validator("target_revenue", "actual_revenue", mode="before")
    @classmethod
    def default_amounts(cls, value):
        return _zero_if_missing(value)

    @field_validator("plans", mode="before")
    @classmethod
    def default_plans(cls, value):
        return value or []

    def find_plan(self, plan_id: str) -> Optional[MarketingPlan]:
        for plan in self.plans:
            if plan.id == plan_id:
                return plan
        return None


class Branch(BaseContract):
    """Physical business location"""
    id: str
    name: str
    location: Optional[str] = None


class Category(BaseContract):
    """Campaign category"""
    id: str
    name: str


class EventType(BaseContract):
    """Campaign event type"""
    id: str
    name: str


class User(BaseContract):
    """Platform user. The password hash is never serialized."""
    id: str
    username: str
    name: str
    role: UserRole = UserRole.STAFF
    password_hash: Optional[str] = Field(None, exclude=True)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CampaignCreateRequest(BaseContract):
    """Request to create a campaign"""
    branch_id: str = Field(..., min_length=1)
    category_id: Optional[str] = None
    event_type_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=255)
    start_date: str = Field(..., min_length=1)
    end_date: str = Field(..., min_length=1)
    target_revenue: float = Field(0.0, ge=0)
    actual_revenue: float = Field(0.0, ge=0)
    description: Optional[str] = None
    poster: Optional[str] = None


class CampaignUpdateRequest(BaseContract):
    """Partial campaign edit, merged into the stored campaign"""
    branch_id: Optional[str] = Field(None, min_length=1)
    category_id: Optional[str] = None
    event_type_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[str] = Field(None, min_length=1)
    end_date: Optional[str] = Field(None, min_length=1)
    target_revenue: Optional[float] = Field(None, ge=0)
    actual_revenue: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    poster: Optional[str] = None


class CampaignStatusRequest(BaseContract):
    """Explicit campaign status change"""
    status: CampaignStatus


class PlanCreateRequest(BaseContract):
    """Request to add a plan to a campaign"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    platform: List[str] = Field(default_factory=list)
    scheduled_date: str = Field(..., min_length=1)
    status: PlanStatus = PlanStatus.DRAFT
    budget: float = Field(0.0, ge=0)
    cost: float = Field(0.0, ge=0)


class PlanUpdateRequest(BaseContract):
    """Partial plan edit"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    platform: Optional[List[str]] = None
    scheduled_date: Optional[str] = Field(None, min_length=1)
    status: Optional[PlanStatus] = None
    budget: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)


class BranchRequest(BaseContract):
    """Create or replace a branch"""
    name: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = None


class NamedEntityRequest(BaseContract):
    """Create or replace a category or event type"""
    name: str = Field(..., min_length=1, max_length=255)


class UserCreateRequest(BaseContract):
    """Create a platform user"""
    username: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.STAFF
    password: str = Field(..., min_length=1)


class UserUpdateRequest(BaseContract):
    """Partial user edit; a password resets the stored hash"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[UserRole] = None
    password: Optional[str] = Field(None, min_length=1)


class LoginRequest(BaseContract):
    """Username/password login"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseContract):
    """Issued session"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: User


# =============================================================================
# DASHBOARD / CALENDAR MODELS
# =============================================================================

class DateFilter(BaseContract):
    """
    Dashboard date selection.

    month is zero based (0 = January). In month mode start/end are derived
    from month/year; in range mode they hold the user's ISO date strings.
    """
    mode: FilterMode = FilterMode.MONTH
    month: int = Field(0, ge=0, le=11)
    year: int = Field(..., ge=1, le=9999)
    start: Optional[str] = None
    end: Optional[str] = None

    def with_mode(self, mode: FilterMode) -> "DateFilter":
        """Switch mode; start/end are recomputed from month/year"""
        from .date_ranges import switch_mode
        return switch_mode(self, mode)

    def select_month(self, month: int, year: int) -> "DateFilter":
        """Pick a month; always lands in month mode"""
        from .date_ranges import select_month
        return select_month(self, month, year)


class DateInterval(BaseContract):
    """Closed interval [start, end] at day granularity"""
    start: datetime
    end: datetime

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class PlanEntry(BaseContract):
    """A plan flattened out of its campaign"""
    plan: MarketingPlan
    campaign_name: str
    campaign_id: str


class KPIMetric(BaseContract):
    """One dashboard KPI with its drill-down items"""
    label: str
    value: float
    display_value: str
    clickable: bool = False
    items: List[PlanEntry] = Field(default_factory=list)


class DashboardKPIs(BaseContract):
    """The four dashboard KPIs"""
    revenue: KPIMetric
    spend: KPIMetric
    active_plans: KPIMetric
    pending_tasks: KPIMetric

    def as_list(self) -> List[KPIMetric]:
        return [self.revenue, self.spend, self.active_plans, self.pending_tasks]


class FinancialPoint(BaseContract):
    """Revenue vs in-window spend for one campaign"""
    label: str
    revenue: float
    spend: float
    campaign_id: str


class PlatformSlice(BaseContract):
    """Plan count for one platform label"""
    name: str
    value: int


class CalendarEvent(BaseContract):
    """Entry of the year event list"""
    sort_date: date
    kind: EventKind
    title: str
    subtitle: str
    status: str
    id: str
    campaign_id: str


class CampaignDayMarker(BaseContract):
    """A campaign active on a calendar day"""
    campaign_id: str
    name: str
    status: CampaignStatus
    is_campaign_start: bool = False
    is_campaign_end: bool = False


class CalendarDay(BaseContract):
    """One day cell of the month grid"""
    day: int
    day_date: date
    campaigns: List[CampaignDayMarker] = Field(default_factory=list)
    plans: List[PlanEntry] = Field(default_factory=list)


class CalendarMonth(BaseContract):
    """Month grid; padding is the weekday of the 1st (Sunday = 0)"""
    year: int
    month: int
    padding: int
    days: List[CalendarDay] = Field(default_factory=list)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class DashboardResponse(BaseContract):
    """Dashboard view"""
    date_filter: DateFilter
    description: str
    branch_id: str = "all"
    kpis: List[KPIMetric] = Field(default_factory=list)
    financial_series: List[FinancialPoint] = Field(default_factory=list)
    platform_series: List[PlatformSlice] = Field(default_factory=list)
    campaign_count: int = 0
    year_options: List[int] = Field(default_factory=list)
    error: Optional[str] = None


class CalendarYearResponse(BaseContract):
    """Calendar list view for one year"""
    year: int
    events: List[CalendarEvent] = Field(default_factory=list)
    year_options: List[int] = Field(default_factory=list)
    error: Optional[str] = None


class CalendarMonthResponse(BaseContract):
    """Calendar grid view for one month"""
    grid: CalendarMonth
    year_options: List[int] = Field(default_factory=list)
    error: Optional[str] = None


class CampaignListResponse(BaseContract):
    """Campaigns page listing"""
    campaigns: List[Campaign] = Field(default_factory=list)
    total: int = 0
    year_options: List[int] = Field(default_factory=list)
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)
    details: Dict[str, str] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


__all__ = [
    # Enums
    "CampaignStatus",
    "PlanStatus",
    "UserRole",
    "FilterMode",
    "EventKind",
    # Entities
    "BaseContract",
    "MarketingPlan",
    "Campaign",
    "Branch",
    "Category",
    "EventType",
    "User",
    # Requests
    "CampaignCreateRequest",
    "CampaignUpdateRequest",
    "CampaignStatusRequest",
    "PlanCreateRequest",
    "PlanUpdateRequest",
    "BranchRequest",
    "NamedEntityRequest",
    "UserCreateRequest",
    "UserUpdateRequest",
    "LoginRequest",
    "LoginResponse",
    # Engine
    "DateFilter",
    "DateInterval",
    "PlanEntry",
    "KPIMetric",
    "DashboardKPIs",
    "FinancialPoint",
    "PlatformSlice",
    "CalendarEvent",
    "CampaignDayMarker",
    "CalendarDay",
    "CalendarMonth",
    # Responses
    "DashboardResponse",
    "CalendarYearResponse",
    "CalendarMonthResponse",
    "CampaignListResponse",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
]
