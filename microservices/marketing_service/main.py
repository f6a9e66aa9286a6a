"""
Marketing Service Main Application

FastAPI application for campaign, plan, dashboard and calendar management.
Port: 8260
"""

import logging
import os
import sys
import time
import traceback
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.auth_dependencies import require_admin, require_user
from core.config_manager import ConfigManager
from core.jwt_manager import SessionClaims
from core.logger import setup_service_logger

from .factory import MarketingServiceFactory
from .filters import ALL
from .marketing_service import MarketingService
from .models import (
    Branch,
    BranchRequest,
    CalendarMonthResponse,
    CalendarYearResponse,
    Campaign,
    CampaignCreateRequest,
    CampaignListResponse,
    CampaignStatusRequest,
    CampaignUpdateRequest,
    Category,
    DashboardResponse,
    DateFilter,
    EventType,
    FilterMode,
    HealthResponse,
    LivenessResponse,
    LoginRequest,
    LoginResponse,
    MarketingPlan,
    NamedEntityRequest,
    PlanCreateRequest,
    PlanUpdateRequest,
    ReadinessResponse,
    User,
    UserCreateRequest,
    UserUpdateRequest,
)
from .protocols import (
    AuthenticationError,
    CampaignNotFoundError,
    DataStoreError,
    MarketingValidationError,
    PlanNotFoundError,
    ReferenceNotFoundError,
)

# Service configuration
SERVICE_NAME = "marketing_service"
SERVICE_PORT = int(os.getenv("SERVICE_PORT", "8260"))
SERVICE_VERSION = "1.0.0"

setup_service_logger(SERVICE_NAME)
logger = logging.getLogger(__name__)

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[MarketingServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    # Initialize factory
    config = ConfigManager(SERVICE_NAME)
    factory = MarketingServiceFactory(config)
    await factory.initialize()

    yield

    # Cleanup
    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


# Create FastAPI application
app = FastAPI(
    title="Marketing Service",
    description="Sales and marketing management: campaigns, plans, dashboard KPIs and calendar",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignNotFoundError)
async def campaign_not_found_handler(request: Request, exc: CampaignNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(PlanNotFoundError)
async def plan_not_found_handler(request: Request, exc: PlanNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(ReferenceNotFoundError)
async def reference_not_found_handler(request: Request, exc: ReferenceNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "entity": exc.entity},
    )


@app.exception_handler(MarketingValidationError)
async def validation_error_handler(request: Request, exc: MarketingValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "field": exc.field},
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(DataStoreError)
async def data_store_error_handler(request: Request, exc: DataStoreError):
    logger.error(f"Data store failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Connection failed", "operation": exc.operation},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler"""
    error_traceback = traceback.format_exc()
    logger.error(f"Unhandled exception: {exc}\n{error_traceback}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
        },
    )


# ====================
# Dependencies
# ====================


def get_service() -> MarketingService:
    """Get marketing service from factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory.service


def get_date_filter(
    mode: FilterMode = Query(FilterMode.MONTH, description="month or range"),
    month: Optional[int] = Query(None, ge=0, le=11, description="Zero based month"),
    year: Optional[int] = Query(None, ge=1, le=9999),
    start: Optional[str] = Query(None, description="ISO start date (range mode)"),
    end: Optional[str] = Query(None, description="ISO end date (range mode)"),
    service: MarketingService = Depends(get_service),
) -> DateFilter:
    """Build the dashboard filter; month/year default to today"""
    default = service.default_filter()
    selected = default.select_month(
        default.month if month is None else month,
        default.year if year is None else year,
    )
    if mode == FilterMode.MONTH:
        return selected
    return selected.with_mode(FilterMode.RANGE).model_copy(update={
        "start": start if start is not None else selected.start,
        "end": end if end is not None else selected.end,
    })


# ====================
# Health Endpoints
# ====================


@app.get("/api/v1/marketing/health")
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks = {}
    details = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        checks["database"] = db_healthy
        details["database"] = "Connected" if db_healthy else "Connection failed"
    else:
        checks["factory"] = False
        details["factory"] = "Factory not initialized"

    ready = all(checks.get(k, False) for k in ["database"])

    return ReadinessResponse(
        ready=ready,
        checks=checks,
        details=details,
    )


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(
        alive=True,
        uptime_seconds=time.time() - startup_time,
    )


# ====================
# Session Endpoints
# ====================


@app.post("/api/v1/auth/login", response_model=LoginResponse, tags=["Auth"])
async def login(
    request: LoginRequest,
    service: MarketingService = Depends(get_service),
):
    """Exchange username/password for a session token"""
    return await service.login(request)


@app.get("/api/v1/auth/me", response_model=User, tags=["Auth"])
async def current_user(
    claims: SessionClaims = Depends(require_user),
    service: MarketingService = Depends(get_service),
):
    """Get the logged-in user"""
    return await service.get_current_user(claims)


# ====================
# Dashboard & Calendar Endpoints
# ====================


@app.get("/api/v1/dashboard", response_model=DashboardResponse, tags=["Dashboard"])
async def get_dashboard(
    branch_id: str = Query(ALL, description="Branch id or 'all'"),
    date_filter: DateFilter = Depends(get_date_filter),
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """
    Dashboard KPIs and chart series

    A Data Store failure yields an empty dashboard with error set.
    """
    return await service.get_dashboard(date_filter=date_filter, branch_id=branch_id)


@app.get("/api/v1/calendar/year", response_model=CalendarYearResponse, tags=["Calendar"])
async def get_calendar_year(
    year: Optional[int] = Query(None, ge=1, le=9999),
    branch_id: str = Query(ALL),
    category_id: str = Query(ALL),
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Campaigns and plans of a year, sorted by date"""
    return await service.get_calendar_year(year=year, branch_id=branch_id, category_id=category_id)


@app.get("/api/v1/calendar/month", response_model=CalendarMonthResponse, tags=["Calendar"])
async def get_calendar_month(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=0, le=11, description="Zero based month"),
    branch_id: str = Query(ALL),
    category_id: str = Query(ALL),
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Month grid with campaigns and plans per day"""
    return await service.get_calendar_month(
        year=year, month=month, branch_id=branch_id, category_id=category_id
    )


# ====================
# Campaign Endpoints
# ====================


@app.get("/api/v1/campaigns", response_model=CampaignListResponse, tags=["Campaigns"])
async def list_campaigns(
    branch_id: str = Query(ALL),
    category_id: str = Query(ALL),
    year: str = Query(ALL, description="Year or 'all'"),
    month: str = Query(ALL, description="Zero based month or 'all'"),
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """List campaigns by branch, category, year and month"""
    return await service.list_campaigns(
        branch_id=branch_id, category_id=category_id, year=year, month=month
    )


@app.post(
    "/api/v1/campaigns",
    response_model=Campaign,
    status_code=status.HTTP_201_CREATED,
    tags=["Campaigns"],
)
async def create_campaign(
    request: CampaignCreateRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Create a campaign in Planning status"""
    return await service.create_campaign(request)


@app.get("/api/v1/campaigns/{campaign_id}", response_model=Campaign, tags=["Campaigns"])
async def get_campaign(
    campaign_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Get campaign by ID"""
    return await service.get_campaign(campaign_id)


@app.put("/api/v1/campaigns/{campaign_id}", response_model=Campaign, tags=["Campaigns"])
async def update_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Merge edits into a campaign"""
    return await service.update_campaign(campaign_id, request)


@app.delete(
    "/api/v1/campaigns/{campaign_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Campaigns"],
)
async def delete_campaign(
    campaign_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Delete a campaign and its plans"""
    await service.delete_campaign(campaign_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.put("/api/v1/campaigns/{campaign_id}/status", response_model=Campaign, tags=["Campaigns"])
async def set_campaign_status(
    campaign_id: str,
    request: CampaignStatusRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Set campaign status"""
    return await service.set_campaign_status(campaign_id, request.status)


@app.post("/api/v1/campaigns/{campaign_id}/status/advance", response_model=Campaign, tags=["Campaigns"])
async def advance_campaign_status(
    campaign_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Move campaign status to the next one in the cycle"""
    return await service.advance_campaign_status(campaign_id)


# ====================
# Plan Endpoints
# ====================


@app.post(
    "/api/v1/campaigns/{campaign_id}/plans",
    response_model=MarketingPlan,
    status_code=status.HTTP_201_CREATED,
    tags=["Plans"],
)
async def create_plan(
    campaign_id: str,
    request: PlanCreateRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Add a plan to a campaign"""
    return await service.create_plan(campaign_id, request)


@app.put(
    "/api/v1/campaigns/{campaign_id}/plans/{plan_id}",
    response_model=MarketingPlan,
    tags=["Plans"],
)
async def update_plan(
    campaign_id: str,
    plan_id: str,
    request: PlanUpdateRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Edit a plan"""
    return await service.edit_plan(campaign_id, plan_id, request)


@app.delete(
    "/api/v1/campaigns/{campaign_id}/plans/{plan_id}",
    response_model=Campaign,
    tags=["Plans"],
)
async def delete_plan(
    campaign_id: str,
    plan_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Remove a plan; returns the updated campaign"""
    return await service.delete_plan(campaign_id, plan_id)


@app.post(
    "/api/v1/campaigns/{campaign_id}/plans/{plan_id}/status/advance",
    response_model=MarketingPlan,
    tags=["Plans"],
)
async def advance_plan_status(
    campaign_id: str,
    plan_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    """Move plan status to the next one in the cycle"""
    return await service.advance_plan_status(campaign_id, plan_id)


# ====================
# Reference Data Endpoints
# ====================


@app.get("/api/v1/branches", response_model=List[Branch], tags=["Reference"])
async def list_branches(
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    return await service.list_branches()


@app.post(
    "/api/v1/branches",
    response_model=Branch,
    status_code=status.HTTP_201_CREATED,
    tags=["Reference"],
)
async def create_branch(
    request: BranchRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.create_branch(request)


@app.put("/api/v1/branches/{branch_id}", response_model=Branch, tags=["Reference"])
async def update_branch(
    branch_id: str,
    request: BranchRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.update_branch(branch_id, request)


@app.delete(
    "/api/v1/branches/{branch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Reference"],
)
async def delete_branch(
    branch_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    await service.delete_branch(branch_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/api/v1/categories", response_model=List[Category], tags=["Reference"])
async def list_categories(
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    return await service.list_categories()


@app.post(
    "/api/v1/categories",
    response_model=Category,
    status_code=status.HTTP_201_CREATED,
    tags=["Reference"],
)
async def create_category(
    request: NamedEntityRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.create_category(request)


@app.put("/api/v1/categories/{category_id}", response_model=Category, tags=["Reference"])
async def update_category(
    category_id: str,
    request: NamedEntityRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.update_category(category_id, request)


@app.delete(
    "/api/v1/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Reference"],
)
async def delete_category(
    category_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    await service.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/api/v1/event-types", response_model=List[EventType], tags=["Reference"])
async def list_event_types(
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_user),
):
    return await service.list_event_types()


@app.post(
    "/api/v1/event-types",
    response_model=EventType,
    status_code=status.HTTP_201_CREATED,
    tags=["Reference"],
)
async def create_event_type(
    request: NamedEntityRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.create_event_type(request)


@app.put("/api/v1/event-types/{event_type_id}", response_model=EventType, tags=["Reference"])
async def update_event_type(
    event_type_id: str,
    request: NamedEntityRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.update_event_type(event_type_id, request)


@app.delete(
    "/api/v1/event-types/{event_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Reference"],
)
async def delete_event_type(
    event_type_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    await service.delete_event_type(event_type_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ====================
# User Endpoints (Admin)
# ====================


@app.get("/api/v1/users", response_model=List[User], tags=["Users"])
async def list_users(
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.list_users()


@app.post(
    "/api/v1/users",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
)
async def create_user(
    request: UserCreateRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.create_user(request)


@app.put("/api/v1/users/{user_id}", response_model=User, tags=["Users"])
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    return await service.update_user(user_id, request)


@app.delete(
    "/api/v1/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Users"],
)
async def delete_user(
    user_id: str,
    service: MarketingService = Depends(get_service),
    claims: SessionClaims = Depends(require_admin),
):
    await service.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "microservices.marketing_service.main:app",
        host="0.0.0.0",
        port=SERVICE_PORT,
        reload=False,
    )
