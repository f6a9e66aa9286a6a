"""
Component Test Fixtures for Marketing Service

Provides an in-memory repository, a service with a fixed clock, session
tokens and a FastAPI TestClient wired to the mocked factory.
"""

import asyncio
import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch
from typing import Dict, List, Optional
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.marketing.data_contract import (
    Branch,
    Campaign,
    Category,
    EventType,
    MarketingTestDataFactory,
    User,
    UserRole,
)
from core.jwt_manager import SessionClaims, SessionRole, get_jwt_manager
from microservices.marketing_service.marketing_service import MarketingService
from microservices.marketing_service.password_utils import hash_password
from microservices.marketing_service.protocols import DataStoreError

TODAY = date(2024, 5, 15)

ADMIN_PASSWORD = "admin123"
STAFF_PASSWORD = "staff123"


# ====================
# Mock Repository
# ====================


class MockMarketingRepository:
    """In-memory repository for component testing"""

    def __init__(self):
        self.campaigns: Dict[str, Campaign] = {}
        self.branches: Dict[str, Branch] = {}
        self.categories: Dict[str, Category] = {}
        self.event_types: Dict[str, EventType] = {}
        self.users: Dict[str, User] = {}

        # Failure / latency injection
        self.failing: Dict[str, Exception] = {}
        self.gate: Optional[asyncio.Event] = None
        self.cancelled: List[str] = []
        self.saves: List[Campaign] = []

    async def _io(self, operation: str):
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.cancelled.append(operation)
            raise
        if operation in self.failing:
            raise self.failing[operation]

    def fail(self, operation: str, message: str = "Connection refused"):
        self.failing[operation] = DataStoreError(message, operation=operation)

    # Seeding helpers (sync, usable from sync fixtures)

    def add_campaign(self, campaign: Campaign) -> Campaign:
        self.campaigns[campaign.id] = campaign
        return campaign

    def add_user(self, username: str, password: str, role: UserRole = UserRole.STAFF) -> User:
        user = User(
            id=f"usr_{username}",
            username=username,
            name=username.title(),
            role=role,
            password_hash=hash_password(password, rounds=4),
        )
        self.users[user.id] = user
        return user

    # Lifecycle

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    # Campaigns

    async def list_campaigns(self) -> List[Campaign]:
        await self._io("list_campaigns")
        return list(self.campaigns.values())

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        await self._io("get_campaign")
        return self.campaigns.get(campaign_id)

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        await self._io("save_campaign")
        self.campaigns[campaign.id] = campaign
        self.saves.append(campaign)
        return campaign

    async def delete_campaign(self, campaign_id: str) -> bool:
        await self._io("delete_campaign")
        return self.campaigns.pop(campaign_id, None) is not None

    # Reference data

    async def list_branches(self) -> List[Branch]:
        await self._io("list_branches")
        return list(self.branches.values())

    async def save_branch(self, branch: Branch) -> Branch:
        await self._io("save_branch")
        self.branches[branch.id] = branch
        return branch

    async def delete_branch(self, branch_id: str) -> bool:
        await self._io("delete_branch")
        return self.branches.pop(branch_id, None) is not None

    async def list_categories(self) -> List[Category]:
        await self._io("list_categories")
        return list(self.categories.values())

    async def save_category(self, category: Category) -> Category:
        await self._io("save_category")
        self.categories[category.id] = category
        return category

    async def delete_category(self, category_id: str) -> bool:
        await self._io("delete_category")
        return self.categories.pop(category_id, None) is not None

    async def list_event_types(self) -> List[EventType]:
        await self._io("list_event_types")
        return list(self.event_types.values())

    async def save_event_type(self, event_type: EventType) -> EventType:
        await self._io("save_event_type")
        self.event_types[event_type.id] = event_type
        return event_type

    async def delete_event_type(self, event_type_id: str) -> bool:
        await self._io("delete_event_type")
        return self.event_types.pop(event_type_id, None) is not None

    # Users

    async def list_users(self) -> List[User]:
        await self._io("list_users")
        return list(self.users.values())

    async def get_user(self, user_id: str) -> Optional[User]:
        await self._io("get_user")
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        await self._io("get_user_by_username")
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    async def save_user(self, user: User) -> User:
        await self._io("save_user")
        self.users[user.id] = user
        return user

    async def delete_user(self, user_id: str) -> bool:
        await self._io("delete_user")
        return self.users.pop(user_id, None) is not None


# ====================
# Fixtures
# ====================


@pytest.fixture
def mock_repository():
    """Empty in-memory repository"""
    return MockMarketingRepository()


@pytest.fixture
def jwt_manager():
    return get_jwt_manager()


@pytest.fixture
def marketing_service(mock_repository, jwt_manager):
    """Service over the mock repository with today fixed to 2024-05-15"""
    return MarketingService(
        repository=mock_repository,
        jwt_manager=jwt_manager,
        today=lambda: TODAY,
        seed_admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def scenario_campaign(mock_repository):
    """c1: May-June 2024, revenue 12500, published TikTok plan on May 2"""
    return mock_repository.add_campaign(MarketingTestDataFactory.make_scenario_campaign())


@pytest.fixture
def admin_user(mock_repository):
    return mock_repository.add_user("admin", ADMIN_PASSWORD, UserRole.ADMIN)


@pytest.fixture
def staff_user(mock_repository):
    return mock_repository.add_user("staff", STAFF_PASSWORD, UserRole.STAFF)


def _token_for(jwt_manager, user: User) -> str:
    return jwt_manager.create_access_token(SessionClaims(
        user_id=user.id,
        username=user.username,
        name=user.name,
        role=SessionRole(user.role.value),
    ))


@pytest.fixture
def admin_headers(jwt_manager, admin_user):
    return {"Authorization": f"Bearer {_token_for(jwt_manager, admin_user)}"}


@pytest.fixture
def staff_headers(jwt_manager, staff_user):
    return {"Authorization": f"Bearer {_token_for(jwt_manager, staff_user)}"}


@pytest.fixture
def mock_factory(mock_repository, marketing_service, jwt_manager):
    """Factory stand-in handing out the mock-backed service"""
    factory = MagicMock()
    factory.initialize = AsyncMock()
    factory.close = AsyncMock()
    factory.repository = mock_repository
    factory.service = marketing_service
    factory.jwt_manager = jwt_manager
    return factory


@pytest.fixture
def client(mock_factory):
    """Create FastAPI test client with mocked dependencies"""
    from fastapi.testclient import TestClient

    # The lifespan builds the factory; hand it the mock instead
    with patch(
        "microservices.marketing_service.main.MarketingServiceFactory",
        return_value=mock_factory,
    ):
        from microservices.marketing_service.main import app

        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
