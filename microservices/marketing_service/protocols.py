"""
Marketing Service Protocols

Defines the Data Store interface and the error taxonomy of the service.
Following the protocol-based architecture pattern.
"""

from typing import List, Optional, Protocol

from .models import (
    Branch,
    Campaign,
    Category,
    EventType,
    User,
)


# ====================
# Repository Protocol
# ====================


class MarketingRepositoryProtocol(Protocol):
    """Protocol for the marketing Data Store"""

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def health_check(self) -> bool:
        """Check repository health"""
        ...

    # Campaigns (plans are embedded)
    async def list_campaigns(self) -> List[Campaign]:
        ...

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        ...

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        """Full-document upsert"""
        ...

    async def delete_campaign(self, campaign_id: str) -> bool:
        ...

    # Reference data
    async def list_branches(self) -> List[Branch]:
        ...

    async def save_branch(self, branch: Branch) -> Branch:
        ...

    async def delete_branch(self, branch_id: str) -> bool:
        ...

    async def list_categories(self) -> List[Category]:
        ...

    async def save_category(self, category: Category) -> Category:
        ...

    async def delete_category(self, category_id: str) -> bool:
        ...

    async def list_event_types(self) -> List[EventType]:
        ...

    async def save_event_type(self, event_type: EventType) -> EventType:
        ...

    async def delete_event_type(self, event_type_id: str) -> bool:
        ...

    # Users
    async def list_users(self) -> List[User]:
        ...

    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    async def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    async def save_user(self, user: User) -> User:
        ...

    async def delete_user(self, user_id: str) -> bool:
        ...


# ====================
# Custom Exceptions
# ====================


class MarketingServiceError(Exception):
    """Base exception for marketing service errors"""
    pass


class DataStoreError(MarketingServiceError):
    """Raised when the Data Store cannot be reached or a call fails"""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class InvalidRangeError(MarketingServiceError):
    """Raised when a date filter cannot be resolved to an interval"""
    pass


class CampaignNotFoundError(MarketingServiceError):
    """Raised when campaign is not found"""
    pass


class PlanNotFoundError(MarketingServiceError):
    """Raised when a plan is not found in its campaign"""
    pass


class ReferenceNotFoundError(MarketingServiceError):
    """Raised when a branch, category, event type or user is not found"""

    def __init__(self, message: str, entity: Optional[str] = None):
        super().__init__(message)
        self.entity = entity


class MarketingValidationError(MarketingServiceError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthenticationError(MarketingServiceError):
    """Raised when a login attempt fails"""
    pass


__all__ = [
    "MarketingRepositoryProtocol",
    "MarketingServiceError",
    "DataStoreError",
    "InvalidRangeError",
    "CampaignNotFoundError",
    "PlanNotFoundError",
    "ReferenceNotFoundError",
    "MarketingValidationError",
    "AuthenticationError",
]
