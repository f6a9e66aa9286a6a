"""
Marketing Service Factory

Factory for creating marketing service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config_manager import ConfigManager
from core.jwt_manager import JWTManager, get_jwt_manager

from .marketing_repository import MarketingRepository
from .marketing_service import MarketingService

logger = logging.getLogger(__name__)


class MarketingServiceFactory:
    """Factory for creating marketing service components"""

    def __init__(self, config: Optional[ConfigManager] = None):
        self.config = config or ConfigManager("marketing_service")
        self._repository: Optional[MarketingRepository] = None
        self._service: Optional[MarketingService] = None
        self._jwt_manager: Optional[JWTManager] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Marketing Service components...")
        settings = self.config.settings

        # Initialize repository
        self._repository = MarketingRepository(self.config)
        await self._repository.initialize()

        # Session tokens
        self._jwt_manager = get_jwt_manager(
            secret_key=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            access_token_expiry=settings.jwt_expiration,
        )

        # Initialize main service
        self._service = MarketingService(
            repository=self._repository,
            jwt_manager=self._jwt_manager,
            seed_admin_username=settings.seed_admin_username,
            seed_admin_password=settings.seed_admin_password,
        )
        await self._service.initialize_defaults()

        logger.info("Marketing Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Marketing Service components...")

        if self._repository:
            await self._repository.close()

        logger.info("Marketing Service components closed")

    @property
    def repository(self) -> MarketingRepository:
        """Get marketing repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> MarketingService:
        """Get marketing service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def jwt_manager(self) -> JWTManager:
        """Get session token manager"""
        if not self._jwt_manager:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._jwt_manager


# Global factory instance
_factory: Optional[MarketingServiceFactory] = None


async def get_factory() -> MarketingServiceFactory:
    """Get or create factory instance"""
    global _factory
    if _factory is None:
        _factory = MarketingServiceFactory()
        await _factory.initialize()
    return _factory


async def close_factory() -> None:
    """Close factory instance"""
    global _factory
    if _factory:
        await _factory.close()
        _factory = None


__all__ = [
    "MarketingServiceFactory",
    "get_factory",
    "close_factory",
]
