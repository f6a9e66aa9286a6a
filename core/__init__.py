#!/usr/bin/env python3
"""
Core Module for the Marketing Platform

Shared infrastructure used by the marketing microservice.

COMPONENTS:
    - config/: Environment-driven settings (dotenv per ENV)
    - config_manager.py: Per-service configuration and endpoint discovery
    - logger.py: Service logger setup
    - postgres_client.py: asyncpg pool wrapper for the Data Store
    - jwt_manager.py: Session token issue/verify
    - auth_dependencies.py: FastAPI session/role dependencies

USAGE:
    from core.config_manager import ConfigManager

    config = ConfigManager("marketing_service")
"""

from .config_manager import ConfigManager, Environment, ServiceConfig, create_config

__version__ = "1.0.0"

__all__ = [
    'ConfigManager',
    'Environment',
    'ServiceConfig',
    'create_config',
]
