#!/usr/bin/env python3
"""
Configuration Manager for Microservices

Per-service view over the global settings plus simple endpoint discovery.

USAGE:
    from core.config_manager import ConfigManager

    config = ConfigManager("marketing_service")
    host, port = config.discover_service(
        service_name="postgres_service",
        default_host="localhost",
        default_port=5432,
        env_host_key="POSTGRES_HOST",
        env_port_key="POSTGRES_PORT",
    )
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from core.config import AppConfig, get_settings

logger = logging.getLogger(__name__)


class Environment(Enum):
    """Deployment environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_value(cls, value: str) -> "Environment":
        aliases = {"dev": "development", "test": "testing", "prod": "production"}
        value = aliases.get(value, value)
        try:
            return cls(value)
        except ValueError:
            return cls.DEVELOPMENT


@dataclass
class ServiceConfig:
    """Resolved settings for a single service"""
    service_name: str
    environment: Environment
    host: str
    port: int
    debug: bool
    log_level: str


class ConfigManager:
    """Centralized configuration access for one service"""

    def __init__(self, service_name: str, settings: Optional[AppConfig] = None):
        self.service_name = service_name
        self.settings = settings or get_settings()
        self.environment = Environment.from_value(self.settings.environment)

    def get_service_config(self) -> ServiceConfig:
        """Get host/port/log settings for this service"""
        prefix = self.service_name.upper()
        port_value = os.getenv(f"{prefix}_PORT") or os.getenv("SERVICE_PORT")
        try:
            port = int(port_value) if port_value else self.settings.default_port
        except ValueError:
            logger.warning(f"Invalid port '{port_value}' for {self.service_name}, using default")
            port = self.settings.default_port

        return ServiceConfig(
            service_name=self.service_name,
            environment=self.environment,
            host=os.getenv(f"{prefix}_HOST", self.settings.default_host),
            port=port,
            debug=self.settings.debug,
            log_level=self.settings.logging.log_level,
        )

    def discover_service(
        self,
        service_name: str,
        default_host: str,
        default_port: int,
        env_host_key: Optional[str] = None,
        env_port_key: Optional[str] = None,
    ) -> Tuple[str, int]:
        """
        Resolve host and port of a dependency.

        Priority: environment variables -> defaults.
        """
        host = os.getenv(env_host_key) if env_host_key else None
        port_value = os.getenv(env_port_key) if env_port_key else None

        port = default_port
        if port_value:
            try:
                port = int(port_value)
            except ValueError:
                logger.warning(f"Invalid port '{port_value}' for {service_name}, using {default_port}")

        resolved_host = host or default_host
        logger.debug(f"Resolved {service_name} for {self.service_name}: {resolved_host}:{port}")
        return resolved_host, port


def create_config(service_name: str) -> ConfigManager:
    """Create a ConfigManager for a service"""
    return ConfigManager(service_name)


__all__ = ["ConfigManager", "Environment", "ServiceConfig", "create_config"]
