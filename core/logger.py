#!/usr/bin/env python3
"""
Service logger setup

Configures the standard logging module from LoggingConfig so every
microservice logs with the same format and level.
"""

import logging
import sys
from typing import Optional

from core.config import LoggingConfig, get_settings

_configured_services = set()


def setup_service_logger(
    service_name: str,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure the root handlers and return the logger for a service.

    Handlers go on the root logger, so module loggers created with
    logging.getLogger(__name__) (microservices.<service>.*, core.*) reach
    the console and the log file.

    Args:
        service_name: Service name; the returned logger is microservices.<service_name>
        config: Logging config (defaults to global settings)

    Returns:
        Configured logger
    """
    config = config or get_settings().logging
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    logger = logging.getLogger(f"microservices.{service_name}")

    if service_name in _configured_services:
        return logger

    formatter = logging.Formatter(config.log_format)

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    _configured_services.add(service_name)
    return logger


__all__ = ["setup_service_logger"]
