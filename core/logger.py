#!/usr/bin/env python3
"""
Service logger setup

Configures a named logger for a microservice from LoggingConfig.
Safe to call repeatedly: handlers are attached only once per logger.
"""

import logging
from typing import Optional

from core.config.logging_config import LoggingConfig


def setup_service_logger(
    service_name: str,
    level: Optional[str] = None,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Create or fetch the logger for a service

    Args:
        service_name: Logger name, usually the service name
        level: Log level override (defaults to LOG_LEVEL)
        config: Logging config (loaded from environment if not provided)

    Returns:
        Configured logger
    """
    config = config or LoggingConfig.from_env()
    logger = logging.getLogger(service_name)
    logger.setLevel((level or config.log_level).upper())

    if getattr(logger, "_service_configured", False):
        return logger

    formatter = logging.Formatter(config.formatter_pattern())

    if config.enable_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger._service_configured = True
    return logger


__all__ = ["setup_service_logger"]
