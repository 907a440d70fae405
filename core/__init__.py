#!/usr/bin/env python3
"""
Core Module for Microservices Architecture

Shared infrastructure for the escrow platform's microservices.

COMPONENTS:
    - config/: dataclass configuration loaded from environment (python-dotenv)
    - logger.py: service logger setup
    - jwt_manager.py: identity proof tokens (PyJWT)
    - auth_dependencies.py: FastAPI dependencies for the claimed actor identity

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger(settings.service_name)
"""

__version__ = "2.0.0"
