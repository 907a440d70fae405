#!/usr/bin/env python3
"""Configuration for the escrow platform

- escrow_config: escrow service settings (reserve, amount ceiling, identity, events)
- logging_config: logging configuration

An env file is loaded before settings are read. ``ESCROW_ENV_FILE`` names it
explicitly; otherwise it is picked from ``ENV``. Variables already set in the
process environment win.
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .escrow_config import EscrowConfig, DEFAULT_MAX_AMOUNT

ENV_DIR = "deployment/environments"
_ENV_ALIASES = {"development": "dev", "testing": "test"}


def env_file_for(env: str) -> str:
    """Env file path for a deployment environment name"""
    name = _ENV_ALIASES.get(env, env)
    if name not in ("dev", "test", "staging", "production"):
        name = "dev"
    return f"{ENV_DIR}/{name}.env"


load_dotenv(
    os.getenv("ESCROW_ENV_FILE")
    or env_file_for(os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")),
    override=False,
)

settings = EscrowConfig.from_env()


def get_settings() -> EscrowConfig:
    """Get global settings instance"""
    return settings


__all__ = [
    'EscrowConfig',
    'LoggingConfig',
    'DEFAULT_MAX_AMOUNT',
    'env_file_for',
    'get_settings',
    'settings',
]
