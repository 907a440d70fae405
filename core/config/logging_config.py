#!/usr/bin/env python3
"""Logging configuration for escrow services"""
import os
from dataclasses import dataclass

DEFAULT_LOG_FORMAT = "%(asctime)s - {service} - %(name)s - %(levelname)s - %(message)s"


def _bool(val: str) -> bool:
    return val.lower() == "true"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    log_level: str = "INFO"
    # "{service}" is replaced with the service name
    log_format: str = DEFAULT_LOG_FORMAT
    log_file: str = ""
    enable_console: bool = True

    service_name: str = "escrow_service"
    environment: str = "development"

    def formatter_pattern(self) -> str:
        """Log format with the service name filled in"""
        return self.log_format.replace("{service}", self.service_name)

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        """Load logging config from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT),
            log_file=os.getenv("LOG_FILE", ""),
            enable_console=_bool(os.getenv("LOG_CONSOLE", "true")),
            service_name=os.getenv("SERVICE_NAME", "escrow_service"),
            environment=env,
        )
