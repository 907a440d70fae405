#!/usr/bin/env python3
"""Escrow service configuration

Settings for the crowdfunding escrow service: network binding, the
campaign storage reserve, the amount ceiling used by checked arithmetic,
identity-proof verification and event publishing.
"""
import os
from dataclasses import dataclass

# Unsigned 64-bit ceiling for amounts
DEFAULT_MAX_AMOUNT = 2**64 - 1

# Environments where claimed identities are trusted unless configured otherwise
TRUSTED_IDENTITY_ENVIRONMENTS = ("test", "testing")


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class EscrowConfig:
    """Escrow service settings"""

    # ===========================================
    # Service identity
    # ===========================================
    service_name: str = "escrow_service"
    service_host: str = "0.0.0.0"
    service_port: int = 8260
    debug: bool = False
    environment: str = "development"

    # ===========================================
    # Escrow accounting
    # ===========================================
    # Balance that stays with a persisted campaign record
    campaign_reserve: int = 0
    max_amount: int = DEFAULT_MAX_AMOUNT

    # ===========================================
    # Identity proofs
    # ===========================================
    jwt_secret: str = ""
    jwt_issuer: str = "escrow_service"
    require_identity_proof: bool = True

    # ===========================================
    # Event bus
    # ===========================================
    publish_events: bool = True
    # Envelopes kept by the in-memory bus
    event_history: int = 1000

    @classmethod
    def from_env(cls) -> 'EscrowConfig':
        """Load escrow configuration from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            service_name=os.getenv("SERVICE_NAME", "escrow_service"),
            service_host=os.getenv("SERVICE_HOST", "0.0.0.0"),
            service_port=_int(os.getenv("SERVICE_PORT", ""), 8260),
            debug=_bool(os.getenv("DEBUG", "false")),
            environment=env,

            campaign_reserve=_int(os.getenv("ESCROW_CAMPAIGN_RESERVE", ""), 0),
            max_amount=_int(os.getenv("ESCROW_MAX_AMOUNT", ""), DEFAULT_MAX_AMOUNT),

            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_issuer=os.getenv("JWT_ISSUER", "escrow_service"),
            require_identity_proof=_bool(os.getenv(
                "ESCROW_REQUIRE_IDENTITY_PROOF",
                "false" if env in TRUSTED_IDENTITY_ENVIRONMENTS else "true",
            )),

            publish_events=_bool(os.getenv("ESCROW_PUBLISH_EVENTS", "true")),
            event_history=_int(os.getenv("ESCROW_EVENT_HISTORY", ""), 1000),
        )
