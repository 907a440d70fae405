"""
Escrow Service Factory

Factory for creating EscrowService with real dependencies.
This is the ONLY module that imports concrete implementations.
"""

import logging
from typing import Optional

from core.config import EscrowConfig, get_settings
from core.jwt_manager import JWTManager

from .balance_ledger import BalanceLedger, SystemTimeSource
from .campaign_registry import CampaignRegistry
from .donation_ledger import DonationLedger
from .escrow_service import EscrowService
from .events import InMemoryEventBus
from .identity import JWTIdentityVerifier, TrustedIdentityVerifier

logger = logging.getLogger(__name__)


def create_escrow_service(
    config: Optional[EscrowConfig] = None,
    balances=None,
    clock=None,
    identity_verifier=None,
    event_bus=None,
) -> EscrowService:
    """
    Create EscrowService with all real dependencies

    Args:
        config: Optional escrow config (global settings if not provided)
        balances: Optional value transfer port (in-memory ledger if not provided)
        clock: Optional time source (system clock if not provided)
        identity_verifier: Optional identity verifier (chosen from config if not provided)
        event_bus: Optional event bus (in-memory bus if events are enabled)

    Returns:
        Fully initialized EscrowService instance
    """
    if config is None:
        config = get_settings()

    if identity_verifier is None:
        if config.require_identity_proof:
            identity_verifier = JWTIdentityVerifier(
                JWTManager(
                    secret_key=config.jwt_secret or None,
                    issuer=config.jwt_issuer,
                )
            )
            logger.info("Identity proofs required (JWT)")
        elif config.environment == "production":
            raise ValueError("Identity proofs cannot be disabled in production")
        else:
            identity_verifier = TrustedIdentityVerifier()
            logger.warning("Identity proofs disabled - claimed identities are trusted")

    if event_bus is None and config.publish_events:
        event_bus = InMemoryEventBus(max_events=config.event_history)

    return EscrowService(
        campaign_registry=CampaignRegistry(),
        donation_ledger=DonationLedger(),
        balances=balances if balances is not None else BalanceLedger(),
        clock=clock if clock is not None else SystemTimeSource(),
        identity_verifier=identity_verifier,
        event_bus=event_bus,
        campaign_reserve=config.campaign_reserve,
        max_amount=config.max_amount,
    )


__all__ = ["create_escrow_service"]
