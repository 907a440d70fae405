"""
Escrow Service Events

Event models and publishers for escrow service.
"""

from .models import (
    EscrowEventType,
    CampaignCreatedEventData,
    DonationMadeEventData,
    FundsWithdrawnEventData,
    RefundIssuedEventData,
    CampaignDeletedEventData,
)
from .publishers import EscrowEventPublisher, InMemoryEventBus

__all__ = [
    # Event Types
    "EscrowEventType",
    # Event Data Models
    "CampaignCreatedEventData",
    "DonationMadeEventData",
    "FundsWithdrawnEventData",
    "RefundIssuedEventData",
    "CampaignDeletedEventData",
    # Publishers
    "EscrowEventPublisher",
    "InMemoryEventBus",
]
