"""
Escrow Event Data Models

Event type definitions and payloads for escrow service notifications.
Notifications are informational: the escrow core never consumes them.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Event Type Definitions
# =============================================================================


class EscrowEventType(str, Enum):
    """
    Events published by escrow_service.

    One event per successful state transition.
    """
    CAMPAIGN_CREATED = "escrow.campaign.created"
    DONATION_MADE = "escrow.donation.made"
    FUNDS_WITHDRAWN = "escrow.funds.withdrawn"
    REFUND_ISSUED = "escrow.refund.issued"
    CAMPAIGN_DELETED = "escrow.campaign.deleted"


# =============================================================================
# Event Data Models - Published Events
# =============================================================================


class CampaignCreatedEventData(BaseModel):
    """escrow.campaign.created event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    creator: str = Field(..., description="Campaign creator")
    goal_amount: int = Field(..., description="Funding goal")
    deadline: int = Field(..., description="Deadline (unix seconds)")
    timestamp: Optional[int] = Field(None, description="Escrow clock time of the event")


class DonationMadeEventData(BaseModel):
    """escrow.donation.made event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    donor: str = Field(..., description="Donor identity")
    amount: int = Field(..., description="Donated amount")
    total_donated: int = Field(..., description="Campaign donated total after this donation")
    donation_id: str = Field(..., description="Donation record ID")
    timestamp: Optional[int] = Field(None, description="Escrow clock time of the event")


class FundsWithdrawnEventData(BaseModel):
    """escrow.funds.withdrawn event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    creator: str = Field(..., description="Campaign creator")
    amount: int = Field(..., description="Amount released to the creator")
    timestamp: Optional[int] = Field(None, description="Escrow clock time of the event")


class RefundIssuedEventData(BaseModel):
    """escrow.refund.issued event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    donor: str = Field(..., description="Donor identity")
    amount: int = Field(..., description="Refunded amount")
    donation_id: str = Field(..., description="Refunded donation record ID")
    timestamp: Optional[int] = Field(None, description="Escrow clock time of the event")


class CampaignDeletedEventData(BaseModel):
    """escrow.campaign.deleted event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    creator: str = Field(..., description="Campaign creator")
    timestamp: Optional[int] = Field(None, description="Escrow clock time of the event")
