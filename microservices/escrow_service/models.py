"""
Escrow Service Data Models

Campaign and DonationRecord entities, the derived campaign phase, and the
request/response models used by the HTTP layer.

Amounts are non-negative integers in the smallest unit of value.
Timestamps are integer unix seconds.
"""

from enum import Enum
from typing import List, Optional, Dict

from pydantic import BaseModel, Field


# Text bounds, measured in UTF-8 bytes
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_METADATA_URI_LENGTH = 200


# ====================
# Enums
# ====================


class CampaignPhase(str, Enum):
    """Lifecycle phase derived from campaign state and the current time"""
    ACTIVE = "active"                # accepting donations
    WITHDRAWABLE = "withdrawable"    # deadline passed, goal reached
    REFUNDABLE = "refundable"        # deadline passed, goal failed
    CLOSED = "closed"                # creator withdrew


# ====================
# Base
# ====================


class BaseContract(BaseModel):
    """Base model for escrow entities"""

    model_config = {
        "from_attributes": True,
    }


# ====================
# Entities
# ====================


class Campaign(BaseContract):
    """Fundraising campaign, one per (creator, title)"""
    campaign_id: str
    creator: str
    title: str
    description: str = ""
    metadata_uri: str = ""
    goal_amount: int = Field(..., gt=0)
    donated_amount: int = Field(default=0, ge=0)
    deadline: int
    created_at: int
    is_active: bool = True

    def is_expired(self, now: int) -> bool:
        return now >= self.deadline

    def goal_reached(self) -> bool:
        return self.donated_amount >= self.goal_amount

    def phase_at(self, now: int) -> CampaignPhase:
        """Settlement phase at `now`; withdraw and refund never overlap"""
        if not self.is_active:
            return CampaignPhase.CLOSED
        if not self.is_expired(now):
            return CampaignPhase.ACTIVE
        if self.goal_reached():
            return CampaignPhase.WITHDRAWABLE
        return CampaignPhase.REFUNDABLE


class DonationRecord(BaseContract):
    """Receipt for one accepted contribution"""
    donation_id: str
    campaign_id: str
    donor: str
    amount: int = Field(..., gt=0)
    timestamp: int


# ====================
# Request Models
# ====================


class CampaignCreateRequest(BaseModel):
    """Create campaign request"""
    title: str
    description: str = ""
    goal_amount: int
    deadline: int
    metadata_uri: str = ""


class DonateRequest(BaseModel):
    """Donation request"""
    amount: int


class DepositRequest(BaseModel):
    """Credit the caller's own account"""
    amount: int


class RefundRequest(BaseModel):
    """Refund request; with no selector the donor's oldest record is refunded"""
    donation_id: Optional[str] = None
    timestamp: Optional[int] = None


# ====================
# Response Models
# ====================


class CampaignResponse(BaseModel):
    """Campaign response"""
    campaign: Campaign
    message: str = "Success"


class CampaignSummary(BaseModel):
    """Campaign with derived progress figures"""
    campaign: Campaign
    phase: CampaignPhase
    progress_percentage: float
    seconds_remaining: int
    escrow_balance: int
    donation_count: int


class CampaignListResponse(BaseModel):
    """Campaign list response"""
    campaigns: List[Campaign]
    total: int
    limit: int
    offset: int
    has_more: bool


class DonationResponse(BaseModel):
    """Accepted donation"""
    donation: DonationRecord
    total_donated: int
    message: str = "Donation accepted"


class DonationListResponse(BaseModel):
    """Donation list response"""
    donations: List[DonationRecord]
    total: int


class WithdrawResponse(BaseModel):
    """Creator withdrawal result"""
    campaign_id: str
    creator: str
    amount: int
    message: str = "Funds withdrawn"


class RefundResponse(BaseModel):
    """Donor refund result"""
    campaign_id: str
    donor: str
    donation_id: str
    amount: int
    donated_amount: int
    message: str = "Refund issued"


class AccountBalanceResponse(BaseModel):
    """Balance of one account"""
    account: str
    balance: int


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


class ErrorResponse(BaseModel):
    """Standard error response"""
    error_code: int
    error: str
    category: str
    detail: str


__all__ = [
    "MAX_TITLE_LENGTH",
    "MAX_DESCRIPTION_LENGTH",
    "MAX_METADATA_URI_LENGTH",
    "CampaignPhase",
    "Campaign",
    "DonationRecord",
    "CampaignCreateRequest",
    "DonateRequest",
    "DepositRequest",
    "RefundRequest",
    "CampaignResponse",
    "CampaignSummary",
    "CampaignListResponse",
    "DonationResponse",
    "DonationListResponse",
    "WithdrawResponse",
    "RefundResponse",
    "AccountBalanceResponse",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
    "ErrorResponse",
]
