"""
Escrow Service Protocols

Defines interfaces for dependency injection and testing, and the typed
error taxonomy raised by the escrow state machine.
NO import-time I/O dependencies - safe to import anywhere.
"""

from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .models import Campaign, DonationRecord


# ====================
# Storage Protocols
# ====================


@runtime_checkable
class CampaignRegistryProtocol(Protocol):
    """Key-value store of campaigns, keyed by derived campaign id"""

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        """Insert or replace a campaign"""
        ...

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        ...

    async def delete_campaign(self, campaign_id: str) -> bool:
        """Remove a campaign; False if it did not exist"""
        ...

    async def list_campaigns(
        self,
        creator: Optional[str] = None,
        active_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns, newest first"""
        ...


@runtime_checkable
class DonationLedgerProtocol(Protocol):
    """Key-value store of donation records, keyed by derived donation id"""

    async def save_donation(self, donation: DonationRecord) -> DonationRecord:
        """Insert a donation record"""
        ...

    async def get_donation(self, donation_id: str) -> Optional[DonationRecord]:
        """Get donation record by ID"""
        ...

    async def delete_donation(self, donation_id: str) -> bool:
        """Remove a donation record; False if it did not exist"""
        ...

    async def list_donations(
        self,
        campaign_id: Optional[str] = None,
        donor: Optional[str] = None,
    ) -> List[DonationRecord]:
        """List live donation records, oldest first"""
        ...


# ====================
# External Collaborator Protocols
# ====================


@runtime_checkable
class BalanceTransferPort(Protocol):
    """Moves value between parties; raises TransferFailed on failure"""

    async def transfer(self, source: str, destination: str, amount: int) -> None:
        """Atomically move `amount` from source to destination"""
        ...

    async def balance_of(self, account: str) -> int:
        """Current balance of an account"""
        ...


@runtime_checkable
class AccountFundingPort(Protocol):
    """Credits value into an account from outside the escrow"""

    async def deposit(self, account: str, amount: int) -> int:
        """Add `amount` to an account and return its new balance"""
        ...


@runtime_checkable
class TimeSource(Protocol):
    """Monotonically non-decreasing clock in unix seconds"""

    def now(self) -> int:
        ...


@runtime_checkable
class IdentityVerifierProtocol(Protocol):
    """Asserts that a caller controls the claimed identity"""

    def verify(self, actor: str, proof: Optional[str]) -> bool:
        ...


@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus - no I/O imports"""

    async def publish(self, subject: str, event: Dict[str, Any]) -> None:
        """Publish an event envelope on a subject"""
        ...

    async def close(self) -> None:
        """Close event bus connection"""
        ...


# ====================
# Custom Exceptions
# ====================


class ErrorCategory:
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STATE = "state"
    ARITHMETIC = "arithmetic"
    INTEGRITY = "integrity"
    TRANSFER = "transfer"


class EscrowServiceError(Exception):
    """Base exception for escrow service errors"""

    code: int = 6999
    error_name: str = "escrow_error"
    category: str = ErrorCategory.STATE
    default_message: str = "Escrow error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.code,
            "error": self.error_name,
            "category": self.category,
            "detail": str(self),
        }


# --- validation ---

class InvalidGoalAmountError(EscrowServiceError):
    code = 6000
    error_name = "invalid_goal_amount"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid goal amount"


class InvalidDeadlineError(EscrowServiceError):
    code = 6001
    error_name = "invalid_deadline"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid deadline"


class FieldTooLongError(EscrowServiceError):
    """A text field exceeds its byte bound"""
    code = 6002
    error_name = "field_too_long"
    category = ErrorCategory.VALIDATION
    default_message = "Field too long"
    field_name = ""

    def __init__(self, message: Optional[str] = None, limit: Optional[int] = None):
        super().__init__(message)
        self.field = self.field_name
        self.limit = limit


class TitleTooLongError(FieldTooLongError):
    code = 6002
    error_name = "title_too_long"
    default_message = "Title too long"
    field_name = "title"


class DescriptionTooLongError(FieldTooLongError):
    code = 6003
    error_name = "description_too_long"
    default_message = "Description too long"
    field_name = "description"


class UriTooLongError(FieldTooLongError):
    code = 6004
    error_name = "uri_too_long"
    default_message = "URI too long"
    field_name = "metadata_uri"


class InvalidDonationAmountError(EscrowServiceError):
    code = 6005
    error_name = "invalid_donation_amount"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid donation amount"


class InvalidDepositAmountError(EscrowServiceError):
    code = 6106
    error_name = "invalid_deposit_amount"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid deposit amount"


# --- state ---

class CampaignNotActiveError(EscrowServiceError):
    code = 6006
    error_name = "campaign_not_active"
    default_message = "Campaign not active"


class CampaignExpiredError(EscrowServiceError):
    code = 6007
    error_name = "campaign_expired"
    default_message = "Campaign expired"


class CampaignNotExpiredError(EscrowServiceError):
    code = 6009
    error_name = "campaign_not_expired"
    default_message = "Campaign not expired"


class GoalNotReachedError(EscrowServiceError):
    code = 6010
    error_name = "goal_not_reached"
    default_message = "Goal not reached"


class GoalReachedError(EscrowServiceError):
    code = 6011
    error_name = "goal_reached"
    default_message = "Goal already reached"


class InvalidCampaignError(EscrowServiceError):
    """Donation record does not belong to the given campaign"""
    code = 6012
    error_name = "invalid_campaign"
    default_message = "Invalid campaign"


class CampaignHasDonationsError(EscrowServiceError):
    code = 6016
    error_name = "campaign_has_donations"
    default_message = "Campaign has donations and cannot be deleted"


class DuplicateCampaignError(EscrowServiceError):
    code = 6100
    error_name = "duplicate_campaign"
    default_message = "Campaign already exists"


class CampaignNotFoundError(EscrowServiceError):
    code = 6101
    error_name = "campaign_not_found"
    default_message = "Campaign not found"


class DonationNotFoundError(EscrowServiceError):
    code = 6102
    error_name = "donation_not_found"
    default_message = "Donation record not found"


class DuplicateDonationError(EscrowServiceError):
    code = 6104
    error_name = "duplicate_donation"
    default_message = "Donation already recorded for this timestamp"


# --- authorization ---

class UnauthorizedError(EscrowServiceError):
    code = 6008
    error_name = "unauthorized"
    category = ErrorCategory.AUTHORIZATION
    default_message = "unauthorized"


# --- arithmetic / integrity ---

class InsufficientFundsError(EscrowServiceError):
    """Escrow holds less than the amount to release; an accounting bug"""
    code = 6013
    error_name = "insufficient_funds"
    category = ErrorCategory.INTEGRITY
    default_message = "Insufficient funds"


class StrandedFundsError(EscrowServiceError):
    """A failed operation moved value and the reversing transfer also failed"""
    code = 6105
    error_name = "stranded_funds"
    category = ErrorCategory.INTEGRITY
    default_message = "Transfer could not be reversed"


class ArithmeticOverflowError(EscrowServiceError):
    code = 6014
    error_name = "overflow"
    category = ErrorCategory.ARITHMETIC
    default_message = "Arithmetic overflow"


class UnderflowError(EscrowServiceError):
    code = 6015
    error_name = "underflow"
    category = ErrorCategory.ARITHMETIC
    default_message = "Arithmetic underflow"


# --- transfer ---

class TransferFailedError(EscrowServiceError):
    """Raised by a BalanceTransferPort when value cannot be moved"""
    code = 6103
    error_name = "transfer_failed"
    category = ErrorCategory.TRANSFER
    default_message = "Transfer failed"


__all__ = [
    "CampaignRegistryProtocol",
    "DonationLedgerProtocol",
    "BalanceTransferPort",
    "AccountFundingPort",
    "TimeSource",
    "IdentityVerifierProtocol",
    "EventBusProtocol",
    "ErrorCategory",
    "EscrowServiceError",
    "InvalidGoalAmountError",
    "InvalidDeadlineError",
    "FieldTooLongError",
    "TitleTooLongError",
    "DescriptionTooLongError",
    "UriTooLongError",
    "InvalidDonationAmountError",
    "InvalidDepositAmountError",
    "CampaignNotActiveError",
    "CampaignExpiredError",
    "CampaignNotExpiredError",
    "GoalNotReachedError",
    "GoalReachedError",
    "InvalidCampaignError",
    "CampaignHasDonationsError",
    "DuplicateCampaignError",
    "CampaignNotFoundError",
    "DonationNotFoundError",
    "DuplicateDonationError",
    "UnauthorizedError",
    "InsufficientFundsError",
    "StrandedFundsError",
    "ArithmeticOverflowError",
    "UnderflowError",
    "TransferFailedError",
]
