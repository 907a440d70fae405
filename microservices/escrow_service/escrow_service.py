"""
Escrow Service - Business Logic Layer

The escrow state machine for crowdfunding campaigns:
- create: open a campaign for (creator, title)
- donate: move value into the campaign's escrow account
- withdraw: release escrow to the creator once the goal is met after the deadline
- refund: return one donation to its donor once the goal failed after the deadline
- delete: remove a campaign that holds no donations

fund_account credits a caller's own balance so it can take part.

Every operation on a campaign runs under that campaign's lock. All checks,
including checked arithmetic, happen before any value moves. If a write fails
after value moved, the transfer is reversed and the error re-raised. A reversal
that fails too surfaces as StrandedFundsError.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Tuple

from core.config import DEFAULT_MAX_AMOUNT

from .events import EscrowEventPublisher
from .identifiers import (
    ESCROW_ACCOUNT_PREFIX,
    checked_add,
    checked_sub,
    derive_campaign_id,
    derive_donation_id,
    escrow_account_id,
    text_length,
)
from .models import (
    MAX_DESCRIPTION_LENGTH,
    MAX_METADATA_URI_LENGTH,
    MAX_TITLE_LENGTH,
    AccountBalanceResponse,
    Campaign,
    CampaignSummary,
    DonationRecord,
    DonationResponse,
    RefundResponse,
    WithdrawResponse,
)
from .protocols import (
    AccountFundingPort,
    BalanceTransferPort,
    CampaignRegistryProtocol,
    DonationLedgerProtocol,
    EventBusProtocol,
    IdentityVerifierProtocol,
    TimeSource,
    CampaignExpiredError,
    CampaignHasDonationsError,
    CampaignNotActiveError,
    CampaignNotExpiredError,
    CampaignNotFoundError,
    DescriptionTooLongError,
    DonationNotFoundError,
    DuplicateCampaignError,
    DuplicateDonationError,
    EscrowServiceError,
    GoalNotReachedError,
    GoalReachedError,
    InsufficientFundsError,
    InvalidCampaignError,
    InvalidDeadlineError,
    InvalidDonationAmountError,
    InvalidDepositAmountError,
    InvalidGoalAmountError,
    StrandedFundsError,
    TitleTooLongError,
    TransferFailedError,
    UnauthorizedError,
    UriTooLongError,
)

logger = logging.getLogger(__name__)


@dataclass
class _CampaignLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    # holders plus waiters
    users: int = 0


class EscrowService:
    """
    Escrow Service - Core business logic

    The only component that mutates Campaign and DonationRecord state.
    """

    def __init__(
        self,
        campaign_registry: CampaignRegistryProtocol,
        donation_ledger: DonationLedgerProtocol,
        balances: BalanceTransferPort,
        clock: TimeSource,
        identity_verifier: IdentityVerifierProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        campaign_reserve: int = 0,
        max_amount: int = DEFAULT_MAX_AMOUNT,
    ):
        """
        Initialize escrow service with dependencies.

        Args:
            campaign_registry: Campaign store
            donation_ledger: Donation record store
            balances: Value transfer collaborator
            clock: Current time collaborator
            identity_verifier: Proves callers control the identity they claim
            event_bus: Event bus for notifications (optional)
            campaign_reserve: Balance that stays with a persisted campaign
            max_amount: Largest representable amount
        """
        if campaign_reserve < 0:
            raise ValueError("campaign_reserve cannot be negative")

        self.campaign_registry = campaign_registry
        self.donation_ledger = donation_ledger
        self.balances = balances
        self.clock = clock
        self.identity_verifier = identity_verifier
        self.event_bus = event_bus
        self.event_publisher = EscrowEventPublisher(event_bus)
        self.campaign_reserve = campaign_reserve
        self.max_amount = max_amount
        self._locks: Dict[str, _CampaignLock] = {}

    # ====================
    # Helpers
    # ====================

    @asynccontextmanager
    async def _campaign_lock(self, campaign_id: str) -> AsyncIterator[None]:
        """Hold the lock for one campaign id; the entry is dropped with its last user"""
        entry = self._locks.get(campaign_id)
        if entry is None:
            entry = self._locks[campaign_id] = _CampaignLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[campaign_id]

    def _verify_actor(self, actor: str, proof: Optional[str]) -> None:
        if not actor or not self.identity_verifier.verify(actor, proof):
            raise UnauthorizedError(f"Identity proof rejected for {actor!r}")

    @asynccontextmanager
    async def _transition(
        self,
        operation: str,
        campaign_id: str,
        actor: str,
        proof: Optional[str],
    ) -> AsyncIterator[None]:
        """Verify the actor, then hold the campaign lock for one operation"""
        try:
            self._verify_actor(actor, proof)
            async with self._campaign_lock(campaign_id):
                yield
        except EscrowServiceError as e:
            logger.warning(
                f"{operation} rejected: campaign={campaign_id} actor={actor} "
                f"code={e.code} reason={e}"
            )
            raise

    async def _require_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self.campaign_registry.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    async def _reverse_transfer(
        self, source: str, destination: str, amount: int, cause: BaseException
    ) -> None:
        """
        Undo a transfer whose follow-up writes failed.

        If the reversal itself fails, raises StrandedFundsError chained to
        the write failure `cause`, naming where the value is stuck.
        """
        try:
            await self.balances.transfer(destination, source, amount)
        except EscrowServiceError as e:
            logger.critical(
                f"Could not reverse transfer of {amount} from {destination} to {source}: {e}"
            )
            raise StrandedFundsError(
                f"{amount} stranded in {destination}, owed to {source}: "
                f"write failed ({cause!r}) and reversal failed ({e})"
            ) from cause
        logger.info(f"Reversed transfer of {amount} from {destination} to {source}")

    async def _spendable_escrow(self, campaign_id: str) -> int:
        balance = await self.balances.balance_of(escrow_account_id(campaign_id))
        if balance < self.campaign_reserve:
            raise InsufficientFundsError(
                f"Escrow for {campaign_id} holds {balance}, below reserve {self.campaign_reserve}"
            )
        return balance - self.campaign_reserve

    # ====================
    # State Transitions
    # ====================

    async def create_campaign(
        self,
        creator: str,
        title: str,
        description: str,
        goal_amount: int,
        deadline: int,
        metadata_uri: str = "",
        proof: Optional[str] = None,
    ) -> Campaign:
        """
        Open a new campaign for (creator, title).

        Raises:
            UnauthorizedError: identity proof rejected
            InvalidGoalAmountError: goal is not a positive representable amount
            InvalidDeadlineError: deadline is not after now
            FieldTooLongError: a text field exceeds its bound
            DuplicateCampaignError: campaign already exists for (creator, title)
            TransferFailedError: creator cannot fund the campaign reserve
        """
        description = description or ""
        metadata_uri = metadata_uri or ""
        campaign_id = derive_campaign_id(creator, title)

        async with self._transition("create", campaign_id, creator, proof):
            if goal_amount <= 0 or goal_amount > self.max_amount:
                raise InvalidGoalAmountError(f"Goal amount must be positive, got {goal_amount}")

            now = self.clock.now()
            if deadline <= now:
                raise InvalidDeadlineError(f"Deadline {deadline} is not after {now}")

            if text_length(title) > MAX_TITLE_LENGTH:
                raise TitleTooLongError(limit=MAX_TITLE_LENGTH)
            if text_length(description) > MAX_DESCRIPTION_LENGTH:
                raise DescriptionTooLongError(limit=MAX_DESCRIPTION_LENGTH)
            if text_length(metadata_uri) > MAX_METADATA_URI_LENGTH:
                raise UriTooLongError(limit=MAX_METADATA_URI_LENGTH)

            if await self.campaign_registry.get_campaign(campaign_id):
                raise DuplicateCampaignError(f"Campaign already exists: {campaign_id}")

            campaign = Campaign(
                campaign_id=campaign_id,
                creator=creator,
                title=title,
                description=description,
                metadata_uri=metadata_uri,
                goal_amount=goal_amount,
                donated_amount=0,
                deadline=deadline,
                created_at=now,
                is_active=True,
            )

            escrow = escrow_account_id(campaign_id)
            if self.campaign_reserve:
                await self.balances.transfer(creator, escrow, self.campaign_reserve)
            try:
                campaign = await self.campaign_registry.save_campaign(campaign)
            except Exception as e:
                if self.campaign_reserve:
                    await self._reverse_transfer(creator, escrow, self.campaign_reserve, e)
                raise

        logger.info(
            f"Campaign created: {campaign_id} by {creator}, goal={goal_amount}, deadline={deadline}"
        )
        await self.event_publisher.publish_campaign_created(
            campaign_id=campaign_id,
            creator=creator,
            goal_amount=goal_amount,
            deadline=deadline,
            timestamp=now,
        )
        return campaign

    async def donate(
        self,
        campaign_id: str,
        donor: str,
        amount: int,
        proof: Optional[str] = None,
    ) -> DonationResponse:
        """
        Contribute `amount` from donor into the campaign's escrow.

        Raises:
            InvalidDonationAmountError: amount is not positive
            CampaignNotFoundError: unknown campaign
            CampaignNotActiveError: campaign already withdrawn
            CampaignExpiredError: deadline reached
            ArithmeticOverflowError: donated total would exceed the amount ceiling
            DuplicateDonationError: donor already donated at this timestamp
            TransferFailedError: donor cannot fund the donation
        """
        async with self._transition("donate", campaign_id, donor, proof):
            if amount <= 0:
                raise InvalidDonationAmountError(f"Donation amount must be positive, got {amount}")

            campaign = await self._require_campaign(campaign_id)
            if not campaign.is_active:
                raise CampaignNotActiveError(f"Campaign {campaign_id} is closed")

            now = self.clock.now()
            if campaign.is_expired(now):
                raise CampaignExpiredError(f"Campaign {campaign_id} ended at {campaign.deadline}")

            total_donated = checked_add(campaign.donated_amount, amount, self.max_amount)

            donation_id = derive_donation_id(campaign_id, donor, now)
            if await self.donation_ledger.get_donation(donation_id):
                raise DuplicateDonationError(
                    f"Donor {donor} already donated to {campaign_id} at {now}"
                )

            record = DonationRecord(
                donation_id=donation_id,
                campaign_id=campaign_id,
                donor=donor,
                amount=amount,
                timestamp=now,
            )
            updated = campaign.model_copy(update={"donated_amount": total_donated})

            escrow = escrow_account_id(campaign_id)
            await self.balances.transfer(donor, escrow, amount)
            try:
                await self.donation_ledger.save_donation(record)
                try:
                    await self.campaign_registry.save_campaign(updated)
                except Exception:
                    await self.donation_ledger.delete_donation(donation_id)
                    raise
            except Exception as e:
                await self._reverse_transfer(donor, escrow, amount, e)
                raise

        logger.info(
            f"Donation accepted: {donation_id} {donor} -> {campaign_id}, "
            f"amount={amount}, total={total_donated}"
        )
        await self.event_publisher.publish_donation_made(
            campaign_id=campaign_id,
            donor=donor,
            amount=amount,
            total_donated=total_donated,
            donation_id=donation_id,
            timestamp=now,
        )
        return DonationResponse(donation=record, total_donated=total_donated)

    async def withdraw(
        self,
        campaign_id: str,
        creator: str,
        proof: Optional[str] = None,
    ) -> WithdrawResponse:
        """
        Release the escrow, less the reserve, to the creator and close the campaign.

        Raises:
            CampaignNotFoundError: unknown campaign
            UnauthorizedError: requester is not the creator
            CampaignNotActiveError: already withdrawn
            CampaignNotExpiredError: deadline not reached
            GoalNotReachedError: donated total below goal
            InsufficientFundsError: escrow holds less than the reserve
        """
        async with self._transition("withdraw", campaign_id, creator, proof):
            campaign = await self._require_campaign(campaign_id)
            if campaign.creator != creator:
                raise UnauthorizedError(f"{creator} is not the creator of {campaign_id}")
            if not campaign.is_active:
                raise CampaignNotActiveError(f"Campaign {campaign_id} already withdrawn")

            now = self.clock.now()
            if not campaign.is_expired(now):
                raise CampaignNotExpiredError(f"Campaign {campaign_id} runs until {campaign.deadline}")
            if not campaign.goal_reached():
                raise GoalNotReachedError(
                    f"Campaign {campaign_id} raised {campaign.donated_amount} of {campaign.goal_amount}"
                )

            amount = await self._spendable_escrow(campaign_id)
            closed = campaign.model_copy(update={"is_active": False})

            escrow = escrow_account_id(campaign_id)
            if amount:
                await self.balances.transfer(escrow, creator, amount)
            try:
                await self.campaign_registry.save_campaign(closed)
            except Exception as e:
                if amount:
                    await self._reverse_transfer(escrow, creator, amount, e)
                raise

        logger.info(f"Funds withdrawn: {campaign_id} -> {creator}, amount={amount}")
        await self.event_publisher.publish_funds_withdrawn(
            campaign_id=campaign_id,
            creator=creator,
            amount=amount,
            timestamp=now,
        )
        return WithdrawResponse(campaign_id=campaign_id, creator=creator, amount=amount)

    async def refund(
        self,
        campaign_id: str,
        donor: str,
        donation_id: Optional[str] = None,
        timestamp: Optional[int] = None,
        proof: Optional[str] = None,
    ) -> RefundResponse:
        """
        Return one donation to its donor after a failed campaign.

        The record is named by donation_id or by its timestamp. With neither,
        the donor's oldest live record for the campaign is refunded.

        Raises:
            DonationNotFoundError: no matching live record
            UnauthorizedError: record belongs to another donor
            InvalidCampaignError: record belongs to another campaign
            CampaignNotFoundError: unknown campaign
            CampaignNotExpiredError: deadline not reached
            GoalReachedError: goal met, funds belong to the creator
            InsufficientFundsError: escrow cannot cover the refund above the reserve
            UnderflowError: donated total would go negative
        """
        async with self._transition("refund", campaign_id, donor, proof):
            record = await self._resolve_donation(campaign_id, donor, donation_id, timestamp)
            campaign = await self._require_campaign(campaign_id)

            now = self.clock.now()
            if not campaign.is_expired(now):
                raise CampaignNotExpiredError(f"Campaign {campaign_id} runs until {campaign.deadline}")
            if campaign.goal_reached():
                raise GoalReachedError(f"Campaign {campaign_id} reached its goal")

            spendable = await self._spendable_escrow(campaign_id)
            if spendable < record.amount:
                raise InsufficientFundsError(
                    f"Escrow for {campaign_id} can release {spendable}, refund needs {record.amount}"
                )

            donated_amount = checked_sub(campaign.donated_amount, record.amount)
            updated = campaign.model_copy(update={"donated_amount": donated_amount})

            escrow = escrow_account_id(campaign_id)
            await self.balances.transfer(escrow, donor, record.amount)
            try:
                await self.donation_ledger.delete_donation(record.donation_id)
                try:
                    await self.campaign_registry.save_campaign(updated)
                except Exception:
                    await self.donation_ledger.save_donation(record)
                    raise
            except Exception as e:
                await self._reverse_transfer(escrow, donor, record.amount, e)
                raise

        logger.info(
            f"Refund issued: {record.donation_id} {campaign_id} -> {donor}, "
            f"amount={record.amount}, remaining={donated_amount}"
        )
        await self.event_publisher.publish_refund_issued(
            campaign_id=campaign_id,
            donor=donor,
            amount=record.amount,
            donation_id=record.donation_id,
            timestamp=now,
        )
        return RefundResponse(
            campaign_id=campaign_id,
            donor=donor,
            donation_id=record.donation_id,
            amount=record.amount,
            donated_amount=donated_amount,
        )

    async def _resolve_donation(
        self,
        campaign_id: str,
        donor: str,
        donation_id: Optional[str],
        timestamp: Optional[int],
    ) -> DonationRecord:
        if donation_id is None and timestamp is not None:
            donation_id = derive_donation_id(campaign_id, donor, timestamp)

        if donation_id is None:
            records = await self.donation_ledger.list_donations(campaign_id=campaign_id, donor=donor)
            if not records:
                raise DonationNotFoundError(f"No donation by {donor} to {campaign_id}")
            return records[0]

        record = await self.donation_ledger.get_donation(donation_id)
        if not record:
            raise DonationNotFoundError(f"Donation record not found: {donation_id}")
        if record.donor != donor:
            raise UnauthorizedError(f"{donor} is not the donor of {donation_id}")
        if record.campaign_id != campaign_id:
            raise InvalidCampaignError(f"Donation {donation_id} does not belong to {campaign_id}")
        return record

    async def delete_campaign(
        self,
        campaign_id: str,
        creator: str,
        proof: Optional[str] = None,
    ) -> Campaign:
        """
        Remove a campaign holding no donations; its reserve returns to the creator.

        Raises:
            CampaignNotFoundError: unknown campaign
            UnauthorizedError: requester is not the creator
            CampaignHasDonationsError: donated total is not zero
        """
        async with self._transition("delete", campaign_id, creator, proof):
            campaign = await self._require_campaign(campaign_id)
            if campaign.creator != creator:
                raise UnauthorizedError(f"{creator} is not the creator of {campaign_id}")
            if campaign.donated_amount != 0:
                raise CampaignHasDonationsError(
                    f"Campaign {campaign_id} holds {campaign.donated_amount} in donations"
                )

            escrow = escrow_account_id(campaign_id)
            released = await self.balances.balance_of(escrow)
            if released:
                await self.balances.transfer(escrow, creator, released)
            try:
                await self.campaign_registry.delete_campaign(campaign_id)
            except Exception as e:
                if released:
                    await self._reverse_transfer(escrow, creator, released, e)
                raise

        logger.info(f"Campaign deleted: {campaign_id} by {creator}, released={released}")
        await self.event_publisher.publish_campaign_deleted(
            campaign_id=campaign_id,
            creator=creator,
            timestamp=self.clock.now(),
        )
        return campaign

    # ====================
    # Accounts
    # ====================

    async def fund_account(
        self,
        account: str,
        amount: int,
        proof: Optional[str] = None,
    ) -> AccountBalanceResponse:
        """
        Credit the caller's own account so it can donate or fund a reserve.

        Raises:
            UnauthorizedError: identity proof rejected, or an escrow account named
            InvalidDepositAmountError: amount is not positive
            ArithmeticOverflowError: balance would exceed the amount ceiling
            TransferFailedError: the balance port cannot take deposits
        """
        try:
            self._verify_actor(account, proof)
            if account.startswith(ESCROW_ACCOUNT_PREFIX):
                raise UnauthorizedError("Escrow accounts cannot be funded directly")
            if amount <= 0:
                raise InvalidDepositAmountError(f"Deposit amount must be positive, got {amount}")
            if not isinstance(self.balances, AccountFundingPort):
                raise TransferFailedError("Balance port does not accept deposits")

            checked_add(await self.balances.balance_of(account), amount, self.max_amount)
            balance = await self.balances.deposit(account, amount)
        except EscrowServiceError as e:
            logger.warning(f"deposit rejected: account={account} code={e.code} reason={e}")
            raise

        logger.info(f"Account funded: {account}, amount={amount}, balance={balance}")
        return AccountBalanceResponse(account=account, balance=balance)

    async def get_balance(self, account: str) -> AccountBalanceResponse:
        return AccountBalanceResponse(
            account=account,
            balance=await self.balances.balance_of(account),
        )

    # ====================
    # Read Operations
    # ====================

    async def get_campaign(self, campaign_id: str) -> Campaign:
        return await self._require_campaign(campaign_id)

    async def list_campaigns(
        self,
        creator: Optional[str] = None,
        active_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """List campaigns newest first, optionally for one creator"""
        return await self.campaign_registry.list_campaigns(
            creator=creator,
            active_only=active_only,
            limit=limit,
            offset=offset,
        )

    async def get_campaign_summary(self, campaign_id: str) -> CampaignSummary:
        """Campaign with its phase, progress and escrow balance at the current time"""
        campaign = await self._require_campaign(campaign_id)
        now = self.clock.now()
        progress = min(100.0, campaign.donated_amount * 100 / campaign.goal_amount)
        donations = await self.donation_ledger.list_donations(campaign_id=campaign_id)

        return CampaignSummary(
            campaign=campaign,
            phase=campaign.phase_at(now),
            progress_percentage=round(progress, 2),
            seconds_remaining=max(0, campaign.deadline - now),
            escrow_balance=await self.balances.balance_of(escrow_account_id(campaign_id)),
            donation_count=len(donations),
        )

    async def list_donations(
        self,
        campaign_id: Optional[str] = None,
        donor: Optional[str] = None,
    ) -> List[DonationRecord]:
        """Live donation records, oldest first"""
        return await self.donation_ledger.list_donations(campaign_id=campaign_id, donor=donor)

    async def get_donation(
        self,
        campaign_id: str,
        donor: str,
        timestamp: Optional[int] = None,
    ) -> DonationRecord:
        """A donor's record by timestamp, or their oldest live record"""
        if timestamp is None:
            records = await self.donation_ledger.list_donations(campaign_id=campaign_id, donor=donor)
            if not records:
                raise DonationNotFoundError(f"No donation by {donor} to {campaign_id}")
            return records[0]

        record = await self.donation_ledger.get_donation(
            derive_donation_id(campaign_id, donor, timestamp)
        )
        if not record:
            raise DonationNotFoundError(
                f"No donation by {donor} to {campaign_id} at {timestamp}"
            )
        return record

    async def verify_accounting(self, campaign_id: str) -> bool:
        """True when donated_amount equals the sum of live donation records"""
        campaign = await self._require_campaign(campaign_id)
        donations = await self.donation_ledger.list_donations(campaign_id=campaign_id)
        return campaign.donated_amount == sum(d.amount for d in donations)


__all__ = ["EscrowService"]
