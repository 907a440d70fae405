"""
Escrow Component Test Fixtures

Builds EscrowService over the in-memory registry, donation ledger,
balance ledger, manual clock and event bus.
"""

from typing import Optional

import pytest

from core.config import DEFAULT_MAX_AMOUNT
from microservices.escrow_service.balance_ledger import BalanceLedger, ManualTimeSource
from microservices.escrow_service.campaign_registry import CampaignRegistry
from microservices.escrow_service.donation_ledger import DonationLedger
from microservices.escrow_service.escrow_service import EscrowService
from microservices.escrow_service.events import InMemoryEventBus
from microservices.escrow_service.identity import TrustedIdentityVerifier
from microservices.escrow_service.models import Campaign
from tests.contracts.escrow.data_contract import T0, EscrowTestDataFactory


class EscrowHarness:
    """EscrowService plus direct handles on every collaborator"""

    def __init__(
        self,
        campaign_reserve: int = 0,
        max_amount: int = DEFAULT_MAX_AMOUNT,
        identity_verifier=None,
    ):
        self.clock = ManualTimeSource(T0)
        self.balances = BalanceLedger()
        self.registry = CampaignRegistry()
        self.ledger = DonationLedger()
        self.event_bus = InMemoryEventBus()
        self.service = EscrowService(
            campaign_registry=self.registry,
            donation_ledger=self.ledger,
            balances=self.balances,
            clock=self.clock,
            identity_verifier=identity_verifier or TrustedIdentityVerifier(),
            event_bus=self.event_bus,
            campaign_reserve=campaign_reserve,
            max_amount=max_amount,
        )

    async def new_donor(self, balance: int = 1_000_000) -> str:
        donor = EscrowTestDataFactory.make_donor_id()
        if balance:
            await self.balances.deposit(donor, balance)
        return donor

    async def new_creator(self, balance: int = 1_000) -> str:
        creator = EscrowTestDataFactory.make_creator_id()
        if balance:
            await self.balances.deposit(creator, balance)
        return creator

    async def open_campaign(
        self,
        goal_amount: int = 1000,
        duration: int = 100,
        creator: Optional[str] = None,
        **overrides,
    ) -> Campaign:
        creator = creator or await self.new_creator()
        kwargs = EscrowTestDataFactory.make_create_kwargs(
            creator=creator,
            goal_amount=goal_amount,
            duration=duration,
            now=self.clock.now(),
            **overrides,
        )
        return await self.service.create_campaign(**kwargs)

    async def escrow_balance(self, campaign_id: str) -> int:
        return await self.balances.balance_of(f"escrow:{campaign_id}")


@pytest.fixture
def harness():
    return EscrowHarness()


@pytest.fixture
def reserve_harness():
    """Harness whose campaigns keep a reserve of 50 in escrow"""
    return EscrowHarness(campaign_reserve=50)


@pytest.fixture
def service(harness):
    return harness.service


@pytest.fixture
def clock(harness):
    return harness.clock


@pytest.fixture
def balances(harness):
    return harness.balances


@pytest.fixture
def event_bus(harness):
    return harness.event_bus


@pytest.fixture
def make_harness():
    """Build a harness with custom reserve, amount ceiling or verifier"""
    return EscrowHarness
