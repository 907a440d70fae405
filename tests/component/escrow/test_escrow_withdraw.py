"""
Component Tests for withdraw
"""

import pytest

from microservices.escrow_service.models import CampaignPhase
from microservices.escrow_service.protocols import (
    CampaignNotActiveError,
    CampaignNotExpiredError,
    CampaignNotFoundError,
    GoalNotReachedError,
    InsufficientFundsError,
    UnauthorizedError,
)

pytestmark = pytest.mark.component


async def _funded_campaign(harness, goal=1000, donated=1000):
    campaign = await harness.open_campaign(goal_amount=goal)
    donor = await harness.new_donor()
    await harness.service.donate(campaign.campaign_id, donor, donated)
    return campaign, donor


class TestWithdraw:
    """Tests for withdraw"""

    @pytest.mark.asyncio
    async def test_withdraw_releases_escrow_and_closes(self, harness):
        campaign, _ = await _funded_campaign(harness)
        creator_before = await harness.balances.balance_of(campaign.creator)
        harness.clock.set(campaign.deadline)

        result = await harness.service.withdraw(campaign.campaign_id, campaign.creator)

        assert result.amount == 1000
        assert await harness.balances.balance_of(campaign.creator) == creator_before + 1000
        assert await harness.escrow_balance(campaign.campaign_id) == 0
        closed = await harness.service.get_campaign(campaign.campaign_id)
        assert closed.is_active is False
        assert closed.phase_at(harness.clock.now()) == CampaignPhase.CLOSED

    @pytest.mark.asyncio
    async def test_overfunded_campaign_releases_everything(self, harness):
        campaign, _ = await _funded_campaign(harness, goal=1000, donated=1500)
        harness.clock.set(campaign.deadline + 1)

        result = await harness.service.withdraw(campaign.campaign_id, campaign.creator)
        assert result.amount == 1500

    @pytest.mark.asyncio
    async def test_only_creator_may_withdraw(self, harness):
        campaign, donor = await _funded_campaign(harness)
        harness.clock.set(campaign.deadline)

        with pytest.raises(UnauthorizedError):
            await harness.service.withdraw(campaign.campaign_id, donor)

        assert await harness.escrow_balance(campaign.campaign_id) == 1000
        assert (await harness.service.get_campaign(campaign.campaign_id)).is_active

    @pytest.mark.asyncio
    async def test_withdraw_before_deadline_rejected(self, harness):
        campaign, _ = await _funded_campaign(harness)
        harness.clock.set(campaign.deadline - 1)

        with pytest.raises(CampaignNotExpiredError):
            await harness.service.withdraw(campaign.campaign_id, campaign.creator)

    @pytest.mark.asyncio
    async def test_withdraw_below_goal_rejected(self, harness):
        campaign, _ = await _funded_campaign(harness, goal=1000, donated=999)
        harness.clock.set(campaign.deadline)

        with pytest.raises(GoalNotReachedError):
            await harness.service.withdraw(campaign.campaign_id, campaign.creator)

    @pytest.mark.asyncio
    async def test_withdraw_at_most_once(self, harness):
        campaign, _ = await _funded_campaign(harness)
        harness.clock.set(campaign.deadline)
        await harness.service.withdraw(campaign.campaign_id, campaign.creator)

        with pytest.raises(CampaignNotActiveError):
            await harness.service.withdraw(campaign.campaign_id, campaign.creator)

    @pytest.mark.asyncio
    async def test_withdraw_unknown_campaign(self, harness):
        creator = await harness.new_creator()
        with pytest.raises(CampaignNotFoundError):
            await harness.service.withdraw("cmp_missing", creator)


class TestWithdrawWithReserve:
    """The reserve stays in escrow while the campaign record persists"""

    @pytest.mark.asyncio
    async def test_withdraw_leaves_reserve(self, reserve_harness):
        campaign, _ = await _funded_campaign(reserve_harness)
        reserve_harness.clock.set(campaign.deadline)

        result = await reserve_harness.service.withdraw(campaign.campaign_id, campaign.creator)

        assert result.amount == 1000
        assert await reserve_harness.escrow_balance(campaign.campaign_id) == 50

    @pytest.mark.asyncio
    async def test_escrow_below_reserve_is_integrity_failure(self, reserve_harness):
        campaign, _ = await _funded_campaign(reserve_harness)
        # Drain escrow behind the state machine's back
        await reserve_harness.balances.transfer(
            f"escrow:{campaign.campaign_id}", "thief", 1_010
        )
        reserve_harness.clock.set(campaign.deadline)

        with pytest.raises(InsufficientFundsError):
            await reserve_harness.service.withdraw(campaign.campaign_id, campaign.creator)
        assert (await reserve_harness.service.get_campaign(campaign.campaign_id)).is_active
