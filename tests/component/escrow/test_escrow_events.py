"""
Component Tests for escrow notifications
"""

import pytest

from microservices.escrow_service.events import (
    EscrowEventPublisher,
    EscrowEventType,
    InMemoryEventBus,
)
from microservices.escrow_service.protocols import InvalidDonationAmountError

pytestmark = pytest.mark.component


class TestEscrowEvents:
    """One event per successful transition"""

    @pytest.mark.asyncio
    async def test_full_lifecycle_event_stream(self, harness):
        campaign = await harness.open_campaign(goal_amount=100)
        donor = await harness.new_donor()
        donation = await harness.service.donate(campaign.campaign_id, donor, 100)
        harness.clock.set(campaign.deadline)
        await harness.service.withdraw(campaign.campaign_id, campaign.creator)

        types = [e["event_type"] for e in harness.event_bus.published_events]
        assert types == [
            EscrowEventType.CAMPAIGN_CREATED.value,
            EscrowEventType.DONATION_MADE.value,
            EscrowEventType.FUNDS_WITHDRAWN.value,
        ]

        created, donated, withdrawn = harness.event_bus.published_events
        assert created["source"] == "escrow_service"
        assert created["data"]["goal_amount"] == 100
        assert created["data"]["deadline"] == campaign.deadline
        assert donated["data"]["donation_id"] == donation.donation.donation_id
        assert donated["data"]["total_donated"] == 100
        assert withdrawn["data"] == {
            "campaign_id": campaign.campaign_id,
            "creator": campaign.creator,
            "amount": 100,
            "timestamp": campaign.deadline,
        }

    @pytest.mark.asyncio
    async def test_refund_and_delete_events(self, harness):
        campaign = await harness.open_campaign(goal_amount=1000)
        donor = await harness.new_donor()
        await harness.service.donate(campaign.campaign_id, donor, 10)
        harness.clock.set(campaign.deadline)
        await harness.service.refund(campaign.campaign_id, donor)
        await harness.service.delete_campaign(campaign.campaign_id, campaign.creator)

        refunded = harness.event_bus.get_events_by_type(EscrowEventType.REFUND_ISSUED.value)
        deleted = harness.event_bus.get_events_by_type(EscrowEventType.CAMPAIGN_DELETED.value)
        assert refunded[0]["data"]["amount"] == 10
        assert refunded[0]["data"]["donor"] == donor
        assert deleted[0]["data"]["creator"] == campaign.creator

    @pytest.mark.asyncio
    async def test_rejected_operation_publishes_nothing(self, harness):
        campaign = await harness.open_campaign()
        donor = await harness.new_donor()
        harness.event_bus.clear_events()

        with pytest.raises(InvalidDonationAmountError):
            await harness.service.donate(campaign.campaign_id, donor, 0)
        assert list(harness.event_bus.published_events) == []


class TestInMemoryEventBus:

    @pytest.mark.asyncio
    async def test_keeps_only_most_recent_events(self):
        bus = InMemoryEventBus(max_events=3)
        for i in range(10):
            await bus.publish("escrow.campaign.created", {"event_type": "escrow.campaign.created", "n": i})

        assert [e["n"] for e in bus.published_events] == [7, 8, 9]
        assert len(bus.get_events_by_type("escrow.campaign.created")) == 3


class TestEscrowEventPublisher:
    """Publisher never raises"""

    @pytest.mark.asyncio
    async def test_without_bus_returns_false(self):
        publisher = EscrowEventPublisher()
        assert await publisher.publish_campaign_deleted("cmp_1", "alice") is False

    @pytest.mark.asyncio
    async def test_bus_failure_is_contained(self):
        class BrokenBus:
            async def publish(self, subject, event):
                raise ConnectionError("bus down")

            async def close(self):
                pass

        publisher = EscrowEventPublisher(BrokenBus())
        assert await publisher.publish_funds_withdrawn("cmp_1", "alice", 10) is False

    @pytest.mark.asyncio
    async def test_operations_succeed_without_bus(self, make_harness):
        harness = make_harness()
        harness.service.event_publisher = EscrowEventPublisher(None)

        campaign = await harness.open_campaign()
        assert campaign.is_active
