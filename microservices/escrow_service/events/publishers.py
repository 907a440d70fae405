"""
Escrow Event Publishers

Wraps event payloads in the service envelope and hands them to the event bus.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from .models import (
    EscrowEventType,
    CampaignCreatedEventData,
    DonationMadeEventData,
    FundsWithdrawnEventData,
    RefundIssuedEventData,
    CampaignDeletedEventData,
)

logger = logging.getLogger(__name__)


class InMemoryEventBus:
    """Event bus that keeps the most recent `max_events` envelopes in order"""

    def __init__(self, max_events: int = 1000):
        self.published_events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self.is_connected = True

    async def publish(self, subject: str, event: Dict[str, Any]) -> None:
        self.published_events.append(event)

    async def close(self) -> None:
        self.is_connected = False

    def get_events_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.published_events if e["event_type"] == event_type]

    def clear_events(self):
        self.published_events.clear()


class EscrowEventPublisher:
    """Publisher for escrow service events"""

    def __init__(self, event_bus=None):
        self.event_bus = event_bus
        self.source = "escrow_service"

    async def publish(
        self,
        event_type: EscrowEventType,
        data: Dict[str, Any],
    ) -> bool:
        """
        Publish an event to the bus.

        Args:
            event_type: The event type enum
            data: Event data payload

        Returns:
            True if published successfully, False otherwise
        """
        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_type.value}")
            return False

        try:
            event = {
                "event_type": event_type.value,
                "source": self.source,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "data": data,
            }

            await self.event_bus.publish(event_type.value, event)
            logger.debug(f"Published event: {event_type.value}")
            return True

        except Exception as e:
            logger.error(f"Failed to publish event {event_type.value}: {e}")
            return False

    # ====================
    # Campaign Lifecycle Events
    # ====================

    async def publish_campaign_created(
        self,
        campaign_id: str,
        creator: str,
        goal_amount: int,
        deadline: int,
        timestamp: Optional[int] = None,
    ) -> bool:
        """Publish escrow.campaign.created event"""
        data = CampaignCreatedEventData(
            campaign_id=campaign_id,
            creator=creator,
            goal_amount=goal_amount,
            deadline=deadline,
            timestamp=timestamp,
        )
        return await self.publish(EscrowEventType.CAMPAIGN_CREATED, data.model_dump())

    async def publish_campaign_deleted(
        self,
        campaign_id: str,
        creator: str,
        timestamp: Optional[int] = None,
    ) -> bool:
        """Publish escrow.campaign.deleted event"""
        data = CampaignDeletedEventData(
            campaign_id=campaign_id,
            creator=creator,
            timestamp=timestamp,
        )
        return await self.publish(EscrowEventType.CAMPAIGN_DELETED, data.model_dump())

    # ====================
    # Value Movement Events
    # ====================

    async def publish_donation_made(
        self,
        campaign_id: str,
        donor: str,
        amount: int,
        total_donated: int,
        donation_id: str,
        timestamp: Optional[int] = None,
    ) -> bool:
        """Publish escrow.donation.made event"""
        data = DonationMadeEventData(
            campaign_id=campaign_id,
            donor=donor,
            amount=amount,
            total_donated=total_donated,
            donation_id=donation_id,
            timestamp=timestamp,
        )
        return await self.publish(EscrowEventType.DONATION_MADE, data.model_dump())

    async def publish_funds_withdrawn(
        self,
        campaign_id: str,
        creator: str,
        amount: int,
        timestamp: Optional[int] = None,
    ) -> bool:
        """Publish escrow.funds.withdrawn event"""
        data = FundsWithdrawnEventData(
            campaign_id=campaign_id,
            creator=creator,
            amount=amount,
            timestamp=timestamp,
        )
        return await self.publish(EscrowEventType.FUNDS_WITHDRAWN, data.model_dump())

    async def publish_refund_issued(
        self,
        campaign_id: str,
        donor: str,
        amount: int,
        donation_id: str,
        timestamp: Optional[int] = None,
    ) -> bool:
        """Publish escrow.refund.issued event"""
        data = RefundIssuedEventData(
            campaign_id=campaign_id,
            donor=donor,
            amount=amount,
            donation_id=donation_id,
            timestamp=timestamp,
        )
        return await self.publish(EscrowEventType.REFUND_ISSUED, data.model_dump())
