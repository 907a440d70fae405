"""
Campaign Registry

In-memory key-value store of campaigns keyed by derived campaign id.
Entities are copied on the way in and out, so callers never hold a
reference into the store.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .models import Campaign

logger = logging.getLogger(__name__)


class CampaignRegistry:
    """Owns the set of Campaign entities"""

    def __init__(self):
        self._campaigns: Dict[str, Campaign] = {}

    async def initialize(self):
        logger.info("Campaign registry initialized (in-memory)")

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    async def save_campaign(self, campaign: Campaign) -> Campaign:
        self._campaigns[campaign.campaign_id] = campaign.model_copy()
        return campaign.model_copy()

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        campaign = self._campaigns.get(campaign_id)
        return campaign.model_copy() if campaign else None

    async def delete_campaign(self, campaign_id: str) -> bool:
        return self._campaigns.pop(campaign_id, None) is not None

    async def list_campaigns(
        self,
        creator: Optional[str] = None,
        active_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        # Reverse insertion order breaks created_at ties newest first
        results = list(reversed(list(self._campaigns.values())))

        if creator:
            results = [c for c in results if c.creator == creator]
        if active_only:
            results = [c for c in results if c.is_active]

        results.sort(key=lambda c: c.created_at, reverse=True)

        total = len(results)
        page = results[offset : offset + limit]
        return [c.model_copy() for c in page], total

    def __len__(self) -> int:
        return len(self._campaigns)


__all__ = ["CampaignRegistry"]
