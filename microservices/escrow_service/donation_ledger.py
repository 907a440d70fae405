"""
Donation Ledger

In-memory key-value store of live donation records keyed by derived
donation id. A record is removed when it is refunded.
"""

import logging
from typing import Dict, List, Optional

from .models import DonationRecord

logger = logging.getLogger(__name__)


class DonationLedger:
    """Owns the set of DonationRecord entities"""

    def __init__(self):
        self._donations: Dict[str, DonationRecord] = {}

    async def initialize(self):
        logger.info("Donation ledger initialized (in-memory)")

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    async def save_donation(self, donation: DonationRecord) -> DonationRecord:
        self._donations[donation.donation_id] = donation.model_copy()
        return donation.model_copy()

    async def get_donation(self, donation_id: str) -> Optional[DonationRecord]:
        donation = self._donations.get(donation_id)
        return donation.model_copy() if donation else None

    async def delete_donation(self, donation_id: str) -> bool:
        return self._donations.pop(donation_id, None) is not None

    async def list_donations(
        self,
        campaign_id: Optional[str] = None,
        donor: Optional[str] = None,
    ) -> List[DonationRecord]:
        results = list(self._donations.values())

        if campaign_id:
            results = [d for d in results if d.campaign_id == campaign_id]
        if donor:
            results = [d for d in results if d.donor == donor]

        # Stable sort keeps insertion order within a timestamp
        results.sort(key=lambda d: d.timestamp)
        return [d.model_copy() for d in results]

    def __len__(self) -> int:
        return len(self._donations)


__all__ = ["DonationLedger"]
