"""
Escrow Service Data Contract

Test data factories for the Escrow Service. Component and API tests build
their identities, amounts and create requests from here.
"""

import random
from typing import Any, Dict, Optional
from uuid import uuid4

from microservices.escrow_service.models import (
    MAX_DESCRIPTION_LENGTH,
    MAX_METADATA_URI_LENGTH,
    MAX_TITLE_LENGTH,
    CampaignCreateRequest,
)

# Clock origin shared by component and API tests
T0 = 1_700_000_000


class EscrowTestDataFactory:
    """Factory for escrow test data"""

    @staticmethod
    def make_creator_id() -> str:
        return f"creator_{uuid4().hex[:16]}"

    @staticmethod
    def make_donor_id() -> str:
        return f"donor_{uuid4().hex[:16]}"

    @staticmethod
    def make_title() -> str:
        return f"Campaign {uuid4().hex[:8]}"

    @staticmethod
    def make_amount(low: int = 1, high: int = 10_000) -> int:
        return random.randint(low, high)

    @staticmethod
    def make_long_text(limit: int) -> str:
        """Text one byte over the limit"""
        return "x" * (limit + 1)

    @staticmethod
    def make_create_kwargs(
        creator: Optional[str] = None,
        goal_amount: int = 1000,
        duration: int = 100,
        now: int = T0,
        **overrides: Any,
    ) -> Dict[str, Any]:
        """Keyword arguments for EscrowService.create_campaign"""
        kwargs = {
            "creator": creator or EscrowTestDataFactory.make_creator_id(),
            "title": EscrowTestDataFactory.make_title(),
            "description": "Community garden fund",
            "goal_amount": goal_amount,
            "deadline": now + duration,
            "metadata_uri": "https://example.org/campaign.json",
        }
        kwargs.update(overrides)
        return kwargs

    @staticmethod
    def make_create_request(
        goal_amount: int = 1000,
        duration: int = 100,
        now: int = T0,
        **overrides: Any,
    ) -> CampaignCreateRequest:
        data = {
            "title": EscrowTestDataFactory.make_title(),
            "description": "Community garden fund",
            "goal_amount": goal_amount,
            "deadline": now + duration,
            "metadata_uri": "https://example.org/campaign.json",
        }
        data.update(overrides)
        return CampaignCreateRequest(**data)


__all__ = [
    "T0",
    "EscrowTestDataFactory",
    "MAX_TITLE_LENGTH",
    "MAX_DESCRIPTION_LENGTH",
    "MAX_METADATA_URI_LENGTH",
]
