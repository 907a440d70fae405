"""
Deterministic identifiers and checked arithmetic

Campaigns are addressed by (creator, title) and donation records by
(campaign, donor, timestamp). Ids are derived by hashing the length-prefixed
seed parts, so distinct seed tuples never collide by concatenation.
"""

import hashlib
from typing import Union

from core.config import DEFAULT_MAX_AMOUNT

from .protocols import ArithmeticOverflowError, UnderflowError

CAMPAIGN_ID_PREFIX = "cmp_"
DONATION_ID_PREFIX = "don_"
ESCROW_ACCOUNT_PREFIX = "escrow:"


def _derive(*parts: Union[str, int]) -> str:
    digest = hashlib.sha256()
    for part in parts:
        raw = str(part).encode("utf-8")
        digest.update(len(raw).to_bytes(4, "big"))
        digest.update(raw)
    return digest.hexdigest()[:32]


def derive_campaign_id(creator: str, title: str) -> str:
    """Stable campaign id for a (creator, title) pair"""
    return CAMPAIGN_ID_PREFIX + _derive("campaign", creator, title)


def derive_donation_id(campaign_id: str, donor: str, timestamp: int) -> str:
    """Stable donation record id for a (campaign, donor, timestamp) triple"""
    return DONATION_ID_PREFIX + _derive("donation", campaign_id, donor, int(timestamp))


def escrow_account_id(campaign_id: str) -> str:
    """Balance account that holds a campaign's escrowed value"""
    return f"{ESCROW_ACCOUNT_PREFIX}{campaign_id}"


def text_length(value: str) -> int:
    """Length of a text field in UTF-8 bytes"""
    return len(value.encode("utf-8"))


def checked_add(a: int, b: int, max_amount: int = DEFAULT_MAX_AMOUNT) -> int:
    result = a + b
    if result > max_amount:
        raise ArithmeticOverflowError(f"{a} + {b} exceeds {max_amount}")
    return result


def checked_sub(a: int, b: int) -> int:
    result = a - b
    if result < 0:
        raise UnderflowError(f"{a} - {b} is negative")
    return result


__all__ = [
    "ESCROW_ACCOUNT_PREFIX",
    "derive_campaign_id",
    "derive_donation_id",
    "escrow_account_id",
    "text_length",
    "checked_add",
    "checked_sub",
]
