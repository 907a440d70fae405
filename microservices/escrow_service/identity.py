"""
Identity verifiers

Assert that a caller controls the identity it claims. The escrow core
only compares verified identities against stored creator/donor fields.
"""

import logging
from typing import Optional

from core.jwt_manager import JWTManager, TokenType

logger = logging.getLogger(__name__)


class JWTIdentityVerifier:
    """Accepts a signed identity token whose subject is the claimed actor"""

    def __init__(self, jwt_manager: JWTManager):
        self.jwt_manager = jwt_manager

    def verify(self, actor: str, proof: Optional[str]) -> bool:
        if not proof:
            logger.debug(f"No identity proof supplied for {actor}")
            return False

        result = self.jwt_manager.verify_token(proof, expected_type=TokenType.IDENTITY)
        if not result.get("valid"):
            logger.debug(f"Identity proof rejected for {actor}: {result.get('error')}")
            return False

        return result.get("actor_id") == actor


class TrustedIdentityVerifier:
    """Accepts every claimed identity; for trusted in-process callers"""

    def verify(self, actor: str, proof: Optional[str]) -> bool:
        return bool(actor)


__all__ = ["JWTIdentityVerifier", "TrustedIdentityVerifier"]
