"""
Identity Proof Token Manager

Issues and verifies the signed tokens that prove a caller controls a
creator or donor identity. The escrow core only compares the proven
identity against stored identities; this module does the proving.
"""

import os
import uuid
import secrets
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from enum import Enum
from dataclasses import dataclass, field

import jwt

logger = logging.getLogger(__name__)

# Checked in order; InvalidTokenError is the base class and must stay last
_DECODE_ERRORS = (
    (jwt.ExpiredSignatureError, "Token has expired"),
    (jwt.InvalidIssuerError, "Invalid token issuer"),
    (jwt.InvalidTokenError, "Invalid token"),
)


class TokenType(Enum):
    """Token types"""
    IDENTITY = "identity"
    SERVICE = "service"


@dataclass
class IdentityClaims:
    """Claims carried by an identity proof"""
    actor_id: str
    token_type: TokenType = TokenType.IDENTITY
    metadata: Dict[str, Any] = field(default_factory=dict)


class JWTManager:
    """
    Identity proof manager

    Tokens are HS256 signed by default. The ``sub`` claim binds a token to
    one creator or donor identity; issuer and expiry are checked on decode.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: str = "HS256",
        issuer: str = "escrow_service",
        token_expiry: int = 3600,
    ):
        configured = secret_key or os.getenv("JWT_SECRET")
        if not configured:
            logger.warning(
                "No JWT_SECRET provided - identity proofs are signed with a "
                "throwaway secret and will not survive a restart"
            )
        self.secret_key = configured or secrets.token_urlsafe(64)
        self.algorithm = algorithm
        self.issuer = issuer
        self.token_expiry = token_expiry

    def create_identity_token(
        self,
        claims: IdentityClaims,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Sign a proof that the bearer controls ``claims.actor_id``"""
        issued = datetime.now(tz=timezone.utc)
        expires = issued + (expires_delta or timedelta(seconds=self.token_expiry))

        token = jwt.encode(
            {
                "iss": self.issuer,
                "sub": claims.actor_id,
                "iat": int(issued.timestamp()),
                "exp": int(expires.timestamp()),
                "jti": uuid.uuid4().hex,
                "type": claims.token_type.value,
                "metadata": claims.metadata,
            },
            self.secret_key,
            algorithm=self.algorithm,
        )
        logger.debug(f"Issued identity proof for {claims.actor_id} valid until {expires}")
        return token

    def verify_token(
        self,
        token: str,
        expected_type: Optional[TokenType] = TokenType.IDENTITY,
    ) -> Dict[str, Any]:
        """
        Decode a proof token.

        Returns ``{"valid": True, "actor_id": ...}`` on success and
        ``{"valid": False, "error": ...}`` otherwise. Never raises for a
        malformed or foreign token.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
            )
        except jwt.InvalidTokenError as e:
            for error_type, message in _DECODE_ERRORS:
                if isinstance(e, error_type):
                    break
            if error_type is jwt.InvalidTokenError:
                message = f"{message}: {e}"
            return {"valid": False, "error": message}

        token_type = payload.get("type")
        if expected_type and token_type != expected_type.value:
            return {
                "valid": False,
                "error": f"Invalid token type. Expected {expected_type.value}, got {token_type}",
            }

        return {
            "valid": True,
            "actor_id": payload.get("sub"),
            "token_type": token_type,
            "metadata": payload.get("metadata", {}),
            "expires_at": datetime.fromtimestamp(payload.get("exp", 0), tz=timezone.utc),
            "jti": payload.get("jti"),
        }


__all__ = ["TokenType", "IdentityClaims", "JWTManager"]
