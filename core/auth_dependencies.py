"""
FastAPI Authentication Dependencies for Microservices

Extracts the claimed actor identity and its proof from request headers.
Verification of the proof is left to the service's identity verifier.
"""

from dataclasses import dataclass
from fastapi import Header, HTTPException, status, Request
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ActorContext:
    """Claimed identity plus proof for one request"""
    actor_id: str
    proof: Optional[str] = None


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def require_actor(
    request: Request,
    user_id: Optional[str] = Header(None, alias="user-id"),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> ActorContext:
    """
    Authentication dependency: the caller must claim an identity

    Identity sources, in priority order:
    1. X-User-Id header
    2. user-id header

    The bearer token, if present, is passed along as the identity proof.

    Raises:
        HTTPException 401: no identity claimed
    """
    actor_id = x_user_id or user_id
    if actor_id:
        return ActorContext(actor_id=actor_id, proof=_bearer_token(authorization))

    logger.debug(f"Rejected anonymous request to {request.url.path}")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="User authentication required"
    )


__all__ = [
    "ActorContext",
    "require_actor",
]
