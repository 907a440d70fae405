"""
Component Tests for identity proofs on state transitions
"""

import pytest

from core.jwt_manager import IdentityClaims, JWTManager
from microservices.escrow_service.identity import JWTIdentityVerifier
from microservices.escrow_service.protocols import UnauthorizedError

pytestmark = pytest.mark.component

SECRET = "component-test-secret-0123456789abcdef"


@pytest.fixture
def jwt_manager():
    return JWTManager(secret_key=SECRET, issuer="escrow_service")


@pytest.fixture
def proven(make_harness, jwt_manager):
    return make_harness(identity_verifier=JWTIdentityVerifier(jwt_manager))


def _proof(jwt_manager, actor):
    return jwt_manager.create_identity_token(IdentityClaims(actor_id=actor))


class TestIdentityProof:

    @pytest.mark.asyncio
    async def test_valid_proof_accepted(self, proven, jwt_manager, factory):
        creator = await proven.new_creator()
        kwargs = factory.make_create_kwargs(creator=creator, now=proven.clock.now())

        campaign = await proven.service.create_campaign(
            **kwargs, proof=_proof(jwt_manager, creator)
        )
        assert campaign.creator == creator

    @pytest.mark.asyncio
    async def test_missing_proof_rejected(self, proven, factory):
        creator = await proven.new_creator()
        kwargs = factory.make_create_kwargs(creator=creator, now=proven.clock.now())

        with pytest.raises(UnauthorizedError):
            await proven.service.create_campaign(**kwargs)
        assert len(proven.registry) == 0

    @pytest.mark.asyncio
    async def test_proof_for_another_identity_rejected(self, proven, jwt_manager, factory):
        creator = await proven.new_creator()
        donor = await proven.new_donor()
        kwargs = factory.make_create_kwargs(creator=creator, now=proven.clock.now())
        campaign = await proven.service.create_campaign(
            **kwargs, proof=_proof(jwt_manager, creator)
        )

        # Donor's token presented while claiming to be the creator
        with pytest.raises(UnauthorizedError):
            await proven.service.delete_campaign(
                campaign.campaign_id, creator, proof=_proof(jwt_manager, donor)
            )

    @pytest.mark.asyncio
    async def test_forged_token_rejected(self, proven, factory):
        creator = await proven.new_creator()
        forger = JWTManager(secret_key="forged-secret-0123456789abcdef-000000", issuer="escrow_service")
        kwargs = factory.make_create_kwargs(creator=creator, now=proven.clock.now())

        with pytest.raises(UnauthorizedError):
            await proven.service.create_campaign(**kwargs, proof=_proof(forger, creator))
