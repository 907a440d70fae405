"""
API Test Fixtures for Escrow Service

Runs the FastAPI app in-process with TestClient and swaps the service
for one built over funded in-memory accounts and a manual clock.
"""

import pytest
from fastapi.testclient import TestClient

from microservices.escrow_service.balance_ledger import BalanceLedger, ManualTimeSource
from microservices.escrow_service.events import InMemoryEventBus
from microservices.escrow_service.factory import create_escrow_service
from microservices.escrow_service.identity import TrustedIdentityVerifier
from microservices.escrow_service.main import app, get_service
from tests.contracts.escrow.data_contract import T0

FUNDED_ACCOUNTS = {"alice": 1_000_000, "bob": 1_000_000, "carol": 1_000_000}


class APITestConfig:
    """Configuration for API tests"""

    BASE_PATH = "/api/v1/escrow"
    CREATOR = "alice"
    DONOR = "bob"
    OTHER = "carol"


@pytest.fixture(scope="session")
def api_config():
    return APITestConfig()


@pytest.fixture
def escrow():
    """Service instance behind the app for one test"""
    return create_escrow_service(
        balances=BalanceLedger(FUNDED_ACCOUNTS),
        clock=ManualTimeSource(T0),
        identity_verifier=TrustedIdentityVerifier(),
        event_bus=InMemoryEventBus(),
    )


@pytest.fixture
def client(escrow):
    app.dependency_overrides[get_service] = lambda: escrow
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    def _headers(actor: str) -> dict:
        return {"X-User-Id": actor}

    return _headers
