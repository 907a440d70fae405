"""
Root conftest.py - Global configuration for all test layers.

Test Layers:
    - api/        : HTTP contract tests (FastAPI TestClient)
    - component/  : EscrowService with in-memory collaborators
    - unit/       : Pure functions and models, no I/O
    - contracts/  : Test data factories
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("ENVIRONMENT", "testing")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


def pytest_configure(config):
    """Register markers for every test layer"""
    config.addinivalue_line("markers", "unit: pure function and model tests")
    config.addinivalue_line("markers", "component: service tests with in-memory collaborators")
    config.addinivalue_line("markers", "api: HTTP contract tests")


@pytest.fixture
def factory():
    """Escrow test data factory"""
    from tests.contracts.escrow.data_contract import EscrowTestDataFactory

    return EscrowTestDataFactory()
