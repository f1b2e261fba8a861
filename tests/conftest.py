"""Shared pytest fixtures for all tests."""

import pytest
from fastapi.testclient import TestClient

from dropserver.auth import AccessGate
from dropserver.blob_storage import BlobStorage
from dropserver.config import DropServerConfig
from dropserver.main import create_app
from dropserver.services.transfer_service import build_transfer_service

TEST_API_KEY = "drop_test-key"
START_TIME = 1_700_000_000


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    """
    Create blob storage rooted in a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        BlobStorage instance
    """
    return BlobStorage(tmp_path / 'archives')


@pytest.fixture
def service(storage, clock):
    """
    Create a transfer service with a fresh registry and fake clock.
    """
    return build_transfer_service(storage, clock=clock)


@pytest.fixture
def app(tmp_path, clock):
    """
    Create the application with a single low-cost test key.
    """
    config = DropServerConfig(save_dir=tmp_path / 'archives', sweep_interval_seconds=0)
    gate = AccessGate.from_keys({"tester": TEST_API_KEY}, rounds=4)
    return create_app(config, access_gate=gate, clock=clock)


@pytest.fixture
def client(app):
    """Create FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {'Authorization': f'Bearer {TEST_API_KEY}'}
