"""
Shared fixtures: a blob filesystem service wired to the in-memory emulator.
"""

import base64

import httpx
import pytest

from tests.fakes.blob_emulator import BlobEmulator
from zurefs.core.config_manager import StorageEndpointConfig
from zurefs.storage.service import BlobStorageService

ACCOUNT_NAME = "devstoreaccount1"
ACCOUNT_KEY = base64.b64encode(b"zurefs-emulator-account-key-0001").decode("ascii")


@pytest.fixture
def config():
    """Endpoint configuration for the emulated account."""
    return StorageEndpointConfig(
        account_name=ACCOUNT_NAME,
        account_key=ACCOUNT_KEY,
        use_https=False,
    )


@pytest.fixture
def emulator():
    """Fresh emulator with small listing pages, so pagination is exercised."""
    return BlobEmulator(ACCOUNT_NAME, ACCOUNT_KEY, page_size=2)


@pytest.fixture
async def http_client(emulator):
    """httpx client routed into the emulator app."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=emulator.app)) as client:
        yield client


@pytest.fixture
async def service(config, http_client):
    """Filesystem service talking to the emulator."""
    async with BlobStorageService(config, client=http_client) as fs:
        yield fs
