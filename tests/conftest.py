"""
Pytest configuration and shared fixtures.
"""

import json

import httpx
import pytest

from modification.models import Modification
from modification.store import SnapshotStore


@pytest.fixture
def webhook_url():
    return "https://discord.example/api/webhooks/1/token"


@pytest.fixture
def api_url():
    return "https://store.example/api/client-store/get-modification/{namespace}"


@pytest.fixture
def sample_modification_data():
    """Raw modification document as returned by the client-store API."""
    return {
        "id": 42,
        "namespace": "labyfriends",
        "name": "LabyFriends",
        "featured": True,
        "verified": True,
        "organization": 7,
        "author": "FlintMC",
        "downloads": 100,
        "download_string": "100",
        "short_description": "Play with your friends",
        "rating": {"count": 12, "rating": 4.5},
        "changelog": "Initial release",
        "required_labymod_build": 3,
        "releases": 2,
        "last_update": 1700000000,
        "licence": "MIT",
        "version_string": "1.0.0",
        "meta": ["client", "social"],
        "dependencies": [],
        "permissions": ["network"],
        "source_url": "https://github.com/example/labyfriends",
        "brand_images": [
            {"type": "icon", "hash": "aaa111"},
            {"type": "banner", "hash": "bbb222"},
        ],
        "tags": [1, 5],
    }


@pytest.fixture
def sample_modification(sample_modification_data):
    """Create a sample modification snapshot."""
    return Modification.model_validate(sample_modification_data)


@pytest.fixture
def make_modification(sample_modification_data):
    """Factory building a snapshot from the sample with some fields replaced."""
    def _make(**overrides):
        data = dict(sample_modification_data)
        data.update(overrides)
        return Modification.model_validate(data)
    return _make


@pytest.fixture
def snapshot_store(tmp_path):
    """Store writing to a temporary directory."""
    return SnapshotStore(tmp_path / "latest.json")


@pytest.fixture
def webhook_recorder():
    """
    Fake webhook endpoint.

    Records every posted payload and answers with the queued status codes
    (204 once the queue is empty).
    """
    class Recorder:
        def __init__(self):
            self.payloads = []
            self.statuses = []

        def handler(self, request: httpx.Request) -> httpx.Response:
            self.payloads.append(json.loads(request.content))
            status = self.statuses.pop(0) if self.statuses else 204
            return httpx.Response(status)

        def client(self) -> httpx.Client:
            return httpx.Client(transport=httpx.MockTransport(self.handler))

    return Recorder()


@pytest.fixture
def api_client(sample_modification_data):
    """HTTP client whose transport serves the sample modification."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=sample_modification_data)
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def clean_env(monkeypatch):
    """Remove tracker settings that may leak in from the environment."""
    for name in (
        "MODIFICATION", "WEBHOOK_URL", "API_URL", "BASELINE_FILE", "LOG_LEVEL",
        "LOG_FORMAT", "LOG_FILE", "REQUEST_TIMEOUT", "DELIVERY_POLICY", "EMBED_COLOR",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
