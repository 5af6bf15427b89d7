"""
Shared fixtures: in-memory store, fresh admin registry and empty
notification queues for every test.
"""

import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment must be ready first
os.environ["USE_MOCK_DB"] = "true"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="civicsense-uploads-")
os.environ["GEMINI_API_KEY"] = ""
os.environ["AI_ENABLED"] = "true"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["WHATSAPP_VERIFY_TOKEN"] = "verify-me"

import pytest
from fastapi.testclient import TestClient

from civicsense.config.firebase import get_db
from civicsense.main import app
from civicsense.services.admin_service import reset_admin_registry
from civicsense.services.ai_plugin import reset_ai_registry
from civicsense.services.notification_service import get_notification_service
from civicsense.services.seed_service import load_seed, write_seed

SEED_FILE = Path(__file__).resolve().parent.parent / "db_seed.json"

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\x00\x01"
    b"\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture(autouse=True)
def clean_state():
    get_db().reset()
    reset_admin_registry()
    reset_ai_registry()
    get_notification_service().reset()
    yield
    get_db().reset()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seeded():
    """Load db_seed.json (4 teams, 12 reports) into the store."""
    return write_seed(get_db(), load_seed(str(SEED_FILE)))


@pytest.fixture
def notifications():
    return get_notification_service()


def _login(client, username, password):
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, "admin", "admin123")


@pytest.fixture
def moderator_headers(client):
    return _login(client, "moderator", "mod123")


@pytest.fixture
def guest_headers(client):
    response = client.post("/auth/guest", json={"password": "guest123"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def submit_report(client):
    """Submit a report through the public form and return the response body."""

    def _submit(description="Large pothole blocking the left lane on Main Street", **fields):
        data = {"description": description}
        files = fields.pop("files", None)
        for key, value in fields.items():
            data[key] = value
        response = client.post("/reports", data=data, files=files)
        assert response.status_code == 201, response.text
        return response.json()

    return _submit


@pytest.fixture
def png_bytes():
    return PNG_BYTES
