import inspect
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from civicsense.config.firebase import get_db
from civicsense.core.settings import settings
from civicsense.main import app
from civicsense.routes import ai, analytics, auth, media, reports


def test_startup_seeds_empty_store(monkeypatch):
    monkeypatch.setattr(settings, "SEED_ON_STARTUP", True)
    monkeypatch.setattr(settings, "SEED_PATH", str(Path(__file__).resolve().parent.parent / "db_seed.json"))

    with TestClient(app) as client:
        assert len(client.get("/reports").json()) == 12

    assert len(get_db().collection("teams").get()) == 4


def test_request_validation_errors_are_400(client, admin_headers):
    response = client.get("/analytics/top-locations", params={"limit": 0}, headers=admin_headers)
    assert response.status_code == 400
    assert isinstance(response.json()["detail"], list)


@pytest.mark.parametrize("endpoint", [
    reports.submit_report,
    media.upload_media,
    media.delete_media,
    auth.login,
    auth.guest_login,
    ai.analyze_image,
    ai.generate_description,
    ai.transcribe,
    analytics.weekly_summary,
])
def test_blocking_endpoints_run_in_threadpool(endpoint):
    assert not inspect.iscoroutinefunction(endpoint)
