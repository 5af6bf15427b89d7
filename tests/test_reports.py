import json
import re
from pathlib import Path

import pytest

from civicsense.core.exceptions import ValidationError
from civicsense.core.settings import settings
from civicsense.services.report_service import ReportService, generate_tracking_id, parse_location

TRACKING_ID = re.compile(r"^RPT-\d{8}-\d{4}$")


def test_submit_report_returns_tracking_id(submit_report):
    body = submit_report(contact_info="citizen@example.com")

    assert body["success"] is True
    assert TRACKING_ID.match(body["tracking_id"])
    assert body["report"]["status"] == "reported"
    assert body["report"]["title"] == f"Issue Report #{body['tracking_id'][-4:]}"
    assert body["report"]["has_location"] is False
    assert body["report"]["has_media"] is False


def test_generate_tracking_id_format():
    assert TRACKING_ID.match(generate_tracking_id())


def test_submit_report_with_location(client, submit_report):
    location = json.dumps({"lat": 37.12345678, "lng": -122.1111114, "address": "Main St"})
    body = submit_report(use_location="true", location=location)

    report = client.get(f"/reports/{body['tracking_id']}").json()
    assert body["report"]["has_location"] is True
    assert report["location"] == {"lat": 37.123457, "lng": -122.111111, "address": "Main St"}


def test_location_ignored_without_use_location(client, submit_report):
    body = submit_report(location=json.dumps({"lat": 1, "lng": 2}))
    assert client.get(f"/reports/{body['tracking_id']}").json()["location"] is None


@pytest.mark.parametrize("data, detail", [
    ({}, "Description is required"),
    ({"description": "short"}, "Description too short"),
    ({"description": "x" * 2001}, "Description too long"),
    ({"description": "Broken bench in the park", "contact_info": "not-an-email"}, "Invalid email format"),
    ({"description": "Broken bench in the park", "use_location": "true", "location": "{bad json"},
     "Invalid location format"),
    ({"description": "Broken bench in the park", "use_location": "true",
      "location": json.dumps({"lat": 95, "lng": 10})}, "Invalid location data"),
])
def test_submit_report_validation(client, data, detail):
    response = client.post("/reports", data=data)
    assert response.status_code == 400
    assert response.json()["detail"].startswith(detail)


def test_parse_location_rejects_non_numeric():
    with pytest.raises(ValidationError):
        parse_location({"lat": "37.7", "lng": -122.4})


def test_get_report_by_tracking_id_not_found(client):
    response = client.get("/reports/RPT-20200101-0000")
    assert response.status_code == 404
    assert response.json()["detail"] == "Report not found"


def test_anonymous_report_hides_contact(client, submit_report):
    body = submit_report(contact_info="hidden@example.com", anonymous="true")

    report = client.get(f"/reports/{body['tracking_id']}").json()
    assert report["contact_info"] is None
    assert report["created_by"] == "anonymous"

    listed = client.get("/reports").json()
    assert listed[0]["contact_info"] is None
    assert listed[0]["created_by"] == "anonymous"


def test_public_list_newest_first_with_filters(client, seeded):
    reports = client.get("/reports").json()
    assert len(reports) == 12
    assert reports[0]["tracking_id"] == "RPT-20261019-0011"
    assert reports[-1]["tracking_id"] == "RPT-20260920-0012"

    resolved = client.get("/reports", params={"status": "resolved"}).json()
    assert {r["status"] for r in resolved} == {"resolved"}
    assert len(resolved) == 3

    urgent = client.get("/reports", params={"severity": "urgent"}).json()
    assert [r["severity"] for r in urgent] == ["urgent"]

    assert len(client.get("/reports", params={"limit": 2}).json()) == 2


def test_public_list_map_format_requires_coordinates(client, seeded):
    reports = client.get("/reports", params={"format": "map"}).json()
    assert len(reports) == 11
    assert all(r["location"]["lat"] is not None for r in reports)


def test_submit_report_with_image_runs_mock_ai(client, png_bytes):
    response = client.post(
        "/reports",
        data={"description": "Something is wrong with this street corner", "contact_info": "a@b.co"},
        files={"media": ("corner.png", png_bytes, "image/png")},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["report"]["has_media"] is True

    report = client.get(f"/reports/{body['tracking_id']}").json()
    assert report["media"]["url"].startswith("/uploads/media-")
    assert report["ai_analysis"]["provider"] == "mock"
    assert report["category"] == report["ai_analysis"]["issue_type"]
    assert report["priority"] == report["ai_analysis"]["severity"]
    assert report["ai_generated_description"]

    served = client.get(report["media"]["url"])
    assert served.status_code == 200
    assert served.content == png_bytes


def test_rejected_media_type(client):
    response = client.post(
        "/reports",
        data={"description": "Something is wrong with this street corner"},
        files={"media": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid file type")


def test_submission_queues_reporter_notifications(submit_report, notifications):
    submit_report(contact_info="citizen@example.com")

    assert [e["type"] for e in notifications.events] == ["report.created"]
    assert len(notifications.email_queue) == 1
    assert notifications.email_queue[0]["subject"].startswith("Report Submitted - RPT-")
    assert len(notifications.whatsapp_queue) == 1


def test_anonymous_submission_skips_reporter_notifications(submit_report, notifications):
    submit_report(contact_info="citizen@example.com", anonymous="true")

    assert len(notifications.events) == 1
    assert notifications.email_queue == []
    assert notifications.whatsapp_queue == []


def test_admin_reports_requires_token(client):
    response = client.get("/admin/reports")
    assert response.status_code == 401
    assert response.json()["detail"] == "Access denied. No token provided."


def test_admin_reports_pagination_and_filters(client, seeded, moderator_headers):
    response = client.get("/admin/reports", params={"limit": 5, "offset": 0}, headers=moderator_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"total": 12, "offset": 0, "limit": 5, "has_more": True}
    assert len(body["reports"]) == 5
    # Admin view keeps reporter contact info
    assert any(r["contact_info"] for r in body["reports"])

    last_page = client.get("/admin/reports", params={"limit": 5, "offset": 10}, headers=moderator_headers).json()
    assert len(last_page["reports"]) == 2
    assert last_page["pagination"]["has_more"] is False

    team_four = client.get("/admin/reports", params={"assigned_to": "4"}, headers=moderator_headers).json()
    assert {r["id"] for r in team_four["reports"]} == {"4", "8", "9", "10"}

    safety = client.get("/admin/reports", params={"category": "safety"}, headers=moderator_headers).json()
    assert {r["category"] for r in safety["reports"]} == {"safety"}


def test_admin_reports_sorting(client, seeded, admin_headers):
    oldest_first = client.get(
        "/admin/reports", params={"sort_by": "created_at", "sort_order": "asc"}, headers=admin_headers,
    ).json()["reports"]
    assert oldest_first[0]["id"] == "12"
    assert oldest_first[0]["title"] == "Issue Report #0012"

    by_priority = client.get(
        "/admin/reports", params={"sort_by": "priority", "sort_order": "asc"}, headers=admin_headers,
    ).json()["reports"]
    priorities = [r["priority"] for r in by_priority]
    assert priorities == sorted(priorities)


def test_admin_reports_rejects_bad_sort_order(client, admin_headers):
    response = client.get("/admin/reports", params={"sort_order": "sideways"}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.parametrize("address", [["Main", "St"], {"street": "Main"}, 42])
def test_submit_report_rejects_non_text_address(client, address):
    response = client.post("/reports", data={
        "description": "Broken bench in the park",
        "use_location": "true",
        "location": json.dumps({"lat": 10, "lng": 20, "address": address}),
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid location data: address must be text"

    assert client.get("/reports").status_code == 200
    assert client.get("/reports").json() == []


def test_parse_location_strips_address():
    assert parse_location({"lat": 1, "lng": 2, "address": "  Main St  "})["address"] == "Main St"
    assert parse_location({"lat": 1, "lng": 2, "address": "   "})["address"] is None


def test_failed_submission_removes_saved_media(client, monkeypatch, png_bytes):
    def fail_create(self, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(ReportService, "create_report", fail_create)
    before = set(Path(settings.UPLOAD_DIR).iterdir())

    response = client.post(
        "/reports",
        data={"description": "Something is wrong with this street corner"},
        files={"media": ("corner.png", png_bytes, "image/png")},
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to create report"
    assert set(Path(settings.UPLOAD_DIR).iterdir()) == before


def test_oversized_report_media_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    before = set(Path(settings.UPLOAD_DIR).iterdir())

    response = client.post(
        "/reports",
        data={"description": "Something is wrong with this street corner"},
        files={"media": ("corner.png", b"x" * 64, "image/png")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "File too large: maximum file size is 10 Bytes"
    assert set(Path(settings.UPLOAD_DIR).iterdir()) == before
