import pytest

from civicsense.core.exceptions import ValidationError
from civicsense.core.settings import settings
from civicsense.services.status_workflow import StatusWorkflowEngine


def test_permissive_workflow_allows_any_other_status():
    engine = StatusWorkflowEngine(strict=False)
    assert engine.get_allowed_transitions("resolved") == ["reported", "in-review", "in-progress", "closed"]
    assert engine.is_valid_transition("closed", "reported")


def test_strict_workflow_only_moves_forward():
    engine = StatusWorkflowEngine(strict=True)
    assert engine.get_allowed_transitions("in-review") == ["in-progress", "resolved", "closed"]
    assert engine.get_allowed_transitions("closed") == []
    assert engine.is_valid_transition("resolved", "resolved")

    with pytest.raises(ValidationError, match="Invalid status transition"):
        engine.validate_and_transition("resolved", "in-review", "admin")


def test_validate_status_rejects_unknown_values():
    with pytest.raises(ValidationError, match="Status is required"):
        StatusWorkflowEngine.validate_status(None)
    with pytest.raises(ValidationError, match="Invalid status. Must be one of: reported, in-review"):
        StatusWorkflowEngine.validate_status("done")


def test_update_entry_message_includes_note():
    entry = StatusWorkflowEngine().create_update_entry("reported", "resolved", "admin", note="Fixed")
    assert entry["type"] == "status"
    assert entry["message"] == "Status changed from reported to resolved: Fixed"
    assert entry["created_by"] == "admin"


def test_status_update_endpoint(client, submit_report, moderator_headers, notifications):
    body = submit_report(contact_info="citizen@example.com")
    notifications.reset()

    response = client.patch(
        f"/reports/{body['id']}/status",
        json={"status": "in-progress", "note": "Crew dispatched"},
        headers=moderator_headers,
    )
    assert response.status_code == 200
    report = response.json()["report"]
    assert response.json()["message"] == "Report status updated successfully"
    assert report["status"] == "in-progress"
    assert report["resolved_at"] is None
    assert report["updates"][-1]["message"] == "Status changed from reported to in-progress: Crew dispatched"
    assert report["updates"][-1]["created_by"] == "moderator"

    assert notifications.events[-1]["type"] == "report.status_changed"
    assert notifications.email_queue[-1]["subject"] == f"Report Update - {body['tracking_id']}"
    assert len(notifications.whatsapp_queue) == 1


def test_resolving_sets_resolved_at(client, submit_report, guest_headers):
    body = submit_report()

    response = client.patch(
        f"/reports/{body['tracking_id']}/status", json={"status": "resolved"}, headers=guest_headers,
    )
    assert response.status_code == 200
    assert response.json()["report"]["resolved_at"] is not None

    public = client.get(f"/reports/{body['tracking_id']}").json()
    assert public["status"] == "resolved"


def test_status_update_rejects_invalid_status(client, submit_report, admin_headers):
    body = submit_report()
    response = client.patch(f"/reports/{body['id']}/status", json={"status": "done"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid status")


def test_status_update_unknown_report(client, admin_headers):
    response = client.patch("/reports/missing/status", json={"status": "closed"}, headers=admin_headers)
    assert response.status_code == 404


def test_allowed_transitions_endpoint(client, submit_report, admin_headers):
    body = submit_report()
    response = client.get(f"/reports/{body['id']}/allowed-transitions", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["current_status"] == "reported"
    assert data["strict"] is False
    assert "reported" not in data["allowed_transitions"]


def test_strict_workflow_rejects_backward_status_update(client, submit_report, admin_headers, monkeypatch):
    monkeypatch.setattr(settings, "STRICT_STATUS_WORKFLOW", True)
    body = submit_report()

    forward = client.patch(f"/reports/{body['id']}/status", json={"status": "in-progress"}, headers=admin_headers)
    assert forward.status_code == 200

    backward = client.patch(f"/reports/{body['id']}/status", json={"status": "reported"}, headers=admin_headers)
    assert backward.status_code == 400
    assert backward.json()["detail"].startswith("Invalid status transition")

    data = client.get(f"/reports/{body['id']}/allowed-transitions", headers=admin_headers).json()
    assert data["strict"] is True
    assert data["allowed_transitions"] == ["resolved", "closed"]
