from civicsense.config.firebase import get_db


def _team(client, team_id, headers):
    return client.get(f"/teams/{team_id}", headers=headers).json()


def test_assign_report_to_team(client, seeded, admin_headers, notifications):
    response = client.patch("/reports/11/assign", json={"team_id": "1", "priority": "urgent"}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Report assigned successfully"
    assert body["report"]["assigned_to"] == "1"
    assert body["report"]["priority"] == "urgent"
    assert body["team"]["current_load"] == 4
    assert body["team"]["available_capacity"] == 4
    assert body["team"]["assigned_reports"][-1]["report_id"] == "11"
    assert body["team"]["assigned_reports"][-1]["priority"] == "urgent"
    assert notifications.events[-1]["type"] == "report.assigned"

    report = get_db().collection("reports").document("11").get().to_dict()
    assert report["updates"][-1]["message"] == "Report assigned to team Public Works Alpha"


def test_assign_by_tracking_id(client, seeded, moderator_headers):
    response = client.patch(
        "/reports/RPT-20261019-0011/assign", json={"team_id": "2"}, headers=moderator_headers,
    )
    assert response.status_code == 200
    assert response.json()["report"]["id"] == "11"


def test_reassignment_releases_previous_team(client, seeded, admin_headers):
    response = client.patch("/reports/1/assign", json={"team_id": "2"}, headers=admin_headers)
    assert response.status_code == 200

    old_team = _team(client, "1", admin_headers)
    new_team = _team(client, "2", admin_headers)
    assert old_team["current_load"] == 2
    assert "1" not in [a["report_id"] for a in old_team["assigned_reports"]]
    assert new_team["current_load"] == 2


def test_assign_same_team_rejected(client, seeded, admin_headers):
    response = client.patch("/reports/1/assign", json={"team_id": "1"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Report is already assigned to this team"


def test_assign_requires_team_id(client, seeded, admin_headers):
    response = client.patch("/reports/11/assign", json={}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Team ID is required"


def test_assign_unknown_team_or_report(client, seeded, admin_headers):
    assert client.patch("/reports/11/assign", json={"team_id": "99"}, headers=admin_headers).status_code == 404
    missing = client.patch("/reports/nope/assign", json={"team_id": "1"}, headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Report not found"


def test_full_team_rejects_assignment(client, seeded, admin_headers):
    # Team 3 holds 2 of 4 slots
    for report_id in ("11", "12"):
        assert client.patch(
            f"/reports/{report_id}/assign", json={"team_id": "3"}, headers=admin_headers,
        ).status_code == 200

    response = client.patch("/reports/5/assign", json={"team_id": "3"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Team capacity exceeded. Available: 0, Requested: 1"

    # The rejected report keeps its original team
    report = get_db().collection("reports").document("5").get().to_dict()
    assert report["assigned_to"] == "2"


def test_guest_cannot_manage_but_can_assign(client, seeded, guest_headers):
    assert client.patch("/reports/11/assign", json={"team_id": "1"}, headers=guest_headers).status_code == 200
    response = client.post("/teams", json={"name": "Night Crew", "department": "utilities"}, headers=guest_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Required permission: manage-teams"


def test_bulk_assign(client, seeded, admin_headers, notifications):
    response = client.patch(
        "/teams/2/assign", json={"report_ids": ["11", "RPT-20260920-0012"], "priority": "high"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "2 report(s) assigned successfully"
    assert body["team"]["current_load"] == 3
    assert [a["report_id"] for a in body["team"]["assigned_reports"]] == ["5", "11", "12"]
    assert body["team"]["assigned_reports"][-1]["priority"] == "high"
    assert notifications.events[-1]["type"] == "team.reports_assigned"


def test_bulk_assign_checks_whole_batch_capacity(client, seeded, admin_headers):
    # Team 3 has 2 free slots
    response = client.patch(
        "/teams/3/assign", json={"report_ids": ["11", "12", "5"]}, headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Team capacity exceeded. Available: 2, Requested: 3"
    assert _team(client, "3", admin_headers)["current_load"] == 2


def test_bulk_assign_unknown_report_writes_nothing(client, seeded, admin_headers):
    response = client.patch("/teams/2/assign", json={"report_ids": ["11", "missing"]}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Report not found: missing"

    report = get_db().collection("reports").document("11").get().to_dict()
    assert report["assigned_to"] is None


def test_bulk_assign_requires_ids(client, seeded, admin_headers):
    response = client.patch("/teams/2/assign", json={"report_ids": []}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Report IDs array is required"


def test_unassign_report(client, seeded, admin_headers):
    response = client.patch("/teams/1/unassign", json={"report_id": "3"}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Report unassigned successfully"
    assert body["team"]["current_load"] == 2
    assert "assigned_reports" not in body["team"]

    report = get_db().collection("reports").document("3").get().to_dict()
    assert report["assigned_to"] is None
    assert report["updates"][-1]["type"] == "unassignment"


def test_unassign_missing_assignment(client, seeded, admin_headers):
    response = client.patch("/teams/1/unassign", json={"report_id": "5"}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Report assignment not found"

    response = client.patch("/teams/1/unassign", json={}, headers=admin_headers)
    assert response.status_code == 400


def test_bulk_assign_moves_reports_from_previous_team(client, seeded, admin_headers):
    response = client.patch("/teams/2/assign", json={"report_ids": ["1", "3"]}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["team"]["current_load"] == 3

    old_team = _team(client, "1", admin_headers)
    assert old_team["current_load"] == 1
    assert [a["report_id"] for a in old_team["assigned_reports"]] == ["7"]

    report = get_db().collection("reports").document("3").get().to_dict()
    assert report["assigned_to"] == "2"
