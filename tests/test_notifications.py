from civicsense.services.notification_service import NotificationService


def test_notification_status_endpoint(client, submit_report):
    submit_report(contact_info="citizen@example.com")

    body = client.get("/notifications/status").json()
    assert body["status"] == "OK"
    assert body["queues"] == {
        "email": {"queued": 1, "total": 1},
        "whatsapp": {"queued": 1, "total": 1},
        "in_app": {"total": 1},
    }


def test_notify_reporter_skips_anonymous_and_missing_contact():
    service = NotificationService()
    service.notify_reporter({"anonymous": True, "contact_info": "a@b.co"}, "Subject", "Body")
    service.notify_reporter({"anonymous": False, "contact_info": None}, "Subject", "Body")
    assert service.email_queue == []
    assert service.whatsapp_queue == []

    service.notify_reporter({"anonymous": False, "contact_info": "a@b.co"}, "Subject", "Body", {"k": "v"})
    assert service.email_queue[0]["to"] == "a@b.co"
    assert service.email_queue[0]["status"] == "queued"
    assert service.whatsapp_queue[0]["data"] == {"k": "v"}


def test_whatsapp_webhook_verification(client):
    params = {"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "12345"}
    response = client.get("/webhooks/whatsapp", params=params)
    assert response.status_code == 200
    assert response.text == "12345"

    params["hub.verify_token"] = "wrong"
    assert client.get("/webhooks/whatsapp", params=params).status_code == 403


def test_whatsapp_webhook_receive(client):
    response = client.post("/webhooks/whatsapp", json={"entry": [{"changes": []}]})
    assert response.status_code == 200
    assert response.json()["status"] == "received"
