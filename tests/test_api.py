"""End-to-end tests for the HTTP API."""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from apps.api.main import create_app
from integrations.whatsapp.cloud_api import compute_signature


APP_SECRET = "shh"
VERIFY_TOKEN = "verify-me"


@pytest.fixture
def vendor_requests():
    return []


@pytest.fixture
def client(make_settings, vendor_requests):
    def handler(request):
        vendor_requests.append(request)
        return httpx.Response(200, json={"messages": [{"id": f"wamid.{len(vendor_requests)}"}]})

    app_settings = make_settings(
        whatsapp_provider="meta",
        whatsapp_meta_access_token="tok",
        whatsapp_meta_phone_number_id="555",
        whatsapp_meta_app_secret=APP_SECRET,
        whatsapp_verify_token=VERIFY_TOKEN,
        reservation_whatsapp_number="98765 43210",
        whatsapp_reservation_template_name="reservation_confirmation",
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    app = create_app(app_settings, http_client=http_client)

    with TestClient(app) as test_client:
        yield test_client


def booking(**kwargs):
    body = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "91234 56789",
        "slot": "2025-06-01T19:00",
        "guests": 4,
        "tableNumber": 12,
        "whatsappOptIn": True,
    }
    body.update(kwargs)
    return body


def cloud_body(text, sender="919123456789"):
    message = {"from": sender, "type": "text", "text": {"body": text}}
    return json.dumps({"entry": [{"changes": [{"value": {"messages": [message]}}]}]}).encode()


@pytest.mark.integration
class TestReservationsApi:
    """POST/GET /api/reservations."""

    def test_create_then_conflict(self, client):
        """Test create then conflict."""
        first = client.post("/api/reservations", json=booking())

        assert first.status_code == 201
        data = first.json()
        assert data["success"] is True
        assert data["reservation"]["tableNumber"] == 12
        assert data["reservation"]["slot"] == "2025-06-01T19:00:00"
        assert data["reservation"]["status"] == "booked"
        assert data["whatsappLink"].startswith("https://wa.me/919876543210?text=")
        assert data["whatsappDelivery"]["admin"]["sent"] is True
        assert data["whatsappDelivery"]["customer"]["sent"] is True
        assert data["providerHint"] == ""

        second = client.post("/api/reservations", json=booking(name="Someone Else"))

        assert second.status_code == 409
        assert second.json() == {"message": "Table is already reserved for this slot."}

    def test_date_time_alias(self, client):
        """Test date time alias."""
        body = booking()
        body["dateTime"] = body.pop("slot")

        response = client.post("/api/reservations", json=body)

        assert response.status_code == 201

    def test_guest_limit(self, client, vendor_requests):
        """Test that more than ten guests is rejected before any send."""
        response = client.post("/api/reservations", json=booking(guests=11))

        assert response.status_code == 400
        assert response.json()["field"] == "guests"
        assert vendor_requests == []

    def test_missing_field(self, client):
        """Test that an empty name is reported as a missing field."""
        response = client.post("/api/reservations", json=booking(name=""))

        assert response.status_code == 400
        assert response.json() == {"message": "All reservation fields are required.", "field": "name"}

    def test_wrong_type_is_400(self, client):
        """Test wrong type is 400."""
        response = client.post("/api/reservations", json=booking(guests="many"))

        assert response.status_code == 400
        assert response.json()["field"] == "guests"

    def test_list_with_filters(self, client):
        """Test list with filters."""
        client.post("/api/reservations", json=booking(tableNumber=3, slot="2025-06-01T20:00"))
        client.post("/api/reservations", json=booking(tableNumber=7))

        everything = client.get("/api/reservations").json()["reservations"]
        by_table = client.get("/api/reservations", params={"tableNumber": 7}).json()["reservations"]
        by_slot = client.get("/api/reservations", params={"dateTime": "2025-06-01T20:00"}).json()["reservations"]

        assert [r["tableNumber"] for r in everything] == [7, 3]
        assert [r["tableNumber"] for r in by_table] == [7]
        assert [r["tableNumber"] for r in by_slot] == [3]

    def test_list_bad_slot(self, client):
        """Test list bad slot."""
        response = client.get("/api/reservations", params={"slot": "whenever"})

        assert response.status_code == 400


@pytest.mark.integration
class TestWhatsAppWebhookApi:
    """Cloud API and bridge webhooks."""

    def test_verification_handshake(self, client):
        """Test the webhook subscription handshake echoes the challenge."""
        response = client.get(
            "/api/whatsapp/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": VERIFY_TOKEN, "hub.challenge": "4242"},
        )

        assert response.status_code == 200
        assert response.text == "4242"

    def test_verification_wrong_token(self, client):
        """Test verification wrong token."""
        response = client.get(
            "/api/whatsapp/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "nope", "hub.challenge": "4242"},
        )

        assert response.status_code == 403

    def test_signed_delivery(self, client, vendor_requests):
        """Test that a signed delivery is answered through the provider."""
        body = cloud_body("book a table for 2")

        response = client.post(
            "/api/whatsapp/webhook",
            content=body,
            headers={"Content-Type": "application/json", "X-Hub-Signature-256": compute_signature(APP_SECRET, body)},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True, "processedMessages": 1}
        reply = json.loads(vendor_requests[0].content)
        assert reply["to"] == "919123456789"
        assert "booking" in reply["text"]["body"]

    def test_bad_signature(self, client, vendor_requests):
        """Test that a bad signature is rejected with 401."""
        body = cloud_body("book a table for 2")

        response = client.post(
            "/api/whatsapp/webhook",
            content=body,
            headers={"X-Hub-Signature-256": compute_signature("wrong-secret", body)},
        )

        assert response.status_code == 401
        assert "processedMessages" not in response.json()
        assert vendor_requests == []

    def test_signed_garbage_is_400(self, client):
        """Test signed garbage is 400."""
        body = b"{nope"

        response = client.post(
            "/api/whatsapp/webhook",
            content=body,
            headers={"X-Hub-Signature-256": compute_signature(APP_SECRET, body)},
        )

        assert response.status_code == 400

    @pytest.mark.parametrize("path", ["/api/whatsapp/bridge", "/api/whatsapp/twilio"])
    def test_bridge_answers_with_twiml(self, client, path):
        """Test bridge answers with TwiML."""
        response = client.post(path, data={"From": "whatsapp:+14155550100", "Body": "hi"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.text.startswith('<?xml version="1.0" encoding="UTF-8"?><Response')

    def test_bridge_failure_still_answers_with_twiml(self, client, monkeypatch):
        """Test bridge failure still answers with TwiML."""
        async def boom(form):
            raise RuntimeError("bot crashed")

        monkeypatch.setattr(client.app.state.webhook_gateway, "handle_bridge_delivery", boom)

        response = client.post("/api/whatsapp/bridge", data={"From": "whatsapp:+14155550100", "Body": "hi"})

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/xml")
        assert "<Message>Temporary issue. Please retry later.</Message>" in response.text


@pytest.mark.integration
class TestServiceEndpoints:

    def test_health(self, client):
        """Test health check reports database and provider state."""
        data = client.get("/api/health").json()

        assert data["ok"] is True
        assert data["db"]["connected"] is True
        assert data["db"]["engine"] == "sqlite"
        assert data["whatsapp"] == {"provider": "meta", "enabled": True}

    def test_root(self, client):
        """Test root endpoint."""
        assert client.get("/").json()["status"] == "running"
