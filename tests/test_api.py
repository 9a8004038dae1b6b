"""HTTP surface tests: webhook, admin API and health check."""

import dataclasses

import pytest
from fastapi.testclient import TestClient

from booking_bot.api import create_app
from booking_bot.api.webhook import render_twiml
from booking_bot.schemas.conversation_schema import TurnReply
from tests.conftest import CUSTOMER, SPLIT_ANSWERS, FakeNotifier, make_config


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(tmp_path, notifier):
    app = create_app(make_config(tmp_path), notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client


def send(client, text, sender=CUSTOMER):
    return client.post("/whatsapp", data={"From": sender, "Body": text})


def create(client, slot="10am Monday", **extra):
    return client.post("/api/appointments", json={"slot": slot, "name": "Pat", **extra})


class TestRenderTwiml:
    def test_escapes_markup(self):
        reply = TurnReply(user_key="1", messages=["Date & Time: <soon>"])
        xml = render_twiml(reply)
        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?><Response>')
        assert "<Message>Date &amp; Time: &lt;soon&gt;</Message>" in xml

    def test_one_message_element_per_message(self):
        xml = render_twiml(TurnReply(user_key="1", messages=["a", "b"]))
        assert xml.count("<Message>") == 2


class TestHealth:
    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["checks"] == {"database": "ok", "notifications": "disabled"}
        assert body["version"] == "1.0.0"


class TestWebhook:
    def test_missing_sender_is_rejected(self, client):
        response = client.post("/whatsapp", data={"Body": "hi"})
        assert response.status_code == 400

    def test_greeting_gets_twiml_welcome(self, client):
        response = send(client, "hi")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "Welcome to Test Steamers" in response.text
        assert "<Message>" in response.text

    def test_full_booking_over_http(self, client, notifier):
        send(client, "hi")
        for answer in SPLIT_ANSWERS:
            send(client, answer)
        response = send(client, "Book 10am Monday")

        assert "Appointment Confirmed" in response.text
        assert "Date &amp; Time: Monday 10:00am" in response.text
        [appointment] = client.get("/api/appointments").json()
        assert appointment["slot"] == "Monday 10:00am"
        assert appointment["worker"] == "Alice"
        assert appointment["user"] == "5550100"
        assert notifier.sent[0].worker == "Alice"
        assert client.get("/api/sessions").json() == {}

    def test_sessions_listing_shows_progress(self, client):
        send(client, "hi")
        send(client, "Jordan Lee")
        sessions = client.get("/api/sessions").json()
        assert sessions["5550100"]["step"] == "phone"
        assert sessions["5550100"]["fields"] == {"name": "Jordan Lee"}


class TestAdminAppointments:
    def test_create_assigns_round_robin_worker(self, client):
        first = create(client)
        second = create(client, slot="11am Monday")
        assert first.status_code == 201
        assert first.json()["slot"] == "Monday 10:00am"
        assert first.json()["worker"] == "Alice"
        assert first.json()["user"].startswith("admin_")
        assert second.json()["worker"] == "Bob"

    def test_create_duplicate_slot_conflicts(self, client):
        create(client)
        response = create(client, slot="10:00AM monday")
        assert response.status_code == 409

    def test_create_outside_hours_is_unprocessable(self, client):
        response = create(client, slot="7pm Monday")
        assert response.status_code == 422
        assert "Business hours" in response.json()["detail"]

    def test_get_and_unknown_id(self, client):
        created = create(client, worker="Charlie").json()
        fetched = client.get(f"/api/appointments/{created['id']}")
        assert fetched.json()["worker"] == "Charlie"
        assert client.get("/api/appointments/appt_missing").status_code == 404

    def test_patch_status_and_filter(self, client):
        first = create(client).json()
        create(client, slot="11am Monday")
        response = client.patch(f"/api/appointments/{first['id']}", json={"status": "cancelled"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        cancelled = client.get("/api/appointments", params={"status": "cancelled"}).json()
        assert [a["id"] for a in cancelled] == [first["id"]]
        confirmed = client.get("/api/appointments", params={"status": "confirmed"}).json()
        assert len(confirmed) == 1

    def test_patch_slot_is_canonicalized(self, client):
        created = create(client).json()
        response = client.patch(f"/api/appointments/{created['id']}", json={"slot": "2:30PM tuesday"})
        assert response.json()["slot"] == "Tuesday 2:30pm"

    def test_patch_onto_taken_slot_conflicts(self, client):
        create(client)
        other = create(client, slot="11am Monday").json()
        response = client.patch(f"/api/appointments/{other['id']}", json={"slot": "10am Monday"})
        assert response.status_code == 409

    def test_patch_unknown_id(self, client):
        response = client.patch("/api/appointments/appt_missing", json={"status": "completed"})
        assert response.status_code == 404

    def test_delete(self, client):
        created = create(client).json()
        assert client.delete(f"/api/appointments/{created['id']}").status_code == 204
        assert client.get("/api/appointments").json() == []
        assert client.delete(f"/api/appointments/{created['id']}").status_code == 404


class TestAdminToken:
    @pytest.fixture
    def secured(self, tmp_path):
        config = dataclasses.replace(make_config(tmp_path), admin_api_token="secret")
        with TestClient(create_app(config, notifier=FakeNotifier())) as test_client:
            yield test_client

    def test_missing_token_is_unauthorized(self, secured):
        assert secured.get("/api/appointments").status_code == 401

    def test_wrong_token_is_unauthorized(self, secured):
        response = secured.get("/api/appointments", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_bearer_token_is_accepted(self, secured):
        response = secured.get("/api/appointments", headers={"Authorization": "Bearer secret"})
        assert response.status_code == 200

    def test_webhook_stays_open(self, secured):
        assert send(secured, "hi").status_code == 200
