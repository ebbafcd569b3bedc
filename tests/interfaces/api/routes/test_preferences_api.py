"""Tests for the preference endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from main import create_app
from notifyhub.application.service import NotificationService
from notifyhub.infrastructure.cache import NOTIFICATION_SETTINGS_KEY
from tests.stubs import InMemoryRedis


@pytest.fixture
def client(settings, broker, redis) -> TestClient:
    return TestClient(create_app(NotificationService(settings, broker=broker, redis=redis)))


def test_defaults_are_returned_for_new_users(client):
    response = client.get("/preferences", params={"userId": "u1"})

    assert response.status_code == 200
    preferences = response.json()["preferences"]
    assert preferences["userId"] == "u1"
    assert preferences["channels"] == {"email": True, "push": True, "sms": False, "inApp": True}
    assert preferences["categories"]["marketing"] is False
    assert preferences["quietHours"] == {
        "enabled": False,
        "start": "22:00",
        "end": "08:00",
        "timezone": "UTC",
    }
    assert preferences["frequency"] == "realtime"


def test_update_merges_sections(client):
    client.put("/preferences", json={"userId": "u1", "channels": {"email": False}})

    response = client.put(
        "/preferences",
        json={
            "userId": "u1",
            "categories": {"marketing": True},
            "quietHours": {"enabled": True, "start": "23:30", "end": "06:00"},
            "frequency": "daily",
        },
    )

    assert response.status_code == 200
    preferences = response.json()["preferences"]
    assert preferences["channels"]["email"] is False
    assert preferences["categories"]["marketing"] is True
    assert preferences["quietHours"]["start"] == "23:30"
    assert preferences["frequency"] == "daily"
    stored = client.get("/preferences", params={"userId": "u1"}).json()["preferences"]
    assert stored == preferences


@pytest.mark.parametrize(
    "payload",
    [
        {"userId": "u1", "channels": {"fax": True}},
        {"userId": "u1", "categories": {"news": False}},
        {"userId": "u1", "quietHours": {"enabled": True, "timezone": "Mars/Base"}},
    ],
)
def test_invalid_values_return_400(client, payload):
    response = client.put("/preferences", json=payload)

    assert response.status_code == 400


@pytest.mark.parametrize(
    "payload",
    [
        {"userId": "u1", "quietHours": {"enabled": True, "start": "24:00"}},
        {"userId": "u1", "frequency": "monthly"},
        {"userId": "u1", "channels": {"email": "yes"}},
        {"channels": {"email": True}},
    ],
)
def test_malformed_payloads_return_422(client, payload):
    assert client.put("/preferences", json=payload).status_code == 422


def test_unreachable_cache_fails_updates(settings, broker):
    client = TestClient(
        create_app(NotificationService(settings, broker=broker, redis=InMemoryRedis(fail=True)))
    )

    response = client.put("/preferences", json={"userId": "u1", "frequency": "hourly"})

    assert response.status_code == 500


def test_reset_restores_defaults(client):
    client.put("/preferences", json={"userId": "u1", "frequency": "weekly"})

    first = client.delete("/preferences", params={"userId": "u1"})
    second = client.delete("/preferences", params={"userId": "u1"})

    assert first.json()["success"] is True
    assert second.json()["success"] is False
    assert client.get("/preferences", params={"userId": "u1"}).json()["preferences"][
        "frequency"
    ] == "realtime"


def test_settings_are_cached_on_first_read(client, redis):
    response = client.get("/preferences/settings")

    assert response.status_code == 200
    payload = response.json()
    assert payload["availableChannels"] == ["email", "push", "sms", "inApp"]
    assert payload["defaults"]["frequency"] == "realtime"
    assert NOTIFICATION_SETTINGS_KEY in redis.strings
    assert client.get("/preferences/settings").json() == payload
