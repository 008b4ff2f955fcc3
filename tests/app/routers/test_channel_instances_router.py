"""Tests for the channel instances API."""

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.services.channel_instance_service import ChannelInstanceService


def test_list_channel_instances(client: TestClient, setup_channel_instance, monkeypatch):
    monkeypatch.setenv("CHANNEL_INSTANCE_COUNT", "2")
    resp = client.get("/channel-instances")
    assert resp.status_code == 200
    data = resp.json()
    assert [i["id"] for i in data] == ["0", "1"]
    assert data[0]["connected"] is True
    assert data[1]["connected"] is False
    assert "token" not in data[0]


def test_set_token(client: TestClient, db):
    resp = client.post(
        "/channel-instances/1/token",
        json={"token": "new-key-1234", "source_number": "5511988887777"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["connected"] is True
    assert data["token_hint"].endswith("1234")
    assert data["source_number"] == "5511988887777"
    assert ChannelInstanceService(db).get_credential("1").api_token == "new-key-1234"


def test_clear_token(client: TestClient, setup_channel_instance):
    resp = client.post("/channel-instances/0/token", json={"token": ""})
    assert resp.status_code == 200
    assert resp.json()["connected"] is False


def test_unknown_instance(client: TestClient):
    assert client.post("/channel-instances/99/token", json={"token": "x"}).status_code == 404
    assert client.get("/channel-instances/abc/messages").status_code == 404


def test_instance_messages(client: TestClient):
    client.post(
        "/webhooks/whatsapp",
        json={"conversationKey": "5511900000001", "patientMessageText": "um", "instanceId": 0},
    )
    client.post(
        "/webhooks/whatsapp",
        json={"conversationKey": "5511900000002", "patientMessageText": "dois", "instanceId": 1},
    )
    resp = client.get("/channel-instances/0/messages")
    assert resp.status_code == 200
    items = resp.json()["items"]
    assert [i["patient_text"] for i in items] == ["um"]


def test_system_settings_and_health(client: TestClient):
    settings = client.get("/system/settings").json()
    assert settings["channels"]["default_channel_instance_id"] == "default"
    assert settings["conversations"]["transfer_trigger_phrases"] == [
        "transferir para um atendente humano"
    ]
    assert client.get("/health").json() == {"status": "ok"}


def test_default_instance_messages(client: TestClient):
    client.post(
        "/webhooks/whatsapp",
        json={"conversationKey": "5511900000003", "patientMessageText": "sem instância"},
    )
    resp = client.get("/channel-instances/default/messages")
    assert resp.status_code == 200
    assert [i["patient_text"] for i in resp.json()["items"]] == ["sem instância"]


def test_list_store_failure_returns_detail(client: TestClient, db):
    with patch.object(
        db, "query", side_effect=OperationalError("SELECT", {}, Exception("down"))
    ):
        resp = client.get("/channel-instances")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal storage error"}
