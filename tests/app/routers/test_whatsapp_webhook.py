"""Tests for the WhatsApp webhook routes (patient message + assistant reply)."""

from fastapi.testclient import TestClient

from app.constants.conversation import ConversationState, Sender
from app.models.message_event import MessageEvent
from app.services.conversation_ledger_service import ConversationLedgerService

TRANSFER_REPLY = "Tudo bem! Vou transferir para um atendente humano."


def webhook_body(key, text="Oi, tudo bem?", reply=None, **extra):
    body = {"conversationKey": key, "patientMessageText": text}
    if reply is not None:
        body["assistantReplyText"] = reply
    body.update(extra)
    return body


def _events(db, key):
    return ConversationLedgerService(db).get_history(key)


def test_webhook_check(client: TestClient):
    resp = client.get("/webhooks/whatsapp")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_unseen_conversation_reply_allowed(client: TestClient, db, conversation_key):
    resp = client.post(
        "/webhooks/whatsapp",
        json=webhook_body(conversation_key, reply="Olá! Como posso ajudar?"),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["state"] == ConversationState.BOT_ACTIVE
    assert data["suppressed"] is False
    assert data["transfer_triggered"] is False

    events = _events(db, conversation_key)
    assert [e.sender for e in events] == [Sender.PATIENT, Sender.ASSISTANT]
    assert events[0].state_at_event == ConversationState.BOT_ACTIVE
    assert events[1].assistant_text == "Olá! Como posso ajudar?"
    assert events[0].channel_instance_id == "default"


def test_transfer_phrase_moves_to_awaiting_human(
    client: TestClient, db, setup_conversation
):
    key = setup_conversation.conversation_key
    resp = client.post(
        "/webhooks/whatsapp", json=webhook_body(key, "Quero falar com alguém", TRANSFER_REPLY)
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["state"] == ConversationState.AWAITING_HUMAN
    assert data["transfer_triggered"] is True

    db.expire_all()
    events = _events(db, key)
    assert len(events) == 3
    assert {e.state_at_event for e in events} == {ConversationState.AWAITING_HUMAN.value}
    assert events[-1].assistant_text == TRANSFER_REPLY


def test_awaiting_human_suppresses_assistant(
    client: TestClient, db, make_conversation, conversation_key
):
    make_conversation(conversation_key, state=ConversationState.AWAITING_HUMAN)
    resp = client.post(
        "/webhooks/whatsapp",
        json=webhook_body(conversation_key, "Alô?", "Posso ajudar em algo?"),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["suppressed"] is True
    assert data["state"] == ConversationState.AWAITING_HUMAN

    events = _events(db, conversation_key)
    assert len(events) == 2
    assert all(e.assistant_text is None for e in events)
    assert events[-1].state_at_event == ConversationState.AWAITING_HUMAN


def test_human_active_requeues_on_patient_message(
    client: TestClient, db, make_conversation, conversation_key
):
    make_conversation(conversation_key, state=ConversationState.HUMAN_ACTIVE)
    resp = client.post("/webhooks/whatsapp", json=webhook_body(conversation_key))
    assert resp.status_code == 200
    assert resp.json()["state"] == ConversationState.AWAITING_HUMAN
    latest = ConversationLedgerService(db).get_latest(conversation_key)
    assert latest.state == ConversationState.AWAITING_HUMAN


def test_human_active_reply_in_same_delivery_is_suppressed(
    client: TestClient, db, make_conversation, conversation_key
):
    make_conversation(conversation_key, state=ConversationState.HUMAN_ACTIVE)
    resp = client.post(
        "/webhooks/whatsapp",
        json=webhook_body(conversation_key, reply="Sou o robô, posso ajudar?"),
    )
    assert resp.json()["suppressed"] is True
    assert all(e.sender != Sender.ASSISTANT for e in _events(db, conversation_key))


def test_closed_conversation_reopens_with_bot(
    client: TestClient, db, make_conversation, conversation_key
):
    make_conversation(conversation_key, state=ConversationState.CLOSED)
    resp = client.post(
        "/webhooks/whatsapp",
        json=webhook_body(conversation_key, "Voltei", "Bem-vindo de volta!"),
    )
    data = resp.json()
    assert data["state"] == ConversationState.BOT_ACTIVE
    assert data["suppressed"] is False
    assert _events(db, conversation_key)[-1].sender == Sender.ASSISTANT


def test_provider_field_names_and_key_normalization(client: TestClient, db):
    resp = client.post(
        "/webhooks/whatsapp",
        json={
            "numeroPaciente": "+55 (11) 98765-4321",
            "mensagemPaciente": "Bom dia",
            "nomePaciente": "Pedro",
            "instanceId": 1,
        },
    )
    assert resp.status_code == 200
    assert resp.json()["conversation_key"] == "5511987654321"
    conversation = ConversationLedgerService(db).get_conversation("5511987654321")
    assert conversation.patient_display_name == "Pedro"
    assert conversation.channel_instance_id == "1"


def test_missing_patient_text_is_rejected(client: TestClient, db, conversation_key):
    resp = client.post(
        "/webhooks/whatsapp",
        json={"conversationKey": conversation_key, "assistantReplyText": "Olá"},
    )
    assert resp.status_code == 400
    assert "patientMessageText" in resp.json()["detail"]
    assert db.query(MessageEvent).count() == 0


def test_missing_conversation_key_is_rejected(client: TestClient, db):
    resp = client.post("/webhooks/whatsapp", json={"patientMessageText": "oi"})
    assert resp.status_code == 400
    assert db.query(MessageEvent).count() == 0


def test_malformed_json_is_rejected(client: TestClient):
    resp = client.post(
        "/webhooks/whatsapp",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid JSON body"


def test_non_object_body_is_rejected(client: TestClient):
    resp = client.post("/webhooks/whatsapp", json=["a", "b"])
    assert resp.status_code == 400


def test_webhook_secret(client: TestClient, monkeypatch, conversation_key):
    monkeypatch.setenv("WHATSAPP_WEBHOOK_SECRET", "s3cret")
    body = webhook_body(conversation_key)
    assert client.post("/webhooks/whatsapp", json=body).status_code == 403
    resp = client.post(
        "/webhooks/whatsapp", json=body, headers={"X-Webhook-Secret": "s3cret"}
    )
    assert resp.status_code == 200


def test_custom_trigger_phrases(client: TestClient, monkeypatch, conversation_key):
    monkeypatch.setenv("TRANSFER_TRIGGER_PHRASES", '["chamar a recepção"]')
    resp = client.post(
        "/webhooks/whatsapp",
        json=webhook_body(conversation_key, reply="Vou CHAMAR a recepcao!"),
    )
    assert resp.json()["transfer_triggered"] is True
