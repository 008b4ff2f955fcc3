"""Tests for SendHumanMessageCommand."""

from unittest.mock import MagicMock, patch

import pytest

from app.commands.outbound.send_human_message_command import SendHumanMessageCommand
from app.constants.conversation import ConversationState, Sender
from app.core.errors import ChannelInstanceNotFoundError, DeliveryError, ValidationError
from app.schemas.channel_instance import ChannelCredential
from app.schemas.whatsapp import OutboundSendResult
from app.services.conversation_ledger_service import ConversationLedgerService


@pytest.fixture
def credential_store():
    store = MagicMock()
    store.get_credential.return_value = ChannelCredential(
        instance_id="0",
        api_token="tok",
        source_number="5511999990000",
        app_name="clinica-app",
    )
    return store


def test_success_takes_over_conversation(db, credential_store, make_conversation, conversation_key):
    make_conversation(conversation_key, state=ConversationState.AWAITING_HUMAN)
    with patch(
        "app.adapters.gupshup.GupshupAdapter.send",
        return_value=OutboundSendResult(success=True, platform_message_id="m1", status_code=202),
    ):
        ack = SendHumanMessageCommand(db, credential_store=credential_store).execute(
            conversation_key, "Oi, aqui é o Paulo", "0"
        )

    assert ack.state == ConversationState.HUMAN_ACTIVE
    assert ack.event.sender == Sender.AGENT
    latest = ConversationLedgerService(db).get_latest(conversation_key)
    assert latest.state == ConversationState.HUMAN_ACTIVE
    assert latest.sender == Sender.AGENT
    credential_store.get_credential.assert_called_once_with("0")


def test_failure_mutates_nothing(db, credential_store, make_conversation, conversation_key):
    make_conversation(conversation_key, state=ConversationState.AWAITING_HUMAN)
    ledger = ConversationLedgerService(db)
    before = len(ledger.get_history(conversation_key))

    with patch(
        "app.adapters.gupshup.GupshupAdapter.send",
        return_value=OutboundSendResult(success=False, status_code=500),
    ):
        with pytest.raises(DeliveryError) as exc:
            SendHumanMessageCommand(db, credential_store=credential_store).execute(
                conversation_key, "Oi", "0"
            )

    assert exc.value.provider_status == 500
    assert len(ledger.get_history(conversation_key)) == before
    assert ledger.get_latest(conversation_key).state == ConversationState.AWAITING_HUMAN


def test_missing_credential(db, conversation_key):
    store = MagicMock()
    store.get_credential.side_effect = ChannelInstanceNotFoundError("0")
    with pytest.raises(ChannelInstanceNotFoundError):
        SendHumanMessageCommand(db, credential_store=store).execute(conversation_key, "Oi", "0")


def test_blank_text(db, credential_store, conversation_key):
    with pytest.raises(ValidationError):
        SendHumanMessageCommand(db, credential_store=credential_store).execute(
            conversation_key, "   ", "0"
        )
    credential_store.get_credential.assert_not_called()
