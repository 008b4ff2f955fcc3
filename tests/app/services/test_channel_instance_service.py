"""Tests for ChannelInstanceService (credential store)."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import ChannelInstanceNotFoundError, PersistenceError
from app.schemas.channel_instance import ChannelInstanceTokenUpdate
from app.services.channel_instance_service import ChannelInstanceService


def test_get_credential(db, setup_channel_instance, channel_token):
    credential = ChannelInstanceService(db).get_credential("0")
    assert credential.api_token == channel_token
    assert credential.source_number == "5511999990000"
    assert credential.app_name == "clinica-app"


def test_get_credential_missing_instance(db):
    with pytest.raises(ChannelInstanceNotFoundError) as exc:
        ChannelInstanceService(db).get_credential("3")
    assert exc.value.message == "No API token set for this instance"


def test_get_credential_falls_back_to_settings(db, monkeypatch):
    monkeypatch.setenv("GUPSHUP_SOURCE_NUMBER", "551130000000")
    monkeypatch.setenv("GUPSHUP_APP_NAME", "default-app")
    svc = ChannelInstanceService(db)
    svc.upsert_token("1", ChannelInstanceTokenUpdate(token="tok-1"))
    credential = svc.get_credential("1")
    assert credential.source_number == "551130000000"
    assert credential.app_name == "default-app"


def test_upsert_token_encrypts_at_rest(db):
    svc = ChannelInstanceService(db)
    instance = svc.upsert_token("2", ChannelInstanceTokenUpdate(token="plain-token"))
    assert instance.connected is True
    assert b"plain-token" not in instance.encrypted_token
    assert svc.get_credential("2").api_token == "plain-token"


def test_blank_token_disconnects(db, setup_channel_instance):
    svc = ChannelInstanceService(db)
    instance = svc.upsert_token("0", ChannelInstanceTokenUpdate(token="  "))
    assert instance.connected is False
    # originating number is kept when not provided
    assert instance.source_number == "5511999990000"
    with pytest.raises(ChannelInstanceNotFoundError):
        svc.get_credential("0")


def test_list_instances(db, setup_channel_instance, monkeypatch):
    monkeypatch.setenv("CHANNEL_INSTANCE_COUNT", "3")
    listing = ChannelInstanceService(db).list_instances()
    assert [i.id for i in listing] == ["0", "1", "2"]
    assert [i.connected for i in listing] == [True, False, False]
    assert listing[0].token_hint.endswith(
        ChannelInstanceService(db).get_credential("0").api_token[-4:]
    )


def test_is_known_instance(db, monkeypatch):
    monkeypatch.setenv("CHANNEL_INSTANCE_COUNT", "2")
    svc = ChannelInstanceService(db)
    assert svc.is_known_instance("1")
    assert not svc.is_known_instance("2")
    assert not svc.is_known_instance("7")


def test_default_sentinel_is_known(db):
    assert ChannelInstanceService(db).is_known_instance("default")


def test_store_failure_raises_persistence_error(db):
    svc = ChannelInstanceService(db)
    with patch.object(
        db, "query", side_effect=OperationalError("SELECT", {}, Exception("down"))
    ):
        with pytest.raises(PersistenceError):
            svc.get_credential("0")
        with pytest.raises(PersistenceError):
            svc.list_instances()
