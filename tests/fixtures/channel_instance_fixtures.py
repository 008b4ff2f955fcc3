"""Fixtures for channel instances (credential store rows)."""

import pytest

from app.core.credentials import encrypt_token
from app.models.channel_instance import ChannelInstance


@pytest.fixture(scope="function")
def channel_token(faker):
    return faker.sha256()


@pytest.fixture(scope="function")
def setup_channel_instance(db, channel_token):
    """Slot "0" connected with a token, originating number and app name."""
    instance = ChannelInstance(
        id="0",
        encrypted_token=encrypt_token(channel_token),
        source_number="5511999990000",
        app_name="clinica-app",
    )
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance
