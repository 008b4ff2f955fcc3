"""Encryption of channel provider tokens at rest."""

from __future__ import annotations

from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from app.config import get_settings
from app.core.errors import PersistenceError


def _get_fernet() -> Fernet:
    """Get a Fernet instance with the credential master key."""
    settings = get_settings()
    key = settings.credential_master_key or settings.fernet_key
    if not key:
        raise ValueError(
            "CREDENTIAL_MASTER_KEY or FERNET_KEY must be set for credential encryption"
        )
    return Fernet(key.encode() if isinstance(key, str) else key)


def encrypt_token(token: str) -> bytes:
    return _get_fernet().encrypt(token.encode())


def decrypt_token(encrypted: Optional[bytes]) -> Optional[str]:
    """Decrypt a stored token. None stays None."""
    if not encrypted:
        return None
    try:
        return _get_fernet().decrypt(encrypted).decode()
    except InvalidToken as e:
        raise PersistenceError("Stored channel token cannot be decrypted") from e


def mask_token(token: Optional[str]) -> Optional[str]:
    """Last four characters only, for listings."""
    if not token:
        return None
    if len(token) <= 4:
        return "*" * len(token)
    return "*" * (len(token) - 4) + token[-4:]
