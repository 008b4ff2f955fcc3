"""Conversation key derivation from a patient contact address."""

from __future__ import annotations

import re
from typing import Any

_NON_DIGITS = re.compile(r"\D+")


def normalize_conversation_key(raw: Any) -> str:
    """
    Canonical conversation key: the digits of the patient's WhatsApp address.

    Accepts forms like "+55 (11) 98765-4321", "5511987654321@c.us" or an int.
    Returns "" when nothing usable is left; callers treat that as missing.
    """
    if raw is None:
        return ""
    return _NON_DIGITS.sub("", str(raw))
