"""
Transfer-to-human phrase detection for assistant replies.

Matching is substring containment on normalized text: lowercase, diacritics
removed, whitespace collapsed, terminal `.`, `!` and `?` stripped. A phrase
therefore triggers anywhere in the reply, mid-sentence included.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable, Optional

TERMINAL_PUNCTUATION = ".!?"
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize text for trigger matching.

    Example:
        >>> normalize_text("Vou te Transferir para um atendente HUMANO!!")
        'vou te transferir para um atendente humano'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    lowered = _WHITESPACE.sub(" ", stripped.lower()).strip()
    return lowered.rstrip(TERMINAL_PUNCTUATION).strip()


def contains_transfer_trigger(text: Optional[str], phrases: Iterable[str]) -> bool:
    normalized = normalize_text(text)
    if not normalized:
        return False
    for phrase in phrases:
        needle = normalize_text(phrase)
        if needle and needle in normalized:
            return True
    return False
