"""Opaque identifier and token generation."""

from __future__ import annotations

import secrets
import string

ID_ALPHABET = string.ascii_letters + string.digits + "_-"
DEFAULT_ID_LENGTH = 21


def new_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """Return a URL-safe random identifier of exactly ``length`` characters."""
    if length < 1:
        raise ValueError("Identifier length must be positive")
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))
