"""
Token identifier and secret generators — pure, side-effect-free functions.

Both use the ``secrets`` module: the secret is a bearer credential and the
identifier must not be guessable either.
"""

from __future__ import annotations

import secrets

TOKEN_ID_PREFIX = "token_"
TOKEN_ID_BYTES = 8
TOKEN_SECRET_BYTES = 32


def generate_token_id() -> str:
    """Generate a token identifier: ``token_`` + 16 lowercase hex characters."""
    return f"{TOKEN_ID_PREFIX}{secrets.token_hex(TOKEN_ID_BYTES)}"


def generate_token_secret() -> str:
    """Generate a bearer secret of 64 lowercase hex characters (32 random bytes)."""
    return secrets.token_hex(TOKEN_SECRET_BYTES)
