from __future__ import annotations

import hashlib
import secrets


def new_token() -> str:
    """Random bearer token handed to the client once."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    # only the digest is persisted
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
