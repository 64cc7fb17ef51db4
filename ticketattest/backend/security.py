"""Security helpers for challenge issuing and signature verification."""

from __future__ import annotations

import json
import secrets
from typing import Any

import base58
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey


NONCE_BYTES = 32


def generate_nonce() -> bytes:
    """Generate a fresh random nonce for a one-time challenge."""
    return secrets.token_bytes(NONCE_BYTES)


def parse_authentication_blob(blob: bytes) -> dict[str, str] | None:
    """Decode a token identity claim, returning None when it is not a valid claim."""
    try:
        claim: Any = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(claim, dict):
        return None
    token_id = claim.get("tokenId")
    issuer_origin = claim.get("issuerOrigin")
    if not isinstance(token_id, str) or not isinstance(issuer_origin, str):
        return None
    return {"tokenId": token_id, "issuerOrigin": issuer_origin}


def verify_signature(holder: str, message: bytes, signature: str) -> bool:
    """Verify a base58 Ed25519 signature made by the base58 holder address."""
    try:
        verify_key = VerifyKey(base58.b58decode(holder))
        verify_key.verify(message, base58.b58decode(signature))
    except (BadSignatureError, ValueError, TypeError):
        return False
    return True
