"""Request/response frames exchanged with the sandboxed token origin."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import uuid


OP_LIST_TOKENS = "tokens.list"


@dataclass(slots=True)
class RequestFrame:
    id: str
    op: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "op": self.op, "payload": self.payload}


def new_request(op: str, payload: dict[str, Any]) -> RequestFrame:
    return RequestFrame(id=str(uuid.uuid4()), op=op, payload=payload)


def ok_response(req_id: str, result: dict[str, Any]) -> dict[str, Any]:
    return {"id": req_id, "ok": True, "result": result}


def error_response(req_id: str, error: str, error_type: str = "error") -> dict[str, Any]:
    return {"id": req_id, "ok": False, "error": error, "error_type": error_type}


def challenge_message(blob: bytes, nonce: bytes) -> bytes:
    """Bytes a holder signs to answer a challenge: blob first, then nonce."""
    return blob + nonce
