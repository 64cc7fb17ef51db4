"""Third-party token outlet: the ``tokensOrigin`` endpoint that lists a visitor's tickets."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from ticketattest.backend.registry import TicketRegistry
from ticketattest.protocol import OP_LIST_TOKENS, error_response, ok_response


def handle_frame(registry: TicketRegistry, frame: dict[str, Any]) -> dict[str, Any]:
    req_id = str(frame.get("id", ""))
    if not req_id:
        return error_response(req_id, "frame id is required", error_type="protocol")

    op = frame.get("op")
    if op != OP_LIST_TOKENS:
        return error_response(req_id, f"unsupported op {op!r}", error_type="protocol")

    payload = frame.get("payload")
    holder = payload.get("holder") if isinstance(payload, dict) else None
    if not isinstance(holder, str) or not holder:
        return error_response(req_id, "holder is required", error_type="validation")

    tokens = [
        {
            "token_id": ticket.token_id,
            "ticket_class": ticket.ticket_class,
            "issuer_origin": ticket.issuer_origin,
        }
        for ticket in registry.tickets_for_holder(holder)
    ]
    return ok_response(req_id, {"tokens": tokens})


def create_outlet_app(registry: TicketRegistry) -> FastAPI:
    app = FastAPI(title="Ticket Outlet", version="0.1.0")

    @app.post("/outlet/")
    def outlet(frame: dict[str, Any]) -> dict[str, Any]:
        return handle_frame(registry, frame)

    return app
