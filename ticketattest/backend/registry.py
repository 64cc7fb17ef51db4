"""Ticket ownership lookup standing in for the issuer's on-chain records."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ticketattest.backend.models import TicketRecord


class TicketRegistry(Protocol):
    def get_ticket(self, issuer_origin: str, token_id: str) -> TicketRecord | None:
        """Return the ticket issued by an origin under a token id."""

    def tickets_for_holder(self, holder: str) -> list[TicketRecord]:
        """Return every ticket held by a wallet address."""


@dataclass
class InMemoryTicketRegistry:
    tickets: list[TicketRecord] = field(default_factory=list)

    def get_ticket(self, issuer_origin: str, token_id: str) -> TicketRecord | None:
        for ticket in self.tickets:
            if ticket.issuer_origin == issuer_origin and ticket.token_id == token_id:
                return ticket
        return None

    def tickets_for_holder(self, holder: str) -> list[TicketRecord]:
        return [ticket for ticket in self.tickets if ticket.holder == holder]


def load_ticket_registry(tickets_file: str | None) -> InMemoryTicketRegistry:
    """Load tickets from a JSON list of ``{tokenId, ticketClass, issuerOrigin, holder}`` entries."""
    if not tickets_file:
        return InMemoryTicketRegistry()
    entries = json.loads(Path(tickets_file).read_text(encoding="utf-8"))
    return InMemoryTicketRegistry(
        tickets=[
            TicketRecord(
                token_id=str(entry["tokenId"]),
                ticket_class=str(entry["ticketClass"]),
                issuer_origin=str(entry["issuerOrigin"]),
                holder=str(entry["holder"]),
            )
            for entry in entries
        ]
    )
