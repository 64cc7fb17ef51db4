"""Domain models for challenge, attestation and booking persistence contracts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ChallengeRecord:
    challenge_id: str
    nonce: bytes
    expires_at: datetime
    used_at: datetime | None = None


@dataclass(frozen=True)
class AttestationRecord:
    attestation_id: str
    token_id: str
    ticket_class: str
    issuer_origin: str
    holder: str
    verified_at: datetime
    redeemed_at: datetime | None = None


@dataclass(frozen=True)
class TicketRecord:
    token_id: str
    ticket_class: str
    issuer_origin: str
    holder: str


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    price_cents: int


@dataclass(frozen=True)
class CreatedBooking:
    booking_id: str
    room_id: str
    base_price_cents: int
    discount_percentage: int
    total_price_cents: int
    created_at: datetime
