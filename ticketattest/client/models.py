"""Value objects flowing through negotiation, attestation and booking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ticketattest.errors import DiscoveryFailed


class DiscoveryStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"
    FAILED = "failed"


@dataclass(frozen=True)
class Token:
    token_id: str
    ticket_class: str
    issuer_origin: str


@dataclass(frozen=True)
class NegotiationSession:
    tokens: tuple[Token, ...] = ()
    status: DiscoveryStatus = DiscoveryStatus.PENDING
    error: DiscoveryFailed | None = None
    round: int = 0

    def holds(self, token_id: str) -> bool:
        return any(token.token_id == token_id for token in self.tokens)


@dataclass(frozen=True)
class Challenge:
    challenge_id: str
    nonce: bytes
    expiry: datetime


@dataclass(frozen=True)
class Attestation:
    token: Token
    signature: str
    verified_at: datetime
    attestation_id: str


@dataclass(frozen=True)
class DiscountOffer:
    percentage: int
    bound_token_id: str
    attestation_id: str
    room_id: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.percentage <= 100:
            raise ValueError(f"discount percentage out of range: {self.percentage}")


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    price_cents: int


@dataclass(frozen=True)
class BookingRequest:
    room_id: str
    form_data: dict[str, Any] = field(default_factory=dict)
    discount_offer: DiscountOffer | None = None


@dataclass(frozen=True)
class BookingReceipt:
    booking_id: str
    room_id: str
    base_price_cents: int
    discount_percentage: int
    total_price_cents: int
    created_at: datetime
