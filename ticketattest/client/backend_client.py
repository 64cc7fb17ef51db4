"""HTTP client for the merchant backend: challenges, catalog and checkout."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field, ValidationError

from ticketattest.client.models import BookingReceipt, BookingRequest, Challenge, Room
from ticketattest.errors import (
    CatalogUnavailable,
    ChallengeUnavailable,
    CheckoutFailed,
    TicketAttestError,
    error_for_code,
)


@dataclass(frozen=True)
class VerificationResult:
    attestation_id: str
    token_id: str
    ticket_class: str
    issuer_origin: str
    verified_at: datetime


class ChallengeService(Protocol):
    async def issue_challenge(self) -> Challenge:
        """Request a fresh one-time challenge."""

    async def verify(self, challenge_id: str, signature: str, blob: bytes, holder: str) -> VerificationResult:
        """Submit a signed challenge; raise the typed attestation error on rejection."""


class DiscountCatalog(Protocol):
    async def get_discount(self, ticket_class: str) -> int:
        """Return the discount percentage for a ticket class."""


class Checkout(Protocol):
    async def submit(self, request: BookingRequest) -> BookingReceipt:
        """Commit a booking request."""


class _ChallengePayload(BaseModel):
    challenge_id: str = Field(min_length=1)
    nonce: str = Field(min_length=2, pattern=r"^([0-9a-fA-F]{2})+$")
    expiry: datetime


class _AttestationPayload(BaseModel):
    attestation_id: str
    token_id: str
    ticket_class: str
    issuer_origin: str
    verified_at: datetime


class _DiscountPayload(BaseModel):
    ticket_class: str
    discount: int = Field(ge=0, le=100)


class _RoomPayload(BaseModel):
    room_id: str
    name: str
    price_cents: int


class _BookingPayload(BaseModel):
    booking_id: str
    room_id: str
    base_price_cents: int
    discount_percentage: int
    total_price_cents: int
    created_at: datetime


def _raise_for_error(response: httpx.Response, fallback: type[TicketAttestError]) -> None:
    if response.is_success:
        return
    detail: Any = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail")
    if isinstance(detail, dict):
        error = error_for_code(str(detail.get("code", "")), detail.get("message"))
        if error is not None:
            raise error
    raise fallback(f"backend answered HTTP {response.status_code}")


class BackendClient:
    """Talks to the merchant API through an ``httpx.AsyncClient`` configured with its base URL."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http_client = http_client

    async def _request(
        self, method: str, url: str, fallback: type[TicketAttestError], json: Any = None
    ) -> Any:
        try:
            response = await self._http_client.request(method, url, json=json)
        except httpx.HTTPError as error:
            raise fallback(f"backend unreachable: {error}") from error
        _raise_for_error(response, fallback)
        try:
            return response.json()
        except ValueError as error:
            raise fallback("backend returned a non-JSON body") from error

    async def issue_challenge(self) -> Challenge:
        body = await self._request("POST", "/api/challenges", ChallengeUnavailable)
        try:
            payload = _ChallengePayload.model_validate(body)
        except ValidationError as error:
            raise ChallengeUnavailable("backend returned a malformed challenge") from error
        return Challenge(
            challenge_id=payload.challenge_id,
            nonce=bytes.fromhex(payload.nonce),
            expiry=payload.expiry,
        )

    async def verify(self, challenge_id: str, signature: str, blob: bytes, holder: str) -> VerificationResult:
        body = await self._request(
            "POST",
            "/api/challenges/verify",
            ChallengeUnavailable,
            json={"challenge_id": challenge_id, "signature": signature, "blob": blob.hex(), "holder": holder},
        )
        try:
            payload = _AttestationPayload.model_validate(body)
        except ValidationError as error:
            raise ChallengeUnavailable("backend returned a malformed attestation") from error
        return VerificationResult(**payload.model_dump())

    async def get_discount(self, ticket_class: str) -> int:
        body = await self._request("GET", f"/api/discounts/{quote(ticket_class, safe='')}", CatalogUnavailable)
        try:
            payload = _DiscountPayload.model_validate(body)
        except ValidationError as error:
            raise CatalogUnavailable("catalog returned a malformed discount") from error
        return payload.discount

    async def list_rooms(self) -> list[Room]:
        body = await self._request("GET", "/api/rooms", CatalogUnavailable)
        if not isinstance(body, list):
            raise CatalogUnavailable("catalog returned a malformed room list")
        try:
            rooms = [_RoomPayload.model_validate(entry) for entry in body]
        except ValidationError as error:
            raise CatalogUnavailable("catalog returned a malformed room") from error
        return [Room(room_id=room.room_id, name=room.name, price_cents=room.price_cents) for room in rooms]

    async def submit(self, request: BookingRequest) -> BookingReceipt:
        discount = None
        if request.discount_offer is not None:
            discount = {
                "attestation_id": request.discount_offer.attestation_id,
                "bound_token_id": request.discount_offer.bound_token_id,
                "percentage": request.discount_offer.percentage,
            }
        body = await self._request(
            "POST",
            "/api/bookings",
            CheckoutFailed,
            json={"room_id": request.room_id, "form": request.form_data, "discount": discount},
        )
        try:
            payload = _BookingPayload.model_validate(body)
        except ValidationError as error:
            raise CheckoutFailed("checkout returned a malformed receipt") from error
        return BookingReceipt(**payload.model_dump())
