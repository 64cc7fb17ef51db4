"""FastAPI endpoints for challenges, the discount catalog and booking checkout."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, NoReturn

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from ticketattest.backend.catalog import Catalog, create_catalog
from ticketattest.backend.config import load_settings
from ticketattest.backend.engine import DiscountClaim, resolve_booking_discount, verify_signed_challenge
from ticketattest.backend.registry import TicketRegistry, load_ticket_registry
from ticketattest.backend.store import AttestationStore, create_store
from ticketattest.errors import (
    CatalogUnavailable,
    ChallengeAlreadyUsed,
    ChallengeExpired,
    ChallengeNotFound,
    RoomNotFound,
    SignatureInvalid,
    StaleDiscountOffer,
    TicketAttestError,
    TokenNotHeld,
    UnknownTicketClass,
    error_detail,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[TicketAttestError], int] = {
    ChallengeNotFound: 404,
    ChallengeAlreadyUsed: 409,
    ChallengeExpired: 410,
    SignatureInvalid: 401,
    TokenNotHeld: 403,
    UnknownTicketClass: 404,
    RoomNotFound: 404,
    StaleDiscountOffer: 409,
    CatalogUnavailable: 503,
}


class ChallengeResponse(BaseModel):
    challenge_id: str
    nonce: str
    expiry: datetime


class VerifyChallengeRequest(BaseModel):
    challenge_id: str = Field(min_length=1)
    signature: str = Field(min_length=1)
    blob: str = Field(min_length=2, pattern=r"^([0-9a-fA-F]{2})+$")
    holder: str = Field(min_length=1)


class AttestationResponse(BaseModel):
    attestation_id: str
    token_id: str
    ticket_class: str
    issuer_origin: str
    verified_at: datetime


class RoomResponse(BaseModel):
    room_id: str
    name: str
    price_cents: int


class DiscountResponse(BaseModel):
    ticket_class: str
    discount: int = Field(ge=0, le=100)


class DiscountClaimBody(BaseModel):
    attestation_id: str = Field(min_length=1)
    bound_token_id: str = Field(min_length=1)
    percentage: int = Field(ge=0, le=100)


class BookingBody(BaseModel):
    room_id: str = Field(min_length=1)
    form: dict[str, Any] = Field(default_factory=dict)
    discount: DiscountClaimBody | None = None


class BookingResponse(BaseModel):
    booking_id: str
    room_id: str
    base_price_cents: int
    discount_percentage: int
    total_price_cents: int
    created_at: datetime


def raise_http(error: TicketAttestError) -> NoReturn:
    status_code = ERROR_STATUS.get(type(error), 400)
    raise HTTPException(status_code=status_code, detail=error_detail(error)) from error


def create_app(
    store: AttestationStore | None = None,
    catalog: Catalog | None = None,
    registry: TicketRegistry | None = None,
) -> FastAPI:
    app = FastAPI(title="Ticket Attestation API", version="0.1.0")
    settings = load_settings()
    attestation_store = store if store is not None else create_store(settings.database_url, settings.challenge_ttl_seconds)
    room_catalog = catalog if catalog is not None else create_catalog(settings.catalog_dir)
    ticket_registry = registry if registry is not None else load_ticket_registry(settings.tickets_file)

    def get_store() -> AttestationStore:
        return attestation_store

    def get_catalog() -> Catalog:
        return room_catalog

    def get_registry() -> TicketRegistry:
        return ticket_registry

    @app.post("/api/challenges", response_model=ChallengeResponse)
    def issue_challenge(local_store: AttestationStore = Depends(get_store)) -> ChallengeResponse:
        challenge = local_store.issue_challenge()
        return ChallengeResponse(
            challenge_id=challenge.challenge_id,
            nonce=challenge.nonce.hex(),
            expiry=challenge.expires_at,
        )

    @app.post("/api/challenges/verify", response_model=AttestationResponse)
    def verify_challenge(
        payload: VerifyChallengeRequest,
        local_store: AttestationStore = Depends(get_store),
        local_registry: TicketRegistry = Depends(get_registry),
    ) -> AttestationResponse:
        try:
            record = verify_signed_challenge(
                store=local_store,
                registry=local_registry,
                challenge_id=payload.challenge_id,
                blob=bytes.fromhex(payload.blob),
                signature=payload.signature,
                holder=payload.holder,
            )
        except TicketAttestError as error:
            raise_http(error)
        return AttestationResponse(
            attestation_id=record.attestation_id,
            token_id=record.token_id,
            ticket_class=record.ticket_class,
            issuer_origin=record.issuer_origin,
            verified_at=record.verified_at,
        )

    @app.get("/api/rooms", response_model=list[RoomResponse])
    def list_rooms(local_catalog: Catalog = Depends(get_catalog)) -> list[RoomResponse]:
        try:
            rooms = local_catalog.list_rooms()
        except TicketAttestError as error:
            raise_http(error)
        return [RoomResponse(room_id=room.room_id, name=room.name, price_cents=room.price_cents) for room in rooms]

    @app.get("/api/discounts/{ticket_class}", response_model=DiscountResponse)
    def get_discount(ticket_class: str, local_catalog: Catalog = Depends(get_catalog)) -> DiscountResponse:
        try:
            discount = local_catalog.get_discount(ticket_class)
        except TicketAttestError as error:
            raise_http(error)
        if discount is None:
            raise_http(UnknownTicketClass(f"No discount available for ticket class {ticket_class!r}"))
        return DiscountResponse(ticket_class=ticket_class, discount=discount)

    @app.post("/api/bookings", response_model=BookingResponse)
    def create_booking(
        payload: BookingBody,
        local_store: AttestationStore = Depends(get_store),
        local_catalog: Catalog = Depends(get_catalog),
    ) -> BookingResponse:
        try:
            room = local_catalog.get_room(payload.room_id)
        except TicketAttestError as error:
            raise_http(error)
        if room is None:
            raise_http(RoomNotFound(f"Room {payload.room_id!r} is unknown"))

        claim = None
        if payload.discount is not None:
            claim = DiscountClaim(
                attestation_id=payload.discount.attestation_id,
                bound_token_id=payload.discount.bound_token_id,
                percentage=payload.discount.percentage,
            )
        try:
            percentage = resolve_booking_discount(store=local_store, catalog=local_catalog, claim=claim)
        except TicketAttestError as error:
            raise_http(error)

        booking = local_store.create_booking(
            room=room,
            discount_percentage=percentage,
            attestation_id=claim.attestation_id if claim is not None else None,
        )
        if booking is None:
            raise_http(StaleDiscountOffer("Attestation was already redeemed by another booking"))

        logger.info("Booked room %s with %s%% discount", booking.room_id, booking.discount_percentage)
        return BookingResponse(
            booking_id=booking.booking_id,
            room_id=booking.room_id,
            base_price_cents=booking.base_price_cents,
            discount_percentage=booking.discount_percentage,
            total_price_cents=booking.total_price_cents,
            created_at=booking.created_at,
        )

    return app


app = create_app()
