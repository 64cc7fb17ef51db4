"""Page-level flow: negotiate tickets, attest one, price the discount and book."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Callable

import httpx

from ticketattest.client.authenticator import Authenticator
from ticketattest.client.backend_client import BackendClient
from ticketattest.client.booking import BookingCoordinator
from ticketattest.client.config import NegotiatorOptions
from ticketattest.client.context import SessionContext
from ticketattest.client.discount import DiscountMatcher
from ticketattest.client.models import BookingReceipt, DiscountOffer, Room, Token
from ticketattest.client.negotiator import Negotiator, TokenFilters
from ticketattest.client.signer import Signer
from ticketattest.client.token_source import HttpTokenChannel, TokenChannel, TokenSource
from ticketattest.errors import AttemptSuperseded

logger = logging.getLogger(__name__)


class BookingFlow:
    def __init__(
        self,
        context: SessionContext,
        negotiator: Negotiator,
        authenticator: Authenticator,
        matcher: DiscountMatcher,
        coordinator: BookingCoordinator,
        backend: BackendClient,
    ) -> None:
        self.context = context
        self.negotiator = negotiator
        self.authenticator = authenticator
        self.matcher = matcher
        self.coordinator = coordinator
        self._backend = backend
        self.tokens: list[Token] = []
        self.rooms: list[Room] = []
        self.offer: DiscountOffer | None = None
        self.selected_room: str | None = None

    def _on_tokens(self, tokens: list[Token]) -> None:
        self.tokens = tokens

    async def start(self) -> None:
        """Negotiate the visitor's tickets and load the bookable rooms."""
        await self.negotiator.negotiate(self._on_tokens)
        self.rooms = await self._backend.list_rooms()

    def select_room(self, room_id: str) -> None:
        """Change the room being booked; an offer made for another room is dropped."""
        if self.offer is not None and self.offer.room_id != room_id:
            logger.info("Dropping discount offer for room %s after switching to %s", self.offer.room_id, room_id)
            self.offer = None
        self.selected_room = room_id

    async def select_ticket(self, token: Token, room_id: str | None = None) -> DiscountOffer:
        """Attest the chosen ticket and turn its class into a discount offer for the selected room."""
        if room_id is not None:
            self.select_room(room_id)
        if self.selected_room is None:
            raise ValueError("a room must be selected before a ticket")
        self.offer = None
        attestation = await self.authenticator.attest(token)
        offer = await self.matcher.apply_discount(attestation, room_id=self.selected_room)
        if self.context.active_attestation is not attestation:
            raise AttemptSuperseded("Ticket selection changed while the discount was being priced")
        self.offer = offer
        return offer

    async def book(self, form: Mapping[str, Any], room_id: str) -> BookingReceipt:
        receipt = await self.coordinator.book(form, room_id, self.offer)
        self.offer = None
        return receipt


def build_flow(
    http_client: httpx.AsyncClient,
    options: NegotiatorOptions,
    signer: Signer,
    filters: TokenFilters | None = None,
    token_channel: TokenChannel | None = None,
    on_frame_visibility: Callable[[bool], None] | None = None,
) -> BookingFlow:
    """Wire a fresh session context and its components against one merchant backend."""
    context = SessionContext()
    backend = BackendClient(http_client)
    channel = token_channel if token_channel is not None else HttpTokenChannel(options.tokens_origin, http_client)
    negotiator = Negotiator(
        filters,
        options,
        context,
        TokenSource(channel, holder=signer.address),
        on_frame_visibility=on_frame_visibility,
    )
    return BookingFlow(
        context=context,
        negotiator=negotiator,
        authenticator=Authenticator(context, signer, backend),
        matcher=DiscountMatcher(backend),
        coordinator=BookingCoordinator(context, backend),
        backend=backend,
    )
