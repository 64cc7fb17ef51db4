"""Commit a booking, re-validating any discount offer against the live attestation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ticketattest.client.backend_client import Checkout
from ticketattest.client.context import SessionContext
from ticketattest.client.models import BookingReceipt, BookingRequest, DiscountOffer
from ticketattest.errors import StaleDiscountOffer

logger = logging.getLogger(__name__)


class BookingCoordinator:
    def __init__(self, context: SessionContext, checkout: Checkout) -> None:
        self._context = context
        self._checkout = checkout

    def _validate_offer(self, offer: DiscountOffer, selected_room: str) -> None:
        attestation = self._context.active_attestation
        if attestation is None:
            raise StaleDiscountOffer("No ticket is attested for this session")
        if attestation.token.token_id != offer.bound_token_id:
            raise StaleDiscountOffer("Discount offer is bound to a different ticket than the attested one")
        if attestation.attestation_id != offer.attestation_id:
            raise StaleDiscountOffer("Discount offer was earned by an earlier attestation")
        if not self._context.session.holds(offer.bound_token_id):
            raise StaleDiscountOffer("Attested ticket is no longer part of the negotiated set")
        if offer.room_id != selected_room:
            raise StaleDiscountOffer("Discount offer was made for a different room")

    async def book(
        self, form: Mapping[str, Any], selected_room: str, current_offer: DiscountOffer | None
    ) -> BookingReceipt:
        if current_offer is not None:
            try:
                self._validate_offer(current_offer, selected_room)
            except StaleDiscountOffer as error:
                logger.warning("Blocked booking for room %s: %s", selected_room, error.message)
                raise

        request = BookingRequest(room_id=selected_room, form_data=dict(form), discount_offer=current_offer)
        receipt = await self._checkout.submit(request)
        logger.info("Booking %s committed for room %s", receipt.booking_id, receipt.room_id)
        return receipt
