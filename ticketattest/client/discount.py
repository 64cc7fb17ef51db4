"""Map an attested ticket class onto a discount offer bound to that ticket."""

from __future__ import annotations

import logging

from ticketattest.client.backend_client import DiscountCatalog
from ticketattest.client.models import Attestation, DiscountOffer

logger = logging.getLogger(__name__)


class DiscountMatcher:
    def __init__(self, catalog: DiscountCatalog) -> None:
        self._catalog = catalog

    async def apply_discount(self, attestation: Attestation, room_id: str | None = None) -> DiscountOffer:
        """Look up the class discount and bind it to the attested token.

        Raises:
            UnknownTicketClass: the catalog has no entry for the class; never
                reported as a 0% offer.
            CatalogUnavailable: the catalog could not be read.
        """
        token = attestation.token
        percentage = await self._catalog.get_discount(token.ticket_class)
        logger.info("Ticket class %s grants %d%% discount", token.ticket_class, percentage)
        return DiscountOffer(
            percentage=percentage,
            bound_token_id=token.token_id,
            attestation_id=attestation.attestation_id,
            room_id=room_id,
        )
