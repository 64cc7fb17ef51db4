from datetime import datetime, timezone

import httpx
import pytest

from ticketattest.client.backend_client import BackendClient
from ticketattest.client.discount import DiscountMatcher
from ticketattest.client.models import Attestation, Token
from ticketattest.errors import CatalogUnavailable, UnknownTicketClass

OUTLET_ORIGIN = "http://outlet.test/outlet/"


def _attestation(token_id: str, ticket_class: str) -> Attestation:
    return Attestation(
        token=Token(token_id=token_id, ticket_class=ticket_class, issuer_origin=OUTLET_ORIGIN),
        signature="sig",
        verified_at=datetime(2026, 10, 19, tzinfo=timezone.utc),
        attestation_id="att-1",
    )


@pytest.mark.asyncio
async def test_offer_is_bound_to_attested_token(merchant_client) -> None:
    matcher = DiscountMatcher(BackendClient(merchant_client))

    offer = await matcher.apply_discount(_attestation("A1", "speaker"), room_id="deluxe")

    assert offer.percentage == 20
    assert offer.bound_token_id == "A1"
    assert offer.attestation_id == "att-1"
    assert offer.room_id == "deluxe"


@pytest.mark.asyncio
async def test_unlisted_class_is_not_a_zero_percent_offer(merchant_client) -> None:
    matcher = DiscountMatcher(BackendClient(merchant_client))

    with pytest.raises(UnknownTicketClass):
        await matcher.apply_discount(_attestation("V1", "vip"))


@pytest.mark.asyncio
async def test_malformed_catalog_reply_is_catalog_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ticket_class": "speaker", "discount": "lots"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://merchant.test")
    matcher = DiscountMatcher(BackendClient(client))

    with pytest.raises(CatalogUnavailable):
        await matcher.apply_discount(_attestation("A1", "speaker"))


@pytest.mark.asyncio
async def test_unreachable_catalog_is_catalog_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://merchant.test")

    with pytest.raises(CatalogUnavailable, match="unreachable"):
        await DiscountMatcher(BackendClient(client)).apply_discount(_attestation("A1", "speaker"))
