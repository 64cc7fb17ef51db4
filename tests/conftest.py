from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from ticketattest.backend.api import create_app
from ticketattest.backend.catalog import InMemoryCatalog
from ticketattest.backend.models import TicketRecord
from ticketattest.backend.outlet import create_outlet_app
from ticketattest.backend.registry import InMemoryTicketRegistry
from ticketattest.backend.store import InMemoryAttestationStore
from ticketattest.client.signer import Ed25519Signer

OUTLET_ORIGIN = "http://outlet.test/outlet/"
MERCHANT_URL = "http://merchant.test"


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def holder() -> Ed25519Signer:
    return Ed25519Signer.from_seed(b"\x01" * 32)


@pytest.fixture
def stranger() -> Ed25519Signer:
    return Ed25519Signer.from_seed(b"\x02" * 32)


@pytest.fixture
def registry(holder: Ed25519Signer) -> InMemoryTicketRegistry:
    return InMemoryTicketRegistry(
        tickets=[
            TicketRecord(token_id="A1", ticket_class="speaker", issuer_origin=OUTLET_ORIGIN, holder=holder.address),
            TicketRecord(token_id="A2", ticket_class="general", issuer_origin=OUTLET_ORIGIN, holder=holder.address),
            TicketRecord(token_id="V1", ticket_class="vip", issuer_origin=OUTLET_ORIGIN, holder=holder.address),
            TicketRecord(token_id="X1", ticket_class="sponsor", issuer_origin="http://elsewhere.test/", holder=holder.address),
        ]
    )


@pytest.fixture
def store(clock: FakeClock) -> InMemoryAttestationStore:
    return InMemoryAttestationStore(challenge_ttl_seconds=120, clock=clock)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(discounts={"general": 10, "speaker": 20, "sponsor": 30})


@pytest.fixture
def merchant_app(store, catalog, registry):
    return create_app(store=store, catalog=catalog, registry=registry)


@pytest.fixture
def outlet_app(registry):
    return create_outlet_app(registry)


@pytest.fixture
def merchant_client(merchant_app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=merchant_app), base_url=MERCHANT_URL)


@pytest.fixture
def outlet_client(outlet_app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=outlet_app), base_url="http://outlet.test")
