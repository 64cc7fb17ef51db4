import base58
import pytest
from nacl.signing import SigningKey

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from ticketattest.backend.api import create_app
from ticketattest.backend.catalog import FileCatalog, InMemoryCatalog
from ticketattest.backend.models import TicketRecord
from ticketattest.backend.registry import InMemoryTicketRegistry
from ticketattest.backend.store import InMemoryAttestationStore

OUTLET_ORIGIN = "http://outlet.test/outlet/"
HOLDER_KEY = SigningKey(b"\x07" * 32)
HOLDER = base58.b58encode(bytes(HOLDER_KEY.verify_key)).decode()
BLOB = b'{"issuerOrigin":"http://outlet.test/outlet/","tokenId":"A1"}'


def _client(store: InMemoryAttestationStore | None = None) -> TestClient:
    registry = InMemoryTicketRegistry(
        tickets=[TicketRecord(token_id="A1", ticket_class="speaker", issuer_origin=OUTLET_ORIGIN, holder=HOLDER)]
    )
    catalog = InMemoryCatalog(discounts={"speaker": 20})
    return TestClient(create_app(store=store or InMemoryAttestationStore(), catalog=catalog, registry=registry))


def _verify_body(challenge: dict) -> dict:
    message = BLOB + bytes.fromhex(challenge["nonce"])
    signature = base58.b58encode(HOLDER_KEY.sign(message).signature).decode()
    return {"challenge_id": challenge["challenge_id"], "signature": signature, "blob": BLOB.hex(), "holder": HOLDER}


def _attest(client: TestClient) -> dict:
    challenge = client.post("/api/challenges").json()
    response = client.post("/api/challenges/verify", json=_verify_body(challenge))
    assert response.status_code == 200
    return response.json()


def test_post_challenges_returns_id_nonce_and_expiry() -> None:
    client = _client()

    first = client.post("/api/challenges").json()
    second = client.post("/api/challenges").json()

    assert first["challenge_id"] != second["challenge_id"]
    assert len(bytes.fromhex(first["nonce"])) == 32
    assert first["nonce"] != second["nonce"]
    assert first["expiry"]


def test_verify_returns_attestation_for_holder() -> None:
    client = _client()

    attestation = _attest(client)

    assert attestation["token_id"] == "A1"
    assert attestation["ticket_class"] == "speaker"
    assert attestation["issuer_origin"] == OUTLET_ORIGIN


def test_verify_replay_returns_already_used() -> None:
    client = _client()
    challenge = client.post("/api/challenges").json()
    body = _verify_body(challenge)
    client.post("/api/challenges/verify", json=body)

    replay = client.post("/api/challenges/verify", json=body)

    assert replay.status_code == 409
    assert replay.json()["detail"]["code"] == "CHALLENGE_ALREADY_USED"


def test_verify_expired_challenge_returns_gone() -> None:
    client = _client(store=InMemoryAttestationStore(challenge_ttl_seconds=0))
    challenge = client.post("/api/challenges").json()

    response = client.post("/api/challenges/verify", json=_verify_body(challenge))

    assert response.status_code == 410
    assert response.json()["detail"]["code"] == "CHALLENGE_EXPIRED"


def test_verify_rejects_bad_signature() -> None:
    client = _client()
    challenge = client.post("/api/challenges").json()
    body = _verify_body(challenge)
    body["signature"] = base58.b58encode(SigningKey(b"\x08" * 32).sign(b"other").signature).decode()

    response = client.post("/api/challenges/verify", json=body)

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "SIGNATURE_INVALID"


def test_verify_rejects_non_hex_blob() -> None:
    client = _client()
    challenge = client.post("/api/challenges").json()
    body = _verify_body(challenge)
    body["blob"] = "zz"

    response = client.post("/api/challenges/verify", json=body)

    assert response.status_code == 422


def test_get_discount_returns_class_percentage_and_404_for_unknown_class() -> None:
    client = _client()

    known = client.get("/api/discounts/speaker")
    unknown = client.get("/api/discounts/vip")

    assert known.status_code == 200
    assert known.json() == {"ticket_class": "speaker", "discount": 20}
    assert unknown.status_code == 404
    assert unknown.json()["detail"]["code"] == "UNKNOWN_TICKET_CLASS"


def test_get_rooms_lists_catalog_rooms() -> None:
    client = _client()

    rooms = client.get("/api/rooms").json()

    assert [room["room_id"] for room in rooms] == ["standard", "deluxe", "suite"]


def test_post_booking_without_discount_charges_full_price() -> None:
    client = _client()

    response = client.post("/api/bookings", json={"room_id": "standard", "form": {"name": "Ada"}})

    assert response.status_code == 200
    receipt = response.json()
    assert receipt["discount_percentage"] == 0
    assert receipt["total_price_cents"] == receipt["base_price_cents"] == 12000


def test_post_booking_applies_attested_discount_once() -> None:
    client = _client()
    attestation = _attest(client)
    body = {
        "room_id": "deluxe",
        "form": {"name": "Ada"},
        "discount": {"attestation_id": attestation["attestation_id"], "bound_token_id": "A1", "percentage": 20},
    }

    first = client.post("/api/bookings", json=body)
    second = client.post("/api/bookings", json=body)

    assert first.status_code == 200
    assert first.json()["total_price_cents"] == 14400
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "STALE_DISCOUNT_OFFER"


def test_post_booking_rejects_inflated_percentage() -> None:
    client = _client()
    attestation = _attest(client)

    response = client.post(
        "/api/bookings",
        json={
            "room_id": "deluxe",
            "discount": {"attestation_id": attestation["attestation_id"], "bound_token_id": "A1", "percentage": 90},
        },
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "STALE_DISCOUNT_OFFER"


def test_post_booking_rejects_unknown_room() -> None:
    client = _client()

    response = client.post("/api/bookings", json={"room_id": "penthouse"})

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "ROOM_NOT_FOUND"


def test_malformed_catalog_files_answer_catalog_unavailable(tmp_path) -> None:
    (tmp_path / "ticket_class_speaker.json").write_text('{"discount": 150}', encoding="utf-8")
    (tmp_path / "rooms.json").write_text('{"id": "loft"}', encoding="utf-8")
    client = TestClient(create_app(store=InMemoryAttestationStore(), catalog=FileCatalog(directory=tmp_path)))

    discount = client.get("/api/discounts/speaker")
    rooms = client.get("/api/rooms")
    booking = client.post("/api/bookings", json={"room_id": "loft"})

    assert discount.status_code == 503
    assert discount.json()["detail"]["code"] == "CATALOG_UNAVAILABLE"
    assert rooms.status_code == 503
    assert booking.status_code == 503
