import base58
from nacl.signing import SigningKey

from ticketattest.backend.security import generate_nonce, parse_authentication_blob, verify_signature


def _sign(key: SigningKey, message: bytes) -> str:
    return base58.b58encode(key.sign(message).signature).decode()


def _address(key: SigningKey) -> str:
    return base58.b58encode(bytes(key.verify_key)).decode()


def test_generate_nonce_returns_fresh_32_bytes() -> None:
    first = generate_nonce()
    second = generate_nonce()

    assert len(first) == 32
    assert first != second


def test_verify_signature_accepts_holder_and_rejects_other_message() -> None:
    key = SigningKey(b"\x05" * 32)
    signature = _sign(key, b"blob-and-nonce")

    assert verify_signature(_address(key), b"blob-and-nonce", signature) is True
    assert verify_signature(_address(key), b"other-message", signature) is False


def test_verify_signature_rejects_other_key_and_garbage() -> None:
    key = SigningKey(b"\x05" * 32)
    other = SigningKey(b"\x06" * 32)
    signature = _sign(key, b"payload")

    assert verify_signature(_address(other), b"payload", signature) is False
    assert verify_signature("not-base58-0OIl", b"payload", signature) is False
    assert verify_signature(_address(key), b"payload", "short") is False


def test_parse_authentication_blob_reads_claim() -> None:
    claim = parse_authentication_blob(b'{"issuerOrigin":"https://o.test/","tokenId":"A1"}')

    assert claim == {"tokenId": "A1", "issuerOrigin": "https://o.test/"}


def test_parse_authentication_blob_rejects_malformed_input() -> None:
    assert parse_authentication_blob(b"\xff\xfe") is None
    assert parse_authentication_blob(b"not json") is None
    assert parse_authentication_blob(b"[1, 2]") is None
    assert parse_authentication_blob(b'{"tokenId": 5, "issuerOrigin": "x"}') is None
