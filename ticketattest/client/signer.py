"""Signer capability used to answer challenges without moving keys off the device."""

from __future__ import annotations

from typing import Protocol

import base58
from nacl.signing import SigningKey


class Signer(Protocol):
    @property
    def address(self) -> str:
        """Base58 public key identifying the holder."""

    async def sign(self, message: bytes) -> str:
        """Return a base58 signature; raise SigningRejected when the holder declines."""


class Ed25519Signer:
    """Local Ed25519 signer, the same key scheme Solana wallets use."""

    def __init__(self, signing_key: SigningKey) -> None:
        self._signing_key = signing_key

    @classmethod
    def generate(cls) -> "Ed25519Signer":
        return cls(SigningKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "Ed25519Signer":
        return cls(SigningKey(seed))

    @property
    def address(self) -> str:
        return base58.b58encode(bytes(self._signing_key.verify_key)).decode()

    async def sign(self, message: bytes) -> str:
        signed = self._signing_key.sign(message)
        return base58.b58encode(signed.signature).decode()
