"""Message-passing channel to the sandboxed origin that knows a visitor's tickets."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from ticketattest.client.models import Token
from ticketattest.errors import DiscoveryFailed
from ticketattest.protocol import OP_LIST_TOKENS, new_request

logger = logging.getLogger(__name__)


class TokenChannel(Protocol):
    async def exchange(self, frame: dict[str, Any]) -> dict[str, Any]:
        """Deliver one request frame across the origin boundary and return the reply frame."""


class HttpTokenChannel:
    def __init__(self, tokens_origin: str, http_client: httpx.AsyncClient) -> None:
        self.tokens_origin = tokens_origin
        self._http_client = http_client

    async def exchange(self, frame: dict[str, Any]) -> dict[str, Any]:
        response = await self._http_client.post(self.tokens_origin, json=frame)
        response.raise_for_status()
        return response.json()


class TokenSource:
    def __init__(self, channel: TokenChannel, holder: str) -> None:
        self._channel = channel
        self.holder = holder

    async def discover(self) -> list[Token]:
        """Ask the token origin for the holder's tickets.

        Raises:
            DiscoveryFailed: transport errors, mismatched correlation ids,
                error replies and malformed token entries.
        """
        frame = new_request(OP_LIST_TOKENS, {"holder": self.holder})
        try:
            reply = await self._channel.exchange(frame.to_dict())
        except Exception as error:
            raise DiscoveryFailed(f"token origin unreachable: {error}") from error

        if not isinstance(reply, dict):
            raise DiscoveryFailed("token origin sent a non-object frame")
        if reply.get("id") != frame.id:
            raise DiscoveryFailed(f"unexpected frame id {reply.get('id')!r} expected {frame.id!r}")
        if not reply.get("ok"):
            raise DiscoveryFailed(f"token origin refused request: {reply.get('error', 'unknown error')}")

        result = reply.get("result")
        entries = result.get("tokens") if isinstance(result, dict) else None
        if not isinstance(entries, list):
            raise DiscoveryFailed("token origin reply has no token list")

        tokens = [_parse_token(entry) for entry in entries]
        logger.debug("Token origin returned %d tokens", len(tokens))
        return tokens


def _parse_token(entry: Any) -> Token:
    if not isinstance(entry, dict):
        raise DiscoveryFailed("token entry is not an object")
    fields = ("token_id", "ticket_class", "issuer_origin")
    values = [entry.get(name) for name in fields]
    if not all(isinstance(value, str) and value for value in values):
        raise DiscoveryFailed(f"token entry is missing one of {', '.join(fields)}")
    token_id, ticket_class, issuer_origin = values
    return Token(token_id=token_id, ticket_class=ticket_class, issuer_origin=issuer_origin)
