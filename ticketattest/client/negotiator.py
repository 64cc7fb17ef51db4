"""Token negotiation: discover, filter and publish the visitor's ticket set."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import fields
import logging
from typing import Callable

from ticketattest.client.config import NegotiatorOptions, configure_logging
from ticketattest.client.context import SessionContext
from ticketattest.client.models import DiscoveryStatus, NegotiationSession, Token
from ticketattest.client.token_source import TokenSource
from ticketattest.errors import DiscoveryFailed

logger = logging.getLogger(__name__)

TokenListener = Callable[[list[Token]], None]
TokenFilters = Mapping[str, str | Iterable[str]]

_TOKEN_FIELDS = frozenset(field.name for field in fields(Token))


def _normalize_origin(origin: str) -> str:
    return origin.rstrip("/")


class Negotiator:
    def __init__(
        self,
        filters: TokenFilters | None,
        options: NegotiatorOptions,
        context: SessionContext,
        source: TokenSource,
        on_frame_visibility: Callable[[bool], None] | None = None,
    ) -> None:
        self._filters = self._compile_filters(filters or {})
        self.options = options
        self._context = context
        self._source = source
        self._on_frame_visibility = on_frame_visibility
        self._write_session = context.claim_session_writer()
        self._listeners: list[TokenListener] = []
        self._round = 0
        configure_logging(options.debug)

    @staticmethod
    def _compile_filters(filters: TokenFilters) -> dict[str, frozenset[str]]:
        compiled: dict[str, frozenset[str]] = {}
        for name, allowed in filters.items():
            if name not in _TOKEN_FIELDS:
                raise ValueError(f"unknown token filter field {name!r}")
            compiled[name] = frozenset([allowed]) if isinstance(allowed, str) else frozenset(allowed)
        return compiled

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        """Receive the full filtered token set after every settled round."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _accepts(self, token: Token) -> bool:
        if _normalize_origin(token.issuer_origin) != _normalize_origin(self.options.tokens_origin):
            return False
        return all(getattr(token, name) in allowed for name, allowed in self._filters.items())

    async def negotiate(self, on_settled: TokenListener) -> NegotiationSession | None:
        """Run one discovery round and report the filtered tokens exactly once.

        Failures and timeouts settle the round as ``failed`` with an empty set
        instead of raising. Returns the settled session, or None when a newer
        round superseded this one; superseded rounds never reach the callback.
        """
        self._round += 1
        current_round = self._round
        previous = self._context.session
        self._write_session(NegotiationSession(tokens=previous.tokens, status=DiscoveryStatus.PENDING, round=current_round))

        if self._on_frame_visibility is not None:
            self._on_frame_visibility(not self.options.hide_tokens_iframe)

        error: DiscoveryFailed | None = None
        discovered: list[Token] = []
        try:
            discovered = await asyncio.wait_for(self._source.discover(), timeout=self.options.discovery_timeout_seconds)
        except asyncio.TimeoutError:
            error = DiscoveryFailed(f"token origin did not answer within {self.options.discovery_timeout_seconds}s")
        except DiscoveryFailed as failure:
            error = failure

        if current_round != self._round:
            logger.debug("Discarding superseded discovery round %d", current_round)
            return None

        if error is not None:
            logger.warning("Token discovery failed: %s", error.message)
            session = NegotiationSession(status=DiscoveryStatus.FAILED, error=error, round=current_round)
        else:
            accepted = tuple(token for token in discovered if self._accepts(token))
            logger.info("Token discovery settled with %d of %d tokens", len(accepted), len(discovered))
            session = NegotiationSession(tokens=accepted, status=DiscoveryStatus.SETTLED, round=current_round)

        self._write_session(session)
        on_settled(list(session.tokens))
        for listener in list(self._listeners):
            listener(list(session.tokens))
        return session
