"""Per-page session context shared by the client components."""

from __future__ import annotations

from typing import Callable
import uuid

from ticketattest.client.models import Attestation, NegotiationSession


class SessionContext:
    """Holds the negotiation session and the active attestation for one page.

    Each piece of state has exactly one writer. The Negotiator claims the
    session writer and the Authenticator claims the attestation writer; every
    other component only reads the immutable snapshots. Separate contexts
    (one per tab) share nothing.
    """

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id or str(uuid.uuid4())
        self._session = NegotiationSession()
        self._attestation: Attestation | None = None
        self._session_claimed = False
        self._attestation_claimed = False

    @property
    def session(self) -> NegotiationSession:
        return self._session

    @property
    def active_attestation(self) -> Attestation | None:
        return self._attestation

    def claim_session_writer(self) -> Callable[[NegotiationSession], None]:
        if self._session_claimed:
            raise RuntimeError("negotiation session already has an owner")
        self._session_claimed = True

        def write(session: NegotiationSession) -> None:
            self._session = session

        return write

    def claim_attestation_writer(self) -> Callable[[Attestation | None], None]:
        if self._attestation_claimed:
            raise RuntimeError("active attestation already has an owner")
        self._attestation_claimed = True

        def write(attestation: Attestation | None) -> None:
            self._attestation = attestation

        return write
