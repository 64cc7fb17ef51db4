"""Challenge/response attestation proving the visitor controls one ticket."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import logging

from ticketattest.client.backend_client import ChallengeService
from ticketattest.client.context import SessionContext
from ticketattest.client.models import Attestation, Challenge, Token
from ticketattest.client.signer import Signer
from ticketattest.errors import (
    AttemptStateError,
    AttemptSuperseded,
    AttestationError,
    SigningRejected,
)
from ticketattest.protocol import challenge_message

logger = logging.getLogger(__name__)


class AttemptState(str, Enum):
    IDLE = "idle"
    BLOB_BUILT = "blob_built"
    CHALLENGE_FETCHED = "challenge_fetched"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass
class AttestationAttempt:
    token: Token
    state: AttemptState = AttemptState.IDLE
    blob: bytes | None = None
    challenge: Challenge | None = None
    signature: str | None = None
    attestation: Attestation | None = None
    error: AttestationError | None = None


def authentication_blob(token: Token) -> bytes:
    """Canonical identity claim for a token: sorted-key compact JSON of id and issuer origin."""
    claim = {"issuerOrigin": token.issuer_origin, "tokenId": token.token_id}
    return json.dumps(claim, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class Authenticator:
    """Runs one attestation attempt at a time through four strictly ordered steps.

    ``Idle -> BlobBuilt -> ChallengeFetched -> Signed -> Submitted -> Verified | Rejected``

    Building a blob starts a new attempt, which supersedes any attempt still in
    flight and clears the active attestation. Results that arrive for a
    superseded attempt raise ``AttemptSuperseded`` and are never published.
    """

    def __init__(self, context: SessionContext, signer: Signer | None, challenge_service: ChallengeService) -> None:
        self._signer = signer
        self._challenge_service = challenge_service
        self._write_attestation = context.claim_attestation_writer()
        self._attempt: AttestationAttempt | None = None

    @property
    def attempt(self) -> AttestationAttempt | None:
        return self._attempt

    def _require(self, state: AttemptState) -> AttestationAttempt:
        attempt = self._attempt
        if attempt is None or attempt.state is not state:
            current = attempt.state.value if attempt is not None else "none"
            raise AttemptStateError(f"expected attempt in state {state.value}, found {current}")
        return attempt

    def _reject(self, attempt: AttestationAttempt, error: AttestationError) -> AttestationError:
        attempt.state = AttemptState.REJECTED
        attempt.error = error
        logger.info("Attestation attempt for token %s rejected: %s", attempt.token.token_id, error.code)
        return error

    def _ensure_current(self, attempt: AttestationAttempt) -> None:
        if attempt is not self._attempt:
            raise self._reject(attempt, AttemptSuperseded())

    def get_authentication_blob(self, token: Token) -> bytes:
        attempt = AttestationAttempt(token=token)
        self._attempt = attempt
        self._write_attestation(None)
        attempt.blob = authentication_blob(token)
        attempt.state = AttemptState.BLOB_BUILT
        logger.debug("Started attestation attempt for token %s", token.token_id)
        return attempt.blob

    async def fetch_challenge(self) -> Challenge:
        attempt = self._require(AttemptState.BLOB_BUILT)
        try:
            challenge = await self._challenge_service.issue_challenge()
        except AttestationError as error:
            self._ensure_current(attempt)
            raise self._reject(attempt, error)
        self._ensure_current(attempt)
        attempt.challenge = challenge
        attempt.state = AttemptState.CHALLENGE_FETCHED
        return challenge

    async def sign_challenge(self, blob: bytes, challenge: Challenge) -> str:
        attempt = self._require(AttemptState.CHALLENGE_FETCHED)
        if blob != attempt.blob or attempt.challenge is None or challenge.challenge_id != attempt.challenge.challenge_id:
            raise AttemptStateError("blob and challenge must come from the current attempt")
        if self._signer is None:
            raise self._reject(attempt, SigningRejected("No signer is available"))

        try:
            signature = await self._signer.sign(challenge_message(blob, challenge.nonce))
        except SigningRejected as error:
            self._ensure_current(attempt)
            raise self._reject(attempt, error)
        except Exception as error:
            self._ensure_current(attempt)
            raise self._reject(attempt, SigningRejected(f"Signer failed: {error}")) from error
        self._ensure_current(attempt)
        attempt.signature = signature
        attempt.state = AttemptState.SIGNED
        return signature

    async def send_challenge(self, signature: str, challenge: Challenge) -> Attestation:
        attempt = self._require(AttemptState.SIGNED)
        if signature != attempt.signature or attempt.challenge is None or challenge.challenge_id != attempt.challenge.challenge_id:
            raise AttemptStateError("signature and challenge must come from the current attempt")
        if attempt.blob is None or self._signer is None:
            raise AttemptStateError("signed attempt has no blob or signer")

        attempt.state = AttemptState.SUBMITTED
        try:
            result = await self._challenge_service.verify(
                challenge_id=challenge.challenge_id,
                signature=signature,
                blob=attempt.blob,
                holder=self._signer.address,
            )
        except AttestationError as error:
            self._ensure_current(attempt)
            raise self._reject(attempt, error)
        self._ensure_current(attempt)

        token = attempt.token
        if result.token_id != token.token_id or result.issuer_origin != token.issuer_origin:
            raise self._reject(attempt, AttestationError("Backend attested a different ticket"))

        attestation = Attestation(
            token=token,
            signature=signature,
            verified_at=result.verified_at,
            attestation_id=result.attestation_id,
        )
        attempt.attestation = attestation
        attempt.state = AttemptState.VERIFIED
        self._write_attestation(attestation)
        logger.info("Token %s attested", token.token_id)
        return attestation

    async def attest(self, token: Token) -> Attestation:
        blob = self.get_authentication_blob(token)
        challenge = await self.fetch_challenge()
        signature = await self.sign_challenge(blob, challenge)
        return await self.send_challenge(signature, challenge)
