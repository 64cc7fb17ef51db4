"""Challenge verification and booking discount rules for the backend."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from ticketattest.backend.catalog import Catalog
from ticketattest.backend.models import AttestationRecord
from ticketattest.backend.registry import TicketRegistry
from ticketattest.backend.security import parse_authentication_blob, verify_signature
from ticketattest.backend.store import AttestationStore
from ticketattest.errors import SignatureInvalid, StaleDiscountOffer, TokenNotHeld
from ticketattest.protocol import challenge_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscountClaim:
    attestation_id: str
    bound_token_id: str
    percentage: int


def verify_signed_challenge(
    store: AttestationStore,
    registry: TicketRegistry,
    challenge_id: str,
    blob: bytes,
    signature: str,
    holder: str,
) -> AttestationRecord:
    """Consume a challenge and turn a valid signed claim into an attestation record.

    The challenge is consumed before the signature is looked at, so a challenge
    can back at most one submission whatever its outcome.
    """
    challenge = store.consume_challenge(challenge_id)

    claim = parse_authentication_blob(blob)
    if claim is None:
        logger.info("Rejected challenge %s: malformed authentication blob", challenge_id)
        raise SignatureInvalid("Authentication blob is not a token identity claim")

    if not verify_signature(holder, challenge_message(blob, challenge.nonce), signature):
        logger.info("Rejected challenge %s: bad signature", challenge_id)
        raise SignatureInvalid()

    ticket = registry.get_ticket(issuer_origin=claim["issuerOrigin"], token_id=claim["tokenId"])
    if ticket is None or ticket.holder != holder:
        logger.info("Rejected challenge %s: token %s not held by signer", challenge_id, claim["tokenId"])
        raise TokenNotHeld()

    record = store.record_attestation(
        challenge_id=challenge_id,
        token_id=ticket.token_id,
        ticket_class=ticket.ticket_class,
        issuer_origin=ticket.issuer_origin,
        holder=holder,
    )
    logger.info("Attested token %s (%s)", record.token_id, record.ticket_class)
    return record


def resolve_booking_discount(store: AttestationStore, catalog: Catalog, claim: DiscountClaim | None) -> int:
    """Return the discount percentage a booking may apply, re-checked against server records."""
    if claim is None:
        return 0

    record = store.get_attestation(claim.attestation_id)
    if record is None:
        raise StaleDiscountOffer("Discount offer refers to an unknown attestation")
    if record.redeemed_at is not None:
        raise StaleDiscountOffer("Attestation was already redeemed by another booking")
    if record.token_id != claim.bound_token_id:
        raise StaleDiscountOffer("Discount offer is bound to a different ticket")
    if catalog.get_discount(record.ticket_class) != claim.percentage:
        raise StaleDiscountOffer("Discount offer does not match the catalog for this ticket class")
    return claim.percentage
