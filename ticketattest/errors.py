"""Error taxonomy shared by the backend services and the visitor-side client."""

from __future__ import annotations


class TicketAttestError(Exception):
    """Base error; every failure is local to one negotiation, attempt or booking."""

    code = "TICKETATTEST_ERROR"
    default_message = "Ticket attestation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DiscoveryFailed(TicketAttestError):
    code = "DISCOVERY_FAILED"
    default_message = "Token source did not respond"


class AttestationError(TicketAttestError):
    code = "ATTESTATION_ERROR"
    default_message = "Attestation rejected"


class ChallengeUnavailable(AttestationError):
    code = "CHALLENGE_UNAVAILABLE"
    default_message = "Challenge service unreachable or returned a malformed response"


class ChallengeExpired(AttestationError):
    code = "CHALLENGE_EXPIRED"
    default_message = "Challenge has expired"


class ChallengeAlreadyUsed(AttestationError):
    code = "CHALLENGE_ALREADY_USED"
    default_message = "Challenge was already consumed"


class ChallengeNotFound(AttestationError):
    code = "CHALLENGE_NOT_FOUND"
    default_message = "Challenge is unknown"


class SignatureInvalid(AttestationError):
    code = "SIGNATURE_INVALID"
    default_message = "Signature does not match the challenge"


class TokenNotHeld(AttestationError):
    code = "TOKEN_NOT_HELD"
    default_message = "Signer does not hold this ticket"


class SigningRejected(AttestationError):
    code = "SIGNING_REJECTED"
    default_message = "Holder declined to sign or no signer is available"


class AttemptSuperseded(AttestationError):
    code = "ATTEMPT_SUPERSEDED"
    default_message = "A newer attestation attempt replaced this one"


class UnknownTicketClass(TicketAttestError):
    code = "UNKNOWN_TICKET_CLASS"
    default_message = "No discount available for this ticket"


class CatalogUnavailable(TicketAttestError):
    code = "CATALOG_UNAVAILABLE"
    default_message = "Discount catalog unreachable or returned a malformed response"


class BookingError(TicketAttestError):
    code = "BOOKING_ERROR"
    default_message = "Booking failed"


class StaleDiscountOffer(BookingError):
    code = "STALE_DISCOUNT_OFFER"
    default_message = "Discount offer no longer matches the active attestation"


class RoomNotFound(BookingError):
    code = "ROOM_NOT_FOUND"
    default_message = "Room is unknown"


class CheckoutFailed(BookingError):
    code = "CHECKOUT_FAILED"
    default_message = "Checkout did not complete"


class AttemptStateError(RuntimeError):
    """Raised when attestation steps are called out of order."""


_ERROR_TYPES: tuple[type[TicketAttestError], ...] = (
    DiscoveryFailed,
    ChallengeUnavailable,
    ChallengeExpired,
    ChallengeAlreadyUsed,
    ChallengeNotFound,
    SignatureInvalid,
    TokenNotHeld,
    SigningRejected,
    AttemptSuperseded,
    UnknownTicketClass,
    CatalogUnavailable,
    StaleDiscountOffer,
    RoomNotFound,
    CheckoutFailed,
)

ERRORS_BY_CODE: dict[str, type[TicketAttestError]] = {error_type.code: error_type for error_type in _ERROR_TYPES}


def error_for_code(code: str, message: str | None = None) -> TicketAttestError | None:
    """Rebuild a typed error from a wire error code, or None when the code is unknown."""
    error_type = ERRORS_BY_CODE.get(code)
    if error_type is None:
        return None
    return error_type(message)


def error_detail(error: TicketAttestError) -> dict[str, str]:
    return {"code": error.code, "message": error.message}
