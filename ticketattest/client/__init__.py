"""Visitor-side ticket negotiation, attestation and booking."""

from .authenticator import AttemptState, Authenticator, authentication_blob
from .backend_client import BackendClient
from .booking import BookingCoordinator
from .config import NegotiatorOptions, load_negotiator_options
from .context import SessionContext
from .discount import DiscountMatcher
from .flow import BookingFlow, build_flow
from .models import (
    Attestation,
    BookingReceipt,
    BookingRequest,
    Challenge,
    DiscountOffer,
    DiscoveryStatus,
    NegotiationSession,
    Room,
    Token,
)
from .negotiator import Negotiator
from .signer import Ed25519Signer, Signer
from .token_source import HttpTokenChannel, TokenSource

__all__ = [
    "AttemptState",
    "Attestation",
    "authentication_blob",
    "Authenticator",
    "BackendClient",
    "BookingCoordinator",
    "BookingFlow",
    "BookingReceipt",
    "BookingRequest",
    "build_flow",
    "Challenge",
    "DiscountMatcher",
    "DiscountOffer",
    "DiscoveryStatus",
    "Ed25519Signer",
    "HttpTokenChannel",
    "load_negotiator_options",
    "NegotiationSession",
    "Negotiator",
    "NegotiatorOptions",
    "Room",
    "SessionContext",
    "Signer",
    "Token",
    "TokenSource",
]
