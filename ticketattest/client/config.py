"""Negotiation options for the visitor-side client."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


DEFAULT_DISCOVERY_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class NegotiatorOptions:
    tokens_origin: str
    debug: int = 0
    hide_tokens_iframe: bool = True
    discovery_timeout_seconds: float = DEFAULT_DISCOVERY_TIMEOUT_SECONDS


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_negotiator_options() -> NegotiatorOptions:
    return NegotiatorOptions(
        tokens_origin=os.getenv("TICKETATTEST_TOKENS_ORIGIN", "http://127.0.0.1:8001/outlet/"),
        debug=int(os.getenv("TICKETATTEST_DEBUG", "0")),
        hide_tokens_iframe=_env_flag("TICKETATTEST_HIDE_TOKENS_IFRAME", True),
        discovery_timeout_seconds=float(
            os.getenv("TICKETATTEST_DISCOVERY_TIMEOUT", str(DEFAULT_DISCOVERY_TIMEOUT_SECONDS))
        ),
    )


def configure_logging(debug: int) -> None:
    """Map the opaque ``debug`` level onto logger verbosity; it never changes behavior."""
    if debug >= 1:
        logging.getLogger("ticketattest").setLevel(logging.DEBUG)
