"""Backend package for ticket attestation, discounts and booking."""

from .catalog import Catalog, FileCatalog, InMemoryCatalog, create_catalog
from .config import BackendSettings, load_settings
from .registry import InMemoryTicketRegistry, TicketRegistry, load_ticket_registry
from .store import AttestationStore, InMemoryAttestationStore, PostgresAttestationStore, create_store

__all__ = [
    "AttestationStore",
    "BackendSettings",
    "Catalog",
    "create_catalog",
    "create_store",
    "FileCatalog",
    "InMemoryAttestationStore",
    "InMemoryCatalog",
    "InMemoryTicketRegistry",
    "load_settings",
    "load_ticket_registry",
    "PostgresAttestationStore",
    "TicketRegistry",
]
