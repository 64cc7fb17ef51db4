"""Configuration helpers for backend runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class BackendSettings:
    database_url: str | None
    host: str
    port: int
    challenge_ttl_seconds: int
    catalog_dir: str | None
    tickets_file: str | None


def load_settings() -> BackendSettings:
    port_raw = os.getenv("TICKETATTEST_PORT", "8000")
    ttl_raw = os.getenv("TICKETATTEST_CHALLENGE_TTL_SECONDS", "120")
    return BackendSettings(
        database_url=os.getenv("TICKETATTEST_DATABASE_URL"),
        host=os.getenv("TICKETATTEST_HOST", "127.0.0.1"),
        port=int(port_raw),
        challenge_ttl_seconds=int(ttl_raw),
        catalog_dir=os.getenv("TICKETATTEST_CATALOG_DIR"),
        tickets_file=os.getenv("TICKETATTEST_TICKETS_FILE"),
    )
