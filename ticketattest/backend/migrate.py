"""Create the challenge, attestation and booking tables in PostgreSQL."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from ticketattest.backend.config import load_settings

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("db_schema.sql")


def apply_schema(database_url: str | None) -> None:
    if not database_url:
        raise RuntimeError("TICKETATTEST_DATABASE_URL is required for migration")

    import psycopg

    schema_sql = SCHEMA_PATH.read_text(encoding="utf-8")
    with psycopg.connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(schema_sql)
        conn.commit()
    logger.info("Applied %s", SCHEMA_PATH.name)


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply the ticketattest schema")
    parser.add_argument("--database-url", default=load_settings().database_url)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    apply_schema(args.database_url)


if __name__ == "__main__":
    main()
