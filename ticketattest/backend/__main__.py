"""Run the merchant API or the token outlet with uvicorn."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from ticketattest.backend.api import create_app
from ticketattest.backend.config import load_settings
from ticketattest.backend.outlet import create_outlet_app
from ticketattest.backend.registry import load_ticket_registry


def parse_args() -> argparse.Namespace:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Ticket attestation services")
    parser.add_argument("--service", choices=["merchant", "outlet"], default="merchant")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--log-level", default="info")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.service == "outlet":
        app = create_outlet_app(load_ticket_registry(load_settings().tickets_file))
    else:
        app = create_app()
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
