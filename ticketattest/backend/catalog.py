"""Read-only room and discount catalog keyed by ticket class."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ticketattest.backend.models import Room
from ticketattest.errors import CatalogUnavailable


TICKET_CLASS_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

DEFAULT_ROOMS = (
    Room(room_id="standard", name="Standard Room", price_cents=12000),
    Room(room_id="deluxe", name="Deluxe Room", price_cents=18000),
    Room(room_id="suite", name="Suite", price_cents=32000),
)


class Catalog(Protocol):
    def get_discount(self, ticket_class: str) -> int | None:
        """Return the discount percentage for a ticket class, or None when unlisted.

        Raises CatalogUnavailable when the stored entry is unreadable or out of range.
        """

    def list_rooms(self) -> list[Room]:
        """Return all bookable rooms."""

    def get_room(self, room_id: str) -> Room | None:
        """Return a room by id."""


@dataclass
class InMemoryCatalog:
    discounts: dict[str, int] = field(default_factory=dict)
    rooms: tuple[Room, ...] = DEFAULT_ROOMS

    def get_discount(self, ticket_class: str) -> int | None:
        return self.discounts.get(ticket_class)

    def list_rooms(self) -> list[Room]:
        return list(self.rooms)

    def get_room(self, room_id: str) -> Room | None:
        for room in self.rooms:
            if room.room_id == room_id:
                return room
        return None


@dataclass
class FileCatalog:
    """Catalog backed by one ``ticket_class_<class>.json`` document per class plus ``rooms.json``."""

    directory: Path

    def _class_path(self, ticket_class: str) -> Path | None:
        if not TICKET_CLASS_PATTERN.match(ticket_class):
            return None
        return self.directory / f"ticket_class_{ticket_class}.json"

    def get_discount(self, ticket_class: str) -> int | None:
        path = self._class_path(ticket_class)
        if path is None or not path.is_file():
            return None
        data = _read_json(path)
        discount = data.get("discount") if isinstance(data, dict) else None
        if isinstance(discount, bool) or not isinstance(discount, int) or not 0 <= discount <= 100:
            raise CatalogUnavailable(f"{path.name} has no discount between 0 and 100")
        return discount

    def list_rooms(self) -> list[Room]:
        path = self.directory / "rooms.json"
        if not path.is_file():
            return list(DEFAULT_ROOMS)
        entries = _read_json(path)
        if not isinstance(entries, list):
            raise CatalogUnavailable("rooms.json is not a list of rooms")
        try:
            return [
                Room(room_id=str(entry["id"]), name=str(entry["name"]), price_cents=int(entry["priceCents"]))
                for entry in entries
            ]
        except (KeyError, TypeError, ValueError) as error:
            raise CatalogUnavailable(f"rooms.json has a malformed room: {error}") from error

    def get_room(self, room_id: str) -> Room | None:
        for room in self.list_rooms():
            if room.room_id == room_id:
                return room
        return None


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as error:
        raise CatalogUnavailable(f"{path.name} could not be read: {error}") from error


def create_catalog(catalog_dir: str | None) -> Catalog:
    if catalog_dir:
        return FileCatalog(directory=Path(catalog_dir))
    return InMemoryCatalog(discounts={"general": 10, "speaker": 20, "sponsor": 30})
