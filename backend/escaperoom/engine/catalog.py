"""
Room catalog - Fixed, pre-built rooms loaded from YAML
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping

import yaml

from escaperoom.models.room import GameObject, RoomDefinition

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "rooms.yaml"


class RoomCatalog:
    """Read-only mapping of room id to RoomDefinition.

    The catalog is fully populated before any room engine reads from it.
    ``lookup`` hands out deep copies so that engines never share the
    mutable ``unlocked`` flags of catalog objects.
    """

    def __init__(self, rooms: Mapping[int | str, RoomDefinition] | Iterable[RoomDefinition]):
        if isinstance(rooms, Mapping):
            self._rooms: dict[int | str, RoomDefinition] = dict(rooms)
        else:
            self._rooms = {room.identity: room for room in rooms}

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RoomCatalog":
        """Load a catalog from a YAML file keyed by room id.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is empty or a room is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Room catalog not found at {path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not data:
            raise ValueError(f"Room catalog {path} is empty")

        rooms: dict[int | str, RoomDefinition] = {}
        total = len(data)
        for position, (room_id, room_data) in enumerate(data.items(), start=1):
            rooms[room_id] = cls._parse_room(room_id, room_data, position, total)

        logger.info(f"Loaded {len(rooms)} catalog room(s) from {path}")
        return cls(rooms)

    @staticmethod
    def _parse_room(
        room_id: int | str, data: dict, position: int, total: int
    ) -> RoomDefinition:
        """Build one RoomDefinition from its YAML mapping"""
        try:
            objects = [
                GameObject(
                    name=obj["name"],
                    description=obj.get("description", ""),
                    puzzle=obj.get("puzzle"),
                    answer=obj.get("answer"),
                    details=obj.get("details", []),
                )
                for obj in data.get("objects", [])
            ]
            return RoomDefinition(
                identity=room_id,
                sequence_index=data.get("sequence", position),
                total_in_sequence=total,
                name=data["name"],
                background=data.get("background", ""),
                password=str(data["password"]),
                hint=data.get("hint"),
                objects=objects,
            )
        except KeyError as e:
            raise ValueError(f"Catalog room '{room_id}' is missing {e}") from e

    def lookup(self, room_id: int | str) -> RoomDefinition | None:
        """Get a private copy of a room, or None if the id is unknown"""
        room = self._rooms.get(room_id)
        if room is None:
            return None
        return room.model_copy(deep=True)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def ids(self) -> list[int | str]:
        """Room ids in catalog order"""
        return list(self._rooms)

    def list_rooms(self) -> list[dict]:
        """List rooms with their display names"""
        return [{"id": room_id, "name": room.name} for room_id, room in self._rooms.items()]


_default_catalog: RoomCatalog | None = None


def default_catalog() -> RoomCatalog:
    """Get the packaged default catalog (loaded once)"""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = RoomCatalog.from_yaml(DEFAULT_CATALOG_PATH)
    return _default_catalog
