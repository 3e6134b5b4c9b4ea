"""
Data model for maps and their rooms.

This module contains:
- Room: a labelled polygon region in map space
- Map: a floor-plan image reference plus its ordered rooms
- load_maps: reads the seed Map[] collection from JSON
"""

# Roommap imports
from roommap import config
from roommap.geometry_utils import calc_centroid_of_points

# Standard library imports
import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class Room:
    """
    A polygonal room region.

    Attributes:
        id (int): Unique, never reused identifier.
        name (str): Display name; not required to be unique.
        coordinates (List[float]): Flat x, y list of the closed polygon (even length, >= 6).
        text_coordinates (List[float]): Label anchor [x, y] in map space.
    """

    id: int
    name: str
    coordinates: List[float]
    text_coordinates: List[float] = field(default_factory=list)

    def __post_init__(self):
        self.coordinates = [float(v) for v in self.coordinates]
        if len(self.coordinates) % 2 != 0 or len(self.coordinates) < config.MIN_COORDINATES:
            raise ValueError(
                f"Room '{self.name}' needs an even number of coordinates (>= {config.MIN_COORDINATES}), "
                f"got {len(self.coordinates)}")
        if not self.text_coordinates:
            self.text_coordinates = list(calc_centroid_of_points(self.coordinates))
        self.text_coordinates = [float(v) for v in self.text_coordinates]
        if len(self.text_coordinates) != 2:
            raise ValueError(f"Room '{self.name}' label anchor must be a single (x, y) pair")

    @property
    def vertex_count(self) -> int:
        return len(self.coordinates) // 2

    def copy(self) -> "Room":
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Room":
        return cls(
            id               = int(data["id"]),
            name             = str(data.get("name", "")),
            coordinates      = list(data["coordinates"]),
            text_coordinates = list(data.get("textCoordinates") or []),
        )

    def to_dict(self) -> dict:
        return {
            "id":              self.id,
            "name":            self.name,
            "coordinates":     list(self.coordinates),
            "textCoordinates": list(self.text_coordinates),
        }


@dataclass
class Map:
    """A floor-plan background image and the rooms drawn over it."""

    id: int
    name: str
    image_path: str
    rooms: List[Room] = field(default_factory=list)

    def find_room(self, room_id: int) -> Optional[Room]:
        for room in self.rooms:
            if room.id == room_id:
                return room
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "Map":
        return cls(
            id         = int(data["id"]),
            name       = str(data.get("name", "")),
            image_path = str(data.get("imagePath", "")),
            rooms      = [Room.from_dict(r) for r in data.get("rooms", [])],
        )

    def to_dict(self) -> dict:
        return {
            "id":        self.id,
            "name":      self.name,
            "imagePath": self.image_path,
            "rooms":     [r.to_dict() for r in self.rooms],
        }


def load_maps(path: Union[Path, str, None] = None) -> List[Map]:
    """
    Load the Map[] collection from a JSON seed file.

    Args:
        path: JSON file holding a list of maps. Defaults to ``config.SEED_MAPS_PATH``.

    Returns:
        List[Map]: Parsed maps in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is malformed or map/room ids repeat.
    """
    path = Path(path) if path is not None else config.SEED_MAPS_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of maps in {path}")

    try:
        maps = [Map.from_dict(entry) for entry in data]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed map data in {path}: {e}") from e

    map_ids  = [m.id for m in maps]
    room_ids = [r.id for m in maps for r in m.rooms]
    if len(set(map_ids)) != len(map_ids):
        raise ValueError(f"Duplicate map ids in {path}")
    if len(set(room_ids)) != len(room_ids):
        raise ValueError(f"Duplicate room ids in {path}")

    logger.info(f"Loaded {len(maps)} map(s) with {len(room_ids)} room(s) from {path}")
    return maps
