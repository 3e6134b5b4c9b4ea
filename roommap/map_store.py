"""Authoritative in-memory store of maps and their rooms.

All room mutations are scoped to the currently selected map. Rejected mutations
(too few vertices, no map selected) log a warning and leave the store untouched;
operations on a room id that no longer exists are silent no-ops. Nothing here
raises into the caller for those cases.
"""

# Roommap imports
from roommap import config
from roommap.geometry_utils import (
    calc_centroid_of_points,
    calc_polygon_area,
    flatten_pairs,
    to_pairs,
    translate_coordinates,
)
from roommap.models import Map, Room

# Standard library imports
import logging
from typing import Iterable, List, Optional, Sequence, Set, Tuple

# Third-party imports
import pandas as pd

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name",)


def _valid_polygon(coordinates: Sequence[float]) -> bool:
    return len(coordinates) % 2 == 0 and len(coordinates) >= config.MIN_COORDINATES


def _make_unique_name(base_name: str, existing: Set[str]) -> str:
    """Return ``base_name``, or ``"base_name (n)"`` with the smallest free n."""
    if base_name not in existing:
        return base_name
    n = 1
    while f"{base_name} ({n})" in existing:
        n += 1
    return f"{base_name} ({n})"


class MapStore:
    """
    Collection of maps plus the id of the selected one.

    Args:
        maps: Initial Map[] collection (seed data).
        selected_map_id: Map to select initially; defaults to the first map.

    Example:
        >>> store = MapStore(load_maps())
        >>> room = store.add_room([0, 0, 10, 0, 10, 10])
        >>> store.duplicate_room(room.id).name
        'Room 12 (1)'
    """

    def __init__(self, maps: Iterable[Map], selected_map_id: Optional[int] = None):
        self._maps: List[Map] = list(maps)
        if selected_map_id is None and self._maps:
            selected_map_id = self._maps[0].id
        if selected_map_id is not None and self._get_map(selected_map_id) is None:
            raise ValueError(f"Unknown map id: {selected_map_id}")
        self.selected_map_id: Optional[int] = selected_map_id

        # Ids are handed out from a single counter so they are never reused,
        # even after deletion or across maps.
        existing_ids = [r.id for m in self._maps for r in m.rooms]
        self._next_room_id: int = max(existing_ids, default=0) + 1

    # -------------------------------------------------------------------------
    # Map selection and read-only projections
    # -------------------------------------------------------------------------

    @property
    def maps(self) -> Tuple[Map, ...]:
        return tuple(self._maps)

    def _get_map(self, map_id: int) -> Optional[Map]:
        for m in self._maps:
            if m.id == map_id:
                return m
        return None

    def select_map(self, map_id: int) -> bool:
        """Switch the selected map. Returns False (and warns) for an unknown id."""
        if self._get_map(map_id) is None:
            logger.warning(f"Cannot select map {map_id}: no such map")
            return False
        self.selected_map_id = map_id
        return True

    @property
    def selected_map(self) -> Optional[Map]:
        """Copy of the selected map, or None."""
        current = self._current_map()
        if current is None:
            return None
        return Map(current.id, current.name, current.image_path, [r.copy() for r in current.rooms])

    @property
    def selected_map_rooms(self) -> Optional[Tuple[Room, ...]]:
        """Copies of the selected map's rooms in drawing order, or None if no map is selected."""
        current = self._current_map()
        if current is None:
            return None
        return tuple(r.copy() for r in current.rooms)

    def get_room(self, room_id: int) -> Optional[Room]:
        room = self._find_room(room_id)
        return room.copy() if room is not None else None

    def search_rooms(self, term: str) -> List[Room]:
        """Rooms of the selected map whose name contains ``term`` (case-insensitive)."""
        rooms = self._current_map().rooms if self._current_map() else []
        needle = term.strip().lower()
        return [r.copy() for r in rooms if needle in r.name.lower()]

    def rooms_dataframe(self) -> pd.DataFrame:
        """Tabular summary of the selected map's rooms."""
        columns = ["id", "name", "vertex_count", "area", "centroid_x", "centroid_y", "label_x", "label_y"]
        current = self._current_map()
        if current is None or not current.rooms:
            return pd.DataFrame(columns=columns)
        records = []
        for room in current.rooms:
            cx, cy = calc_centroid_of_points(room.coordinates)
            records.append({
                "id":           room.id,
                "name":         room.name,
                "vertex_count": room.vertex_count,
                "area":         calc_polygon_area(room.coordinates),
                "centroid_x":   cx,
                "centroid_y":   cy,
                "label_x":      room.text_coordinates[0],
                "label_y":      room.text_coordinates[1],
            })
        return pd.DataFrame.from_records(records, columns=columns)

    # -------------------------------------------------------------------------
    # Internal lookups
    # -------------------------------------------------------------------------

    def _current_map(self) -> Optional[Map]:
        if self.selected_map_id is None:
            return None
        return self._get_map(self.selected_map_id)

    def _find_room(self, room_id: int) -> Optional[Room]:
        current = self._current_map()
        if current is None:
            return None
        return current.find_room(room_id)

    def _take_room_id(self) -> int:
        room_id = self._next_room_id
        self._next_room_id += 1
        return room_id

    # -------------------------------------------------------------------------
    # Room operations
    # -------------------------------------------------------------------------

    def add_room(self, coordinates: Sequence[float]) -> Optional[Room]:
        """
        Append a new room drawn from ``coordinates``.

        The room gets a fresh id, a generated name and a centroid label anchor.

        The generated name is ``"Room {id}"``; if a room already carries that name
        a ``" (n)"`` suffix is added so the name stays unique within the map.

        Returns:
            The created room, or None if the polygon has fewer than 3 vertices
            or no map is selected.
        """
        coordinates = [float(v) for v in coordinates]
        if not _valid_polygon(coordinates):
            logger.warning(
                f"Rejected new room: needs an even number of coordinates >= {config.MIN_COORDINATES}, "
                f"got {len(coordinates)}")
            return None
        current = self._current_map()
        if current is None:
            logger.warning("Rejected new room: no map selected")
            return None

        room_id = self._take_room_id()
        room = Room(
            id               = room_id,
            name             = _make_unique_name(f"Room {room_id}", {r.name for r in current.rooms}),
            coordinates      = coordinates,
            text_coordinates = list(calc_centroid_of_points(coordinates)),
        )
        current.rooms.append(room)
        logger.info(f"Added room '{room.name}' ({room.vertex_count} vertices) to '{current.name}'")
        return room.copy()

    def add_rooms_from_corners(self, corner_sets: Iterable[Sequence]) -> List[Room]:
        """
        Create one room per detected corner set.

        Each entry may be a flat coordinate list or a sequence of (x, y) pairs.
        Equivalent to calling ``add_room`` once per polygon; rejected polygons are skipped.
        """
        created = []
        for corners in corner_sets:
            try:
                coordinates = flatten_pairs(to_pairs(corners))
            except ValueError as e:
                logger.warning(f"Skipped corner set: {e}")
                continue
            room = self.add_room(coordinates)
            if room is not None:
                created.append(room)
        return created

    def remove_room(self, room_id: int) -> Optional[Room]:
        """Delete a room; a missing id is a no-op."""
        current = self._current_map()
        room    = self._find_room(room_id)
        if room is None:
            logger.debug(f"remove_room: room {room_id} not found")
            return None
        current.rooms.remove(room)
        logger.info(f"Removed room '{room.name}' from '{current.name}'")
        return room.copy()

    def edit_room(self, room_id: int, **fields) -> Optional[Room]:
        """Merge the supplied fields (currently only ``name``) into a room."""
        room = self._find_room(room_id)
        if room is None:
            logger.debug(f"edit_room: room {room_id} not found")
            return None
        for key, value in fields.items():
            if key not in EDITABLE_FIELDS:
                logger.warning(f"edit_room: field '{key}' is not editable")
                continue
            setattr(room, key, str(value))
        return room.copy()

    def duplicate_room(self, room_id: int) -> Optional[Room]:
        """
        Clone a room under a fresh id.

        The copy is named ``"<name> (n)"`` with the smallest n >= 1 not already in use,
        and both its polygon and label are offset by ``DUPLICATE_OFFSET * n`` on each axis.
        """
        current = self._current_map()
        room    = self._find_room(room_id)
        if room is None:
            logger.debug(f"duplicate_room: room {room_id} not found")
            return None

        existing = {r.name for r in current.rooms}
        n = 1
        while f"{room.name} ({n})" in existing:
            n += 1
        offset = config.DUPLICATE_OFFSET * n

        clone = Room(
            id               = self._take_room_id(),
            name             = f"{room.name} ({n})",
            coordinates      = translate_coordinates(room.coordinates, offset, offset),
            text_coordinates = translate_coordinates(room.text_coordinates, offset, offset),
        )
        current.rooms.append(clone)
        logger.info(f"Duplicated '{room.name}' as '{clone.name}'")
        return clone.copy()

    def update_room_coordinates(
            self,
            room_id: int,
            coordinates: Sequence[float],
            text_coordinates: Sequence[float]) -> Optional[Room]:
        """Replace a room's polygon and label anchor together."""
        room = self._find_room(room_id)
        if room is None:
            logger.debug(f"update_room_coordinates: room {room_id} not found")
            return None
        coordinates = [float(v) for v in coordinates]
        if not _valid_polygon(coordinates):
            logger.warning(
                f"Rejected update of '{room.name}': a polygon needs at least 3 vertices "
                f"(got {len(coordinates)} coordinates)")
            return None
        if len(text_coordinates) != 2:
            logger.warning(f"Rejected update of '{room.name}': label anchor must be one (x, y) pair")
            return None
        room.coordinates      = coordinates
        room.text_coordinates = [float(v) for v in text_coordinates]
        return room.copy()

    def update_text_coordinates(self, room_id: int, text_coordinates: Sequence[float]) -> Optional[Room]:
        """Replace only the label anchor of a room."""
        room = self._find_room(room_id)
        if room is None:
            logger.debug(f"update_text_coordinates: room {room_id} not found")
            return None
        if len(text_coordinates) != 2:
            logger.warning(f"Rejected label move of '{room.name}': anchor must be one (x, y) pair")
            return None
        room.text_coordinates = [float(v) for v in text_coordinates]
        return room.copy()

    # -------------------------------------------------------------------------
    # Geometry edits built on update_room_coordinates
    # -------------------------------------------------------------------------

    def move_room(self, room_id: int, dx: float, dy: float) -> Optional[Room]:
        """Translate a room's polygon and label by the same delta."""
        room = self._find_room(room_id)
        if room is None:
            return None
        return self.update_room_coordinates(
            room_id,
            translate_coordinates(room.coordinates, dx, dy),
            translate_coordinates(room.text_coordinates, dx, dy),
        )

    def move_vertex(self, room_id: int, index: int, x: float, y: float) -> Optional[Room]:
        room = self._find_room(room_id)
        if room is None:
            return None
        if not 0 <= index < room.vertex_count:
            logger.warning(f"move_vertex: '{room.name}' has no vertex {index}")
            return None
        coordinates = list(room.coordinates)
        coordinates[2 * index: 2 * index + 2] = [x, y]
        return self.update_room_coordinates(room_id, coordinates, room.text_coordinates)

    def insert_vertex(self, room_id: int, after_index: int, x: float, y: float) -> Optional[Room]:
        """Insert (x, y) immediately after vertex ``after_index``."""
        room = self._find_room(room_id)
        if room is None:
            return None
        if not 0 <= after_index < room.vertex_count:
            logger.warning(f"insert_vertex: '{room.name}' has no vertex {after_index}")
            return None
        coordinates = list(room.coordinates)
        pos = 2 * (after_index + 1)
        coordinates[pos:pos] = [x, y]
        return self.update_room_coordinates(room_id, coordinates, room.text_coordinates)

    def delete_vertex(self, room_id: int, index: int) -> Optional[Room]:
        """Remove one vertex; refused when the room would drop below 3 vertices."""
        room = self._find_room(room_id)
        if room is None:
            return None
        if not 0 <= index < room.vertex_count:
            logger.warning(f"delete_vertex: '{room.name}' has no vertex {index}")
            return None
        coordinates = list(room.coordinates)
        del coordinates[2 * index: 2 * index + 2]
        return self.update_room_coordinates(room_id, coordinates, room.text_coordinates)
