"""
Interaction controller for the room editor.

Pointer and keyboard events are folded into an explicit ``SessionState`` by the
pure reducer ``reduce(state, event, rooms) -> (state, effects)``. Effects describe
store mutations; ``InteractionController`` applies them to a ``MapStore`` so the
reducer itself can be exercised without a rendering surface.

States:
    Idle                  draw mode off, nothing selected
    Drawing               draw mode on, presses append vertices
    Editing(room_id)      a room is selected; drag body/vertices/label, click edges
"""

# Roommap imports
from roommap import config
from roommap.geometry_utils import (
    find_nearest_edge,
    nearest_vertex,
    point_in_polygon,
    translate_coordinates,
)
from roommap.map_store import MapStore
from roommap.models import Room
from roommap.viewport import Viewport

# Standard library imports
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

PRIMARY_BUTTON = 1
DELETE_KEYS    = ("delete", "backspace")


# -----------------------------------------------------------------------------
# Hover variants (reported by the presentation layer)
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class NoHover:
    pass


@dataclass(frozen=True)
class DrawingVertex:
    index: int


@dataclass(frozen=True)
class RoomVertex:
    room_id: int
    index: int


@dataclass(frozen=True)
class PolygonBody:
    room_id: int


@dataclass(frozen=True)
class RoomLabel:
    room_id: int


Hover    = Union[NoHover, DrawingVertex, RoomVertex, PolygonBody, RoomLabel]
NO_HOVER = NoHover()


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ToggleDrawMode:
    pass


@dataclass(frozen=True)
class PointerDown:
    px: float
    py: float
    button: int = PRIMARY_BUTTON


@dataclass(frozen=True)
class PointerMove:
    px: float
    py: float


@dataclass(frozen=True)
class PointerUp:
    px: float
    py: float


@dataclass(frozen=True)
class Wheel:
    px: float
    py: float
    delta: float


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class HoverChanged:
    hover: Hover


@dataclass(frozen=True)
class RenameRoom:
    room_id: int
    name: str


@dataclass(frozen=True)
class DeleteRoom:
    room_id: int


@dataclass(frozen=True)
class DuplicateRoom:
    room_id: int


@dataclass(frozen=True)
class SelectMap:
    map_id: int


@dataclass(frozen=True)
class ResetView:
    viewport: Viewport = field(default_factory=Viewport)


Event = Union[ToggleDrawMode, PointerDown, PointerMove, PointerUp, Wheel, KeyPress,
              HoverChanged, RenameRoom, DeleteRoom, DuplicateRoom, SelectMap, ResetView]


# -----------------------------------------------------------------------------
# Effects (store mutations requested by the reducer)
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class AddRoom:
    coordinates: Tuple[float, ...]


@dataclass(frozen=True)
class UpdateRoomCoordinates:
    room_id: int
    coordinates: Tuple[float, ...]
    text_coordinates: Tuple[float, float]


@dataclass(frozen=True)
class UpdateTextCoordinates:
    room_id: int
    text_coordinates: Tuple[float, float]


@dataclass(frozen=True)
class RemoveRoom:
    room_id: int


@dataclass(frozen=True)
class EditRoom:
    room_id: int
    name: str


@dataclass(frozen=True)
class DuplicateRoomEffect:
    room_id: int


@dataclass(frozen=True)
class SelectMapEffect:
    map_id: int


@dataclass(frozen=True)
class Warn:
    message: str


Effect = Union[AddRoom, UpdateRoomCoordinates, UpdateTextCoordinates, RemoveRoom,
               EditRoom, DuplicateRoomEffect, SelectMapEffect, Warn]


# -----------------------------------------------------------------------------
# Gestures in progress
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class BodyPress:
    """Primary button down on the selected room's body, no motion yet."""
    room_id: int
    start_x: float
    start_y: float


@dataclass(frozen=True)
class BodyDrag:
    room_id: int
    start_x: float
    start_y: float
    dx: float = 0.0
    dy: float = 0.0


@dataclass(frozen=True)
class VertexDrag:
    room_id: int
    index: int


@dataclass(frozen=True)
class LabelDrag:
    room_id: int
    grab_dx: float
    grab_dy: float


@dataclass(frozen=True)
class DrawingVertexDrag:
    index: int


@dataclass(frozen=True)
class Pan:
    last_px: float
    last_py: float


Gesture = Union[BodyPress, BodyDrag, VertexDrag, LabelDrag, DrawingVertexDrag, Pan]


# -----------------------------------------------------------------------------
# Session state
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionState:
    """
    Transient editor state; never persisted.

    Attributes:
        draw_mode (bool): Presses append polygon vertices instead of selecting.
        drawing_points (Tuple[float, ...]): Flat x, y list of the polygon under construction.
        selected_room_id (Optional[int]): The single selected room, if any.
        hover (Hover): What the pointer is currently over.
        gesture (Optional[Gesture]): Drag or pan in progress.
        viewport (Viewport): Pan/zoom of the rendering surface.
    """

    draw_mode: bool                     = False
    drawing_points: Tuple[float, ...]   = ()
    selected_room_id: Optional[int]     = None
    hover: Hover                        = NO_HOVER
    gesture: Optional[Gesture]          = None
    viewport: Viewport                  = field(default_factory=Viewport)

    @property
    def mode(self) -> str:
        if self.draw_mode:
            return "drawing"
        if self.selected_room_id is not None:
            return "editing"
        return "idle"

    def drag_offset(self, room_id: int) -> Tuple[float, float]:
        """Transient body-drag offset to apply when rendering ``room_id``."""
        if isinstance(self.gesture, BodyDrag) and self.gesture.room_id == room_id:
            return self.gesture.dx, self.gesture.dy
        return 0.0, 0.0


# -----------------------------------------------------------------------------
# Hit testing
# -----------------------------------------------------------------------------

def hit_test(
        state: SessionState,
        rooms: Sequence[Room],
        x: float,
        y: float,
        handle_radius: float = config.HANDLE_RADIUS_PX,
        label_radius: float = config.LABEL_RADIUS_PX) -> Hover:
    """
    Work out what lies under a map-space point.

    Radii are given in surface pixels and converted with the current zoom. Handles
    are only offered for the in-progress polygon and the selected room; the edge
    band of the selected room counts as its body so edge clicks reach it.
    Labels are not hit while drawing; only polygon bodies block new vertices.
    Later rooms are drawn on top and win ties.
    """
    handle_r = state.viewport.to_map_distance(handle_radius)
    label_r  = state.viewport.to_map_distance(label_radius)

    if state.draw_mode and state.drawing_points:
        idx = nearest_vertex(x, y, state.drawing_points, handle_r)
        if idx >= 0:
            return DrawingVertex(idx)

    selected = _room_index(rooms).get(state.selected_room_id)
    if selected is not None:
        idx = nearest_vertex(x, y, selected.coordinates, handle_r)
        if idx >= 0:
            return RoomVertex(selected.id, idx)

    if not state.draw_mode:
        for room in reversed(rooms):
            lx, ly = room.text_coordinates
            if math.hypot(x - lx, y - ly) <= label_r:
                return RoomLabel(room.id)

    for room in reversed(rooms):
        if point_in_polygon(x, y, room.coordinates):
            return PolygonBody(room.id)
        if room is selected and find_nearest_edge(x, y, room.coordinates).found:
            return PolygonBody(room.id)

    return NO_HOVER


# -----------------------------------------------------------------------------
# Reducer
# -----------------------------------------------------------------------------

def _room_index(rooms: Sequence[Room]) -> Dict[int, Room]:
    return {room.id: room for room in rooms}


def _replace_pair(coordinates: Sequence[float], index: int, x: float, y: float) -> Tuple[float, ...]:
    updated = list(coordinates)
    updated[2 * index: 2 * index + 2] = [x, y]
    return tuple(updated)


def _remove_pair(coordinates: Sequence[float], index: int) -> Tuple[float, ...]:
    updated = list(coordinates)
    del updated[2 * index: 2 * index + 2]
    return tuple(updated)


def _insert_pair(coordinates: Sequence[float], after_index: int, x: float, y: float) -> Tuple[float, ...]:
    updated = list(coordinates)
    pos = 2 * (after_index + 1)
    updated[pos:pos] = [x, y]
    return tuple(updated)


def _select(state: SessionState, room_id: Optional[int]) -> SessionState:
    return replace(state, selected_room_id=room_id, gesture=None)


def _append_drawing_point(state: SessionState, x: float, y: float) -> Tuple[SessionState, List[Effect]]:
    points = state.drawing_points
    if len(points) >= 4 and math.hypot(x - points[0], y - points[1]) < config.CLOSURE_THRESHOLD:
        # Closing click: the duplicate of the first point is dropped
        if len(points) < config.MIN_COORDINATES:
            return state, [Warn("A room needs at least 3 vertices before it can be closed")]
        closed = replace(state, draw_mode=False, drawing_points=(), hover=NO_HOVER, gesture=None)
        return closed, [AddRoom(tuple(points))]
    return replace(state, drawing_points=points + (float(x), float(y))), []


def _on_toggle_draw_mode(state: SessionState) -> Tuple[SessionState, List[Effect]]:
    if state.draw_mode:
        # Leaving draw mode discards the unfinished polygon
        return replace(state, draw_mode=False, drawing_points=(), gesture=None, hover=NO_HOVER), []
    return replace(state, draw_mode=True, drawing_points=(), selected_room_id=None, gesture=None), []


def _on_pointer_down(state: SessionState, event: PointerDown, rooms: Dict[int, Room]) -> Tuple[SessionState, List[Effect]]:
    if event.button != PRIMARY_BUTTON:
        return state, []
    x, y  = state.viewport.pointer_to_map(event.px, event.py)
    hover = state.hover

    if state.draw_mode:
        if isinstance(hover, DrawingVertex) and hover.index > 0:
            return replace(state, gesture=DrawingVertexDrag(hover.index)), []
        if isinstance(hover, (NoHover, DrawingVertex, RoomLabel)):
            return _append_drawing_point(state, x, y)
        return state, []

    if isinstance(hover, RoomVertex) and hover.room_id in rooms:
        if hover.room_id == state.selected_room_id:
            return replace(state, gesture=VertexDrag(hover.room_id, hover.index)), []
        return _select(state, hover.room_id), []

    if isinstance(hover, RoomLabel) and hover.room_id in rooms:
        if hover.room_id == state.selected_room_id:
            lx, ly = rooms[hover.room_id].text_coordinates
            return replace(state, gesture=LabelDrag(hover.room_id, lx - x, ly - y)), []
        return _select(state, hover.room_id), []

    if isinstance(hover, PolygonBody) and hover.room_id in rooms:
        if hover.room_id == state.selected_room_id:
            return replace(state, gesture=BodyPress(hover.room_id, x, y)), []
        return _select(state, hover.room_id), []

    # Empty canvas: drop the selection and pan the surface
    return replace(state, selected_room_id=None, gesture=Pan(event.px, event.py)), []


def _on_pointer_move(state: SessionState, event: PointerMove, rooms: Dict[int, Room]) -> Tuple[SessionState, List[Effect]]:
    gesture = state.gesture
    if gesture is None:
        return state, []
    x, y = state.viewport.pointer_to_map(event.px, event.py)

    if isinstance(gesture, (BodyPress, BodyDrag)):
        drag = BodyDrag(gesture.room_id, gesture.start_x, gesture.start_y,
                        x - gesture.start_x, y - gesture.start_y)
        return replace(state, gesture=drag), []

    if isinstance(gesture, VertexDrag):
        room = rooms.get(gesture.room_id)
        if room is None or gesture.index >= room.vertex_count:
            return replace(state, gesture=None), []
        coordinates = _replace_pair(room.coordinates, gesture.index, x, y)
        return state, [UpdateRoomCoordinates(room.id, coordinates, tuple(room.text_coordinates))]

    if isinstance(gesture, LabelDrag):
        if gesture.room_id not in rooms:
            return replace(state, gesture=None), []
        anchor = (x + gesture.grab_dx, y + gesture.grab_dy)
        return state, [UpdateTextCoordinates(gesture.room_id, anchor)]

    if isinstance(gesture, DrawingVertexDrag):
        if 2 * gesture.index >= len(state.drawing_points):
            return replace(state, gesture=None), []
        points = _replace_pair(state.drawing_points, gesture.index, x, y)
        return replace(state, drawing_points=points), []

    if isinstance(gesture, Pan):
        viewport = state.viewport.panned(event.px - gesture.last_px, event.py - gesture.last_py)
        return replace(state, viewport=viewport, gesture=Pan(event.px, event.py)), []

    return state, []


def _on_pointer_up(state: SessionState, event: PointerUp, rooms: Dict[int, Room]) -> Tuple[SessionState, List[Effect]]:
    gesture = state.gesture
    state   = replace(state, gesture=None)

    if isinstance(gesture, BodyDrag):
        room = rooms.get(gesture.room_id)
        if room is None:
            return state, []
        # Commit even a zero delta; the stored coordinates hold the truth
        return state, [UpdateRoomCoordinates(
            room.id,
            tuple(translate_coordinates(room.coordinates, gesture.dx, gesture.dy)),
            tuple(translate_coordinates(room.text_coordinates, gesture.dx, gesture.dy)),
        )]

    if isinstance(gesture, BodyPress):
        room = rooms.get(gesture.room_id)
        if room is None:
            return _select(state, None), []
        x, y = gesture.start_x, gesture.start_y
        edge = find_nearest_edge(x, y, room.coordinates)
        if edge.found:
            coordinates = _insert_pair(room.coordinates, edge.edge_start_index, x, y)
            return state, [UpdateRoomCoordinates(room.id, coordinates, tuple(room.text_coordinates))]
        return _select(state, None), []

    return state, []


def _on_key_press(state: SessionState, event: KeyPress, rooms: Dict[int, Room]) -> Tuple[SessionState, List[Effect]]:
    key   = (event.key or "").lower()
    hover = state.hover

    if key in DELETE_KEYS:
        if isinstance(hover, DrawingVertex) and state.draw_mode:
            if 2 * hover.index >= len(state.drawing_points):
                return state, []
            points = _remove_pair(state.drawing_points, hover.index)
            return replace(state, drawing_points=points, hover=NO_HOVER, gesture=None), []

        if isinstance(hover, RoomVertex) and hover.room_id == state.selected_room_id:
            room = rooms.get(hover.room_id)
            if room is None or hover.index >= room.vertex_count:
                return state, []
            if len(room.coordinates) - 2 < config.MIN_COORDINATES:
                return state, [Warn(f"Cannot remove vertex from '{room.name}': a room needs at least 3 vertices")]
            coordinates = _remove_pair(room.coordinates, hover.index)
            return (replace(state, hover=NO_HOVER, gesture=None),
                    [UpdateRoomCoordinates(room.id, coordinates, tuple(room.text_coordinates))])
        return state, []

    if key == "escape" and state.selected_room_id is not None:
        return _select(state, None), []

    return state, []


def reduce(state: SessionState, event: Event, rooms: Sequence[Room]) -> Tuple[SessionState, List[Effect]]:
    """
    Fold one event into the session state.

    Args:
        state: Current session state.
        event: Pointer, keyboard or command event.
        rooms: Read-only rooms of the selected map.

    Returns:
        (new_state, effects) where effects are store mutations to apply in order.
    """
    by_id = _room_index(rooms)

    # A selection whose room vanished is dropped silently
    if state.selected_room_id is not None and state.selected_room_id not in by_id:
        state = replace(state, selected_room_id=None, gesture=None)

    if isinstance(event, ToggleDrawMode):
        return _on_toggle_draw_mode(state)
    if isinstance(event, PointerDown):
        return _on_pointer_down(state, event, by_id)
    if isinstance(event, PointerMove):
        return _on_pointer_move(state, event, by_id)
    if isinstance(event, PointerUp):
        return _on_pointer_up(state, event, by_id)
    if isinstance(event, Wheel):
        return replace(state, viewport=state.viewport.zoomed(event.px, event.py, event.delta)), []
    if isinstance(event, KeyPress):
        return _on_key_press(state, event, by_id)
    if isinstance(event, HoverChanged):
        return replace(state, hover=event.hover), []
    if isinstance(event, ResetView):
        return replace(state, viewport=event.viewport), []

    if isinstance(event, RenameRoom):
        name = event.name.strip()
        if not name:
            return state, [Warn("Room name cannot be empty")]
        if event.room_id not in by_id:
            return state, []
        return state, [EditRoom(event.room_id, name)]

    if isinstance(event, DeleteRoom):
        if event.room_id not in by_id:
            return state, []
        if state.selected_room_id == event.room_id:
            state = _select(state, None)
        if getattr(state.hover, "room_id", None) == event.room_id:
            state = replace(state, hover=NO_HOVER)
        return state, [RemoveRoom(event.room_id)]

    if isinstance(event, DuplicateRoom):
        if event.room_id not in by_id:
            return state, []
        return state, [DuplicateRoomEffect(event.room_id)]

    if isinstance(event, SelectMap):
        return SessionState(), [SelectMapEffect(event.map_id)]

    return state, []


# -----------------------------------------------------------------------------
# Controller
# -----------------------------------------------------------------------------

def apply_effects(store: MapStore, effects: Sequence[Effect]) -> list:
    """Apply reducer effects to the store in order; returns each operation's result."""
    results = []
    for effect in effects:
        if isinstance(effect, AddRoom):
            results.append(store.add_room(effect.coordinates))
        elif isinstance(effect, UpdateRoomCoordinates):
            results.append(store.update_room_coordinates(effect.room_id, effect.coordinates, effect.text_coordinates))
        elif isinstance(effect, UpdateTextCoordinates):
            results.append(store.update_text_coordinates(effect.room_id, effect.text_coordinates))
        elif isinstance(effect, RemoveRoom):
            results.append(store.remove_room(effect.room_id))
        elif isinstance(effect, EditRoom):
            results.append(store.edit_room(effect.room_id, name=effect.name))
        elif isinstance(effect, DuplicateRoomEffect):
            results.append(store.duplicate_room(effect.room_id))
        elif isinstance(effect, SelectMapEffect):
            results.append(store.select_map(effect.map_id))
        elif isinstance(effect, Warn):
            logger.warning(effect.message)
            results.append(None)
        else:
            raise TypeError(f"Unknown effect: {effect!r}")
    return results


class InteractionController:
    """
    Owns the session state and is the only writer of the store.

    Args:
        store: Map/room store to mutate.
        state: Initial session state (fresh by default).
    """

    def __init__(self, store: MapStore, state: Optional[SessionState] = None):
        self.store = store
        self.state = state or SessionState()
        self.last_warning: Optional[str] = None

    @property
    def rooms(self) -> Tuple[Room, ...]:
        return self.store.selected_map_rooms or ()

    def dispatch(self, event: Event) -> List[Effect]:
        """Reduce one event and apply the resulting effects to the store."""
        self.state, effects = reduce(self.state, event, self.rooms)
        apply_effects(self.store, effects)
        for effect in effects:
            if isinstance(effect, Warn):
                self.last_warning = effect.message
        return effects

    def hover_at(self, px: float, py: float,
                 handle_radius: float = config.HANDLE_RADIUS_PX,
                 label_radius: float = config.LABEL_RADIUS_PX) -> Hover:
        """Hit-test a surface position and report the hover back if it changed."""
        x, y  = self.state.viewport.pointer_to_map(px, py)
        hover = hit_test(self.state, self.rooms, x, y, handle_radius, label_radius)
        if hover != self.state.hover:
            self.dispatch(HoverChanged(hover))
        return hover
