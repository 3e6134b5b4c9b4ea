# Standard library imports
import logging

# Third-party imports
import pytest

# Roommap imports
from roommap.interaction import (
    NO_HOVER,
    AddRoom,
    BodyDrag,
    DeleteRoom,
    DrawingVertex,
    DuplicateRoom,
    HoverChanged,
    InteractionController,
    KeyPress,
    Pan,
    PointerDown,
    PointerMove,
    PointerUp,
    PolygonBody,
    RenameRoom,
    ResetView,
    RoomLabel,
    RoomVertex,
    SelectMap,
    SessionState,
    ToggleDrawMode,
    UpdateRoomCoordinates,
    Warn,
    Wheel,
    hit_test,
    reduce,
)
from roommap.map_store import MapStore
from roommap.models import Map, Room
from roommap.viewport import Viewport


# Test fixtures
@pytest.fixture
def store():
    """Map 1: 'Hall' square at the origin and 'Office' square to its right. Map 2: 'Lab' triangle."""
    return MapStore([
        Map(1, "Ground Floor", "ground.png", [
            Room(1, "Hall", [0, 0, 100, 0, 100, 100, 0, 100]),
            Room(2, "Office", [200, 0, 300, 0, 300, 100, 200, 100]),
        ]),
        Map(2, "First Floor", "first.png", [
            Room(3, "Lab", [0, 0, 100, 0, 50, 80]),
        ]),
    ])


@pytest.fixture
def empty_store():
    """Single map without rooms"""
    return MapStore([Map(1, "Blank", "blank.png", [])])


@pytest.fixture
def controller(store):
    return InteractionController(store)


def click(controller, x, y):
    """Hover, press and release at the same surface position"""
    controller.hover_at(x, y)
    controller.dispatch(PointerDown(x, y))
    return controller.dispatch(PointerUp(x, y))


def press(controller, x, y):
    controller.hover_at(x, y)
    controller.dispatch(PointerDown(x, y))
    controller.dispatch(PointerUp(x, y))


class TestDrawing:
    """Tests for draw mode and polygon closure"""

    def test_closure_law(self, empty_store):
        """Test that a fifth point near the first commits the 4-vertex room"""
        controller = InteractionController(empty_store)
        controller.dispatch(ToggleDrawMode())
        for x, y in [(0, 0), (10, 0), (10, 10), (0, 10)]:
            controller.dispatch(PointerDown(x, y))
        effects = controller.dispatch(PointerDown(0.5, 0.5))

        assert effects == [AddRoom((0.0, 0.0, 10.0, 0.0, 10.0, 10.0, 0.0, 10.0))]
        rooms = empty_store.selected_map_rooms
        assert len(rooms) == 1
        assert rooms[0].coordinates == [0.0, 0.0, 10.0, 0.0, 10.0, 10.0, 0.0, 10.0]
        assert rooms[0].text_coordinates == [5.0, 5.0]
        assert controller.state.draw_mode is False
        assert controller.state.drawing_points == ()
        assert controller.state.mode == "idle"

    def test_closing_on_first_handle(self, empty_store):
        """Test closing by clicking the first vertex handle"""
        controller = InteractionController(empty_store)
        controller.dispatch(ToggleDrawMode())
        for x, y in [(100, 100), (200, 100), (150, 180)]:
            press(controller, x, y)
        press(controller, 102, 101)
        assert len(empty_store.selected_map_rooms) == 1
        assert empty_store.selected_map_rooms[0].vertex_count == 3

    def test_points_outside_threshold_keep_growing(self, empty_store):
        controller = InteractionController(empty_store)
        controller.dispatch(ToggleDrawMode())
        for x, y in [(0, 0), (50, 0), (50, 50), (10, 0.5)]:
            controller.dispatch(PointerDown(x, y))
        assert len(controller.state.drawing_points) == 8
        assert empty_store.selected_map_rooms == ()

    def test_closing_two_points_warns_and_keeps_drawing(self, empty_store, caplog):
        controller = InteractionController(empty_store)
        controller.dispatch(ToggleDrawMode())
        controller.dispatch(PointerDown(0, 0))
        controller.dispatch(PointerDown(50, 0))
        with caplog.at_level(logging.WARNING):
            effects = controller.dispatch(PointerDown(1, 1))
        assert isinstance(effects[0], Warn)
        assert controller.state.draw_mode
        assert controller.state.drawing_points == (0.0, 0.0, 50.0, 0.0)
        assert "at least 3 vertices" in caplog.text

    def test_entering_draw_mode_clears_selection(self, controller):
        click(controller, 20, 30)
        assert controller.state.selected_room_id == 1
        controller.dispatch(ToggleDrawMode())
        assert controller.state.selected_room_id is None
        assert controller.state.mode == "drawing"

    def test_leaving_draw_mode_discards_points(self, controller, store):
        controller.dispatch(ToggleDrawMode())
        press(controller, 500, 500)
        press(controller, 600, 500)
        controller.dispatch(ToggleDrawMode())
        assert controller.state.drawing_points == ()
        assert len(store.selected_map_rooms) == 2

    def test_press_on_existing_polygon_is_ignored(self, controller):
        controller.dispatch(ToggleDrawMode())
        press(controller, 20, 30)
        assert controller.state.drawing_points == ()
        assert controller.state.selected_room_id is None

    def test_drawing_after_rename_to_generated_name(self, store):
        """Test that rooms can still be drawn once a room holds the next generated name"""
        controller = InteractionController(store)
        controller.dispatch(RenameRoom(1, "Room 4"))
        for offset in (0, 100, 200):
            controller.dispatch(ToggleDrawMode())
            for x, y in [(400 + offset, 400), (450 + offset, 400), (425 + offset, 450), (401 + offset, 401)]:
                press(controller, x, y)
        names = [r.name for r in store.selected_map_rooms]
        assert len(names) == 5
        assert names[2:] == ["Room 4 (1)", "Room 5", "Room 6"]

    def test_label_outside_polygon_does_not_block_drawing(self, controller, store):
        store.update_text_coordinates(1, [300, 300])
        controller.dispatch(ToggleDrawMode())
        assert controller.hover_at(305, 300) == NO_HOVER
        controller.dispatch(PointerDown(305, 300))
        assert controller.state.drawing_points == (305.0, 300.0)

    def test_stale_label_hover_appends_in_draw_mode(self):
        state = SessionState(draw_mode=True, hover=RoomLabel(1))
        state, effects = reduce(state, PointerDown(305, 300), ())
        assert state.drawing_points == (305.0, 300.0)
        assert effects == []

    def test_drag_in_progress_vertex(self, empty_store):
        controller = InteractionController(empty_store)
        controller.dispatch(ToggleDrawMode())
        press(controller, 0, 0)
        press(controller, 100, 0)
        controller.hover_at(100, 0)
        controller.dispatch(PointerDown(100, 0))
        controller.dispatch(PointerMove(120, 30))
        controller.dispatch(PointerUp(120, 30))
        assert controller.state.drawing_points == (0.0, 0.0, 120.0, 30.0)

    def test_delete_key_removes_hovered_drawing_vertex(self, empty_store):
        controller = InteractionController(empty_store)
        controller.dispatch(ToggleDrawMode())
        for x, y in [(0, 0), (100, 0), (100, 100)]:
            press(controller, x, y)
        controller.hover_at(100, 0)
        controller.dispatch(KeyPress("Delete"))
        assert controller.state.drawing_points == (0.0, 0.0, 100.0, 100.0)
        assert controller.state.hover == NO_HOVER


class TestSelection:
    """Tests for selecting and deselecting rooms"""

    def test_click_selects_room(self, controller):
        click(controller, 20, 30)
        assert controller.state.selected_room_id == 1
        assert controller.state.mode == "editing"

    def test_selection_is_exclusive(self, controller):
        click(controller, 20, 30)
        click(controller, 220, 30)
        assert controller.state.selected_room_id == 2

    def test_click_on_empty_canvas_clears_selection(self, controller):
        click(controller, 20, 30)
        click(controller, 500, 500)
        assert controller.state.selected_room_id is None

    def test_click_on_label_of_unselected_room_selects_it(self, controller):
        click(controller, 250, 50)
        assert controller.state.selected_room_id == 2

    def test_escape_deselects(self, controller):
        click(controller, 20, 30)
        controller.dispatch(KeyPress("escape"))
        assert controller.state.selected_room_id is None

    def test_vanished_selection_is_dropped(self, controller, store):
        click(controller, 20, 30)
        store.remove_room(1)
        controller.dispatch(HoverChanged(NO_HOVER))
        assert controller.state.selected_room_id is None


class TestEdgeInsertion:
    """Tests for clicking a selected room again"""

    def test_click_near_edge_inserts_click_point(self, controller, store):
        click(controller, 20, 30)
        effects = click(controller, 50, 5)
        assert isinstance(effects[0], UpdateRoomCoordinates)
        assert store.get_room(1).coordinates == [0.0, 0.0, 50.0, 5.0, 100.0, 0.0, 100.0, 100.0, 0.0, 100.0]
        assert controller.state.selected_room_id == 1

    def test_click_just_outside_edge_band_of_selected_room(self, controller, store):
        click(controller, 20, 30)
        click(controller, 50, -5)
        assert store.get_room(1).coordinates[2:4] == [50.0, -5.0]

    def test_click_away_from_edges_toggles_selection_off(self, controller, store):
        click(controller, 20, 30)
        click(controller, 50, 30)
        assert controller.state.selected_room_id is None
        assert store.get_room(1).vertex_count == 4

    def test_inserted_vertex_keeps_label(self, controller, store):
        click(controller, 20, 30)
        click(controller, 95, 50)
        assert store.get_room(1).text_coordinates == [50.0, 50.0]


class TestDragging:
    """Tests for body, vertex and label drags"""

    def test_body_drag_commits_on_release(self, controller, store):
        click(controller, 20, 30)
        controller.hover_at(20, 30)
        controller.dispatch(PointerDown(20, 30))
        controller.dispatch(PointerMove(30, 45))

        assert isinstance(controller.state.gesture, BodyDrag)
        assert controller.state.drag_offset(1) == (10.0, 15.0)
        assert store.get_room(1).coordinates[:2] == [0.0, 0.0]

        controller.dispatch(PointerUp(30, 45))
        room = store.get_room(1)
        assert room.coordinates == [10.0, 15.0, 110.0, 15.0, 110.0, 115.0, 10.0, 115.0]
        assert room.text_coordinates == [60.0, 65.0]
        assert controller.state.gesture is None
        assert controller.state.drag_offset(1) == (0.0, 0.0)

    def test_zero_delta_drag_still_commits(self, controller, store):
        click(controller, 20, 30)
        controller.hover_at(20, 30)
        controller.dispatch(PointerDown(20, 30))
        controller.dispatch(PointerMove(25, 30))
        controller.dispatch(PointerMove(20, 30))
        effects = controller.dispatch(PointerUp(20, 30))
        assert effects == [UpdateRoomCoordinates(
            1, (0.0, 0.0, 100.0, 0.0, 100.0, 100.0, 0.0, 100.0), (50.0, 50.0))]
        assert controller.state.selected_room_id == 1

    def test_unselected_room_is_not_dragged(self, controller, store):
        controller.hover_at(20, 30)
        controller.dispatch(PointerDown(20, 30))
        controller.dispatch(PointerMove(60, 60))
        controller.dispatch(PointerUp(60, 60))
        assert store.get_room(1).coordinates[:2] == [0.0, 0.0]
        assert controller.state.selected_room_id == 1

    def test_vertex_drag_commits_on_every_move(self, controller, store):
        click(controller, 20, 30)
        assert controller.hover_at(100, 100) == RoomVertex(1, 2)
        controller.dispatch(PointerDown(100, 100))
        controller.dispatch(PointerMove(120, 110))
        assert store.get_room(1).coordinates[4:6] == [120.0, 110.0]
        controller.dispatch(PointerMove(130, 130))
        assert store.get_room(1).coordinates[4:6] == [130.0, 130.0]
        controller.dispatch(PointerUp(130, 130))
        assert controller.state.gesture is None
        assert store.get_room(1).text_coordinates == [50.0, 50.0]

    def test_label_drag_moves_only_label(self, controller, store):
        click(controller, 20, 30)
        assert controller.hover_at(52, 48) == RoomLabel(1)
        controller.dispatch(PointerDown(52, 48))
        controller.dispatch(PointerMove(62, 58))
        controller.dispatch(PointerUp(62, 58))
        room = store.get_room(1)
        assert room.text_coordinates == [60.0, 60.0]
        assert room.coordinates == [0.0, 0.0, 100.0, 0.0, 100.0, 100.0, 0.0, 100.0]


class TestVertexDeletion:
    """Tests for the delete key on room vertices"""

    def test_delete_hovered_vertex(self, controller, store):
        click(controller, 20, 30)
        controller.hover_at(100, 0)
        controller.dispatch(KeyPress("Delete"))
        assert store.get_room(1).coordinates == [0.0, 0.0, 100.0, 100.0, 0.0, 100.0]

    def test_delete_from_triangle_is_refused(self, store, caplog):
        store.select_map(2)
        controller = InteractionController(store)
        click(controller, 50, 10)
        assert controller.state.selected_room_id == 3
        controller.hover_at(100, 0)
        with caplog.at_level(logging.WARNING):
            controller.dispatch(KeyPress("backspace"))
        assert store.get_room(3).vertex_count == 3
        assert "at least 3 vertices" in controller.last_warning
        assert "at least 3 vertices" in caplog.text

    def test_delete_without_hover_does_nothing(self, controller, store):
        click(controller, 20, 30)
        controller.hover_at(50, 30)
        assert controller.dispatch(KeyPress("delete")) == []


class TestViewGestures:
    """Tests for pan and zoom"""

    def test_drag_on_empty_canvas_pans(self, controller):
        controller.hover_at(500, 500)
        controller.dispatch(PointerDown(500, 500))
        assert isinstance(controller.state.gesture, Pan)
        controller.dispatch(PointerMove(520, 510))
        controller.dispatch(PointerUp(520, 510))
        viewport = controller.state.viewport
        assert (viewport.tx, viewport.ty) == (20.0, 10.0)

    def test_wheel_zooms_about_pointer(self, controller):
        controller.dispatch(Wheel(100, 100, 1))
        viewport = controller.state.viewport
        assert viewport.scale == pytest.approx(1.05)
        assert viewport.pointer_to_map(100, 100) == pytest.approx((100.0, 100.0))

    def test_pointer_events_use_current_viewport(self, controller, store):
        """Test that a zoomed view maps presses back into map space"""
        controller.dispatch(ResetView(Viewport(scale=2.0, tx=100.0, ty=0.0)))
        click(controller, 140, 60)
        assert controller.state.selected_room_id == 1

    def test_non_primary_button_ignored(self, controller):
        controller.hover_at(20, 30)
        controller.dispatch(PointerDown(20, 30, button=3))
        assert controller.state.selected_room_id is None


class TestCommands:
    """Tests for side panel commands routed through the controller"""

    def test_rename_room(self, controller, store):
        controller.dispatch(RenameRoom(1, "  Lobby "))
        assert store.get_room(1).name == "Lobby"

    def test_empty_rename_warns(self, controller, store):
        effects = controller.dispatch(RenameRoom(1, "   "))
        assert isinstance(effects[0], Warn)
        assert store.get_room(1).name == "Hall"

    def test_delete_selected_room(self, controller, store):
        click(controller, 20, 30)
        controller.dispatch(DeleteRoom(1))
        assert store.get_room(1) is None
        assert controller.state.selected_room_id is None

    def test_duplicate_room(self, controller, store):
        controller.dispatch(DuplicateRoom(2))
        assert [r.name for r in store.selected_map_rooms][-1] == "Office (1)"

    def test_select_map_resets_session(self, controller, store):
        click(controller, 20, 30)
        controller.dispatch(Wheel(10, 10, 1))
        controller.dispatch(SelectMap(2))
        assert store.selected_map_id == 2
        assert controller.state == SessionState()


class TestReducer:
    """Tests for the pure reducer and hit testing"""

    @pytest.fixture
    def rooms(self, store):
        return store.selected_map_rooms

    def test_reduce_does_not_mutate_input_state(self, rooms):
        state = SessionState()
        new_state, effects = reduce(state, ToggleDrawMode(), rooms)
        assert state.draw_mode is False
        assert new_state.draw_mode is True
        assert effects == []

    def test_reduce_without_store(self, rooms):
        state = SessionState(selected_room_id=1, hover=PolygonBody(1))
        state, _ = reduce(state, PointerDown(50, 30), rooms)
        state, effects = reduce(state, PointerUp(50, 30), rooms)
        assert state.selected_room_id is None
        assert effects == []

    def test_hit_test_variants(self, rooms):
        state = SessionState(selected_room_id=1)
        assert hit_test(state, rooms, 100, 100) == RoomVertex(1, 2)
        assert hit_test(state, rooms, 50, 50) == RoomLabel(1)
        assert hit_test(state, rooms, 20, 30) == PolygonBody(1)
        assert hit_test(state, rooms, 280, 80) == PolygonBody(2)
        assert hit_test(state, rooms, 500, 500) == NO_HOVER

    def test_handles_only_for_selected_room(self, rooms):
        assert hit_test(SessionState(), rooms, 98, 98) == PolygonBody(1)
        assert hit_test(SessionState(selected_room_id=1), rooms, 98, 98) == RoomVertex(1, 2)

    def test_handle_radius_follows_zoom(self, rooms):
        zoomed = SessionState(selected_room_id=1, viewport=Viewport(scale=2.0))
        assert hit_test(zoomed, rooms, 104, 100) == PolygonBody(1)
        assert hit_test(zoomed, rooms, 102, 100) == RoomVertex(1, 2)

    def test_drawing_vertices_hit_first(self, rooms):
        state = SessionState(draw_mode=True, drawing_points=(20.0, 30.0, 40.0, 30.0))
        assert hit_test(state, rooms, 41, 31) == DrawingVertex(1)
