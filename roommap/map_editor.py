"""
Interactive room editor for raster floor-plan maps.

Draws room polygons over the selected map's image and forwards canvas events to
the ``InteractionController``. The editor only renders store state plus the
controller's transient drawing/drag state; every mutation goes through the
controller.

Controls:
    n             Toggle draw mode
    Left-click    Place vertex (draw mode), select room, click an edge of the
                  selected room to insert a vertex, click empty canvas to deselect
    Drag          Move selected room, its vertices or its label; pan on empty canvas
    Delete        Remove hovered vertex
    Escape        Deselect room
    Scroll        Zoom centred on cursor
    PageUp/Down   Previous / next map
    r             Reset zoom
    q             Quit
"""

# fmt: off
# autopep8: off

# Roommap imports
from roommap import config
from roommap.geometry_utils import to_pairs
from roommap.image_utils import load_map_image, resolve_image_path
from roommap.interaction import (
    DeleteRoom,
    DrawingVertex,
    DuplicateRoom,
    InteractionController,
    KeyPress,
    PointerDown,
    PointerMove,
    PointerUp,
    RenameRoom,
    ResetView,
    RoomVertex,
    SelectMap,
    ToggleDrawMode,
    Wheel,
)
from roommap.map_store import MapStore
from roommap.viewport import Viewport

# Standard library imports
from pathlib import Path
from typing import Optional, Tuple, Union

# Third-party imports
import matplotlib.pyplot as plt
from matplotlib.patches import Polygon
from matplotlib.widgets import Button, TextBox
import numpy as np


class MapEditor:
    """Interactive room boundary editor for floor-plan images.

    Args:
        store: Map/room store holding the maps to edit.
        images_dir: Directory used to resolve map image references.
    """

    _WINDOW_TITLE = "Roommap - Room Editor"

    def __init__(
        self,
        store:          MapStore,
        images_dir:     Union[Path, str]        = config.IMAGES_DIR,
    ):
        self.store                                      = store
        self.images_dir                                 = Path(images_dir)
        self.controller                                 = InteractionController(store)

        # Background image of the selected map (set on map load)
        self._image:                Optional[np.ndarray]= None
        self._image_width:          float               = 1.0
        self._image_height:         float               = 1.0

        self._last_warning:         Optional[str]       = None
        self.fig                                        = None
        self.ax                                         = None

    # -------------------------------------------------------------------------
    # Layout helper (top-left coordinate system)
    # -------------------------------------------------------------------------

    def _axes(self, x, y, w, h):
        """Create figure axes at (x, y) measured from top-left corner."""
        return self.fig.add_axes((x, 1.0 - y - h, w, h))

    # -------------------------------------------------------------------------
    # Launch
    # -------------------------------------------------------------------------

    def launch(self, show: bool = True):
        """Open the editor window. ``show=False`` builds the figure without blocking."""
        if not self.store.maps:
            raise ValueError("No maps to edit")

        self.fig = plt.figure(figsize=(16, 9), facecolor='#F5F5F0')
        if self.fig.canvas.manager is not None:
            self.fig.canvas.manager.set_window_title(self._WINDOW_TITLE)

        # Main plot area
        self.ax = self._axes(0.02, 0.05, 0.74, 0.90)
        self.ax.set_facecolor('#FAFAF8')
        self._setup_side_panel()

        self.fig.canvas.mpl_connect('button_press_event',   self._on_click)
        self.fig.canvas.mpl_connect('button_release_event', self._on_button_release)
        self.fig.canvas.mpl_connect('motion_notify_event',  self._on_mouse_motion)
        self.fig.canvas.mpl_connect('scroll_event',         self._on_scroll)
        self.fig.canvas.mpl_connect('key_press_event',      self._on_key_press)

        self._load_selected_map()
        if show:
            plt.show()

    def _setup_side_panel(self):
        """Create the side panel buttons, rename box and status line."""
        self.ax_map_title = self._axes(0.79, 0.05, 0.19, 0.05)
        self.ax_map_title.axis('off')
        self.map_title_text = self.ax_map_title.text(0.0, 0.5, "", fontsize=11, weight='bold', va='center')

        self.btn_prev_map   = Button(self._axes(0.79, 0.12, 0.09, 0.05), 'Prev Map')
        self.btn_next_map   = Button(self._axes(0.89, 0.12, 0.09, 0.05), 'Next Map')
        self.btn_draw       = Button(self._axes(0.79, 0.20, 0.19, 0.05), 'Draw Room (n)')
        self.btn_duplicate  = Button(self._axes(0.79, 0.27, 0.19, 0.05), 'Duplicate Room')
        self.btn_delete     = Button(self._axes(0.79, 0.34, 0.19, 0.05), 'Delete Room')
        self.btn_reset_zoom = Button(self._axes(0.79, 0.41, 0.19, 0.05), 'Reset Zoom (r)')

        self.name_textbox   = TextBox(self._axes(0.84, 0.50, 0.14, 0.05), 'Name ', initial='')

        self.btn_prev_map.on_clicked(self._on_prev_map_click)
        self.btn_next_map.on_clicked(self._on_next_map_click)
        self.btn_draw.on_clicked(self._on_draw_mode_toggle)
        self.btn_duplicate.on_clicked(self._on_duplicate_click)
        self.btn_delete.on_clicked(self._on_delete_click)
        self.btn_reset_zoom.on_clicked(self._on_reset_zoom_click)
        self.name_textbox.on_submit(self._on_name_submit)

        self.ax_status = self._axes(0.79, 0.58, 0.19, 0.05)
        self.ax_status.axis('off')
        self.status_text = self.ax_status.text(0.0, 0.5, "", fontsize=9, color='blue', va='center', wrap=True)

    # -------------------------------------------------------------------------
    # Map loading and view
    # -------------------------------------------------------------------------

    def _load_selected_map(self):
        """Load the selected map's background and fit it to the canvas."""
        current = self.store.selected_map
        if current is None:
            return
        image_path  = resolve_image_path(current.image_path, self.images_dir)
        self._image = load_map_image(image_path) if image_path.exists() else None

        if self._image is not None:
            self._image_height, self._image_width = self._image.shape[:2]
        else:
            # Blank canvas sized from the room extents
            extents = [to_pairs(r.coordinates).max(axis=0) for r in current.rooms]
            max_xy  = np.max(extents, axis=0) if extents else np.array([800.0, 600.0])
            self._image_width, self._image_height = float(max_xy[0]) + 50.0, float(max_xy[1]) + 50.0

        self.map_title_text.set_text(current.name)
        self._reset_view()
        self._update_status(f"Loaded '{current.name}' ({len(current.rooms)} rooms)", 'blue')

    def _surface_size(self) -> Tuple[float, float]:
        bbox = self.ax.bbox
        return bbox.width, bbox.height

    def _surface_position(self, event) -> Tuple[float, float]:
        """Pointer position in surface pixels, origin top-left of the main axes."""
        bbox = self.ax.bbox
        return event.x - bbox.x0, bbox.y1 - event.y

    def _reset_view(self):
        width, height = self._surface_size()
        viewport = Viewport.fit(self._image_width, self._image_height, width, height)
        self.controller.dispatch(ResetView(viewport))
        self._render()

    def _apply_viewport(self):
        """Drive the axes limits from the controller's viewport (y axis points down)."""
        width, height = self._surface_size()
        x0, y0, x1, y1 = self.controller.state.viewport.visible_bounds(width, height)
        self.ax.set_xlim(x0, x1)
        self.ax.set_ylim(y1, y0)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render(self):
        """Redraw the map image, rooms, labels and handles."""
        state = self.controller.state
        rooms = self.controller.rooms
        self.ax.clear()
        self.ax.set_aspect('auto')
        self.ax.set_xticks([])
        self.ax.set_yticks([])

        if self._image is not None:
            self.ax.imshow(self._image, extent=(0, self._image_width, self._image_height, 0),
                           interpolation='nearest')

        for room in rooms:
            dx, dy      = state.drag_offset(room.id)
            is_selected = room.id == state.selected_room_id
            verts       = to_pairs(room.coordinates) + np.array([dx, dy])
            self.ax.add_patch(Polygon(
                verts, closed=True,
                facecolor='orange' if is_selected else 'cornflowerblue',
                edgecolor='darkorange' if is_selected else 'navy',
                linewidth=2.0 if is_selected else 1.2,
                alpha=0.35,
            ))
            lx, ly = room.text_coordinates
            self.ax.text(lx + dx, ly + dy, room.name, ha='center', va='center', fontsize=8,
                         weight='bold' if is_selected else 'normal')

            if is_selected:
                self.ax.scatter(verts[:, 0], verts[:, 1], s=36, c='white', edgecolors='darkorange', zorder=5)
                hover = state.hover
                if isinstance(hover, RoomVertex) and hover.room_id == room.id and hover.index < len(verts):
                    hx, hy = verts[hover.index]
                    self.ax.scatter([hx], [hy], s=64, c='red', zorder=6)

        if state.draw_mode and state.drawing_points:
            pts = to_pairs(state.drawing_points)
            self.ax.plot(pts[:, 0], pts[:, 1], color='cyan', linewidth=2, alpha=0.8)
            self.ax.scatter(pts[1:, 0], pts[1:, 1], s=36, c='lime', edgecolors='darkgreen', zorder=5)
            self.ax.scatter(pts[:1, 0], pts[:1, 1], s=64, c='yellow', edgecolors='darkgreen', zorder=6)
            hover = state.hover
            if isinstance(hover, DrawingVertex) and hover.index < len(pts):
                self.ax.scatter([pts[hover.index, 0]], [pts[hover.index, 1]], s=64, c='red', zorder=7)

        self._apply_viewport()
        self.btn_draw.label.set_text('Drawing... (n to cancel)' if state.draw_mode else 'Draw Room (n)')
        self._sync_name_textbox()
        self.fig.canvas.draw_idle()

    def _sync_name_textbox(self):
        room = self._selected_room()
        name = room.name if room is not None else ''
        if self.name_textbox.text != name:
            self.name_textbox.set_val(name)

    def _selected_room(self):
        room_id = self.controller.state.selected_room_id
        return self.store.get_room(room_id) if room_id is not None else None

    def _update_status(self, message: str, color: str = 'blue'):
        self.status_text.set_text(message)
        self.status_text.set_color(color)
        if self.fig is not None:
            self.fig.canvas.draw_idle()

    def _dispatch(self, event) -> bool:
        """Send an event to the controller; returns True if anything visible changed."""
        before  = self.controller.state
        effects = self.controller.dispatch(event)
        warning = self.controller.last_warning
        if warning is not None and warning != self._last_warning:
            self._last_warning = warning
            print(f"Warning: {warning}")
            self._update_status(warning, 'red')
        return bool(effects) or self.controller.state != before

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _on_click(self, event):
        """Handle mouse presses on the map canvas."""
        if event.inaxes != self.ax:
            return
        px, py = self._surface_position(event)
        self.controller.hover_at(px, py)
        if self._dispatch(PointerDown(px, py, int(event.button))):
            self._render()

    def _on_button_release(self, event):
        """Handle mouse release (end of drag or click)."""
        if self.controller.state.gesture is None:
            return
        px, py = self._surface_position(event)
        if self._dispatch(PointerUp(px, py)):
            self._render()

    def _on_mouse_motion(self, event):
        """Handle mouse movement for hover detection and dragging."""
        if event.inaxes != self.ax and self.controller.state.gesture is None:
            return
        px, py  = self._surface_position(event)
        changed = False
        if self.controller.state.gesture is None:
            before  = self.controller.state.hover
            changed = self.controller.hover_at(px, py) != before
        changed = self._dispatch(PointerMove(px, py)) or changed
        if changed:
            self._render()

    def _on_scroll(self, event):
        """Zoom about the cursor."""
        if event.inaxes != self.ax:
            return
        px, py = self._surface_position(event)
        delta  = 1.0 if event.button == 'up' else -1.0
        if self._dispatch(Wheel(px, py, delta)):
            self._render()

    def _on_key_press(self, event):
        """Handle keyboard shortcuts."""
        key = event.key
        if key is None:
            return
        if key == 'n':
            self._on_draw_mode_toggle(None)
        elif key == 'r':
            self._on_reset_zoom_click(None)
        elif key == 'pageup':
            self._on_prev_map_click(None)
        elif key == 'pagedown':
            self._on_next_map_click(None)
        elif key == 'q':
            plt.close(self.fig)
        elif self._dispatch(KeyPress(key)):
            self._render()

    # -------------------------------------------------------------------------
    # Side panel actions
    # -------------------------------------------------------------------------

    def _on_draw_mode_toggle(self, event):
        self._dispatch(ToggleDrawMode())
        if self.controller.state.draw_mode:
            self._update_status("Draw mode: click to place vertices, click the first vertex to close", 'green')
        else:
            self._update_status("Draw mode off", 'blue')
        self._render()

    def _on_duplicate_click(self, event):
        room = self._selected_room()
        if room is None:
            self._update_status("Select a room to duplicate", 'orange')
            return
        self._dispatch(DuplicateRoom(room.id))
        self._update_status(f"Duplicated '{room.name}'", 'green')
        self._render()

    def _on_delete_click(self, event):
        room = self._selected_room()
        if room is None:
            self._update_status("Select a room to delete", 'orange')
            return
        self._dispatch(DeleteRoom(room.id))
        self._update_status(f"Deleted '{room.name}'", 'green')
        self._render()

    def _on_name_submit(self, text):
        room = self._selected_room()
        if room is None or text.strip() == room.name:
            return
        if self._dispatch(RenameRoom(room.id, text)):
            self._update_status(f"Renamed to '{text.strip()}'", 'green')
            self._render()

    def _on_reset_zoom_click(self, event):
        self._reset_view()

    def _jump_to_map(self, step: int):
        ids = [m.id for m in self.store.maps]
        if len(ids) < 2:
            return
        idx = ids.index(self.store.selected_map_id) if self.store.selected_map_id in ids else 0
        self._dispatch(SelectMap(ids[(idx + step) % len(ids)]))
        self._load_selected_map()

    def _on_prev_map_click(self, event):
        self._jump_to_map(-1)

    def _on_next_map_click(self, event):
        self._jump_to_map(1)
