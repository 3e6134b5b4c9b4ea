"""
Roommap: Interactive Room Editor for Floor Plan Images

Draw and edit room polygons on top of the seed floor-plan maps. Edits live for
the session only.

Controls:
    n             Toggle draw mode
    Left-click    Place vertex (draw), select room, insert vertex on an edge
                  of the selected room, click empty canvas to deselect
    Drag          Move selected room / vertex / label, pan on empty canvas
    Delete        Remove hovered vertex
    Escape        Deselect room
    Scroll        Zoom centred on cursor
    PageUp/Down   Previous / next map
    r             Reset zoom
    q             Quit

Functionality:

    Closing a polygon:
        Click within 10 pixels of the first vertex once at least three
        vertices are placed. The room gets a generated name and its
        label sits at the polygon centroid.

    Corner detection:
        Set DETECT_CORNERS = True to add rooms for every quadrilateral
        region found on the selected map's image before the editor opens.

Environment:
    ROOMMAP_SEED_MAPS     JSON file with the Map[] collection
    ROOMMAP_IMAGES_DIR    Directory holding the map images
    ROOMMAP_LOG_LEVEL     Logging level (default INFO)
"""

# fmt: off
# autopep8: off

import logging

from roommap import config
from roommap.corner_detection import detect_room_corners
from roommap.image_utils import resolve_image_path
from roommap.map_editor import MapEditor
from roommap.map_store import MapStore
from roommap.models import load_maps

DETECT_CORNERS = False

if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)

    store = MapStore(load_maps(config.SEED_MAPS_PATH))

    if DETECT_CORNERS and store.selected_map is not None:
        image_path = resolve_image_path(store.selected_map.image_path, config.IMAGES_DIR)
        created    = store.add_rooms_from_corners(detect_room_corners(image_path))
        print(f"Added {len(created)} detected room(s) to '{store.selected_map.name}'")

    editor = MapEditor(store, images_dir=config.IMAGES_DIR)
    editor.launch()
