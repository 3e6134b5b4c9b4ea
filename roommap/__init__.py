from .models import Map, Room, load_maps
from .map_store import MapStore
from .viewport import Viewport
from .interaction import InteractionController, SessionState, hit_test, reduce
from .corner_detection import detect_room_corners
from . import geometry_utils, config
