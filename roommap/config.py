"""
Roommap Configuration Module
============================

Centralized configuration for project paths, editor thresholds and logging.
This module provides consistent references throughout the codebase.
"""

# fmt: off
# autopep8: off

import os
from pathlib import Path

# Root directory of the project
PROJECT_ROOT        = Path(__file__).parent.parent
PACKAGE_DIR         = Path(__file__).parent

# Input directories
INPUTS_DIR          = PROJECT_ROOT / "inputs"
EXAMPLES_DIR        = PROJECT_ROOT / "examples"

# Map sources
# Users can set ROOMMAP_IMAGES_DIR / ROOMMAP_SEED_MAPS to point at their own data
IMAGES_DIR          = Path(os.getenv("ROOMMAP_IMAGES_DIR", str(INPUTS_DIR / "images")))
SEED_MAPS_PATH      = Path(os.getenv("ROOMMAP_SEED_MAPS", str(PACKAGE_DIR / "data" / "seed_maps.json")))

# ============================================================================
# EDITOR GEOMETRY (map-space units, i.e. native image pixels)
# ============================================================================
CLOSURE_THRESHOLD   = 10.0      # new point this close to the first point closes the polygon
INSERTION_THRESHOLD = 10.5      # click this close to an edge inserts a vertex
DUPLICATE_OFFSET    = 10.0      # per-copy offset applied by duplicate_room
MIN_COORDINATES     = 6         # 3 vertices

# ============================================================================
# VIEWPORT
# ============================================================================
ZOOM_SCALE_BY       = 1.05
HANDLE_RADIUS_PX    = 6.0       # vertex handle hit radius in surface pixels
LABEL_RADIUS_PX     = 12.0      # label hit radius in surface pixels

# ============================================================================
# LOGGING
# ============================================================================
LOG_LEVEL           = os.getenv("ROOMMAP_LOG_LEVEL", "INFO").upper()
LOG_FORMAT          = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
