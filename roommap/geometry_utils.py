"""Geometry kernel for room polygons.

Pure functions over flat coordinate lists ``[x0, y0, x1, y1, ...]`` expressed in
map space (native image pixels). Nothing in here holds state.
"""

# Roommap imports
from roommap import config

# Standard library imports
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

# Third-party imports
import numpy as np
from matplotlib.path import Path as MplPath


Point = Tuple[float, float]
Coordinates = Sequence[float]


@dataclass(frozen=True)
class NearestEdge:
    """Result of an edge search. ``edge_start_index`` is a vertex index, -1 when no edge qualifies."""

    edge_start_index: int
    distance: float

    @property
    def found(self) -> bool:
        return self.edge_start_index >= 0


# -----------------------------------------------------------------------------
# Coordinate list helpers
# -----------------------------------------------------------------------------

def to_pairs(coordinates: Coordinates) -> np.ndarray:
    """Reshape a flat coordinate list into an (N, 2) float array."""
    arr = np.asarray(coordinates, dtype=float)
    if arr.ndim == 2:
        return arr
    if arr.size % 2 != 0:
        raise ValueError(f"Coordinate list must have an even length, got {arr.size}")
    return arr.reshape(-1, 2)


def flatten_pairs(points: Union[np.ndarray, Sequence[Point]]) -> List[float]:
    """Flatten (x, y) pairs back into a plain list of floats."""
    return [float(v) for v in np.asarray(points, dtype=float).reshape(-1)]


def translate_coordinates(coordinates: Coordinates, dx: float, dy: float) -> List[float]:
    """Offset every (x, y) pair by the same delta."""
    pairs = to_pairs(coordinates) + np.array([dx, dy])
    return flatten_pairs(pairs)


# -----------------------------------------------------------------------------
# Distances
# -----------------------------------------------------------------------------

def distance_from_segment(px: float, py: float, x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Shortest distance from point P to the segment (x1, y1) -> (x2, y2).

    P is projected onto the segment's line; the projection parameter is clamped
    to [0, 1] so points beyond either end measure to the nearest endpoint.
    A zero-length segment degenerates to the distance to its single point.

    Example:
        >>> distance_from_segment(5, 5, 2, 2, 8, 2)
        3.0
    """
    dx, dy     = x2 - x1, y2 - y1
    seg_len_sq = dx * dx + dy * dy
    if seg_len_sq == 0:
        return float(np.hypot(px - x1, py - y1))
    t = max(0.0, min(1.0, ((px - x1) * dx + (py - y1) * dy) / seg_len_sq))
    proj_x, proj_y = x1 + t * dx, y1 + t * dy
    return float(np.hypot(px - proj_x, py - proj_y))


def find_nearest_edge(
        px: float,
        py: float,
        coordinates: Coordinates,
        threshold: float = config.INSERTION_THRESHOLD) -> NearestEdge:
    """
    Find the polygon edge closest to a point.

    Every consecutive vertex pair is checked, including the closing edge from the
    last vertex back to the first. Only an edge strictly closer than ``threshold``
    qualifies.

    Args:
        px, py: Query point in map space.
        coordinates: Flat polygon coordinate list.
        threshold: Insertion threshold in map-space units.

    Returns:
        NearestEdge: index of the edge's start vertex (or -1) and the minimum distance found.
    """
    pairs = to_pairs(coordinates)
    n     = len(pairs)
    if n < 2:
        return NearestEdge(-1, float("inf"))

    best_idx  = -1
    best_dist = float("inf")
    for i in range(n):
        x1, y1 = pairs[i]
        x2, y2 = pairs[(i + 1) % n]
        dist = distance_from_segment(px, py, x1, y1, x2, y2)
        if dist < best_dist:
            best_dist = dist
            best_idx  = i

    if best_dist < threshold:
        return NearestEdge(best_idx, best_dist)
    return NearestEdge(-1, best_dist)


def nearest_vertex(px: float, py: float, coordinates: Coordinates, radius: float) -> int:
    """Index of the vertex closest to (px, py) within ``radius``, or -1."""
    pairs = to_pairs(coordinates)
    if len(pairs) == 0:
        return -1
    dists   = np.hypot(pairs[:, 0] - px, pairs[:, 1] - py)
    min_idx = int(np.argmin(dists))
    if dists[min_idx] <= radius:
        return min_idx
    return -1


# -----------------------------------------------------------------------------
# Polygon measures
# -----------------------------------------------------------------------------

def calc_centroid_of_points(points: Union[Coordinates, Sequence[Point]]) -> Point:
    """
    Arithmetic mean of all vertices.

    Used as the default label anchor of a freshly drawn room. Accepts either a
    flat coordinate list or a sequence of (x, y) pairs.
    """
    pairs = to_pairs(points)
    if len(pairs) == 0:
        raise ValueError("Cannot compute the centroid of an empty point set")
    centroid = pairs.mean(axis=0)
    return float(centroid[0]), float(centroid[1])


def calc_polygon_area(coordinates: Coordinates) -> float:
    """Absolute polygon area (shoelace formula) in squared map-space units."""
    pairs = to_pairs(coordinates)
    if len(pairs) < 3:
        return 0.0
    x, y = pairs[:, 0], pairs[:, 1]
    return float(0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def point_in_polygon(px: float, py: float, coordinates: Coordinates) -> bool:
    """Return True if the point lies inside the closed polygon."""
    pairs = to_pairs(coordinates)
    if len(pairs) < 3:
        return False
    return bool(MplPath(pairs).contains_point((px, py)))


# -----------------------------------------------------------------------------
# View transform
# -----------------------------------------------------------------------------

def zoom_about_pointer(
        scale: float,
        tx: float,
        ty: float,
        px: float,
        py: float,
        delta: float,
        scale_by: float = config.ZOOM_SCALE_BY) -> Tuple[float, float, float]:
    """
    Zoom a uniform-scale affine view while keeping the point under the pointer fixed.

    Args:
        scale, tx, ty: Current view scale and translation (surface = map * scale + t).
        px, py: Pointer position in surface pixels.
        delta: Wheel delta; positive zooms in.
        scale_by: Zoom factor per wheel step.

    Returns:
        (new_scale, new_tx, new_ty)
    """
    mx = (px - tx) / scale
    my = (py - ty) / scale
    new_scale = scale * scale_by if delta > 0 else scale / scale_by
    return new_scale, px - mx * new_scale, py - my * new_scale
