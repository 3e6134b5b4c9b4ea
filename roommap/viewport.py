"""Coordinate transform between the rendering surface and map space.

The surface shows the map through a uniform scale ``s`` and translation
``(tx, ty)``:  surface = map * s + t.  Pointer positions arrive in surface
pixels and are mapped back on every call since pan/zoom can change between
events.
"""

# Roommap imports
from roommap import config
from roommap.geometry_utils import zoom_about_pointer

# Standard library imports
from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class Viewport:
    """
    Pan/zoom state of the rendering surface.

    Attributes:
        scale (float): Uniform zoom factor (surface pixels per map unit).
        tx (float): Horizontal translation in surface pixels.
        ty (float): Vertical translation in surface pixels.

    Example:
        >>> vp = Viewport(scale=2.0, tx=10.0, ty=0.0)
        >>> vp.pointer_to_map(30.0, 20.0)
        (10.0, 10.0)
    """

    scale: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    def __post_init__(self):
        if self.scale <= 0:
            raise ValueError(f"Viewport scale must be positive, got {self.scale}")

    def pointer_to_map(self, px: float, py: float) -> Tuple[float, float]:
        """Map a surface pixel position into map-space coordinates."""
        return (px - self.tx) / self.scale, (py - self.ty) / self.scale

    def map_to_pointer(self, x: float, y: float) -> Tuple[float, float]:
        """Map a map-space point onto the surface."""
        return x * self.scale + self.tx, y * self.scale + self.ty

    def zoomed(self, px: float, py: float, delta: float, scale_by: float = config.ZOOM_SCALE_BY) -> "Viewport":
        """Zoom about the pointer; positive ``delta`` zooms in."""
        scale, tx, ty = zoom_about_pointer(self.scale, self.tx, self.ty, px, py, delta, scale_by)
        return Viewport(scale=scale, tx=tx, ty=ty)

    def panned(self, dx: float, dy: float) -> "Viewport":
        """Translate the view by a surface-pixel delta."""
        return replace(self, tx=self.tx + dx, ty=self.ty + dy)

    def visible_bounds(self, width: float, height: float) -> Tuple[float, float, float, float]:
        """Map-space (x_min, y_min, x_max, y_max) visible on a surface of the given size."""
        x0, y0 = self.pointer_to_map(0.0, 0.0)
        x1, y1 = self.pointer_to_map(width, height)
        return x0, y0, x1, y1

    def to_map_distance(self, pixels: float) -> float:
        """Convert a surface-pixel length into map-space units."""
        return pixels / self.scale

    @classmethod
    def fit(cls, content_width: float, content_height: float, surface_width: float, surface_height: float) -> "Viewport":
        """Viewport that centres content of the given map-space size on the surface."""
        if content_width <= 0 or content_height <= 0 or surface_width <= 0 or surface_height <= 0:
            return cls()
        scale = min(surface_width / content_width, surface_height / content_height)
        tx = (surface_width - content_width * scale) / 2.0
        ty = (surface_height - content_height * scale) / 2.0
        return cls(scale=scale, tx=tx, ty=ty)
