"""Quadrilateral room detection on floor-plan images.

Finds enclosed light regions bounded by dark walls and reports the ones that
simplify to convex four-corner polygons. The output feeds
``MapStore.add_rooms_from_corners`` directly.
"""

# Roommap imports
from roommap.image_utils import load_map_image

# Standard library imports
import logging
from pathlib import Path
from typing import List, Union

# Third-party imports
import cv2
import numpy as np

logger = logging.getLogger(__name__)


def _to_gray_uint8(image: np.ndarray) -> np.ndarray:
    """Convert float [0, 1] or uint8 images, RGB or single-channel, to 8-bit grayscale."""
    img = np.asarray(image)
    if img.dtype != np.uint8:
        img = np.clip(img * 255.0, 0, 255).astype(np.uint8)
    if img.ndim == 3:
        img = cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)
    return img


def _nesting_depth(hierarchy: np.ndarray, idx: int) -> int:
    depth  = 0
    parent = hierarchy[idx][3]
    while parent >= 0:
        depth += 1
        parent = hierarchy[parent][3]
    return depth


def detect_room_corners(
        image: Union[np.ndarray, Path, str],
        min_area: float = 100.0,
        epsilon_ratio: float = 0.02,
        max_area_fraction: float = 0.9) -> List[List[float]]:
    """
    Detect quadrilateral rooms in a floor-plan image.

    Args:
        image: Image array (H, W[, 3]) or a path to an image file.
        min_area: Smallest polygon area kept, in squared pixels.
        epsilon_ratio: ``approxPolyDP`` tolerance as a fraction of the contour perimeter.
        max_area_fraction: Regions covering more than this fraction of the image
                           (usually the page background) are ignored.

    Returns:
        List of flat corner lists ``[x0, y0, ..., x3, y3]`` in image pixel space.
    """
    if not isinstance(image, np.ndarray):
        loaded = load_map_image(image)
        if loaded is None:
            return []
        image = loaded

    gray = _to_gray_uint8(image)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    contours, hierarchy = cv2.findContours(binary, cv2.RETR_TREE, cv2.CHAIN_APPROX_SIMPLE)
    if hierarchy is None:
        return []

    image_area = float(gray.shape[0] * gray.shape[1])
    corner_sets = []
    for idx, contour in enumerate(contours):
        # Even nesting depth = outer boundary of a light region; odd = a hole (wall)
        if _nesting_depth(hierarchy[0], idx) % 2 != 0:
            continue
        area = cv2.contourArea(contour)
        if area < min_area or area > image_area * max_area_fraction:
            continue
        perimeter = cv2.arcLength(contour, True)
        approx    = cv2.approxPolyDP(contour, epsilon_ratio * perimeter, True)
        if len(approx) != 4 or not cv2.isContourConvex(approx):
            continue
        corner_sets.append([float(v) for v in approx.reshape(-1)])

    logger.info(f"Detected {len(corner_sets)} quadrilateral room(s) from {len(contours)} contour(s)")
    return corner_sets
