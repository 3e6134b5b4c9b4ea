"""Map image references: resolve them on disk, load them as RGB arrays, read their size."""

# Roommap imports
from roommap import config

# Standard library imports
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

# Third-party imports
import numpy as np
from PIL import Image

# Image cache: path -> numpy array (avoids reloading from disk)
_IMAGE_CACHE: Dict[str, np.ndarray] = {}


def resolve_image_path(image_ref: str, images_dir: Union[Path, str, None] = None) -> Path:
    """
    Resolve a map's opaque image reference to a file on disk.

    Absolute paths that exist are used as-is. Web-style references such as
    "/images/workspace.png" are looked up by file name inside ``images_dir``.

    Args:
        image_ref (str): Image reference stored on the map.
        images_dir (Path | str, optional): Directory holding map images.
                                           Defaults to ``config.IMAGES_DIR``.

    Returns:
        Path: Candidate image path (may not exist).
    """
    images_dir = Path(images_dir) if images_dir is not None else config.IMAGES_DIR
    ref_path   = Path(image_ref)
    if ref_path.is_absolute() and ref_path.exists():
        return ref_path
    relative = images_dir / image_ref.lstrip("/\\")
    if relative.exists():
        return relative
    return images_dir / ref_path.name


def load_map_image(path: Union[Path, str]) -> Optional[np.ndarray]:
    """
    Load an image file as a normalised float32 RGB array.

    Results are cached in memory so repeated renders don't hit disk.

    Args:
        path: Path to a raster image (png, jpg, tiff, ...).

    Returns:
        Array of shape (H, W, 3) with values in [0, 1], or None on failure.
    """
    key = str(path)
    if key in _IMAGE_CACHE:
        return _IMAGE_CACHE[key]
    try:
        with Image.open(path) as pil_img:
            img = np.array(pil_img.convert("RGB"), dtype=np.float32) / 255.0
    except (OSError, ValueError) as exc:
        print(f"Warning: could not load image {path}: {exc}")
        return None
    _IMAGE_CACHE[key] = img
    return img


def get_image_size(path: Union[Path, str]) -> Optional[Tuple[int, int]]:
    """Natural (width, height) of an image without decoding its pixels, or None."""
    try:
        with Image.open(path) as pil_img:
            return pil_img.size
    except (OSError, ValueError) as exc:
        print(f"Warning: could not read image size of {path}: {exc}")
        return None


def clear_image_cache() -> None:
    _IMAGE_CACHE.clear()
