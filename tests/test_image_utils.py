# Roommap imports
from roommap.image_utils import clear_image_cache, get_image_size, load_map_image, resolve_image_path

# Third-party imports
import numpy as np
import pytest
from PIL import Image


# Test fixtures
@pytest.fixture
def images_dir(tmp_path):
    """Images directory holding a 40x20 plan at the top level and one under images/"""
    Image.new("RGB", (40, 20), (255, 255, 255)).save(tmp_path / "workspace.png")
    (tmp_path / "images").mkdir()
    Image.new("L", (10, 30), 128).save(tmp_path / "images" / "logo.png")
    clear_image_cache()
    yield tmp_path
    clear_image_cache()


class TestResolveImagePath:
    """Tests for resolve_image_path function"""

    def test_web_style_reference_falls_back_to_file_name(self, images_dir):
        assert resolve_image_path("/images/workspace.png", images_dir) == images_dir / "workspace.png"

    def test_relative_reference_inside_images_dir(self, images_dir):
        assert resolve_image_path("/images/logo.png", images_dir) == images_dir / "images" / "logo.png"

    def test_existing_absolute_path_used_as_is(self, images_dir, tmp_path):
        absolute = tmp_path / "workspace.png"
        assert resolve_image_path(str(absolute), images_dir / "elsewhere") == absolute


class TestLoadMapImage:
    """Tests for image loading and size lookup"""

    def test_load_normalises_to_float_rgb(self, images_dir):
        img = load_map_image(images_dir / "images" / "logo.png")
        assert img.shape == (30, 10, 3)
        assert img.dtype == np.float32
        assert img.max() == pytest.approx(128 / 255)

    def test_load_is_cached(self, images_dir):
        path = images_dir / "workspace.png"
        assert load_map_image(path) is load_map_image(path)

    def test_missing_file_returns_none(self, images_dir, capsys):
        assert load_map_image(images_dir / "missing.png") is None
        assert "Warning:" in capsys.readouterr().out

    def test_natural_size(self, images_dir):
        assert get_image_size(images_dir / "workspace.png") == (40, 20)
        assert get_image_size(images_dir / "missing.png") is None
