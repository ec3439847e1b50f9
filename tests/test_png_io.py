import numpy as np
import pytest
from PIL import Image

from hexascene.png_io import Origin, load_png, save_png


def _pixels(width, height):
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)


@pytest.mark.parametrize("origin", [Origin.UPPER_LEFT, Origin.LOWER_LEFT])
def test_round_trip(tmp_path, origin):
    path = tmp_path / "img.png"
    data = _pixels(5, 3)
    save_png(path, (5, 3), data, origin)
    size, loaded = load_png(path, origin)
    assert size == (5, 3)
    assert np.array_equal(loaded, data)


def test_lower_left_flips_rows(tmp_path):
    path = tmp_path / "img.png"
    data = _pixels(4, 6)
    save_png(path, (4, 6), data, Origin.UPPER_LEFT)
    _, flipped = load_png(path, Origin.LOWER_LEFT)
    assert np.array_equal(flipped, data[::-1])


def test_flat_data_accepted(tmp_path):
    path = tmp_path / "img.png"
    data = _pixels(3, 2)
    save_png(path, (3, 2), data.reshape(-1, 4), Origin.UPPER_LEFT)
    _, loaded = load_png(path)
    assert np.array_equal(loaded, data)


def test_rgb_image_gets_opaque_alpha(tmp_path):
    path = tmp_path / "rgb.png"
    Image.new("RGB", (2, 2), (10, 20, 30)).save(path)
    size, loaded = load_png(path)
    assert size == (2, 2)
    assert np.all(loaded[..., 3] == 0xFF)
    assert np.all(loaded[..., :3] == np.array([10, 20, 30]))


def test_grayscale_expands_to_rgb(tmp_path):
    path = tmp_path / "gray.png"
    Image.new("L", (3, 1), 77).save(path)
    size, loaded = load_png(path)
    assert size == (3, 1)
    assert loaded.shape == (1, 3, 4)
    assert loaded[0, 0].tolist() == [77, 77, 77, 255]
    assert np.array_equal(loaded[..., :3], np.full((1, 3, 3), 77, dtype=np.uint8))
    assert np.all(loaded[..., 3] == 0xFF)


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError, match="Failed to open PNG image file"):
        load_png(tmp_path / "absent.png")


def test_garbage_file_raises(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(b"not an image at all")
    with pytest.raises(ValueError, match="Failed to read PNG image"):
        load_png(path)


def test_save_wrong_size_raises(tmp_path):
    with pytest.raises(ValueError):
        save_png(tmp_path / "x.png", (4, 4), _pixels(2, 2), Origin.UPPER_LEFT)