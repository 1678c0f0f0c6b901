"""
Tests for the global threshold and flood fill removal strategies.
"""

import cv2
import numpy as np

from bgcutout.removal import (
    flood_fill_region,
    remove_flood_fill,
    remove_global,
    select_strategy,
)

GREEN = (0, 255, 0)
BLACK = (0, 0, 0)
RED = (255, 0, 0)


def _solid(height: int, width: int, rgb: tuple[int, int, int], alpha: int = 255) -> np.ndarray:
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :, :3] = rgb
    img[:, :, 3] = alpha
    return img


def _framed(size: int) -> np.ndarray:
    """Green frame, red ring one pixel inside it, green center."""
    img = _solid(size, size, GREEN)
    img[1:-1, 1:-1, :3] = RED
    img[2:-2, 2:-2, :3] = GREEN
    return img


def test_global_removes_fully_green_image():
    """A 4x4 all-green image becomes fully transparent."""
    img = _solid(4, 4, GREEN)
    remove_global(img, "#00FF00", 50)
    assert np.all(img[:, :, 3] == 0), "Every pixel should be transparent"


def test_global_leaves_foreground_alpha_untouched():
    """Foreground pixels keep whatever alpha they had, color channels never change."""
    img = _solid(3, 3, BLACK)
    img[1, 1] = (200, 10, 10, 77)
    before = img.copy()

    remove_global(img, "#000000", 5)

    assert img[1, 1, 3] == 77, "Foreground alpha should be preserved"
    assert np.array_equal(img[:, :, :3], before[:, :, :3]), "RGB channels should not change"
    assert np.count_nonzero(img[:, :, 3] == 0) == 8


def test_global_removes_enclosed_background():
    """Global thresholding removes background color wherever it appears."""
    img = _framed(7)
    remove_global(img, "#00FF00", 10)
    alpha = img[:, :, 3]
    assert alpha[3, 3] == 0, "Enclosed green should be removed in global mode"
    assert alpha[1, 1] == 255, "Red ring should stay opaque"


def test_global_is_idempotent():
    """Running global removal twice gives the same result as running it once."""
    rng = np.random.default_rng(7)
    img = rng.integers(0, 256, size=(20, 30, 4), dtype=np.uint8)

    once = remove_global(img.copy(), "#404040", 25)
    twice = remove_global(remove_global(img.copy(), "#404040", 25), "#404040", 25)

    assert np.array_equal(once, twice)


def test_global_with_zero_tolerance_removes_exact_matches():
    """At zero tolerance only pixels exactly matching the target are removed."""
    img = _solid(2, 2, (10, 20, 30))
    img[0, 0, :3] = (10, 20, 31)
    remove_global(img, "#0A141E", 0)
    assert img[:, :, 3].tolist() == [[255, 0], [0, 0]]


def test_flood_removes_frame_but_keeps_enclosed_background():
    """Flood fill removes the green frame but not the green center behind the red ring."""
    img = _framed(7)
    remove_flood_fill(img, "#00FF00", 10)
    alpha = img[:, :, 3]

    frame = np.ones((7, 7), dtype=bool)
    frame[1:-1, 1:-1] = False

    assert np.all(alpha[frame] == 0), "Green frame should be transparent"
    assert np.all(alpha[1:-1, 1:-1] == 255), "Red ring and enclosed green should stay opaque"


def test_flood_stops_at_non_background_border():
    """A black border stops the fill, so a green interior stays opaque."""
    img = _solid(4, 4, BLACK)
    img[1:3, 1:3, :3] = GREEN

    remove_flood_fill(img, "#00FF00", 10)

    assert np.all(img[:, :, 3] == 255), "Nothing is reachable from the corners"


def test_flood_seeds_from_every_corner():
    """Background in a single corner is still removed."""
    img = _solid(5, 5, RED)
    img[4, 4, :3] = BLACK
    img[4, 3, :3] = BLACK
    img[2, 2, :3] = BLACK

    remove_flood_fill(img, "#000000", 1)

    alpha = img[:, :, 3]
    assert alpha[4, 4] == 0 and alpha[4, 3] == 0
    assert alpha[2, 2] == 255, "Isolated background pixel is not reachable"
    assert np.count_nonzero(alpha == 0) == 2


def test_flood_fill_uses_4_connectivity():
    """Background pixels touching only diagonally are not connected."""
    mask = np.array([
        [1, 0, 0],
        [0, 1, 0],
        [0, 0, 0],
    ], dtype=bool)
    region = flood_fill_region(mask)
    assert region.tolist() == [
        [True, False, False],
        [False, False, False],
        [False, False, False],
    ]


def test_flood_fill_region_matches_connected_components():
    """The reached region is exactly the 4-connected components containing a background corner."""
    rng = np.random.default_rng(42)
    mask = rng.random((40, 55)) < 0.6

    region = flood_fill_region(mask)

    _, labels = cv2.connectedComponents(mask.astype(np.uint8), connectivity=4)
    corners = [(0, 0), (0, -1), (-1, 0), (-1, -1)]
    corner_labels = {labels[y, x] for y, x in corners if mask[y, x]}
    expected = np.isin(labels, list(corner_labels)) & mask

    assert np.array_equal(region, expected)


def test_flood_fill_handles_large_regions_without_recursion():
    """A large all-background image is filled iteratively."""
    mask = np.ones((300, 400), dtype=bool)
    region = flood_fill_region(mask)
    assert region.all()


def test_flood_fill_single_pixel_image():
    """All four corners coincide on a 1x1 image."""
    assert flood_fill_region(np.array([[True]])).tolist() == [[True]]
    assert flood_fill_region(np.array([[False]])).tolist() == [[False]]


def test_select_strategy():
    """'flood' selects flood fill, any other mode falls back to global thresholding."""
    assert select_strategy("flood") is remove_flood_fill
    assert select_strategy("global") is remove_global
    assert select_strategy("FLOOD") is remove_global
    assert select_strategy(None) is remove_global
