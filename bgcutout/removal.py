"""
Background removal strategies.

Both strategies take an RGBA image of shape (height, width, 4) and only ever
write zeros into its alpha channel, in place. Pixels that aren't removed keep
their alpha untouched.
"""

from typing import Callable

import numpy as np

from bgcutout.color_classification import background_mask

FLOOD_MODE = "flood"
GLOBAL_MODE = "global"
REMOVAL_MODES = (GLOBAL_MODE, FLOOD_MODE)

RemovalStrategy = Callable[[np.ndarray, str, float], np.ndarray]


def remove_global(image: np.ndarray, target_hex: str, tolerance_percent: float) -> np.ndarray:
    """
    Make every background-colored pixel transparent, wherever it is.

    Args:
        image: RGBA image (height, width, 4), modified in place
        target_hex: Background color as '#RRGGBB'
        tolerance_percent: Classification leniency, nominally 0-100

    Returns:
        The same image
    """
    mask = background_mask(image, target_hex, tolerance_percent)
    image[:, :, 3][mask] = 0
    return image


def flood_fill_region(mask: np.ndarray) -> np.ndarray:
    """
    Find the background region reachable from the image corners.

    Grows from the four corners through 4-connected pixels where `mask` is
    True, using an explicit stack so large images don't hit the recursion
    limit. Bounds and visited checks happen when a coordinate is popped.

    Args:
        mask: Boolean background classification (height, width)

    Returns:
        Boolean array (height, width), True for pixels in the reached region
    """
    height, width = mask.shape
    region = np.zeros(height * width, dtype=bool)
    if region.size == 0:
        return region.reshape(height, width)

    # Flat Python containers for the per-pixel loop
    is_bg = mask.ravel().tolist()
    visited = bytearray(height * width)

    stack = [(0, 0), (width - 1, 0), (0, height - 1), (width - 1, height - 1)]
    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        offset = y * width + x
        if visited[offset]:
            continue
        visited[offset] = 1

        if is_bg[offset]:
            region[offset] = True
            stack.append((x + 1, y))
            stack.append((x - 1, y))
            stack.append((x, y + 1))
            stack.append((x, y - 1))

    return region.reshape(height, width)


def remove_flood_fill(image: np.ndarray, target_hex: str, tolerance_percent: float) -> np.ndarray:
    """
    Make the background surrounding the subject transparent.

    Only background pixels connected to an image corner through other
    background pixels are removed, so background-colored areas enclosed by
    the subject survive.

    Args:
        image: RGBA image (height, width, 4), modified in place
        target_hex: Background color as '#RRGGBB'
        tolerance_percent: Classification leniency, nominally 0-100

    Returns:
        The same image
    """
    mask = background_mask(image, target_hex, tolerance_percent)
    region = flood_fill_region(mask)
    image[:, :, 3][region] = 0
    return image


def select_strategy(mode: str) -> RemovalStrategy:
    """Flood fill for 'flood', global thresholding for anything else."""
    if mode == FLOOD_MODE:
        return remove_flood_fill
    return remove_global
