"""
Functions for visualizing background classification and cutout results.
"""

import cv2
import numpy as np


def visualize_mask(mask: np.ndarray) -> np.ndarray:
    """
    Render a boolean background mask as a grayscale image (background white).
    """
    return np.where(mask, 255, 0).astype(np.uint8)


def label_regions(mask: np.ndarray) -> tuple[int, np.ndarray]:
    """
    Label the 4-connected background regions of a mask.

    Args:
        mask: Boolean background classification (height, width)

    Returns:
        Tuple of (number of regions, label image where 0 is foreground)
    """
    num_labels, labels = cv2.connectedComponents(mask.astype(np.uint8), connectivity=4)
    return num_labels - 1, labels


def composite_on_checkerboard(rgba: np.ndarray, cell: int = 8) -> np.ndarray:
    """
    Blend an RGBA cutout over a gray checkerboard to show transparency.

    Args:
        rgba: Image (height, width, 4) in RGBA order
        cell: Checkerboard square size in pixels

    Returns:
        BGR image ready for cv2.imwrite
    """
    height, width = rgba.shape[:2]

    # Checkerboard of light and dark gray squares
    ys, xs = np.indices((height, width))
    squares = ((ys // cell) + (xs // cell)) % 2
    bg = np.where(squares[:, :, None] == 0, 204, 153).astype(np.float64)

    # Compute alpha blending
    alpha = rgba[:, :, 3:4].astype(float) / 255
    blended = (rgba[:, :, :3] * alpha + bg * (1 - alpha)).astype(np.uint8)

    return cv2.cvtColor(blended, cv2.COLOR_RGB2BGR)
