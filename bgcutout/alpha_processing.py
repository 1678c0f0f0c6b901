"""
Functions for processing the alpha channel of a cutout.
"""

import numpy as np


def erode_alpha(alpha: np.ndarray, strength: int) -> np.ndarray:
    """
    Shrink the opaque region by one pixel layer per pass.

    Each pass reads from a snapshot of the alpha channel taken at its start,
    so a pixel made transparent in a pass can't erode its neighbours until
    the next pass. The outermost one-pixel border is never eroded.

    Args:
        alpha: Alpha channel (height, width), modified in place
        strength: Number of erosion passes; zero or negative does nothing

    Returns:
        The same alpha array
    """
    if strength <= 0:
        return alpha

    for _ in range(strength):
        snapshot = alpha.copy()
        transparent = snapshot == 0

        # 4-neighbourhood of every interior pixel
        touches_transparent = (
            transparent[:-2, 1:-1] | transparent[2:, 1:-1]
            | transparent[1:-1, :-2] | transparent[1:-1, 2:]
        )
        edge = touches_transparent & ~transparent[1:-1, 1:-1]
        if not edge.any():
            # Nothing left to erode
            break

        interior = alpha[1:-1, 1:-1]
        interior[edge] = 0

    return alpha


def erode(image: np.ndarray, strength: int) -> np.ndarray:
    """
    Erode the alpha channel of an RGBA image (height, width, 4) in place.
    """
    erode_alpha(image[:, :, 3], strength)
    return image


def alpha_coverage(alpha: np.ndarray) -> float:
    """
    Fraction of pixels that are not fully transparent.

    Args:
        alpha: Alpha channel of any shape

    Returns:
        Value between 0.0 and 1.0; 0.0 for an empty array
    """
    if alpha.size == 0:
        return 0.0
    return np.count_nonzero(alpha) / alpha.size
