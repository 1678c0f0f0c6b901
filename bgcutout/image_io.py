#!/usr/bin/env python3
"""
Functions for loading images as RGBA arrays and saving cutouts and debug images.

OpenCV reads and writes BGR(A); the removal pipeline works in RGBA.
"""

import os
from pathlib import Path

import cv2
import numpy as np

from bgcutout.color_classification import background_mask
from bgcutout.visualization import composite_on_checkerboard, visualize_mask


def to_rgba(img: np.ndarray) -> np.ndarray:
    """
    Convert an image as returned by cv2.imread(..., IMREAD_UNCHANGED) to RGBA.

    Args:
        img: Grayscale, BGR or BGRA uint8 image

    Returns:
        RGBA image (height, width, 4); fully opaque if the input had no alpha

    Raises:
        ValueError: If the image isn't 8-bit or has an unsupported channel count.
    """
    if img.dtype != np.uint8:
        raise ValueError(f"only 8-bit images are supported, got {img.dtype}")

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.ndim == 3 and img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    if img.ndim == 3 and img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)

    raise ValueError(f"image must have 1, 3 or 4 channels, got shape {img.shape}")


def load_rgba(input_path: str) -> np.ndarray | None:
    """
    Load an image file as RGBA.

    Returns:
        RGBA image, or None if OpenCV can't read the file
    """
    img = cv2.imread(input_path, cv2.IMREAD_UNCHANGED)
    if img is None:
        return None
    return to_rgba(img)


def cutout_path(input_path: str, output_dir: str) -> Path:
    """Output file for a given input: '<stem>_cutout.png' in output_dir."""
    return Path(output_dir) / f"{Path(input_path).stem}_cutout.png"


def save_rgba(rgba: np.ndarray, output_path: str | Path) -> None:
    """
    Save an RGBA image, creating the parent directory if needed.
    """
    output_dir = Path(output_path).parent
    output_dir.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(str(output_path), cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))


def save_debug_images(
    original: np.ndarray,
    result: np.ndarray,
    name: str,
    debug_dir: Path,
    target_color: str,
    tolerance: float
) -> np.ndarray:
    """
    Save the background classification mask and a checkerboard preview of the cutout.

    Args:
        original: RGBA image before processing
        result: RGBA image after processing
        name: Base name for the debug files
        debug_dir: Directory for debug images
        target_color: Background color used for classification
        tolerance: Tolerance used for classification

    Returns:
        The background classification mask
    """
    debug_dir.mkdir(parents=True, exist_ok=True)

    mask = background_mask(original, target_color, tolerance)
    cv2.imwrite(os.path.join(debug_dir, f"{name}_01_mask.png"), visualize_mask(mask))
    cv2.imwrite(os.path.join(debug_dir, f"{name}_02_preview.png"), composite_on_checkerboard(result))

    return mask
