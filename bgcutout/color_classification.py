"""
Functions for deciding whether a pixel belongs to a solid-color background.

Two color models are used. A pure green target (#00FF00) is matched with a
hue/saturation/value rule, since a chroma-key green spans a wide range of
literal RGB values under uneven lighting. Any other target is matched by
Euclidean distance in RGB space.
"""

from __future__ import annotations

import math
import re

import numpy as np

GREEN_SCREEN_HEX = "#00ff00"

# Length of the RGB cube diagonal, from (0, 0, 0) to (255, 255, 255)
MAX_RGB_DISTANCE = math.sqrt(3 * 255 ** 2)

# Green hue window in degrees (inclusive)
GREEN_HUE_RANGE = (60.0, 180.0)

_HEX_COLOR_RE = re.compile(r"#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})", re.IGNORECASE)

BLACK = (0, 0, 0)


def parse_hex_color(hex_str: str, default: tuple[int, int, int] | None = BLACK) -> tuple[int, int, int] | None:
    """
    Parse a '#RRGGBB' string (the '#' is optional) into an RGB triple.

    Args:
        hex_str: Color string, case-insensitive
        default: Value returned when the string can't be parsed

    Returns:
        (r, g, b) tuple, or `default` (black unless overridden) on malformed input
    """
    if not isinstance(hex_str, str):
        return default
    match = _HEX_COLOR_RE.fullmatch(hex_str)
    if match is None:
        return default
    r, g, b = (int(part, 16) for part in match.groups())
    return r, g, b


def is_green_screen(target_hex: str) -> bool:
    """True if the target selects the HSV green-screen rule."""
    return isinstance(target_hex, str) and target_hex.lower() == GREEN_SCREEN_HEX


def rgb_to_hsv(r: int, g: int, b: int) -> tuple[float, float, float]:
    """
    Convert 8-bit RGB to hue in degrees [0, 360), saturation and value in [0, 1].
    """
    high = max(r, g, b)
    low = min(r, g, b)
    delta = high - low

    hue = 0.0
    if delta != 0:
        if high == r:
            hue = 60.0 * ((g - b) / delta)
        elif high == g:
            hue = 60.0 * ((b - r) / delta + 2)
        else:
            hue = 60.0 * ((r - g) / delta + 4)
        if hue < 0:
            hue += 360.0

    saturation = delta / high if high > 0 else 0.0
    value = high / 255
    return hue, saturation, value


def _hsv_thresholds(tolerance_percent: float) -> tuple[float, float]:
    tolerance_factor = tolerance_percent / 100
    min_saturation = 0.25 * (1 - tolerance_factor)
    min_value = 0.35 * (1 - tolerance_factor)
    return min_saturation, min_value


def _distance_threshold(tolerance_percent: float) -> float:
    return MAX_RGB_DISTANCE * (tolerance_percent / 100)


def is_background(r: int, g: int, b: int, target_hex: str, tolerance_percent: float) -> bool:
    """
    Classify a single pixel as background or foreground.

    Args:
        r, g, b: Pixel channels (0-255)
        target_hex: Background color as '#RRGGBB'; '#00FF00' selects the green-screen rule
        tolerance_percent: Classification leniency, nominally 0-100

    Returns:
        True if the pixel should be made transparent
    """
    r, g, b = int(r), int(g), int(b)

    if is_green_screen(target_hex):
        hue, saturation, value = rgb_to_hsv(r, g, b)
        min_saturation, min_value = _hsv_thresholds(tolerance_percent)
        is_green_hue = GREEN_HUE_RANGE[0] <= hue <= GREEN_HUE_RANGE[1]
        standard_green = is_green_hue and saturation > min_saturation and value > min_value
        # Strongly dominant green counts regardless of tolerance
        dominant_green = g > r + 30 and g > b + 30 and g > 80
        return standard_green or dominant_green

    tr, tg, tb = parse_hex_color(target_hex)
    distance = math.sqrt((r - tr) ** 2 + (g - tg) ** 2 + (b - tb) ** 2)
    return distance <= _distance_threshold(tolerance_percent)


def hsv_channels(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized rgb_to_hsv over an (..., 3) array.

    Returns:
        Tuple of (hue, saturation, value) float arrays shaped like rgb[..., 0]
    """
    rgb = rgb.astype(np.int32)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    high = rgb.max(axis=-1)
    low = rgb.min(axis=-1)
    delta = high - low

    # Avoid division by zero; those entries are overridden below
    safe_delta = np.where(delta == 0, 1, delta)
    hue = np.select(
        [delta == 0, high == r, high == g],
        [0.0, 60.0 * ((g - b) / safe_delta), 60.0 * ((b - r) / safe_delta + 2)],
        default=60.0 * ((r - g) / safe_delta + 4),
    )
    hue = np.where(hue < 0, hue + 360.0, hue)

    saturation = np.where(high > 0, delta / np.where(high > 0, high, 1), 0.0)
    value = high / 255
    return hue, saturation, value


def background_mask(rgb: np.ndarray, target_hex: str, tolerance_percent: float) -> np.ndarray:
    """
    Classify every pixel of an image at once.

    Gives the same answer as is_background() for each pixel.

    Args:
        rgb: Array of shape (..., 3) or (..., 4); only the first three channels are read
        target_hex: Background color as '#RRGGBB'
        tolerance_percent: Classification leniency, nominally 0-100

    Returns:
        Boolean array shaped like rgb[..., 0], True for background pixels
    """
    channels = rgb[..., :3].astype(np.int32)
    r, g, b = channels[..., 0], channels[..., 1], channels[..., 2]

    if is_green_screen(target_hex):
        hue, saturation, value = hsv_channels(channels)
        min_saturation, min_value = _hsv_thresholds(tolerance_percent)
        standard_green = (
            (hue >= GREEN_HUE_RANGE[0]) & (hue <= GREEN_HUE_RANGE[1])
            & (saturation > min_saturation) & (value > min_value)
        )
        dominant_green = (g > r + 30) & (g > b + 30) & (g > 80)
        return standard_green | dominant_green

    target = np.array(parse_hex_color(target_hex), dtype=np.int32)
    distance = np.sqrt(((channels - target) ** 2).sum(axis=-1))
    return distance <= _distance_threshold(tolerance_percent)
