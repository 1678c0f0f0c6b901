#!/usr/bin/env python3
"""
Public API for the background cutout library.

This module provides the request/response interface used to remove a
solid-color background from an RGBA pixel buffer and clean up the edge of
the resulting cutout.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Any

import numpy as np

from bgcutout.alpha_processing import erode
from bgcutout.removal import GLOBAL_MODE, select_strategy

DEFAULT_MODE = GLOBAL_MODE
DEFAULT_TARGET_COLOR = "#00FF00"
DEFAULT_TOLERANCE = 10.0
DEFAULT_ERODE_STRENGTH = 0

# Field names used by browser-style worker messages
_MESSAGE_FIELDS = {
    "id": "id",
    "rawImageData": "pixels",
    "removalMode": "removal_mode",
    "targetColorHex": "target_color",
    "colorTolerance": "color_tolerance",
    "erodeStrength": "erode_strength",
    "width": "width",
    "height": "height",
}


class RemovalError(ValueError):
    """Base class for requests the pipeline refuses to process."""


class MalformedRequestError(RemovalError):
    """A request field is missing or has the wrong type."""


class BufferSizeError(RemovalError):
    """The pixel buffer doesn't hold width * height RGBA pixels."""


class ParameterRangeError(RemovalError):
    """Tolerance or erosion strength is outside its supported range."""


@dataclass
class RemovalRequest:
    """
    A single background removal job.

    Attributes:
        id: Opaque correlation token, echoed back in the response
        pixels: RGBA8 row-major buffer (bytearray, bytes or uint8 numpy array)
        width: Image width in pixels
        height: Image height in pixels
        removal_mode: "flood" for corner flood fill, anything else for global thresholding
        target_color: Background color as '#RRGGBB'; '#00FF00' uses the green-screen rule
        color_tolerance: Classification leniency in percent (0-100)
        erode_strength: Number of edge erosion passes (0 disables erosion)
    """
    id: Any
    pixels: Any = field(compare=False)
    width: int
    height: int
    removal_mode: str = DEFAULT_MODE
    target_color: str = DEFAULT_TARGET_COLOR
    color_tolerance: float = DEFAULT_TOLERANCE
    erode_strength: int = DEFAULT_ERODE_STRENGTH

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> RemovalRequest:
        """
        Build a request from a message dict.

        Accepts both the camelCase worker message names (rawImageData,
        removalMode, targetColorHex, colorTolerance, erodeStrength) and the
        snake_case attribute names. `rawImageData` may also be an
        ImageData-like mapping with 'data', 'width' and 'height' keys.

        Raises:
            MalformedRequestError: If the message isn't a mapping or lacks
                id, pixels, width or height.
        """
        if not isinstance(message, Mapping):
            raise MalformedRequestError(f"message must be a mapping, got {type(message).__name__}")

        fields: dict[str, Any] = {}
        for key, value in message.items():
            name = _MESSAGE_FIELDS.get(key, key)
            if name in cls.__dataclass_fields__:
                fields[name] = value

        pixels = fields.get("pixels")
        if isinstance(pixels, Mapping):
            fields["pixels"] = pixels.get("data")
            fields.setdefault("width", pixels.get("width"))
            fields.setdefault("height", pixels.get("height"))

        missing = [name for name in ("id", "pixels", "width", "height") if fields.get(name) is None]
        if missing:
            raise MalformedRequestError(f"message is missing required field(s): {', '.join(missing)}")

        return cls(**fields)


@dataclass
class RemovalResponse:
    """
    Result of a background removal job.

    Attributes:
        id: The correlation token from the request, unchanged
        pixels: The processed buffer. This is the request's own buffer,
                modified in place, unless it was immutable and had to be copied.
    """
    id: Any
    pixels: Any = field(compare=False)

    def to_message(self) -> dict[str, Any]:
        """Worker-style reply dict."""
        return {"id": self.id, "processedImageData": self.pixels}


def _is_int(value: Any) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _validate_parameters(request: RemovalRequest, strict: bool) -> None:
    for name in ("width", "height"):
        value = getattr(request, name)
        if not _is_int(value):
            raise MalformedRequestError(f"{name} must be an integer, got {type(value).__name__}")
        if value <= 0:
            raise MalformedRequestError(f"{name} must be positive, got {value}")

    if not _is_number(request.color_tolerance):
        raise MalformedRequestError(
            f"color_tolerance must be a number, got {type(request.color_tolerance).__name__}")
    if not _is_int(request.erode_strength):
        raise MalformedRequestError(
            f"erode_strength must be an integer, got {type(request.erode_strength).__name__}")

    if strict:
        tolerance = request.color_tolerance
        if not math.isfinite(tolerance) or not 0 <= tolerance <= 100:
            raise ParameterRangeError(f"color_tolerance must be between 0 and 100, got {tolerance}")
        if request.erode_strength < 0:
            raise ParameterRangeError(f"erode_strength must not be negative, got {request.erode_strength}")


def _wrap_pixels(pixels: Any, width: int, height: int) -> tuple[np.ndarray, Any]:
    """
    View a pixel buffer as a (height, width, 4) uint8 array.

    Returns:
        Tuple of (image view, buffer to hand back to the caller). Writes to the
        view land in the returned buffer.
    """
    expected = width * height * 4

    if isinstance(pixels, np.ndarray):
        if pixels.dtype != np.uint8:
            raise MalformedRequestError(f"pixel array must be uint8, got {pixels.dtype}")
        if pixels.size != expected:
            raise BufferSizeError(
                f"pixel array has {pixels.size} values, expected {expected} for {width}x{height} RGBA")
        if not pixels.flags.writeable:
            pixels = pixels.copy()
        image = pixels.reshape(height, width, 4)
        if not np.may_share_memory(image, pixels):
            # Non-contiguous input; hand back the contiguous copy instead
            pixels = image.reshape(pixels.shape)
        return image, pixels

    if isinstance(pixels, bytes):
        pixels = bytearray(pixels)

    try:
        flat = np.frombuffer(pixels, dtype=np.uint8)
    except TypeError as e:
        raise MalformedRequestError(
            f"pixels must be a byte buffer or numpy array, got {type(pixels).__name__}") from e

    if flat.size != expected:
        raise BufferSizeError(
            f"pixel buffer has {flat.size} bytes, expected {expected} for {width}x{height} RGBA")

    if not flat.flags.writeable:
        pixels = bytearray(flat.tobytes())
        flat = np.frombuffer(pixels, dtype=np.uint8)

    return flat.reshape(height, width, 4), pixels


def process_request(request: RemovalRequest, *, strict: bool = True) -> RemovalResponse:
    """
    Remove the background from the request's pixel buffer and erode the cutout edge.

    The buffer is modified in place and handed back in the response; the
    caller shouldn't rely on its original contents afterwards.

    Args:
        request: The job to run
        strict: If True, reject tolerance outside 0-100 and negative erosion
                strength. If False, pass them through to the arithmetic as-is
                (negative strength then means no erosion).

    Returns:
        RemovalResponse echoing the request id

    Raises:
        MalformedRequestError: If a field has the wrong type or dimensions aren't positive.
        BufferSizeError: If the buffer length isn't width * height * 4.
        ParameterRangeError: If strict and tolerance or erosion strength is out of range.
    """
    if not isinstance(request, RemovalRequest):
        raise MalformedRequestError(f"request must be a RemovalRequest, got {type(request).__name__}")

    _validate_parameters(request, strict)
    image, pixels = _wrap_pixels(request.pixels, request.width, request.height)

    remove = select_strategy(request.removal_mode)
    remove(image, request.target_color, request.color_tolerance)

    erode(image, request.erode_strength)

    return RemovalResponse(id=request.id, pixels=pixels)


def handle_message(message: Mapping[str, Any], *, strict: bool = True) -> dict[str, Any]:
    """
    Process a worker-style message dict and return the reply dict.

    Example:
        >>> reply = handle_message({
        ...     "id": 7, "rawImageData": buf, "width": 64, "height": 48,
        ...     "removalMode": "flood", "targetColorHex": "#000000",
        ...     "colorTolerance": 15, "erodeStrength": 1,
        ... })
        >>> reply["id"], reply["processedImageData"] is buf
        (7, True)
    """
    request = RemovalRequest.from_message(message)
    return process_request(request, strict=strict).to_message()


def remove_background(
    image: np.ndarray | None,
    *,
    mode: str = DEFAULT_MODE,
    target_color: str = DEFAULT_TARGET_COLOR,
    tolerance: float = DEFAULT_TOLERANCE,
    erode_strength: int = DEFAULT_ERODE_STRENGTH,
    strict: bool = True,
) -> np.ndarray:
    """
    Remove a solid-color background from an RGBA image array.

    Unlike process_request(), the input array is left untouched.

    Args:
        image: Input image as numpy array in RGBA format (uint8), shape (height, width, 4)
        mode: "flood" to remove only background connected to the image corners,
              anything else to remove every background-colored pixel
        target_color: Background color as '#RRGGBB'
        tolerance: Classification leniency in percent (0-100)
        erode_strength: Number of edge erosion passes
        strict: See process_request()

    Returns:
        New RGBA array with background pixels' alpha set to 0

    Raises:
        ValueError: If image is None or has invalid shape/dtype, or parameters are invalid.

    Example:
        >>> import cv2
        >>> from bgcutout import remove_background
        >>>
        >>> bgra = cv2.imread("portrait.png", cv2.IMREAD_UNCHANGED)
        >>> rgba = cv2.cvtColor(bgra, cv2.COLOR_BGRA2RGBA)
        >>> cutout = remove_background(rgba, mode="flood", tolerance=30, erode_strength=1)
    """
    # Validate input
    if image is None:
        raise MalformedRequestError("image cannot be None")

    if not isinstance(image, np.ndarray):
        raise MalformedRequestError(f"image must be a numpy array, got {type(image)}")

    if image.ndim != 3 or image.shape[2] != 4:
        raise MalformedRequestError(f"image must be an RGBA array (height, width, 4), got shape {image.shape}")

    if image.dtype != np.uint8:
        raise MalformedRequestError(f"image must be uint8, got {image.dtype}")

    # Make a copy to avoid modifying the input
    img = np.ascontiguousarray(image).copy()

    request = RemovalRequest(
        id=None,
        pixels=img,
        width=img.shape[1],
        height=img.shape[0],
        removal_mode=mode,
        target_color=target_color,
        color_tolerance=tolerance,
        erode_strength=erode_strength,
    )
    return process_request(request, strict=strict).pixels
