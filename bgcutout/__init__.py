"""
Background Cutout Tool

Removes a solid-color background from RGBA images and cleans up the
edge of the resulting cutout.

Public API:
    - process_request: Process a RemovalRequest and return a RemovalResponse
    - handle_message: Same, for worker-style message dicts
    - remove_background: Convenience function for RGBA numpy arrays
    - RemovalWorker: Process pool for running requests concurrently
    - is_background: Per-pixel background classification
"""

from bgcutout.api import (
    BufferSizeError,
    MalformedRequestError,
    ParameterRangeError,
    RemovalError,
    RemovalRequest,
    RemovalResponse,
    handle_message,
    process_request,
    remove_background,
)
from bgcutout.color_classification import is_background
from bgcutout.worker import RemovalWorker

__version__ = "0.1.0"
__all__ = [
    "process_request", "handle_message", "remove_background",
    "RemovalRequest", "RemovalResponse", "RemovalWorker", "is_background",
    "RemovalError", "MalformedRequestError", "BufferSizeError", "ParameterRangeError",
    "__version__",
]
