"""Conversion of raw image buffers to float pixels and calibration steps."""

from __future__ import annotations

from typing import Any

import numpy as np

from .models import AnalysisConfig, ImageFormat

_RGB_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def _raw(data: Any, dtype: Any, count: int, what: str) -> np.ndarray:
    """View the first ``count`` items of a buffer as ``dtype``."""
    source = np.ascontiguousarray(data) if isinstance(data, np.ndarray) else data
    needed = count * np.dtype(dtype).itemsize
    available = memoryview(source).nbytes
    if available < needed:
        raise ValueError(f"{what} holds {available} bytes, {needed} are needed")
    return np.frombuffer(source, dtype=dtype, count=count)


def convert_to_float(image: Any, config: AnalysisConfig) -> np.ndarray:
    """Read a raw image buffer as a flat float32 array of pixel intensities."""
    n = config.pixel_count
    fmt = config.format
    if fmt is ImageFormat.MONO8:
        return _raw(image, np.uint8, n, "image").astype(np.float32)
    if fmt is ImageFormat.MONO12:
        return (_raw(image, np.uint16, n, "image") & 0x0FFF).astype(np.float32)
    if fmt is ImageFormat.MONO16:
        return _raw(image, np.uint16, n, "image").astype(np.float32)
    rgb = _raw(image, np.uint8, n * 3, "image").reshape(n, 3).astype(np.float32)
    return rgb @ _RGB_WEIGHTS


def apply_dark_frame(image: np.ndarray, dark_frame: Any) -> np.ndarray:
    """Subtract a dark frame, read as one unsigned byte per pixel."""
    pixels = np.asarray(image, dtype=np.float32)
    dark = _raw(dark_frame, np.uint8, pixels.size, "dark frame")
    return pixels - dark.astype(np.float32)


def apply_gain_map(image: np.ndarray, gain_map: Any) -> np.ndarray:
    """Multiply each pixel by its float32 gain."""
    pixels = np.asarray(image, dtype=np.float32)
    if isinstance(gain_map, (bytes, bytearray, memoryview)):
        gains = _raw(gain_map, np.float32, pixels.size, "gain map")
    else:
        gains = np.asarray(gain_map, dtype=np.float32).ravel()
        if gains.size < pixels.size:
            raise ValueError(
                f"gain map holds {gains.size} values, {pixels.size} are needed"
            )
        gains = gains[: pixels.size]
    return pixels * gains