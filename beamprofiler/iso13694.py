"""Power density distribution metrics following ISO 13694."""

from __future__ import annotations

import dataclasses
import math
from typing import Any

import numpy as np

from .models import AnalysisConfig, BeamMetrics

_D86_FRACTION = 0.86


def _pixels(image: Any, config: AnalysisConfig) -> np.ndarray:
    flat = np.asarray(image, dtype=np.float64).ravel()
    count = config.pixel_count
    if count == 0:
        raise ValueError("image has no pixels")
    if flat.size < count:
        raise ValueError(f"image holds {flat.size} pixels, {count} are needed")
    return flat[:count].reshape(config.height, config.width)


def calculate_iso13694_metrics(
    image: Any, config: AnalysisConfig, moments: BeamMetrics
) -> BeamMetrics:
    """Compute edge steepness, flatness, RMS uniformity and the D86 radius.

    Returns a copy of ``moments`` with those fields filled in.
    """
    pixels = _pixels(image, config)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        grad_x = pixels[1:-1, 2:] - pixels[1:-1, :-2]
        grad_y = pixels[2:, 1:-1] - pixels[:-2, 1:-1]
        magnitude = np.sqrt(grad_x * grad_x + grad_y * grad_y)
        edge_steepness = np.fmax.reduce(magnitude.ravel(), initial=0.0)

        count = pixels.size
        total = pixels.sum()
        flatness = pixels.min() / pixels.max()
        mean = total / count
        variance = (pixels * pixels).sum() / count - mean * mean
        rms_uniformity = np.sqrt(variance) / mean

        threshold = _D86_FRACTION * total
        above = pixels[pixels > threshold].sum()
        d86_radius = np.sqrt(above / math.pi)

    return dataclasses.replace(
        moments,
        edge_steepness=float(edge_steepness),
        flatness=float(flatness),
        rms_uniformity=float(rms_uniformity),
        d86_radius=float(d86_radius),
        power_in_bucket=list(moments.power_in_bucket),
    )