"""Complete beam profile analysis pipeline."""

from __future__ import annotations

from typing import Any

from .gaussian import fit_gaussian
from .iso13694 import calculate_iso13694_metrics
from .models import AnalysisConfig, BeamMetrics
from .moments import calculate_moments
from .preprocess import apply_dark_frame, apply_gain_map, convert_to_float


def analyze(image: Any, config: AnalysisConfig) -> BeamMetrics:
    """Analyse a raw image buffer and return all beam metrics.

    The image is converted to float, corrected with the configured dark frame
    and gain map, then measured by moments, a Gaussian fit and ISO 13694.
    """
    if image is None:
        raise ValueError("no image data given")
    if config is None:
        raise ValueError("no analysis configuration given")

    pixels = convert_to_float(image, config)
    if config.dark_frame is not None:
        pixels = apply_dark_frame(pixels, config.dark_frame)
    if config.gain_map is not None:
        pixels = apply_gain_map(pixels, config.gain_map)

    metrics = calculate_moments(pixels, config)
    metrics = fit_gaussian(pixels, config, metrics)
    return calculate_iso13694_metrics(pixels, config, metrics)