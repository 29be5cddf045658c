"""Centroid, second and higher moments of a beam image (ISO 11146)."""

from __future__ import annotations

from typing import Any

import numpy as np

from .models import AnalysisConfig, BeamMetrics


def _pixels(image: Any, config: AnalysisConfig) -> np.ndarray:
    """Return the image as a ``height`` x ``width`` float64 grid."""
    flat = np.asarray(image, dtype=np.float64).ravel()
    count = config.pixel_count
    if count == 0:
        raise ValueError("image has no pixels")
    if flat.size < count:
        raise ValueError(f"image holds {flat.size} pixels, {count} are needed")
    return flat[:count].reshape(config.height, config.width)


def calculate_moments(image: Any, config: AnalysisConfig) -> BeamMetrics:
    """Compute centroid, second moments, D4-sigma widths and higher moments.

    Gaussian fit, ISO 13694 and power-in-bucket fields are left at zero.
    An image whose total intensity is zero yields NaN results.
    """
    pixels = _pixels(image, config)
    ys, xs = np.indices(pixels.shape, dtype=np.float64)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        total = pixels.sum()
        centroid_x = (xs * pixels).sum() / total
        centroid_y = (ys * pixels).sum() / total

        dx = xs - centroid_x
        dy = ys - centroid_y
        dx2 = dx * dx
        dy2 = dy * dy

        sigma_xx = (dx2 * pixels).sum() / total
        sigma_yy = (dy2 * pixels).sum() / total
        sigma_xy = (dx * dy * pixels).sum() / total
        third_x = (dx2 * dx * pixels).sum() / total
        third_y = (dy2 * dy * pixels).sum() / total
        fourth_x = (dx2 * dx2 * pixels).sum() / total
        fourth_y = (dy2 * dy2 * pixels).sum() / total

        d4sigma_x = 4.0 * np.sqrt(sigma_xx)
        d4sigma_y = 4.0 * np.sqrt(sigma_yy)
        rotation = 0.5 * np.arctan2(2.0 * sigma_xy, sigma_xx - sigma_yy)
        ellipticity = np.sqrt(
            (sigma_xx - sigma_yy) ** 2 + 4.0 * sigma_xy**2
        ) / (sigma_xx + sigma_yy)

        skewness_x = third_x / np.power(sigma_xx, 1.5)
        skewness_y = third_y / np.power(sigma_yy, 1.5)
        kurtosis_x = fourth_x / sigma_xx**2 - 3.0
        kurtosis_y = fourth_y / sigma_yy**2 - 3.0

    return BeamMetrics(
        centroid_x=float(centroid_x),
        centroid_y=float(centroid_y),
        sigma_xx=float(sigma_xx),
        sigma_yy=float(sigma_yy),
        sigma_xy=float(sigma_xy),
        d4sigma_x=float(d4sigma_x),
        d4sigma_y=float(d4sigma_y),
        rotation=float(rotation),
        ellipticity=float(ellipticity),
        skewness_x=float(skewness_x),
        skewness_y=float(skewness_y),
        kurtosis_x=float(kurtosis_x),
        kurtosis_y=float(kurtosis_y),
    )