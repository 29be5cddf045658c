"""Levenberg-Marquardt fit of a rotated 2-D Gaussian to a beam image."""

from __future__ import annotations

import dataclasses
import math
import sys
from typing import Any

import numpy as np

from .models import AnalysisConfig, BeamMetrics

_MAX_ITERATIONS = 100
_LAMBDA_INIT = 0.001
_LAMBDA_FACTOR = 10.0
_TOLERANCE = 1e-6


def _pixels(image: Any, config: AnalysisConfig) -> np.ndarray:
    flat = np.asarray(image, dtype=np.float64).ravel()
    count = config.pixel_count
    if count == 0:
        raise ValueError("image has no pixels")
    if flat.size < count:
        raise ValueError(f"image holds {flat.size} pixels, {count} are needed")
    return flat[:count].reshape(config.height, config.width)


def _model(params: np.ndarray, xs: np.ndarray, ys: np.ndarray):
    """Evaluate the Gaussian and its Jacobian with respect to the parameters."""
    amplitude, center_x, center_y, sigma_x, sigma_y, theta = params
    dx = xs - center_x
    dy = ys - center_y
    cos_t = np.cos(theta)
    sin_t = np.sin(theta)
    sin_2t = np.sin(2 * theta)
    sx2 = sigma_x * sigma_x
    sy2 = sigma_y * sigma_y

    a = cos_t * cos_t / (2 * sx2) + sin_t * sin_t / (2 * sy2)
    b = -sin_2t / (4 * sx2) + sin_2t / (4 * sy2)
    c = sin_t * sin_t / (2 * sx2) + cos_t * cos_t / (2 * sy2)

    g = amplitude * np.exp(-(a * dx * dx + 2 * b * dx * dy + c * dy * dy))
    jacobian = np.column_stack(
        [
            g / amplitude,
            g * (2 * a * dx + 2 * b * dy),
            g * (2 * b * dx + 2 * c * dy),
            g * dx * dx * cos_t * cos_t / (sx2 * sigma_x),
            g * dy * dy * sin_t * sin_t / (sy2 * sigma_y),
            g * (dx * dx - dy * dy) * sin_2t / (2 * sx2),
        ]
    )
    return g, jacobian


def _solve(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """Gaussian elimination with partial pivoting and back substitution."""
    h = matrix.copy()
    r = rhs.copy()
    size = r.size
    for i in range(size):
        pivot = i + int(np.argmax(np.abs(h[i:, i])))
        if pivot != i:
            h[[i, pivot]] = h[[pivot, i]]
            r[[i, pivot]] = r[[pivot, i]]
        factors = h[i + 1 :, i] / h[i, i]
        r[i + 1 :] -= factors * r[i]
        h[i + 1 :, i:] -= np.outer(factors, h[i, i:])

    solution = np.zeros(size)
    for i in reversed(range(size)):
        solution[i] = (r[i] - h[i, i + 1 :] @ solution[i + 1 :]) / h[i, i]
    return solution


def fit_gaussian(image: Any, config: AnalysisConfig, moments: BeamMetrics) -> BeamMetrics:
    """Fit a rotated Gaussian starting from the second-moment estimates.

    Returns a copy of ``moments`` with the Gaussian fit fields filled in.
    """
    pixels = _pixels(image, config)
    target = pixels.ravel()
    ys, xs = (grid.ravel() for grid in np.indices(pixels.shape, dtype=np.float64))

    params = np.array(
        [
            target.max(),
            moments.centroid_x,
            moments.centroid_y,
            moments.d4sigma_x / 4.0,
            moments.d4sigma_y / 4.0,
            moments.rotation,
        ],
        dtype=np.float64,
    )
    damping = _LAMBDA_INIT
    chi2 = sys.float_info.max

    with np.errstate(all="ignore"):
        for _ in range(_MAX_ITERATIONS):
            g, jacobian = _model(params, xs, ys)
            residuals = target - g
            chi2_new = float(residuals @ residuals)

            if abs(chi2_new - chi2) < _TOLERANCE:
                break

            hessian = jacobian.T @ jacobian
            gradient = jacobian.T @ residuals
            hessian[np.diag_indices_from(hessian)] *= 1.0 + damping

            candidate = params + _solve(hessian, gradient)
            valid = not (candidate[0] <= 0.0 or candidate[3] <= 0.0 or candidate[4] <= 0.0)

            if valid and chi2_new < chi2:
                params = candidate
                chi2 = chi2_new
                damping /= _LAMBDA_FACTOR
            else:
                damping *= _LAMBDA_FACTOR

    amplitude, center_x, center_y, sigma_x, sigma_y, theta = (float(v) for v in params)
    return dataclasses.replace(
        moments,
        gaussian_amplitude=amplitude,
        gaussian_center_x=center_x,
        gaussian_center_y=center_y,
        gaussian_sigma_x=sigma_x,
        gaussian_sigma_y=sigma_y,
        gaussian_theta=theta,
        gaussian_fit_error=math.sqrt(chi2 / config.pixel_count),
        power_in_bucket=list(moments.power_in_bucket),
    )