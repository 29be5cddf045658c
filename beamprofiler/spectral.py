"""Fast Fourier transform and pointing-jitter spectral analysis."""

from __future__ import annotations

import math
from typing import Any, Iterable

import numpy as np

from .models import JitterResult

_SEGMENTS = 4


def fft(values: Any) -> np.ndarray:
    """Return the discrete Fourier transform of a power-of-two length sequence.

    Uses the forward convention ``X[k] = sum x[n] * exp(-2j*pi*k*n/N)``.
    Sequences of length 0 or 1 are returned unchanged.
    """
    data = np.array(values, dtype=np.complex128).ravel()
    size = data.size
    if size <= 1:
        return data
    if size & (size - 1):
        raise ValueError(f"FFT length must be a power of two, got {size}")
    return np.fft.fft(data)


def calculate_jitter(centroids: Iterable[tuple[float, float]]) -> JitterResult:
    """Compute RMS pointing jitter and a Welch-style power spectral density.

    ``centroids`` is a sequence of ``(x, y)`` positions over time. The PSD has
    ``nfft // 2 + 1`` bins, where ``nfft`` is the next power of two at or above
    the number of samples; only segments that fit completely contribute.
    """
    points = np.array(list(centroids), dtype=np.float64).reshape(-1, 2)
    count = len(points)
    if count == 0:
        raise ValueError("Empty centroid data")

    xs = points[:, 0]
    ys = points[:, 1]
    mean_x = xs.sum() / count
    mean_y = ys.sum() / count
    var_x = (xs * xs).sum() / count - mean_x * mean_x
    var_y = (ys * ys).sum() / count - mean_y * mean_y

    nfft = 1 << math.ceil(math.log2(count))
    overlap = nfft // 2
    step = nfft - overlap
    npsd = nfft // 2 + 1
    psd = np.zeros(npsd)

    with np.errstate(divide="ignore", invalid="ignore"):
        rms_jitter = np.sqrt(var_x + var_y)
        window = 0.5 * (1.0 - np.cos(2.0 * np.pi * np.arange(nfft) / (nfft - 1)))

        for segment in range(_SEGMENTS):
            start = segment * step
            if start + nfft > count:
                break
            block = points[start : start + nfft]
            spectrum_x = fft((block[:, 0] - mean_x) * window)
            spectrum_y = fft((block[:, 1] - mean_y) * window)
            psd += np.abs(spectrum_x[:npsd]) ** 2 + np.abs(spectrum_y[:npsd]) ** 2

        psd *= 1.0 / (_SEGMENTS * nfft)

    return JitterResult(rms_jitter=float(rms_jitter), psd=[float(v) for v in psd])