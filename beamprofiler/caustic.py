"""Beam quality factor from a caustic of width measurements."""

from __future__ import annotations

from typing import Any

import numpy as np


def calculate_m2(z_positions: Any, beam_widths: Any) -> float:
    """Estimate M² by fitting ``w²(z) = a + b (z - z0)²`` to the measurements.

    ``z0`` is the position of the narrowest beam, unless the first width is
    already the narrowest, in which case ``z0`` stays at zero. The wavelength
    is taken as one (normalised units).
    """
    z = np.asarray(z_positions, dtype=np.float64).ravel()
    w = np.asarray(beam_widths, dtype=np.float64).ravel()
    if z.size != w.size or z.size < 3:
        raise ValueError("Invalid input data for M² calculation")

    narrowest = int(np.argmin(w))
    z0 = z[narrowest] if w[narrowest] < w[0] else 0.0

    z2 = (z - z0) ** 2
    w2 = w**2
    n = float(z.size)
    sum_z2 = z2.sum()
    sum_z4 = (z2 * z2).sum()
    sum_w2 = w2.sum()
    sum_z2w2 = (z2 * w2).sum()

    with np.errstate(divide="ignore", invalid="ignore"):
        det = n * sum_z4 - sum_z2 * sum_z2
        a = (sum_w2 * sum_z4 - sum_z2 * sum_z2w2) / det
        b = (n * sum_z2w2 - sum_z2 * sum_w2) / det
        m2 = np.pi * np.sqrt(a) * np.sqrt(b)
    return float(m2)