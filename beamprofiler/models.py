"""Data types shared by the beam profile analysis routines."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class ImageFormat(enum.IntEnum):
    """Pixel layouts accepted by the analysis."""

    MONO8 = 0
    MONO12 = 1
    MONO16 = 2
    RGB8 = 3

    @property
    def bytes_per_pixel(self) -> int:
        """Number of bytes one pixel occupies in a raw buffer."""
        return _BYTES_PER_PIXEL[self]


_BYTES_PER_PIXEL = {
    ImageFormat.MONO8: 1,
    ImageFormat.MONO12: 2,
    ImageFormat.MONO16: 2,
    ImageFormat.RGB8: 3,
}


@dataclass(frozen=True)
class AnalysisConfig:
    """Image geometry and optional calibration data for an analysis run.

    ``dark_frame`` is a raw buffer read as one unsigned byte per pixel.
    ``gain_map`` is a buffer or array of float32 gains, one per pixel.
    """

    width: int
    height: int
    format: ImageFormat = ImageFormat.MONO8
    dark_frame: Optional[Any] = None
    gain_map: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"image dimensions must not be negative: {self.width}x{self.height}"
            )
        object.__setattr__(self, "format", ImageFormat(self.format))

    @property
    def pixel_count(self) -> int:
        """Number of pixels in the image."""
        return self.width * self.height

    @property
    def image_nbytes(self) -> int:
        """Size in bytes of a raw image buffer in this configuration."""
        return self.pixel_count * self.format.bytes_per_pixel


@dataclass
class BeamMetrics:
    """Results of a beam profile analysis."""

    # Second moments (ISO 11146)
    centroid_x: float = 0.0
    centroid_y: float = 0.0
    sigma_xx: float = 0.0
    sigma_yy: float = 0.0
    sigma_xy: float = 0.0
    d4sigma_x: float = 0.0
    d4sigma_y: float = 0.0
    rotation: float = 0.0
    ellipticity: float = 0.0

    # Higher moments
    skewness_x: float = 0.0
    skewness_y: float = 0.0
    kurtosis_x: float = 0.0
    kurtosis_y: float = 0.0

    # Gaussian fit parameters
    gaussian_amplitude: float = 0.0
    gaussian_center_x: float = 0.0
    gaussian_center_y: float = 0.0
    gaussian_sigma_x: float = 0.0
    gaussian_sigma_y: float = 0.0
    gaussian_theta: float = 0.0
    gaussian_fit_error: float = 0.0

    # ISO 13694 metrics
    edge_steepness: float = 0.0
    flatness: float = 0.0
    rms_uniformity: float = 0.0

    # Power in bucket metrics
    d86_radius: float = 0.0
    power_in_bucket: list[float] = field(default_factory=list)


@dataclass
class JitterResult:
    """RMS pointing jitter and its power spectral density."""

    rms_jitter: float
    psd: list[float] = field(default_factory=list)