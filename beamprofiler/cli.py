"""Command line tool that analyses a beam image stored as TIFF."""

from __future__ import annotations

import math
import sys
from typing import Optional, Sequence

import numpy as np
from PIL import Image

from .analysis import analyze
from .caustic import calculate_m2
from .models import AnalysisConfig, BeamMetrics, ImageFormat, JitterResult
from .spectral import calculate_jitter

_USAGE = "Usage: beamprofiler <image.tif> [dark_frame.tif] [gain_map.tif]"

_MODE_FORMATS = {
    "L": ImageFormat.MONO8,
    "I;16": ImageFormat.MONO16,
    "I;16L": ImageFormat.MONO16,
    "I;16B": ImageFormat.MONO16,
    "I;16N": ImageFormat.MONO16,
    "RGB": ImageFormat.RGB8,
}

_BITS_PER_SAMPLE_TAG = 258


def _bits_per_sample(img: Image.Image) -> Optional[int]:
    tags = getattr(img, "tag_v2", None)
    if tags is None:
        return None
    bits = tags.get(_BITS_PER_SAMPLE_TAG)
    if isinstance(bits, tuple):
        bits = bits[0] if bits else None
    return bits


def read_tiff(path) -> tuple[bytes, int, int, ImageFormat]:
    """Read an image file and return ``(raw_bytes, width, height, format)``.

    Raises ``OSError`` if the file cannot be opened and ``ValueError`` for
    pixel layouts the analysis does not accept.
    """
    with Image.open(path) as img:
        img.load()
        fmt = _MODE_FORMATS.get(img.mode)
        if fmt is None:
            if len(img.getbands()) == 1:
                raise ValueError("Unsupported bit depth")
            raise ValueError("Unsupported image format")
        if fmt is ImageFormat.MONO16 and _bits_per_sample(img) == 12:
            fmt = ImageFormat.MONO12
        dtype = np.uint8 if fmt in (ImageFormat.MONO8, ImageFormat.RGB8) else np.uint16
        data = np.asarray(img).astype(dtype).tobytes()
        return data, img.width, img.height, fmt


def _read_gain_map(path) -> np.ndarray:
    with Image.open(path) as img:
        return np.asarray(img, dtype=np.float32).ravel()


def format_metrics(metrics: BeamMetrics) -> str:
    """Render analysis results as a human-readable report."""
    m = metrics
    lines = [
        "",
        "Beam Profile Analysis Results:",
        "=============================",
        "",
        "Second Moments (ISO 11146):",
        f"  Centroid: ({m.centroid_x:.3f}, {m.centroid_y:.3f})",
        f"  D4σ Width: {m.d4sigma_x:.3f} x {m.d4sigma_y:.3f}",
        f"  Rotation: {math.degrees(m.rotation):.3f}°",
        f"  Ellipticity: {m.ellipticity:.3f}",
        "",
        "Higher Moments:",
        f"  Skewness: ({m.skewness_x:.3f}, {m.skewness_y:.3f})",
        f"  Kurtosis: ({m.kurtosis_x:.3f}, {m.kurtosis_y:.3f})",
        "",
        "Gaussian Fit:",
        f"  Amplitude: {m.gaussian_amplitude:.3f}",
        f"  Center: ({m.gaussian_center_x:.3f}, {m.gaussian_center_y:.3f})",
        f"  Sigma: ({m.gaussian_sigma_x:.3f}, {m.gaussian_sigma_y:.3f})",
        f"  Rotation: {math.degrees(m.gaussian_theta):.3f}°",
        f"  Fit Error: {m.gaussian_fit_error:.3f}",
        "",
        "ISO 13694 Metrics:",
        f"  Edge Steepness: {m.edge_steepness:.3f}",
        f"  Flatness: {m.flatness:.3f}",
        f"  RMS Uniformity: {m.rms_uniformity:.3f}",
        f"  D86 Radius: {m.d86_radius:.3f}",
        "",
    ]
    if m.power_in_bucket:
        lines.append("Power in Bucket:")
        lines.extend(
            f"  Radius {index}: {value:.3f}"
            for index, value in enumerate(m.power_in_bucket)
        )
    return "\n".join(lines) + "\n"


def format_jitter(jitter: JitterResult) -> str:
    """Render pointing jitter results as a human-readable report."""
    lines = [
        "",
        "Pointing Jitter Analysis:",
        "=======================",
        "",
        f"RMS Jitter: {jitter.rms_jitter:.3f}",
        "",
    ]
    if jitter.psd:
        lines.append("Power Spectral Density:")
        lines.extend(
            f"  Frequency {index}: {value:.3f}" for index, value in enumerate(jitter.psd)
        )
    return "\n".join(lines) + "\n"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Analyse the image named on the command line and print a report."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(_USAGE, file=sys.stderr)
        return 1

    try:
        data, width, height, fmt = read_tiff(args[0])
    except OSError:
        print("Error: Could not open image file", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # Calibration files that cannot be read are skipped.
    dark_frame = None
    if len(args) > 1:
        try:
            dark_frame = read_tiff(args[1])[0]
        except (OSError, ValueError):
            dark_frame = None
    gain_map = None
    if len(args) > 2:
        try:
            gain_map = _read_gain_map(args[2])
        except (OSError, ValueError):
            gain_map = None

    config = AnalysisConfig(width, height, fmt, dark_frame=dark_frame, gain_map=gain_map)
    try:
        metrics = analyze(data, config)
    except ValueError:
        print("Error: Analysis failed", file=sys.stderr)
        return 1

    print(format_metrics(metrics), end="")

    z_positions = [0.0, 50.0, 100.0, 150.0, 200.0]
    beam_widths = [metrics.d4sigma_x * factor for factor in (1.0, 1.2, 1.5, 1.8, 2.0)]
    try:
        m2 = calculate_m2(z_positions, beam_widths)
    except ValueError:
        m2 = math.nan
    if m2 >= 0.0:
        print("\nM² Calculation:\n==============\n")
        print(f"M² = {m2:.3f}")

    cx, cy = metrics.centroid_x, metrics.centroid_y
    centroids = [(cx, cy), (cx + 0.1, cy + 0.1), (cx - 0.1, cy - 0.1)]
    try:
        jitter = calculate_jitter(centroids)
    except ValueError:
        jitter = None
    if jitter is not None:
        print(format_jitter(jitter), end="")

    return 0


if __name__ == "__main__":
    sys.exit(main())