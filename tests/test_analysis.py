import numpy as np
import pytest

from beamprofiler.analysis import analyze
from beamprofiler.iso13694 import calculate_iso13694_metrics
from beamprofiler.models import AnalysisConfig, ImageFormat
from beamprofiler.moments import calculate_moments
from beamprofiler.preprocess import convert_to_float

TOLERANCE = 1e-3

MOMENT_FIELDS = (
    "centroid_x",
    "centroid_y",
    "sigma_xx",
    "sigma_yy",
    "sigma_xy",
    "d4sigma_x",
    "d4sigma_y",
    "ellipticity",
    "kurtosis_x",
    "kurtosis_y",
)
ISO_FIELDS = ("edge_steepness", "flatness", "rms_uniformity", "d86_radius")


def gaussian(size, center, sigma, amplitude):
    ys, xs = np.indices((size, size), dtype=np.float64)
    r2 = (xs - center) ** 2 + (ys - center) ** 2
    return np.round(amplitude * np.exp(-r2 / (2 * sigma * sigma)))


def test_symmetric_gaussian_mono16():
    pixels = gaussian(41, 20.0, 3.0, 1000.0).astype(np.uint16)
    config = AnalysisConfig(41, 41, ImageFormat.MONO16)
    metrics = analyze(pixels.tobytes(), config)
    assert metrics.centroid_x == pytest.approx(20.0, abs=TOLERANCE)
    assert metrics.centroid_y == pytest.approx(20.0, abs=TOLERANCE)
    assert metrics.sigma_xy == pytest.approx(0.0, abs=1e-6)
    assert metrics.d4sigma_x == pytest.approx(12.0, rel=0.02)
    assert metrics.d4sigma_x == pytest.approx(metrics.d4sigma_y, abs=TOLERANCE)
    assert metrics.ellipticity < 0.01


def test_metrics_match_individual_stages():
    pixels = gaussian(32, 15.0, 4.0, 200.0).astype(np.uint8)
    config = AnalysisConfig(32, 32, ImageFormat.MONO8)
    raw = pixels.tobytes()
    result = analyze(raw, config)

    floats = convert_to_float(raw, config)
    moments = calculate_moments(floats, config)
    iso = calculate_iso13694_metrics(floats, config, moments)
    for name in MOMENT_FIELDS:
        assert getattr(result, name) == pytest.approx(getattr(moments, name), abs=TOLERANCE)
    for name in ISO_FIELDS:
        assert getattr(result, name) == pytest.approx(getattr(iso, name), abs=TOLERANCE)


def test_dark_frame_removes_background():
    pixels = np.full((12, 12), 10, dtype=np.uint8)
    pixels[6:9, 5:8] += 50
    dark = bytes([10] * 144)
    config = AnalysisConfig(12, 12, ImageFormat.MONO8, dark_frame=dark)
    metrics = analyze(pixels.tobytes(), config)
    assert metrics.centroid_x == pytest.approx(6.0, abs=TOLERANCE)
    assert metrics.centroid_y == pytest.approx(7.0, abs=TOLERANCE)
    assert metrics.sigma_xx == pytest.approx(metrics.sigma_yy, abs=TOLERANCE)


def test_gain_map_scales_intensities():
    pixels = gaussian(24, 11.5, 3.0, 100.0).astype(np.uint8)
    raw = pixels.tobytes()
    plain = analyze(raw, AnalysisConfig(24, 24, ImageFormat.MONO8))
    gains = np.full(24 * 24, 2.0, dtype=np.float32)
    doubled = analyze(raw, AnalysisConfig(24, 24, ImageFormat.MONO8, gain_map=gains))
    assert doubled.edge_steepness == pytest.approx(2 * plain.edge_steepness)
    assert doubled.flatness == pytest.approx(plain.flatness)
    assert doubled.centroid_x == pytest.approx(plain.centroid_x, abs=TOLERANCE)
    assert doubled.d4sigma_y == pytest.approx(plain.d4sigma_y, abs=TOLERANCE)


def test_mono12_ignores_upper_bits():
    pixels = gaussian(20, 9.0, 2.5, 4000.0).astype(np.uint16)
    noisy = pixels | np.uint16(0xF000)
    config = AnalysisConfig(20, 20, ImageFormat.MONO12)
    clean = analyze(pixels.tobytes(), config)
    masked = analyze(noisy.tobytes(), config)
    as16 = analyze(pixels.tobytes(), AnalysisConfig(20, 20, ImageFormat.MONO16))
    for name in MOMENT_FIELDS:
        assert getattr(masked, name) == pytest.approx(getattr(clean, name), abs=TOLERANCE)
        assert getattr(as16, name) == pytest.approx(getattr(clean, name), abs=TOLERANCE)


def test_grey_rgb_matches_mono():
    pixels = gaussian(16, 7.0, 2.0, 250.0).astype(np.uint8)
    rgb = np.repeat(pixels[:, :, None], 3, axis=2)
    mono = analyze(pixels.tobytes(), AnalysisConfig(16, 16, ImageFormat.MONO8))
    colour = analyze(rgb.tobytes(), AnalysisConfig(16, 16, ImageFormat.RGB8))
    assert colour.centroid_x == pytest.approx(mono.centroid_x, abs=TOLERANCE)
    assert colour.centroid_y == pytest.approx(mono.centroid_y, abs=TOLERANCE)
    assert colour.d4sigma_x == pytest.approx(mono.d4sigma_x, abs=TOLERANCE)


def test_missing_image_raises():
    with pytest.raises(ValueError):
        analyze(None, AnalysisConfig(4, 4, ImageFormat.MONO8))


def test_empty_image_raises():
    with pytest.raises(ValueError):
        analyze(b"", AnalysisConfig(0, 0, ImageFormat.MONO8))


def test_short_buffer_raises():
    with pytest.raises(ValueError):
        analyze(bytes(10), AnalysisConfig(4, 4, ImageFormat.MONO16))