import math

import numpy as np
import pytest
from PIL import Image

from beamprofiler.analysis import analyze
from beamprofiler.cli import format_jitter, format_metrics, main, read_tiff
from beamprofiler.models import AnalysisConfig, BeamMetrics, ImageFormat, JitterResult


def beam(size=32, amplitude=200.0):
    ys, xs = np.indices((size, size), dtype=np.float64)
    r2 = (xs - 15.0) ** 2 + (ys - 14.0) ** 2
    return np.round(amplitude * np.exp(-r2 / 18.0))


@pytest.fixture
def mono8_path(tmp_path):
    path = tmp_path / "beam.tif"
    Image.fromarray(beam().astype(np.uint8)).save(path)
    return path


def test_read_tiff_mono8(mono8_path):
    data, width, height, fmt = read_tiff(mono8_path)
    assert (width, height, fmt) == (32, 32, ImageFormat.MONO8)
    assert data == beam().astype(np.uint8).tobytes()


def test_read_tiff_mono16(tmp_path):
    pixels = beam(amplitude=40000.0).astype(np.uint16)
    path = tmp_path / "beam16.tif"
    Image.fromarray(pixels).save(path)
    data, width, height, fmt = read_tiff(path)
    assert fmt is ImageFormat.MONO16
    assert np.array_equal(np.frombuffer(data, dtype=np.uint16).reshape(32, 32), pixels)


def test_read_tiff_rgb(tmp_path):
    pixels = np.stack([beam().astype(np.uint8)] * 3, axis=2)
    path = tmp_path / "beam_rgb.tif"
    Image.fromarray(pixels).save(path)
    data, width, height, fmt = read_tiff(path)
    assert fmt is ImageFormat.RGB8
    assert data == pixels.tobytes()


def test_read_tiff_rejects_rgba(tmp_path):
    path = tmp_path / "beam_rgba.tif"
    Image.new("RGBA", (4, 4)).save(path)
    with pytest.raises(ValueError, match="Unsupported image format"):
        read_tiff(path)


def test_read_tiff_rejects_float_pixels(tmp_path):
    path = tmp_path / "beam_float.tif"
    Image.fromarray(np.ones((4, 4), dtype=np.float32)).save(path)
    with pytest.raises(ValueError, match="Unsupported bit depth"):
        read_tiff(path)


def test_format_metrics_layout():
    text = format_metrics(BeamMetrics(centroid_x=1.5, rotation=math.pi / 2))
    assert text.startswith("\nBeam Profile Analysis Results:\n")
    assert "  Centroid: (1.500, 0.000)\n" in text
    assert "  Rotation: 90.000°\n" in text
    assert "Power in Bucket" not in text
    assert text.endswith("D86 Radius: 0.000\n\n")


def test_format_metrics_power_in_bucket():
    text = format_metrics(BeamMetrics(power_in_bucket=[0.25, 0.75]))
    assert "Power in Bucket:\n  Radius 0: 0.250\n  Radius 1: 0.750\n" in text


def test_format_jitter_layout():
    text = format_jitter(JitterResult(rms_jitter=0.5, psd=[1.0, 2.0]))
    assert "RMS Jitter: 0.500\n" in text
    assert "  Frequency 1: 2.000\n" in text
    assert "Power Spectral Density" not in format_jitter(JitterResult(rms_jitter=0.5))


def test_main_prints_report(mono8_path, capsys):
    assert main([str(mono8_path)]) == 0
    out = capsys.readouterr().out
    data, width, height, fmt = read_tiff(mono8_path)
    metrics = analyze(data, AnalysisConfig(width, height, fmt))
    assert f"Centroid: ({metrics.centroid_x:.3f}, {metrics.centroid_y:.3f})" in out
    assert "M² = " in out
    assert "Pointing Jitter Analysis:" in out
    assert "  Frequency 2: 0.000" in out


def test_main_with_calibration_files(mono8_path, tmp_path, capsys):
    dark_path = tmp_path / "dark.tif"
    Image.fromarray(np.zeros((32, 32), dtype=np.uint8)).save(dark_path)
    gain_path = tmp_path / "gain.tif"
    Image.fromarray(np.ones((32, 32), dtype=np.float32)).save(gain_path)
    assert main([str(mono8_path), str(dark_path), str(gain_path)]) == 0
    out = capsys.readouterr().out
    data, width, height, fmt = read_tiff(mono8_path)
    metrics = analyze(data, AnalysisConfig(width, height, fmt))
    assert f"D4σ Width: {metrics.d4sigma_x:.3f} x {metrics.d4sigma_y:.3f}" in out


def test_main_without_arguments_prints_usage(capsys):
    assert main([]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.tif")]) == 1
    assert "Could not open image file" in capsys.readouterr().err