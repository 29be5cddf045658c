# beamprofiler

Analysis of laser beam profile images. It takes a camera frame and computes:

- **Second moments (ISO 11146):** centroid, σ², D4σ widths, rotation and ellipticity
- **Higher moments:** skewness and kurtosis along x and y
- **Gaussian fit:** a rotated elliptical Gaussian fitted by Levenberg–Marquardt,
  starting from the moment estimates
- **ISO 13694 metrics:** edge steepness, flatness, RMS uniformity and D86 radius

The frame can be 8-, 12- or 16-bit monochrome or 8-bit RGB. RGB is reduced to
intensity with the weights 0.299, 0.587 and 0.114.

The package can also estimate M² from beam widths measured at several
positions along the beam. It can estimate pointing jitter, as an RMS value and
a power spectral density, from a series of centroids.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Command line

```
beamprofiler image.tif [dark_frame.tif] [gain_map.tif]
```

The image is opened with Pillow and its pixels are mapped to a format:

| Pillow mode | Format |
|---|---|
| `L` | `MONO8` |
| `I;16`, `I;16L`, `I;16B`, `I;16N` | `MONO16`, or `MONO12` when the TIFF BitsPerSample tag is 12 |
| `RGB` | `RGB8` |

Other modes are rejected with an error message. The command then prints:

- the full set of metrics to three decimal places;
- a sample M² calculation that uses the measured D4σ x width, scaled by
  1.0, 1.2, 1.5, 1.8 and 2.0 at z = 0, 50, 100, 150 and 200;
- a sample jitter calculation from the centroid and two points offset by ±0.1.

The optional dark frame is read in the same way as the image. Its raw bytes
are subtracted from the image, one byte per pixel. The optional gain map is
read as float32 values, and each pixel is multiplied by its value. A
calibration file that cannot be read is skipped without notice.

The exit status is 1 in three cases: no arguments are given, the image cannot
be opened or has an unsupported format, or the analysis fails. Otherwise the
exit status is 0.

## Library use

```python
import numpy as np

from beamprofiler.models import AnalysisConfig, ImageFormat
from beamprofiler.analysis import analyze
from beamprofiler.caustic import calculate_m2
from beamprofiler.spectral import calculate_jitter

frame = np.zeros((64, 64), dtype=np.uint8)
frame[28:36, 28:36] = 200

config = AnalysisConfig(width=64, height=64, format=ImageFormat.MONO8)
metrics = analyze(frame, config)
print(metrics.centroid_x, metrics.centroid_y, metrics.d4sigma_x)

m2 = calculate_m2([0.0, 50.0, 100.0, 150.0, 200.0],
                  [10.0, 12.0, 15.0, 18.0, 20.0])

jitter = calculate_jitter([(10.0, 10.0), (10.1, 10.1), (9.9, 9.9)])
print(jitter.rms_jitter, jitter.psd)
```

`analyze` takes a raw buffer, either bytes or a NumPy array, in the layout
given by `AnalysisConfig.format`. 12-bit and 16-bit pixels are read as
unsigned 16-bit values, and for `MONO12` only the low 12 bits are kept.
`AnalysisConfig` also takes `dark_frame` and `gain_map`. When they are set,
`analyze` applies them before it measures anything.

The data types live in `beamprofiler.models`:

- `ImageFormat`: `MONO8`, `MONO12`, `MONO16` and `RGB8`, with `bytes_per_pixel`.
- `AnalysisConfig`: `width`, `height`, `format`, `dark_frame` and `gain_map`,
  with `pixel_count` and `image_nbytes`.
- `BeamMetrics`: every computed field.
- `JitterResult`: `rms_jitter` and `psd`.

Each stage can also be called on its own:

- `beamprofiler.preprocess`: `convert_to_float`, `apply_dark_frame`, `apply_gain_map`
- `beamprofiler.moments`: `calculate_moments`
- `beamprofiler.gaussian`: `fit_gaussian`
- `beamprofiler.iso13694`: `calculate_iso13694_metrics`
- `beamprofiler.spectral`: `fft` (power-of-two lengths only) and `calculate_jitter`
- `beamprofiler.caustic`: `calculate_m2`
- `beamprofiler.cli`: `read_tiff`, `format_metrics`, `format_jitter` and `main`

Input that does not make sense raises `ValueError`. Examples:

- negative image dimensions, or an image with no pixels;
- a buffer too short for the configured image;
- fewer than three M² samples, or sequences of different lengths;
- an empty centroid series;
- an FFT length that is not a power of two.

An image whose total intensity is zero gives NaN moments rather than an error.

M² is given in normalised units, taking the wavelength as 1.

The jitter PSD has `nfft // 2 + 1` bins. Here `nfft` is the next power of two
at or above the number of samples. It averages up to four half-overlapping
Hann-windowed segments, and only segments that fit completely contribute.

## Limitations

- Power in bucket is not computed. `BeamMetrics.power_in_bucket` is always
  empty, and the command never prints that section.
- The dark frame is always read as one unsigned byte per pixel, whatever the
  image format.
- The M² and jitter parts of the command report are fixed samples built from
  the single measured image. The command does not read a series of
  measurements.