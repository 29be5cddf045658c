[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "beamprofiler"
version = "1.0.0"
description = "Laser beam profile analysis: ISO 11146 moments, Gaussian fitting, ISO 13694 metrics, M² and pointing jitter"
requires-python = ">=3.10"
keywords = ["laser", "beam profile", "ISO 11146", "ISO 13694", "M2", "optics", "jitter"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
beamprofiler = "beamprofiler.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["beamprofiler"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
