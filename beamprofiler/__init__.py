"""Laser beam profile analysis: moments, Gaussian fit, ISO 13694 metrics, M² and jitter."""

__version__ = "1.0.0"