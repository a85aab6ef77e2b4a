"""Hybrid DCT/wavelet lossy image codec."""

__version__ = "1.0.0"
