"""Metrics: MSE, PSNR, SSIM, bitrate and size statistics."""

import time
import numpy as np
from skimage.metrics import mean_squared_error, peak_signal_noise_ratio, structural_similarity
from typing import Dict

from hybrid_codec.models.compression_result import CompressionStats


def luma(rgb: np.ndarray) -> np.ndarray:
    """BT.601 luminance of an RGB image."""
    rgb = rgb.astype(np.float64)
    return 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]


def compute_mse(original: np.ndarray, reconstructed: np.ndarray) -> float:
    """Mean squared error over all samples."""
    if original.shape != reconstructed.shape:
        raise ValueError(f"Shape mismatch: {original.shape} vs {reconstructed.shape}")
    return float(mean_squared_error(original.astype(np.float64), reconstructed.astype(np.float64)))


def compute_psnr(original: np.ndarray, reconstructed: np.ndarray, data_range: float = 255.0) -> float:
    """PSNR in dB; infinite for identical images."""
    if compute_mse(original, reconstructed) == 0.0:
        return float('inf')
    return float(peak_signal_noise_ratio(
        original.astype(np.float64), reconstructed.astype(np.float64), data_range=data_range
    ))


def _ssim(original: np.ndarray, reconstructed: np.ndarray, **kwargs) -> float:
    # skimage needs an odd window no larger than the image
    win_size = min(7, original.shape[0], original.shape[1])
    if win_size % 2 == 0:
        win_size -= 1
    if win_size < 3:
        return 1.0 if np.array_equal(original, reconstructed) else float('nan')
    return float(structural_similarity(original, reconstructed, win_size=win_size, data_range=255, **kwargs))


def compute_psnr_ssim(original_rgb: np.ndarray, reconstructed_rgb: np.ndarray) -> Dict[str, float]:
    """Compute PSNR and SSIM on RGB and Y channel, plus RGB MSE."""
    original_y = luma(original_rgb)
    recon_y = luma(reconstructed_rgb)

    return {
        'psnr_rgb': compute_psnr(original_rgb, reconstructed_rgb),
        'ssim_rgb': _ssim(original_rgb, reconstructed_rgb, channel_axis=2),
        'psnr_y': compute_psnr(original_y, recon_y),
        'ssim_y': _ssim(original_y, recon_y),
        'mse_rgb': compute_mse(original_rgb, reconstructed_rgb),
    }


def compression_stats(original_size: int, compressed_size: int, psnr: float, mse: float) -> CompressionStats:
    """Size reduction summary; reduction is negative when the output grew."""
    if original_size <= 0:
        raise ValueError(f"Original size must be positive, got {original_size}")
    return CompressionStats(
        original_size=int(original_size),
        compressed_size=int(compressed_size),
        reduction_percentage=(1.0 - compressed_size / original_size) * 100.0,
        psnr=psnr,
        mse=mse,
    )


def bitrate_from_size(encoded_bytes: int, original_shape: tuple) -> Dict[str, float]:
    """Bits per pixel and ratio against 24-bit RGB for a coded stream."""
    h, w = original_shape
    num_pixels = h * w
    encoded_bits = encoded_bytes * 8
    return {
        'bpp': float(encoded_bits / num_pixels),
        'compression_ratio': float(num_pixels * 24 / max(encoded_bits, 1)),
    }


class Timer:
    """Simple timer for encode/decode runtime."""

    def __init__(self):
        self.encode_time_ms = 0.0
        self.decode_time_ms = 0.0

    def measure_encode(self, func, *args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        self.encode_time_ms += (time.perf_counter() - start) * 1000.0
        return result

    def measure_decode(self, func, *args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        self.decode_time_ms += (time.perf_counter() - start) * 1000.0
        return result
