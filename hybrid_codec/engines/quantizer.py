"""Quantization tables and scalar quantization."""

from typing import Dict

import numpy as np

from hybrid_codec.engines.wavelet_engine import subband_layout
from hybrid_codec.utils.constants import (
    JPEG_LUMA_Q50,
    JPEG_CHROMA_Q50,
    WAVELET_LEVEL_WEIGHTS,
    WAVELET_ORIENTATION_WEIGHTS,
)


def scale_quant_matrix(base_matrix: np.ndarray, quality: int) -> np.ndarray:
    """Scale quantization matrix by quality factor (1-100)."""
    quality = np.clip(quality, 1, 100)
    
    # JPEG scaling formula
    if quality < 50:
        scale = 5000.0 / quality
    else:
        scale = 200.0 - 2.0 * quality
    
    Q = np.floor((base_matrix * scale + 50.0) / 100.0)
    Q = np.clip(Q, 1, 255)
    return Q.astype(np.float64)


def resize_base_matrix(base_matrix: np.ndarray, block_size: int) -> np.ndarray:
    """Resample an 8x8 table to block_size by nearest normalized frequency."""
    if block_size == base_matrix.shape[0]:
        return base_matrix.copy()
    idx = (np.arange(block_size) * base_matrix.shape[0]) // block_size
    return base_matrix[np.ix_(idx, idx)]


def wavelet_base_matrix(base_step: float, block_size: int, wavelet: str, levels: int) -> np.ndarray:
    """Per-subband step sizes at quality 50, laid out like a packed DWT block."""
    ll_slice, details = subband_layout(block_size, wavelet, levels)
    matrix = np.empty((block_size, block_size), dtype=np.float64)
    matrix[ll_slice] = base_step
    for level_idx, bands in enumerate(details):
        distance_from_finest = len(details) - 1 - level_idx
        level_weight = WAVELET_LEVEL_WEIGHTS[min(distance_from_finest, len(WAVELET_LEVEL_WEIGHTS) - 1)]
        for orientation, sl in bands:
            matrix[sl] = base_step * level_weight * WAVELET_ORIENTATION_WEIGHTS[orientation]
    return matrix


def build_quant_tables(
    quality: int,
    block_size: int,
    wavelet: str,
    levels: int
) -> Dict[str, np.ndarray]:
    """All four tables an image is coded with, keyed by component kind and transform."""
    tables = {}
    for kind, base in (('luma', JPEG_LUMA_Q50), ('chroma', JPEG_CHROMA_Q50)):
        tables[f'{kind}_dct'] = scale_quant_matrix(resize_base_matrix(base, block_size), quality)
        wavelet_base = wavelet_base_matrix(base[0, 0], block_size, wavelet, levels)
        tables[f'{kind}_wavelet'] = scale_quant_matrix(wavelet_base, quality)
    return tables


def quantize(coeffs: np.ndarray, Q_matrix: np.ndarray) -> np.ndarray:
    """Quantize transform coefficients (works on single blocks or stacks)."""
    return np.round(coeffs / Q_matrix).astype(np.int32)


def dequantize(quantized: np.ndarray, Q_matrix: np.ndarray) -> np.ndarray:
    """Dequantize coefficients."""
    return quantized.astype(np.float64) * Q_matrix
