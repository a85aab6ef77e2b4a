"""DCT/IDCT operations with level shift."""

import numpy as np
from scipy.fft import dctn, idctn


def dct2(block: np.ndarray) -> np.ndarray:
    """2D DCT-II with orthonormal normalization over the last two axes."""
    return dctn(block, type=2, norm='ortho', axes=(-2, -1))


def idct2(coeffs: np.ndarray) -> np.ndarray:
    """2D inverse DCT (Type-III)."""
    return idctn(coeffs, type=2, norm='ortho', axes=(-2, -1))


def encode_blocks(blocks: np.ndarray) -> np.ndarray:
    """Level shift (-128) then DCT; takes one block or a stack shaped (n, B, B)."""
    return dct2(blocks.astype(np.float64) - 128.0)


def decode_blocks(coeffs: np.ndarray) -> np.ndarray:
    """IDCT then reverse level shift (+128). No clipping; done once per image."""
    return idct2(coeffs) + 128.0
