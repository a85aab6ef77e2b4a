"""Block-local multi-level DWT packed into B x B coefficient blocks.

Each block is decomposed with PyWavelets in periodization mode, so every level
halves the band size exactly and the packed coefficients occupy the same
B x B footprint as a DCT block: LL at the top-left, detail bands toward the
bottom-right in order of increasing frequency. Only orthogonal wavelets are
accepted upstream, which keeps the transform energy preserving.
"""

from functools import lru_cache
from typing import List, Tuple

import numpy as np
import pywt

# pywt detail keys -> orientation label
_ORIENTATIONS = (('da', 'H'), ('ad', 'V'), ('dd', 'D'))


@lru_cache(maxsize=None)
def subband_layout(block_size: int, wavelet: str, levels: int) -> Tuple:
    """
    Slices of each subband inside a packed B x B coefficient block.

    Returns (ll_slice, details) where details is a tuple ordered coarsest level
    first, each entry a tuple of (orientation, slice) for H, V, D.
    """
    coeffs = pywt.wavedec2(
        np.zeros((block_size, block_size)), wavelet, mode='periodization', level=levels
    )
    arr, slices = pywt.coeffs_to_array(coeffs)
    if arr.shape != (block_size, block_size):
        raise ValueError(
            f"{wavelet} with {levels} levels does not tile a {block_size}x{block_size} block"
        )
    ll_slice = slices[0]
    details = tuple(
        tuple((orientation, level_slices[key]) for key, orientation in _ORIENTATIONS)
        for level_slices in slices[1:]
    )
    return ll_slice, details


def subband_map(block_size: int, wavelet: str, levels: int) -> np.ndarray:
    """Integer label per coefficient: 0 for LL, then 1 + 3*level + orientation."""
    ll_slice, details = subband_layout(block_size, wavelet, levels)
    labels = np.zeros((block_size, block_size), dtype=np.int32)
    labels[ll_slice] = 0
    for level_idx, bands in enumerate(details):
        for orient_idx, (_, sl) in enumerate(bands):
            labels[sl] = 1 + 3 * level_idx + orient_idx
    return labels


def forward_blocks(blocks: np.ndarray, wavelet: str, levels: int) -> np.ndarray:
    """Level shift (-128) and DWT one block or a stack shaped (n, B, B)."""
    block_size = blocks.shape[-1]
    ll_slice, details = subband_layout(block_size, wavelet, levels)
    coeffs = pywt.wavedec2(
        blocks.astype(np.float64) - 128.0, wavelet,
        mode='periodization', level=levels, axes=(-2, -1)
    )

    packed = np.empty(blocks.shape, dtype=np.float64)
    packed[(Ellipsis,) + ll_slice] = coeffs[0]
    for bands, level_coeffs in zip(details, coeffs[1:]):
        for (_, sl), band in zip(bands, level_coeffs):
            packed[(Ellipsis,) + sl] = band
    return packed


def inverse_blocks(packed: np.ndarray, wavelet: str, levels: int) -> np.ndarray:
    """Inverse of forward_blocks, including the +128 level shift."""
    block_size = packed.shape[-1]
    ll_slice, details = subband_layout(block_size, wavelet, levels)

    coeffs: List = [packed[(Ellipsis,) + ll_slice]]
    for bands in details:
        coeffs.append(tuple(packed[(Ellipsis,) + sl] for _, sl in bands))

    spatial = pywt.waverec2(coeffs, wavelet, mode='periodization', axes=(-2, -1))
    return spatial + 128.0

