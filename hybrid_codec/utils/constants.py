"""Codec constants: quantization tables, scan orders, container codes."""

import numpy as np

# ITU-T T.81 Annex K.1 luminance table (quality 50)
JPEG_LUMA_Q50 = np.array([
    [16, 11, 10, 16, 24, 40, 51, 61],
    [12, 12, 14, 19, 26, 58, 60, 55],
    [14, 13, 16, 24, 40, 57, 69, 56],
    [14, 17, 22, 29, 51, 87, 80, 62],
    [18, 22, 37, 56, 68, 109, 103, 77],
    [24, 35, 55, 64, 81, 104, 113, 92],
    [49, 64, 78, 87, 103, 121, 120, 101],
    [72, 92, 95, 98, 112, 100, 103, 99],
], dtype=np.float64)

# ITU-T T.81 Annex K.2 chrominance table (quality 50)
JPEG_CHROMA_Q50 = np.array([
    [17, 18, 24, 47, 99, 99, 99, 99],
    [18, 21, 26, 66, 99, 99, 99, 99],
    [24, 26, 56, 99, 99, 99, 99, 99],
    [47, 66, 99, 99, 99, 99, 99, 99],
    [99, 99, 99, 99, 99, 99, 99, 99],
    [99, 99, 99, 99, 99, 99, 99, 99],
    [99, 99, 99, 99, 99, 99, 99, 99],
    [99, 99, 99, 99, 99, 99, 99, 99],
], dtype=np.float64)

# Wavelet subband step multipliers relative to the LL step.
# Orientation: 'H' = horizontal detail (LH), 'V' = vertical (HL), 'D' = diagonal (HH).
WAVELET_ORIENTATION_WEIGHTS = {'H': 1.0, 'V': 1.0, 'D': 1.4}
# Index 0 is the finest detail level; coarser levels are quantized more gently.
WAVELET_LEVEL_WEIGHTS = (3.5, 1.5, 0.9, 0.8, 0.8)

BLOCK_SIZES = (4, 8, 16, 32)
SUBSAMPLING_MODES = ('4:4:4', '4:2:2', '4:2:0')
TRANSFORM_MODES = ('hybrid', 'dct', 'wavelet')

# Per-block transform flag written to the bitstream
MODE_DCT = 0
MODE_WAVELET = 1

CHANNEL_NAMES = ('Y', 'Cb', 'Cr')

# Container
MAGIC = b'HDWC'
FORMAT_VERSION = 1
FILE_SUFFIX = '.hdwc'

# Entropy coding limits
MAX_HUFFMAN_CODE_LENGTH = 16
MAX_MAGNITUDE_CATEGORY = 15
MAX_RUN = 15
EOB_SYMBOL = 0x00
ZRL_SYMBOL = 0xF0


def zigzag_order(n: int) -> np.ndarray:
    """Flat indices of an n x n block in zigzag order (JPEG scan, any size)."""
    order = []
    for s in range(2 * n - 1):
        lo = max(0, s - n + 1)
        hi = min(s, n - 1)
        rows = range(lo, hi + 1)
        # Even anti-diagonals run bottom-left to top-right
        if s % 2 == 0:
            rows = reversed(rows)
        for r in rows:
            order.append(r * n + (s - r))
    return np.array(order, dtype=np.intp)


ZIGZAG_ORDER = zigzag_order(8)
