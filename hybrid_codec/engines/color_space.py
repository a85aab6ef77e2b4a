"""Color space conversion and chroma subsampling."""

import numpy as np
import cv2
from typing import Literal, Tuple

# ITU-R BT.601 full-range matrices; chroma is offset by 128
_RGB_TO_YCBCR = np.array([
    [0.299, 0.587, 0.114],
    [-0.168736, -0.331264, 0.5],
    [0.5, -0.418688, -0.081312],
])
_YCBCR_TO_RGB = np.array([
    [1.0, 0.0, 1.402],
    [1.0, -0.344136, -0.714136],
    [1.0, 1.772, 0.0],
])
_CHROMA_OFFSET = np.array([0.0, 128.0, 128.0])


def rgb_to_ycbcr(rgb: np.ndarray) -> np.ndarray:
    """H x W x 3 RGB to float64 YCbCr."""
    return rgb.astype(np.float64) @ _RGB_TO_YCBCR.T + _CHROMA_OFFSET


def ycbcr_to_rgb(ycbcr: np.ndarray) -> np.ndarray:
    """Inverse of rgb_to_ycbcr, clipped to [0, 255] but not rounded."""
    return np.clip((ycbcr - _CHROMA_OFFSET) @ _YCBCR_TO_RGB.T, 0, 255)


def chroma_shape(
    luma_shape: Tuple[int, int],
    mode: Literal['4:4:4', '4:2:2', '4:2:0']
) -> Tuple[int, int]:
    """Size of a chroma plane for the given luma size; odd sizes round up."""
    h, w = luma_shape
    if mode == '4:4:4':
        return h, w
    if mode == '4:2:2':
        return h, (w + 1) // 2
    if mode == '4:2:0':
        return (h + 1) // 2, (w + 1) // 2
    raise ValueError(f"Unknown subsampling mode: {mode}")


def subsample_chroma(
    cb: np.ndarray,
    cr: np.ndarray,
    mode: Literal['4:4:4', '4:2:2', '4:2:0'],
    use_prefilter: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """Subsample chroma channels according to mode."""
    target_h, target_w = chroma_shape(cb.shape, mode)
    if mode == '4:4:4':
        return cb.copy(), cr.copy()
    
    # Anti-alias blur before downsampling
    if use_prefilter:
        cb = cv2.GaussianBlur(cb, (3, 3), sigmaX=0.75)
        cr = cv2.GaussianBlur(cr, (3, 3), sigmaX=0.75)
    
    cb_sub = cv2.resize(cb, (target_w, target_h), interpolation=cv2.INTER_AREA)
    cr_sub = cv2.resize(cr, (target_w, target_h), interpolation=cv2.INTER_AREA)
    return cb_sub.reshape(target_h, target_w), cr_sub.reshape(target_h, target_w)


def upsample_chroma(
    cb_sub: np.ndarray,
    cr_sub: np.ndarray,
    target_shape: Tuple[int, int],
    method: str = 'bilinear'
) -> Tuple[np.ndarray, np.ndarray]:
    """Upsample chroma channels to target resolution."""
    if cb_sub.shape == tuple(target_shape):
        return cb_sub, cr_sub
    interp = cv2.INTER_LINEAR if method == 'bilinear' else cv2.INTER_NEAREST
    h, w = target_shape
    cb_up = cv2.resize(cb_sub, (w, h), interpolation=interp)
    cr_up = cv2.resize(cr_sub, (w, h), interpolation=interp)
    return cb_up.reshape(h, w), cr_up.reshape(h, w)
