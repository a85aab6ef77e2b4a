"""Block processing: padding, splitting, merging."""

import numpy as np
from typing import Tuple


def pad_to_multiple(channel: np.ndarray, block_size: int) -> Tuple[np.ndarray, Tuple[int, int]]:
    """Pad channel to a multiple of block_size by repeating the last row/column."""
    h, w = channel.shape
    pad_h = (block_size - h % block_size) % block_size
    pad_w = (block_size - w % block_size) % block_size
    if pad_h > 0 or pad_w > 0:
        padded = np.pad(channel, ((0, pad_h), (0, pad_w)), mode='edge')
    else:
        padded = channel.copy()
    return padded, (h, w)


def block_grid(shape: Tuple[int, int], block_size: int) -> Tuple[int, int]:
    """Number of block rows and columns covering a channel of this shape."""
    h, w = shape
    return -(-h // block_size), -(-w // block_size)


def split_into_blocks(channel: np.ndarray, block_size: int) -> np.ndarray:
    """Split a padded 2D channel into raster-ordered blocks of shape (n, B, B)."""
    h, w = channel.shape
    if h % block_size or w % block_size:
        raise ValueError(f"Channel {h}x{w} is not a multiple of block size {block_size}")
    rows, cols = h // block_size, w // block_size
    blocks = channel.reshape(rows, block_size, cols, block_size).swapaxes(1, 2)
    return blocks.reshape(rows * cols, block_size, block_size).astype(np.float64)


def merge_blocks(blocks: np.ndarray, shape: Tuple[int, int], block_size: int) -> np.ndarray:
    """Merge raster-ordered blocks back into a 2D channel of the padded shape."""
    h, w = shape
    rows, cols = h // block_size, w // block_size
    if len(blocks) != rows * cols:
        raise ValueError(f"Expected {rows * cols} blocks for {h}x{w}, got {len(blocks)}")
    grid = np.asarray(blocks, dtype=np.float64).reshape(rows, cols, block_size, block_size)
    return grid.swapaxes(1, 2).reshape(h, w)
