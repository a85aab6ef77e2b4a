"""Image I/O using OpenCV."""

import logging
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def load_image(path: str) -> np.ndarray:
    """Load image as RGB uint8; grayscale is expanded and alpha dropped."""
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError(f"Could not load image from {path} (not a readable JPEG/PNG image?)")
    if img.dtype != np.uint8:
        # 16-bit PNGs
        img = (img.astype(np.float64) / 257.0).round().astype(np.uint8)
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    logger.debug(f"Loaded {path}: {img.shape[1]}x{img.shape[0]}")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def save_image(image: np.ndarray, path: str) -> None:
    """Save RGB image."""
    if not cv2.imwrite(str(path), cv2.cvtColor(image, cv2.COLOR_RGB2BGR)):
        raise OSError(f"Could not write image to {path}")


def compressed_output_path(source: str, suffix: str) -> Path:
    """compressed_<name up to the first dot><suffix> next to the source file."""
    source = Path(source)
    stem = source.name.split('.')[0] or 'image'
    return source.with_name(f"compressed_{stem}{suffix}")
