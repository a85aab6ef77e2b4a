"""Synthetic images that stress different parts of the codec."""

from typing import Optional

import numpy as np


def generate_colored_checkerboard(size: int = 512, cell: int = 32) -> np.ndarray:
    """High-contrast checkerboard - sharp edges on a coarse grid."""
    yy, xx = np.mgrid[0:size, 0:size]
    dark = ((yy // cell + xx // cell) % 2 == 0)[..., None]
    return np.where(dark, np.uint8(30), np.uint8(220)).repeat(3, axis=2).astype(np.uint8)


def generate_thin_stripes(size: int = 512, stripe_width: int = 4) -> np.ndarray:
    """Fine vertical color stripes - chroma aliasing under subsampling."""
    cols = (np.arange(size) // stripe_width) % 2 == 0
    row = np.where(cols[:, None], [200, 60, 60], [60, 180, 200]).astype(np.uint8)
    return np.broadcast_to(row, (size, size, 3)).copy()


def generate_gradient(size: int = 512) -> np.ndarray:
    """Smooth diagonal gradient - banding from coarse DC steps."""
    yy, xx = np.mgrid[0:size, 0:size]
    t = (yy + xx) / max(2 * size - 2, 1)
    img = np.stack([40 + t * 180, 60 + t * 140, 120 + t * 100], axis=-1)
    return np.clip(img, 0, 255).astype(np.uint8)


def generate_text_edges(size: int = 512) -> np.ndarray:
    """Thin dark bars on white - ringing around isolated edges."""
    img = np.full((size, size, 3), 245, dtype=np.uint8)
    margin = size // 10
    bar = max(size // 16, 2)

    y = margin
    for thickness in (bar, bar // 2, bar // 4, 2):
        img[y:y + max(thickness, 1), margin:size - margin] = 25
        y += max(thickness, 1) + margin // 2

    x = margin
    for thickness in (bar, bar // 2, bar // 4, 2):
        img[size // 2 + margin:size - margin, x:x + max(thickness, 1)] = 25
        x += max(thickness, 1) + margin // 2
    return img


def generate_piecewise(size: int = 512, seed: int = 7) -> np.ndarray:
    """Flat regions, a smooth ramp and a noisy texture in separate quadrants.

    Mixes content that favors different transforms inside one image.
    """
    rng = np.random.default_rng(seed)
    half = size // 2
    img = np.zeros((size, size, 3), dtype=np.float64)
    img[:half, :half] = [200, 40, 40]
    ramp = np.linspace(0, 255, size - half)
    img[:half, half:] = np.stack([ramp, ramp[::-1], np.full_like(ramp, 128)], axis=-1)[None, :, :]
    img[half:, :half] = 128 + rng.normal(0, 40, (size - half, half, 1))
    yy, xx = np.mgrid[0:size - half, 0:size - half]
    img[half:, half:] = np.where(((xx // 4) + (yy // 4)) % 2 == 0, 40, 210)[..., None]
    return np.clip(img, 0, 255).astype(np.uint8)


def generate_demo_image(key: str, size: int = 512) -> Optional[np.ndarray]:
    """Generate demo image by key."""
    generators = {
        "checkerboard": generate_colored_checkerboard,
        "stripes": generate_thin_stripes,
        "gradient": generate_gradient,
        "text_edges": generate_text_edges,
        "piecewise": generate_piecewise,
    }
    if key in generators:
        return generators[key](size)
    return None


DEMO_IMAGES = ("checkerboard", "stripes", "gradient", "text_edges", "piecewise")
