"""Quality search for a target bitrate."""

import logging
from typing import Tuple

import numpy as np

from hybrid_codec.engines.bitstream import pack
from hybrid_codec.engines.encoder import as_rgb, encode_image
from hybrid_codec.models.compression_params import CompressionParams
from hybrid_codec.models.encoded_image import EncodedImage

logger = logging.getLogger(__name__)

# Upward probing stops after this many qualities in a row overshoot the target
MAX_OVERSHOOT_STREAK = 10


def encoded_bpp(data: bytes, image_shape: Tuple[int, int]) -> float:
    h, w = image_shape
    return len(data) * 8 / (h * w)


def encode_to_bitrate(
    image_rgb: np.ndarray,
    target_bpp: float,
    params: CompressionParams
) -> Tuple[EncodedImage, bytes, int]:
    """
    Highest quality found whose coded size stays within target_bpp.

    Coded size is not strictly monotonic in quality, so bisection only finds a
    starting point. Qualities above it are then tried one by one until
    MAX_OVERSHOOT_STREAK consecutive ones overshoot. The returned stream never
    exceeds the target unless even quality 1 does, in which case that
    encoding is returned with a warning.

    Returns:
        (encoded image, packed bytes, chosen quality)
    """
    if target_bpp <= 0:
        raise ValueError(f"Target bitrate must be positive, got {target_bpp}")
    image_rgb = as_rgb(image_rgb)
    shape = image_rgb.shape[:2]
    cache = {}

    def attempt(quality: int):
        if quality not in cache:
            encoded, _ = encode_image(image_rgb, params.with_quality(quality))
            data = pack(encoded)
            cache[quality] = (encoded, data)
            logger.debug(f"Rate control: Q={quality} -> {encoded_bpp(data, shape):.3f} bpp")
        return cache[quality]

    def fits(quality: int) -> bool:
        return encoded_bpp(attempt(quality)[1], shape) <= target_bpp

    lo, hi = 1, 100
    best = None
    while lo <= hi:
        mid = (lo + hi) // 2
        if fits(mid):
            best = mid
            lo = mid + 1
        else:
            hi = mid - 1

    if best is None:
        encoded, data = attempt(1)
        logger.warning(
            f"Target {target_bpp:.3f} bpp is unreachable; lowest quality gives "
            f"{encoded_bpp(data, shape):.3f} bpp"
        )
        return encoded, data, 1

    streak = 0
    quality = best + 1
    while quality <= 100 and streak < MAX_OVERSHOOT_STREAK:
        if fits(quality):
            best = quality
            streak = 0
        else:
            streak += 1
        quality += 1

    encoded, data = cache[best]
    logger.info(f"Rate control chose Q={best} ({encoded_bpp(data, shape):.3f} bpp for target {target_bpp:.3f})")
    return encoded, data, best
