"""Tests for bitrate targeting."""

import numpy as np
import pytest
from hybrid_codec.engines.decoder import decode_image
from hybrid_codec.engines.rate_control import encode_to_bitrate, encoded_bpp
from hybrid_codec.models.compression_params import CompressionParams
from hybrid_codec.utils.test_images import generate_demo_image


@pytest.fixture(scope="module")
def image():
    return generate_demo_image("piecewise", 128)


@pytest.mark.parametrize("target", [0.75, 1.5, 3.0])
def test_stays_within_target(image, target):
    encoded, data, quality = encode_to_bitrate(image, target, CompressionParams())
    assert encoded_bpp(data, image.shape[:2]) <= target
    assert encoded.quality == quality
    assert decode_image(data).shape == image.shape


def test_higher_target_allows_higher_quality(image):
    _, _, low = encode_to_bitrate(image, 0.75, CompressionParams())
    _, _, high = encode_to_bitrate(image, 4.0, CompressionParams())
    assert high >= low


def test_unreachable_target_returns_lowest_quality(image):
    _, data, quality = encode_to_bitrate(image, 0.001, CompressionParams())
    assert quality == 1
    assert len(data) > 0


@pytest.mark.parametrize("target", [0, -1.0])
def test_rejects_non_positive_target(image, target):
    with pytest.raises(ValueError):
        encode_to_bitrate(image, target, CompressionParams())


def test_finds_higher_quality_past_a_size_dip(monkeypatch):
    """Size that dips at Q53-55 is found although bisection settles at Q44."""
    from hybrid_codec.engines import rate_control

    def size(quality):
        return 30 if 53 <= quality <= 55 else quality + 20

    monkeypatch.setattr(rate_control, 'encode_image', lambda image, params: (params.quality, []))
    monkeypatch.setattr(rate_control, 'pack', lambda quality: b'\0' * size(quality))

    image = np.zeros((8, 8, 3), dtype=np.uint8)
    _, data, quality = rate_control.encode_to_bitrate(image, 8.0, CompressionParams())
    assert quality == 55
    assert len(data) == 30
