"""Tests for compression pipeline."""

import numpy as np
import pytest
from hybrid_codec.engines.decoder import decode_image
from hybrid_codec.engines.pipeline import compress, compress_reconstruct, quality_sweep
from hybrid_codec.models.compression_params import CompressionParams
from hybrid_codec.utils.test_images import generate_demo_image


@pytest.fixture(scope="module")
def image():
    return generate_demo_image("piecewise", 64)


@pytest.mark.parametrize("key", ["gradient", "piecewise", "text_edges"])
@pytest.mark.parametrize("subsampling", ['4:4:4', '4:2:0'])
def test_quality_trend(key, subsampling):
    """Luma PSNR and size follow quality within a small tolerance."""
    image = generate_demo_image(key, 64)
    results = quality_sweep(image, CompressionParams(subsampling_mode=subsampling), 10, 90, 20)
    psnr_y = [min(r.psnr_y, 60.0) for _, r in results]
    sizes = [r.encoded_bytes for _, r in results]

    for lower, higher in zip(psnr_y, psnr_y[1:]):
        assert higher >= lower - 1.0
    for smaller, larger in zip(sizes, sizes[1:]):
        assert smaller <= larger * 1.05
    assert psnr_y[-1] > psnr_y[0] + 5.0
    assert sizes[0] < sizes[-1]


def test_high_quality_reconstruction():
    """Q=95 with 4:4:4 on smooth content should give PSNR > 40 dB."""
    image = generate_demo_image("gradient", 64)
    params = CompressionParams(quality=95, block_size=8, subsampling_mode='4:4:4')
    result, _ = compress_reconstruct(image, params)
    assert result.psnr_rgb > 40.0


def test_subsampling_affects_quality():
    """4:4:4 should give better quality than 4:2:0 on fine chroma detail."""
    image = generate_demo_image("stripes", 64)
    result_444, _ = compress_reconstruct(image, CompressionParams(quality=75, subsampling_mode='4:4:4'))
    result_420, _ = compress_reconstruct(image, CompressionParams(quality=75, subsampling_mode='4:2:0'))
    assert result_444.psnr_rgb >= result_420.psnr_rgb


def test_compression_ratio_increases_with_lower_quality(image):
    """Lower quality = smaller stream."""
    result_high, _ = compress_reconstruct(image, CompressionParams(quality=90))
    result_low, _ = compress_reconstruct(image, CompressionParams(quality=10))
    assert result_low.encoded_bytes < result_high.encoded_bytes
    assert result_low.compression_ratio > result_high.compression_ratio


@pytest.mark.parametrize("mode", ['hybrid', 'dct', 'wavelet'])
def test_decoded_stream_matches_reported_reconstruction(image, mode):
    params = CompressionParams(quality=40, transform_mode=mode)
    result, _ = compress_reconstruct(image, params)
    data = compress(image, params)
    assert len(data) == result.encoded_bytes
    assert np.array_equal(decode_image(data), result.reconstructed_image)


def test_hybrid_mode_counts(image):
    result, intermediate = compress_reconstruct(image, CompressionParams(quality=50))
    assert result.dct_blocks + result.wavelet_blocks > 0
    assert 0.0 <= result.wavelet_share <= 1.0
    assert intermediate.mode_map_y.shape == (8, 8)

    dct_only, _ = compress_reconstruct(image, CompressionParams(quality=50, transform_mode='dct'))
    assert dct_only.wavelet_blocks == 0


def test_stats_reduction_against_raw_size(image):
    result, _ = compress_reconstruct(image, CompressionParams(quality=50))
    stats = result.stats
    assert stats.original_size == image.size
    assert stats.compressed_size == result.encoded_bytes
    assert stats.reduction_percentage == pytest.approx((1 - stats.compressed_size / stats.original_size) * 100)
    assert stats.mse == pytest.approx(result.mse_rgb)

    result, _ = compress_reconstruct(image, CompressionParams(quality=50), original_size=1000)
    assert result.stats.original_size == 1000


@pytest.mark.parametrize("shape", [(1, 1), (13, 29), (37, 8)])
@pytest.mark.parametrize("subsampling", ['4:4:4', '4:2:2', '4:2:0'])
def test_odd_sizes(shape, subsampling):
    rng = np.random.default_rng(11)
    image = rng.integers(0, 256, shape + (3,), dtype=np.uint8)
    result, _ = compress_reconstruct(image, CompressionParams(quality=60, subsampling_mode=subsampling))
    assert result.reconstructed_image.shape == image.shape
    assert result.reconstructed_image.dtype == np.uint8


def test_intermediate_selected_block(image):
    _, intermediate = compress_reconstruct(image, CompressionParams(quality=50), selected_block_idx=(2, 3))
    assert intermediate.selected_block_mode in ('dct', 'wavelet')
    assert intermediate.selected_block_quantized.shape == (8, 8)
    assert np.allclose(intermediate.selected_block_shifted, intermediate.selected_block_original - 128.0)
    assert intermediate.error_map_y.shape == image.shape[:2]

    _, intermediate = compress_reconstruct(image, CompressionParams(quality=50), selected_block_idx=(99, 0))
    assert intermediate.selected_block_mode is None


def test_quality_sweep(image):
    results = quality_sweep(image, CompressionParams(), 20, 60, 20)
    assert [q for q, _ in results] == [20, 40, 60]
    assert results[0][1].encoded_bytes <= results[-1][1].encoded_bytes


def test_rejects_bad_input():
    with pytest.raises(ValueError):
        compress(np.zeros((4, 4, 2), dtype=np.uint8), CompressionParams())
    with pytest.raises(ValueError):
        compress(np.zeros((0, 4, 3), dtype=np.uint8), CompressionParams())
