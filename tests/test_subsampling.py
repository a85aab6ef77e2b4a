"""Tests for chroma subsampling, padding and aliasing."""

import numpy as np
import pytest
from hybrid_codec.models.compression_params import CompressionParams
from hybrid_codec.engines.block_processor import pad_to_multiple, split_into_blocks, merge_blocks, block_grid
from hybrid_codec.engines.color_space import (
    chroma_shape,
    rgb_to_ycbcr,
    subsample_chroma,
    upsample_chroma,
    ycbcr_to_rgb,
)
from hybrid_codec.engines.pipeline import compress_reconstruct
from hybrid_codec.utils.test_images import generate_colored_checkerboard, generate_thin_stripes


def test_color_conversion_roundtrip():
    image = np.random.randint(0, 256, (16, 16, 3), dtype=np.uint8)
    recovered = ycbcr_to_rgb(rgb_to_ycbcr(image))
    assert np.allclose(recovered, image, atol=1e-2)


@pytest.mark.parametrize("mode,expected", [
    ('4:4:4', (7, 9)),
    ('4:2:2', (7, 5)),
    ('4:2:0', (4, 5)),
])
def test_chroma_shape_rounds_up(mode, expected):
    assert chroma_shape((7, 9), mode) == expected
    cb = np.random.rand(7, 9) * 255
    cb_sub, cr_sub = subsample_chroma(cb, cb.copy(), mode)
    assert cb_sub.shape == expected
    cb_up, _ = upsample_chroma(cb_sub, cr_sub, (7, 9))
    assert cb_up.shape == (7, 9)


def test_pad_split_merge_roundtrip():
    channel = np.random.rand(13, 21) * 255
    padded, orig_shape = pad_to_multiple(channel, 8)
    assert padded.shape == (16, 24)
    assert orig_shape == (13, 21)
    # Edge replication repeats the last row and column
    assert np.array_equal(padded[15, :21], channel[12])
    assert np.array_equal(padded[:13, 23], channel[:, 20])

    blocks = split_into_blocks(padded, 8)
    assert blocks.shape == (6, 8, 8)
    assert block_grid(orig_shape, 8) == (2, 3)
    # Raster order: second block is the top row's middle block
    assert np.array_equal(blocks[1], padded[0:8, 8:16])
    assert np.array_equal(merge_blocks(blocks, padded.shape, 8), padded)


def test_split_rejects_unpadded_channel():
    with pytest.raises(ValueError):
        split_into_blocks(np.zeros((10, 16)), 8)


def test_prefilter_reduces_aliasing():
    """Prefiltered 4:2:0 should have comparable SSIM to non-prefiltered on checkerboard."""
    checkerboard = generate_colored_checkerboard(128)
    
    params_no_pf = CompressionParams(quality=50, block_size=8, subsampling_mode='4:2:0', use_prefilter=False)
    params_pf = CompressionParams(quality=50, block_size=8, subsampling_mode='4:2:0', use_prefilter=True)
    
    result_no_pf, _ = compress_reconstruct(checkerboard, params_no_pf)
    result_pf, _ = compress_reconstruct(checkerboard, params_pf)
    
    assert result_pf.ssim_rgb >= result_no_pf.ssim_rgb * 0.95, \
        f"Prefilter should not hurt SSIM: {result_pf.ssim_rgb:.4f} >= {result_no_pf.ssim_rgb:.4f} * 0.95"


@pytest.mark.parametrize("mode", ['4:4:4', '4:2:2', '4:2:0'])
def test_subsampling_modes(mode):
    """All subsampling modes reconstruct to the original shape, odd sizes included."""
    image = np.random.randint(0, 256, (37, 51, 3), dtype=np.uint8)
    params = CompressionParams(quality=50, block_size=8, subsampling_mode=mode)
    result, _ = compress_reconstruct(image, params)
    assert result.reconstructed_image.shape == image.shape, \
        f"Reconstructed image shape should match original for {mode}"


def test_thin_stripes_aliasing():
    """Thin stripes complete with and without prefilter."""
    stripes = generate_thin_stripes(64, stripe_width=2)
    
    params_no_pf = CompressionParams(quality=50, block_size=8, subsampling_mode='4:2:2', use_prefilter=False)
    params_pf = CompressionParams(quality=50, block_size=8, subsampling_mode='4:2:2', use_prefilter=True)
    
    result_no_pf, _ = compress_reconstruct(stripes, params_no_pf)
    result_pf, _ = compress_reconstruct(stripes, params_pf)
    
    assert result_no_pf.psnr_y > 0
    assert result_pf.psnr_y > 0
