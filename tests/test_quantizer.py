"""Tests for quantization tables and scalar quantization."""

import numpy as np
import pytest
from hybrid_codec.engines.quantizer import (
    build_quant_tables,
    dequantize,
    quantize,
    resize_base_matrix,
    scale_quant_matrix,
    wavelet_base_matrix,
)
from hybrid_codec.engines.wavelet_engine import subband_map
from hybrid_codec.utils.constants import JPEG_LUMA_Q50


def test_quality_50_keeps_base_table():
    assert np.array_equal(scale_quant_matrix(JPEG_LUMA_Q50, 50), JPEG_LUMA_Q50)


def test_quality_100_gives_unit_steps():
    assert np.all(scale_quant_matrix(JPEG_LUMA_Q50, 100) == 1)


def test_lower_quality_never_gives_finer_steps():
    q10 = scale_quant_matrix(JPEG_LUMA_Q50, 10)
    q90 = scale_quant_matrix(JPEG_LUMA_Q50, 90)
    assert np.all(q10 >= q90)
    assert q10.max() <= 255


@pytest.mark.parametrize("block_size", [4, 8, 16, 32])
def test_resized_tables_keep_dc_step(block_size):
    resized = resize_base_matrix(JPEG_LUMA_Q50, block_size)
    assert resized.shape == (block_size, block_size)
    assert resized[0, 0] == JPEG_LUMA_Q50[0, 0]


def test_wavelet_table_is_coarser_at_fine_levels():
    table = wavelet_base_matrix(16.0, 8, 'haar', 3)
    labels = subband_map(8, 'haar', 3)
    assert table[labels == 0].item() == 16.0
    coarsest_h = table[labels == 1].mean()
    finest_h = table[labels == 7].mean()
    assert finest_h > coarsest_h
    # Diagonal bands are quantized harder than horizontal ones at the same level
    assert table[labels == 9].mean() > table[labels == 7].mean()


def test_build_quant_tables_keys_and_range():
    tables = build_quant_tables(30, 16, 'haar', 4)
    assert set(tables) == {'luma_dct', 'chroma_dct', 'luma_wavelet', 'chroma_wavelet'}
    for table in tables.values():
        assert table.shape == (16, 16)
        assert table.min() >= 1 and table.max() <= 255


def test_quantize_dequantize_error_bounded_by_half_step():
    coeffs = np.random.randn(3, 8, 8) * 100
    Q = scale_quant_matrix(JPEG_LUMA_Q50, 50)
    q = quantize(coeffs, Q)
    assert q.dtype == np.int32
    assert np.all(np.abs(dequantize(q, Q) - coeffs) <= Q / 2 + 1e-9)
