"""Tests for parameter validation."""

import pytest
from hybrid_codec.models.compression_params import CompressionParams


@pytest.mark.parametrize("kwargs", [
    {'quality': 0},
    {'quality': 101},
    {'block_size': 12},
    {'subsampling_mode': '4:1:1'},
    {'transform_mode': 'fractal'},
    {'wavelet': 'not-a-wavelet'},
    {'wavelet': 'bior2.2'},
    {'wavelet_levels': 4},
    {'wavelet': 'db4', 'block_size': 4},
    {'rd_lambda_scale': 0.0},
])
def test_invalid_params_rejected(kwargs):
    with pytest.raises(ValueError):
        CompressionParams(**kwargs)


def test_default_levels_is_maximum():
    assert CompressionParams().levels == 3
    assert CompressionParams(block_size=32).levels == 5
    assert CompressionParams(wavelet_levels=2).levels == 2
    assert CompressionParams(wavelet='db2').levels == 1
    assert CompressionParams(wavelet='db2', block_size=16).levels == 2


def test_with_quality_keeps_other_fields():
    params = CompressionParams(block_size=16, transform_mode='wavelet', wavelet='db2', rd_lambda_scale=2.0)
    copy = params.with_quality(80)
    assert copy.quality == 80
    assert (copy.block_size, copy.transform_mode, copy.wavelet, copy.rd_lambda_scale) == (16, 'wavelet', 'db2', 2.0)
