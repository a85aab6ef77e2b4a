"""Tests for the per-block transform choice."""

import numpy as np
import pytest
from hybrid_codec.engines import dct_engine, wavelet_engine
from hybrid_codec.engines.mode_decision import Candidate, choose_modes, rd_lambda, select
from hybrid_codec.engines.quantizer import build_quant_tables, quantize
from hybrid_codec.utils.constants import MODE_DCT, MODE_WAVELET


def _candidates(blocks, quality=50):
    tables = build_quant_tables(quality, 8, 'haar', 3)
    dct_coeffs = dct_engine.encode_blocks(blocks)
    wav_coeffs = wavelet_engine.forward_blocks(blocks, 'haar', 3)
    dct = Candidate(dct_coeffs, quantize(dct_coeffs, tables['luma_dct']), tables['luma_dct'])
    wav = Candidate(wav_coeffs, quantize(wav_coeffs, tables['luma_wavelet']), tables['luma_wavelet'])
    return dct, wav, rd_lambda(tables['luma_dct'])


def _mixed_blocks(n=24, seed=0):
    rng = np.random.default_rng(seed)
    blocks = []
    for i in range(n):
        if i % 3 == 0:
            blocks.append(np.tile(np.linspace(0, 255, 8), (8, 1)))
        elif i % 3 == 1:
            block = np.full((8, 8), 30.0)
            block[:, 4:] = 230.0
            blocks.append(block)
        else:
            blocks.append(rng.integers(0, 256, (8, 8)).astype(np.float64))
    return np.array(blocks)


def test_hybrid_cost_never_exceeds_single_transform():
    for seed in range(4):
        dct, wav, lam = _candidates(_mixed_blocks(seed=seed))
        decision = choose_modes(dct, wav, lam)
        assert decision.cost <= min(decision.dct_cost, decision.wavelet_cost) + 1e-9


@pytest.mark.parametrize("mode,expected", [('dct', MODE_DCT), ('wavelet', MODE_WAVELET)])
def test_forced_modes(mode, expected):
    dct, wav, lam = _candidates(_mixed_blocks())
    decision = choose_modes(dct, wav, lam, transform_mode=mode)
    assert np.all(decision.modes == expected)
    assert decision.cost == (decision.dct_cost if mode == 'dct' else decision.wavelet_cost)


def test_identical_candidates_tie_to_dct():
    dct, _, lam = _candidates(_mixed_blocks())
    decision = choose_modes(dct, dct, lam)
    assert decision.wavelet_blocks == 0


def test_distortion_is_coefficient_squared_error():
    dct, _, _ = _candidates(_mixed_blocks(n=3))
    expected = np.sum((dct.coeffs - dct.quantized * dct.q_matrix) ** 2, axis=(1, 2))
    assert np.allclose(dct.distortion, expected)


def test_lambda_scales_with_step():
    q = np.full((8, 8), 10.0)
    assert rd_lambda(q, 2.0) == pytest.approx(2 * rd_lambda(q))
    assert rd_lambda(2 * q) == pytest.approx(4 * rd_lambda(q))


def test_select_picks_per_block():
    a = np.zeros((3, 2, 2))
    b = np.ones((3, 2, 2))
    out = select(a, b, np.array([MODE_DCT, MODE_WAVELET, MODE_DCT], dtype=np.uint8))
    assert out[:, 0, 0].tolist() == [0.0, 1.0, 0.0]
