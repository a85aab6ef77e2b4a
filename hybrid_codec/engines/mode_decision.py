"""Per-block choice between DCT and wavelet coding by rate-distortion cost."""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from hybrid_codec.engines.entropy import HuffmanTable, estimate_block_bits, gather_statistics, zigzag_scan
from hybrid_codec.engines.quantizer import dequantize
from hybrid_codec.utils.constants import MODE_DCT, MODE_WAVELET

logger = logging.getLogger(__name__)

# High-rate slope of a uniform scalar quantizer: dD/dR = -(2 ln 2 / 12) * step^2
LAMBDA_FACTOR = 2.0 * math.log(2.0) / 12.0

# Per-block cost of the transform flag
MODE_FLAG_BITS = 1


@dataclass
class Candidate:
    """One transform's view of every block in a channel."""

    coeffs: np.ndarray      # (n, B, B) unquantized
    quantized: np.ndarray   # (n, B, B) int32
    q_matrix: np.ndarray    # (B, B)

    @property
    def distortion(self) -> np.ndarray:
        """Squared error per block; exact in pixels for orthonormal transforms."""
        error = self.coeffs - dequantize(self.quantized, self.q_matrix)
        return np.sum(error ** 2, axis=(1, 2))


@dataclass
class ModeDecision:
    """Chosen transform per block and the cost of each alternative."""

    modes: np.ndarray
    cost: float
    dct_cost: float
    wavelet_cost: float

    @property
    def wavelet_blocks(self) -> int:
        return int(np.count_nonzero(self.modes == MODE_WAVELET))


def rd_lambda(dct_q_matrix: np.ndarray, scale: float = 1.0) -> float:
    """Lagrange multiplier tied to the channel's mean DCT step."""
    step = float(np.mean(dct_q_matrix))
    return scale * LAMBDA_FACTOR * step * step


def provisional_code_lengths(dct_zz: np.ndarray, wavelet_zz: np.ndarray) -> Tuple[dict, dict]:
    """Code lengths from the pooled statistics of both candidates."""
    dc_freqs, ac_freqs = gather_statistics(dct_zz)
    dc_freqs, ac_freqs = gather_statistics(wavelet_zz, dc_freqs, ac_freqs)
    dc_table = HuffmanTable.from_frequencies(dc_freqs)
    ac_table = HuffmanTable.from_frequencies(ac_freqs)
    return dc_table.code_lengths(), ac_table.code_lengths()


def _chain_costs(zz: np.ndarray, distortion: np.ndarray, lam: float, dc_lengths, ac_lengths) -> float:
    """Total cost of coding every block with one transform."""
    total = 0.0
    prev_dc = 0
    for i in range(len(zz)):
        bits = estimate_block_bits(zz[i], prev_dc, dc_lengths, ac_lengths) + MODE_FLAG_BITS
        total += distortion[i] + lam * bits
        prev_dc = int(zz[i][0])
    return total


def choose_modes(
    dct: Candidate,
    wavelet: Candidate,
    lam: float,
    transform_mode: str = 'hybrid'
) -> ModeDecision:
    """
    Pick DCT or wavelet for each block.

    In hybrid mode blocks are visited in coding order and each takes the
    transform with the lower J = D + lambda * R, with R measured under
    provisional Huffman code lengths and the DC predicted from the previous
    choice. Ties go to DCT. If the greedy result ends up costlier than coding
    the whole channel with a single transform, that transform is used instead.
    """
    n_blocks = len(dct.quantized)
    dct_zz = zigzag_scan(dct.quantized)
    wavelet_zz = zigzag_scan(wavelet.quantized)
    dc_lengths, ac_lengths = provisional_code_lengths(dct_zz, wavelet_zz)

    dct_dist = dct.distortion
    wavelet_dist = wavelet.distortion
    dct_cost = _chain_costs(dct_zz, dct_dist, lam, dc_lengths, ac_lengths)
    wavelet_cost = _chain_costs(wavelet_zz, wavelet_dist, lam, dc_lengths, ac_lengths)

    if transform_mode == 'dct':
        return ModeDecision(np.full(n_blocks, MODE_DCT, dtype=np.uint8), dct_cost, dct_cost, wavelet_cost)
    if transform_mode == 'wavelet':
        return ModeDecision(np.full(n_blocks, MODE_WAVELET, dtype=np.uint8), wavelet_cost, dct_cost, wavelet_cost)

    modes = np.empty(n_blocks, dtype=np.uint8)
    total = 0.0
    prev_dc = 0
    for i in range(n_blocks):
        j_dct = dct_dist[i] + lam * (
            estimate_block_bits(dct_zz[i], prev_dc, dc_lengths, ac_lengths) + MODE_FLAG_BITS
        )
        j_wavelet = wavelet_dist[i] + lam * (
            estimate_block_bits(wavelet_zz[i], prev_dc, dc_lengths, ac_lengths) + MODE_FLAG_BITS
        )
        if j_wavelet < j_dct:
            modes[i] = MODE_WAVELET
            total += j_wavelet
            prev_dc = int(wavelet_zz[i][0])
        else:
            modes[i] = MODE_DCT
            total += j_dct
            prev_dc = int(dct_zz[i][0])

    if total > min(dct_cost, wavelet_cost):
        if dct_cost <= wavelet_cost:
            modes[:] = MODE_DCT
            total = dct_cost
        else:
            modes[:] = MODE_WAVELET
            total = wavelet_cost

    decision = ModeDecision(modes, float(total), dct_cost, wavelet_cost)
    logger.debug(
        f"Mode decision: {decision.wavelet_blocks}/{n_blocks} wavelet blocks, "
        f"J={total:.1f} (DCT-only {dct_cost:.1f}, wavelet-only {wavelet_cost:.1f})"
    )
    return decision


def select(dct_values: np.ndarray, wavelet_values: np.ndarray, modes: np.ndarray) -> np.ndarray:
    """Per-block pick from two stacks shaped (n, B, B)."""
    return np.where((modes == MODE_WAVELET)[:, None, None], wavelet_values, dct_values)
