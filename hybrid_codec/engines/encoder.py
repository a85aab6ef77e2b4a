"""Encoder: RGB image to EncodedImage."""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from hybrid_codec.engines.bitio import BitWriter
from hybrid_codec.engines.block_processor import pad_to_multiple, split_into_blocks
from hybrid_codec.engines.color_space import rgb_to_ycbcr, subsample_chroma
from hybrid_codec.engines import dct_engine, wavelet_engine
from hybrid_codec.engines.entropy import HuffmanTable, encode_block, gather_statistics, zigzag_scan
from hybrid_codec.engines.mode_decision import Candidate, ModeDecision, choose_modes, rd_lambda, select
from hybrid_codec.engines.quantizer import build_quant_tables, quantize
from hybrid_codec.models.compression_params import CompressionParams
from hybrid_codec.models.encoded_image import ChannelPayload, EncodedImage

logger = logging.getLogger(__name__)


@dataclass
class ChannelTrace:
    """Encoder-side view of one channel, kept for inspection."""

    name: str
    kind: str                   # 'luma' or 'chroma'
    shape: Tuple[int, int]      # before padding
    padded_shape: Tuple[int, int]
    blocks: np.ndarray          # (n, B, B) samples
    coeffs: np.ndarray          # (n, B, B) chosen-transform coefficients
    quantized: np.ndarray       # (n, B, B) int32
    decision: ModeDecision


def as_rgb(image: np.ndarray) -> np.ndarray:
    """Validate an input image and return it as H x W x 3 uint8."""
    image = np.asarray(image)
    if image.ndim == 2:
        image = np.stack([image] * 3, axis=-1)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Expected an RGB image, got array of shape {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError("Image is empty")
    if image.dtype != np.uint8:
        if np.issubdtype(image.dtype, np.floating) or image.min() < 0 or image.max() > 255:
            raise ValueError(f"Expected uint8 pixel data, got {image.dtype}")
        image = image.astype(np.uint8)
    return image[:, :, :3]


def _encode_channel(
    name: str,
    kind: str,
    channel: np.ndarray,
    tables: Dict[str, np.ndarray],
    params: CompressionParams
) -> ChannelTrace:
    padded, shape = pad_to_multiple(channel, params.block_size)
    blocks = split_into_blocks(padded, params.block_size)

    dct_q = tables[f'{kind}_dct']
    dct_coeffs = dct_engine.encode_blocks(blocks)
    dct = Candidate(dct_coeffs, quantize(dct_coeffs, dct_q), dct_q)

    wavelet_q = tables[f'{kind}_wavelet']
    wavelet_coeffs = wavelet_engine.forward_blocks(blocks, params.wavelet, params.levels)
    wavelet = Candidate(wavelet_coeffs, quantize(wavelet_coeffs, wavelet_q), wavelet_q)

    lam = rd_lambda(dct.q_matrix, params.rd_lambda_scale)
    decision = choose_modes(dct, wavelet, lam, params.transform_mode)

    return ChannelTrace(
        name=name,
        kind=kind,
        shape=shape,
        padded_shape=padded.shape,
        blocks=blocks,
        coeffs=select(dct.coeffs, wavelet.coeffs, decision.modes),
        quantized=select(dct.quantized, wavelet.quantized, decision.modes),
        decision=decision,
    )


def _build_huffman_tables(traces: List[ChannelTrace]) -> Dict[str, HuffmanTable]:
    stats = {'luma': (Counter(), Counter()), 'chroma': (Counter(), Counter())}
    for trace in traces:
        dc_freqs, ac_freqs = stats[trace.kind]
        gather_statistics(zigzag_scan(trace.quantized), dc_freqs, ac_freqs)
    tables = {}
    for kind, (dc_freqs, ac_freqs) in stats.items():
        tables[f'{kind}_dc'] = HuffmanTable.from_frequencies(dc_freqs)
        tables[f'{kind}_ac'] = HuffmanTable.from_frequencies(ac_freqs)
    return tables


def _write_channel(trace: ChannelTrace, tables: Dict[str, HuffmanTable]) -> ChannelPayload:
    writer = BitWriter()
    dc_table = tables[f'{trace.kind}_dc']
    ac_table = tables[f'{trace.kind}_ac']
    prev_dc = 0
    for zz, mode in zip(zigzag_scan(trace.quantized), trace.decision.modes):
        writer.write_bits(int(mode), 1)
        prev_dc = encode_block(writer, zz, prev_dc, dc_table, ac_table)
    data = writer.get_data()
    return ChannelPayload(name=trace.name, block_count=len(trace.quantized), data=data)


def encode_image(
    image_rgb: np.ndarray,
    params: CompressionParams
) -> Tuple[EncodedImage, List[ChannelTrace]]:
    """Run color conversion, transforms, quantization and entropy coding."""
    image_rgb = as_rgb(image_rgb)
    h, w = image_rgb.shape[:2]
    logger.debug(
        f"Encoding {w}x{h}: Q={params.quality}, {params.block_size}x{params.block_size} blocks, "
        f"{params.subsampling_mode}, {params.transform_mode} ({params.wavelet}, {params.levels} levels)"
    )

    ycbcr = rgb_to_ycbcr(image_rgb)
    Y, Cb, Cr = ycbcr[:, :, 0], ycbcr[:, :, 1], ycbcr[:, :, 2]
    Cb_sub, Cr_sub = subsample_chroma(Cb, Cr, params.subsampling_mode, params.use_prefilter)

    quant_tables = build_quant_tables(params.quality, params.block_size, params.wavelet, params.levels)
    traces = [
        _encode_channel(name, kind, channel, quant_tables, params)
        for name, kind, channel in (('Y', 'luma', Y), ('Cb', 'chroma', Cb_sub), ('Cr', 'chroma', Cr_sub))
    ]

    huffman_tables = _build_huffman_tables(traces)
    channels = [_write_channel(trace, huffman_tables) for trace in traces]

    encoded = EncodedImage(
        width=w,
        height=h,
        quality=params.quality,
        block_size=params.block_size,
        subsampling_mode=params.subsampling_mode,
        transform_mode=params.transform_mode,
        wavelet=params.wavelet,
        wavelet_levels=params.levels,
        quant_tables=quant_tables,
        huffman_tables=huffman_tables,
        channels=channels,
    )
    return encoded, traces
