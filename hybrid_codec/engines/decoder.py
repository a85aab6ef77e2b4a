"""Decoder: bytes or EncodedImage back to RGB."""

import logging
from dataclasses import dataclass
from typing import Dict, Union

import numpy as np

from hybrid_codec.engines.bitio import BitReader, BitstreamError
from hybrid_codec.engines.bitstream import unpack
from hybrid_codec.engines.block_processor import block_grid, merge_blocks
from hybrid_codec.engines.color_space import chroma_shape, upsample_chroma, ycbcr_to_rgb
from hybrid_codec.engines import dct_engine, wavelet_engine
from hybrid_codec.engines.entropy import decode_block, inverse_zigzag
from hybrid_codec.engines.quantizer import dequantize
from hybrid_codec.models.encoded_image import EncodedImage
from hybrid_codec.utils.constants import MODE_WAVELET

logger = logging.getLogger(__name__)


@dataclass
class DecodedChannel:
    """Reconstructed plane plus what was read for it."""

    name: str
    plane: np.ndarray        # cropped to the channel size
    quantized: np.ndarray    # (n, B, B) int32
    modes: np.ndarray        # (n,) uint8


def _decode_channel(encoded: EncodedImage, index: int, shape) -> DecodedChannel:
    payload = encoded.channels[index]
    kind = 'luma' if index == 0 else 'chroma'
    n = encoded.block_size
    rows, cols = block_grid(shape, n)
    if payload.block_count != rows * cols:
        raise BitstreamError(
            f"Channel {payload.name} has {payload.block_count} blocks, expected {rows * cols}"
        )

    dc_table = encoded.huffman_tables[f'{kind}_dc']
    ac_table = encoded.huffman_tables[f'{kind}_ac']
    reader = BitReader(payload.data)
    quantized = np.empty((payload.block_count, n, n), dtype=np.int32)
    modes = np.empty(payload.block_count, dtype=np.uint8)
    prev_dc = 0
    for i in range(payload.block_count):
        modes[i] = reader.read_bit()
        zz = decode_block(reader, n, prev_dc, dc_table, ac_table)
        prev_dc = int(zz[0])
        quantized[i] = inverse_zigzag(zz, n)

    # Only the final byte's padding may remain
    if reader.bits_remaining >= 8:
        raise BitstreamError(f"Channel {payload.name} has {reader.bits_remaining} unread bits")

    wavelet_mask = modes == MODE_WAVELET
    spatial = np.empty((payload.block_count, n, n), dtype=np.float64)
    if np.any(~wavelet_mask):
        coeffs = dequantize(quantized[~wavelet_mask], encoded.quant_tables[f'{kind}_dct'])
        spatial[~wavelet_mask] = dct_engine.decode_blocks(coeffs)
    if np.any(wavelet_mask):
        coeffs = dequantize(quantized[wavelet_mask], encoded.quant_tables[f'{kind}_wavelet'])
        spatial[wavelet_mask] = wavelet_engine.inverse_blocks(coeffs, encoded.wavelet, encoded.wavelet_levels)

    plane = merge_blocks(spatial, (rows * n, cols * n), n)
    h, w = shape
    return DecodedChannel(name=payload.name, plane=plane[:h, :w], quantized=quantized, modes=modes)


def decode_channels(encoded: EncodedImage) -> Dict[str, DecodedChannel]:
    """Entropy decode, dequantize and inverse transform all three planes."""
    luma_shape = (encoded.height, encoded.width)
    sub_shape = chroma_shape(luma_shape, encoded.subsampling_mode)
    return {
        'Y': _decode_channel(encoded, 0, luma_shape),
        'Cb': _decode_channel(encoded, 1, sub_shape),
        'Cr': _decode_channel(encoded, 2, sub_shape),
    }


def decode_image(data: Union[bytes, EncodedImage]) -> np.ndarray:
    """Reconstruct an RGB uint8 image from a coded stream."""
    encoded = unpack(data) if isinstance(data, (bytes, bytearray)) else data
    channels = decode_channels(encoded)

    luma_shape = (encoded.height, encoded.width)
    Cb, Cr = upsample_chroma(channels['Cb'].plane, channels['Cr'].plane, luma_shape, 'bilinear')
    ycbcr = np.stack([channels['Y'].plane, Cb, Cr], axis=-1)
    rgb = np.round(ycbcr_to_rgb(ycbcr)).astype(np.uint8)
    logger.debug(f"Decoded {encoded.width}x{encoded.height} image")
    return rgb
