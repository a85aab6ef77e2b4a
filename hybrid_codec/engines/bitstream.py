"""
Binary container for coded images.

Layout (big-endian):

    magic 'HDWC' | version u8
    width u32 | height u32
    quality u8 | block size u8 | subsampling u8 | transform mode u8 | wavelet levels u8
    wavelet name: length u8 + ASCII
    4 quantization tables, B*B u8 each (luma/chroma x DCT/wavelet)
    4 Huffman tables (luma DC/AC, chroma DC/AC): 16 x u16 counts + u8 symbols
    3 channels (Y, Cb, Cr): block count u32 | payload length u32 | payload
    CRC-32 of all preceding bytes, u32
"""

import logging
import struct
import zlib
from typing import Tuple

import numpy as np
import pywt

from hybrid_codec.engines.bitio import BitstreamError
from hybrid_codec.engines.entropy import HuffmanTable
from hybrid_codec.models.encoded_image import ChannelPayload, EncodedImage
from hybrid_codec.utils.constants import (
    BLOCK_SIZES,
    CHANNEL_NAMES,
    FORMAT_VERSION,
    MAGIC,
    MAX_HUFFMAN_CODE_LENGTH,
    SUBSAMPLING_MODES,
    TRANSFORM_MODES,
)

logger = logging.getLogger(__name__)

QUANT_TABLE_ORDER = ('luma_dct', 'chroma_dct', 'luma_wavelet', 'chroma_wavelet')
HUFFMAN_TABLE_ORDER = ('luma_dc', 'luma_ac', 'chroma_dc', 'chroma_ac')

_HEADER = struct.Struct('>4sBIIBBBBB')
_CHANNEL = struct.Struct('>II')
_CRC = struct.Struct('>I')


def pack(encoded: EncodedImage) -> bytes:
    """Serialize an EncodedImage."""
    out = bytearray()
    out += _HEADER.pack(
        MAGIC,
        FORMAT_VERSION,
        encoded.width,
        encoded.height,
        encoded.quality,
        encoded.block_size,
        SUBSAMPLING_MODES.index(encoded.subsampling_mode),
        TRANSFORM_MODES.index(encoded.transform_mode),
        encoded.wavelet_levels,
    )
    name = encoded.wavelet.encode('ascii')
    out += struct.pack('>B', len(name)) + name

    for key in QUANT_TABLE_ORDER:
        table = encoded.quant_tables[key]
        if table.shape != (encoded.block_size, encoded.block_size):
            raise ValueError(f"Quantization table {key} has shape {table.shape}")
        out += np.clip(table, 1, 255).astype(np.uint8).tobytes()

    for key in HUFFMAN_TABLE_ORDER:
        table = encoded.huffman_tables[key]
        out += struct.pack(f'>{MAX_HUFFMAN_CODE_LENGTH}H', *table.bits)
        out += bytes(table.values)

    if [c.name for c in encoded.channels] != list(CHANNEL_NAMES):
        raise ValueError(f"Expected channels {CHANNEL_NAMES}")
    for channel in encoded.channels:
        out += _CHANNEL.pack(channel.block_count, len(channel.data))
        out += channel.data

    out += _CRC.pack(zlib.crc32(out) & 0xFFFFFFFF)
    logger.debug(f"Packed {encoded.width}x{encoded.height} image into {len(out)} bytes")
    return bytes(out)


class _Cursor:
    """Bounds-checked reader over the container bytes."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise BitstreamError("Truncated stream")
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def unpack(self, fmt: struct.Struct) -> Tuple:
        return fmt.unpack(self.take(fmt.size))


def unpack(data: bytes) -> EncodedImage:
    """Parse and validate a serialized EncodedImage."""
    if len(data) < _HEADER.size + _CRC.size:
        raise BitstreamError("Truncated stream")
    body, (crc,) = data[:-_CRC.size], _CRC.unpack(data[-_CRC.size:])

    cursor = _Cursor(body)
    magic, version, width, height, quality, block_size, sub_code, mode_code, levels = \
        cursor.unpack(_HEADER)
    if magic != MAGIC:
        raise BitstreamError(f"Not a hybrid codec stream (magic {magic!r})")
    if version != FORMAT_VERSION:
        raise BitstreamError(f"Unsupported format version {version}")
    if zlib.crc32(body) & 0xFFFFFFFF != crc:
        raise BitstreamError("CRC mismatch, stream is corrupt")
    if width == 0 or height == 0:
        raise BitstreamError(f"Invalid image size {width}x{height}")
    if not (1 <= quality <= 100):
        raise BitstreamError(f"Invalid quality {quality}")
    if block_size not in BLOCK_SIZES:
        raise BitstreamError(f"Invalid block size {block_size}")
    if sub_code >= len(SUBSAMPLING_MODES) or mode_code >= len(TRANSFORM_MODES):
        raise BitstreamError("Invalid subsampling or transform code")

    (name_len,) = struct.unpack('>B', cursor.take(1))
    try:
        wavelet = cursor.take(name_len).decode('ascii')
    except UnicodeDecodeError as e:
        raise BitstreamError(f"Invalid wavelet name: {e}") from e
    if wavelet not in pywt.wavelist(kind='discrete'):
        raise BitstreamError(f"Unknown wavelet {wavelet!r}")
    if not (1 <= levels <= pywt.dwt_max_level(block_size, pywt.Wavelet(wavelet).dec_len)):
        raise BitstreamError(f"Invalid wavelet levels {levels}")

    quant_tables = {}
    for key in QUANT_TABLE_ORDER:
        raw = np.frombuffer(cursor.take(block_size * block_size), dtype=np.uint8)
        if np.any(raw == 0):
            raise BitstreamError(f"Zero step in quantization table {key}")
        quant_tables[key] = raw.reshape(block_size, block_size).astype(np.float64)

    huffman_tables = {}
    for key in HUFFMAN_TABLE_ORDER:
        bits = list(struct.unpack(f'>{MAX_HUFFMAN_CODE_LENGTH}H', cursor.take(2 * MAX_HUFFMAN_CODE_LENGTH)))
        values = list(cursor.take(sum(bits)))
        huffman_tables[key] = HuffmanTable(bits, values)

    channels = []
    for name in CHANNEL_NAMES:
        block_count, length = cursor.unpack(_CHANNEL)
        channels.append(ChannelPayload(name=name, block_count=block_count, data=cursor.take(length)))

    if cursor.pos != len(body):
        raise BitstreamError(f"{len(body) - cursor.pos} trailing bytes after last channel")

    return EncodedImage(
        width=width,
        height=height,
        quality=quality,
        block_size=block_size,
        subsampling_mode=SUBSAMPLING_MODES[sub_code],
        transform_mode=TRANSFORM_MODES[mode_code],
        wavelet=wavelet,
        wavelet_levels=levels,
        quant_tables=quant_tables,
        huffman_tables=huffman_tables,
        channels=channels,
    )
