"""Codec engines - pure computation, no I/O."""

from .color_space import rgb_to_ycbcr, ycbcr_to_rgb, subsample_chroma, upsample_chroma
from .block_processor import pad_to_multiple, split_into_blocks, merge_blocks
from .dct_engine import dct2, idct2
from .wavelet_engine import forward_blocks, inverse_blocks, subband_map
from .quantizer import scale_quant_matrix, build_quant_tables, quantize, dequantize
from .entropy import HuffmanTable, zigzag_scan, inverse_zigzag
from .bitio import BitstreamError
from .bitstream import pack, unpack
from .encoder import encode_image
from .decoder import decode_image
from .rate_control import encode_to_bitrate
from .pipeline import compress, compress_reconstruct, quality_sweep

__all__ = [
    'rgb_to_ycbcr',
    'ycbcr_to_rgb',
    'subsample_chroma',
    'upsample_chroma',
    'pad_to_multiple',
    'split_into_blocks',
    'merge_blocks',
    'dct2',
    'idct2',
    'forward_blocks',
    'inverse_blocks',
    'subband_map',
    'scale_quant_matrix',
    'build_quant_tables',
    'quantize',
    'dequantize',
    'HuffmanTable',
    'zigzag_scan',
    'inverse_zigzag',
    'BitstreamError',
    'pack',
    'unpack',
    'encode_image',
    'decode_image',
    'encode_to_bitrate',
    'compress',
    'compress_reconstruct',
    'quality_sweep',
]
