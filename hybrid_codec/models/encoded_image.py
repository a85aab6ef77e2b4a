"""In-memory form of a coded image, before packing or after parsing."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List

import numpy as np

if TYPE_CHECKING:
    from hybrid_codec.engines.entropy import HuffmanTable


@dataclass
class ChannelPayload:
    """Entropy-coded blocks of one channel."""
    
    name: str
    block_count: int
    data: bytes


@dataclass
class EncodedImage:
    """Header, tables and coded channels of one image."""
    
    width: int
    height: int
    quality: int
    block_size: int
    subsampling_mode: str
    transform_mode: str
    wavelet: str
    wavelet_levels: int
    quant_tables: Dict[str, np.ndarray]        # luma_dct, chroma_dct, luma_wavelet, chroma_wavelet
    huffman_tables: Dict[str, 'HuffmanTable']  # luma_dc, luma_ac, chroma_dc, chroma_ac
    channels: List[ChannelPayload] = field(default_factory=list)
    
    def to_bytes(self) -> bytes:
        from hybrid_codec.engines.bitstream import pack
        return pack(self)
    
    @classmethod
    def from_bytes(cls, data: bytes) -> 'EncodedImage':
        from hybrid_codec.engines.bitstream import unpack
        return unpack(data)
