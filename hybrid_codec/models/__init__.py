"""Data models for codec parameters, coded images and results."""

from .compression_params import CompressionParams
from .compression_result import CompressionResult, CompressionStats
from .intermediate_data import IntermediateData
from .encoded_image import ChannelPayload, EncodedImage

__all__ = [
    'CompressionParams',
    'CompressionResult',
    'CompressionStats',
    'IntermediateData',
    'ChannelPayload',
    'EncodedImage',
]
