"""Shared utilities."""

from .constants import JPEG_LUMA_Q50, JPEG_CHROMA_Q50, ZIGZAG_ORDER, zigzag_order

__all__ = [
    'JPEG_LUMA_Q50',
    'JPEG_CHROMA_Q50',
    'ZIGZAG_ORDER',
    'zigzag_order',
]
