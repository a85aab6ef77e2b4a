"""Compression parameters."""

from dataclasses import dataclass
from typing import Literal, Optional

import pywt

from hybrid_codec.utils.constants import BLOCK_SIZES, SUBSAMPLING_MODES, TRANSFORM_MODES


@dataclass
class CompressionParams:
    """Hybrid DCT/wavelet codec parameters."""
    
    block_size: int = 8
    quality: int = 50
    subsampling_mode: Literal['4:4:4', '4:2:2', '4:2:0'] = '4:2:0'
    use_prefilter: bool = False
    transform_mode: Literal['hybrid', 'dct', 'wavelet'] = 'hybrid'
    wavelet: str = 'haar'
    wavelet_levels: Optional[int] = None
    rd_lambda_scale: float = 1.0
    
    def __post_init__(self):
        if not (1 <= self.quality <= 100):
            raise ValueError(f"Quality must be 1-100, got {self.quality}")
        if self.block_size not in BLOCK_SIZES:
            raise ValueError(f"Block size must be 4, 8, 16, or 32, got {self.block_size}")
        if self.subsampling_mode not in SUBSAMPLING_MODES:
            raise ValueError(f"Unknown subsampling mode: {self.subsampling_mode}")
        if self.transform_mode not in TRANSFORM_MODES:
            raise ValueError(f"Transform mode must be one of {TRANSFORM_MODES}, got {self.transform_mode}")
        if self.wavelet not in pywt.wavelist(kind='discrete'):
            raise ValueError(f"Unknown discrete wavelet: {self.wavelet}")
        if not pywt.Wavelet(self.wavelet).orthogonal:
            raise ValueError(f"Wavelet must be orthogonal, got {self.wavelet}")
        max_levels = self.max_wavelet_levels
        if max_levels < 1:
            raise ValueError(
                f"Wavelet {self.wavelet} is too long for {self.block_size}x{self.block_size} blocks"
            )
        if self.wavelet_levels is not None and not (1 <= self.wavelet_levels <= max_levels):
            raise ValueError(f"Wavelet levels must be 1-{max_levels}, got {self.wavelet_levels}")
        if self.rd_lambda_scale <= 0:
            raise ValueError(f"RD lambda scale must be positive, got {self.rd_lambda_scale}")
    
    @property
    def max_wavelet_levels(self) -> int:
        return pywt.dwt_max_level(self.block_size, pywt.Wavelet(self.wavelet).dec_len)
    
    @property
    def levels(self) -> int:
        """Effective wavelet decomposition depth inside a block."""
        if self.wavelet_levels is None:
            return self.max_wavelet_levels
        return self.wavelet_levels
    
    def with_quality(self, quality: int) -> 'CompressionParams':
        """Copy with a different quality factor."""
        return CompressionParams(
            block_size=self.block_size,
            quality=quality,
            subsampling_mode=self.subsampling_mode,
            use_prefilter=self.use_prefilter,
            transform_mode=self.transform_mode,
            wavelet=self.wavelet,
            wavelet_levels=self.wavelet_levels,
            rd_lambda_scale=self.rd_lambda_scale,
        )
