"""Compression result with metrics."""

from dataclasses import dataclass, field
import numpy as np


@dataclass
class CompressionStats:
    """Size and fidelity summary of one encode."""
    
    original_size: int
    compressed_size: int
    reduction_percentage: float
    psnr: float
    mse: float


@dataclass
class CompressionResult:
    """Results from compression/reconstruction pipeline."""
    
    original_image: np.ndarray
    reconstructed_image: np.ndarray
    
    # Quality metrics
    psnr_y: float
    ssim_y: float
    psnr_rgb: float
    ssim_rgb: float
    mse_rgb: float
    
    # Compression stats
    encoded_bytes: int
    bpp: float
    compression_ratio: float
    nonzero_coeffs: int
    total_coeffs: int
    dct_blocks: int
    wavelet_blocks: int
    
    # Runtime
    encode_time_ms: float
    decode_time_ms: float
    
    stats: CompressionStats = field(default=None)
    bitrate_label: str = "Measured (entropy coded)"
    
    @property
    def wavelet_share(self) -> float:
        total = self.dct_blocks + self.wavelet_blocks
        return self.wavelet_blocks / total if total else 0.0
