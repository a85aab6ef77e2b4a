"""Main compression/reconstruction pipeline."""

import logging
import numpy as np
from typing import List, Optional, Tuple

from hybrid_codec.models.compression_params import CompressionParams
from hybrid_codec.models.compression_result import CompressionResult
from hybrid_codec.models.intermediate_data import IntermediateData
from hybrid_codec.engines import dct_engine, wavelet_engine
from hybrid_codec.engines.block_processor import block_grid
from hybrid_codec.engines.bitstream import pack
from hybrid_codec.engines.decoder import decode_image
from hybrid_codec.engines.encoder import ChannelTrace, as_rgb, encode_image
from hybrid_codec.engines.quantizer import dequantize
from hybrid_codec.utils.constants import MODE_WAVELET
from hybrid_codec.utils.metrics import (
    Timer,
    bitrate_from_size,
    compression_stats,
    compute_psnr_ssim,
    luma,
)

logger = logging.getLogger(__name__)


def compress(image_rgb: np.ndarray, params: CompressionParams) -> bytes:
    """Encode an RGB image straight to container bytes."""
    encoded, _ = encode_image(image_rgb, params)
    return pack(encoded)


def _selected_block(
    trace: ChannelTrace,
    params: CompressionParams,
    quant_tables: dict,
    selected_block_idx: Tuple[int, int]
) -> Optional[dict]:
    rows, cols = block_grid(trace.shape, params.block_size)
    block_row, block_col = selected_block_idx
    if not (0 <= block_row < rows and 0 <= block_col < cols):
        return None
    idx = block_row * cols + block_col

    is_wavelet = trace.decision.modes[idx] == MODE_WAVELET
    q_matrix = quant_tables['luma_wavelet' if is_wavelet else 'luma_dct']
    dequantized = dequantize(trace.quantized[idx], q_matrix)
    if is_wavelet:
        reconstructed = wavelet_engine.inverse_blocks(dequantized, params.wavelet, params.levels)
    else:
        reconstructed = dct_engine.decode_blocks(dequantized)
    return {
        'mode': 'wavelet' if is_wavelet else 'dct',
        'original': trace.blocks[idx],
        'shifted': trace.blocks[idx] - 128.0,
        'coeffs': trace.coeffs[idx],
        'quantized': trace.quantized[idx],
        'dequantized': dequantized,
        'reconstructed': np.clip(reconstructed, 0, 255),
    }


def compress_reconstruct(
    image_rgb: np.ndarray,
    params: CompressionParams,
    selected_block_idx: Tuple[int, int] = (0, 0),
    original_size: Optional[int] = None
) -> Tuple[CompressionResult, IntermediateData]:
    """
    Encode to a real bitstream, decode it back and measure the result.

    Args:
        image_rgb: H x W x 3 uint8 image
        params: Codec parameters
        selected_block_idx: (row, col) of the luma block to expose stage by stage
        original_size: Size in bytes the reduction is measured against;
            defaults to the raw 24-bit RGB size

    Returns:
        (CompressionResult, IntermediateData)
    """
    image_rgb = as_rgb(image_rgb)
    timer = Timer()
    original_shape = image_rgb.shape[:2]

    # === ENCODING ===
    encoded, traces = timer.measure_encode(encode_image, image_rgb, params)
    data = timer.measure_encode(pack, encoded)

    # === DECODING ===
    rgb_recon = timer.measure_decode(decode_image, data)

    # === METRICS ===
    metrics = compute_psnr_ssim(image_rgb, rgb_recon)
    bitrate_info = bitrate_from_size(len(data), original_shape)
    if original_size is None:
        original_size = image_rgb.size
    stats = compression_stats(original_size, len(data), metrics['psnr_rgb'], metrics['mse_rgb'])

    all_quantized_flat = np.concatenate([t.quantized.ravel() for t in traces])
    wavelet_blocks = sum(t.decision.wavelet_blocks for t in traces)
    total_blocks = sum(len(t.quantized) for t in traces)

    result = CompressionResult(
        original_image=image_rgb,
        reconstructed_image=rgb_recon,
        psnr_y=metrics['psnr_y'],
        ssim_y=metrics['ssim_y'],
        psnr_rgb=metrics['psnr_rgb'],
        ssim_rgb=metrics['ssim_rgb'],
        mse_rgb=metrics['mse_rgb'],
        encoded_bytes=len(data),
        bpp=bitrate_info['bpp'],
        compression_ratio=bitrate_info['compression_ratio'],
        nonzero_coeffs=int(np.count_nonzero(all_quantized_flat)),
        total_coeffs=int(all_quantized_flat.size),
        dct_blocks=total_blocks - wavelet_blocks,
        wavelet_blocks=wavelet_blocks,
        encode_time_ms=timer.encode_time_ms,
        decode_time_ms=timer.decode_time_ms,
        stats=stats,
    )
    logger.info(
        f"Q={params.quality} {params.transform_mode}: {len(data)} bytes, {result.bpp:.3f} bpp, "
        f"PSNR {result.psnr_rgb:.2f} dB, {wavelet_blocks}/{total_blocks} wavelet blocks"
    )

    # === INTERMEDIATE DATA ===
    luma_trace = traces[0]
    error_map_y = np.abs(luma(image_rgb) - luma(rgb_recon))
    error_map_rgb = np.mean(np.abs(image_rgb.astype(np.float64) - rgb_recon.astype(np.float64)), axis=2)
    hist, _ = np.histogram(all_quantized_flat, bins=50, range=(-100, 100))
    rows, cols = block_grid(luma_trace.shape, params.block_size)
    selected = _selected_block(luma_trace, params, encoded.quant_tables, selected_block_idx) or {}

    intermediate = IntermediateData(
        selected_block_idx=selected_block_idx,
        selected_block_mode=selected.get('mode'),
        selected_block_original=selected.get('original'),
        selected_block_shifted=selected.get('shifted'),
        selected_block_coeffs=selected.get('coeffs'),
        selected_block_quantized=selected.get('quantized'),
        selected_block_dequantized=selected.get('dequantized'),
        selected_block_reconstructed=selected.get('reconstructed'),
        error_map_y=error_map_y,
        error_map_rgb=error_map_rgb,
        quantized_histogram=hist,
        all_quantized_coeffs=all_quantized_flat,
        mode_map_y=luma_trace.decision.modes.reshape(rows, cols),
    )

    return result, intermediate


def quality_sweep(
    image_rgb: np.ndarray,
    base_params: CompressionParams,
    quality_start: int = 10,
    quality_end: int = 90,
    quality_step: int = 10
) -> List[Tuple[int, CompressionResult]]:
    """Run compress_reconstruct over a range of quality factors."""
    results = []
    qualities = list(range(quality_start, quality_end + 1, quality_step))
    for i, quality in enumerate(qualities):
        result, _ = compress_reconstruct(image_rgb, base_params.with_quality(quality))
        results.append((quality, result))
        logger.debug(f"Sweep {i + 1}/{len(qualities)} done (Q={quality})")
    return results
