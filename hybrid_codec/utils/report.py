"""Rate-distortion reports for quality sweeps."""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from hybrid_codec.models.compression_params import CompressionParams
from hybrid_codec.models.compression_result import CompressionResult

logger = logging.getLogger(__name__)

SweepResults = List[Tuple[int, CompressionResult]]


def _plot_rd_curves(fig: Figure, results: SweepResults, params: CompressionParams, rect=(0, 0, 1, 1)):
    qualities = [q for q, _ in results]
    bpp_values = [r.bpp for _, r in results]
    psnr_values = [r.psnr_rgb for _, r in results]
    wavelet_share = [100.0 * r.wavelet_share for _, r in results]

    ax1 = fig.add_subplot(2, 1, 1)
    ax1.plot(bpp_values, psnr_values, 'o-', color='#4a9eff', linewidth=2, markersize=6, label='PSNR (RGB)')
    if params.quality in qualities:
        idx = qualities.index(params.quality)
        ax1.scatter([bpp_values[idx]], [psnr_values[idx]], s=200, c='#e74c3c', marker='*',
                    zorder=5, label=f'Q={params.quality}')
    ax1.set_xlabel('BPP (bits per pixel)', fontsize=10)
    ax1.set_ylabel('PSNR (dB)', fontsize=10)
    ax1.set_title(f'PSNR vs Bitrate ({params.transform_mode})', fontsize=11)
    ax1.legend(loc='lower right', fontsize=9)
    ax1.grid(True, alpha=0.3)

    ax2 = fig.add_subplot(2, 1, 2)
    ax2.bar([str(q) for q in qualities], wavelet_share, color='#51cf66')
    ax2.set_xlabel('Quality factor', fontsize=10)
    ax2.set_ylabel('Wavelet blocks (%)', fontsize=10)
    ax2.set_ylim(0, 100)
    ax2.set_title('Transform choice per quality', fontsize=11)
    ax2.grid(True, axis='y', alpha=0.3)

    fig.tight_layout(rect=rect)


def _summary_page(results: SweepResults, params: CompressionParams, image_name: str) -> Figure:
    fig = Figure(figsize=(8.5, 11))
    fig.set_facecolor('white')
    fig.suptitle('Hybrid DCT/Wavelet Compression Report', fontsize=16, fontweight='bold', y=0.97)
    fig.text(0.5, 0.94, f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
             ha='center', fontsize=10, color='gray')

    h, w = results[0][1].original_image.shape[:2]
    params_text = (
        f"Image: {image_name} ({w} x {h})\n"
        f"Block size: {params.block_size}x{params.block_size}\n"
        f"Subsampling: {params.subsampling_mode} (prefilter {'on' if params.use_prefilter else 'off'})\n"
        f"Transform: {params.transform_mode}, wavelet {params.wavelet} / {params.levels} levels"
    )
    fig.text(0.1, 0.88, params_text, fontsize=10, family='monospace', verticalalignment='top')

    ax = fig.add_axes([0.1, 0.1, 0.8, 0.6])
    ax.axis('off')
    rows = [
        [str(q), f'{r.encoded_bytes:,}', f'{r.bpp:.3f}', f'{r.compression_ratio:.1f}:1',
         f'{r.psnr_rgb:.2f}', f'{r.mse_rgb:.2f}', f'{r.ssim_y:.4f}', f'{100 * r.wavelet_share:.0f}%']
        for q, r in results
    ]
    table = ax.table(
        cellText=rows,
        colLabels=['Q', 'Bytes', 'BPP', 'Ratio', 'PSNR', 'MSE', 'SSIM (Y)', 'Wavelet'],
        loc='upper center', cellLoc='center'
    )
    table.auto_set_font_size(False)
    table.set_fontsize(9)
    table.scale(1, 1.4)
    for j in range(8):
        table[(0, j)].set_facecolor('#4a9eff')
        table[(0, j)].set_text_props(color='white', fontweight='bold')
    return fig


def write_sweep_report(
    results: SweepResults,
    params: CompressionParams,
    output_path: str,
    image_name: Optional[str] = None
) -> Path:
    """
    Save a sweep report. A .pdf path gets a summary table page and a
    rate-distortion page; any other suffix gets the rate-distortion figure only.
    """
    if len(results) < 2:
        raise ValueError("A rate-distortion report needs at least two sweep points")
    output_path = Path(output_path)
    image_name = image_name or "(in memory)"

    if output_path.suffix.lower() == '.pdf':
        with PdfPages(output_path) as pdf:
            pdf.savefig(_summary_page(results, params, image_name))
            fig = Figure(figsize=(8.5, 11))
            fig.set_facecolor('white')
            _plot_rd_curves(fig, results, params, rect=(0, 0.05, 1, 0.95))
            pdf.savefig(fig)
    else:
        fig = Figure(figsize=(7, 8), dpi=100)
        _plot_rd_curves(fig, results, params)
        fig.savefig(output_path)

    logger.info(f"Report saved to: {output_path}")
    return output_path
