"""
Hybrid DCT/Wavelet Image Codec
Command line front end: encode, decode, evaluate and sweep.
"""

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger("hybrid_codec.cli")


def _add_codec_args(parser: argparse.ArgumentParser):
    group = parser.add_argument_group("codec")
    group.add_argument('-q', '--quality', type=int, default=50, help="Quality factor 1-100 (default 50)")
    group.add_argument('--block-size', type=int, default=8, choices=[4, 8, 16, 32])
    group.add_argument('--subsampling', default='4:2:0', choices=['4:4:4', '4:2:2', '4:2:0'])
    group.add_argument('--prefilter', action='store_true', help="Blur chroma before subsampling")
    group.add_argument('--transform', default='hybrid', choices=['hybrid', 'dct', 'wavelet'])
    group.add_argument('--wavelet', default='haar', help="Orthogonal PyWavelets name (default haar)")
    group.add_argument('--levels', type=int, default=None, help="Wavelet levels per block (default max)")
    group.add_argument('--rd-lambda-scale', type=float, default=1.0)


def _add_source_args(parser: argparse.ArgumentParser):
    from hybrid_codec.utils.test_images import DEMO_IMAGES
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('image', nargs='?', help="Input JPEG/PNG image")
    source.add_argument('--synthetic', choices=DEMO_IMAGES, help="Use a generated test image")
    parser.add_argument('--size', type=int, default=256, help="Synthetic image size (default 256)")


def _params_from_args(args):
    from hybrid_codec.models.compression_params import CompressionParams
    return CompressionParams(
        block_size=args.block_size,
        quality=args.quality,
        subsampling_mode=args.subsampling,
        use_prefilter=args.prefilter,
        transform_mode=args.transform,
        wavelet=args.wavelet,
        wavelet_levels=args.levels,
        rd_lambda_scale=args.rd_lambda_scale,
    )


def _load_source(args):
    """Returns (image, name, original size in bytes or None)."""
    from hybrid_codec.utils.image_io import load_image
    from hybrid_codec.utils.test_images import generate_demo_image
    if args.synthetic:
        logger.info(f"Generating test image: {args.synthetic} ({args.size}x{args.size})")
        return generate_demo_image(args.synthetic, args.size), args.synthetic, None
    path = Path(args.image)
    logger.info(f"Loading: {path}")
    return load_image(str(path)), path.name, path.stat().st_size


def cmd_encode(args) -> int:
    from hybrid_codec.engines.bitstream import pack
    from hybrid_codec.engines.encoder import encode_image
    from hybrid_codec.engines.rate_control import encode_to_bitrate
    from hybrid_codec.utils.constants import FILE_SUFFIX
    from hybrid_codec.utils.image_io import compressed_output_path, load_image

    image = load_image(args.image)
    params = _params_from_args(args)
    if args.target_bpp is not None:
        _, data, quality = encode_to_bitrate(image, args.target_bpp, params)
    else:
        encoded, _ = encode_image(image, params)
        data = pack(encoded)
        quality = params.quality

    output = Path(args.output) if args.output else compressed_output_path(args.image, FILE_SUFFIX)
    output.write_bytes(data)

    original_size = Path(args.image).stat().st_size
    h, w = image.shape[:2]
    reduction = (1.0 - len(data) / original_size) * 100.0
    print(f"Image:     {w}x{h}")
    print(f"Quality:   {quality}")
    print(f"Size:      {original_size} -> {len(data)} bytes ({reduction:.1f}% reduction)")
    print(f"BPP:       {len(data) * 8 / (h * w):.3f}")
    print(f"Saved:     {output}")
    return 0


def cmd_decode(args) -> int:
    from hybrid_codec.engines.decoder import decode_image
    from hybrid_codec.utils.image_io import save_image

    source = Path(args.input)
    image = decode_image(source.read_bytes())
    output = Path(args.output) if args.output else source.with_suffix('.png')
    save_image(image, str(output))
    print(f"Decoded {image.shape[1]}x{image.shape[0]} -> {output}")
    return 0


def cmd_evaluate(args) -> int:
    from hybrid_codec.engines.pipeline import compress_reconstruct
    from hybrid_codec.utils.image_io import save_image

    image, name, original_size = _load_source(args)
    params = _params_from_args(args)
    result, _ = compress_reconstruct(image, params, original_size=original_size)
    stats = result.stats

    print(f"\n=== Results: {name} ===")
    print(f"Image:      {image.shape[1]}x{image.shape[0]}")
    print(f"PSNR (RGB): {result.psnr_rgb:.2f} dB")
    print(f"PSNR (Y):   {result.psnr_y:.2f} dB")
    print(f"MSE (RGB):  {result.mse_rgb:.3f}")
    print(f"SSIM (Y):   {result.ssim_y:.4f}")
    print(f"BPP:        {result.bpp:.3f}")
    print(f"Ratio:      {result.compression_ratio:.2f}:1")
    print(f"Size:       {stats.original_size} -> {stats.compressed_size} bytes "
          f"({stats.reduction_percentage:.1f}% reduction)")
    print(f"Blocks:     {result.dct_blocks} DCT / {result.wavelet_blocks} wavelet")
    print(f"Time:       {result.encode_time_ms:.1f} ms encode, {result.decode_time_ms:.1f} ms decode")

    if args.output:
        save_image(result.reconstructed_image, args.output)
        print(f"\nSaved: {args.output}")
    return 0


def cmd_sweep(args) -> int:
    from hybrid_codec.engines.pipeline import quality_sweep
    from hybrid_codec.utils.report import write_sweep_report

    image, name, _ = _load_source(args)
    params = _params_from_args(args)
    results = quality_sweep(image, params, args.start, args.end, args.step)

    print(f"{'Q':>4} {'bytes':>9} {'bpp':>7} {'PSNR':>7} {'MSE':>9} {'wavelet':>8}")
    for quality, result in results:
        print(f"{quality:>4} {result.encoded_bytes:>9} {result.bpp:>7.3f} {result.psnr_rgb:>7.2f} "
              f"{result.mse_rgb:>9.3f} {100 * result.wavelet_share:>7.0f}%")

    if args.report:
        write_sweep_report(results, params, args.report, image_name=name)
        print(f"\nReport: {args.report}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='hybrid-codec', description="Hybrid DCT/wavelet image codec")
    parser.add_argument('-v', '--verbose', action='store_true', help="Debug logging")
    parser.add_argument('--log-file', default=None, help="Also write logs to this file")
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('encode', help="Compress an image to a .hdwc file")
    p.add_argument('image')
    p.add_argument('-o', '--output', default=None, help="Output path (default compressed_<name>.hdwc)")
    p.add_argument('--target-bpp', type=float, default=None, help="Search quality for this bitrate")
    _add_codec_args(p)
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser('decode', help="Reconstruct an image from a .hdwc file")
    p.add_argument('input')
    p.add_argument('-o', '--output', default=None, help="Output image (default <input>.png)")
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser('evaluate', help="Compress, reconstruct and report metrics")
    _add_source_args(p)
    p.add_argument('-o', '--output', default=None, help="Save the reconstruction here")
    _add_codec_args(p)
    p.set_defaults(func=cmd_evaluate)

    p = sub.add_parser('sweep', help="Rate-distortion sweep over quality")
    _add_source_args(p)
    p.add_argument('--start', type=int, default=10)
    p.add_argument('--end', type=int, default=90)
    p.add_argument('--step', type=int, default=10)
    p.add_argument('--report', default=None, help="Write a .pdf or image report")
    _add_codec_args(p)
    p.set_defaults(func=cmd_sweep)

    return parser


def main(argv=None) -> int:
    from hybrid_codec.logging_config import setup_logging

    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    try:
        return args.func(args)
    except (ValueError, OSError) as e:
        logger.error(str(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
