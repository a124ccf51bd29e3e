"""CLI tool for converting images into ESC/POS raster data or page previews."""

import argparse
import sys
from pathlib import Path

from rasterpos.models.printer import DEFAULT_CUT_COMMAND
from rasterpos.raster.bitmap import Alignment
from rasterpos.raster.cutline import cut_pages
from rasterpos.raster.escpos import encode_raster
from rasterpos.raster.imaging import ImageImportError, load_png, save_png
from rasterpos.transformers import available_transformers, get_transformer


def _page_paths(output: Path, count: int) -> list[Path]:
    if count == 1:
        return [output]
    return [output.with_name(f"{output.stem}-{i}{output.suffix}") for i in range(1, count + 1)]


def main(argv: list[str] | None = None) -> int:
    """Main entry point for rasterpos-render CLI."""
    parser = argparse.ArgumentParser(
        description="Convert an image into ESC/POS raster commands or per-page PNG previews.",
        prog="rasterpos-render",
    )
    parser.add_argument(
        "image",
        type=Path,
        help="Path to the input image (PNG)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file path (default: <image>.bin or <image>-page.png)",
    )
    parser.add_argument(
        "--format",
        choices=["bin", "png"],
        default="bin",
        help="Output format (default: bin)",
    )
    parser.add_argument(
        "--dither",
        action="store_true",
        help="Use Floyd-Steinberg dithering instead of a fixed threshold",
    )
    parser.add_argument(
        "--paper-width",
        type=int,
        default=576,
        help="Printable width in dots (default: 576)",
    )
    parser.add_argument(
        "--band-height",
        type=int,
        default=1024,
        help="Maximum rows per raster command (default: 1024, 0 for one command)",
    )
    parser.add_argument(
        "--margin-bottom",
        type=int,
        default=120,
        help="Blank rows fed before each cut (default: 120)",
    )
    parser.add_argument(
        "--align",
        choices=[a.value for a in Alignment],
        default=Alignment.CENTER.value,
        help="Horizontal placement on the paper (default: center)",
    )
    parser.add_argument(
        "--transformer",
        choices=available_transformers(),
        default=None,
        help="Receipt transformer to apply before splitting pages",
    )
    parser.add_argument(
        "--no-cut",
        action="store_true",
        help="Do not append the paper cut command after each page",
    )

    args = parser.parse_args(argv)

    # Check image exists
    if not args.image.exists():
        print(f"Error: Image file not found: {args.image}", file=sys.stderr)
        return 1

    try:
        bitmap = load_png(args.image, dither=args.dither)
    except ImageImportError as e:
        print(f"Error loading image: {e}", file=sys.stderr)
        return 1
    bitmap.align = Alignment.parse(args.align)

    transformed = get_transformer(args.transformer)(bitmap)
    if transformed is None:
        print("Transformer suppressed this image, nothing to render", file=sys.stderr)
        return 0

    pages = cut_pages(transformed)
    output = args.output
    if output is None:
        # Never overwrite the input image
        suffix = "-page.png" if args.format == "png" else ".bin"
        output = args.image.with_name(f"{args.image.stem}{suffix}")

    try:
        if args.format == "png":
            paths = _page_paths(output, len(pages))
            for page, path in zip(pages, paths, strict=True):
                save_png(page, path)
            print(f"Rendered {len(pages)} page(s) to {', '.join(str(p) for p in paths)}")
        else:
            data = bytearray()
            for page in pages:
                page.apply_auto_margin_left(args.paper_width)
                page.add_margin_bottom(args.margin_bottom)
                data += encode_raster(page, args.band_height)
                if not args.no_cut:
                    data += DEFAULT_CUT_COMMAND
            output.write_bytes(bytes(data))
            print(f"Rendered {len(pages)} page(s), {len(data)} bytes to {output}")
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
