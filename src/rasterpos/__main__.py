"""Entry point for sending jobs to configured printers."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rasterpos.config import AppConfig, load_config, settings
from rasterpos.models.job import JobKind, JobStatus, PrintJob
from rasterpos.queue import PrintQueue
from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.imaging import ImageImportError, fetch_bitmap, load_png
from rasterpos.raster.ocr import GlyphCatalog
from rasterpos.registry import PrinterRegistry, UnknownPrinterError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rasterpos", description="Print to ESC/POS receipt printers.")
    parser.add_argument("--config", type=Path, default=None, help="Config file (default: $RASTERPOS_CONFIG_FILE)")
    parser.add_argument("-p", "--printer", default=None, help="Printer name (default: $RASTERPOS_DEFAULT_PRINTER)")
    commands = parser.add_subparsers(dest="command", required=True)

    image = commands.add_parser("print-image", help="Print a PNG file or a file:, http(s): or data: URL")
    image.add_argument("source", help="Path or URL of the image")
    image.add_argument("--dither", action="store_true", help="Use Floyd-Steinberg dithering")

    raw = commands.add_parser("print-raw", help="Send a file of raw ESC/POS bytes")
    raw.add_argument("source", type=Path, help="File with raw printer data")

    commands.add_parser("open-drawer", help="Pulse the cash drawer")
    commands.add_parser("list-printers", help="List configured printers")

    read = commands.add_parser("read-text", help="Recognise glyphs in an image using the configured catalog")
    read.add_argument("source", type=Path, help="Path of the image")
    return parser


async def _load_image(source: str, dither: bool) -> Bitmap:
    if "://" in source or source.startswith(("file:", "data:")):
        return await fetch_bitmap(source, dither=dither)
    return await asyncio.to_thread(load_png, Path(source), dither)


async def _run_job(config: AppConfig, registry: PrinterRegistry, job: PrintJob) -> int:
    printer = registry.get(job.printer_name)
    queue = PrintQueue(timeout_seconds=config.queue_timeout_seconds)
    await queue.submit(job)
    await queue.start_worker(printer)
    try:
        await queue.join(printer.name)
    finally:
        await queue.stop_all()
        await registry.close_all()
    if job.status != JobStatus.COMPLETED:
        print(f"Error: job {job.status}: {job.error_message or 'unknown error'}", file=sys.stderr)
        return 1
    print(f"Job {job.id} completed on {printer.name}")
    return 0


async def _async_main(args: argparse.Namespace, config: AppConfig) -> int:
    if args.command == "read-text":
        if config.glyph_catalog is None:
            print("Error: no glyph_catalog configured", file=sys.stderr)
            return 1
        catalog = GlyphCatalog.from_config(config.glyph_catalog)
        print(catalog.read(await asyncio.to_thread(load_png, args.source)))
        return 0

    registry = PrinterRegistry.from_config(config)
    if args.command == "list-printers":
        for printer in registry:
            print(f"{printer.name}\t{printer.config.type}\t{printer.config.transformer}")
        return 0

    printer_name = args.printer or settings.default_printer
    if not printer_name:
        names = registry.names()
        if len(names) != 1:
            print("Error: choose a printer with --printer", file=sys.stderr)
            return 1
        printer_name = names[0]
    if printer_name not in registry:
        raise UnknownPrinterError(printer_name)

    if args.command == "print-image":
        bitmap = await _load_image(args.source, args.dither)
        job = PrintJob(printer_name=printer_name, kind=JobKind.RASTER, bitmap=bitmap)
    elif args.command == "print-raw":
        data = args.source.read_bytes()
        if not data:
            print(f"Error: {args.source} is empty", file=sys.stderr)
            return 1
        job = PrintJob(printer_name=printer_name, kind=JobKind.RAW, data=data)
    else:
        job = PrintJob(printer_name=printer_name, kind=JobKind.CASH_DRAWER)
    return await _run_job(config, registry, job)


def main(argv: list[str] | None = None) -> int:
    """Run a single printer command."""
    args = _build_parser().parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config_path = args.config or settings.config_file
    logger.info(f"Loading configuration from {config_path}")
    config = load_config(config_path)

    try:
        return asyncio.run(_async_main(args, config))
    except (UnknownPrinterError, ImageImportError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
