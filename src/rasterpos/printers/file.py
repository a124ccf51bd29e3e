"""Printer that writes jobs into a directory instead of a device.

Raster jobs are saved as PNG after the transformer runs, raw jobs as ``.bin``
files. Useful for testing transformers and for archiving.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path

from rasterpos.models.printer import FileConnection, PrinterConfig
from rasterpos.printers.base import BasePrinter, PrinterError
from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.imaging import save_png

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class FilePrinter(BasePrinter):
    """Dumps print jobs to files."""

    def __init__(self, config: PrinterConfig, **kwargs) -> None:
        super().__init__(config, **kwargs)
        if not isinstance(config.connection, FileConnection):
            raise PrinterError(f"Unsupported connection type for file printer: {type(config.connection)}")
        self.directory = Path(config.connection.directory)
        self.written: list[Path] = []

    def _next_path(self, suffix: str) -> Path:
        stem = datetime.now().strftime(TIMESTAMP_FORMAT)
        path = self.directory / f"{stem}{suffix}"
        counter = 1
        while path.exists() or path in self.written:
            path = self.directory / f"{stem}-{counter}{suffix}"
            counter += 1
        return path

    async def connect(self) -> None:
        try:
            await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectionError(f"Cannot create output directory {self.directory}: {e}") from e
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def _write(self, data: bytes) -> None:
        path = self._next_path(".bin")
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise ConnectionError(f"Failed to write {path}: {e}") from e
        self.written.append(path)

    async def print_bitmap(self, bitmap: Bitmap) -> None:
        """Save the transformed bitmap as a PNG."""
        transformed = self.transformer(bitmap)
        if transformed is None:
            logger.info(f"Printer {self.name}: transformer suppressed the job")
            return
        async with self._session():
            path = self._next_path(".png")
            try:
                await asyncio.to_thread(save_png, transformed, path)
            except OSError as e:
                raise ConnectionError(f"Failed to write {path}: {e}") from e
            self.written.append(path)
        logger.info(f"Printer {self.name}: saved {path}")

    async def open_cash_drawer(self) -> None:
        logger.info(f"Printer {self.name}: no cash drawer on a file printer")
