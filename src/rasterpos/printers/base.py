"""Abstract base class for ESC/POS printer implementations."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from rasterpos.models.printer import PrinterConfig
from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.cutline import cut_pages
from rasterpos.raster.escpos import encode_raster
from rasterpos.transformers import Transformer, get_transformer

logger = logging.getLogger(__name__)

# ESC @: initialise printer
RESET_COMMAND = b"\x1b\x40"

# Cache duration for online status (seconds)
STATUS_CACHE_TTL = 30.0


class PrinterError(Exception):
    """Exception raised for printer-related errors."""

    pass


class BasePrinter(ABC):
    """Abstract base class for all printer implementations.

    Subclasses provide the transport (``connect``, ``disconnect``, ``_write``);
    the base class turns bitmaps into ESC/POS pages and drives the transport.
    Each public print operation opens the transport if it is not already open
    and closes it again afterwards.
    """

    def __init__(self, config: PrinterConfig, transformer: Transformer | None = None) -> None:
        self.config = config
        self.name = config.name
        self.transformer = transformer or get_transformer(config.transformer)
        self._connected = False
        self._cached_online: bool | None = None
        self._cache_time: float = 0.0
        self._last_checked: datetime | None = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, paper_width={self.config.paper_width}, "
            f"margin_bottom={self.config.margin_bottom})"
        )

    @property
    def is_connected(self) -> bool:
        """Check if the printer is currently connected."""
        return self._connected

    def get_cached_online_status(self) -> bool | None:
        """Get cached online status without blocking.

        Returns:
            True/False if we have a recent cached status (within TTL),
            None if no cached status available.
        """
        if self._cached_online is None:
            return None
        if time.monotonic() - self._cache_time > STATUS_CACHE_TTL:
            return None
        return self._cached_online

    def _update_cache(self, online: bool) -> None:
        self._cached_online = online
        self._cache_time = time.monotonic()
        self._last_checked = datetime.now()

    @property
    def last_checked(self) -> datetime | None:
        return self._last_checked

    @abstractmethod
    async def connect(self) -> None:
        """Open the transport.

        Raises:
            ConnectionError: If connection fails.
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the transport."""
        pass

    @abstractmethod
    async def _write(self, data: bytes) -> None:
        """Write bytes to an open transport.

        Raises:
            ConnectionError: If not connected or the write fails.
        """
        pass

    async def is_online(self) -> bool:
        """Check whether the transport can be opened.

        Returns:
            True if printer is reachable.
        """
        if self._connected:
            self._update_cache(True)
            return True
        try:
            await self.connect()
        except (ConnectionError, PrinterError) as e:
            logger.warning(f"Printer {self.name}: connection failed - {e}")
            self._update_cache(False)
            return False
        await self.disconnect()
        self._update_cache(True)
        return True

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[None]:
        """Hold the transport open for one operation.

        A transport that was already open is left open afterwards.
        """
        if self._connected:
            yield
            return
        await self.connect()
        try:
            yield
        finally:
            await self.disconnect()

    def render_pages(self, bitmap: Bitmap) -> list[bytes]:
        """Turn a job bitmap into the command bytes for each page.

        The transformer runs first; if it returns None there is nothing to
        print. The result is split at cutlines and every page is aligned on the
        paper, given its bottom margin, encoded in bands and followed by the
        cut command.
        """
        transformed = self.transformer(bitmap)
        if transformed is None:
            return []
        pages = []
        for page in cut_pages(transformed):
            # Pages may alias the caller's bitmap; margins are added in place.
            page = page.copy()
            page.apply_auto_margin_left(self.config.paper_width)
            page.add_margin_bottom(self.config.margin_bottom)
            pages.append(encode_raster(page, self.config.band_height) + self.config.cut_command)
        return pages

    async def print_bitmap(self, bitmap: Bitmap) -> None:
        """Print a raster image, one cut per page.

        Raises:
            ConnectionError: If the printer cannot be reached.
        """
        pages = self.render_pages(bitmap)
        if not pages:
            logger.info(f"Printer {self.name}: transformer suppressed the job")
            return
        async with self._session():
            await self._write(RESET_COMMAND)
            for i, page in enumerate(pages):
                await self._write(page)
                logger.debug(f"Printer {self.name}: sent page {i + 1}/{len(pages)} ({len(page)} bytes)")
                if self.config.page_delay > 0:
                    await asyncio.sleep(self.config.page_delay)

    async def print_raw(self, data: bytes) -> None:
        """Send raw data to the printer.

        Args:
            data: ESC/POS command bytes, passed through untouched.

        Raises:
            PrinterError: If there is nothing to send.
            ConnectionError: If not connected or connection lost.
        """
        if not data:
            raise PrinterError("No data to print")
        async with self._session():
            await self._write(data)

    async def open_cash_drawer(self) -> None:
        """Pulse the cash drawer connected to the printer."""
        async with self._session():
            await self._write(RESET_COMMAND)
            await self._write(self.config.cash_drawer_command)
        logger.info(f"Printer {self.name}: cash drawer opened")

    async def __aenter__(self) -> "BasePrinter":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()
