"""USB printer exposed by the kernel as a character device (e.g. /dev/usb/lp0)."""

import asyncio
import logging
from typing import BinaryIO

from rasterpos.models.printer import PrinterConfig, USBConnection
from rasterpos.printers.base import BasePrinter, PrinterError

logger = logging.getLogger(__name__)


class USBPrinter(BasePrinter):
    """ESC/POS printer written through its device file."""

    def __init__(self, config: PrinterConfig, **kwargs) -> None:
        super().__init__(config, **kwargs)
        if not isinstance(config.connection, USBConnection):
            raise PrinterError(f"Unsupported connection type for USB printer: {type(config.connection)}")
        self.connection: USBConnection = config.connection
        self._device: BinaryIO | None = None

    async def connect(self) -> None:
        if self._connected:
            return
        try:
            self._device = await asyncio.to_thread(open, self.connection.device, "wb", buffering=0)
        except OSError as e:
            raise ConnectionError(f"Failed to open USB printer {self.connection.device}: {e}") from e
        self._connected = True

    async def disconnect(self) -> None:
        if self._device:
            self._device.close()
            self._device = None
        self._connected = False

    async def _write(self, data: bytes) -> None:
        if not self._device:
            raise ConnectionError("Printer not connected")
        try:
            await asyncio.to_thread(self._device.write, data)
        except OSError as e:
            await self.disconnect()
            raise ConnectionError(f"Failed to write to {self.connection.device}: {e}") from e
