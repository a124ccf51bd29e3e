"""Printer attached to a serial port (including USB virtual COM ports)."""

import asyncio
import logging

import serial

from rasterpos.models.printer import PrinterConfig, SerialConnection
from rasterpos.printers.base import BasePrinter, PrinterError

logger = logging.getLogger(__name__)


class SerialPrinter(BasePrinter):
    """ESC/POS printer on a serial line."""

    def __init__(self, config: PrinterConfig, **kwargs) -> None:
        super().__init__(config, **kwargs)
        if not isinstance(config.connection, SerialConnection):
            raise PrinterError(f"Unsupported connection type for serial printer: {type(config.connection)}")
        self.connection: SerialConnection = config.connection
        self._serial: serial.Serial | None = None

    async def connect(self) -> None:
        if self._connected:
            return
        conn = self.connection
        try:
            self._serial = serial.Serial(
                port=conn.device,
                baudrate=conn.baudrate,
                bytesize=conn.bytesize,
                parity=conn.parity,
                stopbits=conn.stopbits,
                timeout=5.0,
                write_timeout=5.0,
            )
        except serial.SerialException as e:
            raise ConnectionError(f"Failed to open serial port {conn.device}: {e}") from e
        self._connected = True

    async def disconnect(self) -> None:
        if self._serial:
            self._serial.close()
            self._serial = None
        self._connected = False

    async def _write(self, data: bytes) -> None:
        if not self._serial:
            raise ConnectionError("Printer not connected")
        # Run blocking serial write in executor
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._serial.write, data)
        except serial.SerialException as e:
            await self.disconnect()
            raise ConnectionError(f"Failed to write to {self.connection.device}: {e}") from e
