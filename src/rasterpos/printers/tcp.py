"""Network printer reached over a raw TCP socket (usually port 9100)."""

import asyncio
import logging

from rasterpos.models.printer import PrinterConfig, TCPConnection
from rasterpos.printers.base import BasePrinter, PrinterError

logger = logging.getLogger(__name__)


class TCPPrinter(BasePrinter):
    """ESC/POS printer on the network."""

    def __init__(self, config: PrinterConfig, **kwargs) -> None:
        super().__init__(config, **kwargs)
        if not isinstance(config.connection, TCPConnection):
            raise PrinterError(f"Unsupported connection type for TCP printer: {type(config.connection)}")
        self.connection: TCPConnection = config.connection
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    async def connect(self) -> None:
        if self._connected:
            return
        conn = self.connection
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(conn.host, conn.port),
                timeout=conn.timeout,
            )
        except TimeoutError as e:
            raise ConnectionError(f"Timeout connecting to {conn.host}:{conn.port}") from e
        except OSError as e:
            raise ConnectionError(f"Failed to connect to {conn.host}:{conn.port}: {e}") from e
        self._connected = True
        logger.debug(f"Printer {self.name}: connected to {conn.host}:{conn.port}")

    async def disconnect(self) -> None:
        if self._writer:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except OSError as e:
                logger.debug(f"Printer {self.name}: error while closing socket - {e}")
            self._writer = None
            self._reader = None
        self._connected = False

    async def _write(self, data: bytes) -> None:
        if not self._writer:
            raise ConnectionError("Printer not connected")
        try:
            self._writer.write(data)
            await asyncio.wait_for(self._writer.drain(), timeout=self.connection.timeout)
        except (OSError, TimeoutError) as e:
            await self.disconnect()
            raise ConnectionError(f"Failed to write to {self.connection.host}:{self.connection.port}: {e}") from e
