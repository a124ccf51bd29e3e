"""Named printers built from the application config."""

import logging
from collections.abc import Iterator

from rasterpos.config import AppConfig
from rasterpos.printers import BasePrinter, create_printer

logger = logging.getLogger(__name__)


class UnknownPrinterError(KeyError):
    """Raised when a job names a printer that is not configured."""

    def __str__(self) -> str:
        return f"Unknown printer: {self.args[0]}" if self.args else "Unknown printer"


class PrinterRegistry:
    """Lookup table of printer instances by name."""

    def __init__(self, printers: dict[str, BasePrinter] | None = None) -> None:
        self._printers: dict[str, BasePrinter] = dict(printers or {})

    @classmethod
    def from_config(cls, config: AppConfig) -> "PrinterRegistry":
        """Create printers for every enabled entry in ``config``.

        Entries that cannot be instantiated are logged and skipped.
        """
        registry = cls()
        for printer_config in config.printers:
            if not printer_config.enabled:
                logger.info(f"Printer {printer_config.name} is disabled, skipping")
                continue
            try:
                registry.add(create_printer(printer_config))
            except ValueError as e:
                logger.error(f"Failed to create printer {printer_config.name}: {e}")
        logger.info(f"Registered {len(registry)} printers")
        return registry

    def add(self, printer: BasePrinter) -> None:
        if printer.name in self._printers:
            raise ValueError(f"Printer {printer.name} is already registered")
        self._printers[printer.name] = printer

    def get(self, name: str) -> BasePrinter:
        """Return the printer called ``name``.

        Raises:
            UnknownPrinterError: If no such printer is registered.
        """
        try:
            return self._printers[name]
        except KeyError:
            raise UnknownPrinterError(name) from None

    def names(self) -> list[str]:
        return sorted(self._printers)

    def __contains__(self, name: object) -> bool:
        return name in self._printers

    def __iter__(self) -> Iterator[BasePrinter]:
        return iter(self._printers.values())

    def __len__(self) -> int:
        return len(self._printers)

    async def close_all(self) -> None:
        for printer in self._printers.values():
            if printer.is_connected:
                await printer.disconnect()
