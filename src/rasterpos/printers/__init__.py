"""Printer implementations for rasterpos."""

from rasterpos.models.printer import PrinterConfig, PrinterType
from rasterpos.printers.base import BasePrinter, PrinterError
from rasterpos.printers.file import FilePrinter
from rasterpos.printers.serial import SerialPrinter
from rasterpos.printers.tcp import TCPPrinter
from rasterpos.printers.usb import USBPrinter

__all__ = [
    "BasePrinter",
    "FilePrinter",
    "PrinterError",
    "SerialPrinter",
    "TCPPrinter",
    "USBPrinter",
    "create_printer",
]


def create_printer(config: PrinterConfig) -> BasePrinter:
    """Factory function to create a printer instance from config."""
    printer_classes = {
        PrinterType.USB: USBPrinter,
        PrinterType.TCP: TCPPrinter,
        PrinterType.SERIAL: SerialPrinter,
        PrinterType.FILE: FilePrinter,
    }
    printer_class = printer_classes.get(config.type)
    if not printer_class:
        raise ValueError(f"Unknown printer type: {config.type}")
    return printer_class(config)
