"""Pydantic models for rasterpos."""

from rasterpos.models.job import JobKind, JobStatus, PrintJob
from rasterpos.models.printer import (
    FileConnection,
    PrinterConfig,
    PrinterType,
    SerialConnection,
    TCPConnection,
    USBConnection,
)

__all__ = [
    "FileConnection",
    "JobKind",
    "JobStatus",
    "PrintJob",
    "PrinterConfig",
    "PrinterType",
    "SerialConnection",
    "TCPConnection",
    "USBConnection",
]
