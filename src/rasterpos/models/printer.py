"""Printer configuration models."""

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CUT_COMMAND = bytes.fromhex("1d5601")
DEFAULT_CASH_DRAWER_COMMAND = bytes.fromhex("1b700019fa")


class PrinterType(StrEnum):
    """Supported printer transports."""

    USB = "usb"
    TCP = "tcp"
    SERIAL = "serial"
    FILE = "file"


class TCPConnection(BaseModel):
    """TCP/IP connection configuration (raw port, usually 9100)."""

    type: Literal["tcp"] = "tcp"
    host: str
    port: int = 9100
    timeout: float = 5.0

    @classmethod
    def from_address(cls, address: str) -> "TCPConnection":
        """Parse ``host`` or ``host:port``."""
        host, _, port = address.rpartition(":")
        if not host:
            return cls(host=address)
        return cls(host=host, port=int(port))


class SerialConnection(BaseModel):
    """Serial port connection configuration."""

    type: Literal["serial"] = "serial"
    device: str
    baudrate: int = 115200
    bytesize: int = 8
    parity: str = "N"
    stopbits: float = 1

    @classmethod
    def from_address(cls, address: str) -> "SerialConnection":
        """Parse ``"COM1,baud=115200,databits=8,parity=N,stopbits=1"``.

        Unknown keys and unparsable values are ignored and keep their defaults.
        """
        parts = [p.strip() for p in address.split(",")]
        values: dict[str, Any] = {"device": parts[0] or "COM1"}
        for part in parts[1:]:
            key, sep, value = part.partition("=")
            if not sep:
                continue
            key = key.strip().lower()
            value = value.strip()
            if key == "baud" and value.isdigit():
                values["baudrate"] = int(value)
            elif key == "databits" and value.isdigit():
                values["bytesize"] = int(value)
            elif key == "parity" and value.upper() in ("N", "O", "E"):
                values["parity"] = value.upper()
            elif key == "stopbits" and value == "2":
                values["stopbits"] = 2
        return cls(**values)


class USBConnection(BaseModel):
    """USB printer exposed as a device file (e.g. /dev/usb/lp0)."""

    type: Literal["usb"] = "usb"
    device: str


class FileConnection(BaseModel):
    """Directory where a file printer writes its output."""

    type: Literal["file"] = "file"
    directory: str


ConnectionConfig = Annotated[
    TCPConnection | SerialConnection | USBConnection | FileConnection,
    Field(discriminator="type"),
]


def _parse_command(value: Any, default: bytes) -> bytes:
    if isinstance(value, bytes):
        return value or default
    if not value:
        return default
    try:
        parsed = bytes.fromhex(str(value).replace(" ", ""))
    except ValueError:
        return default
    return parsed or default


class PrinterConfig(BaseModel):
    """Configuration for a single printer.

    ``cut_command`` and ``cash_drawer_command`` are given as hex strings; an
    empty or malformed value falls back to the standard command.
    """

    name: str
    type: PrinterType
    connection: ConnectionConfig
    enabled: bool = True
    paper_width: int = 576
    margin_bottom: int = 120
    band_height: int = 1024
    cut_command: bytes = DEFAULT_CUT_COMMAND
    cash_drawer_command: bytes = DEFAULT_CASH_DRAWER_COMMAND
    transformer: str = "identity"
    page_delay: float = 1.0

    @model_validator(mode="before")
    @classmethod
    def _connection_from_address(cls, data: Any) -> Any:
        """Accept the compact ``address`` form used by older configs."""
        if not isinstance(data, dict) or "connection" in data or "address" not in data:
            return data
        data = dict(data)
        address = str(data.pop("address"))
        printer_type = str(data.get("type", "")).lower()
        if printer_type == PrinterType.TCP:
            data["connection"] = TCPConnection.from_address(address)
        elif printer_type == PrinterType.SERIAL:
            data["connection"] = SerialConnection.from_address(address)
        elif printer_type == PrinterType.USB:
            data["connection"] = USBConnection(device=address)
        elif printer_type == PrinterType.FILE:
            data["connection"] = FileConnection(directory=address)
        return data

    @field_validator("cut_command", mode="before")
    @classmethod
    def _parse_cut_command(cls, value: Any) -> bytes:
        return _parse_command(value, DEFAULT_CUT_COMMAND)

    @field_validator("cash_drawer_command", mode="before")
    @classmethod
    def _parse_cash_drawer_command(cls, value: Any) -> bytes:
        return _parse_command(value, DEFAULT_CASH_DRAWER_COMMAND)

    @field_validator("paper_width", "margin_bottom")
    @classmethod
    def _non_positive_uses_default(cls, value: int, info) -> int:
        if value <= 0:
            return cls.model_fields[info.field_name].default
        return value

    @model_validator(mode="after")
    def _check_connection_type(self) -> "PrinterConfig":
        if self.connection.type != self.type:
            raise ValueError(f"Connection type '{self.connection.type}' does not match printer type '{self.type}'")
        return self
