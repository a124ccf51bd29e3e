"""Tests for Pydantic models."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from rasterpos.models.job import JobKind, JobStatus, PrintJob
from rasterpos.models.printer import (
    DEFAULT_CASH_DRAWER_COMMAND,
    DEFAULT_CUT_COMMAND,
    FileConnection,
    PrinterConfig,
    PrinterType,
    SerialConnection,
    TCPConnection,
    USBConnection,
)
from rasterpos.raster.bitmap import Bitmap


class TestPrinterConfig:
    def test_tcp_printer_config(self):
        config = PrinterConfig(
            name="front-counter",
            type=PrinterType.TCP,
            connection=TCPConnection(host="192.168.1.100", port=9100),
        )
        assert config.name == "front-counter"
        assert config.type == PrinterType.TCP
        assert config.connection.host == "192.168.1.100"
        assert config.enabled is True

    def test_defaults(self):
        config = PrinterConfig(name="p", type="usb", connection={"type": "usb", "device": "/dev/usb/lp0"})
        assert config.paper_width == 576
        assert config.margin_bottom == 120
        assert config.band_height == 1024
        assert config.cut_command == DEFAULT_CUT_COMMAND == b"\x1dV\x01"
        assert config.cash_drawer_command == DEFAULT_CASH_DRAWER_COMMAND
        assert config.transformer == "identity"

    def test_hex_commands(self):
        config = PrinterConfig(
            name="p",
            type="tcp",
            connection={"type": "tcp", "host": "printer"},
            cut_command="1d 56 42 00",
            cash_drawer_command="1b7001",
        )
        assert config.cut_command == b"\x1dVB\x00"
        assert config.cash_drawer_command == b"\x1bp\x01"

    @pytest.mark.parametrize("value", ["", "zz", None])
    def test_bad_hex_uses_default(self, value):
        config = PrinterConfig(
            name="p", type="tcp", connection={"type": "tcp", "host": "printer"}, cut_command=value
        )
        assert config.cut_command == DEFAULT_CUT_COMMAND

    @pytest.mark.parametrize("field", ["paper_width", "margin_bottom"])
    def test_non_positive_uses_default(self, field):
        config = PrinterConfig(name="p", type="tcp", connection={"type": "tcp", "host": "printer"}, **{field: 0})
        assert getattr(config, field) == PrinterConfig.model_fields[field].default

    def test_connection_type_must_match(self):
        with pytest.raises(ValidationError):
            PrinterConfig(name="p", type="serial", connection=TCPConnection(host="printer"))

    def test_invalid_type(self):
        with pytest.raises(ValidationError):
            PrinterConfig(name="p", type="zpl", connection=TCPConnection(host="printer"))


class TestAddressShorthand:
    """Tests for the compact ``address`` form."""

    def test_tcp_address(self):
        config = PrinterConfig.model_validate({"name": "p", "type": "tcp", "address": "10.0.0.7:9101"})
        assert config.connection == TCPConnection(host="10.0.0.7", port=9101)

    def test_tcp_address_without_port(self):
        assert TCPConnection.from_address("10.0.0.7") == TCPConnection(host="10.0.0.7")

    def test_serial_address(self):
        config = PrinterConfig.model_validate(
            {"name": "p", "type": "serial", "address": "COM3,baud=9600,databits=7,parity=o,stopbits=2"}
        )
        assert config.connection == SerialConnection(device="COM3", baudrate=9600, bytesize=7, parity="O", stopbits=2)

    def test_serial_address_ignores_junk(self):
        connection = SerialConnection.from_address("COM1,baud=fast,bogus,parity=X")
        assert connection == SerialConnection(device="COM1")

    def test_usb_and_file_addresses(self):
        usb = PrinterConfig.model_validate({"name": "u", "type": "usb", "address": "/dev/usb/lp1"})
        out = PrinterConfig.model_validate({"name": "f", "type": "file", "address": "/tmp/out"})
        assert usb.connection == USBConnection(device="/dev/usb/lp1")
        assert out.connection == FileConnection(directory="/tmp/out")


class TestPrintJob:
    def test_raster_job(self):
        bitmap = Bitmap(8, 1)
        job = PrintJob(printer_name="p", bitmap=bitmap)
        assert job.kind == JobKind.RASTER
        assert job.status == JobStatus.PENDING
        assert job.bitmap is bitmap

    def test_raster_job_needs_bitmap(self):
        with pytest.raises(ValidationError):
            PrintJob(printer_name="p", kind=JobKind.RASTER)

    def test_raw_job_needs_data(self):
        with pytest.raises(ValidationError):
            PrintJob(printer_name="p", kind=JobKind.RAW, data=b"")

    def test_cash_drawer_job(self):
        job = PrintJob(printer_name="p", kind="cash_drawer")
        assert job.kind == JobKind.CASH_DRAWER

    def test_unique_ids(self):
        first = PrintJob(printer_name="p", kind=JobKind.CASH_DRAWER)
        second = PrintJob(printer_name="p", kind=JobKind.CASH_DRAWER)
        assert first.id != second.id

    def test_is_expired(self):
        job = PrintJob(printer_name="p", kind=JobKind.CASH_DRAWER, created_at=datetime.now() - timedelta(seconds=61))
        assert job.is_expired(60)
        assert not job.is_expired(120)
