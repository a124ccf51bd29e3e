"""Tests for the printer registry."""

import pytest

from rasterpos.config import AppConfig
from rasterpos.printers import FilePrinter, TCPPrinter
from rasterpos.registry import PrinterRegistry, UnknownPrinterError


@pytest.fixture
def app_config(tmp_path):
    return AppConfig.model_validate(
        {
            "printers": [
                {"name": "kitchen", "type": "tcp", "address": "10.0.0.20:9100", "transformer": "kitchen"},
                {"name": "archive", "type": "file", "address": str(tmp_path)},
                {"name": "old", "type": "usb", "address": "/dev/usb/lp9", "enabled": False},
            ]
        }
    )


class TestPrinterRegistry:
    def test_from_config_skips_disabled(self, app_config):
        registry = PrinterRegistry.from_config(app_config)
        assert registry.names() == ["archive", "kitchen"]
        assert len(registry) == 2
        assert "old" not in registry

    def test_get(self, app_config):
        registry = PrinterRegistry.from_config(app_config)
        assert isinstance(registry.get("kitchen"), TCPPrinter)
        assert isinstance(registry.get("archive"), FilePrinter)

    def test_get_unknown(self, app_config):
        registry = PrinterRegistry.from_config(app_config)
        with pytest.raises(UnknownPrinterError) as exc_info:
            registry.get("bar")
        assert str(exc_info.value) == "Unknown printer: bar"

    def test_add_duplicate(self, app_config):
        registry = PrinterRegistry.from_config(app_config)
        with pytest.raises(ValueError):
            registry.add(registry.get("kitchen"))

    def test_iteration(self, app_config):
        registry = PrinterRegistry.from_config(app_config)
        assert sorted(p.name for p in registry) == ["archive", "kitchen"]

    async def test_close_all(self, app_config):
        registry = PrinterRegistry.from_config(app_config)
        archive = registry.get("archive")
        await archive.connect()
        assert archive.is_connected
        await registry.close_all()
        assert not archive.is_connected
