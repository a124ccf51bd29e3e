"""Pytest configuration and fixtures."""

import pytest

from rasterpos.models.printer import FileConnection, PrinterConfig, TCPConnection
from rasterpos.raster.bitmap import Bitmap


def bitmap_from_ascii(rows: list[str], width: int | None = None) -> Bitmap:
    """Build a bitmap from rows of '#' (black) and '.' (white)."""
    height = len(rows)
    width = width if width is not None else max((len(r) for r in rows), default=0)
    bitmap = Bitmap(width, height)
    for y, row in enumerate(rows):
        for x, char in enumerate(row):
            if char == "#":
                bitmap.set_pixel_black(x, y)
    return bitmap


def bitmap_to_ascii(bitmap, width: int | None = None) -> list[str]:
    """Inverse of :func:`bitmap_from_ascii` for a Bitmap or SubImage."""
    width = width if width is not None else bitmap.width
    return ["".join("#" if bitmap.get_pixel(x, y) else "." for x in range(width)) for y in range(bitmap.height)]


@pytest.fixture
def ascii_bitmap():
    """Factory turning ASCII art into bitmaps."""
    return bitmap_from_ascii


@pytest.fixture
def to_ascii():
    """Render a bitmap or view back to ASCII art."""
    return bitmap_to_ascii


@pytest.fixture
def tcp_printer_config():
    """A TCP printer configuration with no delay between pages."""
    return PrinterConfig(
        name="counter",
        type="tcp",
        connection=TCPConnection(host="127.0.0.1", port=9100),
        page_delay=0,
    )


@pytest.fixture
def file_printer_config(tmp_path):
    """A file printer writing into a temporary directory."""
    return PrinterConfig(
        name="archive",
        type="file",
        connection=FileConnection(directory=str(tmp_path / "out")),
        page_delay=0,
    )
