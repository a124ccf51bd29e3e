"""ESC/POS ``GS v 0`` raster bit-image command codec.

Each block is::

    1D 76 30 00 xL xH yL yH <rows>

where ``xL/xH`` is the row width in bytes and ``yL/yH`` the number of rows in
the block, both little-endian 16-bit values.
"""

from __future__ import annotations

from dataclasses import dataclass

from rasterpos.raster.bitmap import Bitmap

GS = 0x1D
RASTER_HEADER = bytes([GS, ord("v"), 0x30, 0x00])
HEADER_SIZE = 8


def low_high(value: int) -> tuple[int, int]:
    """Split ``value`` into its low and high bytes."""
    return value & 0xFF, (value >> 8) & 0xFF


def _block(width_bytes: int, rows: int, data: bytes | bytearray) -> bytes:
    xl, xh = low_high(width_bytes)
    yl, yh = low_high(rows)
    return RASTER_HEADER + bytes([xl, xh, yl, yh]) + bytes(data)


def encode_raster(bitmap: Bitmap, max_height: int = 0) -> bytes:
    """Serialize ``bitmap`` as one or more raster blocks.

    Args:
        bitmap: Image to encode.
        max_height: Maximum rows per block. ``0`` (or any value not smaller
            than the bitmap height) emits a single block.

    Returns:
        The concatenated command bytes, or ``b""`` for an empty bitmap.
    """
    if bitmap.is_empty():
        return b""
    wb = bitmap.width_bytes
    if max_height <= 0 or max_height >= bitmap.height:
        return _block(wb, bitmap.height, bitmap.content)

    out = bytearray()
    for start in range(0, bitmap.height, max_height):
        rows = min(max_height, bitmap.height - start)
        out += _block(wb, rows, bitmap.content[start * wb : (start + rows) * wb])
    return bytes(out)


@dataclass
class RasterBlock:
    """A decoded ``GS v 0`` block."""

    width_bytes: int
    height: int
    data: bytes
    mode: int = 0

    def to_bitmap(self) -> Bitmap:
        return Bitmap.from_bytes(self.width_bytes * 8, self.height, self.data)


def decode_raster(data: bytes) -> list[RasterBlock]:
    """Parse consecutive raster blocks from ``data``.

    Raises:
        ValueError: If the stream contains anything other than complete
            raster blocks.
    """
    blocks = []
    pos = 0
    while pos < len(data):
        header = data[pos : pos + HEADER_SIZE]
        if len(header) < HEADER_SIZE or header[:3] != RASTER_HEADER[:3]:
            raise ValueError(f"Expected raster block header at offset {pos}")
        mode = header[3]
        width_bytes = header[4] | header[5] << 8
        height = header[6] | header[7] << 8
        size = width_bytes * height
        body = data[pos + HEADER_SIZE : pos + HEADER_SIZE + size]
        if len(body) != size:
            raise ValueError(f"Truncated raster block at offset {pos}: expected {size} bytes, got {len(body)}")
        blocks.append(RasterBlock(width_bytes, height, bytes(body), mode))
        pos += HEADER_SIZE + size
    return blocks


def decode_bitmap(data: bytes) -> Bitmap | None:
    """Reassemble the bitmap encoded by :func:`encode_raster`.

    Returns None if the stream is empty or the blocks disagree on width.
    """
    result: Bitmap | None = None
    for block in decode_raster(data):
        bitmap = block.to_bitmap()
        result = bitmap if result is None else result.with_append(bitmap)
        if result is None:
            return None
    return result
