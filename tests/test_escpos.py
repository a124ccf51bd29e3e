"""Tests for the GS v 0 raster codec."""

import pytest

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.escpos import RASTER_HEADER, decode_bitmap, decode_raster, encode_raster, low_high


class TestEncodeRaster:
    """Tests for encoding bitmaps as raster commands."""

    def test_low_high(self):
        assert low_high(0x1234) == (0x34, 0x12)
        assert low_high(72) == (72, 0)

    def test_single_block(self):
        """A bitmap shorter than the band height is one block."""
        bitmap = Bitmap(16, 2, b"\x01\x02\x03\x04")
        assert encode_raster(bitmap) == b"\x1dv0\x00\x02\x00\x02\x00\x01\x02\x03\x04"

    def test_bands(self):
        """Tall bitmaps are split into blocks of at most max_height rows."""
        bitmap = Bitmap(8, 5, b"\x01\x02\x03\x04\x05")
        data = encode_raster(bitmap, max_height=2)
        assert data == (
            RASTER_HEADER + b"\x01\x00\x02\x00\x01\x02"
            + RASTER_HEADER + b"\x01\x00\x02\x00\x03\x04"
            + RASTER_HEADER + b"\x01\x00\x01\x00\x05"
        )

    def test_max_height_not_smaller_than_height(self):
        """A band height covering the whole bitmap gives one block."""
        bitmap = Bitmap(8, 3)
        assert encode_raster(bitmap, 3) == encode_raster(bitmap, 0)
        assert len(decode_raster(encode_raster(bitmap, 3))) == 1

    def test_empty_bitmap(self):
        assert encode_raster(Bitmap(0, 0)) == b""

    def test_receipt_width(self):
        """A 576 pixel wide bitmap declares 72 bytes per row."""
        data = encode_raster(Bitmap(576, 1024), 1024)
        assert data[4:8] == b"\x48\x00\x00\x04"
        assert len(data) == 8 + 72 * 1024


class TestDecodeRaster:
    """Tests for parsing raster command streams."""

    def test_decode_blocks(self):
        bitmap = Bitmap(16, 3, bytes(range(6)))
        blocks = decode_raster(encode_raster(bitmap, 2))
        assert [(b.width_bytes, b.height) for b in blocks] == [(2, 2), (2, 1)]
        assert blocks[0].data == bytes(range(4))
        assert blocks[0].mode == 0

    def test_decode_bitmap_reassembles_bands(self):
        """Decoding the bands restores the encoded bitmap."""
        bitmap = Bitmap(24, 7, bytes(range(21)))
        assert decode_bitmap(encode_raster(bitmap, 3)) == bitmap

    def test_decode_empty(self):
        assert decode_raster(b"") == []
        assert decode_bitmap(b"") is None

    def test_bad_header(self):
        with pytest.raises(ValueError):
            decode_raster(b"\x1b@")

    def test_truncated_body(self):
        data = encode_raster(Bitmap(8, 4, b"\xff" * 4))
        with pytest.raises(ValueError):
            decode_raster(data[:-1])
