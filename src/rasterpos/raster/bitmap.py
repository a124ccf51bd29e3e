"""Packed 1-bit-per-pixel monochrome bitmap.

Pixels are stored row-major, MSB first: pixel (x, y) lives in byte
``y * (width // 8) + x // 8`` at bit ``7 - x % 8``. A set bit is black (ink).
Width is always a multiple of 8.

Geometric ``with_*`` operations return a new bitmap (or ``None`` when the
geometry is invalid) and leave the receiver untouched. Pixel setters and the
``add_margin_*`` family mutate in place.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from rasterpos.raster.geometry import Rect

if TYPE_CHECKING:
    from rasterpos.raster.view import SubImage


class Alignment(StrEnum):
    """Horizontal placement of a bitmap on wider paper."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: "str | Alignment | None") -> "Alignment":
        """Parse an alignment string, treating anything unknown as centered."""
        if isinstance(value, Alignment):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.CENTER


def _round_up8(value: int) -> int:
    return (value + 7) // 8 * 8


class Bitmap:
    """A monochrome raster image with byte-aligned rows."""

    def __init__(
        self,
        width: int,
        height: int,
        content: bytes | bytearray | None = None,
        align: str | Alignment = Alignment.CENTER,
    ) -> None:
        """Create a bitmap.

        Args:
            width: Width in pixels. Rounded up to a multiple of 8.
            height: Height in pixels.
            content: Packed rows. A buffer whose length does not match
                ``height * width // 8`` is ignored and the bitmap starts white.
            align: Placement used by ``auto_margin_left``.

        Raises:
            ValueError: If width or height is negative.
        """
        if width < 0 or height < 0:
            raise ValueError(f"Bitmap dimensions must not be negative, got {width}x{height}")
        self.width = _round_up8(width)
        self.height = height
        self.align = Alignment.parse(align)
        size = self.height * self.width // 8
        if content is not None and len(content) == size:
            self.content = bytearray(content)
        else:
            self.content = bytearray(size)

    @classmethod
    def from_bytes(
        cls,
        width: int,
        height: int,
        content: bytes,
        align: str | Alignment = Alignment.CENTER,
    ) -> "Bitmap":
        """Build a bitmap from an already-decoded packed buffer (e.g. an ePOS <image> element)."""
        return cls(width, height, content, align)

    @property
    def width_bytes(self) -> int:
        return self.width // 8

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def copy(self) -> "Bitmap":
        return Bitmap(self.width, self.height, self.content, self.align)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitmap):
            return NotImplemented
        return self.width == other.width and self.height == other.height and self.content == other.content

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Bitmap(width={self.width}, height={self.height}, "
            f"align={self.align.value}, content_length={len(self.content)})"
        )

    # Pixel access

    def _normalize(self, x: int, y: int) -> tuple[int, int]:
        if x < 0:
            x += self.width
        if y < 0:
            y += self.height
        return x, y

    def get_pixel(self, x: int, y: int) -> int:
        """Return 1 for black, 0 for white.

        Negative coordinates count from the right/bottom edge. Anything still
        outside the bitmap reads as white.
        """
        x, y = self._normalize(x, y)
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return 0
        return (self.content[y * self.width_bytes + (x >> 3)] >> (7 - (x & 7))) & 1

    def set_pixel(self, x: int, y: int, value: int) -> None:
        """Set a pixel in place. Out-of-bounds writes are ignored."""
        x, y = self._normalize(x, y)
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return
        index = y * self.width_bytes + (x >> 3)
        mask = 1 << (7 - (x & 7))
        if value:
            self.content[index] |= mask
        else:
            self.content[index] &= ~mask & 0xFF

    def set_pixel_black(self, x: int, y: int) -> None:
        self.set_pixel(x, y, 1)

    def set_pixel_white(self, x: int, y: int) -> None:
        self.set_pixel(x, y, 0)

    def row(self, y: int) -> bytes:
        """Packed bytes of row ``y`` (negative counts from the bottom)."""
        if y < 0:
            y += self.height
        if y < 0 or y >= self.height:
            raise IndexError(f"Row {y} out of range for height {self.height}")
        start = y * self.width_bytes
        return bytes(self.content[start : start + self.width_bytes])

    def row_bits(self, y: int) -> int:
        """Row ``y`` as an integer whose most significant bit is pixel x=0."""
        start = y * self.width_bytes
        return int.from_bytes(self.content[start : start + self.width_bytes], "big")

    def store_row_bits(self, y: int, value: int) -> None:
        start = y * self.width_bytes
        self.content[start : start + self.width_bytes] = value.to_bytes(self.width_bytes, "big")

    # Queries

    def black_ratio(self) -> float:
        """Fraction of black pixels, 0.0 for an empty bitmap."""
        total = len(self.content) * 8
        if total == 0:
            return 0.0
        return sum(b.bit_count() for b in self.content) / total

    def is_all_black(self) -> bool:
        return bool(self.content) and all(b == 0xFF for b in self.content)

    def is_all_white(self) -> bool:
        return bool(self.content) and not any(self.content)

    def is_white_row(self, y: int) -> bool:
        if y < 0 or y >= self.height:
            return False
        start = y * self.width_bytes
        return not any(self.content[start : start + self.width_bytes])

    def is_white_column(self, x: int) -> bool:
        if x < 0 or x >= self.width:
            return False
        return all(self.get_pixel(x, y) == 0 for y in range(self.height))

    def is_white_border(self) -> bool:
        """True if the outermost 1-pixel ring is entirely white."""
        if self.is_empty():
            return False
        if not self.is_white_row(0) or not self.is_white_row(self.height - 1):
            return False
        return self.is_white_column(0) and self.is_white_column(self.width - 1)

    def is_single_text_line(self) -> bool:
        """True if the inked rows form one contiguous band."""
        if self.is_empty():
            return False
        top = 0
        while top < self.height and self.is_white_row(top):
            top += 1
        bottom = self.height - 1
        while bottom >= top and self.is_white_row(bottom):
            bottom -= 1
        if top > bottom:
            return False
        return not any(self.is_white_row(y) for y in range(top, bottom + 1))

    # Views

    def select(self, rect: Rect) -> SubImage | None:
        """Return a non-copying view of ``rect`` clipped to the bitmap, or None if empty."""
        from rasterpos.raster.view import SubImage

        area = rect.intersect(self.bounds)
        if area.is_empty():
            return None
        return SubImage(self, area)

    def select_all(self) -> SubImage | None:
        return self.select(self.bounds)

    def select_rows(self, y0: int, y1: int) -> SubImage | None:
        """View of rows [y0, y1); negative values count from the bottom."""
        if y0 < 0:
            y0 += self.height
        if y1 < 0:
            y1 += self.height
        return self.select(Rect(0, y0, self.width, y1))

    def select_cols(self, x0: int, x1: int) -> SubImage | None:
        """View of columns [x0, x1); negative values count from the right."""
        if x0 < 0:
            x0 += self.width
        if x1 < 0:
            x1 += self.width
        return self.select(Rect(x0, 0, x1, self.height))

    # Geometric edits returning new bitmaps

    def with_crop(self, x: int, y: int, width: int, height: int) -> "Bitmap | None":
        """Return the ``width`` x ``height`` region at (x, y) as a new bitmap.

        Negative x/y count from the far edge. The region must be non-empty and
        lie fully inside the bitmap, otherwise None is returned. A width that is
        not a multiple of 8 is padded with white on the right.
        """
        if self.is_empty():
            return None
        x, y = self._normalize(x, y)
        if x < 0 or y < 0 or width <= 0 or height <= 0:
            return None
        if x + width > self.width or y + height > self.height:
            return None

        result = Bitmap(width, height, align=self.align)
        shift = self.width - x - width
        mask = (1 << width) - 1
        pad = result.width - width
        for row in range(height):
            bits = (self.row_bits(y + row) >> shift) & mask
            result.store_row_bits(row, bits << pad)
        return result

    def with_crop_rect(self, rect: Rect) -> "Bitmap | None":
        return self.with_crop(rect.x0, rect.y0, rect.width, rect.height)

    def with_crop_rows(self, start: int, end: int) -> "Bitmap | None":
        """Return rows ``start``..``end`` inclusive, or None for an invalid range."""
        if self.is_empty():
            return None
        if start < 0:
            start += self.height
        if end < 0:
            end += self.height
        if start < 0 or end < start or end >= self.height:
            return None
        wb = self.width_bytes
        return Bitmap(self.width, end - start + 1, self.content[start * wb : (end + 1) * wb], self.align)

    def with_delete_rows(self, start: int, end: int) -> "Bitmap | None":
        """Remove rows ``start``..``end`` inclusive.

        The range is clamped to the bitmap. An empty range returns the receiver
        itself; deleting every row returns None.
        """
        if self.is_empty():
            return None
        if start < 0:
            start += self.height
        if end < 0:
            end += self.height
        start = max(start, 0)
        end = min(end, self.height - 1)
        if start > end:
            return self
        new_height = self.height - (end - start + 1)
        if new_height <= 0:
            return None
        wb = self.width_bytes
        content = self.content[: start * wb] + self.content[(end + 1) * wb :]
        return Bitmap(self.width, new_height, content, self.align)

    def with_append(self, other: "Bitmap | None") -> "Bitmap | None":
        """Stack ``other`` below this bitmap. Returns None if the widths differ."""
        if other is None or self.width == 0 or other.width != self.width:
            return None
        return Bitmap(self.width, self.height + other.height, self.content + other.content, self.align)

    def with_paste(self, other: "Bitmap | None", x: int, y: int) -> "Bitmap":
        """Overlay the black pixels of ``other`` at (x, y).

        ``other`` is clipped to this bitmap's bounds. A paste origin outside the
        bitmap returns the receiver unchanged.
        """
        if other is None or self.is_empty() or other.is_empty():
            return self
        x, y = self._normalize(x, y)
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return self

        paste_width = min(other.width, self.width - x)
        paste_height = min(other.height, self.height - y)
        result = self.copy()
        drop = other.width - paste_width
        shift = self.width - x - paste_width
        for row in range(paste_height):
            bits = other.row_bits(row) >> drop
            if bits:
                result.store_row_bits(y + row, result.row_bits(y + row) | (bits << shift))
        return result

    def with_erase(self, x: int, y: int, width: int, height: int) -> "Bitmap":
        """Whiten the rectangle at (x, y), clipped to the bitmap.

        Returns the receiver unchanged when nothing of the rectangle overlaps.
        """
        if self.is_empty():
            return self
        x, y = self._normalize(x, y)
        area = Rect.from_size(x, y, width, height).intersect(self.bounds)
        if area.is_empty():
            return self
        result = self.copy()
        keep = ~(((1 << area.width) - 1) << (self.width - area.x1))
        for row in range(area.y0, area.y1):
            result.store_row_bits(row, result.row_bits(row) & keep)
        return result

    def with_border(self, border_width: int) -> "Bitmap":
        """Return a copy with a black frame ``border_width`` pixels thick drawn inside the edges."""
        if self.is_empty() or border_width <= 0:
            return self
        result = self.copy()
        full = (1 << self.width) - 1
        bw = min(border_width, self.width)
        sides = (((1 << bw) - 1) << (self.width - bw)) | ((1 << bw) - 1)
        for row in range(self.height):
            if row < border_width or row >= self.height - border_width:
                result.store_row_bits(row, full)
            else:
                result.store_row_bits(row, result.row_bits(row) | sides)
        return result

    def with_draw_text(self, text: str, x: int, y: int) -> "Bitmap":
        """Return a copy with ``text`` stamped at (x, y)."""
        from rasterpos.raster.imaging import draw_text

        return draw_text(self, text, x, y)

    def with_border_rect(self, rect: Rect) -> "Bitmap":
        """Draw a 1-pixel black frame along ``rect`` in place and return self."""
        if rect.is_empty():
            return self
        if rect.x1 <= 0 or rect.y1 <= 0 or rect.x0 >= self.width or rect.y0 >= self.height:
            return self
        for x in range(rect.x0, rect.x1):
            self.set_pixel_black(x, rect.y0)
            self.set_pixel_black(x, rect.y1 - 1)
        for y in range(rect.y0, rect.y1):
            self.set_pixel_black(rect.x0, y)
            self.set_pixel_black(rect.x1 - 1, y)
        return self

    def _shift_bytes(self, nbytes: int) -> "Bitmap":
        wb = self.width_bytes
        result = Bitmap(self.width, self.height, align=self.align)
        if abs(nbytes) >= wb:
            return result
        for row in range(self.height):
            start = row * wb
            src = self.content[start : start + wb]
            if nbytes > 0:
                result.content[start + nbytes : start + wb] = src[: wb - nbytes]
            else:
                result.content[start : start + wb + nbytes] = src[-nbytes:]
        return result

    def with_shift_left(self, shift: int) -> "Bitmap":
        """Move content left by ``shift`` pixels, rounded down to whole bytes."""
        if shift < 8 or self.is_empty():
            return self
        return self._shift_bytes(-(shift // 8))

    def with_shift_right(self, shift: int) -> "Bitmap":
        """Move content right by ``shift`` pixels, rounded down to whole bytes."""
        if shift < 8 or self.is_empty():
            return self
        return self._shift_bytes(shift // 8)

    # Margins (in place)

    def add_margin_left(self, margin: int) -> None:
        """Prepend white columns. ``margin`` is rounded down to a multiple of 8."""
        margin_bytes = margin // 8
        if margin_bytes <= 0:
            return
        old_wb = self.width_bytes
        new_wb = old_wb + margin_bytes
        content = bytearray(self.height * new_wb)
        for row in range(self.height):
            content[row * new_wb + margin_bytes : (row + 1) * new_wb] = self.content[
                row * old_wb : (row + 1) * old_wb
            ]
        self.width = new_wb * 8
        self.content = content

    def add_margin_right(self, margin: int) -> None:
        """Append white columns. ``margin`` is rounded down to a multiple of 8."""
        margin_bytes = margin // 8
        if margin_bytes <= 0:
            return
        old_wb = self.width_bytes
        new_wb = old_wb + margin_bytes
        content = bytearray(self.height * new_wb)
        for row in range(self.height):
            content[row * new_wb : row * new_wb + old_wb] = self.content[row * old_wb : (row + 1) * old_wb]
        self.width = new_wb * 8
        self.content = content

    def add_margin_top(self, margin: int) -> None:
        if margin <= 0:
            return
        self.content = bytearray(margin * self.width_bytes) + self.content
        self.height += margin

    def add_margin_bottom(self, margin: int) -> None:
        if margin <= 0:
            return
        self.content += bytearray(margin * self.width_bytes)
        self.height += margin

    def add_margin(self, margin_left: int, margin_bottom: int) -> None:
        self.add_margin_left(max(margin_left, 0))
        self.add_margin_bottom(max(margin_bottom, 0))

    def auto_margin_left(self, target_width: int) -> int:
        """Left padding that places this bitmap on paper ``target_width`` pixels wide.

        Follows ``align``: left gives 0, right fills the difference, anything
        else centers. The result is rounded down to a multiple of 8.
        """
        if self.width >= target_width:
            return 0
        if self.align == Alignment.LEFT:
            return 0
        if self.align == Alignment.RIGHT:
            margin = target_width - self.width
        else:
            margin = (target_width - self.width) // 2
        return margin // 8 * 8

    def apply_auto_margin_left(self, target_width: int) -> int:
        """Add the computed left margin in place and return it."""
        margin = self.auto_margin_left(target_width)
        self.add_margin_left(margin)
        return margin
