"""Page separator rows embedded in a concatenated bitmap.

A cutline is a row whose bytes each have seven of eight bits set, in an
irregular order that real receipt content is very unlikely to reproduce.
Rows wider than the 128-byte table (1024 pixels) cannot carry a cutline.
"""

from __future__ import annotations

from rasterpos.raster.bitmap import Bitmap

CUTLINE = bytes.fromhex(
    "df7ffbf7bfeffdfef7df7ffbefbffefd"
    "fbf7df7fbfeffdfef7df7ffbefbffefd"
    "febfdf7ff7fbeffd7fdffbf7bfeffefd"
    "f7fbdf7fbfeffdfefbf7df7fefbffefd"
    "fdefbf7ff7dffbfebfef7fdffbf7fefd"
    "efbfdf7ff7fbfefd7fdffbf7bfeffdfe"
    "f7fbdf7fbfeffefdfbf7df7fefbffefd"
    "febfdf7ff7fbeffd7fdffbf7bfeffdfe"
)


def is_cutline(row: bytes | bytearray) -> bool:
    """True if ``row`` equals the cutline prefix of the same length."""
    if not row or len(row) > len(CUTLINE):
        return False
    return bytes(row) == CUTLINE[: len(row)]


def with_cutline(bitmap: Bitmap) -> Bitmap | None:
    """Return ``bitmap`` with a cutline row appended, or None if it is empty."""
    if bitmap.is_empty():
        return None
    wb = bitmap.width_bytes
    row = CUTLINE[:wb].ljust(wb, b"\x00")
    return Bitmap(bitmap.width, bitmap.height + 1, bitmap.content + row, bitmap.align)


def cut_pages(bitmap: Bitmap) -> list[Bitmap]:
    """Split ``bitmap`` at cutline rows.

    A cutline on the last row is ignored. Empty pages (consecutive cutlines)
    are dropped. If no cutline is found the bitmap itself is the only page.
    """
    if bitmap.is_empty():
        return []

    rows = [bitmap.row(y) for y in range(bitmap.height)]
    trailing = is_cutline(rows[-1])
    if trailing:
        rows.pop()

    pages: list[Bitmap] = []
    current = bytearray()
    found = False
    for row in rows:
        if is_cutline(row):
            found = True
            if current:
                pages.append(Bitmap(bitmap.width, len(current) // bitmap.width_bytes, current, bitmap.align))
            current = bytearray()
        else:
            current += row
    if not found and not trailing:
        return [bitmap]
    if current:
        pages.append(Bitmap(bitmap.width, len(current) // bitmap.width_bytes, current, bitmap.align))
    return pages
