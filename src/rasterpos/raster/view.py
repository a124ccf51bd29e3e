"""Non-copying rectangular views onto a bitmap."""

from __future__ import annotations

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Point, Rect


class SubImage:
    """A window onto ``owner`` covering ``area`` (in the owner's coordinates).

    Reads and writes go straight through to the owner. A view holds no pixel
    data of its own and must not outlive or race with mutations of its owner.
    """

    __slots__ = ("owner", "area")

    def __init__(self, owner: Bitmap, area: Rect) -> None:
        self.owner = owner
        self.area = area.intersect(owner.bounds)

    def __repr__(self) -> str:
        return f"SubImage(area={tuple(self.area)}, owner={self.owner!r})"

    @property
    def width(self) -> int:
        return self.area.width

    @property
    def height(self) -> int:
        return self.area.height

    @property
    def bounds(self) -> Rect:
        """Local bounds, always anchored at (0, 0)."""
        return Rect(0, 0, self.area.width, self.area.height)

    def size(self) -> tuple[int, int]:
        return self.area.width, self.area.height

    # Coordinate helpers

    def global_x(self, x: int) -> int:
        return x + self.area.x0

    def global_y(self, y: int) -> int:
        return y + self.area.y0

    def global_point(self, x: int, y: int) -> Point:
        return Point(x + self.area.x0, y + self.area.y0)

    def local_point(self, x: int, y: int) -> Point:
        return Point(x - self.area.x0, y - self.area.y0)

    # Pixel access (local coordinates)

    def get_pixel(self, x: int, y: int) -> int:
        """Pixel at local (x, y); anything outside the view reads white."""
        if x < 0 or y < 0 or x >= self.area.width or y >= self.area.height:
            return 0
        return self.owner.get_pixel(x + self.area.x0, y + self.area.y0)

    def set_pixel(self, x: int, y: int, value: int) -> None:
        if x < 0 or y < 0 or x >= self.area.width or y >= self.area.height:
            return
        self.owner.set_pixel(x + self.area.x0, y + self.area.y0, value)

    def set_pixel_black(self, x: int, y: int) -> None:
        self.set_pixel(x, y, 1)

    def set_pixel_white(self, x: int, y: int) -> None:
        self.set_pixel(x, y, 0)

    def select(self, rect: Rect) -> SubImage | None:
        """Narrow the view to ``rect`` (local coordinates), clipped to this view.

        Returns None when nothing is left.
        """
        area = rect.translate(self.area.x0, self.area.y0).intersect(self.area)
        if area.is_empty():
            return None
        return SubImage(self.owner, area)

    # Materialisation

    def copy(self) -> Bitmap | None:
        """Copy the pixels under the view into a standalone bitmap."""
        if self.area.is_empty():
            return None
        return self.owner.with_crop(self.area.x0, self.area.y0, self.area.width, self.area.height)

    def cut(self) -> Bitmap | None:
        """Copy the view, then whiten it in the owner."""
        bitmap = self.copy()
        self.fill_white()
        return bitmap

    def paste_to(self, target: Bitmap, x: int, y: int) -> Bitmap:
        """Overlay a copy of this view onto ``target`` at (x, y)."""
        return target.with_paste(self.copy(), x, y)

    # Bulk edits (in place on the owner)

    def _fill(self, value: int) -> None:
        owner = self.owner
        a = self.area
        mask = ((1 << a.width) - 1) << (owner.width - a.x1)
        for y in range(a.y0, a.y1):
            bits = owner.row_bits(y)
            owner.store_row_bits(y, bits | mask if value else bits & ~mask)

    def fill_black(self) -> None:
        self._fill(1)

    def fill_white(self) -> None:
        self._fill(0)

    def invert(self) -> None:
        owner = self.owner
        a = self.area
        mask = ((1 << a.width) - 1) << (owner.width - a.x1)
        for y in range(a.y0, a.y1):
            owner.store_row_bits(y, owner.row_bits(y) ^ mask)

    def draw_border(self) -> None:
        """Blacken the outermost 1-pixel ring of the view."""
        self.owner.with_border_rect(self.area)

    # Queries

    def black_count(self) -> int:
        owner = self.owner
        a = self.area
        shift = owner.width - a.x1
        mask = (1 << a.width) - 1
        return sum(((owner.row_bits(y) >> shift) & mask).bit_count() for y in range(a.y0, a.y1))

    def black_ratio(self) -> float:
        """Fraction of black pixels under the view."""
        total = self.area.width * self.area.height
        if total == 0:
            return 0.0
        return self.black_count() / total
