"""Declarative pixel templates used to recognise markers on printed receipts.

A pattern is a ``width`` x ``height`` rectangle with optional constraints:

- exact colors for individual offsets inside the rectangle,
- a uniform border ring of ``border_width`` pixels,
- lower/upper bounds on the fraction of black pixels.

Patterns are built with the ``add_*`` methods and then frozen.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple, Protocol

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Point, Rect
from rasterpos.raster.view import SubImage

BLACK = 1
WHITE = 0


class PatternFrozenError(ValueError):
    """Raised when a frozen pattern is edited."""


class Raster(Protocol):
    """Anything the matcher can read: a Bitmap or a SubImage."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def get_pixel(self, x: int, y: int) -> int: ...

    def select(self, rect: Rect) -> SubImage | None: ...


class SearchArea(NamedTuple):
    """Region of the target to scan.

    Negative coordinates count from the target's far edge. ``None`` for
    ``x1``/``y1`` means the far edge itself.
    """

    x0: int = 0
    y0: int = 0
    x1: int | None = None
    y1: int | None = None

    def resolve(self, width: int, height: int) -> Rect:
        """Resolve against a target of the given size, clamped to its bounds."""

        def edge(value: int | None, extent: int) -> int:
            if value is None:
                return extent
            if value < 0:
                value += extent
            return min(max(value, 0), extent)

        return Rect(edge(self.x0, width), edge(self.y0, height), edge(self.x1, width), edge(self.y1, height))


class Pattern:
    """A template describing what a marker looks like."""

    def __init__(
        self,
        width: int,
        height: int,
        *,
        black_ratio: tuple[float, float] = (0.0, 1.0),
        border_width: int = 0,
        search_area: SearchArea | None = None,
        search_from_bottom: bool = False,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Pattern dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.points: dict[Point, int] = {}
        self.black_ratio: tuple[float, float] = (0.0, 1.0)
        self.border_width = 0
        self.search_area = search_area
        self.search_from_bottom = search_from_bottom
        self._frozen = False
        self.set_black_ratio(*black_ratio)
        self.set_border_width(border_width)

    @classmethod
    def from_bitmap(cls, source: Bitmap | SubImage, **kwargs) -> "Pattern":
        """Build a pattern that constrains every pixel of ``source``."""
        pattern = cls(source.width, source.height, **kwargs)
        for y in range(source.height):
            for x in range(source.width):
                pattern.points[Point(x, y)] = source.get_pixel(x, y)
        return pattern

    def __repr__(self) -> str:
        return (
            f"Pattern({self.width}x{self.height}, points={len(self.points)}, "
            f"black_ratio={self.black_ratio}, border_width={self.border_width})"
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def rect(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    def freeze(self) -> "Pattern":
        """Make the pattern read-only.

        Black constraints are moved to the front so that blank paper, the
        bulk of any receipt, is rejected on the first check.
        """
        self.points = dict(sorted(self.points.items(), key=lambda item: -item[1]))
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise PatternFrozenError("Pattern is frozen")

    def _offset(self, x: int, y: int) -> Point:
        if x < 0:
            x += self.width
        if y < 0:
            y += self.height
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Offset ({x}, {y}) lies outside the {self.width}x{self.height} pattern")
        return Point(x, y)

    # Builders

    def add_point(self, x: int, y: int, color: int) -> "Pattern":
        """Require the pixel at offset (x, y) to be ``color``.

        Negative offsets count from the pattern's right/bottom edge. A later
        constraint on the same offset replaces the earlier one.
        """
        self._check_mutable()
        self.points[self._offset(x, y)] = BLACK if color else WHITE
        return self

    def add_points(self, points: Iterable[tuple[int, int]], color: int) -> "Pattern":
        for x, y in points:
            self.add_point(x, y, color)
        return self

    def add_black_points(self, points: Iterable[tuple[int, int]]) -> "Pattern":
        return self.add_points(points, BLACK)

    def add_white_points(self, points: Iterable[tuple[int, int]]) -> "Pattern":
        return self.add_points(points, WHITE)

    def add_row(self, y: int, color: int) -> "Pattern":
        return self.add_points(((x, y) for x in range(self.width)), color)

    def add_rows(self, rows: Iterable[int], color: int) -> "Pattern":
        for y in rows:
            self.add_row(y, color)
        return self

    def add_column(self, x: int, color: int) -> "Pattern":
        return self.add_points(((x, y) for y in range(self.height)), color)

    def add_columns(self, columns: Iterable[int], color: int) -> "Pattern":
        for x in columns:
            self.add_column(x, color)
        return self

    def add_area(self, rect: Rect, color: int) -> "Pattern":
        """Constrain every offset inside ``rect`` (clipped to the pattern)."""
        self._check_mutable()
        area = rect.intersect(self.rect)
        for y in range(area.y0, area.y1):
            for x in range(area.x0, area.x1):
                self.points[Point(x, y)] = BLACK if color else WHITE
        return self

    def add_border(self, width: int, color: int) -> "Pattern":
        """Constrain the ring of offsets within ``width`` pixels of any edge to ``color``."""
        self._check_mutable()
        for y in range(self.height):
            for x in range(self.width):
                if x < width or y < width or x >= self.width - width or y >= self.height - width:
                    self.points[Point(x, y)] = BLACK if color else WHITE
        return self

    def remove_area(self, rect: Rect) -> "Pattern":
        """Drop any point constraints inside ``rect``."""
        self._check_mutable()
        self.points = {p: c for p, c in self.points.items() if not rect.contains(p.x, p.y)}
        return self

    def set_black_ratio(self, lower: float, upper: float) -> "Pattern":
        """Require the black fraction of the whole rectangle to lie in [lower, upper]."""
        self._check_mutable()
        if not 0.0 <= lower <= upper <= 1.0:
            raise ValueError(f"Invalid black ratio bounds [{lower}, {upper}]")
        self.black_ratio = (float(lower), float(upper))
        return self

    def set_border_width(self, border_width: int) -> "Pattern":
        """Require a uniformly colored ring ``border_width`` pixels wide (0 disables)."""
        self._check_mutable()
        if border_width < 0:
            raise ValueError(f"Border width must not be negative, got {border_width}")
        self.border_width = border_width
        return self

    def set_search_area(
        self, x0: int = 0, y0: int = 0, x1: int | None = None, y1: int | None = None
    ) -> "Pattern":
        self._check_mutable()
        self.search_area = SearchArea(x0, y0, x1, y1)
        return self

    def set_search_from_bottom(self, value: bool = True) -> "Pattern":
        self._check_mutable()
        self.search_from_bottom = value
        return self

    # Matching

    def _border_is_uniform(self, target: Raster, ox: int, oy: int) -> bool:
        reference = target.get_pixel(ox, oy)
        bw = self.border_width
        for y in range(self.height):
            if y < bw or y >= self.height - bw:
                columns: Iterable[int] = range(self.width)
            else:
                columns = (*range(min(bw, self.width)), *range(max(self.width - bw, bw), self.width))
            for x in columns:
                if target.get_pixel(ox + x, oy + y) != reference:
                    return False
        return True

    def is_match_at(self, target: Raster, ox: int, oy: int) -> bool:
        """Check whether the pattern matches ``target`` with its top-left corner at (ox, oy).

        Checks run cheapest first and stop at the first failure: bounds, point
        constraints, uniform border, black ratio.
        """
        if ox < 0 or oy < 0 or ox + self.width > target.width or oy + self.height > target.height:
            return False

        get_pixel = target.get_pixel
        for (dx, dy), color in self.points.items():
            if get_pixel(ox + dx, oy + dy) != color:
                return False

        if self.border_width > 0 and not self._border_is_uniform(target, ox, oy):
            return False

        lower, upper = self.black_ratio
        if lower > 0.0 or upper < 1.0:
            view = target.select(Rect(ox, oy, ox + self.width, oy + self.height))
            ratio = view.black_ratio() if view is not None else 0.0
            if ratio < lower or ratio > upper:
                return False

        return True
