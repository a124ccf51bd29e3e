"""Integer point and rectangle value types used by the raster engine."""

from typing import NamedTuple


class Point(NamedTuple):
    """A pixel coordinate."""

    x: int
    y: int

    def add(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def sub(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)


class Rect(NamedTuple):
    """Half-open rectangle [x0, x1) x [y0, y1)."""

    x0: int
    y0: int
    x1: int
    y1: int

    @classmethod
    def from_size(cls, x: int, y: int, width: int, height: int) -> "Rect":
        return cls(x, y, x + width, y + height)

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def origin(self) -> Point:
        return Point(self.x0, self.y0)

    def is_empty(self) -> bool:
        return self.x0 >= self.x1 or self.y0 >= self.y1

    def translate(self, dx: int, dy: int) -> "Rect":
        return Rect(self.x0 + dx, self.y0 + dy, self.x1 + dx, self.y1 + dy)

    def intersect(self, other: "Rect") -> "Rect":
        """Intersection of two rectangles; an empty result collapses to Rect(0, 0, 0, 0)."""
        r = Rect(
            max(self.x0, other.x0),
            max(self.y0, other.y0),
            min(self.x1, other.x1),
            min(self.y1, other.y1),
        )
        if r.is_empty():
            return Rect(0, 0, 0, 0)
        return r

    def overlaps(self, other: "Rect") -> bool:
        return not self.intersect(other).is_empty()

    def contains(self, x: int, y: int) -> bool:
        return self.x0 <= x < self.x1 and self.y0 <= y < self.y1
