"""Locate patterns inside bitmaps and views."""

from __future__ import annotations

from collections.abc import Iterator

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Point, Rect
from rasterpos.raster.pattern import Pattern, Raster
from rasterpos.raster.view import SubImage


def _scan_area(pattern: Pattern, target: Raster) -> Rect | None:
    """Rectangle of candidate top-left corners, or None if the pattern cannot fit."""
    if pattern.width > target.width or pattern.height > target.height:
        return None
    if pattern.search_area is None:
        area = Rect(0, 0, target.width, target.height)
    else:
        area = pattern.search_area.resolve(target.width, target.height)
    # Candidates whose rectangle would spill out of the target never match.
    area = Rect(
        area.x0,
        area.y0,
        min(area.x1, target.width - pattern.width + 1),
        min(area.y1, target.height - pattern.height + 1),
    )
    if area.is_empty():
        return None
    return area


def _rows(pattern: Pattern, area: Rect) -> range:
    if pattern.search_from_bottom:
        return range(area.y1 - 1, area.y0 - 1, -1)
    return range(area.y0, area.y1)


def iter_search(pattern: Pattern, target: Raster) -> Iterator[Point]:
    """Yield non-overlapping matches in scan order.

    Rows are scanned top to bottom (bottom to top when the pattern asks for
    it), columns left to right. After a match the scan resumes past the matched
    rectangle, and a rectangle already claimed by an earlier match is never
    re-entered on later rows.
    """
    area = _scan_area(pattern, target)
    if area is None:
        return

    pw, ph = pattern.width, pattern.height
    claimed: list[Rect] = []
    for y in _rows(pattern, area):
        claimed = [c for c in claimed if c.y0 < y + ph and y < c.y1]
        x = area.x0
        while x < area.x1:
            blocker = next((c for c in claimed if c.x0 < x + pw and x < c.x1), None)
            if blocker is not None:
                x = blocker.x1
                continue
            if pattern.is_match_at(target, x, y):
                claimed.append(Rect(x, y, x + pw, y + ph))
                yield Point(x, y)
                x += pw
            else:
                x += 1


def search_first(pattern: Pattern, target: Raster) -> Point | None:
    """Top-left corner of the first match in scan order, or None."""
    return next(iter_search(pattern, target), None)


def search_all(pattern: Pattern, target: Raster) -> list[Point]:
    """All non-overlapping matches in scan order."""
    return list(iter_search(pattern, target))


def search_all_views(pattern: Pattern, target: Bitmap | SubImage) -> list[SubImage]:
    """Like :func:`search_all` but returns a view over each matched rectangle."""
    views = []
    for x, y in iter_search(pattern, target):
        view = target.select(Rect(x, y, x + pattern.width, y + pattern.height))
        if view is not None:
            views.append(view)
    return views


# Edits applied at matches


def crop_at_match(bitmap: Bitmap, pattern: Pattern) -> Bitmap | None:
    """Crop the first matched rectangle out of ``bitmap``."""
    point = search_first(pattern, bitmap)
    if point is None:
        return None
    return bitmap.with_crop(point.x, point.y, pattern.width, pattern.height)


def erase_at_match(bitmap: Bitmap, pattern: Pattern) -> Bitmap:
    """Whiten the first matched rectangle. A miss returns ``bitmap`` unchanged."""
    point = search_first(pattern, bitmap)
    if point is None:
        return bitmap
    return bitmap.with_erase(point.x, point.y, pattern.width, pattern.height)


def delete_rows_at_match(bitmap: Bitmap, pattern: Pattern) -> Bitmap | None:
    """Remove the rows spanned by the first match.

    A miss returns ``bitmap`` unchanged. None is returned when the match
    covers every row.
    """
    point = search_first(pattern, bitmap)
    if point is None:
        return bitmap
    return bitmap.with_delete_rows(point.y, point.y + pattern.height - 1)


def border_at_all_matches(bitmap: Bitmap, pattern: Pattern) -> Bitmap:
    """Return a copy of ``bitmap`` with a 1px frame drawn around every match."""
    matches = search_all(pattern, bitmap)
    if not matches:
        return bitmap
    result = bitmap.copy()
    for x, y in matches:
        result.with_border_rect(Rect(x, y, x + pattern.width, y + pattern.height))
    return result
