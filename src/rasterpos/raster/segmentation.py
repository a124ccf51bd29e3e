"""Connected-component extraction of glyph-shaped regions."""

from __future__ import annotations

from collections import deque

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Rect
from rasterpos.raster.view import SubImage

_NEIGHBOURS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))


def find_components(target: Bitmap | SubImage) -> list[SubImage]:
    """Split ``target`` into 8-connected groups of black pixels.

    Components are returned in the order their first pixel is met in a
    row-major scan. Each result is a view over the component's bounding box,
    expressed in ``target``'s coordinate space, so it may also contain pixels
    of neighbouring components.
    """
    width, height = target.width, target.height
    if width == 0 or height == 0:
        return []

    # Snapshot the pixels once; views answer get_pixel through the owner.
    black = [[target.get_pixel(x, y) == 1 for x in range(width)] for y in range(height)]
    visited = [[False] * width for _ in range(height)]
    components: list[SubImage] = []

    for y in range(height):
        for x in range(width):
            if visited[y][x] or not black[y][x]:
                continue
            visited[y][x] = True
            min_x = max_x = x
            min_y = max_y = y
            queue = deque([(x, y)])
            while queue:
                px, py = queue.popleft()
                min_x, max_x = min(min_x, px), max(max_x, px)
                min_y, max_y = min(min_y, py), max(max_y, py)
                for dx, dy in _NEIGHBOURS:
                    nx, ny = px + dx, py + dy
                    if 0 <= nx < width and 0 <= ny < height and not visited[ny][nx] and black[ny][nx]:
                        visited[ny][nx] = True
                        queue.append((nx, ny))

            view = target.select(Rect(min_x, min_y, max_x + 1, max_y + 1))
            if view is not None:
                components.append(view)

    return components
