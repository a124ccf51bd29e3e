"""Closed-set glyph recognition against a labelled reference bitmap."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Rect
from rasterpos.raster.segmentation import find_components
from rasterpos.raster.view import SubImage

if TYPE_CHECKING:
    from rasterpos.config import GlyphCatalogConfig

logger = logging.getLogger(__name__)

UNKNOWN = "?"
ACCEPT_THRESHOLD = 0.9


def similarity(template: Bitmap | SubImage, region: Bitmap | SubImage) -> float:
    """Fraction of pixels that agree between two same-sized rasters.

    Rasters of different sizes score 0.0.
    """
    width, height = template.width, template.height
    if width != region.width or height != region.height or width == 0 or height == 0:
        return 0.0
    same = 0
    for y in range(height):
        for x in range(width):
            if template.get_pixel(x, y) == region.get_pixel(x, y):
                same += 1
    return same / (width * height)


def _parse_table(table: Mapping[str, Sequence[int]]) -> dict[str, Rect]:
    areas = {}
    for label, coords in table.items():
        if len(coords) != 4:
            raise ValueError(f"Glyph '{label}' needs [x0, y0, x1, y1], got {list(coords)}")
        areas[str(label)] = Rect(*(int(c) for c in coords))
    return areas


class GlyphCatalog:
    """A reference bitmap plus a label -> rectangle table.

    The reference can be given directly or as base64 PNG data, in which case it
    is decoded the first time a template is needed.
    """

    def __init__(
        self,
        reference: Bitmap | None = None,
        areas: Mapping[str, Rect] | None = None,
        *,
        png_base64: str | None = None,
        threshold: float = ACCEPT_THRESHOLD,
    ) -> None:
        if reference is None and png_base64 is None:
            raise ValueError("GlyphCatalog needs a reference bitmap or base64 PNG data")
        self._reference = reference
        self._png_base64 = png_base64
        self.areas: dict[str, Rect] = dict(areas or {})
        self.threshold = threshold

    @classmethod
    def from_base64_png(cls, data: str, table: Mapping[str, Sequence[int]], **kwargs) -> "GlyphCatalog":
        return cls(areas=_parse_table(table), png_base64=data, **kwargs)

    @classmethod
    def from_config(cls, config: "GlyphCatalogConfig") -> "GlyphCatalog":
        """Build a catalog from the ``glyph_catalog`` section of the app config."""
        from rasterpos.raster.imaging import from_png_bytes

        areas = _parse_table(config.glyphs)
        if config.image_path is not None:
            reference = from_png_bytes(Path(config.image_path).read_bytes())
            return cls(reference, areas, threshold=config.threshold)
        return cls(areas=areas, png_base64=config.image_base64, threshold=config.threshold)

    @property
    def reference(self) -> Bitmap:
        if self._reference is None:
            from rasterpos.raster.imaging import from_base64_png

            self._reference = from_base64_png(self._png_base64 or "")
            logger.debug(f"Loaded glyph reference {self._reference.width}x{self._reference.height}")
        return self._reference

    @property
    def labels(self) -> list[str]:
        return sorted(self.areas)

    def templates(self) -> Iterator[tuple[str, SubImage]]:
        """Yield (label, template view) pairs in label order.

        Labels whose rectangle falls outside the reference are skipped.
        """
        reference = self.reference
        for label in self.labels:
            view = reference.select(self.areas[label])
            if view is not None:
                yield label, view

    def recognize(self, region: Bitmap | SubImage) -> str:
        """Return the label of the best matching template, or ``"?"``.

        Only templates of the region's exact size are considered. The best
        score must exceed the threshold; on ties the first label wins.
        """
        best_label = UNKNOWN
        best_score = self.threshold
        for label, template in self.templates():
            score = similarity(template, region)
            if score > best_score:
                best_label, best_score = label, score
        return best_label

    def read(self, target: Bitmap | SubImage) -> str:
        """Segment ``target`` and recognise each component in scan order."""
        return "".join(self.recognize(component) for component in find_components(target))
