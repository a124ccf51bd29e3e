"""Monochrome raster engine: bitmaps, views, pattern search, glyph recognition and ESC/POS encoding."""

from rasterpos.raster.bitmap import Alignment, Bitmap
from rasterpos.raster.cutline import CUTLINE, cut_pages, is_cutline, with_cutline
from rasterpos.raster.escpos import RasterBlock, decode_bitmap, decode_raster, encode_raster, low_high
from rasterpos.raster.geometry import Point, Rect
from rasterpos.raster.ocr import UNKNOWN, GlyphCatalog
from rasterpos.raster.pattern import BLACK, WHITE, Pattern, PatternFrozenError, SearchArea
from rasterpos.raster.search import (
    border_at_all_matches,
    crop_at_match,
    delete_rows_at_match,
    erase_at_match,
    iter_search,
    search_all,
    search_all_views,
    search_first,
)
from rasterpos.raster.segmentation import find_components
from rasterpos.raster.view import SubImage

__all__ = [
    "BLACK",
    "CUTLINE",
    "UNKNOWN",
    "WHITE",
    "Alignment",
    "Bitmap",
    "GlyphCatalog",
    "Pattern",
    "PatternFrozenError",
    "Point",
    "RasterBlock",
    "Rect",
    "SearchArea",
    "SubImage",
    "border_at_all_matches",
    "crop_at_match",
    "cut_pages",
    "decode_bitmap",
    "decode_raster",
    "delete_rows_at_match",
    "encode_raster",
    "erase_at_match",
    "find_components",
    "is_cutline",
    "iter_search",
    "low_high",
    "search_all",
    "search_all_views",
    "search_first",
    "with_cutline",
]
