"""Reprint banner transformer.

Reprinted receipts get a black banner across the top with the order number
copied into it in white, so staff can tell them apart from the original.
"""

import logging

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Rect
from rasterpos.raster.pattern import BLACK, WHITE, Pattern
from rasterpos.raster.search import search_first
from rasterpos.raster.segmentation import find_components
from rasterpos.raster.view import SubImage
from rasterpos.transformers.base import register_transformer

logger = logging.getLogger(__name__)

BANNER_HEIGHT = 40
DIGIT_PITCH = 30
DIGIT_MARGIN = 8
NUMBER_WIDTH = 100

# The "#" printed in front of the order number.
NUMBER_SIGN_PATTERN = (
    Pattern(24, 36)
    .add_rows(range(0, 6), WHITE)
    .add_rows(range(30, 36), WHITE)
    .add_columns(range(0, 3), WHITE)
    .add_columns(range(21, 24), WHITE)
    .add_white_points(
        [
            (5, 10), (7, 10), (5, 8), (7, 8), (14, 7), (14, 8), (14, 9), (19, 9),
            (6, 16), (6, 17), (6, 18), (12, 16), (12, 17), (12, 18),
            (10, 24), (10, 25), (10, 26), (10, 27), (10, 28), (18, 16), (18, 17), (18, 18),
        ]
    )
    .add_points(
        [
            (10, 7), (10, 8), (10, 9), (10, 10), (10, 11), (10, 12), (10, 13), (10, 14),
            (16, 8), (16, 9), (16, 10), (16, 11), (16, 12), (16, 13), (16, 14), (16, 15),
            (6, 13), (7, 13), (8, 13), (9, 13), (11, 13), (12, 13), (13, 13), (14, 13), (15, 13),
            (17, 13), (18, 13), (19, 13), (8, 17), (8, 18), (8, 19), (8, 20), (8, 21), (8, 22), (8, 23),
            (14, 18), (14, 19), (14, 20), (14, 21), (14, 22), (14, 23), (14, 24), (14, 25), (14, 26),
        ],
        BLACK,
    )
    .freeze()
)


def find_order_number(bitmap: Bitmap) -> list[SubImage]:
    """Return one view per glyph of the order number, or [] if there is none."""
    sign = search_first(NUMBER_SIGN_PATTERN, bitmap)
    if sign is None:
        return []
    x = sign.x + NUMBER_SIGN_PATTERN.width
    area = bitmap.select(Rect(x, sign.y, x + NUMBER_WIDTH, sign.y + NUMBER_SIGN_PATTERN.height))
    if area is None:
        return []
    return find_components(area)


@register_transformer("reprint")
def reprint(bitmap: Bitmap) -> Bitmap:
    digits = find_order_number(bitmap)
    result = bitmap.copy()
    banner = result.select_rows(0, BANNER_HEIGHT)
    if banner is None:
        return result
    banner.fill_white()
    for i, digit in enumerate(digits):
        result = digit.paste_to(result, i * DIGIT_PITCH + DIGIT_MARGIN, DIGIT_MARGIN)
    banner = result.select_rows(0, BANNER_HEIGHT)
    if banner is not None:
        banner.invert()
    logger.debug(f"Reprint banner with {len(digits)} order number glyphs")
    return result
