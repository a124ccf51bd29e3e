"""Kitchen ticket transformer.

Kitchen tickets come in as one long bitmap. The transformer recognises the
ticket kind by probing fixed pixels of its 512x280 header:

- cancelled orders get a large CANCEL stamp pasted over the header,
- reprinted duplicates are suppressed,
- additions to an order are split into one slip per order line, each slip
  carrying a copy of the header and the time it was printed,
- anything else is printed as is.
"""

import logging
from datetime import datetime

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.cutline import with_cutline
from rasterpos.raster.geometry import Rect
from rasterpos.raster.imaging import from_base64_png
from rasterpos.raster.pattern import WHITE, Pattern
from rasterpos.raster.search import search_all_views
from rasterpos.raster.view import SubImage
from rasterpos.transformers.base import register_transformer

logger = logging.getLogger(__name__)

HEADER_WIDTH = 512
HEADER_HEIGHT = 280
# Rows of the header copied onto every order line slip.
HEADER_ROWS = (100, 210)
CANCEL_STAMP_Y = 205
BOTTOM_MARGIN = 120
LINE_BOTTOM_MARGIN = 20
# Rows above the bottom edge that belong to the ticket footer.
FOOTER_HEIGHT = 40
TIME_FORMAT = "%m/%d %H:%M"

CANCEL_STAMP_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAgAAAABQAQMAAABVp19nAAAABlBMVEX///8AAABVwtN+AAAB7ElE"
    "QVR4nOzWsW7bPBAHcPrToG8qO2YwwqJP4LWAa459jT5CsmkQxAQdNOqN2hQdOHbuZoNAvVLbCT0c"
    "C5uMSjGx6jZAgAIk/otk3s+m72yIuSeuDGQgAxk4Hxgy8PwAiOk1vXkqIM8BqPhVkAAuXGO5XU8j"
    "IwDYg4I/A+yVSgoGZ1CS2KPbBEHYNBFgMAWsYhVHvsPNOgBdnyYCND0AGsYK0Hdwuf7q77cmTQS0"
    "pApcCle4DwH4XhO/hf23H+Mn0CZNBHRUM/y/REYsAIdD7UB3g7sMgNFpYsDBSi0KWNUvld+/Rel6"
    "5F9AMe539l2aCOAOULXGYlVLDwBJPZAwqPbhrSxPEwHiUNCZHiuKAX+SAIBIMwHcKaCWAUCZZgqg"
    "7MzO2b8GiMnOGGfZSWD2CNzhb4HZLnQOmiPQ30/iCDT3wK5NMwEsPQIc2jgCs4PU0vWxCw5GYCP1"
    "gNxg81afMcqartG3cQQ+Sj2ANtisAjD7a/yMVyC7wyQqNQLtAHuDzet3fie3aSJgu6reS76DV3gR"
    "/j/gkygH0D00vDzeIAFJYgBY9d+yuKkXxCq/HyQrB+SWkfBfN5Tbi2lEBNCCXiyLG1W4W/AAqrtD"
    "F7Cg0IV54NGlT78UrX/hASMDGchABjKQgQw8L/AzAAD//3QuxCmigwBwAAAAAElFTkSuQmCC"
)

_CANCEL_POINTS = [
    (147, 235), (139, 242), (140, 258), (177, 237), (176, 256),
    (215, 259), (227, 250), (257, 249), (282, 240), (305, 253),
]
_ADD_POINTS = [
    (214, 236), (214, 243), (214, 261), (231, 259), (234, 261),
    (245, 236), (245, 249), (245, 262), (253, 236), (253, 264), (275, 260),
    (283, 239), (291, 258), (294, 259),
]
_DUPLICATE_POINTS = [
    (68, 235), (70, 239), (68, 245), (69, 264), (74, 242), (84, 258), (88, 261), (90, 255),
    (90, 237), (89, 260), (100, 236), (101, 249), (100, 264), (109, 236), (111, 250), (109, 264),
    (115, 264), (190, 249), (208, 249), (218, 238), (236, 241), (247, 241), (247, 260), (265, 243),
    (275, 248), (299, 254), (347, 238), (372, 236), (390, 249),
]


def _header_pattern(black_points: list[tuple[int, int]]) -> Pattern:
    return Pattern(HEADER_WIDTH, HEADER_HEIGHT).add_black_points(black_points)


CANCEL_PATTERN = _header_pattern(_CANCEL_POINTS).freeze()
ADD_PATTERN = _header_pattern(_ADD_POINTS).add_area(Rect(0, 215, 195, 270), WHITE).freeze()
DUPLICATE_PATTERN = _header_pattern(_DUPLICATE_POINTS).freeze()

# The quantity box at the start of every order line: a white 30x50 frame with
# a small amount of ink inside.
QUANTITY_PATTERN = (
    Pattern(30, 50)
    .add_area(Rect(0, 0, 30, 50), WHITE)
    .remove_area(Rect(3, 5, 27, 45))
    .set_black_ratio(0.05, 0.15)
    .freeze()
)

_cancel_stamp: Bitmap | None = None


def cancel_stamp() -> Bitmap:
    global _cancel_stamp
    if _cancel_stamp is None:
        _cancel_stamp = from_base64_png(CANCEL_STAMP_PNG)
    return _cancel_stamp


def is_cancel_ticket(bitmap: Bitmap) -> bool:
    return CANCEL_PATTERN.is_match_at(bitmap, 0, 0)


def is_add_ticket(bitmap: Bitmap) -> bool:
    return ADD_PATTERN.is_match_at(bitmap, 0, 0)


def is_duplicate_ticket(bitmap: Bitmap) -> bool:
    return DUPLICATE_PATTERN.is_match_at(bitmap, 0, 0)


def find_order_lines(bitmap: Bitmap) -> list[SubImage]:
    """Locate the order lines below the header.

    Each order line starts at a quantity box in the left margin and runs to
    the next box; the last one runs to the footer.
    """
    column = bitmap.select(Rect(0, HEADER_HEIGHT, QUANTITY_PATTERN.width, bitmap.height))
    if column is None:
        return []
    boxes = search_all_views(QUANTITY_PATTERN, column)
    lines = []
    for i, box in enumerate(boxes):
        start = box.area.y0
        end = boxes[i + 1].area.y0 if i + 1 < len(boxes) else bitmap.height - FOOTER_HEIGHT
        line = bitmap.select_rows(start, end)
        if line is not None:
            lines.append(line)
    return lines


def split_order_lines(bitmap: Bitmap, now: datetime | None = None) -> Bitmap:
    """Append one cutline-separated slip per order line to the ticket."""
    header = bitmap.with_crop_rows(HEADER_ROWS[0], HEADER_ROWS[1] - 1)
    lines = find_order_lines(bitmap)
    if header is None or not lines:
        return bitmap

    header.add_margin_bottom(1)
    header = header.with_draw_text((now or datetime.now()).strftime(TIME_FORMAT), 0, 50)

    result = bitmap
    for line in lines:
        product = line.copy()
        if product is None:
            continue
        product.add_margin_bottom(LINE_BOTTOM_MARGIN)
        result = with_cutline(result).with_append(header).with_append(product)
    logger.debug(f"Split kitchen ticket into {len(lines)} order line slips")
    return result


@register_transformer("kitchen")
def kitchen(bitmap: Bitmap) -> Bitmap | None:
    """Transform a kitchen ticket; returns None for duplicates."""
    if is_cancel_ticket(bitmap):
        logger.info("Kitchen ticket: cancellation")
        result = bitmap.with_paste(cancel_stamp(), 0, CANCEL_STAMP_Y)
    elif is_add_ticket(bitmap):
        logger.info("Kitchen ticket: order addition")
        result = split_order_lines(bitmap)
    elif is_duplicate_ticket(bitmap):
        logger.info("Kitchen ticket: duplicate, skipped")
        return None
    else:
        result = bitmap
    if result is bitmap:
        result = bitmap.copy()
    result.add_margin_bottom(BOTTOM_MARGIN)
    return result
