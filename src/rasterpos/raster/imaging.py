"""Conversion between Pillow images and bitmaps, plus text stamps and image fetching."""

import asyncio
import base64
import binascii
import io
import logging
from datetime import datetime
from pathlib import Path

import aiohttp
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from rasterpos.raster.bitmap import Alignment, Bitmap

logger = logging.getLogger(__name__)

# Luminance below this is ink when importing without dithering.
BLACK_THRESHOLD = 187
# Cutoff used by the error-diffusion importer.
DITHER_THRESHOLD = 230

DATA_URL_PREFIX = "data:image/png;base64,"
TEXT_FONT_SIZE = 24
TIME_STAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_INVERT = bytes(255 - i for i in range(256))


class ImageImportError(Exception):
    """Raised when image data cannot be decoded into a bitmap."""


def _flatten(image: Image.Image) -> Image.Image:
    """Composite any transparency onto white and return an 8-bit grayscale image."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, rgba)
    return image.convert("L")


def _pack(ink: Image.Image) -> Bitmap:
    """Pack an L image where 255 marks ink into a bitmap."""
    width, height = ink.size
    # Mode "1" rows are MSB-first and byte padded, matching the bitmap layout.
    data = ink.convert("1", dither=Image.Dither.NONE).tobytes()
    return Bitmap(width, height, data)


def _floyd_steinberg(gray: Image.Image) -> Image.Image:
    """Dither with the standard 7/3/5/1 kernel.

    Diffused error is carried as floats and never clamped, so dark and light
    runs keep their full error until the threshold decides each pixel.
    """
    width, height = gray.size
    pixels = [float(v) for v in gray.tobytes()]
    for y in range(height):
        row = y * width
        for x in range(width):
            old = pixels[row + x]
            new = 0 if old < DITHER_THRESHOLD else 255
            pixels[row + x] = new
            error = old - new
            if not error:
                continue
            for dx, dy, weight in ((1, 0, 7), (-1, 1, 3), (0, 1, 5), (1, 1, 1)):
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and ny < height:
                    i = ny * width + nx
                    pixels[i] += error * weight / 16
    return Image.frombytes("L", gray.size, bytes(int(v) for v in pixels))


def from_image(image: Image.Image, dither: bool = False, align: str | Alignment = Alignment.CENTER) -> Bitmap:
    """Convert a Pillow image into a bitmap.

    Args:
        image: Source image in any mode. Transparent areas count as white.
        dither: Use Floyd-Steinberg error diffusion instead of a fixed
            threshold. Better for photographs and logos with gradients.
        align: Alignment stored on the resulting bitmap.

    Returns:
        A bitmap whose width is the image width rounded up to a multiple of
        8; the padding columns are white.
    """
    gray = _flatten(image)
    if dither:
        ink = _floyd_steinberg(gray).point(lambda v: 255 if v == 0 else 0)
    else:
        ink = gray.point(lambda v: 255 if v < BLACK_THRESHOLD else 0)
    bitmap = _pack(ink)
    bitmap.align = Alignment.parse(align)
    return bitmap


def from_png_bytes(data: bytes, dither: bool = False) -> Bitmap:
    """Decode PNG (or any Pillow-readable) bytes into a bitmap.

    Raises:
        ImageImportError: If the data is not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return from_image(image, dither=dither)
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Failed to decode image data: {e}")
        raise ImageImportError(f"Failed to decode image: {e}") from e


def _b64decode(data: str) -> bytes:
    try:
        return base64.b64decode(data.strip(), validate=False)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed to decode base64 string: {e}")
        raise ImageImportError(f"Invalid base64 data: {e}") from e


def from_base64_png(data: str, dither: bool = False) -> Bitmap:
    """Decode a base64 PNG into a bitmap."""
    return from_png_bytes(_b64decode(data), dither=dither)


def from_epos_image(width: int, height: int, content: str, align: str | Alignment = Alignment.CENTER) -> Bitmap:
    """Build a bitmap from an ePOS ``<image>`` element's attributes and base64 body.

    Raises:
        ImageImportError: If the body is not valid base64.
    """
    return Bitmap.from_bytes(width, height, _b64decode(content), align)


def load_png(path: str | Path, dither: bool = False) -> Bitmap:
    return from_png_bytes(Path(path).read_bytes(), dither=dither)


# Export


def to_image(bitmap: Bitmap) -> Image.Image:
    """Render a bitmap as a Pillow mode "1" image (black ink on white)."""
    if bitmap.is_empty():
        raise ValueError("Cannot render an empty bitmap")
    return Image.frombytes("1", (bitmap.width, bitmap.height), bytes(bitmap.content).translate(_INVERT))


def to_png_bytes(bitmap: Bitmap) -> bytes:
    buffer = io.BytesIO()
    to_image(bitmap).save(buffer, format="PNG")
    return buffer.getvalue()


def save_png(bitmap: Bitmap, path: str | Path) -> Path:
    path = Path(path)
    to_image(bitmap).save(path, format="PNG")
    return path


# Text


def _load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    return ImageFont.load_default(size=size)


def from_text(text: str, font_size: int = TEXT_FONT_SIZE) -> Bitmap | None:
    """Render a single line of text as a tightly sized bitmap.

    Returns None for empty text.
    """
    if not text:
        return None
    font = _load_font(font_size)
    left, top, right, bottom = font.getbbox(text)
    width = max(right - left, 1)
    height = max(bottom - top, 1)
    image = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(image)
    # Draw ink as 255 so it can be packed directly.
    draw.text((-left, -top), text, font=font, fill=255)
    return _pack(image.point(lambda v: 255 if v >= 128 else 0))


def draw_text(bitmap: Bitmap, text: str, x: int, y: int, font_size: int = TEXT_FONT_SIZE) -> Bitmap:
    """Overlay ``text`` onto ``bitmap`` with its top-left corner at (x, y).

    Empty text or an empty bitmap returns ``bitmap`` unchanged.
    """
    if bitmap.is_empty():
        return bitmap
    stamp = from_text(text, font_size)
    if stamp is None:
        return bitmap
    return bitmap.with_paste(stamp, x, y)


def order_time_stamp(now: datetime | None = None, width: int = 512, height: int = 60) -> Bitmap:
    """A ``width`` x ``height`` banner carrying the given (or current) time."""
    now = now or datetime.now()
    return draw_text(Bitmap(width, height), now.strftime(TIME_STAMP_FORMAT), 100, 15)


# Fetching


async def fetch_image_bytes(url: str, timeout: float = 30.0) -> bytes:
    """Retrieve image bytes from a ``file:``, ``http(s)://`` or PNG ``data:`` URL.

    Raises:
        ImageImportError: If the scheme is unsupported or the fetch fails.
    """
    if url.startswith("file:"):
        path = Path(url.removeprefix("file:").removeprefix("//"))
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ImageImportError(f"Failed to open local file: {e}") from e

    if url.startswith(("http://", "https://")):
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
                logger.debug(f"Downloading image: {url}")
                async with session.get(url) as resp:
                    if resp.status != 200:
                        raise ImageImportError(f"Failed to download image: status {resp.status}")
                    return await resp.read()
        except aiohttp.ClientError as e:
            raise ImageImportError(f"Failed to download image: {e}") from e

    if url.startswith(DATA_URL_PREFIX):
        return _b64decode(url.removeprefix(DATA_URL_PREFIX))

    raise ImageImportError(f"Unsupported URL scheme: {url[:32]}")


async def fetch_bitmap(url: str, dither: bool = False) -> Bitmap:
    """Fetch an image by URL and convert it into a bitmap."""
    data = await fetch_image_bytes(url)
    return from_png_bytes(data, dither=dither)
