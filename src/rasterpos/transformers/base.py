"""Receipt transformer registry.

A transformer receives the bitmap of a job and returns the bitmap to print,
or None to suppress printing altogether.
"""

import logging
from collections.abc import Callable

from rasterpos.raster.bitmap import Bitmap

logger = logging.getLogger(__name__)

Transformer = Callable[[Bitmap], Bitmap | None]

IDENTITY = "identity"

_transformers: dict[str, Transformer] = {}


def register_transformer(name: str) -> Callable[[Transformer], Transformer]:
    """Decorator registering a transformer under ``name``."""

    def decorator(func: Transformer) -> Transformer:
        if name in _transformers:
            raise ValueError(f"Transformer '{name}' is already registered")
        _transformers[name] = func
        return func

    return decorator


@register_transformer(IDENTITY)
def identity(bitmap: Bitmap) -> Bitmap:
    """Print the bitmap as received."""
    return bitmap


def get_transformer(name: str | None) -> Transformer:
    """Look up a transformer by name.

    An empty name means identity. Unknown names also fall back to identity.
    """
    if not name:
        return identity
    transformer = _transformers.get(name)
    if transformer is None:
        logger.warning(f"Unknown transformer '{name}', using {IDENTITY}")
        return identity
    return transformer


def available_transformers() -> list[str]:
    return sorted(_transformers)
