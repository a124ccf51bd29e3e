"""Receipt transformers applied to raster jobs before printing."""

from rasterpos.transformers import kitchen, reprint
from rasterpos.transformers.base import (
    IDENTITY,
    Transformer,
    available_transformers,
    get_transformer,
    identity,
    register_transformer,
)

__all__ = [
    "IDENTITY",
    "Transformer",
    "available_transformers",
    "get_transformer",
    "identity",
    "kitchen",
    "register_transformer",
    "reprint",
]
