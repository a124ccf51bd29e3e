"""ESC/POS receipt printing with a monochrome raster engine."""

__version__ = "0.1.0"
