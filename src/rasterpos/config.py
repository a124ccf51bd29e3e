"""Configuration management for rasterpos."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rasterpos.models.printer import PrinterConfig

logger = logging.getLogger(__name__)


class GlyphCatalogConfig(BaseModel):
    """Reference image and label table for glyph recognition.

    ``glyphs`` maps each label to ``[x0, y0, x1, y1]`` in the reference image.
    """

    image_path: Path | None = None
    image_base64: str | None = None
    glyphs: dict[str, list[int]] = Field(default_factory=dict)
    threshold: float = 0.9

    @model_validator(mode="after")
    def _check_source(self) -> "GlyphCatalogConfig":
        if self.image_path is None and not self.image_base64:
            raise ValueError("glyph_catalog needs image_path or image_base64")
        return self


class AppConfig(BaseModel):
    """Application configuration loaded from config.yaml."""

    queue_timeout_seconds: int = 300
    printers: list[PrinterConfig] = Field(default_factory=list)
    glyph_catalog: GlyphCatalogConfig | None = None

    @model_validator(mode="after")
    def _unique_printer_names(self) -> "AppConfig":
        names = [p.name for p in self.printers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate printer names: {', '.join(duplicates)}")
        return self


class Settings(BaseSettings):
    """Environment-based settings."""

    model_config = SettingsConfigDict(
        env_prefix="RASTERPOS_",
        env_file=".env",
        extra="ignore",
    )

    config_file: Path = Path("config.yaml")
    debug: bool = False
    default_printer: str | None = None


def load_config(config_path: Path) -> AppConfig:
    """Load application configuration from YAML file."""
    if not config_path.exists():
        logger.warning(f"Config file {config_path} not found, using defaults")
        return AppConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Handle None values for list fields (YAML returns None for empty keys)
    if data.get("printers") is None:
        data["printers"] = []

    # Older configs map printer names to settings instead of listing them
    if isinstance(data["printers"], dict):
        data["printers"] = [{"name": name, **(cfg or {})} for name, cfg in data["printers"].items()]

    config = AppConfig.model_validate(data)
    relative_image = config.glyph_catalog is not None and config.glyph_catalog.image_path is not None
    if relative_image and not config.glyph_catalog.image_path.is_absolute():
        config.glyph_catalog.image_path = config_path.parent / config.glyph_catalog.image_path
    logger.debug(f"Loaded {len(config.printers)} printers from {config_path}")
    return config


settings = Settings()
