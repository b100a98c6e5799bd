"""Configuration management for the CNIC OCR service.

Loads and validates YAML configuration with defaults for image
conditioning, the OCR.space client, and record validation.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "OCR_SPACE_API_KEY"


class ImageConfig(BaseModel):
    """Resolution floor and size ceiling for uploaded photos.

    Qualities are JPEG quality percentages; 70 corresponds to a
    compression factor of 0.7.
    """

    min_width: int = Field(default=800, gt=0)
    min_height: int = Field(default=500, gt=0)
    max_bytes: int = Field(default=1024 * 1024, gt=0)
    start_width: int = 1800
    width_step: int = Field(default=200, gt=0)
    start_quality: int = Field(default=70, ge=1, le=95)
    quality_step: int = Field(default=10, gt=0)
    min_quality: int = Field(default=10, ge=1, le=95)

    @model_validator(mode="after")
    def _check_floors(self) -> "ImageConfig":
        if self.start_width < self.min_width:
            raise ValueError("start_width must not be below min_width")
        if self.start_quality < self.min_quality:
            raise ValueError("start_quality must not be below min_quality")
        return self


class OCRConfig(BaseModel):
    """Configuration for the OCR.space recognition client."""

    api_key: str = ""
    api_url: str = "https://api.ocr.space/parse/image"
    language: str = "eng"
    engine: int = 2
    scale: bool = True
    detect_orientation: bool = True
    is_overlay_required: bool = True
    is_table: bool = False
    timeout_seconds: float = Field(default=30.0, gt=0)


class ValidationConfig(BaseModel):
    """Configuration for the record validation rules engine."""

    rules_path: str = "configs/validation_rules.yaml"


class ServerConfig(BaseModel):
    """Bind address for the API server."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, gt=0, lt=65536)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    image: ImageConfig = Field(default_factory=ImageConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    An empty ``ocr.api_key`` is filled from the ``OCR_SPACE_API_KEY``
    environment variable so the key can stay out of the config file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        config = AppConfig(**raw)
    else:
        logger.info("No config file found at %s, using defaults", path)
        config = AppConfig()

    if not config.ocr.api_key:
        config.ocr.api_key = os.environ.get(API_KEY_ENV_VAR, "")
        if not config.ocr.api_key:
            logger.warning("No OCR.space API key configured")
    return config
