"""Configuration management for the NG ID extractor.

Loads and validates YAML configuration for image variants, OCR passes,
the remote OCR.Space service and the consensus thresholds.
"""

import logging
import os
from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

OCR_SPACE_KEY_ENV = "OCR_SPACE_API_KEY"


class Engine(StrEnum):
    """Which OCR backends feed lines into the consensus."""

    TESSERACT = "tesseract"
    OCRSPACE = "ocrspace"
    DUAL = "dual"


class DominancePolicy(StrEnum):
    """How the dominant identifier prefix is chosen."""

    HIGHEST = "highest"
    FIRST = "first"


class PreprocessingConfig(BaseModel):
    """Configuration for the image variant generator."""

    min_size: int = 1000
    thresholds: list[int] = Field(default_factory=lambda: [100, 120, 140, 160, 180])
    inverted_thresholds: list[int] = Field(default_factory=lambda: [100, 140, 180])
    include_grayscale: bool = False
    strips_enabled: bool = True
    strip_height_cm: float = 0.5
    dpi: int = 300


class TesseractPass(BaseModel):
    """A single Tesseract invocation applied to every variant."""

    psm: int = 6
    whitelist: str | None = None


def _default_passes() -> list[TesseractPass]:
    return [
        TesseractPass(psm=6),
        TesseractPass(psm=7, whitelist="NG0123456789"),
        TesseractPass(psm=4),
    ]


class OCRConfig(BaseModel):
    """Configuration for the local Tesseract engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    passes: list[TesseractPass] = Field(default_factory=_default_passes)


class OCRSpaceConfig(BaseModel):
    """Configuration for the OCR.Space web API."""

    enabled: bool = True
    api_key: str | None = None
    url: str = "https://api.ocr.space/parse/image"
    language: str = "eng"
    timeout: float = 30.0


class ConsensusConfig(BaseModel):
    """Thresholds for frequency and dominant-prefix consensus."""

    per_image_ratio: float = 0.5
    global_ratio: float = 0.6
    min_count: int = 2
    fallback_count: int = 4
    strict_min_count: int = 3
    strict_fallback_count: int = 5
    policy: DominancePolicy = DominancePolicy.HIGHEST
    strict: bool = False


class ServerConfig(BaseModel):
    """Bind address for the API server."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    ocr_space: OCRSpaceConfig = Field(default_factory=OCRSpaceConfig)
    consensus: ConsensusConfig = Field(default_factory=ConsensusConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    engine: Engine = Engine.DUAL
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    When the file leaves ``ocr_space.api_key`` unset, the key is taken
    from the ``OCR_SPACE_API_KEY`` environment variable.

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

    if config.ocr_space.api_key is None:
        config.ocr_space.api_key = os.environ.get(OCR_SPACE_KEY_ENV) or None
    return config
