"""Configuration management for the order form OCR pipeline.

Loads and validates YAML configuration. The defaults are the tuned
constants for the supported form; a config file only needs to list the
values it overrides.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class PreprocessingConfig(BaseModel):
    """Configuration for whole-image normalization."""

    # Region percentages are tuned against this width.
    target_width: int = Field(default=1700, gt=0)
    sharpen_enabled: bool = True
    contrast_enabled: bool = True
    contrast_amount: float = Field(default=0.45, gt=-1.0, lt=1.0)
    deskew_enabled: bool = True
    skew_max_angle: float = Field(default=10.0, gt=0.0)
    skew_step: float = Field(default=0.5, gt=0.0)
    skew_deadband: float = Field(default=0.3, ge=0.0)
    binarize_enabled: bool = True
    morphology_enabled: bool = True
    morphology_radius: int = Field(default=1, ge=1, le=2)


class OCRConfig(BaseModel):
    """Configuration for per-region Tesseract recognition."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    confidence_threshold: float = Field(default=70.0, ge=0.0, le=100.0)
    region_padding: int = Field(default=4, ge=0)
    min_region_width: int = Field(default=200, gt=0)
    min_region_height: int = Field(default=50, gt=0)
    numeric_contrast: float = Field(default=0.3, gt=-1.0, lt=1.0)
    text_contrast: float = Field(default=0.2, gt=-1.0, lt=1.0)


class ExtractionConfig(BaseModel):
    """Configuration for parsing the labeled OCR text."""

    lookahead_lines: int = Field(default=6, ge=0)
    default_description: str = "Carpet / Rug"


class ValidationConfig(BaseModel):
    """Configuration for the advisory record checks."""

    rules_path: str = "configs/validation_rules.yaml"


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load the pipeline configuration from a YAML file.

    Keys left out of the file keep their defaults. A relative
    ``validation.rules_path`` given in the file is resolved against the
    file's own directory, so a config and its review rules can be kept
    together anywhere.

    Args:
        path: YAML configuration file. Defaults to ``configs/config.yaml``.

    Returns:
        Validated application configuration; all defaults when the file
        does not exist.

    Raises:
        ValueError: If the file does not hold a mapping.
        pydantic.ValidationError: If a value is out of range.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.info("No config file found at %s, using defaults", path)
        return AppConfig()

    logger.info("Loading configuration from %s", path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must hold a mapping, not {type(raw).__name__}")

    config = AppConfig(**raw)
    validation = raw.get("validation") or {}
    rules_path = Path(config.validation.rules_path)
    if "rules_path" in validation and not rules_path.is_absolute():
        config.validation.rules_path = str(path.parent / rules_path)
    return config
