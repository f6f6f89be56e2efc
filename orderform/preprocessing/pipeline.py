"""Whole-image normalization for photographed order forms.

Orchestrates width normalization, greyscale, sharpening, contrast,
deskew, Otsu binarization and morphological opening, with quality
metrics tracking.
"""

from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from orderform.utils.config import PreprocessingConfig
from orderform.utils.logger import get_logger

from .binarize import binarize_otsu, morphological_open
from .deskew import deskew
from .enhance import (
    boost_contrast,
    normalize_histogram,
    resize_to_width,
    sharpen,
    to_gray,
)
from .loader import load_image

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


@dataclass
class NormalizedImage:
    """A form image ready for region cropping."""

    image: np.ndarray
    width: int
    height: int
    skew_angle: float
    threshold: int | None
    metrics: QualityMetrics


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (RGB or greyscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (RGB or greyscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(to_gray(image).std())


class ImagePreprocessor:
    """Normalizes a raw form photo into a clean, binarized, deskewed image.

    All region boxes are percentages of the normalized width, so width
    normalization always runs; the other steps can be switched off for
    diagnostics.

    Args:
        config: Preprocessing configuration.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def preprocess(self, image_path: Path | str) -> NormalizedImage:
        """Load an image file and normalize it.

        Raises:
            SourceNotFoundError: If the path is not a readable image.
        """
        return self.process(load_image(image_path))

    def process(self, image: np.ndarray) -> NormalizedImage:
        """Run the normalization chain on an in-memory image.

        Args:
            image: RGB or greyscale ``uint8`` image.

        Returns:
            The normalized image with its size, skew and threshold.
        """
        cfg = self.config
        sharpness_before = calculate_sharpness(image)
        contrast_before = calculate_contrast(image)

        result = resize_to_width(image, cfg.target_width)
        result = to_gray(result)

        if cfg.sharpen_enabled:
            result = sharpen(result)

        if cfg.contrast_enabled:
            result = boost_contrast(result, cfg.contrast_amount)
            result = normalize_histogram(result)

        skew_angle = 0.0
        if cfg.deskew_enabled:
            result, skew_angle = deskew(
                result,
                max_angle=cfg.skew_max_angle,
                step=cfg.skew_step,
                deadband=cfg.skew_deadband,
            )

        threshold: int | None = None
        if cfg.binarize_enabled:
            result, threshold = binarize_otsu(result)

        if cfg.morphology_enabled:
            result = morphological_open(result, radius=cfg.morphology_radius)

        metrics = QualityMetrics(
            sharpness_before=sharpness_before,
            sharpness_after=calculate_sharpness(result),
            contrast_before=contrast_before,
            contrast_after=calculate_contrast(result),
        )

        h, w = result.shape[:2]
        logger.info(
            "Preprocessing complete: %dx%d, skew %.1f, threshold %s, "
            "sharpness %.1f->%.1f, contrast %.1f->%.1f",
            w,
            h,
            skew_angle,
            threshold,
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return NormalizedImage(
            image=result,
            width=w,
            height=h,
            skew_angle=skew_angle,
            threshold=threshold,
            metrics=metrics,
        )
