"""Per-region cropping, conditioning and recognition.

Each form field is cropped from the normalized image, conditioned for its
field type, and read with a field-specific Tesseract profile. Digit fields
that read with low confidence get one more attempt on the inverted crop.
"""

from dataclasses import dataclass

import cv2
import numpy as np
import pytesseract

from orderform.field_types import FieldType, is_digit_field, profile_for
from orderform.preprocessing.enhance import boost_contrast, invert, sharpen
from orderform.utils.config import OCRConfig
from orderform.utils.logger import get_logger

from .regions import RegionBox, clamp_box, pad_box
from .tesseract_engine import RecognitionResult, TesseractEngine

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegionResult:
    """Recognized text and confidence (0-100) for one form region."""

    text: str
    confidence: float


def crop_region(image: np.ndarray, box: RegionBox, padding: int) -> np.ndarray:
    """Clamp, pad and cut a region out of an image.

    Args:
        image: Normalized greyscale image.
        box: Region box in pixel coordinates; may extend past the image.
        padding: Extra pixels on every side so glyph edges are not clipped.

    Returns:
        A copy of the padded region.
    """
    h, w = image.shape[:2]
    clamped = clamp_box(box, w, h)
    padded = pad_box(clamped, padding, w, h)
    return image[
        padded.y : padded.y + padded.height, padded.x : padded.x + padded.width
    ].copy()


def upscale_small(crop: np.ndarray, min_width: int, min_height: int) -> np.ndarray:
    """Enlarge a crop whose width or height is under the usability floor.

    Small crops are scaled by at least 2x, and far enough that both
    dimensions clear the floor.
    """
    h, w = crop.shape[:2]
    if w >= min_width and h >= min_height:
        return crop

    scale = max(min_width / w, min_height / h, 2.0)
    size = (round(w * scale), round(h * scale))
    logger.debug("Upscaling %dx%d region by %.2f", w, h, scale)
    return cv2.resize(crop, size, interpolation=cv2.INTER_CUBIC)


class RegionRecognizer:
    """Reads single form regions with a shared Tesseract engine.

    Args:
        engine: Engine used for every region; calls are serialized by the
            engine's session lock.
        config: OCR configuration (padding, size floor, retry bar).
    """

    def __init__(self, engine: TesseractEngine, config: OCRConfig) -> None:
        self.engine = engine
        self.config = config

    def prepare(
        self, image: np.ndarray, box: RegionBox, field_type: FieldType
    ) -> np.ndarray:
        """Crop and condition a region for recognition."""
        crop = crop_region(image, box, self.config.region_padding)

        amount = (
            self.config.numeric_contrast
            if is_digit_field(field_type)
            else self.config.text_contrast
        )
        crop = boost_contrast(crop, amount)
        crop = upscale_small(
            crop, self.config.min_region_width, self.config.min_region_height
        )
        # Cropping and resampling soften edges again.
        return sharpen(crop)

    def recognize(
        self, image: np.ndarray, box: RegionBox, field_type: FieldType
    ) -> RegionResult:
        """Recognize the text inside one region.

        Args:
            image: Normalized greyscale image.
            box: Region box in pixel coordinates.
            field_type: Semantic type selecting contrast and OCR profile.

        Returns:
            The better of the normal and (for digit fields) inverted attempt.
        """
        crop = self.prepare(image, box, field_type)
        threshold = self.config.confidence_threshold

        with self.engine.session(profile_for(field_type)) as engine:
            best = self._attempt(engine, crop)

            if best.confidence < threshold and is_digit_field(field_type):
                retry = self._attempt(engine, invert(crop))
                logger.debug(
                    "Inverted retry for %s region: %.1f -> %.1f",
                    field_type,
                    best.confidence,
                    retry.confidence,
                )
                if retry.confidence > best.confidence:
                    best = retry

        return RegionResult(text=best.text.strip(), confidence=best.confidence)

    def _attempt(self, engine: TesseractEngine, crop: np.ndarray) -> RecognitionResult:
        """Run one recognition call; engine failures read as empty text."""
        try:
            return engine.recognize(crop)
        except pytesseract.TesseractError as exc:
            logger.warning("Tesseract failed on region: %s", exc)
            return RecognitionResult(text="", confidence=0.0)
