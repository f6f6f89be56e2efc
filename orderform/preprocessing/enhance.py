"""Resizing, greyscale, sharpening and contrast helpers.

These operations are shared by whole-image normalization and by the
per-region conditioning done before recognition.
"""

import cv2
import numpy as np

from orderform.utils.logger import get_logger

logger = get_logger(__name__)

SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.float32,
)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB image to greyscale; greyscale input is returned as is."""
    if len(image.shape) == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image


def resize_to_width(image: np.ndarray, target_width: int) -> np.ndarray:
    """Resize an image to a fixed width, preserving the aspect ratio.

    Args:
        image: Input image.
        target_width: Width in pixels of the result.

    Returns:
        Resized image, or the input unchanged if it already has that width.
    """
    h, w = image.shape[:2]
    if w == target_width:
        return image

    target_height = max(1, round(h * target_width / w))
    interpolation = cv2.INTER_AREA if target_width < w else cv2.INTER_CUBIC
    result = cv2.resize(
        image, (target_width, target_height), interpolation=interpolation
    )
    logger.debug("Resized %dx%d -> %dx%d", w, h, target_width, target_height)
    return result


def sharpen(image: np.ndarray) -> np.ndarray:
    """Apply a 3x3 sharpening kernel to counter camera blur."""
    return cv2.filter2D(image, -1, SHARPEN_KERNEL)


def boost_contrast(image: np.ndarray, amount: float) -> np.ndarray:
    """Stretch intensities away from mid-grey.

    Args:
        image: Greyscale ``uint8`` image.
        amount: Contrast change in the open interval (-1, 1); positive
            values increase contrast.

    Returns:
        Contrast-adjusted ``uint8`` image.
    """
    factor = (1.0 + amount) / (1.0 - amount)
    adjusted = (image.astype(np.float32) - 127.5) * factor + 127.5
    return np.clip(adjusted, 0, 255).astype(np.uint8)


def normalize_histogram(image: np.ndarray) -> np.ndarray:
    """Stretch the intensity range to the full 0-255 span."""
    return cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX)


def invert(image: np.ndarray) -> np.ndarray:
    """Swap dark and light pixels."""
    return cv2.bitwise_not(image)
