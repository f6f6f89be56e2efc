"""Otsu binarization and morphological cleanup for form images.

A fixed threshold fails across lighting conditions, so the threshold is
chosen per image from its intensity histogram. A small opening afterwards
removes specks that binarization leaves behind.
"""

import cv2
import numpy as np

from orderform.utils.logger import get_logger

logger = get_logger(__name__)

HISTOGRAM_BINS = 256


def otsu_threshold(image: np.ndarray) -> int:
    """Choose the threshold that maximizes between-class variance.

    For every candidate ``t`` the background class is the pixels below
    ``t`` and the foreground class the pixels at or above it.

    Args:
        image: Greyscale ``uint8`` image.

    Returns:
        Threshold in 0..255. Images with a single intensity return 0.
    """
    histogram = np.bincount(image.ravel(), minlength=HISTOGRAM_BINS).astype(
        np.float64
    )
    levels = np.arange(HISTOGRAM_BINS, dtype=np.float64)
    total = histogram.sum()
    total_sum = (levels * histogram).sum()

    # weight_bg[t] and sum_bg[t] cover intensities strictly below t.
    weight_bg = np.concatenate(([0.0], np.cumsum(histogram)[:-1]))
    sum_bg = np.concatenate(([0.0], np.cumsum(levels * histogram)[:-1]))
    weight_fg = total - weight_bg

    valid = (weight_bg > 0) & (weight_fg > 0)
    variance = np.zeros(HISTOGRAM_BINS, dtype=np.float64)
    mean_bg = sum_bg[valid] / weight_bg[valid]
    mean_fg = (total_sum - sum_bg[valid]) / weight_fg[valid]
    variance[valid] = weight_bg[valid] * weight_fg[valid] * (mean_bg - mean_fg) ** 2

    threshold = int(np.argmax(variance))
    logger.debug("Otsu threshold: %d", threshold)
    return threshold


def apply_threshold(image: np.ndarray, threshold: int) -> np.ndarray:
    """Map pixels at or above the threshold to white and the rest to black."""
    return np.where(image >= threshold, 255, 0).astype(np.uint8)


def binarize_otsu(image: np.ndarray) -> tuple[np.ndarray, int]:
    """Binarize a greyscale image at its Otsu threshold.

    Returns:
        Tuple of (binary image with values 0 or 255, threshold used).
    """
    threshold = otsu_threshold(image)
    return apply_threshold(image, threshold), threshold


def morphological_open(image: np.ndarray, radius: int = 1) -> np.ndarray:
    """Erode then dilate with a square structuring element.

    Args:
        image: Binary or greyscale image.
        radius: Half-width of the square element (1 gives 3x3).

    Returns:
        Opened image.
    """
    size = 2 * radius + 1
    kernel = np.ones((size, size), dtype=np.uint8)
    eroded = cv2.erode(image, kernel)
    result = cv2.dilate(eroded, kernel)
    logger.debug("Applied morphological opening (radius=%d)", radius)
    return result
