"""Deskew correction for photographed forms.

Phone photos are rarely square to the page; even a couple of degrees of
rotation pushes field text out of the fixed crop regions. The skew angle
is found by projecting sheared rows through the middle of the page and
keeping the angle that lines text baselines up into long dark runs.
"""

import math

import cv2
import numpy as np

from orderform.utils.logger import get_logger

logger = get_logger(__name__)

DARK_LEVEL = 128
ROW_STEP = 5
COLUMN_STEP = 2
BAND_TOP = 0.3
BAND_BOTTOM = 0.7


def _projection_score(gray: np.ndarray, angle: float) -> int:
    """Score one candidate angle by the squared dark counts of sheared rows."""
    h, w = gray.shape[:2]
    rows = np.arange(h * BAND_TOP, h * BAND_BOTTOM, ROW_STEP)
    cols = np.arange(0, w, COLUMN_STEP)
    if rows.size == 0 or cols.size == 0:
        return 0

    shift = cols * math.tan(math.radians(angle))
    ys = np.rint(rows[:, None] + shift[None, :]).astype(np.int64)
    inside = (ys >= 0) & (ys < h)
    samples = gray[np.clip(ys, 0, h - 1), np.broadcast_to(cols, ys.shape)]
    dark = (samples < DARK_LEVEL) & inside

    counts = dark.sum(axis=1).astype(np.int64)
    return int((counts * counts).sum())


def detect_skew_angle(
    image: np.ndarray, max_angle: float = 10.0, step: float = 0.5
) -> float:
    """Detect the skew angle of a form image.

    A positive angle means text baselines drop towards the right edge.

    Args:
        image: Greyscale image.
        max_angle: Largest angle magnitude (degrees) to try.
        step: Angle increment in degrees.

    Returns:
        Best candidate angle in degrees, or 0.0 when nothing dark is found.
    """
    gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY) if len(image.shape) == 3 else image

    best_angle = 0.0
    best_score = 0
    for angle in np.arange(-max_angle, max_angle + step / 2, step):
        score = _projection_score(gray, float(angle))
        if score > best_score:
            best_score = score
            best_angle = float(angle)

    logger.debug("Detected skew angle: %.2f degrees", best_angle)
    return best_angle


def rotate(image: np.ndarray, angle: float) -> np.ndarray:
    """Rotate an image about its center, filling exposed corners with white.

    Args:
        image: Input image.
        angle: Counter-clockwise rotation in degrees.

    Returns:
        Rotated image with the same shape as the input.
    """
    h, w = image.shape[:2]
    center = (w / 2, h / 2)
    rotation_matrix = cv2.getRotationMatrix2D(center, angle, 1.0)
    fill = (255, 255, 255) if len(image.shape) == 3 else 255
    return cv2.warpAffine(
        image,
        rotation_matrix,
        (w, h),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=fill,
    )


def deskew(
    image: np.ndarray,
    max_angle: float = 10.0,
    step: float = 0.5,
    deadband: float = 0.3,
) -> tuple[np.ndarray, float]:
    """Detect and undo rotational skew.

    Args:
        image: Greyscale image.
        max_angle: Largest angle magnitude (degrees) to search.
        step: Search increment in degrees.
        deadband: Angles at or below this magnitude are left alone.

    Returns:
        Tuple of (deskewed image, detected angle).
    """
    angle = detect_skew_angle(image, max_angle=max_angle, step=step)

    if abs(angle) <= deadband:
        logger.debug("Skew angle within deadband, skipping correction")
        return image, angle

    # A baseline sloping down by +angle levels out after a counter-clockwise
    # rotation of the same size.
    result = rotate(image, angle)
    logger.info("Applied deskew correction: %.2f degrees", angle)
    return result, angle
