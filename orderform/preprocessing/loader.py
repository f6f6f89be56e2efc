"""Loading photographed forms from disk."""

from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from orderform.utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp")


class SourceNotFoundError(FileNotFoundError):
    """The input path does not resolve to a readable image."""


def load_image(path: Path | str) -> np.ndarray:
    """Read an image file as an RGB array.

    EXIF orientation from phone cameras is applied so the form is upright
    before any processing.

    Args:
        path: Path to a PNG, JPEG, TIFF, BMP or WebP file.

    Returns:
        RGB image as a ``uint8`` array of shape (height, width, 3).

    Raises:
        SourceNotFoundError: If the file is missing or cannot be decoded.
    """
    path = Path(path)
    if not path.is_file():
        raise SourceNotFoundError(f"Image not found: {path}")

    try:
        with Image.open(path) as img:
            img = ImageOps.exif_transpose(img)
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise SourceNotFoundError(f"Unreadable image {path}: {exc}") from exc

    image = np.array(rgb)
    logger.debug("Loaded %s (%dx%d)", path.name, image.shape[1], image.shape[0])
    return image
