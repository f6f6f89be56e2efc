"""Shared test fixtures for the order form OCR test suite."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from orderform.ocr.tesseract_engine import RecognitionResult, TesseractEngine

SAMPLE_LABELED_TEXT = """INVOICE # CR 12345
Sold to: John Smith
Directions: 12 Main St
Customer Email: John.Smith @Example.com
Date: 3/5/24
Home Phone: 555 123 4567
Cell Phone: (555) 987-6543
Installation Date: 4/1/2024
Installed By: Mike
Salesperson: Sarah
Manufacturer: Shaw
Size: 12x15
Style: Berber
Color: Beige
Pad: 8 lb
Rug Pad: None
Unit/Amount Block: 1 450.00 675.50
Totals Block: 675.50

[OCR_METADATA]
Average Confidence: 84%
Low Confidence Fields: None"""


class ScriptedEngine(TesseractEngine):
    """Engine double that returns queued results instead of running Tesseract.

    Every call records the active profile and the image it was given.
    """

    def __init__(self, results: list[RecognitionResult] | None = None) -> None:
        super().__init__()
        self.results = list(results or [])
        self.calls: list[tuple[object, np.ndarray]] = []

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        with self._lock:
            self.calls.append((self.profile, image))
            if self.results:
                return self.results.pop(0)
            return RecognitionResult(text="", confidence=0.0)


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic greyscale test image."""
    image = np.full((200, 300), 255, dtype=np.uint8)
    image[50:150, 50:250] = 0
    return image


@pytest.fixture
def form_image() -> np.ndarray:
    """Create a white RGB page with a few dark text-like bars."""
    image = np.full((1100, 850, 3), 255, dtype=np.uint8)
    for y in range(120, 1000, 40):
        image[y : y + 6, 60:790] = 20
    return image


@pytest.fixture
def form_image_path(tmp_path: Path, form_image: np.ndarray) -> Path:
    """Write the synthetic form page to a PNG file."""
    path = tmp_path / "form.png"
    Image.fromarray(form_image).save(path, format="PNG")
    return path


@pytest.fixture
def labeled_text() -> str:
    """A complete labeled text block as produced by the recognizer."""
    return SAMPLE_LABELED_TEXT


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"


@pytest.fixture
def scripted_engine():
    """Factory for engines that replay a list of recognition results."""

    def _make(results: list[RecognitionResult] | None = None) -> ScriptedEngine:
        return ScriptedEngine(results)

    return _make
