"""Tesseract OCR engine wrapper for form regions.

The engine carries per-call configuration (character whitelist, page
segmentation mode), so every configure/recognize/reset sequence runs as
one session under the engine lock. A single engine instance is shared by
the whole process and created lazily on first use.
"""

import shlex
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from orderform.field_types import DEFAULT_PROFILE, RecognitionProfile
from orderform.utils.config import OCRConfig
from orderform.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecognitionResult:
    """Text and mean word confidence (0-100) for one recognition call."""

    text: str
    confidence: float


def build_tesseract_config(profile: RecognitionProfile) -> str:
    """Render a recognition profile as Tesseract command-line options."""
    spacing = 1 if profile.preserve_spacing else 0
    parts = [
        f"--psm {int(profile.layout)}",
        f"-c preserve_interword_spaces={spacing}",
    ]
    if profile.whitelist:
        parts.append(
            "-c " + shlex.quote(f"tessedit_char_whitelist={profile.whitelist}")
        )
    return " ".join(parts)


class TesseractEngine:
    """Stateful wrapper around Tesseract for region recognition.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.profile: RecognitionProfile = DEFAULT_PROFILE
        self._lock = threading.RLock()

    def configure(self, profile: RecognitionProfile) -> None:
        """Set the whitelist and layout mode used by following calls."""
        with self._lock:
            self.profile = profile

    def reset(self) -> None:
        """Restore the default block layout without a whitelist."""
        with self._lock:
            self.profile = DEFAULT_PROFILE

    @contextmanager
    def session(self, profile: RecognitionProfile) -> Iterator["TesseractEngine"]:
        """Hold the engine for one region, configured with ``profile``.

        The engine is reset when the block exits, also on error, so a
        profile never leaks into the next region or another image.
        """
        with self._lock:
            self.configure(profile)
            try:
                yield self
            finally:
                self.reset()

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        """Recognize text in an image with the current profile.

        Args:
            image: Greyscale region image.

        Returns:
            Recognized text, one output line per Tesseract line, and the
            mean confidence of the recognized words.
        """
        with self._lock:
            psm = int(self.profile.layout)
            config = build_tesseract_config(self.profile)
            data = pytesseract.image_to_data(
                Image.fromarray(image),
                lang=self.default_lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )

        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []

        for i in range(len(data["text"])):
            word_text = str(data["text"][i]).strip()
            conf = float(data["conf"][i])
            if conf < 0 or not word_text:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word_text)
            confidences.append(conf)

        text = "\n".join(" ".join(words) for words in lines.values())
        confidence = sum(confidences) / len(confidences) if confidences else 0.0

        logger.debug(
            "Recognized %d words (psm %d) with confidence %.1f",
            len(confidences),
            psm,
            confidence,
        )
        return RecognitionResult(text=text, confidence=confidence)


_shared_engine: TesseractEngine | None = None
_shared_engine_lock = threading.Lock()


def get_shared_engine(config: OCRConfig | None = None) -> TesseractEngine:
    """Return the process-wide engine, creating it on first use.

    Concurrent first callers all receive the same instance. ``config`` only
    matters for the call that creates the engine.
    """
    global _shared_engine
    if _shared_engine is None:
        with _shared_engine_lock:
            if _shared_engine is None:
                config = config or OCRConfig()
                _shared_engine = TesseractEngine(
                    tesseract_cmd=config.tesseract_cmd,
                    default_lang=config.default_lang,
                )
                logger.info(
                    "Initialized shared Tesseract engine (%s)", config.default_lang
                )
    return _shared_engine
