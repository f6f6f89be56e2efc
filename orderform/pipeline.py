"""End-to-end order form pipeline.

Sequences image normalization, per-region recognition, the labeled text
hand-off and field extraction. Recognition and parsing only meet through
the labeled text block; a parse failure never triggers another crop.
"""

from dataclasses import dataclass, field
from pathlib import Path

from orderform.extraction.field_extractor import FieldExtractor
from orderform.ocr.labeled_text import (
    average_confidence,
    build_labeled_text,
    low_confidence_fields,
)
from orderform.ocr.recognizer import RegionRecognizer, RegionResult
from orderform.ocr.regions import field_type_of, regions_for
from orderform.ocr.tesseract_engine import TesseractEngine, get_shared_engine
from orderform.preprocessing.pipeline import (
    ImagePreprocessor,
    NormalizedImage,
    QualityMetrics,
)
from orderform.schemas import OrderRecord
from orderform.utils.config import AppConfig
from orderform.utils.logger import get_logger
from orderform.validation.rules_engine import RecordValidator, ValidationReport

logger = get_logger(__name__)


@dataclass
class RecognitionOutcome:
    """Output of the recognition stage for one image."""

    labeled_text: str
    regions: dict[str, RegionResult]
    normalized: NormalizedImage

    @property
    def average_confidence(self) -> float:
        return average_confidence(self.regions)


@dataclass
class FormExtraction:
    """Complete processing result for one form photo."""

    source_path: Path
    record: OrderRecord
    labeled_text: str
    regions: dict[str, RegionResult]
    average_confidence: float
    skew_angle: float
    metrics: QualityMetrics | None = None
    review: ValidationReport | None = None
    warnings: list[str] = field(default_factory=list)


class FormPipeline:
    """Image in, structured order record out.

    Args:
        config: Application configuration.
        engine: OCR engine to use. Defaults to the process-wide shared
            engine, which serializes region calls across images.
        validator: Advisory record checks; built from the configured rules
            file when omitted.
    """

    def __init__(
        self,
        config: AppConfig,
        engine: TesseractEngine | None = None,
        validator: RecordValidator | None = None,
    ) -> None:
        self.config = config
        self.preprocessor = ImagePreprocessor(config.preprocessing)
        self.engine = engine or get_shared_engine(config.ocr)
        self.recognizer = RegionRecognizer(self.engine, config.ocr)
        self.extractor = FieldExtractor(config.extraction)
        self.validator = validator or RecordValidator(
            Path(config.validation.rules_path)
        )

    def recognize_regions(self, image_path: Path | str) -> RecognitionOutcome:
        """Normalize an image and read every catalog region.

        Raises:
            SourceNotFoundError: If the path is not a readable image.
        """
        normalized = self.preprocessor.preprocess(image_path)
        boxes = regions_for(normalized.width, normalized.height)

        results: dict[str, RegionResult] = {}
        for name, box in boxes.items():
            results[name] = self.recognizer.recognize(
                normalized.image, box, field_type_of(name)
            )

        threshold = self.config.ocr.confidence_threshold
        low = low_confidence_fields(results, threshold)
        if low:
            logger.warning("Low confidence OCR fields: %s", ", ".join(low))
        logger.info(
            "Average OCR confidence: %d%%", round(average_confidence(results))
        )

        return RecognitionOutcome(
            labeled_text=build_labeled_text(results, threshold),
            regions=results,
            normalized=normalized,
        )

    def extract_text(self, labeled_text: str) -> OrderRecord:
        """Parse a labeled text block without touching any image."""
        return self.extractor.extract(labeled_text)

    def process(self, image_path: Path | str) -> FormExtraction:
        """Run the full pipeline on one form photo.

        Args:
            image_path: Path to the photographed form.

        Returns:
            The record with its OCR text, per-region results and review
            warnings.

        Raises:
            SourceNotFoundError: If the path is not a readable image.
        """
        path = Path(image_path)
        logger.info("Processing form: %s", path.name)

        outcome = self.recognize_regions(path)
        record = self.extract_text(outcome.labeled_text)
        review = self.validator.validate(record)

        return FormExtraction(
            source_path=path,
            record=record,
            labeled_text=outcome.labeled_text,
            regions=outcome.regions,
            average_confidence=outcome.average_confidence,
            skew_angle=outcome.normalized.skew_angle,
            metrics=outcome.normalized.metrics,
            review=review,
            warnings=list(review.warnings),
        )
