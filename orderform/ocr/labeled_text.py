"""Flattening per-region results into the labeled text block.

The labeled block is the only thing the parser sees: one ``Label: value``
line per region in catalog order, then a metadata footer that the parser
ignores.
"""

import re

from .recognizer import RegionResult
from .regions import REGION_SPECS

METADATA_MARKER = "[OCR_METADATA]"


def clean_region_text(text: str) -> str:
    """Normalize line breaks and horizontal whitespace in region text."""
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def low_confidence_fields(
    results: dict[str, RegionResult], threshold: float
) -> list[str]:
    """Describe regions under the confidence bar as ``name(NN%)``."""
    return [
        f"{name}({round(result.confidence)}%)"
        for name, result in results.items()
        if result.confidence < threshold
    ]


def average_confidence(results: dict[str, RegionResult]) -> float:
    """Mean confidence over all regions, 0 when there are none."""
    if not results:
        return 0.0
    return sum(r.confidence for r in results.values()) / len(results)


def build_labeled_text(
    results: dict[str, RegionResult], threshold: float = 70.0
) -> str:
    """Assemble the labeled text block with its metadata footer.

    Args:
        results: Region results keyed by catalog field name. Missing
            regions produce an empty value.
        threshold: Confidence bar used to list low-confidence regions.

    Returns:
        Newline-joined labeled block.
    """
    lines = []
    for spec in REGION_SPECS:
        result = results.get(spec.name)
        value = clean_region_text(result.text) if result else ""
        lines.append(spec.line(value))

    low = low_confidence_fields(results, threshold)
    lines.extend(
        [
            "",
            METADATA_MARKER,
            f"Average Confidence: {round(average_confidence(results))}%",
            f"Low Confidence Fields: {', '.join(low) or 'None'}",
        ]
    )
    return "\n".join(lines)
