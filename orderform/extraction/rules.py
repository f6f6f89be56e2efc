"""Label-anchored search over the labeled OCR text.

The recognizer emits ``Label: value`` lines, but a value can also end up on
a following line. These helpers find a label, take its inline value if
present, and otherwise look ahead for the next non-blank line that is not
itself another field's label.
"""

import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from orderform.field_types import FieldType
from orderform.ocr.labeled_text import METADATA_MARKER
from orderform.ocr.regions import REGION_SPECS

from .corrections import fix_ocr_errors


def _label_pattern(label: str) -> str:
    if label.upper().startswith("INVOICE"):
        return r"INVOICE\s*#(?:\s*CR)?"
    return re.escape(label).replace(r"\ ", r"\s*") + r"\s*:"


LABEL_LINE = re.compile(
    r"^(?:" + "|".join(_label_pattern(spec.label) for spec in REGION_SPECS) + r")",
    re.IGNORECASE,
)


def labels(*patterns: str) -> tuple[re.Pattern[str], ...]:
    """Compile case-insensitive label patterns, highest priority first."""
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


@dataclass(frozen=True)
class FieldRule:
    """How to find one free-text field in the labeled text.

    Label patterns are tried in order and the first non-empty value wins.
    """

    name: str
    labels: tuple[re.Pattern[str], ...]
    field_type: FieldType = FieldType.TEXT
    post: Callable[[str], str] | None = None


def cleanup_text(text: str) -> str:
    """Normalize line endings and blank runs, and drop the metadata footer."""
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    marker = text.find(METADATA_MARKER)
    if marker != -1:
        text = text[:marker]
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def split_lines(text: str) -> list[str]:
    """Split text into stripped lines."""
    return [line.strip() for line in text.split("\n")]


def is_label_line(line: str) -> bool:
    """Whether a line starts with one of the form's field labels."""
    return bool(LABEL_LINE.match(line))


def strip_label(line: str) -> str:
    """Drop a leading field label, keeping only the value part of a line."""
    match = LABEL_LINE.match(line)
    return line[match.end() :].strip() if match else line


def value_after_label(
    lines: Sequence[str],
    label: re.Pattern[str],
    field_type: FieldType = FieldType.TEXT,
    lookahead: int = 6,
) -> str:
    """Find the value belonging to a label.

    Args:
        lines: Stripped lines of the labeled text.
        label: Pattern identifying the label line.
        field_type: Field type used for OCR correction of the value.
        lookahead: Maximum number of following lines to scan.

    Returns:
        The corrected inline value, or the first non-blank following line
        before the next label line, or an empty string.
    """
    for i, line in enumerate(lines):
        if not label.search(line):
            continue

        _, colon, rest = line.partition(":")
        inline = rest.strip() if colon else ""
        if inline:
            return fix_ocr_errors(inline, field_type).strip()

        for following in lines[i + 1 : i + 1 + lookahead]:
            if is_label_line(following):
                break
            if following:
                return fix_ocr_errors(following, field_type).strip()
    return ""


def first_labeled_value(
    lines: Sequence[str],
    patterns: Sequence[re.Pattern[str]],
    field_type: FieldType = FieldType.TEXT,
    lookahead: int = 6,
) -> str:
    """Try alternative labels in priority order; first non-empty value wins."""
    for pattern in patterns:
        value = value_after_label(lines, pattern, field_type, lookahead)
        if value:
            return value
    return ""


def label_windows(
    lines: Sequence[str], label: re.Pattern[str], extra_lines: int
) -> Iterator[str]:
    """Yield the text near each occurrence of a label.

    A window is the rest of the label line after the label plus up to
    ``extra_lines`` following lines, stopping at the next label line.
    """
    for i, line in enumerate(lines):
        match = label.search(line)
        if not match:
            continue
        parts = [line[match.end() :]]
        for following in lines[i + 1 : i + 1 + extra_lines]:
            if is_label_line(following):
                break
            parts.append(following)
        yield " ".join(parts)


def apply_rule(rule: FieldRule, lines: Sequence[str], lookahead: int = 6) -> str:
    """Evaluate a free-text field rule against the labeled lines."""
    value = first_labeled_value(lines, rule.labels, rule.field_type, lookahead)
    if rule.post is not None:
        value = rule.post(value)
    return value
