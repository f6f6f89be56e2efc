"""OCR misread correction driven by the per-field-type correction table."""

import re

from orderform.field_types import CORRECTIONS, CorrectionRule, FieldType


def _apply(text: str, rule: CorrectionRule) -> str:
    for pattern, replacement in rule.substitutions:
        text = re.sub(pattern, replacement, text)
    if rule.strip_pattern is not None:
        text = rule.strip_pattern.sub("", text)
    return text


def fix_ocr_errors(text: str, field_type: FieldType = FieldType.TEXT) -> str:
    """Undo systematic glyph confusions for a field type.

    Digit-like letters are mapped to digits (``O`` to ``0``, ``S`` to ``5``
    and so on) and characters that cannot appear in the field are removed.
    A protected token such as ``today`` in dates is kept verbatim. Types
    without a correction rule are returned unchanged.

    Args:
        text: Raw recognized text.
        field_type: Semantic type of the field the text came from.

    Returns:
        Corrected text.
    """
    rule = CORRECTIONS.get(field_type)
    if rule is None:
        return text

    if rule.protected_token is None:
        return _apply(text, rule)

    # split() with a capturing group puts the protected tokens at odd indexes.
    parts = rule.protected_token.split(text)
    return "".join(
        part if i % 2 else _apply(part, rule) for i, part in enumerate(parts)
    )
