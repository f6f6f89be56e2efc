"""Per-field-type tables shared by recognition and extraction.

Each semantic field type carries a Tesseract recognition profile (character
whitelist and layout mode) and an OCR correction rule (glyph substitutions
plus the characters that survive cleanup). Keeping both in one table means
the recognizer and the parser always agree on what a field may contain.
"""

import re
from dataclasses import dataclass
from enum import IntEnum, StrEnum


class FieldType(StrEnum):
    """Semantic type of a form field."""

    NUMERIC = "numeric"
    DATE = "date"
    PHONE = "phone"
    EMAIL = "email"
    TEXT = "text"
    BLOCK = "block"
    # Parse-only type for prices: numeric substitutions, decimal point kept.
    MONEY = "money"


class LayoutMode(IntEnum):
    """Tesseract page segmentation modes used for form regions."""

    BLOCK = 6
    SINGLE_LINE = 7


@dataclass(frozen=True)
class RecognitionProfile:
    """How the OCR engine should read one kind of field."""

    layout: LayoutMode
    whitelist: str | None = None
    preserve_spacing: bool = True


@dataclass(frozen=True)
class CorrectionRule:
    """Systematic OCR misread fixes for one kind of field."""

    substitutions: tuple[tuple[str, str], ...]
    strip_pattern: re.Pattern[str] | None = None
    protected_token: re.Pattern[str] | None = None


DEFAULT_PROFILE = RecognitionProfile(layout=LayoutMode.BLOCK)

PROFILES: dict[FieldType, RecognitionProfile] = {
    FieldType.NUMERIC: RecognitionProfile(
        layout=LayoutMode.SINGLE_LINE,
        whitelist="0123456789CR-. ",
    ),
    FieldType.DATE: RecognitionProfile(
        layout=LayoutMode.SINGLE_LINE,
        whitelist="0123456789/-TODAYtoday ",
    ),
    FieldType.PHONE: RecognitionProfile(
        layout=LayoutMode.SINGLE_LINE,
        whitelist="0123456789()-. ",
    ),
    FieldType.EMAIL: RecognitionProfile(
        layout=LayoutMode.SINGLE_LINE,
        whitelist=(
            "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789@.-_+"
        ),
        preserve_spacing=False,
    ),
    FieldType.TEXT: RecognitionProfile(layout=LayoutMode.BLOCK),
    FieldType.BLOCK: RecognitionProfile(layout=LayoutMode.BLOCK),
}

# Field types whose regions get the stronger contrast boost and the
# inverted-image retry when confidence is low.
DIGIT_FIELD_TYPES: frozenset[FieldType] = frozenset(
    {FieldType.NUMERIC, FieldType.DATE, FieldType.PHONE}
)

DIGIT_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("[Oo]", "0"),
    ("[lI|]", "1"),
    ("[Ss$]", "5"),
    ("[Zz]", "2"),
    ("[Bb]", "8"),
    ("[Gg]", "9"),
)

CORRECTIONS: dict[FieldType, CorrectionRule] = {
    FieldType.NUMERIC: CorrectionRule(
        substitutions=DIGIT_SUBSTITUTIONS,
        strip_pattern=re.compile(r"[^\d\sCR-]"),
    ),
    FieldType.MONEY: CorrectionRule(
        substitutions=DIGIT_SUBSTITUTIONS,
        strip_pattern=re.compile(r"[^\d\s.-]"),
    ),
    FieldType.PHONE: CorrectionRule(
        substitutions=DIGIT_SUBSTITUTIONS,
        strip_pattern=re.compile(r"[^\d()\-. ]"),
    ),
    FieldType.DATE: CorrectionRule(
        substitutions=DIGIT_SUBSTITUTIONS,
        strip_pattern=re.compile(r"[^\d/\s-]"),
        protected_token=re.compile(r"(today)", re.IGNORECASE),
    ),
}


def profile_for(field_type: FieldType) -> RecognitionProfile:
    """Return the recognition profile for a field type.

    Types without a dedicated profile (such as ``MONEY``) read as text.
    """
    return PROFILES.get(field_type, PROFILES[FieldType.TEXT])


def is_digit_field(field_type: FieldType) -> bool:
    """Whether a field type holds mostly digits."""
    return field_type in DIGIT_FIELD_TYPES
