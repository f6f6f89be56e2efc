"""Typed value parsers: invoice numbers, phones, dates and money.

Each parser corrects OCR misreads for its field type before matching, and
returns an empty string or zero instead of raising when nothing usable is
found.
"""

import re
from collections.abc import Callable, Sequence
from datetime import date

from orderform.field_types import FieldType

from .corrections import fix_ocr_errors
from .rules import label_windows, strip_label

PatternRule = tuple[re.Pattern[str], Callable[[re.Match[str]], str]]

PLAUSIBLE_PRICE = 10.0

_NUMBER = re.compile(r"\d+(?:\.\d{1,2})?")
_THOUSANDS = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")
_CURRENCY = re.compile(r"[$€£]")
_MONEY_SEPARATOR = re.compile(r"[\s/]+|,(?!\d{3}(?!\d))")


def first_match(text: str, rules: Sequence[PatternRule]) -> str:
    """Evaluate ``(pattern, post)`` rules in order; first non-empty result wins."""
    for pattern, post in rules:
        match = pattern.search(text)
        if match:
            value = post(match)
            if value:
                return value
    return ""


# Invoice numbers ---------------------------------------------------------


def _invoice_value(match: re.Match[str]) -> str:
    raw = re.sub(r"^CR\s*", "", match.group(1).strip(), flags=re.IGNORECASE)
    fixed = " ".join(fix_ocr_errors(raw, FieldType.NUMERIC).split())
    return f"CR {fixed}" if re.search(r"\d", fixed) else ""


INVOICE_RULES: tuple[PatternRule, ...] = (
    (
        re.compile(r"INVOICE[ \t]*#[ \t]*CR[ \t]*([A-Z0-9\- ]{3,})", re.IGNORECASE),
        _invoice_value,
    ),
    (re.compile(r"\bCR[ \t]*#?[ \t]*(\d{5,})\b", re.IGNORECASE), _invoice_value),
    (re.compile(r"INVOICE[ \t]*[#:]?[ \t]*(\d{4,})", re.IGNORECASE), _invoice_value),
)


def extract_invoice_number(text: str) -> str:
    """Find the invoice number, always returned as ``CR <number>``."""
    return first_match(text, INVOICE_RULES)


# Phone numbers -----------------------------------------------------------

PHONE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}"),
    re.compile(r"\d{3}[\s.-]?\d{4}"),
    re.compile(r"\d{10}"),
)


def format_phone(phone: str) -> str:
    """Canonicalize 10-digit and 7-digit numbers; return others verbatim."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 7:
        return f"{digits[:3]}-{digits[3:]}"
    return phone


def match_phone(text: str) -> str:
    """Correct ``text`` as a phone field and return the first phone found."""
    corrected = fix_ocr_errors(text, FieldType.PHONE)
    for pattern in PHONE_PATTERNS:
        match = pattern.search(corrected)
        if match:
            return format_phone(match.group(0))
    return ""


def find_phone(lines: Sequence[str], label: re.Pattern[str]) -> str:
    """Find a phone number near a label, falling back to the whole text.

    Args:
        lines: Stripped lines of the labeled text.
        label: Pattern of the phone's label.

    Returns:
        Canonical phone number, or an empty string.
    """
    for window in label_windows(lines, label, extra_lines=2):
        phone = match_phone(window)
        if phone:
            return phone

    for line in lines:
        phone = match_phone(strip_label(line))
        if phone:
            return phone
    return ""


# Dates -------------------------------------------------------------------

TODAY_SENTINEL = "TODAY"

_TODAY = re.compile(r"\btoday\b", re.IGNORECASE)
_NOT_AVAILABLE = re.compile(r"^(?:n/a|na|none)$", re.IGNORECASE)
_MDY = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})$")
_YMD = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")

DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?<!\d)\d{1,2}[/-]\d{1,2}[/-]\d{2,4}(?!\d)"),
    re.compile(r"(?<!\d)\d{4}[/-]\d{1,2}[/-]\d{1,2}(?!\d)"),
    re.compile(r"(?<!\d)\d{1,2}[ \t]+\d{1,2}[ \t]+\d{2,4}(?!\d)"),
)


def match_date(text: str) -> str:
    """Correct ``text`` as a date field and return the first date-like token.

    Space-separated dates come back with slashes; a literal ``today`` comes
    back as ``TODAY``.
    """
    corrected = fix_ocr_errors(text, FieldType.DATE)
    if _TODAY.search(corrected):
        return TODAY_SENTINEL
    for pattern in DATE_PATTERNS:
        match = pattern.search(corrected)
        if match:
            return re.sub(r"\s+", "/", match.group(0))
    return ""


def find_date(lines: Sequence[str], label: re.Pattern[str]) -> str:
    """Find a raw date near a label, falling back to the whole text."""
    for window in label_windows(lines, label, extra_lines=1):
        found = match_date(window)
        if found:
            return found

    for line in lines:
        found = match_date(strip_label(line))
        if found:
            return found
    return ""


def normalize_date(value: str, today: date | None = None) -> str:
    """Convert a raw date to ``YYYY-MM-DD``.

    Month must be 1-12 and day 1-31; days are not checked against the
    month. Two-digit years are taken as 20xx.

    Args:
        value: Raw date such as ``3/5/24``, ``2024-03-05`` or ``today``.
        today: Date used for ``today``; defaults to the local current date.

    Returns:
        ISO date, or an empty string for missing or invalid input.
    """
    v = (value or "").strip()
    if not v or _NOT_AVAILABLE.match(v):
        return ""
    if v.lower() == "today":
        return (today or date.today()).isoformat()

    match = _MDY.match(v)
    if match:
        month, day, year = (int(g) for g in match.groups())
    else:
        match = _YMD.match(v)
        if not match:
            return ""
        year, month, day = (int(g) for g in match.groups())

    if year < 100:
        year += 2000
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return ""
    return f"{year:04d}-{month:02d}-{day:02d}"


# Money -------------------------------------------------------------------


def _money_text(value: str | float | None) -> str:
    cleaned = _CURRENCY.sub("", _THOUSANDS.sub("", str(value or "")))
    return fix_ocr_errors(cleaned, FieldType.MONEY)


def parse_money(value: str | float | None) -> float:
    """Parse the first amount in a string, or 0.0 when there is none."""
    match = _NUMBER.search(_money_text(value))
    return float(match.group(0)) if match else 0.0


def money_tokens(text: str) -> list[str]:
    """Split a money region into the raw tokens that read as amounts.

    Whitespace, slashes and list commas separate tokens; a thousands comma
    stays inside its amount.
    """
    tokens = _MONEY_SEPARATOR.split(text or "")
    return [token for token in tokens if _NUMBER.search(_money_text(token))]


def find_numbers(text: str) -> list[float]:
    """All amounts in a money region, each parsed with ``parse_money``."""
    return [parse_money(token) for token in money_tokens(text)]


def pick_unit_and_amount(text: str) -> tuple[float, float]:
    """Split the unit/amount region into a unit price and a line amount.

    Values of 10 or more count as prices; smaller numbers are usually
    quantities or noise. One price fills both slots, two or more give
    (first, second), and with no price the first number fills both.

    Args:
        text: Recognized text of the unit/amount region.

    Returns:
        Tuple of (unit_price, amount); (0.0, 0.0) when no number is found.
    """
    numbers = find_numbers(text)
    if not numbers:
        return 0.0, 0.0

    prices = [n for n in numbers if n >= PLAUSIBLE_PRICE]
    if len(prices) == 1:
        return prices[0], prices[0]
    if len(prices) >= 2:
        return prices[0], prices[1]
    return numbers[0], numbers[0]
