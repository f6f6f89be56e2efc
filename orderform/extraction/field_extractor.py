"""Label-anchored field extraction from the labeled OCR text.

Each header and line-item field is an independent lookup over the same
text: free-text fields through prioritized label rules, and dates, phones,
the invoice number and prices through their typed parsers. Extraction
never fails; fields that cannot be recovered come out empty or zero.
"""

from orderform.field_types import FieldType
from orderform.schemas import LineItem, OrderRecord
from orderform.utils.config import ExtractionConfig
from orderform.utils.logger import get_logger

from .parsers import (
    extract_invoice_number,
    find_date,
    find_phone,
    normalize_date,
    pick_unit_and_amount,
)
from .rules import (
    FieldRule,
    apply_rule,
    cleanup_text,
    labels,
    split_lines,
    value_after_label,
)

logger = get_logger(__name__)


def _normalize_email(value: str) -> str:
    return "".join(value.split()).lower()


HEADER_RULES: tuple[FieldRule, ...] = (
    FieldRule("sold_to", labels(r"sold\s*to", r"customer\s*name", r"bill\s*to")),
    FieldRule("directions", labels(r"directions", r"address", r"location")),
    FieldRule(
        "email",
        labels(r"customer\s*email", r"e[\s-]?mail", r"email\s*address"),
        FieldType.EMAIL,
        post=_normalize_email,
    ),
    FieldRule("installed_by", labels(r"installed\s*by", r"installer")),
    FieldRule("salesperson", labels(r"salesperson", r"sales\s*rep", r"sold\s*by")),
)

ITEM_RULES: tuple[FieldRule, ...] = (
    FieldRule("manufacturer", labels(r"manufacturer", r"brand", r"maker")),
    FieldRule("size", labels(r"\bsize\b", r"dimensions")),
    FieldRule("style", labels(r"\bstyle\b", r"\btype\b", r"pattern")),
    FieldRule("color", labels(r"\bcolou?r\b")),
    FieldRule("pad", labels(r"^pad\b", r"padding")),
    FieldRule("rug_pad", labels(r"rug\s*pad", r"carpet\s*pad")),
)

DATE_LABELS = {
    "order_date": labels(r"^(?:order\s*)?date\b")[0],
    "installation_date": labels(r"install(?:ation)?\s*date")[0],
}

PHONE_LABELS = {
    "home_phone": labels(r"home\s*phone")[0],
    "cell_phone": labels(r"cell\s*phone")[0],
}

UNIT_AMOUNT_LABEL = labels(r"unit[\s/]*amount\s*block")[0]


class FieldExtractor:
    """Turns the labeled OCR text into an ``OrderRecord``.

    Args:
        config: Extraction configuration; defaults are used when omitted.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def extract(self, labeled_text: str) -> OrderRecord:
        """Extract every header field and the single line item.

        Args:
            labeled_text: Labeled block produced by the recognizer; any
                metadata footer is ignored.

        Returns:
            The structured record. Missing critical fields are logged as a
            single warning.
        """
        text = cleanup_text(labeled_text)
        lines = split_lines(text)
        lookahead = self.config.lookahead_lines

        header = {
            rule.name: apply_rule(rule, lines, lookahead) for rule in HEADER_RULES
        }
        dates = {
            name: normalize_date(find_date(lines, label))
            for name, label in DATE_LABELS.items()
        }
        phones = {
            name: find_phone(lines, label) for name, label in PHONE_LABELS.items()
        }
        item_fields = {
            rule.name: apply_rule(rule, lines, lookahead) for rule in ITEM_RULES
        }

        unit_price, amount = pick_unit_and_amount(
            value_after_label(lines, UNIT_AMOUNT_LABEL, lookahead=lookahead)
        )
        item = LineItem(
            line_number=1,
            description=self.config.default_description,
            quantity=1,
            unit_price=unit_price,
            amount=amount,
            **item_fields,
        )

        record = OrderRecord(
            invoice_number=extract_invoice_number(text),
            **header,
            **dates,
            **phones,
            items=[item],
        )

        missing = record.missing_critical_fields()
        if missing:
            logger.warning("Missing critical fields: %s", ", ".join(missing))
        logger.info(
            "Extracted order %s for %s",
            record.invoice_number or "<no invoice>",
            record.sold_to or "<no customer>",
        )
        return record
