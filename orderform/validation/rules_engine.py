"""Advisory review checks for extracted order records.

Extraction favours an imperfect record over no record, so these checks
never change the record or stop the pipeline. They produce a report that
tells a human reviewer which fields to look at first.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from orderform.schemas import OrderRecord
from orderform.utils.logger import get_logger

logger = get_logger(__name__)

_EMAIL = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")
_PHONE = re.compile(r"^(?:\(\d{3}\) \d{3}-\d{4}|\d{3}-\d{4})$")


@dataclass
class ValidationResult:
    """Result of a single field check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str


@dataclass
class ValidationReport:
    """Aggregated review report for one record."""

    all_valid: bool
    results: list[ValidationResult]
    warnings: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[ValidationResult]:
        """Checks that did not pass."""
        return [r for r in self.results if not r.is_valid]


Validator = Callable[[str, Any, dict], ValidationResult]


class RecordValidator:
    """Field and cross-field checks over an ``OrderRecord``.

    Rules are keyed by field name; line-item fields are addressed as
    ``items.<field>`` and checked for every item.

    Args:
        rules_path: Path to a YAML file of rules. Built-in defaults are
            used when the file does not exist or is empty.
    """

    def __init__(
        self, rules_path: Path = Path("configs/validation_rules.yaml")
    ) -> None:
        self.rules = self._load_rules(rules_path)
        self._validators: dict[str, Validator] = {
            "required": self._validate_required,
            "iso_date": self._validate_iso_date,
            "phone": self._validate_phone,
            "email": self._validate_email,
            "non_negative_amount": self._validate_non_negative_amount,
            "regex": self._validate_regex,
        }

    def _load_rules(self, path: Path) -> dict:
        """Load rules from YAML, falling back to the defaults."""
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f)
                if data:
                    logger.info("Loaded validation rules from %s", path)
                    return data
        logger.debug("Using default validation rules")
        return self._default_rules()

    def _default_rules(self) -> dict:
        return {
            "invoice_number": [{"type": "required"}],
            "sold_to": [{"type": "required"}],
            "order_date": [{"type": "required"}, {"type": "iso_date"}],
            "installation_date": [{"type": "iso_date"}],
            "email": [{"type": "email"}],
            "home_phone": [{"type": "phone"}],
            "cell_phone": [{"type": "phone"}],
            "items.unit_price": [{"type": "non_negative_amount"}],
            "items.amount": [{"type": "non_negative_amount"}],
        }

    def validate(self, record: OrderRecord) -> ValidationReport:
        """Run every configured check against a record.

        Args:
            record: Extracted order record.

        Returns:
            Report with one result per check and human-readable warnings
            for the failures.
        """
        results: list[ValidationResult] = []
        warnings: list[str] = []
        data = record.model_dump()

        for field_name, rules in self.rules.items():
            for name, value in self._values(data, field_name):
                for rule in rules:
                    rule_type = rule.get("type")
                    validator = self._validators.get(rule_type)
                    if not validator:
                        warnings.append(f"Unknown rule type: {rule_type}")
                        continue
                    results.append(validator(name, value, rule))

        results.extend(self._cross_validate(record))

        missing = record.missing_critical_fields()
        if missing:
            warnings.append(f"Missing critical fields: {', '.join(missing)}")
        warnings.extend(
            r.message
            for r in results
            if not r.is_valid
            and not (r.rule_name == "required" and r.field_name in missing)
        )

        all_valid = all(r.is_valid for r in results)
        logger.info(
            "Review checks for %s: %s (%d checks)",
            record.invoice_number or "<no invoice>",
            "PASSED" if all_valid else "NEEDS REVIEW",
            len(results),
        )
        return ValidationReport(
            all_valid=all_valid, results=results, warnings=warnings
        )

    @staticmethod
    def _values(data: dict, field_name: str) -> list[tuple[str, Any]]:
        """Resolve a rule key to (display name, value) pairs."""
        if field_name.startswith("items."):
            key = field_name.split(".", 1)[1]
            return [
                (f"items[{i}].{key}", item.get(key))
                for i, item in enumerate(data.get("items", []))
            ]
        return [(field_name, data.get(field_name))]

    def _validate_required(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a field is present and non-empty."""
        if value is not None and str(value).strip():
            return ValidationResult(
                field_name, True, "Required field present", "required"
            )
        return ValidationResult(
            field_name, False, f"Required field missing: {field_name}", "required"
        )

    def _validate_iso_date(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a non-empty date is a real YYYY-MM-DD calendar date."""
        if not value:
            return ValidationResult(
                field_name, True, "No value to validate", "iso_date"
            )
        try:
            datetime.strptime(str(value), "%Y-%m-%d")
        except ValueError:
            return ValidationResult(
                field_name,
                False,
                f"Invalid date in {field_name}: {value}",
                "iso_date",
            )
        return ValidationResult(field_name, True, "Valid date", "iso_date")

    def _validate_phone(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a non-empty phone is in canonical form."""
        if not value:
            return ValidationResult(field_name, True, "No value to validate", "phone")
        if _PHONE.match(str(value)):
            return ValidationResult(field_name, True, "Valid phone format", "phone")
        return ValidationResult(
            field_name, False, f"Unusual phone in {field_name}: {value}", "phone"
        )

    def _validate_email(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check email shape."""
        if not value:
            return ValidationResult(field_name, True, "No value to validate", "email")
        if _EMAIL.match(str(value)):
            return ValidationResult(field_name, True, "Valid email format", "email")
        return ValidationResult(field_name, False, f"Invalid email: {value}", "email")

    def _validate_non_negative_amount(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that an amount is a number no smaller than zero."""
        rule_name = "non_negative_amount"
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return ValidationResult(
                field_name, False, f"Invalid amount in {field_name}: {value}", rule_name
            )
        if amount >= 0:
            return ValidationResult(field_name, True, "Valid amount", rule_name)
        return ValidationResult(
            field_name, False, f"Negative amount in {field_name}: {amount}", rule_name
        )

    def _validate_regex(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Validate a non-empty value against a custom pattern."""
        if not value:
            return ValidationResult(field_name, True, "No value to validate", "regex")
        pattern = rule.get("pattern", "")
        if re.match(pattern, str(value)):
            return ValidationResult(field_name, True, "Matches pattern", "regex")
        return ValidationResult(
            field_name,
            False,
            f"{field_name} does not match pattern: {pattern}",
            "regex",
        )

    def _cross_validate(self, record: OrderRecord) -> list[ValidationResult]:
        """A line amount should not be below its unit price."""
        results: list[ValidationResult] = []
        for i, item in enumerate(record.items):
            if not item.unit_price or not item.amount:
                continue
            name = f"items[{i}]"
            if item.amount + 1e-9 >= item.unit_price:
                results.append(
                    ValidationResult(
                        name, True, "Amount covers unit price", "cross_field"
                    )
                )
            else:
                results.append(
                    ValidationResult(
                        name,
                        False,
                        f"Amount ({item.amount}) below unit price "
                        f"({item.unit_price}) in {name}",
                        "cross_field",
                    )
                )
        return results
