"""Configurable validation rules engine for extracted CNIC records.

Decides whether a record is complete enough to accept, or whether the
user has to retake the photo.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from cnic_ocr.extraction.normalizers import IDENTITY_NUMBER_FORMAT
from cnic_ocr.extraction.rule_extractor import DocumentRecord
from cnic_ocr.utils.logger import get_logger

logger = get_logger(__name__)

DISPLAY_DATE_FORMAT = "%d.%m.%Y"


@dataclass
class ValidationResult:
    """Result of a single field validation check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str


@dataclass
class ValidationReport:
    """Aggregated validation report for a record."""

    all_valid: bool
    results: list[ValidationResult]
    warnings: list[str] = field(default_factory=list)

    @property
    def failed_fields(self) -> list[str]:
        """Fields with at least one failed check, in rule order."""
        failed: list[str] = []
        for r in self.results:
            if not r.is_valid and r.field_name not in failed:
                failed.append(r.field_name)
        return failed


class RulesEngine:
    """Validation rules engine for CNIC records.

    Rules are loaded per document type from YAML; without a file the
    built-in CNIC rules apply: a well-formed identity number plus
    non-empty name, father's name, date of birth and date of expiry.

    The ``regex``, ``date_format`` and ``one_of`` validators are not used
    by those rules. They are available to deployments that tighten
    validation through their own rules file, e.g.::

        cnic:
          date_of_birth:
            - type: required
            - type: date_format
          gender:
            - type: one_of
              choices: [Male, Female]

    Args:
        rules_path: Path to the validation rules YAML file.
    """

    def __init__(
        self, rules_path: Path = Path("configs/validation_rules.yaml")
    ) -> None:
        self.rules = self._load_rules(rules_path)
        self._validators: dict[
            str, Callable[[str, Any, dict], ValidationResult]
        ] = {
            "required": self._validate_required,
            "identity_number": self._validate_identity_number,
            "regex": self._validate_regex,
            "date_format": self._validate_date,
            "one_of": self._validate_one_of,
        }

    def _load_rules(self, path: Path) -> dict:
        """Load validation rules from a YAML file, falling back to defaults."""
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
            "cnic": {
                "identity_number": [{"type": "required"}, {"type": "identity_number"}],
                "name": [{"type": "required"}],
                "father_name": [{"type": "required"}],
                "date_of_birth": [{"type": "required"}],
                "date_of_expiry": [{"type": "required"}],
            },
        }

    def validate(
        self, record: DocumentRecord, document_type: str = "cnic"
    ) -> ValidationReport:
        """Validate a record against the rules for its document type.

        Args:
            record: Extracted record, possibly partial.
            document_type: Rule set to apply.

        Returns:
            Validation report listing every check.
        """
        fields = record.to_dict()
        results: list[ValidationResult] = []
        warnings: list[str] = []

        for field_name, rules in self.rules.get(document_type, {}).items():
            value = fields.get(field_name)
            for rule in rules:
                rule_type = rule.get("type")
                validator = self._validators.get(rule_type)
                if not validator:
                    warnings.append(f"Unknown rule type: {rule_type}")
                    continue
                results.append(validator(field_name, value, rule))

        all_valid = all(r.is_valid for r in results)
        logger.info(
            "Validation for %s: %s (%d checks)",
            document_type,
            "PASSED" if all_valid else "FAILED",
            len(results),
        )
        return ValidationReport(all_valid=all_valid, results=results, warnings=warnings)

    def is_valid(self, record: DocumentRecord, document_type: str = "cnic") -> bool:
        """Shorthand for ``validate(record).all_valid``."""
        return self.validate(record, document_type).all_valid

    def _validate_required(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check if a required field is present and non-empty."""
        if value is not None and str(value).strip():
            return ValidationResult(field_name, True, "Required field present", "required")
        return ValidationResult(
            field_name, False, f"Required field missing: {field_name}", "required"
        )

    def _validate_identity_number(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check the ``NNNNN-NNNNNNN-N`` identity number format."""
        if value is None:
            return ValidationResult(
                field_name, True, "No value to validate", "identity_number"
            )
        if IDENTITY_NUMBER_FORMAT.match(str(value)):
            return ValidationResult(
                field_name, True, "Valid CNIC number", "identity_number"
            )
        return ValidationResult(
            field_name, False, f"Invalid CNIC number: {value}", "identity_number"
        )

    def _validate_regex(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Validate a field value against a custom regex pattern."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "regex")

        pattern = rule.get("pattern", "")
        if re.match(pattern, str(value)):
            return ValidationResult(field_name, True, "Matches pattern", "regex")
        return ValidationResult(
            field_name, False, f"Does not match pattern: {pattern}", "regex"
        )

    def _validate_date(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a value is a real ``DD.MM.YYYY`` calendar date."""
        if value is None:
            return ValidationResult(
                field_name, True, "No value to validate", "date_format"
            )
        fmt = rule.get("format", DISPLAY_DATE_FORMAT)
        try:
            datetime.strptime(str(value), fmt)
        except ValueError:
            return ValidationResult(
                field_name, False, f"Invalid date: {value}", "date_format"
            )
        return ValidationResult(field_name, True, "Valid date", "date_format")

    def _validate_one_of(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a value is one of the allowed choices."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "one_of")
        choices = rule.get("choices", [])
        if value in choices:
            return ValidationResult(field_name, True, "Allowed value", "one_of")
        return ValidationResult(
            field_name, False, f"{value!r} is not one of {choices}", "one_of"
        )
