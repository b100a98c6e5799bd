"""Tests for the validation rules engine."""

from pathlib import Path

import yaml

from cnic_ocr.extraction.rule_extractor import DocumentRecord, RuleExtractor
from cnic_ocr.validation.rules_engine import RulesEngine, ValidationReport, ValidationResult


def _complete_record(**overrides: str | None) -> DocumentRecord:
    values: dict[str, str | None] = {
        "identity_number": "42201-8345146-7",
        "name": "Sarah Khan",
        "father_name": "Imran Khan",
        "date_of_birth": "14.03.1990",
        "date_of_expiry": "14.03.2030",
        "gender": "Male",
    }
    values.update(overrides)
    return DocumentRecord(**values)


class TestValidationResult:
    """Tests for the ValidationResult data class."""

    def test_creation(self) -> None:
        result = ValidationResult("name", True, "Required field present", "required")
        assert result.field_name == "name"
        assert result.is_valid is True
        assert result.rule_name == "required"


class TestValidationReport:
    """Tests for the ValidationReport data class."""

    def test_failed_fields_deduplicated_in_order(self) -> None:
        report = ValidationReport(
            all_valid=False,
            results=[
                ValidationResult("identity_number", False, "missing", "required"),
                ValidationResult("identity_number", False, "bad", "identity_number"),
                ValidationResult("name", True, "ok", "required"),
                ValidationResult("father_name", False, "missing", "required"),
            ],
        )
        assert report.failed_fields == ["identity_number", "father_name"]


class TestRulesEngine:
    """Tests for the RulesEngine class."""

    def setup_method(self) -> None:
        self.engine = RulesEngine(Path("/nonexistent/rules.yaml"))

    def test_complete_record_passes(self) -> None:
        report = self.engine.validate(_complete_record())
        assert report.all_valid is True
        assert report.failed_fields == []
        assert self.engine.is_valid(_complete_record()) is True

    def test_extracted_card_passes(self, cnic_text: str) -> None:
        record = RuleExtractor().extract(cnic_text)
        assert self.engine.is_valid(record) is True

    def test_missing_father_name_fails(self) -> None:
        report = self.engine.validate(_complete_record(father_name=None))
        assert report.all_valid is False
        assert report.failed_fields == ["father_name"]

    def test_empty_string_counts_as_missing(self) -> None:
        assert self.engine.is_valid(_complete_record(name="   ")) is False

    def test_gender_not_required(self) -> None:
        assert self.engine.is_valid(_complete_record(gender=None)) is True

    def test_unhyphenated_identity_number_fails(self) -> None:
        report = self.engine.validate(_complete_record(identity_number="4220183451467"))
        assert report.all_valid is False
        assert report.failed_fields == ["identity_number"]

    def test_arabic_indic_identity_number_fails(self) -> None:
        record = _complete_record(identity_number="٤٢٢٠١-٨٣٤٥١٤٦-٧")
        assert self.engine.validate(record).failed_fields == ["identity_number"]

    def test_identity_number_with_trailing_text_fails(self) -> None:
        record = _complete_record(identity_number="42201-8345146-77")
        assert self.engine.is_valid(record) is False

    def test_missing_identity_number_reports_once(self) -> None:
        report = self.engine.validate(_complete_record(identity_number=None))
        assert report.failed_fields == ["identity_number"]
        assert [r.rule_name for r in report.results if not r.is_valid] == ["required"]

    def test_empty_record_fails_every_required_field(self) -> None:
        report = self.engine.validate(DocumentRecord())
        assert report.failed_fields == [
            "identity_number",
            "name",
            "father_name",
            "date_of_birth",
            "date_of_expiry",
        ]

    def test_unknown_document_type_has_no_rules(self) -> None:
        report = self.engine.validate(DocumentRecord(), document_type="passport")
        assert report.all_valid is True
        assert report.results == []


class TestOptionalValidators:
    """Tests for validators only enabled through a rules file."""

    def setup_method(self) -> None:
        self.engine = RulesEngine(Path("/nonexistent/rules.yaml"))

    def test_date_format_valid(self) -> None:
        result = self.engine._validate_date("date_of_birth", "14.03.1990", {})
        assert result.is_valid is True

    def test_date_format_impossible_date(self) -> None:
        result = self.engine._validate_date("date_of_birth", "31.02.1990", {})
        assert result.is_valid is False

    def test_date_format_none(self) -> None:
        assert self.engine._validate_date("date_of_birth", None, {}).is_valid is True

    def test_one_of(self) -> None:
        rule = {"choices": ["Male", "Female"]}
        assert self.engine._validate_one_of("gender", "Female", rule).is_valid is True
        assert self.engine._validate_one_of("gender", "X", rule).is_valid is False

    def test_regex(self) -> None:
        rule = {"pattern": r"^[A-Z][a-z]+"}
        assert self.engine._validate_regex("name", "Sarah", rule).is_valid is True
        assert self.engine._validate_regex("name", "sarah", rule).is_valid is False


class TestRulesFromYaml:
    """Tests for loading rules from a YAML file."""

    def test_load_custom_rules(self, tmp_path: Path) -> None:
        rules = {
            "cnic": {
                "date_of_birth": [{"type": "required"}, {"type": "date_format"}],
                "gender": [{"type": "one_of", "choices": ["Male", "Female"]}],
            }
        }
        rules_file = tmp_path / "rules.yaml"
        with open(rules_file, "w") as f:
            yaml.dump(rules, f)

        engine = RulesEngine(rules_file)
        assert engine.is_valid(DocumentRecord(date_of_birth="14.03.1990", gender="Male"))
        assert not engine.is_valid(DocumentRecord(date_of_birth="99.99.1990"))

    def test_unknown_rule_type_is_warned(self, tmp_path: Path) -> None:
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("cnic:\n  name:\n    - type: soundex\n")

        report = RulesEngine(rules_file).validate(DocumentRecord(name="Ali"))
        assert report.warnings == ["Unknown rule type: soundex"]
        assert report.all_valid is True

    def test_empty_file_falls_back_to_defaults(self, tmp_path: Path) -> None:
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("")
        assert RulesEngine(rules_file).is_valid(DocumentRecord()) is False

    def test_shipped_rules_match_defaults(self) -> None:
        shipped = Path(__file__).parent.parent / "configs" / "validation_rules.yaml"
        engine = RulesEngine(shipped)
        assert engine.rules == engine._default_rules()
