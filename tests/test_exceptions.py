"""Tests for the failure taxonomy."""

import pytest

from cnic_ocr.extraction.rule_extractor import DocumentRecord
from cnic_ocr.utils.exceptions import (
    FailureKind,
    InputTooSmall,
    OCRPipelineError,
    ParseFailure,
    PayloadError,
    ServiceProcessingError,
    TransportError,
    UnreadableImageError,
    ValidationFailure,
)


class TestFailureKind:
    """Tests for FailureKind properties."""

    @pytest.mark.parametrize("kind", list(FailureKind))
    def test_every_kind_has_guidance(self, kind: FailureKind) -> None:
        assert kind.guidance

    def test_only_transport_errors_allow_retry_with_same_photo(self) -> None:
        retry = [kind for kind in FailureKind if not kind.retake_required]
        assert retry == [FailureKind.TRANSPORT_ERROR]

    def test_values_are_strings(self) -> None:
        assert FailureKind.INPUT_TOO_SMALL == "input_too_small"
        assert str(FailureKind.PARSE_FAILURE) == "parse_failure"


class TestPipelineErrors:
    """Tests for the stage exception classes."""

    @pytest.mark.parametrize(
        ("error_cls", "kind"),
        [
            (InputTooSmall, FailureKind.INPUT_TOO_SMALL),
            (UnreadableImageError, FailureKind.UNREADABLE_IMAGE),
            (TransportError, FailureKind.TRANSPORT_ERROR),
            (ServiceProcessingError, FailureKind.SERVICE_ERROR),
            (ParseFailure, FailureKind.PARSE_FAILURE),
        ],
    )
    def test_kind(self, error_cls: type[OCRPipelineError], kind: FailureKind) -> None:
        error = error_cls("message")
        assert isinstance(error, OCRPipelineError)
        assert error.kind is kind
        assert str(error) == "message"

    def test_validation_failure_carries_record(self) -> None:
        record = DocumentRecord(name="Sarah Khan")
        error = ValidationFailure(
            "incomplete", record, ["father_name"], raw_text="Name: Sarah Khan"
        )
        assert error.kind is FailureKind.VALIDATION_FAILURE
        assert error.record is record
        assert error.missing_fields == ["father_name"]
        assert error.raw_text == "Name: Sarah Khan"

    def test_validation_failure_defaults(self) -> None:
        error = ValidationFailure("incomplete", DocumentRecord())
        assert error.missing_fields == []
        assert error.raw_text is None

    def test_payload_error_is_value_error(self) -> None:
        assert issubclass(PayloadError, ValueError)
        assert not issubclass(PayloadError, OCRPipelineError)
