"""Failure taxonomy for the CNIC extraction pipeline.

Stages raise these exceptions; only the document processor catches them
and turns them into an ``ExtractionFailure`` value.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cnic_ocr.extraction.rule_extractor import DocumentRecord


class FailureKind(StrEnum):
    """Category of a failed extraction attempt."""

    INPUT_TOO_SMALL = "input_too_small"
    UNREADABLE_IMAGE = "unreadable_image"
    TRANSPORT_ERROR = "transport_error"
    SERVICE_ERROR = "service_error"
    PARSE_FAILURE = "parse_failure"
    VALIDATION_FAILURE = "validation_failure"

    @property
    def guidance(self) -> str:
        """Actionable hint to show the user for this kind of failure."""
        return _GUIDANCE[self]

    @property
    def retake_required(self) -> bool:
        """Whether the user has to capture a new photograph."""
        return self is not FailureKind.TRANSPORT_ERROR


_GUIDANCE: dict[FailureKind, str] = {
    FailureKind.INPUT_TOO_SMALL: (
        "Move the camera closer so the card fills the frame and retake the photo."
    ),
    FailureKind.UNREADABLE_IMAGE: "The photo could not be opened. Please retake it.",
    FailureKind.TRANSPORT_ERROR: (
        "The text recognition service could not be reached. Please try again."
    ),
    FailureKind.SERVICE_ERROR: (
        "Retake the photo in better lighting and make sure the camera is focused."
    ),
    FailureKind.PARSE_FAILURE: (
        "No text was found. Make sure the text on the card is clearly visible."
    ),
    FailureKind.VALIDATION_FAILURE: (
        "Some details could not be read. Make sure the card is well-lit, "
        "in focus and properly aligned."
    ),
}


class OCRPipelineError(Exception):
    """Base class for failures raised by a pipeline stage."""

    kind: FailureKind = FailureKind.SERVICE_ERROR


class InputTooSmall(OCRPipelineError):
    """Raised when the photo is below the minimum resolution."""

    kind = FailureKind.INPUT_TOO_SMALL


class UnreadableImageError(OCRPipelineError):
    """Raised when the image handle cannot be decoded at all."""

    kind = FailureKind.UNREADABLE_IMAGE


class TransportError(OCRPipelineError):
    """Raised when the recognition call cannot complete."""

    kind = FailureKind.TRANSPORT_ERROR


class ServiceProcessingError(OCRPipelineError):
    """Raised when the recognition service reports a processing fault."""

    kind = FailureKind.SERVICE_ERROR


class ParseFailure(OCRPipelineError):
    """Raised when the recognition service could not extract any text."""

    kind = FailureKind.PARSE_FAILURE


class ValidationFailure(OCRPipelineError):
    """Raised when required fields are missing or malformed.

    Args:
        message: Human-readable reason.
        record: The partially populated record.
        missing_fields: Names of the fields that failed validation.
        raw_text: The recognized text the record was extracted from.
    """

    kind = FailureKind.VALIDATION_FAILURE

    def __init__(
        self,
        message: str,
        record: DocumentRecord,
        missing_fields: list[str] | None = None,
        raw_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.record = record
        self.missing_fields = missing_fields or []
        self.raw_text = raw_text


class PayloadError(ValueError):
    """Raised when a record cannot be converted to the backend upload form."""
