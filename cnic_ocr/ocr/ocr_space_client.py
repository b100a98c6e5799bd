"""Async client for the OCR.space text recognition API.

Posts a conditioned card photo and turns the JSON reply into a
``RecognitionOutcome``. The service's own status signals are interpreted
by ``RecognitionOutcome.raise_for_status``.
"""

from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cnic_ocr.preprocessing.conditioner import ConditionedImage
from cnic_ocr.utils.config import OCRConfig
from cnic_ocr.utils.exceptions import ParseFailure, ServiceProcessingError, TransportError
from cnic_ocr.utils.logger import get_logger

logger = get_logger(__name__)

# OCRExitCode: 1 = parsed successfully, 2 = parsed partially
ACCEPTED_EXIT_CODES = frozenset({1, 2})
# FileParseExitCode for a successfully parsed file
FILE_PARSE_SUCCESS = 1


class ParsedResult(BaseModel):
    """One entry of ``ParsedResults`` in the OCR.space reply."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    parsed_text: str = Field(default="", alias="ParsedText")
    error_message: str | None = Field(default=None, alias="ErrorMessage")
    file_parse_exit_code: int = Field(default=0, alias="FileParseExitCode")


class OCRSpaceResponse(BaseModel):
    """Top-level OCR.space reply."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    parsed_results: list[ParsedResult] | None = Field(
        default=None, alias="ParsedResults"
    )
    ocr_exit_code: int = Field(default=0, alias="OCRExitCode")
    is_errored_on_processing: bool = Field(default=False, alias="IsErroredOnProcessing")
    error_message: list[str] | str | None = Field(default=None, alias="ErrorMessage")
    error_details: str | None = Field(default=None, alias="ErrorDetails")
    processing_time_ms: str | None = Field(
        default=None, alias="ProcessingTimeInMilliseconds"
    )


@dataclass(frozen=True)
class RecognitionOutcome:
    """The recognition service's report for one image."""

    parsed_text: str
    service_errored: bool
    exit_code: int
    parse_exit_code: int | None = None
    error_message: str | None = None
    parse_error_message: str | None = None
    processing_time_ms: str | None = None

    @classmethod
    def from_response(cls, response: OCRSpaceResponse) -> "RecognitionOutcome":
        """Build an outcome from a parsed OCR.space reply."""
        error = response.error_message
        if isinstance(error, list):
            error = error[0] if error else None

        first = response.parsed_results[0] if response.parsed_results else None
        return cls(
            parsed_text=first.parsed_text if first else "",
            service_errored=response.is_errored_on_processing,
            exit_code=response.ocr_exit_code,
            parse_exit_code=first.file_parse_exit_code if first else None,
            error_message=error or None,
            parse_error_message=(first.error_message or None) if first else None,
            processing_time_ms=response.processing_time_ms,
        )

    def raise_for_status(self) -> str:
        """Return the recognized text, or raise if the service reported a failure.

        Raises:
            ServiceProcessingError: The service errored or its exit code
                is neither full nor partial success.
            ParseFailure: There is no parsed result, or it failed to parse.
        """
        if self.service_errored:
            raise ServiceProcessingError(self.error_message or "OCR processing failed")
        if self.exit_code not in ACCEPTED_EXIT_CODES:
            raise ServiceProcessingError("OCR failed to process the image properly")
        if self.parse_exit_code != FILE_PARSE_SUCCESS:
            raise ParseFailure(self.parse_error_message or "Failed to parse the image")
        return self.parsed_text


class OCRSpaceClient:
    """Submits images to OCR.space.

    A new ``httpx.AsyncClient`` is opened for every call, so concurrent
    recognitions share no connection state.

    Args:
        config: OCR client configuration.
        transport: Optional httpx transport, used to stub the service in tests.
    """

    def __init__(
        self,
        config: OCRConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def build_form(self, image: ConditionedImage) -> dict[str, str]:
        """Build the multipart form fields for a recognition request."""
        return {
            "base64Image": image.data_url,
            "language": self.config.language,
            "isOverlayRequired": _flag(self.config.is_overlay_required),
            "OCREngine": str(self.config.engine),
            "scale": _flag(self.config.scale),
            "detectOrientation": _flag(self.config.detect_orientation),
            "isTable": _flag(self.config.is_table),
        }

    async def recognize(self, image: ConditionedImage) -> RecognitionOutcome:
        """Send an image for recognition.

        Args:
            image: The conditioned photo.

        Returns:
            The service's report. Its status is not checked here.

        Raises:
            TransportError: The request could not complete or returned
                a non-success HTTP status.
            ServiceProcessingError: The reply body is not a valid OCR.space reply.
        """
        logger.info(
            "Submitting %dx%d image (%dKB) to OCR.space",
            image.width,
            image.height,
            round(image.estimated_byte_size / 1024),
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.config.api_url,
                    headers={"apikey": self.config.api_key},
                    files=_as_multipart(self.build_form(image)),
                )
        except httpx.TimeoutException as exc:
            raise TransportError("OCR API request timed out") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"OCR API request failed: {exc}") from exc

        if not response.is_success:
            logger.error("OCR.space returned HTTP %d", response.status_code)
            raise TransportError(
                f"OCR API request failed with status {response.status_code}"
            )

        try:
            payload = OCRSpaceResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error("Unreadable OCR.space reply: %s", exc)
            raise ServiceProcessingError("OCR API returned an unreadable response") from exc

        outcome = RecognitionOutcome.from_response(payload)
        logger.info(
            "OCR.space reply: exit_code=%d errored=%s parse_exit_code=%s time=%sms",
            outcome.exit_code,
            outcome.service_errored,
            outcome.parse_exit_code,
            outcome.processing_time_ms,
        )
        return outcome


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _as_multipart(form: dict[str, str]) -> dict[str, tuple[None, str]]:
    # (None, value) makes httpx send a plain form field in multipart encoding
    return {name: (None, value) for name, value in form.items()}
