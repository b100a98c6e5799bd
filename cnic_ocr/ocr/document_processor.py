"""CNIC extraction pipeline.

Sequences the resolution check, JPEG conditioning, OCR.space
recognition, field extraction and validation for one photo, and
reports the outcome as a single ``ExtractionResult`` value.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from cnic_ocr.extraction.rule_extractor import DocumentRecord, RuleExtractor
from cnic_ocr.preprocessing.conditioner import ImageConditioner
from cnic_ocr.preprocessing.resolution import check_minimum_resolution
from cnic_ocr.utils.config import AppConfig
from cnic_ocr.utils.exceptions import (
    FailureKind,
    InputTooSmall,
    OCRPipelineError,
    TransportError,
    ValidationFailure,
)
from cnic_ocr.utils.logger import get_logger
from cnic_ocr.validation.rules_engine import RulesEngine

from .ocr_space_client import OCRSpaceClient

logger = get_logger(__name__)

RESOLUTION_TOO_LOW = "Image resolution is too low. Please provide a clearer image."
INCOMPLETE_DETAILS = "Could not extract all required CNIC details"


@dataclass
class ExtractionSuccess:
    """A photo whose record passed validation."""

    details: DocumentRecord
    raw_text: str
    success: bool = True


@dataclass
class ExtractionFailure:
    """A photo that failed at some stage of the pipeline.

    ``raw_text`` and ``partial_details`` are only set when recognition
    succeeded but validation did not.
    """

    kind: FailureKind
    reason: str
    raw_text: str | None = None
    partial_details: DocumentRecord | None = None
    success: bool = False

    @property
    def guidance(self) -> str:
        return self.kind.guidance


ExtractionResult = ExtractionSuccess | ExtractionFailure


class DocumentProcessor:
    """End-to-end CNIC extraction for a single photo.

    Holds only configuration and stateless collaborators, so one
    instance can serve concurrent extractions.

    Args:
        config: Application configuration object.
        client: Recognition client; built from ``config.ocr`` if omitted.
        rules_engine: Record validator; built from ``config.validation``
            if omitted.
    """

    def __init__(
        self,
        config: AppConfig,
        client: OCRSpaceClient | None = None,
        rules_engine: RulesEngine | None = None,
    ) -> None:
        self.config = config
        self.conditioner = ImageConditioner(config.image)
        self.client = client or OCRSpaceClient(config.ocr)
        self.extractor = RuleExtractor()
        self.rules_engine = rules_engine or RulesEngine(
            Path(config.validation.rules_path)
        )

    async def extract_document_details(
        self, source: Path | bytes, filename: str = "document"
    ) -> ExtractionResult:
        """Extract and validate CNIC details from a photo.

        Never raises for a failed attempt; every failure is returned as
        an ``ExtractionFailure``. Cancellation still propagates.

        Args:
            source: Path to the photo, or its raw bytes.
            filename: Display name used in log messages.

        Returns:
            ``ExtractionSuccess`` with the validated record, or
            ``ExtractionFailure`` describing the failed stage.
        """
        logger.info("Extracting CNIC details from %s", filename)
        try:
            return await self._run(source)
        except ValidationFailure as exc:
            logger.info(
                "Validation failed for %s, missing: %s",
                filename,
                ", ".join(exc.missing_fields),
            )
            return ExtractionFailure(
                kind=exc.kind,
                reason=str(exc),
                raw_text=exc.raw_text,
                partial_details=exc.record,
            )
        except OCRPipelineError as exc:
            logger.warning("Extraction failed for %s (%s): %s", filename, exc.kind, exc)
            return ExtractionFailure(kind=exc.kind, reason=str(exc))

    async def _run(self, source: Path | bytes) -> ExtractionSuccess:
        image_cfg = self.config.image
        large_enough = await asyncio.to_thread(
            check_minimum_resolution, source, image_cfg.min_width, image_cfg.min_height
        )
        if not large_enough:
            raise InputTooSmall(RESOLUTION_TOO_LOW)

        conditioned = await asyncio.to_thread(self.conditioner.condition, source)

        try:
            async with asyncio.timeout(self.config.ocr.timeout_seconds):
                outcome = await self.client.recognize(conditioned)
        except TimeoutError as exc:
            raise TransportError("OCR API request timed out") from exc

        text = outcome.raise_for_status()
        logger.debug("Recognized text: %r", text)

        record = self.extractor.extract(text)
        report = self.rules_engine.validate(record)
        if not report.all_valid:
            raise ValidationFailure(
                INCOMPLETE_DETAILS, record, report.failed_fields, raw_text=text
            )

        return ExtractionSuccess(details=record, raw_text=text)
