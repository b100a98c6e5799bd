"""FastAPI application for the CNIC OCR service.

Provides REST endpoints for single and batch CNIC extraction, the
front-and-back verification flow, and health checks.
"""

import asyncio
import time
import uuid
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from cnic_ocr.extraction.normalizers import build_upload_payload
from cnic_ocr.extraction.rule_extractor import DocumentRecord
from cnic_ocr.ocr.document_processor import DocumentProcessor, ExtractionResult
from cnic_ocr.preprocessing.resolution import check_minimum_resolution
from cnic_ocr.utils.config import load_config
from cnic_ocr.utils.exceptions import PayloadError, UnreadableImageError
from cnic_ocr.utils.logger import get_logger

from .schemas import (
    BatchExtractionResponse,
    BatchItemResponse,
    CNICDetailsResponse,
    ExtractionResponse,
    HealthResponse,
    VerificationResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="CNIC OCR API",
    description="Extract and validate identity card details from photos",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_processor() -> DocumentProcessor:
    """Build the extraction pipeline from the current configuration."""
    return DocumentProcessor(load_config())


_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "application/octet-stream",
}


def _check_content_type(file: UploadFile) -> None:
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )


def _details(record: DocumentRecord | None) -> CNICDetailsResponse | None:
    if record is None:
        return None
    return CNICDetailsResponse(**record.to_dict())


def _to_response(result: ExtractionResult, start_time: float) -> ExtractionResponse:
    """Convert a pipeline result into the API response shape."""
    processing_time = (time.time() - start_time) * 1000

    if result.success:
        try:
            payload = build_upload_payload(result.details)
        except PayloadError as exc:
            logger.warning("Validated record has no upload form: %s", exc)
            payload = None
        return ExtractionResponse(
            success=True,
            document_id=str(uuid.uuid4()),
            details=_details(result.details),
            payload=payload,
            raw_text=result.raw_text,
            processing_time_ms=processing_time,
        )

    return ExtractionResponse(
        success=False,
        document_id=str(uuid.uuid4()),
        details=_details(result.partial_details),
        failure_kind=result.kind.value,
        reason=result.reason,
        guidance=result.guidance,
        raw_text=result.raw_text,
        processing_time_ms=processing_time,
    )


async def _extract_upload(
    processor: DocumentProcessor, file: UploadFile
) -> ExtractionResponse:
    start_time = time.time()
    content = await file.read()
    result = await processor.extract_document_details(
        content, file.filename or "document"
    )
    return _to_response(result, start_time)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return service health status."""
    config = load_config()
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        api_key_configured=bool(config.ocr.api_key),
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
) -> ExtractionResponse:
    """Extract CNIC details from an uploaded photo.

    A photo that cannot be read is reported in the response body with
    ``success=False``; only malformed requests and unexpected errors
    produce an HTTP error status.

    Args:
        file: Uploaded photo of the front of the card.

    Returns:
        Extraction result with details, upload payload, and timing.
    """
    _check_content_type(file)
    try:
        return await _extract_upload(_get_processor(), file)
    except Exception as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/extract/batch", response_model=BatchExtractionResponse)
async def extract_batch(
    files: Annotated[list[UploadFile], File(...)],
) -> BatchExtractionResponse:
    """Extract CNIC details from several photos concurrently.

    Args:
        files: Uploaded photos.

    Returns:
        Per-file outcomes; a file counts as successful only if its
        record passed validation.
    """
    processor = _get_processor()
    outcomes = await asyncio.gather(
        *(_extract_upload(processor, file) for file in files),
        return_exceptions=True,
    )

    results: list[BatchItemResponse] = []
    successful = 0
    for file, outcome in zip(files, outcomes):
        filename = file.filename or "unknown"
        if isinstance(outcome, Exception):
            logger.error("Batch item %s failed: %s", filename, outcome)
            results.append(BatchItemResponse(filename=filename, error=str(outcome)))
            continue
        if outcome.success:
            successful += 1
        results.append(BatchItemResponse(filename=filename, result=outcome))

    return BatchExtractionResponse(
        success=successful > 0,
        total_documents=len(files),
        successful=successful,
        failed=len(files) - successful,
        results=results,
    )


async def _back_side_accepted(processor: DocumentProcessor, content: bytes) -> bool:
    image_cfg = processor.config.image
    try:
        return await asyncio.to_thread(
            check_minimum_resolution, content, image_cfg.min_width, image_cfg.min_height
        )
    except UnreadableImageError as exc:
        logger.info("Back side rejected: %s", exc)
        return False


@app.post("/verify", response_model=VerificationResponse)
async def verify_cnic(
    front: Annotated[UploadFile, File(...)],
    back: Annotated[UploadFile, File(...)],
) -> VerificationResponse:
    """Check both sides of a card and build the upload payload.

    The front is run through the extraction pipeline; the back carries
    no text that is read, so it only has to meet the resolution floor.

    Args:
        front: Photo of the front of the card.
        back: Photo of the back of the card.

    Returns:
        Front extraction result and, when both sides pass, the payload
        to forward to the upload endpoint.
    """
    _check_content_type(front)
    _check_content_type(back)

    processor = _get_processor()
    back_content = await back.read()
    try:
        front_response, back_ok = await asyncio.gather(
            _extract_upload(processor, front),
            _back_side_accepted(processor, back_content),
        )
    except Exception as exc:
        logger.error("Verification failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    error = None
    if not front_response.success:
        error = front_response.reason
    elif not back_ok:
        error = "Back side image is unreadable or its resolution is too low"
    elif front_response.payload is None:
        error = "Missing required CNIC details"

    return VerificationResponse(
        success=error is None,
        front=front_response,
        back_accepted=back_ok,
        payload=front_response.payload if error is None else None,
        error=error,
    )
