"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel


class CNICDetailsResponse(BaseModel):
    """CNIC fields in display form (dates as ``DD.MM.YYYY``)."""

    identity_number: str | None = None
    name: str | None = None
    father_name: str | None = None
    date_of_birth: str | None = None
    date_of_expiry: str | None = None
    gender: str | None = None


class ExtractionResponse(BaseModel):
    """Response schema for a single CNIC extraction.

    ``payload`` is the backend upload form of ``details`` and is only set
    on success. On failure ``details`` holds whatever was extracted.
    """

    success: bool
    document_id: str
    details: CNICDetailsResponse | None = None
    payload: dict[str, str] | None = None
    failure_kind: str | None = None
    reason: str | None = None
    guidance: str | None = None
    raw_text: str | None = None
    processing_time_ms: float


class BatchItemResponse(BaseModel):
    """Response schema for a single item in a batch extraction."""

    filename: str
    result: ExtractionResponse | None = None
    error: str | None = None


class BatchExtractionResponse(BaseModel):
    """Response schema for batch extraction of multiple photos."""

    success: bool
    total_documents: int
    successful: int
    failed: int
    results: list[BatchItemResponse]


class VerificationResponse(BaseModel):
    """Response schema for a front-and-back CNIC verification."""

    success: bool
    front: ExtractionResponse
    back_accepted: bool
    payload: dict[str, str] | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    api_key_configured: bool
