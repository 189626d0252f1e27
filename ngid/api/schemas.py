"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel, Field


class ImageExtractionResponse(BaseModel):
    """Response schema for a single image extraction."""

    success: bool
    filename: str
    ids: list[str]
    dominant_prefix: str | None = None
    line_count: int
    lines: list[str] = Field(default_factory=list)
    api_status: str
    processing_time_ms: float


class BatchItemResponse(BaseModel):
    """Response schema for a single item in a batch extraction."""

    filename: str
    result: ImageExtractionResponse | None = None
    error: str | None = None


class BatchExtractionResponse(BaseModel):
    """Response schema for batch extraction of multiple images."""

    success: bool
    scope: str
    total_images: int
    successful: int
    failed: int
    unique_ids: list[str]
    results: list[BatchItemResponse]


class LinesRequest(BaseModel):
    """Request schema for consensus over already OCR'd lines."""

    lines: list[str]
    per_image: bool = True
    strict: bool = False


class CandidateCount(BaseModel):
    """One distinct candidate and how often it was read."""

    candidate: str
    count: int


class LinesResponse(BaseModel):
    """Response schema for consensus over submitted lines."""

    ids: list[str]
    dominant_prefix: str | None
    candidates: list[CandidateCount]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    ocr_space_configured: bool
