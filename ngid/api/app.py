"""FastAPI application for the NG ID extractor.

Provides REST endpoints for image extraction, batch extraction,
consensus over pre-OCR'd lines, and health checks.
"""

import shutil
import time
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from ngid import __version__
from ngid.batch.session import Scope
from ngid.exceptions import ImageLoadError
from ngid.extraction.consensus import extract_ids
from ngid.ocr.image_processor import ImageProcessor
from ngid.utils.config import AppConfig, load_config
from ngid.utils.logger import get_logger

from .schemas import (
    BatchExtractionResponse,
    BatchItemResponse,
    CandidateCount,
    HealthResponse,
    ImageExtractionResponse,
    LinesRequest,
    LinesResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="NG ID Extractor API",
    description="Recover NG label identifiers from scanned images",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/bmp",
    "image/gif",
    "image/tiff",
    "application/octet-stream",
}


_config: AppConfig | None = None


def configure(config: AppConfig) -> None:
    """Serve every request with ``config`` instead of the default file."""
    global _config
    _config = config


def _get_config() -> AppConfig:
    if _config is None:
        return load_config()
    return _config


def _get_processor() -> ImageProcessor:
    """Build a fresh per-request image processor."""
    return ImageProcessor(_get_config())


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    config = _get_config()
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
        ocr_space_configured=bool(config.ocr_space.enabled and config.ocr_space.api_key),
    )


async def _extract_upload(
    processor: ImageProcessor, file: UploadFile, strict: bool
) -> ImageExtractionResponse:
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    start_time = time.time()
    content = await file.read()
    try:
        result = processor.process(content, file.filename or "image", strict=strict)
    except ImageLoadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ImageExtractionResponse(
        success=True,
        filename=result.filename,
        ids=result.ids,
        dominant_prefix=result.consensus.dominant_prefix if result.consensus else None,
        line_count=len(result.lines),
        lines=result.lines,
        api_status=result.api_status,
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.post("/extract", response_model=ImageExtractionResponse)
async def extract_image(
    file: Annotated[UploadFile, File(...)],
    strict: Annotated[bool, Query()] = False,
) -> ImageExtractionResponse:
    """Extract identifiers from one uploaded image.

    Args:
        file: Uploaded image file.
        strict: Whether the stricter consensus tier applies.
    """
    processor = _get_processor()
    try:
        return await _extract_upload(processor, file, strict)
    finally:
        processor.close()


@app.post("/extract/batch", response_model=BatchExtractionResponse)
async def extract_batch(
    files: Annotated[list[UploadFile], File(...)],
    strict: Annotated[bool, Query()] = False,
    scope: Annotated[Scope, Query()] = Scope.IMAGE,
) -> BatchExtractionResponse:
    """Extract identifiers from several uploaded images.

    Args:
        files: Uploaded image files.
        strict: Whether the stricter consensus tier applies.
        scope: Merge per-image decisions, or pool all lines globally.
    """
    processor = _get_processor()
    results: list[BatchItemResponse] = []
    successful = 0

    try:
        for file in files:
            name = file.filename or "unknown"
            try:
                result = await _extract_upload(processor, file, strict)
                results.append(BatchItemResponse(filename=name, result=result))
                successful += 1
            except HTTPException as exc:
                results.append(BatchItemResponse(filename=name, error=exc.detail))
    finally:
        processor.close()

    if scope == Scope.GLOBAL:
        pooled = [line for item in results if item.result for line in item.result.lines]
        consensus = extract_ids(
            pooled, per_image=False, strict=strict, config=processor.config.consensus
        )
        unique_ids = consensus.sorted_ids()
    else:
        unique_ids = sorted({i for item in results if item.result for i in item.result.ids})

    return BatchExtractionResponse(
        success=successful > 0,
        scope=scope.value,
        total_images=len(files),
        successful=successful,
        failed=len(files) - successful,
        unique_ids=unique_ids,
        results=results,
    )


@app.post("/ids", response_model=LinesResponse)
async def ids_from_lines(request: LinesRequest) -> LinesResponse:
    """Run consensus over lines that were OCR'd elsewhere."""
    consensus = extract_ids(
        request.lines,
        per_image=request.per_image,
        strict=request.strict,
        config=_get_config().consensus,
    )
    return LinesResponse(
        ids=consensus.sorted_ids(),
        dominant_prefix=consensus.dominant_prefix,
        candidates=[
            CandidateCount(candidate=c, count=n)
            for c, n in consensus.tally.most_common()
        ],
    )
