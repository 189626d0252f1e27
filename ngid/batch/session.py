"""Batch session over a set of selected images.

Holds the state a scanning session accumulates (selected files, the
last accepted identifiers, the remote OCR status) and runs extraction
over every selected image.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from ngid.extraction.consensus import ConsensusResult, extract_ids
from ngid.ocr.image_processor import API_NOT_USED, ImageProcessor, ImageResult
from ngid.utils.logger import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".tif")


class Scope(StrEnum):
    """Which lines are pooled before one consensus decision."""

    IMAGE = "image"
    GLOBAL = "global"


@dataclass
class BatchResult:
    """Outcome of one batch run."""

    results: list[ImageResult]
    unique_ids: list[str]
    scope: Scope = Scope.IMAGE
    global_consensus: ConsensusResult | None = None

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.successful


@dataclass
class BatchSession:
    """Selected images plus the results of the last run.

    Args:
        processor: Per-image extraction pipeline.
    """

    processor: ImageProcessor
    files: list[Path] = field(default_factory=list)
    last_ids: list[str] = field(default_factory=list)
    api_status: str = API_NOT_USED

    def add_files(self, paths: list[Path]) -> int:
        """Select image files, skipping non-images and duplicates.

        Two files count as the same when both name and size match.

        Returns:
            Number of files newly added.
        """
        seen = {(p.name, p.stat().st_size) for p in self.files}
        added = 0
        for path in paths:
            if path.suffix.lower() not in IMAGE_EXTENSIONS:
                continue
            key = (path.name, path.stat().st_size)
            if key in seen:
                continue
            seen.add(key)
            self.files.append(path)
            added += 1
        logger.info("Loaded %d image(s)", len(self.files))
        return added

    def clear(self) -> None:
        """Forget the selection and the previous results."""
        self.files = []
        self.last_ids = []
        self.api_status = API_NOT_USED

    def run(
        self,
        strict: bool | None = None,
        scope: Scope = Scope.IMAGE,
        use_strips: bool | None = None,
    ) -> BatchResult:
        """Extract identifiers from every selected image.

        Any error on one image is logged and recorded on its result row;
        the remaining images are still processed. With ``Scope.GLOBAL``
        the lines of all images are pooled into one consensus decision
        using the global dominance ratio; otherwise the per-image
        decisions are merged.

        Args:
            strict: Stricter consensus tier; defaults to the configured value.
            scope: Aggregation scope for the final identifier list.
            use_strips: Override for the configured strip scanning flag.

        Returns:
            Per-image results and the sorted unique identifiers.
        """
        if strict is None:
            strict = self.processor.config.consensus.strict

        results: list[ImageResult] = []
        for path in self.files:
            try:
                result = self.processor.process(path, path.name, strict, use_strips)
            except Exception as exc:
                logger.error("Failed to process %s: %s", path.name, exc)
                result = ImageResult(filename=path.name, lines=[], ids=[], error=str(exc))
            results.append(result)
            if result.api_status != API_NOT_USED:
                self.api_status = result.api_status

        global_consensus = None
        if scope == Scope.GLOBAL:
            pooled = [line for r in results for line in r.lines]
            global_consensus = extract_ids(
                pooled,
                per_image=False,
                strict=strict,
                config=self.processor.config.consensus,
            )
            unique_ids = global_consensus.sorted_ids()
        else:
            unique_ids = sorted({i for r in results for i in r.ids})

        self.last_ids = unique_ids
        logger.info(
            "Extracted %d unique id(s) from %d image(s)", len(unique_ids), len(results)
        )
        return BatchResult(
            results=results,
            unique_ids=unique_ids,
            scope=scope,
            global_consensus=global_consensus,
        )

    def export_text(self) -> str:
        """The last accepted identifiers, one per line."""
        return "\n".join(self.last_ids)
