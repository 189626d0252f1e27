"""Per-image extraction pipeline.

Loads one image, runs every OCR pass over every variant, joins all the
lines and makes a single per-image consensus decision.
"""

import io
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from ngid.exceptions import ImageLoadError, OCRServiceError
from ngid.extraction.consensus import ConsensusResult, extract_ids
from ngid.preprocessing.pipeline import VariantPipeline
from ngid.utils.config import AppConfig, Engine
from ngid.utils.logger import get_logger

from .ocr_space import OCRSpaceClient
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)

API_NOT_USED = "not used"
API_OK = "ok"
API_IDLE = "idle"


@dataclass
class ImageResult:
    """OCR lines and accepted identifiers for one source image."""

    filename: str
    lines: list[str]
    ids: list[str]
    api_status: str = API_NOT_USED
    consensus: ConsensusResult | None = None
    error: str | None = None
    variant_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def load_image(source: Path | bytes) -> np.ndarray:
    """Decode an image file or bytes into an RGB array.

    Raises:
        ImageLoadError: If the data is missing or not a readable image.
    """
    try:
        if isinstance(source, bytes):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(source)
        return np.array(img.convert("RGB"))
    except (OSError, UnidentifiedImageError) as exc:
        raise ImageLoadError(f"Cannot read image: {exc}") from exc


class ImageProcessor:
    """End-to-end extraction for a single image.

    Args:
        config: Application configuration object.
        engine: Override for the configured OCR engine selection.
    """

    def __init__(self, config: AppConfig, engine: Engine | None = None) -> None:
        self.config = config
        self.engine = engine or config.engine
        self.variants = VariantPipeline(config.preprocessing)
        self.tesseract = TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.default_lang,
        )
        self.ocr_space = OCRSpaceClient(config.ocr_space)

    def close(self) -> None:
        self.ocr_space.close()

    def collect_lines(
        self,
        source: Path | bytes,
        filename: str = "image",
        use_strips: bool | None = None,
    ) -> tuple[list[str], str, int]:
        """Gather raw lines from every OCR pass over one image.

        Remote OCR failures are logged and contribute no lines. The
        returned status is ``idle`` when OCR.Space was wanted but has no
        API key.

        Returns:
            Tuple of (lines, api_status, variant_count).
        """
        image = load_image(source)
        lines: list[str] = []
        variant_count = 0

        if self.engine in (Engine.TESSERACT, Engine.DUAL):
            variants = self.variants.generate(image, use_strips)
            variant_count = len(variants)
            for variant in variants:
                lines.extend(
                    self.tesseract.read_all_passes(variant, self.config.ocr.passes)
                )

        api_status = API_NOT_USED
        if self.engine not in (Engine.OCRSPACE, Engine.DUAL):
            return lines, api_status, variant_count

        if not self.ocr_space.available:
            logger.debug("OCR.Space has no API key, skipping %s", filename)
            api_status = API_IDLE
        else:
            content = source if isinstance(source, bytes) else Path(source).read_bytes()
            try:
                lines.extend(self.ocr_space.read_lines(content, filename))
                api_status = API_OK
            except OCRServiceError as exc:
                logger.warning("OCR.Space failed for %s: %s", filename, exc)
                api_status = exc.status

        return lines, api_status, variant_count

    def process(
        self,
        source: Path | bytes,
        filename: str = "image",
        strict: bool | None = None,
        use_strips: bool | None = None,
    ) -> ImageResult:
        """Extract identifiers from one image.

        Args:
            source: Path to an image file, or raw file bytes.
            filename: Display name for the source image.
            strict: Stricter consensus tier; defaults to the configured value.
            use_strips: Override for the configured strip scanning flag.

        Returns:
            Lines, accepted identifiers and the consensus details.
        """
        if strict is None:
            strict = self.config.consensus.strict

        logger.info("Processing image: %s", filename)
        lines, api_status, variant_count = self.collect_lines(
            source, filename, use_strips
        )
        consensus = extract_ids(
            lines, per_image=True, strict=strict, config=self.config.consensus
        )

        logger.info(
            "Found %d id(s) in %s from %d lines",
            len(consensus.accepted),
            filename,
            len(lines),
        )
        return ImageResult(
            filename=filename,
            lines=lines,
            ids=consensus.sorted_ids(),
            api_status=api_status,
            consensus=consensus,
            variant_count=variant_count,
        )
