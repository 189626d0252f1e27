"""Variant generation for multi-pass label OCR.

Upscales small images, optionally cuts them into strips, and produces a
fixed set of binarized variants of every piece. Each variant is OCR'd
separately and all resulting lines feed one consensus decision.
"""

import cv2
import numpy as np

from ngid.utils.config import PreprocessingConfig
from ngid.utils.logger import get_logger

from .binarize import binarize_threshold, to_gray
from .strips import split_into_strips

logger = get_logger(__name__)


def upscale_to_min_size(image: np.ndarray, min_size: int) -> np.ndarray:
    """Enlarge an image so both sides reach ``min_size`` where possible.

    The scale factor is the larger of ``min_size / width`` and
    ``min_size / height``; images are never shrunk.

    Args:
        image: Input image.
        min_size: Target side length in pixels.

    Returns:
        The resized image, or the input when no upscaling is needed.
    """
    height, width = image.shape[:2]
    if height == 0 or width == 0:
        return image

    scale = max(min_size / width, min_size / height, 1.0)
    if scale == 1.0:
        return image

    size = (round(width * scale), round(height * scale))
    logger.debug("Upscaling %dx%d by %.2f", width, height, scale)
    return cv2.resize(image, size, interpolation=cv2.INTER_CUBIC)


class VariantPipeline:
    """Produces the binarized variants OCR runs over.

    Args:
        config: Preprocessing configuration with thresholds and strip settings.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    @property
    def variants_per_piece(self) -> int:
        """Number of variants generated for each strip (or whole image)."""
        count = len(self.config.thresholds) + len(self.config.inverted_thresholds)
        return count + (1 if self.config.include_grayscale else 0)

    def pieces(
        self, image: np.ndarray, use_strips: bool | None = None
    ) -> list[np.ndarray]:
        """Upscale the image and split it into strips when enabled."""
        if use_strips is None:
            use_strips = self.config.strips_enabled

        base = upscale_to_min_size(image, self.config.min_size)
        if not use_strips:
            return [base]
        return split_into_strips(base, self.config.strip_height_cm, self.config.dpi)

    def variants_of(self, piece: np.ndarray) -> list[np.ndarray]:
        """Binarize one piece at every configured threshold."""
        gray = to_gray(piece)
        variants = [binarize_threshold(gray, t) for t in self.config.thresholds]
        variants.extend(
            binarize_threshold(gray, t, invert=True)
            for t in self.config.inverted_thresholds
        )
        if self.config.include_grayscale:
            variants.append(gray)
        return variants

    def generate(
        self, image: np.ndarray, use_strips: bool | None = None
    ) -> list[np.ndarray]:
        """Run the full variant pipeline on an image.

        Args:
            image: Decoded source image.
            use_strips: Override for the configured strip scanning flag.

        Returns:
            All variants of all pieces, strip by strip.
        """
        variants: list[np.ndarray] = []
        pieces = self.pieces(image, use_strips)
        for piece in pieces:
            variants.extend(self.variants_of(piece))

        logger.info(
            "Generated %d variants from %d piece(s)", len(variants), len(pieces)
        )
        return variants
