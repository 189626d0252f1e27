"""Grayscale conversion and fixed-threshold binarization.

Label scans vary widely in exposure, so instead of one adaptive
threshold the pipeline binarizes each image at several fixed levels and
lets consensus sort out which variants read cleanly.
"""

import cv2
import numpy as np

from ngid.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB or RGBA image to luminance grayscale.

    Args:
        image: Input image (RGB, RGBA or already grayscale).

    Returns:
        Single-channel uint8 image.
    """
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def binarize_threshold(
    image: np.ndarray, threshold: int, invert: bool = False
) -> np.ndarray:
    """Binarize an image at a fixed gray level.

    Pixels brighter than ``threshold`` become white. With ``invert``,
    pixels darker than ``threshold`` become white instead, which reads
    light text printed on dark stock.

    Args:
        image: Input image (color or grayscale).
        threshold: Gray level in 0-255.
        invert: Whether to swap foreground and background.

    Returns:
        Binary image with pixel values 0 or 255.
    """
    gray = to_gray(image)
    if invert:
        binary = np.where(gray < threshold, 255, 0).astype(np.uint8)
    else:
        _, binary = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
    logger.debug("Applied threshold %d (invert=%s)", threshold, invert)
    return binary
