"""Horizontal strip scanning for sheets carrying many labels.

Tesseract reads a single text line more reliably than a dense page, so
the image is cut into thin horizontal bands before variant generation.
"""

import numpy as np

from ngid.utils.logger import get_logger

logger = get_logger(__name__)

CM_PER_INCH = 2.54


def strip_height_px(strip_height_cm: float, dpi: int = 300) -> int:
    """Convert a strip height in centimeters to whole pixels."""
    return int(strip_height_cm * dpi / CM_PER_INCH)


def split_into_strips(
    image: np.ndarray, strip_height_cm: float = 0.5, dpi: int = 300
) -> list[np.ndarray]:
    """Split an image top to bottom into full-width strips.

    The last strip is shorter when the height is not a multiple of the
    strip height.

    Args:
        image: Input image.
        strip_height_cm: Height of one strip in centimeters.
        dpi: Assumed scan resolution.

    Returns:
        List of strips covering the whole image, in order.
    """
    step = strip_height_px(strip_height_cm, dpi)
    if step <= 0:
        return [image]

    height = image.shape[0]
    strips = [image[y : min(y + step, height)] for y in range(0, height, step)]
    logger.debug("Split %d px tall image into %d strips", height, len(strips))
    return strips
