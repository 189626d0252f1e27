"""Tesseract OCR wrapper returning raw text lines.

Each variant is read with several page segmentation modes; every
non-empty line of every pass goes to the consensus unfiltered.
"""

import numpy as np
import pytesseract
from PIL import Image

from ngid.utils.config import TesseractPass
from ngid.utils.logger import get_logger

logger = get_logger(__name__)


def split_lines(text: str) -> list[str]:
    """Split OCR text into stripped, non-empty lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class TesseractEngine:
    """Wrapper around Tesseract OCR for label text lines.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: Default OCR language code.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang

    @staticmethod
    def build_config(psm: int, whitelist: str | None = None) -> str:
        """Build the Tesseract command-line config string."""
        config = f"--psm {psm}"
        if whitelist:
            config += f" -c tessedit_char_whitelist={whitelist}"
        return config

    def read_lines(
        self,
        image: np.ndarray,
        psm: int = 6,
        whitelist: str | None = None,
        lang: str | None = None,
    ) -> list[str]:
        """OCR one image and return its text lines.

        Args:
            image: Input image as a numpy array.
            psm: Tesseract page segmentation mode.
            whitelist: Optional set of characters Tesseract may emit.
            lang: OCR language code. Defaults to the engine default.

        Returns:
            Non-empty text lines in reading order.
        """
        text = pytesseract.image_to_string(
            Image.fromarray(image),
            lang=lang or self.default_lang,
            config=self.build_config(psm, whitelist),
        )
        return split_lines(text)

    def read_all_passes(
        self, image: np.ndarray, passes: list[TesseractPass]
    ) -> list[str]:
        """OCR one image once per configured pass and pool the lines.

        Args:
            image: Input image as a numpy array.
            passes: Tesseract configurations to apply in order.

        Returns:
            Lines from every pass, pass by pass.
        """
        lines: list[str] = []
        for ocr_pass in passes:
            lines.extend(self.read_lines(image, ocr_pass.psm, ocr_pass.whitelist))
        logger.debug("Tesseract returned %d lines over %d passes", len(lines), len(passes))
        return lines
