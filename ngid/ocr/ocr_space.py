"""Client for the OCR.Space web API.

The remote engine sees the original upload (not the binarized variants)
and contributes its lines to the same consensus as the Tesseract passes.
"""

import requests

from ngid.exceptions import OCRServiceError
from ngid.utils.config import OCRSpaceConfig
from ngid.utils.logger import get_logger

from .tesseract_engine import split_lines

logger = get_logger(__name__)


class OCRSpaceClient:
    """Posts images to OCR.Space and returns the parsed text lines.

    Args:
        config: OCR.Space endpoint, key and timeout settings.
        session: Optional ``requests`` session to reuse connections.
    """

    def __init__(
        self, config: OCRSpaceConfig, session: requests.Session | None = None
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    @property
    def available(self) -> bool:
        """Whether the client is enabled and has an API key."""
        return self.config.enabled and bool(self.config.api_key)

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self.session.close()

    def read_lines(self, content: bytes, filename: str = "image.png") -> list[str]:
        """Send one image to OCR.Space.

        Args:
            content: Encoded image file bytes.
            filename: Name sent with the multipart upload.

        Returns:
            Non-empty lines of the first parsed result.

        Raises:
            OCRServiceError: On network failure, an HTTP error status,
                or a non-success ``OCRExitCode``.
        """
        if not self.config.api_key:
            raise OCRServiceError("OCR.Space API key is not configured", "idle")

        data = {
            "apikey": self.config.api_key,
            "language": self.config.language,
            "isOverlayRequired": "false",
        }
        logger.info("Calling OCR.Space for %s", filename)
        try:
            response = self.session.post(
                self.config.url,
                data=data,
                files={"file": (filename, content)},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise OCRServiceError(
                f"OCR.Space network error: {exc}", "network error"
            ) from exc

        if payload.get("OCRExitCode") != 1:
            message = (
                payload.get("ErrorMessage")
                or payload.get("ErrorDetails")
                or "OCR.Space returned an error"
            )
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            raise OCRServiceError(str(message))

        parsed = payload.get("ParsedResults") or []
        if not parsed:
            return []
        return split_lines(parsed[0].get("ParsedText") or "")
