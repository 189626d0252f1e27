"""Exception classes for the NG ID extractor.

The normalizer and the consensus aggregator never raise; these errors
belong to the I/O around them (image decoding and the OCR backends).
"""


class NGIDError(Exception):
    """Base exception for all NG ID extractor errors."""


class ImageLoadError(NGIDError):
    """Raised when an input image cannot be read or decoded."""


class OCRServiceError(NGIDError):
    """Raised when the remote OCR service fails or rejects a request.

    Attributes:
        status: Short status text suitable for display next to results.
    """

    def __init__(self, message: str, status: str = "error") -> None:
        super().__init__(message)
        self.status = status
