"""NG identifier extraction from noisy OCR.

Recovers ``NG`` + 7 digit label identifiers from scanned images by running
OCR over many binarized variants and reconciling the noisy candidates with
frequency and dominant-prefix consensus.
"""

__version__ = "1.0.0"
