"""Line normalization for noisy OCR output.

Turns one raw OCR line into at most one ``NG`` + 7 digit candidate by
repairing known prefix misreads and visually confusable glyphs.
"""

import re
from collections.abc import Callable, Iterable

ID_PREFIX = "NG"
DIGIT_COUNT = 7

CANDIDATE_PATTERN = re.compile(r"NG[0-9]{7}")

# Characters OCR inserts between groups of the printed identifier.
_STRIP_PATTERN = re.compile(r"[ ,\-()]")

# Glyphs that OCR confuses with digits.
CONFUSION_MAP: dict[str, str] = {
    "O": "0",
    "o": "0",
    "Q": "0",
    "D": "0",
    "I": "1",
    "i": "1",
    "l": "1",
    "L": "1",
    "T": "1",
    "|": "1",
    "Z": "2",
    "z": "2",
    "S": "5",
    "s": "5",
    "G": "6",
    "b": "6",
    "B": "8",
    "°": "0",
    "º": "0",
}


def _is_ascii_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_ascii_alnum(ch: str) -> bool:
    return _is_ascii_digit(ch) or "A" <= ch <= "Z"


def _followed_by_non_digit(text: str, lead: str) -> bool:
    return len(text) > len(lead) and not _is_ascii_digit(text[len(lead)])


RewriteGuard = Callable[[str, str], bool]

# Known misreads of the leading "NG013", in priority order. The first
# entry whose lead matches (and whose guard passes) replaces the lead;
# no further rewrite is tried.
PREFIX_REWRITES: list[tuple[str, str, RewriteGuard | None]] = [
    ("NGOIS", "NG013", None),
    ("NGO1S", "NG013", None),
    ("NGOLS", "NG013", None),
    ("NGOI", "NG013", None),
    ("NGOL", "NG013", None),
    ("NGO1", "NG013", _followed_by_non_digit),
    ("NEOS", "NG013", None),
    ("NEO", "NG013", None),
    ("WG", "NG", None),
    ("W6", "NG", None),
    ("MG", "NG", None),
    ("M6", "NG", None),
    ("N6", "NG", None),
]


def clean_line(line: str) -> str:
    """Trim, upper-case and drop separator characters from a raw line."""
    return _STRIP_PATTERN.sub("", line.strip().upper())


def rewrite_prefix(text: str) -> str:
    """Apply the first matching structural prefix rewrite, if any.

    Args:
        text: A cleaned, upper-cased line.

    Returns:
        The line with its misread lead replaced, or unchanged.
    """
    for lead, replacement, guard in PREFIX_REWRITES:
        if not text.startswith(lead):
            continue
        if guard is not None and not guard(text, lead):
            continue
        return replacement + text[len(lead) :]
    return text


def repair_characters(text: str) -> str:
    """Keep ASCII letters and digits, map confusable glyphs, drop the rest."""
    survivors: list[str] = []
    for ch in text:
        if _is_ascii_alnum(ch):
            survivors.append(ch)
        elif ch in CONFUSION_MAP:
            survivors.append(CONFUSION_MAP[ch])
    return "".join(survivors)


def anchor_prefix(text: str) -> str | None:
    """Drop leading noise before ``NG``.

    The prefix must start within the first five characters; otherwise
    the line is rejected.
    """
    if text.startswith(ID_PREFIX):
        return text
    index = text.find(ID_PREFIX)
    if 0 < index < 5:
        return text[index:]
    return None


def extract_digits(core: str) -> list[str]:
    """Collect digits from the text after ``NG``, mapping confusable letters."""
    digits: list[str] = []
    for ch in core:
        if _is_ascii_digit(ch):
            digits.append(ch)
        elif ch in CONFUSION_MAP:
            digits.append(CONFUSION_MAP[ch])
    return digits


def normalize_line(line: str) -> str | None:
    """Normalize one raw OCR line into an identifier candidate.

    Letters survive character repair as letters so that the ``NG``
    anchor stays intact; confusable letters after the anchor are turned
    into digits during digit extraction.

    Args:
        line: Text of a single OCR-reported line.

    Returns:
        ``NG`` followed by exactly seven digits, or ``None`` when the
        line does not carry a recognizable identifier.
    """
    cleaned = rewrite_prefix(clean_line(line))
    anchored = anchor_prefix(repair_characters(cleaned))
    if anchored is None:
        return None

    digits = extract_digits(anchored[len(ID_PREFIX) :])
    if len(digits) < DIGIT_COUNT:
        return None
    return ID_PREFIX + "".join(digits[:DIGIT_COUNT])


def normalize_lines(lines: Iterable[str]) -> list[str]:
    """Normalize every line, keeping the candidates in input order."""
    candidates: list[str] = []
    for line in lines:
        candidate = normalize_line(line)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def is_candidate(value: str) -> bool:
    """Check that a string matches the ``NG`` + 7 digit grammar."""
    return CANDIDATE_PATTERN.fullmatch(value) is not None
