"""Logging setup shared by the CLI and the API server."""

import logging
import sys

# Image decoding and HTTP libraries log every chunk at DEBUG.
_NOISY_LOGGERS = ("PIL", "urllib3", "multipart")


def setup_logging(level: str = "INFO") -> None:
    """Install one stdout handler on the root logger.

    Unknown level names fall back to INFO. A second call is a no-op, so the
    CLI and the server can both call it without doubling output.

    Args:
        level: Logging level name, e.g. ``"DEBUG"``.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, e.g. ``get_logger(__name__)``.

    Loggers under ``ngid.`` inherit the root handler installed by
    :func:`setup_logging`.
    """
    return logging.getLogger(name)
