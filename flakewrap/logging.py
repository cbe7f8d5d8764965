"""Logger setup for the flakewrap command line.

Console records use the nix diagnostic shape, ``flakewrap: warning: ...``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "flakewrap"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class DiagnosticFormatter(logging.Formatter):
    """Render ``flakewrap: <level>: <message>``."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return f"{ROOT_LOGGER}: {record.levelname.lower()}: {message}"


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send flakewrap records to stderr, and to ``log_file`` when given.

    Verbose mode lowers the threshold to DEBUG, which includes the full
    nix command line. Calling this again replaces the previous handlers.
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(DiagnosticFormatter("%(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["DiagnosticFormatter", "configure_logging", "get_logger"]
