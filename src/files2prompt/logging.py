"""Structured JSON diagnostics for files2prompt.

stdout carries the prompt document, so records only ever go to stderr or to
the file given with ``--log-file``.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path


def _route_records(filename: str | Path | None) -> None:
    root = logging.getLogger()
    if filename:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        handler: logging.Handler = logging.FileHandler(str(filename), encoding="utf-8")
    elif root.handlers:
        root.setLevel(logging.INFO)
        return
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.INFO)


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Route diagnostics and return the files2prompt logger.

    Args:
        filename: log file replacing the stderr handler, if given

    Returns:
        the shared structlog logger
    """
    _route_records(filename)
    if not structlog.is_configured():
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
    return structlog.get_logger("files2prompt")


logger = setup_logging()
