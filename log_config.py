"""Logging configuration shared by the route optimizer modules."""

from __future__ import annotations

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "route_optimizer"

_configured = False


def setup_logging(
    level: int = logging.WARNING,
    format_string: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Attach a single handler to the package logger.

    A later call without ``format_string`` or ``handler`` only updates the
    level, so repeated CLI runs inside one process do not stack handlers.
    Passing either one replaces the installed handler.
    """
    global _configured

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    if _configured and format_string is None and handler is None:
        return

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter(format_string))
    for old in list(root_logger.handlers):
        root_logger.removeHandler(old)
        old.close()
    root_logger.addHandler(handler)
    # Propagate so pytest's caplog still sees records.
    root_logger.propagate = True
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger for the given module name."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
