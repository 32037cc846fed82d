"""structlog setup shared by the CLI and the server."""

from __future__ import annotations

import logging
from typing import TextIO

import structlog

LOG_LEVELS = ("debug", "info", "warning", "error")


def configure_logging(level: str = "info", stream: TextIO | None = None) -> None:
    """Install a filtering structlog logger for ``level``.

    Unknown level names fall back to info. ``stream`` redirects output
    (e.g. to stderr when stdout carries data).
    """
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    kwargs = {}
    if stream is not None:
        kwargs["logger_factory"] = structlog.PrintLoggerFactory(stream)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        **kwargs,
    )
