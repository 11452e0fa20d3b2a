"""Console logging configuration shared by the API and the CLI."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single console handler to the ``linkray`` logger.

    Safe to call more than once; the handler is only added the first time.
    An unrecognised *level* falls back to ``INFO``.
    """
    logger = logging.getLogger("linkray")
    try:
        logger.setLevel((level or "INFO").upper())
    except ValueError:
        logger.setLevel(logging.INFO)
        logger.warning("Unknown log level %r; using INFO", level)

    if logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
