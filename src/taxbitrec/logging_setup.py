# logging_setup.py
"""
Handler setup for the ``taxbitrec`` logger tree.

Modules log through ``logging.getLogger(__name__)``; the package ``__init__``
attaches a NullHandler so library use stays silent. Entrypoints (the API app)
call ``configure_logging`` with the level from ``config.load_config``.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

PACKAGE_LOGGER = "taxbitrec"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(level: str = "INFO", stream: Optional[IO[str]] = None) -> logging.Logger:
    """Set the package level and attach one stream handler (repeat calls only change the level)."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
