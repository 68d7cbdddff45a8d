"""
Logging configuration for stamper.

Every module logs through ``logging.getLogger(__name__)``; entry points
(``stamper serve`` and the other CLI commands) call ``setup_logging()`` once
to attach a rich console handler to the ``stamper`` logger.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_initialized = False


def setup_logging(level: str = "INFO", *, console: Optional[Console] = None) -> logging.Logger:
    """Attach a RichHandler to the ``stamper`` logger. Repeated calls only update the level."""
    global _initialized

    logger = logging.getLogger("stamper")
    logger.setLevel(level.upper())

    if _initialized:
        return logger

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    _initialized = True
    return logger
