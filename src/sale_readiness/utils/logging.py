"""Rich console logging for valuation runs.

Engine modules log their classification, weights and per-method outcomes at
DEBUG under the ``sale_readiness`` logger; those lines only surface with
``--debug`` or ``SALE_VALUATION_DEBUG``.
"""
from __future__ import annotations

import logging
from typing import Optional

from rich.logging import RichHandler

PACKAGE_LOGGER = "sale_readiness"
_NOISY_LOGGERS = ("langgraph", "httpx")
_LOGGER_CONFIGURED = False


def configure_logging(debug: bool = False, *, level: Optional[int] = None) -> None:
    """Install a Rich handler on the root logger, once per process."""
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    resolved_level = level or (logging.DEBUG if debug else logging.INFO)
    logging.basicConfig(
        level=resolved_level,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=debug, show_path=debug)],
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _LOGGER_CONFIGURED = True
