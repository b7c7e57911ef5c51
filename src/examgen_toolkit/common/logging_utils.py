"""
Logging setup for command-line entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers; the
CLI calls :func:`configure_logging` once to attach a console handler.
"""
from __future__ import annotations

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "examgen-console"


def configure_logging(verbose: bool = False, logger_name: Optional[str] = "examgen_toolkit") -> logging.Handler:
    """
    Attach a single stream handler to the package logger.

    Calling this more than once replaces the previous handler rather than
    stacking duplicates.

    Args:
        verbose: DEBUG level when True, INFO otherwise.
        logger_name: Logger to configure. None = root logger.

    Returns:
        The attached handler.
    """
    logger = logging.getLogger(logger_name)
    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    level = logging.DEBUG if verbose else logging.INFO
    handler.setLevel(level)
    logger.setLevel(level)
    logger.addHandler(handler)
    return handler
