from __future__ import annotations

import logging
from typing import Optional, Dict, Any

ROOT_LOGGER_NAME = "nifcheck"


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Return a configured logger under the ``nifcheck`` namespace.

    Names not already under the namespace are prefixed (``"checker"`` becomes
    ``"nifcheck.checker"``). The handler is attached once with INFO level;
    callers can override the level on the returned logger.
    """

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_event(
    logger: logging.Logger,
    level: int,
    message: str,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log ``message`` with optional structured context appended as ``| extra={...}``."""

    if not extra:
        logger.log(level, message)
    else:
        logger.log(level, f"{message} | extra={extra}")
