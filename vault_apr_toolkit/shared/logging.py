"""
Loggers for the Vault APR toolkit.

Every module calls ``get_logger(__name__)``. The level comes from
VAULT_APR_LOG_LEVEL (default INFO) and the CLI can change it afterwards
with ``set_log_level``.
"""

import logging
import os
from typing import Optional

LOGGER_PREFIX = "vault_apr_toolkit"

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _level(name: Optional[str]) -> int:
    return getattr(logging, (name or "INFO").upper(), logging.INFO)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger with a console handler, attached once per name."""
    logger = logging.getLogger(name or LOGGER_PREFIX)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(_level(os.getenv("VAULT_APR_LOG_LEVEL")))
    return logger


def set_log_level(level: str) -> None:
    """Apply ``level`` to every toolkit logger created so far."""
    resolved = _level(level)
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if name.startswith(LOGGER_PREFIX) and isinstance(logger, logging.Logger):
            logger.setLevel(resolved)
