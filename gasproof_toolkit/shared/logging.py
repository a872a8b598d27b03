"""
Logging setup for the Gas Proof toolkit.

A single console handler is attached to the package root logger; module
loggers obtained through get_logger propagate to it. The level comes from
GP_LOG_LEVEL (default INFO).
"""

import logging
import os
from typing import Optional

ROOT_LOGGER_NAME = "gasproof_toolkit"

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        root.addHandler(handler)

        level_name = os.getenv("GP_LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, level_name, logging.INFO))
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the package root, configuring the root on first use."""
    root = _configure_root()
    if not name or name == ROOT_LOGGER_NAME:
        return root
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
