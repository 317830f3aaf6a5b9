"""
Package logging

Every module logs through a child of the ``image_pipeline`` logger. The
toolchain's debug/error flags decide the level once at startup.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "image_pipeline"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

_HANDLER_MARKER = "_image_pipeline_handler"


def get_logger(name: str) -> logging.Logger:
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def level_for(debug: bool, show_errors: bool) -> int:
    if debug:
        return logging.DEBUG
    if show_errors:
        return logging.ERROR
    return logging.WARNING


def configure_logging(*, debug: bool = False, show_errors: bool = False) -> logging.Logger:
    """Attach one stderr handler to the package logger and set its level.

    Calling this again only updates the level; handlers are never duplicated.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    level = level_for(debug, show_errors)
    root.setLevel(level)

    handler = next((h for h in root.handlers if getattr(h, _HANDLER_MARKER, False)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _HANDLER_MARKER, True)
        root.addHandler(handler)
    handler.setLevel(level)
    return root
