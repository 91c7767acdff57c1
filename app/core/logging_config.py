# app/core/logging_config.py
"""JSON logger setup shared by the API and the alert scheduler."""

import logging

from pythonjsonlogger import jsonlogger

from app.core.config import get_settings


def get_logger(name: str) -> logging.Logger:
    """
    Configure a JSON logger once per name and reuse it.

    Extra context goes through ``extra={...}`` so it lands as JSON fields.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        "%(levelname)s %(name)s %(message)s %(asctime)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(get_settings().LOG_LEVEL.upper())
    logger.propagate = False
    return logger
