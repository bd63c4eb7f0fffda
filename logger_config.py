"""Centralized logging configuration."""

import os
import sys

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

log_format = " | ".join(
    (
        "<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{file}::{function}:{line}</>",
        "{message}",
    )
)

# Replace the default handler so every record goes through one format
logger.remove()
logger.add(sys.stdout, format=log_format, level=LOG_LEVEL)
