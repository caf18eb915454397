"""Shared utility functions for the payment pin importer."""

import logging
from datetime import UTC, datetime
from pathlib import Path

import colorlog

BASE_LOGGER = "paymap"


def get_logger(name: str = BASE_LOGGER) -> logging.Logger:
    """Get a project logger; the colorized console handler lives on the base logger."""
    base = logging.getLogger(BASE_LOGGER)
    if not base.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        base.addHandler(handler)
        base.setLevel(logging.INFO)
    base.propagate = False
    return logging.getLogger(name)


def ensure_dir(path: str | Path) -> None:
    """Ensure a directory exists (like mkdir -p)."""
    Path(path).mkdir(parents=True, exist_ok=True)


def utcnow_iso() -> str:
    """Get the current UTC time as an ISO8601 string."""
    return datetime.now(UTC).isoformat()
