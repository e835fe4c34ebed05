"""Utilities package."""

from .config import resolve_collection_db_path, resolve_tesseract_path, settings
from .log import LoggerMixin, configure_logging, get_logger

__all__ = [
    "settings",
    "resolve_tesseract_path",
    "resolve_collection_db_path",
    "get_logger",
    "LoggerMixin",
    "configure_logging",
]
