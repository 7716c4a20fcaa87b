"""Common utilities for URL shortener."""

from .normalizer import normalize_url
from .validators import is_valid_url, check_resolvable_code, prepare_submitted_url
from .url_builder import build_short_url
from .logging_config import setup_logging, get_logger

__all__ = [
    "normalize_url",
    "is_valid_url",
    "check_resolvable_code",
    "prepare_submitted_url",
    "build_short_url",
    "setup_logging",
    "get_logger",
]
