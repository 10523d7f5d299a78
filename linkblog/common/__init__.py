"""Common utilities for linkblog."""

from .validators import validate_submission, is_valid_short_code
from .url_builder import build_short_url, build_feed_url
from .logging_config import setup_logging

__all__ = [
    "validate_submission",
    "is_valid_short_code",
    "build_short_url",
    "build_feed_url",
    "setup_logging",
]
