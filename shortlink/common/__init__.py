"""Common utilities for the shortlink service."""

from .validators import is_valid_url, is_valid_short_code, extract_domain
from .links import public_base_url, short_url
from .logging_config import setup_logging

__all__ = [
    "is_valid_url",
    "is_valid_short_code",
    "extract_domain",
    "public_base_url",
    "short_url",
    "setup_logging",
]
