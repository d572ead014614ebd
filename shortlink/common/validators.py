"""Validation utilities for URL mappings."""

import re
from urllib.parse import urlparse
from typing import Tuple

MAX_URL_LENGTH = 2048

SHORT_CODE_PATTERN = re.compile(r'^[A-Za-z0-9]{6,8}$')

# Codes that would shadow routes served at the root
RESERVED_CODES = {
    "health", "static", "assets", "favicon", "robots", "sitemap",
    "create", "delete", "cleanup", "docs", "redoc",
}


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    if any(c.isspace() for c in url):
        return False, "URL must not contain whitespace"

    try:
        result = urlparse(url)
        hostname = result.hostname
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if result.scheme not in ("http", "https"):
        return False, "URL must use http or https protocol"

    # urlparse lower-cases the scheme; the stored URL keeps the caller's spelling
    if not url.startswith(result.scheme + ":"):
        return False, "URL scheme must be lowercase http or https"

    if not result.netloc or not hostname:
        return False, "URL must have a valid domain"

    return True, ""


def extract_domain(url: str) -> str:
    """Return the lower-cased host of a validated URL."""
    return (urlparse(url).hostname or "").lower()


def is_valid_short_code(short_code: str) -> Tuple[bool, str]:
    """Validate a caller-chosen short code.

    Args:
        short_code: The short code to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"

    if not SHORT_CODE_PATTERN.match(short_code):
        return False, "Short code must be 6-8 letters or digits"

    if short_code.lower() in RESERVED_CODES:
        return False, f"'{short_code}' is a reserved word and cannot be used"

    return True, ""
