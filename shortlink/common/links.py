"""Public short link construction.

A short link is ``<origin>[/<path_prefix>]/<short_code>``. The origin is
taken, in order, from the reverse proxy's ``X-Forwarded-*`` headers, the
request's own scheme and ``Host`` header, then the configured base URL.
"""

from typing import Mapping, Optional


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            # Proxies may append: "https, http" -> first hop wins
            return value.split(",")[0].strip() or None
    return None


def public_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
) -> str:
    """Origin that clients should use to reach this service.

    Args:
        headers: Request headers (any key case)
        fallback_base_url: Configured base URL
        request_scheme: Scheme the request arrived with

    Returns:
        Origin without a trailing slash
    """
    host = _header(headers, "x-forwarded-host") or _header(headers, "host")
    scheme = _header(headers, "x-forwarded-proto") or request_scheme

    if host and scheme:
        return f"{scheme}://{host}"
    return fallback_base_url.rstrip("/")


def short_url(short_code: str, base_url: str, path_prefix: str = "") -> str:
    parts = [base_url.rstrip("/")]
    if path_prefix.strip("/"):
        parts.append(path_prefix.strip("/"))
    parts.append(short_code)
    return "/".join(parts)
