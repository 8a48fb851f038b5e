"""
Static helper functions for the load executor.
"""

import re
from typing import Optional

import httpx


def classify_http_error(
    exc: Optional[BaseException] = None, status_code: Optional[int] = None
) -> str:
    """
    Return a stable, low-cardinality category for a failed request.

    These failures are expected under load (timeouts, refused connections,
    5xx), so we aggregate rather than logging each failure.
    """
    if exc is None:
        if status_code is None:
            return "UNKNOWN"
        return f"HTTP_{status_code}"

    if isinstance(exc, httpx.TimeoutException):
        return "TIMEOUT"
    if isinstance(exc, httpx.ConnectError):
        return "CONNECT_ERROR"
    if isinstance(exc, httpx.RemoteProtocolError):
        return "PROTOCOL_ERROR"
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP_{exc.response.status_code}"

    return type(exc).__name__


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 300


def join_url(base_url: str, path: str) -> str:
    """Join a base URL and a render path without doubling the slash."""
    if base_url.endswith("/") and path.startswith("/"):
        return base_url[:-1] + path
    if not base_url.endswith("/") and not path.startswith("/"):
        return f"{base_url}/{path}"
    return base_url + path


def preview_url_for_log(url: str, *, max_chars: int = 300) -> str:
    """Preview a URL for logging, collapsing whitespace."""
    u = re.sub(r"\s+", " ", str(url or "")).strip()
    if len(u) > max_chars:
        return u[:max_chars] + "…[truncated]"
    return u
