from __future__ import annotations
import re
from typing import Any
from urllib.parse import urlsplit

ALLOWED_SCHEMES = ("http", "https")

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def _strip_once(value: str) -> str:
    value = _SCRIPT_BLOCK.sub("", value)
    value = _JAVASCRIPT_SCHEME.sub("", value)
    return _EVENT_HANDLER.sub("", value).strip()


def sanitize_url(url: Any) -> str:
    """
    Remove script blocks, `javascript:` fragments and inline event handlers.

    Removal repeats until nothing changes, so the result is a fixed point:
    sanitize_url(sanitize_url(x)) == sanitize_url(x).
    """
    if not isinstance(url, str):
        return ""

    current = url.strip()
    while True:
        cleaned = _strip_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def is_absolute_url(url: str) -> bool:
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False
    return bool(parts.scheme)


def has_allowed_scheme(url: str) -> bool:
    return urlsplit(url.strip()).scheme.lower() in ALLOWED_SCHEMES


def has_host(url: str) -> bool:
    """True when the URL names a host with no whitespace or control characters in it."""
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return False
    if any(ch.isspace() or ord(ch) < 32 or ord(ch) == 127 for ch in parts.netloc):
        return False
    return bool(hostname)

