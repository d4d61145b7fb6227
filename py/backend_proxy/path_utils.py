"""Path normalization helpers used when building backend URLs and redirects."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

_TRAILING_SLASHES = re.compile(r"/+$")
_LEADING_SLASHES = re.compile(r"^/+")


def strip_trailing_slash(path: str) -> str:
    return _TRAILING_SLASHES.sub("", path)


def strip_leading_slash(path: str) -> str:
    return _LEADING_SLASHES.sub("", path)


def ensure_leading_slash(path: str) -> str:
    """Return *path* with exactly one leading slash."""
    return "/" + strip_leading_slash(path)


def join_url_parts(base: str, path: str) -> str:
    """Join *base* and *path* with a single slash between them."""
    return f"{strip_trailing_slash(base)}/{strip_leading_slash(path)}"


def normalize_redirect_location(location: str, base_path: str) -> str:
    """Rewrite a backend redirect target into a path under the dev server root.

    Fully qualified URLs lose their scheme and host, the backend mount prefix
    (*base_path*) is stripped when present, and the result always carries a
    single leading slash.
    """
    normalized = location
    if location.startswith(("http://", "https://")):
        parsed = urlsplit(location)
        normalized = parsed.path or "/"
        if parsed.query:
            normalized += "?" + parsed.query
        if parsed.fragment:
            normalized += "#" + parsed.fragment

    if normalized.startswith(base_path):
        normalized = normalized[len(base_path):]

    return ensure_leading_slash(normalized)
