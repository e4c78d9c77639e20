"""URL validation and resolution utilities."""

from __future__ import annotations

import re
from urllib.parse import quote, urljoin, urlparse, urlsplit, urlunsplit

# Schemes whose URLs can be handed back to a caller as fetchable links
FETCHABLE_SCHEMES: frozenset[str] = frozenset({"http", "https"})

# RFC 3986 scheme prefix ("https:", "javascript:", "data:" ...)
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

# Characters left untouched when quoting path, query and fragment
_URI_SAFE = "/%:@!$&'()*+,;=?#~"


def is_valid_url(value: str | None) -> bool:
    """Return True if *value* is an absolute URL with a scheme and a host.

    No network access is performed.

    Example:
        is_valid_url("https://example.com/post") → True
        is_valid_url("example.com/post")         → False
    """
    if not value or not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value)
        # Accessing .port validates the netloc; it raises on "host:abc"
        parsed.port  # noqa: B018
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.hostname)


def _is_fetchable(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in FETCHABLE_SCHEMES and bool(parsed.netloc)


def resolve_url(candidate: str | None, base_url: str) -> str | None:
    """Return *candidate* as an absolute http(s) URL, or None.

    Absolute http(s) URLs pass through unchanged.  Scheme-relative
    (``//host/path``), absolute-path (``/path``) and relative (``path``)
    references are resolved against *base_url*.  Empty candidates, other
    schemes (``javascript:``, ``mailto:``, ``data:``) and references that
    cannot be resolved return None.
    """
    if not candidate:
        return None
    candidate = candidate.strip()
    if not candidate:
        return None

    if _SCHEME_RE.match(candidate):
        return candidate if _is_fetchable(candidate) else None

    if not base_url:
        return None
    try:
        resolved = urljoin(base_url, candidate)
    except ValueError:
        return None
    return resolved if _is_fetchable(resolved) else None


def to_request_uri(url: str) -> str:
    """Return *url* as an ASCII-only URI that ``http.client`` accepts.

    Non-ASCII hosts are IDNA-encoded; spaces and non-ASCII characters in the
    path, query and fragment are percent-encoded.  Existing ``%XX`` escapes
    are kept as they are.

    Raises:
        ValueError: When the host cannot be IDNA-encoded.

    Example:
        to_request_uri("https://example.com/café") → "https://example.com/caf%C3%A9"
    """
    parts = urlsplit(url.strip())
    netloc = parts.netloc
    host = parts.hostname or ""
    if host and not host.isascii():
        userinfo, _, _ = netloc.rpartition("@")
        port = f":{parts.port}" if parts.port is not None else ""
        netloc = host.encode("idna").decode("ascii") + port
        if userinfo:
            netloc = f"{quote(userinfo, safe=_URI_SAFE)}@{netloc}"
    return urlunsplit((
        parts.scheme,
        netloc,
        quote(parts.path, safe=_URI_SAFE),
        quote(parts.query, safe=_URI_SAFE),
        quote(parts.fragment, safe=_URI_SAFE),
    ))


def extract_domain(url: str) -> str:
    """Return the host component of a URL, lowercased and without port."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
