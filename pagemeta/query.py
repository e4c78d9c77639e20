"""pagemeta.query - single-URL fetch and metadata extraction API.

Uses only the stdlib (``urllib``) for HTTP: one GET per call, no retries.

Basic usage::

    from pagemeta.query import fetch_metadata

    result = fetch_metadata("https://example.com/blog/some-post")
    print(result.title)
    print(result.image)
    print(result.feeds)

    # As a JSON-ready dict
    data = fetch_metadata("https://example.com/").to_dict()

Low-level access::

    from pagemeta.query import fetch_document, extract

    doc = fetch_document("https://example.com/blog/post")
    result = extract(doc.html, url=doc.final_url)
"""

from __future__ import annotations

import gzip
import http.client
import logging
import socket
import urllib.error
import urllib.request
import zlib
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlparse

from pagemeta.config import DEFAULT_USER_AGENT, ExtractorConfig
from pagemeta.document import parse_html
from pagemeta.errors import ExtractionError, FetchError, InvalidInputError, MetadataError
from pagemeta.extractors.rules import FieldRule, build_rules, extract_fields
from pagemeta.extractors.tags import AuxiliaryTags, collect_tags
from pagemeta.extractors.urlnorm import FETCHABLE_SCHEMES, is_valid_url, to_request_uri
from pagemeta.items import CANONICAL_FIELDS, TIMESTAMP_KEY, ExtractionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedDocument:
    """Raw page as returned by the single GET."""

    final_url: str
    html: str
    status: int = 200


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_url(url: str | None) -> str:
    """Return the stripped *url* or raise :class:`InvalidInputError`."""
    url = (url or "").strip()
    if not url:
        raise InvalidInputError("URL is required")
    if not is_valid_url(url):
        raise InvalidInputError("Invalid URL format", url=url)
    return url


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

def _decode_response_body(raw: bytes, headers: object | None, url: str) -> str:
    encoding = ""
    if headers is not None:
        try:
            encoding = str(headers.get("Content-Encoding", "")).lower().strip()
        except Exception:
            encoding = ""

    try:
        if encoding == "gzip":
            raw = gzip.decompress(raw)
        elif encoding in ("deflate", "zlib"):
            raw = zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(
            f"Failed to fetch webpage: could not decode {encoding} body ({exc})",
            url=url,
            reason=str(exc),
        ) from exc

    charset = "utf-8"
    if headers is not None:
        try:
            charset = headers.get_content_charset("utf-8") or "utf-8"
        except Exception:
            charset = "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except (LookupError, ValueError):
        return raw.decode("utf-8", errors="replace")


def fetch_document(
    url: str,
    *,
    timeout: float = 10.0,
    user_agent: str | None = None,
) -> FetchedDocument:
    """Fetch *url* with a single GET and return the post-redirect document.

    Args:
        url:        Fully-qualified HTTP/HTTPS URL.
        timeout:    Request timeout in seconds (default 10).
        user_agent: Override the default browser User-Agent string.

    Returns:
        :class:`FetchedDocument` with the final URL and decoded body.

    Raises:
        FetchError: On non-2xx responses, connection failures, timeouts or
            unsupported URL schemes.
    """
    parsed = urlparse(url)
    if parsed.scheme.lower() not in FETCHABLE_SCHEMES:
        raise FetchError(
            f"Failed to fetch webpage: unsupported URL scheme {parsed.scheme!r}",
            url=url,
            reason="unsupported scheme",
        )

    try:
        request_url = to_request_uri(url)
    except ValueError as exc:
        logger.warning("Cannot encode %s for the request line: %s", url, exc)
        raise FetchError(
            f"Failed to fetch webpage: {exc}", url=url, reason=str(exc),
        ) from exc

    req = urllib.request.Request(
        request_url,
        headers={
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;"
                "q=0.9,image/avif,image/webp,*/*;q=0.8"
            ),
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate",
            "Upgrade-Insecure-Requests": "1",
        },
    )

    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = int(getattr(resp, "status", 200) or 200)
            final_url = resp.geturl() or url
            if not 200 <= status < 300:
                reason = str(getattr(resp, "reason", "") or "")
                raise FetchError(
                    f"Failed to fetch webpage: {status} {reason}".rstrip(),
                    url=url,
                    status=status,
                    reason=reason,
                )
            raw: bytes = resp.read()
            html = _decode_response_body(raw, resp.headers, url)

    except urllib.error.HTTPError as exc:
        body_text = ""
        try:
            raw = exc.read()
            if raw:
                body_text = _decode_response_body(raw, exc.headers, url)
        except Exception:
            body_text = ""
        reason = str(exc.reason or "")
        logger.warning("HTTP %d fetching %s: %s", exc.code, url, reason)
        raise FetchError(
            f"Failed to fetch webpage: {exc.code} {reason}".rstrip(),
            url=url,
            status=exc.code,
            reason=reason,
            body=body_text,
        ) from exc

    except urllib.error.URLError as exc:
        reason = "timed out" if isinstance(exc.reason, socket.timeout) else str(exc.reason)
        logger.warning("URL error fetching %s: %s", url, reason)
        raise FetchError(
            f"Failed to fetch webpage: {reason}", url=url, reason=reason,
        ) from exc

    except TimeoutError as exc:
        logger.warning("Timed out after %.1fs fetching %s", timeout, url)
        raise FetchError(
            "Failed to fetch webpage: timed out", url=url, reason="timed out",
        ) from exc

    except (OSError, http.client.HTTPException) as exc:
        logger.warning("Network error fetching %s: %s", url, exc)
        raise FetchError(
            f"Failed to fetch webpage: {exc}", url=url, reason=str(exc),
        ) from exc

    # http.client rejects URLs and headers it cannot encode with ValueError
    except ValueError as exc:
        logger.warning("Invalid request for %s: %s", url, exc)
        raise FetchError(
            f"Failed to fetch webpage: {exc}", url=url, reason=str(exc),
        ) from exc

    if final_url != url:
        logger.debug("Redirected %s -> %s", url, final_url)
    return FetchedDocument(final_url=final_url, html=html, status=status)


# ---------------------------------------------------------------------------
# Result assembly
# ---------------------------------------------------------------------------

# Raw keys that never pass through: they name stamped or link-derived fields
_RESERVED_KEYS: frozenset[str] = frozenset(
    set(CANONICAL_FIELDS) | {TIMESTAMP_KEY, "extracted_at"},
)


def _utc_timestamp() -> str:
    now = datetime.now(UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def assemble_result(
    final_url: str,
    fields: Mapping[str, str],
    tags: AuxiliaryTags,
    rules: tuple[FieldRule, ...] = (),
    *,
    extracted_at: str | None = None,
) -> ExtractionResult:
    """Merge rule-based fields with auxiliary tags into one result.

    Every non-empty entry of *fields* is kept as is.  *rules* only drive the
    fallback: for each rule whose field is still missing, the first of its
    claimed raw tags (normalized like the rule's own candidates) is used,
    then a raw tag named after the field.  Claimed tags never appear
    standalone; every other raw tag passes through verbatim.
    """
    merged: dict[str, object] = {}
    remaining: dict[str, object] = dict(tags)

    # link-derived fields come straight from the collector
    for key in ("canonical", "favicon", "language", "feeds"):
        value = remaining.pop(key, None)
        if value:
            merged[key] = value

    for name, value in fields.items():
        if value:
            merged[name] = value

    for rule in rules:
        value = merged.get(rule.name)
        for key in (*rule.claims, rule.name):
            raw = remaining.pop(key, None)
            if value or not isinstance(raw, str):
                continue
            value = rule.normalize(raw, final_url)
            if value:
                logger.debug("%s: fell back to raw tag %r", rule.name, key)
        if value:
            merged[rule.name] = value

    for key, value in remaining.items():
        if key in _RESERVED_KEYS:
            continue
        merged[key] = value

    merged["url"] = final_url
    merged[TIMESTAMP_KEY] = extracted_at or _utc_timestamp()
    return ExtractionResult.model_validate(merged)


# ---------------------------------------------------------------------------
# Extraction (pure HTML → ExtractionResult, no network)
# ---------------------------------------------------------------------------

def extract(
    html: str,
    *,
    url: str,
    config: ExtractorConfig | None = None,
    rules: tuple[FieldRule, ...] | None = None,
) -> ExtractionResult:
    """Extract metadata from *html* and return an :class:`ExtractionResult`.

    No network requests are made.  Given the same *html* and *url* the
    result is identical apart from ``extractedAt``.

    Args:
        html:   Raw HTML string of the page.
        url:    Final URL of the page; base for every relative reference.
        config: Pipeline configuration (defaults to :class:`ExtractorConfig`).
        rules:  Pre-built rule chain; built from *config* when omitted.

    Raises:
        ExtractionError: On an unexpected internal fault.  Missing metadata
            is never an error.
    """
    config = config or ExtractorConfig()
    if rules is None:
        rules = build_rules(config)

    try:
        doc = parse_html(html)
        fields = extract_fields(doc, url, rules)
        tags = collect_tags(doc, url) if config.collect_tags else {}
        return assemble_result(url, fields, tags, rules)
    except MetadataError:
        raise
    except Exception as exc:
        logger.exception("Metadata extraction failed for %s", url)
        raise ExtractionError("Failed to extract metadata", url=url) from exc


# ---------------------------------------------------------------------------
# Main public API
# ---------------------------------------------------------------------------

def fetch_metadata(
    url: str,
    *,
    config: ExtractorConfig | None = None,
    rules: tuple[FieldRule, ...] | None = None,
) -> ExtractionResult:
    """Fetch *url* and return everything machine-readable about it.

    This is the primary one-call API: validate → fetch → extract.

    Args:
        url:    Absolute HTTP/HTTPS URL to describe.
        config: Pipeline configuration (defaults to :class:`ExtractorConfig`).
        rules:  Pre-built rule chain; built from *config* when omitted.

    Returns:
        :class:`~pagemeta.items.ExtractionResult`.  Access fields directly
        (``result.title``) or call ``.to_dict()`` for a JSON-ready ``dict``.

    Raises:
        :class:`~pagemeta.errors.InvalidInputError`: Missing or malformed URL;
            no network call is made.
        :class:`~pagemeta.errors.FetchError`: Non-2xx status, network error
            or timeout.
        :class:`~pagemeta.errors.ExtractionError`: Unexpected internal fault.

    Example::

        from pagemeta import fetch_metadata

        result = fetch_metadata("https://example.com/blog/post")
        print(result.title, result.favicon)
    """
    url = validate_url(url)
    config = config or ExtractorConfig()
    logger.info("fetch_metadata: %s", url)

    document = fetch_document(url, timeout=config.timeout, user_agent=config.user_agent)
    result = extract(document.html, url=document.final_url, config=config, rules=rules)

    logger.info(
        "fetch_metadata: %s -> %d keys", document.final_url, len(result.to_dict()),
    )
    return result
