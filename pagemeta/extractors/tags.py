"""Auxiliary tag collection.

A single sweep over the document that records meta and link signals
verbatim, without interpreting them:

    og:*        <meta property="og:..." content>       keyed by property
    twitter:*   <meta name="twitter:..." content>      keyed by name
    <name>      every other <meta name content>        keyed by name
    canonical   <link rel="canonical" href>            raw href
    favicon     icon → shortcut icon → apple-touch-icon (resolved)
    language    <html lang> → <meta http-equiv="content-language">
                → <meta name="language">
    feeds       RSS/Atom <link> hrefs, document order (resolved)

When the same meta key appears more than once the last one in document
order wins.  A ``<meta name>`` equal to one of the derived keys above is not
recorded under its own name.  Names equal to a rule field (``title``,
``image``, ``author`` ...) are recorded, and the result assembler uses them
as the last fallback for that field.
"""

from __future__ import annotations

import logging

from pagemeta.document import DocumentTree
from pagemeta.extractors.urlnorm import resolve_url

logger = logging.getLogger(__name__)

AuxiliaryTags = dict[str, "str | list[str]"]

_FAVICON_RELS: tuple[str, ...] = ("icon", "shortcut icon", "apple-touch-icon")

_FEED_SELECTOR = (
    'link[type="application/rss+xml" i][href], '
    'link[type="application/atom+xml" i][href]'
)

# Keys the collector derives itself; a <meta name> never supplies them directly
_DERIVED_KEYS: frozenset[str] = frozenset({"canonical", "favicon", "language", "feeds"})


def _collect_meta(doc: DocumentTree, tags: AuxiliaryTags) -> None:
    for meta in doc.select("meta"):
        content = (meta.attr("content") or "").strip()
        if not content:
            continue
        prop = (meta.attr("property") or "").strip()
        if prop.startswith("og:"):
            tags[prop] = content
        # twitter:* and every other name share the same keying rule
        name = (meta.attr("name") or "").strip()
        if name and name not in _DERIVED_KEYS:
            tags[name] = content


def _extract_canonical(doc: DocumentTree) -> str | None:
    link = doc.select_one('link[rel="canonical" i][href]')
    if link is None:
        return None
    return (link.attr("href") or "").strip() or None


def _extract_favicon(doc: DocumentTree, base_url: str) -> str | None:
    for rel in _FAVICON_RELS:
        link = doc.select_one(f'link[rel="{rel}" i][href]')
        if link is None:
            continue
        href = link.attr("href")
        if href and href.strip():
            resolved = resolve_url(href, base_url)
            if resolved is None:
                logger.debug("Dropping unresolvable favicon %r", href)
            return resolved
    return None


def _extract_language(doc: DocumentTree) -> str | None:
    html_tag = doc.select_one("html[lang]")
    if html_tag is not None:
        lang = (html_tag.attr("lang") or "").strip()
        if lang:
            return lang

    for selector in (
        'meta[http-equiv="content-language" i][content]',
        'meta[name="language" i][content]',
    ):
        for meta in doc.select(selector):
            content = (meta.attr("content") or "").strip()
            if content:
                return content
    return None


def _extract_feeds(doc: DocumentTree, base_url: str) -> list[str]:
    feeds: list[str] = []
    for link in doc.select(_FEED_SELECTOR):
        href = link.attr("href")
        resolved = resolve_url(href, base_url)
        if resolved is None:
            logger.debug("Dropping unresolvable feed link %r", href)
            continue
        feeds.append(resolved)
    return feeds


def collect_tags(doc: DocumentTree, base_url: str) -> AuxiliaryTags:
    """Collect every auxiliary tag of *doc* into a flat mapping.

    URL-valued entries (``favicon`` and ``feeds``) are resolved against
    *base_url*; ``canonical`` is kept as the raw href.  Keys whose value
    could not be found are omitted.
    """
    tags: AuxiliaryTags = {}
    _collect_meta(doc, tags)

    canonical = _extract_canonical(doc)
    if canonical:
        tags["canonical"] = canonical

    favicon = _extract_favicon(doc, base_url)
    if favicon:
        tags["favicon"] = favicon

    language = _extract_language(doc)
    if language:
        tags["language"] = language

    feeds = _extract_feeds(doc, base_url)
    if feeds:
        tags["feeds"] = feeds

    return tags
