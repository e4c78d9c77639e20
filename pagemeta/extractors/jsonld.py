"""Schema.org JSON-LD helpers used by the field extractors."""

from __future__ import annotations

import json
import logging
from typing import Any

from pagemeta.document import DocumentTree

logger = logging.getLogger(__name__)

_ARTICLE_TYPES: frozenset[str] = frozenset(
    {
        "article",
        "blogging",
        "blogposting",
        "newsarticle",
        "techarticle",
        "scholarlyarticle",
        "liveblogposting",
        "reportage",
        "report",
        "analysisnewsarticle",
        "opinionnewsarticle",
    },
)

_PAGE_TYPES: frozenset[str] = frozenset(
    {"webpage", "website", "product", "organization", "videoobject", "event"},
)


def _node_types(node: dict) -> set[str]:
    raw = node.get("@type", "")
    if isinstance(raw, list):
        return {str(t).lower() for t in raw}
    return {str(raw).lower()}


def _iter_nodes(raw: Any) -> list[dict]:
    """Flatten top-level arrays and ``@graph`` containers into a node list."""
    if isinstance(raw, list):
        items = raw
    elif isinstance(raw, dict):
        graph = raw.get("@graph")
        items = graph if isinstance(graph, list) else [raw]
    else:
        return []
    return [n for n in items if isinstance(n, dict)]


def find_jsonld(doc: DocumentTree) -> dict:
    """Return the most relevant JSON-LD node of the page, or ``{}``.

    Article-like nodes win over page-level nodes; among nodes of the same
    rank the first one in document order is kept.
    """
    best: dict = {}
    best_rank = 0

    for script in doc.select('script[type="application/ld+json" i]'):
        try:
            raw = json.loads(script.text())
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            logger.debug("Skipping malformed JSON-LD block: %s", exc)
            continue

        for node in _iter_nodes(raw):
            types = _node_types(node)
            if types & _ARTICLE_TYPES:
                rank = 2
            elif types & _PAGE_TYPES:
                rank = 1
            else:
                continue
            if rank > best_rank:
                best, best_rank = node, rank

    return best


def _name_of(value: Any) -> str | None:
    if isinstance(value, dict):
        name = value.get("name")
        return str(name) if name else None
    if isinstance(value, list) and value:
        return _name_of(value[0])
    if isinstance(value, str):
        return value
    return None


def _url_of(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return str(url) if url else None
    if isinstance(value, list) and value:
        return _url_of(value[0])
    return None


def jsonld_text(doc: DocumentTree, *keys: str) -> str | None:
    """Return the first string-valued *keys* entry of the page node."""
    node = find_jsonld(doc)
    for key in keys:
        value = node.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def jsonld_author(doc: DocumentTree) -> str | None:
    return _name_of(find_jsonld(doc).get("author"))


def jsonld_publisher(doc: DocumentTree) -> str | None:
    return _name_of(find_jsonld(doc).get("publisher"))


def jsonld_image(doc: DocumentTree) -> str | None:
    return _url_of(find_jsonld(doc).get("image"))


def jsonld_logo(doc: DocumentTree) -> str | None:
    publisher = find_jsonld(doc).get("publisher")
    if isinstance(publisher, list) and publisher:
        publisher = publisher[0]
    if isinstance(publisher, dict):
        return _url_of(publisher.get("logo"))
    return None
