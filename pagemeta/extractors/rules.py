"""Rule-based field extraction.

Each canonical field has a :class:`FieldRule`: an ordered tuple of pure
strategies ``(DocumentTree) -> str | None``.  Strategies are tried in order
and the first candidate that survives normalization wins.

Priority chains (highest → lowest):
    title       og:title → twitter:title → <title> → <h1> → JSON-LD headline
    description og:description → twitter:description → meta description → JSON-LD
    image       og:image → twitter:image → JSON-LD image → first large <img>
    logo        og:logo → itemprop logo → JSON-LD publisher.logo → touch icon → icon
    author      meta author → JSON-LD author → article:author → byline
    date        JSON-LD datePublished → article:published_time → meta date → <time>
    publisher   og:site_name → meta publisher → JSON-LD publisher → application-name
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import dateparser

from pagemeta.document import DocumentTree
from pagemeta.extractors.jsonld import (
    jsonld_author,
    jsonld_image,
    jsonld_logo,
    jsonld_publisher,
    jsonld_text,
)
from pagemeta.extractors.urlnorm import resolve_url

if TYPE_CHECKING:
    from pagemeta.config import ExtractorConfig

logger = logging.getLogger(__name__)

Strategy = Callable[[DocumentTree], "str | None"]
Normalizer = Callable[[str, str], "str | None"]


# ---------------------------------------------------------------------------
# Normalizers: (candidate, base_url) -> value | None
# ---------------------------------------------------------------------------

_WS_RE = re.compile(r"\s+")
_BYLINE_PREFIX_RE = re.compile(r"^(?:(?:written|posted)\s+)?by\b[:\s]*", re.IGNORECASE)
_MAX_AUTHOR_LENGTH = 100


def as_text(value: str, base_url: str) -> str | None:
    return _WS_RE.sub(" ", value).strip() or None


def as_url(value: str, base_url: str) -> str | None:
    return resolve_url(value, base_url)


def as_author(value: str, base_url: str) -> str | None:
    name = _BYLINE_PREFIX_RE.sub("", _WS_RE.sub(" ", value).strip()).strip(" ,;:|")
    if not name or len(name) > _MAX_AUTHOR_LENGTH:
        return None
    # Profile links (article:author is often a URL) are not names
    if "://" in name or name.startswith("www."):
        return None
    return name


def as_date(value: str, base_url: str) -> str | None:
    """Parse a date string to ISO 8601.

    Returns None on failure or when the year falls outside 1990-2099
    (catches epoch defaults like 1970-01-01 and far-future typos).  A
    missing month or day is taken as the first, so "2024" → 2024-01-01.
    """
    raw = _WS_RE.sub(" ", value).strip()
    if not raw:
        return None
    try:
        parsed = dateparser.parse(
            raw,
            settings={
                "TIMEZONE": "UTC",
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_MONTH_OF_YEAR": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
                "PARSERS": ["timestamp", "custom-formats", "absolute-time"],
            },
        )
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", raw, exc)
        return None
    if parsed is None or not (1990 <= parsed.year <= 2099):
        return None
    return parsed.isoformat()


# ---------------------------------------------------------------------------
# Strategy factories
# ---------------------------------------------------------------------------

def meta_property(prop: str) -> Strategy:
    """``<meta property=prop>`` (also the common ``name=prop`` misspelling)."""
    selector = f'meta[property="{prop}" i], meta[name="{prop}" i]'

    def strategy(doc: DocumentTree) -> str | None:
        for el in doc.select(selector):
            content = el.attr("content")
            if content and content.strip():
                return content
        return None

    strategy.__name__ = f"meta_property[{prop}]"
    return strategy


def meta_name(name: str) -> Strategy:
    selector = f'meta[name="{name}" i]'

    def strategy(doc: DocumentTree) -> str | None:
        for el in doc.select(selector):
            content = el.attr("content")
            if content and content.strip():
                return content
        return None

    strategy.__name__ = f"meta_name[{name}]"
    return strategy


def meta_itemprop(prop: str) -> Strategy:
    selector = f'meta[itemprop="{prop}" i]'

    def strategy(doc: DocumentTree) -> str | None:
        el = doc.select_one(selector)
        return el.attr("content") if el else None

    strategy.__name__ = f"meta_itemprop[{prop}]"
    return strategy


def element_text(selector: str) -> Strategy:
    """Text of the first element matching *selector*."""

    def strategy(doc: DocumentTree) -> str | None:
        el = doc.select_one(selector)
        return el.text() if el else None

    strategy.__name__ = f"text[{selector}]"
    return strategy


def first_text(*selectors: str) -> Strategy:
    """First non-blank element text across *selectors*, in selector order."""

    def strategy(doc: DocumentTree) -> str | None:
        for selector in selectors:
            for el in doc.select(selector):
                text = el.text().strip() or (el.attr("content") or "").strip()
                if text:
                    return text
        return None

    strategy.__name__ = "first_text"
    return strategy


def link_href(rel: str) -> Strategy:
    selector = f'link[rel="{rel}" i][href]'

    def strategy(doc: DocumentTree) -> str | None:
        el = doc.select_one(selector)
        return el.attr("href") if el else None

    strategy.__name__ = f"link_href[{rel}]"
    return strategy


def element_attr(selector: str, attr: str) -> Strategy:
    def strategy(doc: DocumentTree) -> str | None:
        el = doc.select_one(selector)
        return el.attr(attr) if el else None

    strategy.__name__ = f"attr[{selector}@{attr}]"
    return strategy


_DIMENSION_RE = re.compile(r"^\s*(\d+)(?:\.\d+)?\s*(?:px)?\s*$", re.IGNORECASE)


def _dimension(value: str | None) -> int | None:
    if not value:
        return None
    m = _DIMENSION_RE.match(value)
    return int(m.group(1)) if m else None


def large_image(min_size: int) -> Strategy:
    """First ``<img>`` in the body whose declared width and height are both
    at least *min_size* pixels.  Images without declared dimensions are
    skipped: icons, spacers and tracking pixels rarely declare a large size.
    """

    def strategy(doc: DocumentTree) -> str | None:
        for img in doc.select("body img"):
            src = (img.attr("src") or img.attr("data-src") or "").strip()
            if not src or src.lower().startswith("data:"):
                continue
            width = _dimension(img.attr("width"))
            height = _dimension(img.attr("height"))
            if width is None or height is None:
                continue
            if width >= min_size and height >= min_size:
                return src
        return None

    strategy.__name__ = f"large_image[{min_size}]"
    return strategy


# ---------------------------------------------------------------------------
# Field rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldRule:
    """Prioritized extraction chain for one canonical field.

    Attributes:
        name:       Canonical field name in the result.
        strategies: Candidate producers, highest priority first.
        normalize:  Turns a raw candidate into the final value, or None to
                    reject it and fall through to the next strategy.
        claims:     Raw tag keys carrying the same meaning.  They are the
                    fallback when every strategy fails and are never passed
                    through alongside the field.
    """

    name: str
    strategies: tuple[Strategy, ...]
    normalize: Normalizer = as_text
    claims: tuple[str, ...] = ()

    def extract(self, doc: DocumentTree, base_url: str) -> str | None:
        for strategy in self.strategies:
            candidate = strategy(doc)
            if not candidate:
                continue
            value = self.normalize(candidate, base_url)
            if value:
                logger.debug("%s: matched by %s", self.name, strategy.__name__)
                return value
        return None


RULE_NAMES: tuple[str, ...] = (
    "title",
    "description",
    "image",
    "logo",
    "author",
    "date",
    "publisher",
)


def _rule_factories(config: ExtractorConfig) -> dict[str, Callable[[], FieldRule]]:
    return {
        "title": lambda: FieldRule(
            name="title",
            strategies=(
                meta_property("og:title"),
                meta_property("twitter:title"),
                element_text("head title"),
                element_text("title"),
                element_text("h1"),
                lambda doc: jsonld_text(doc, "headline", "name"),
            ),
            claims=("og:title", "twitter:title"),
        ),
        "description": lambda: FieldRule(
            name="description",
            strategies=(
                meta_property("og:description"),
                meta_property("twitter:description"),
                meta_name("description"),
                lambda doc: jsonld_text(doc, "description"),
            ),
            claims=("og:description", "twitter:description"),
        ),
        "image": lambda: FieldRule(
            name="image",
            strategies=(
                meta_property("og:image"),
                meta_property("og:image:url"),
                meta_property("og:image:secure_url"),
                meta_property("twitter:image"),
                meta_property("twitter:image:src"),
                jsonld_image,
                large_image(config.min_image_size),
            ),
            normalize=as_url,
            claims=(
                "og:image",
                "og:image:url",
                "og:image:secure_url",
                "twitter:image",
                "twitter:image:src",
            ),
        ),
        "logo": lambda: FieldRule(
            name="logo",
            strategies=(
                meta_property("og:logo"),
                meta_itemprop("logo"),
                jsonld_logo,
                link_href("apple-touch-icon"),
                link_href("icon"),
                link_href("shortcut icon"),
            ),
            normalize=as_url,
            claims=("og:logo",),
        ),
        "author": lambda: FieldRule(
            name="author",
            strategies=(
                meta_name("author"),
                jsonld_author,
                meta_property("article:author"),
                first_text(
                    '[itemprop="author"] [itemprop="name"]',
                    '[itemprop="author"]',
                    'a[rel~="author"]',
                    ".byline .author",
                    ".byline",
                    ".author-name",
                    ".author",
                ),
            ),
            normalize=as_author,
            claims=("article:author",),
        ),
        "date": lambda: FieldRule(
            name="date",
            strategies=(
                lambda doc: jsonld_text(doc, "datePublished", "dateCreated"),
                meta_property("article:published_time"),
                meta_name("date"),
                meta_name("pubdate"),
                meta_name("publishdate"),
                meta_name("dc.date"),
                meta_name("dcterms.created"),
                meta_itemprop("datePublished"),
                element_attr("time[datetime]", "datetime"),
                element_text("time"),
            ),
            normalize=as_date,
            claims=(
                "article:published_time",
                "pubdate",
                "publishdate",
                "dc.date",
                "dcterms.created",
            ),
        ),
        "publisher": lambda: FieldRule(
            name="publisher",
            strategies=(
                meta_property("og:site_name"),
                meta_name("publisher"),
                jsonld_publisher,
                meta_name("application-name"),
            ),
            claims=("og:site_name", "application-name"),
        ),
    }


def build_rules(config: ExtractorConfig) -> tuple[FieldRule, ...]:
    """Assemble the rule chain for every field enabled in *config*.

    Called once per pipeline; the returned tuple is immutable and safe to
    share across threads.
    """
    factories = _rule_factories(config)
    unknown = [name for name in config.fields if name not in factories]
    if unknown:
        raise ValueError(f"Unknown metadata fields: {', '.join(unknown)}")
    return tuple(factories[name]() for name in config.fields)


def extract_fields(
    doc: DocumentTree,
    base_url: str,
    rules: tuple[FieldRule, ...],
) -> dict[str, str]:
    """Run every rule over *doc*; absent fields are omitted."""
    fields: dict[str, str] = {}
    for rule in rules:
        value = rule.extract(doc, base_url)
        if value:
            fields[rule.name] = value
    return fields
