"""Queryable document tree over parsed HTML.

Extractors only see the small :class:`DocumentTree` / :class:`Element`
surface (``select``, ``attr``, ``text``), so the parsing backend can be
swapped without touching extraction logic.  The default backend is
BeautifulSoup with the lxml parser.

Usage::

    from pagemeta.document import parse_html

    doc = parse_html("<html><head><title>Hi</title></head></html>")
    doc.select_one("title").text()   # "Hi"
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol definitions
# ---------------------------------------------------------------------------

@runtime_checkable
class Element(Protocol):
    """A single element of a parsed document."""

    @property
    def name(self) -> str:
        """Lowercased tag name."""
        ...

    def attr(self, name: str) -> str | None:
        """Return the attribute value, or None when the attribute is missing."""
        ...

    def text(self) -> str:
        """Return the concatenated text content of the element."""
        ...

    def select(self, selector: str) -> list[Element]:
        """Return descendants matching the CSS *selector* in document order."""
        ...


@runtime_checkable
class DocumentTree(Protocol):
    """A parsed document supporting CSS-selector queries."""

    def select(self, selector: str) -> list[Element]:
        """Return all elements matching *selector* in document order."""
        ...

    def select_one(self, selector: str) -> Element | None:
        """Return the first element matching *selector*, or None."""
        ...


# ---------------------------------------------------------------------------
# BeautifulSoup backend
# ---------------------------------------------------------------------------

def _safe_str(val: Any) -> str | None:
    """Convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return None
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


class SoupElement:
    """:class:`Element` backed by a BeautifulSoup ``Tag``."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    @property
    def name(self) -> str:
        return (self._tag.name or "").lower()

    def attr(self, name: str) -> str | None:
        return _safe_str(self._tag.get(name))

    def text(self) -> str:
        return self._tag.get_text(separator=" ")

    def select(self, selector: str) -> list[Element]:
        return [SoupElement(t) for t in self._tag.select(selector) if isinstance(t, Tag)]

    def __repr__(self) -> str:
        return f"SoupElement(<{self.name}>)"


class SoupDocument:
    """:class:`DocumentTree` backed by a ``BeautifulSoup`` object."""

    __slots__ = ("_soup",)

    def __init__(self, soup: BeautifulSoup) -> None:
        self._soup = soup

    def select(self, selector: str) -> list[Element]:
        return [SoupElement(t) for t in self._soup.select(selector) if isinstance(t, Tag)]

    def select_one(self, selector: str) -> Element | None:
        tag = self._soup.select_one(selector)
        return SoupElement(tag) if isinstance(tag, Tag) else None


def parse_html(html: str) -> DocumentTree:
    """Parse *html* into a :class:`DocumentTree`.

    lxml recovers from malformed markup, so a broken page yields a sparse
    tree rather than an exception.
    """
    soup = BeautifulSoup(html or "", "lxml")
    return SoupDocument(soup)
