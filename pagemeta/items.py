"""Pydantic request/response schemas for metadata extraction."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Canonical result fields, in output order
CANONICAL_FIELDS: tuple[str, ...] = (
    "url",
    "title",
    "description",
    "image",
    "logo",
    "author",
    "date",
    "publisher",
    "canonical",
    "favicon",
    "language",
    "feeds",
)

TIMESTAMP_KEY = "extractedAt"


class ExtractionRequest(BaseModel):
    """Inbound request: the page to describe."""

    url: str = ""

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v


class ExtractionResult(BaseModel):
    """Everything machine-readable about one page.

    Canonical fields are typed attributes; raw Open Graph, Twitter Card and
    generic meta tags that no canonical field claimed are kept as extra keys
    under their original name (``result.model_extra["og:type"]``).
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    # Identity
    url: str
    canonical: str | None = None

    # Descriptive
    title: str | None = None
    description: str | None = None
    author: str | None = None
    date: str | None = None
    publisher: str | None = None
    language: str | None = None

    # Absolute URLs
    image: str | None = None
    logo: str | None = None
    favicon: str | None = None
    feeds: tuple[str, ...] | None = None

    # Provenance
    extracted_at: str = Field(alias=TIMESTAMP_KEY)

    @field_validator("feeds", mode="before")
    @classmethod
    def empty_feeds_absent(cls, v: Any) -> Any:
        return v or None

    @property
    def raw_tags(self) -> dict[str, Any]:
        """Auxiliary tags passed through verbatim."""
        return dict(self.model_extra or {})

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping, absent fields omitted.

        Keys are ordered: ``url``, the canonical fields, raw tags, then
        ``extractedAt``.
        """
        dumped = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        timestamp = dumped.pop(TIMESTAMP_KEY)
        ordered = {k: dumped.pop(k) for k in CANONICAL_FIELDS if k in dumped}
        ordered.update(dumped)
        ordered[TIMESTAMP_KEY] = timestamp
        return ordered
