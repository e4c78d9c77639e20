"""pagemeta.parser - high-level MetadataParser class.

Bundles one immutable :class:`~pagemeta.config.ExtractorConfig` with the
rule chain built from it, so the chain is assembled once and reused for
every request.

Usage::

    from pagemeta import MetadataParser

    parser = MetadataParser()
    result = parser.fetch("https://example.com/blog/post")

    # Custom configuration
    from pagemeta.config import ExtractorConfig
    parser = MetadataParser(ExtractorConfig(timeout=5, min_image_size=300))

    # Parse pre-fetched HTML (no network)
    result = parser.parse("<html><head><title>Hi</title></head></html>",
                          url="https://example.com/")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagemeta.config import ExtractorConfig
from pagemeta.extractors.rules import build_rules
from pagemeta.query import extract as _extract
from pagemeta.query import fetch_metadata as _fetch_metadata

if TYPE_CHECKING:
    from pagemeta.extractors.rules import FieldRule
    from pagemeta.items import ExtractionResult


class MetadataParser:
    """Reusable metadata pipeline.

    Holds no per-request state; a single instance may serve concurrent
    requests from several threads.

    Args:
        config: Pipeline configuration.  Defaults to ``ExtractorConfig()``.
    """

    def __init__(self, config: ExtractorConfig | None = None) -> None:
        self._config = config or ExtractorConfig()
        self._rules: tuple[FieldRule, ...] = build_rules(self._config)

    @property
    def config(self) -> ExtractorConfig:
        return self._config

    @property
    def rules(self) -> tuple[FieldRule, ...]:
        return self._rules

    def fetch(self, url: str) -> ExtractionResult:
        """Fetch *url* and extract its metadata.

        Raises:
            :class:`~pagemeta.errors.MetadataError` subclasses, see
            :func:`pagemeta.query.fetch_metadata`.
        """
        return _fetch_metadata(url, config=self._config, rules=self._rules)

    def parse(self, html: str, url: str) -> ExtractionResult:
        """Extract metadata from pre-fetched HTML without any network call.

        Args:
            html: Raw HTML string.
            url:  Final URL of the page, used to resolve relative links.
        """
        return _extract(html, url=url, config=self._config, rules=self._rules)
