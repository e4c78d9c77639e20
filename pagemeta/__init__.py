"""pagemeta - extract structured metadata from any web page.

Quick single-URL usage::

    from pagemeta import fetch_metadata

    result = fetch_metadata("https://example.com/blog/some-post")
    print(result.title)
    print(result.image)
    print(result.to_dict())

Reusable pipeline with custom settings::

    from pagemeta import ExtractorConfig, MetadataParser

    parser = MetadataParser(ExtractorConfig(timeout=5))
    result = parser.parse(html, url="https://example.com/")
"""

from pagemeta.config import ExtractorConfig, load_config
from pagemeta.errors import (
    ErrorKind,
    ExtractionError,
    FetchError,
    InvalidInputError,
    MetadataError,
)
from pagemeta.items import ExtractionRequest, ExtractionResult
from pagemeta.parser import MetadataParser
from pagemeta.query import extract, fetch_document, fetch_metadata

__version__ = "0.1.0"
__all__ = [
    "ErrorKind",
    "ExtractionError",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractorConfig",
    "FetchError",
    "InvalidInputError",
    "MetadataError",
    "MetadataParser",
    "extract",
    "fetch_document",
    "fetch_metadata",
    "load_config",
]
