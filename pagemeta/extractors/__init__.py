"""Extraction sub-package: field rules, auxiliary tags and URL handling."""

from .jsonld import find_jsonld
from .rules import FieldRule, build_rules, extract_fields
from .tags import collect_tags
from .urlnorm import extract_domain, is_valid_url, resolve_url, to_request_uri

__all__ = [
    "FieldRule",
    "build_rules",
    "collect_tags",
    "extract_domain",
    "extract_fields",
    "find_jsonld",
    "is_valid_url",
    "resolve_url",
    "to_request_uri",
]
