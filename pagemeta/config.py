"""Pipeline configuration and YAML profiles.

Example profile::

    default:
      timeout: 8
      min_image_size: 300
    domains:
      example.com:
        user_agent: "Mozilla/5.0 (compatible; ExampleBot/1.0)"
      news.example.com:
        fields: [title, description, image, date]

Domain keys match the host itself and any of its subdomains; the longest
matching key wins and is layered over ``default``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pagemeta.extractors.rules import RULE_NAMES
from pagemeta.extractors.urlnorm import extract_domain

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class ExtractorConfig:
    """Immutable settings for one metadata pipeline.

    Attributes:
        timeout:        Network timeout for the single fetch, in seconds.
        user_agent:     ``User-Agent`` header sent with the fetch.
        min_image_size: Minimum declared width and height (px) for an
                        in-page ``<img>`` to be used as the page image.
        fields:         Canonical rule fields to extract, in order.
        collect_tags:   Whether to sweep raw meta/link tags into the result.
    """

    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    min_image_size: int = 200
    fields: tuple[str, ...] = RULE_NAMES
    collect_tags: bool = True

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.min_image_size < 0:
            raise ValueError("min_image_size must be >= 0")
        if not self.user_agent.strip():
            raise ValueError("user_agent must not be empty")
        # Accept lists from YAML, store a tuple
        object.__setattr__(self, "fields", tuple(self.fields))
        unknown = [f for f in self.fields if f not in RULE_NAMES]
        if unknown:
            raise ValueError(f"Unknown metadata fields: {', '.join(unknown)}")

    def replace(self, **changes: Any) -> ExtractorConfig:
        """Return a copy with *changes* applied (``None`` values are ignored)."""
        return dataclasses.replace(
            self, **{k: v for k, v in changes.items() if v is not None},
        )


_FIELD_NAMES: frozenset[str] = frozenset(f.name for f in dataclasses.fields(ExtractorConfig))


def _check_keys(section: str, cfg: dict[str, Any]) -> None:
    unknown = sorted(set(cfg) - _FIELD_NAMES)
    if unknown:
        raise ValueError(f"Unknown config keys in {section}: {', '.join(unknown)}")


def load_config(path: str | Path, url: str = "") -> ExtractorConfig:
    """Load a YAML profile and return the :class:`ExtractorConfig` for *url*.

    Raises:
        ValueError: On unknown keys or invalid values.
        OSError:    When *path* cannot be read.
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config profile {path} must be a mapping")
    default = data.get("default") or {}
    domains = data.get("domains") or {}

    merged: dict[str, Any] = {}
    if isinstance(default, dict):
        _check_keys("default", default)
        merged.update(default)

    host = extract_domain(url) if url else ""
    best_key = ""
    best_cfg: dict[str, Any] = {}
    if host and isinstance(domains, dict):
        for key, cfg in domains.items():
            if not isinstance(key, str) or not isinstance(cfg, dict):
                continue
            key_lower = key.lower()
            if (host == key_lower or host.endswith("." + key_lower)) and (
                len(key_lower) > len(best_key)
            ):
                best_key = key_lower
                best_cfg = cfg

    if best_cfg:
        _check_keys(f"domains.{best_key}", best_cfg)
        merged.update(best_cfg)

    return ExtractorConfig(**merged)
