"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

PAGE_URL = "https://example.com/blog/extract-structured-content"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def _make_mock_response(
    body: str,
    *,
    final_url: str = PAGE_URL,
    status: int = 200,
    charset: str = "utf-8",
) -> MagicMock:
    """Stand-in for the object returned by ``urllib.request.urlopen``."""
    resp = MagicMock()
    resp.status = status
    resp.reason = "OK"
    resp.geturl.return_value = final_url
    resp.read.return_value = body.encode(charset)
    resp.headers.get.return_value = ""
    resp.headers.get_content_charset.return_value = charset
    resp.__enter__ = lambda s: s
    resp.__exit__ = MagicMock(return_value=False)
    return resp


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def minimal_html() -> str:
    return _read_fixture("minimal.html")


@pytest.fixture
def mock_response():
    """Factory fixture: ``mock_response(body, final_url=..., status=...)``."""
    return _make_mock_response
