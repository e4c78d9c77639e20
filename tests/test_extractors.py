"""Unit tests for extraction modules."""

from __future__ import annotations

import pytest

from pagemeta.config import ExtractorConfig
from pagemeta.document import parse_html
from pagemeta.extractors.jsonld import find_jsonld
from pagemeta.extractors.rules import as_author, as_date, build_rules, extract_fields
from pagemeta.extractors.tags import collect_tags

BASE = "https://example.com/blog/post"


def _fields(html: str, **config) -> dict[str, str]:
    rules = build_rules(ExtractorConfig(**config))
    return extract_fields(parse_html(html), BASE, rules)


def _head(*tags: str) -> str:
    return "<html><head>" + "".join(tags) + "</head><body></body></html>"


# ---------------------------------------------------------------------------
# Field rules on a realistic article
# ---------------------------------------------------------------------------

class TestArticleFields:
    @pytest.fixture
    def fields(self, article_html):
        return _fields(article_html)

    def test_title_from_og(self, fields):
        assert fields["title"] == "How to Extract Structured Content"

    def test_description_from_og(self, fields):
        assert fields["description"] == "Pulling metadata out of web pages, the practical way."

    def test_image_resolved(self, fields):
        assert fields["image"] == "https://example.com/img/cover.png"

    def test_logo_from_jsonld_publisher(self, fields):
        assert fields["logo"] == "https://example.com/logo.png"

    def test_author_from_meta(self, fields):
        assert fields["author"] == "Jane Smith"

    def test_date_parsed_to_iso(self, fields):
        assert fields["date"].startswith("2024-01-15T10:00:00")

    def test_publisher_from_og_site_name(self, fields):
        assert fields["publisher"] == "Tech Blog"

    def test_minimal_page_has_no_fields(self, minimal_html):
        assert _fields(minimal_html) == {}

    def test_empty_html_has_no_fields(self):
        assert _fields("") == {}


# ---------------------------------------------------------------------------
# Priority chains
# ---------------------------------------------------------------------------

class TestTitleChain:
    def test_og_title_beats_title_element(self):
        html = _head('<meta property="og:title" content="A">', "<title>B</title>")
        assert _fields(html)["title"] == "A"

    def test_twitter_title_beats_title_element(self):
        html = _head('<meta name="twitter:title" content="T">', "<title>B</title>")
        assert _fields(html)["title"] == "T"

    def test_title_element(self):
        html = _head("<title>  Plain\n   Title </title>")
        assert _fields(html)["title"] == "Plain Title"

    def test_first_h1_fallback(self):
        html = "<html><body><h1>First</h1><h1>Second</h1></body></html>"
        assert _fields(html)["title"] == "First"

    def test_og_title_under_name_attribute(self):
        html = _head('<meta name="og:title" content="Misplaced">', "<title>B</title>")
        assert _fields(html)["title"] == "Misplaced"

    def test_blank_og_title_falls_through(self):
        html = _head('<meta property="og:title" content="   ">', "<title>B</title>")
        assert _fields(html)["title"] == "B"


class TestDescriptionChain:
    def test_og_beats_meta_description(self):
        html = _head(
            '<meta name="description" content="meta">',
            '<meta property="og:description" content="og">',
        )
        assert _fields(html)["description"] == "og"

    def test_twitter_beats_meta_description(self):
        html = _head(
            '<meta name="description" content="meta">',
            '<meta name="twitter:description" content="tw">',
        )
        assert _fields(html)["description"] == "tw"

    def test_meta_description(self):
        html = _head('<meta name="description" content="meta">')
        assert _fields(html)["description"] == "meta"


class TestImageChain:
    def test_twitter_image_when_no_og(self):
        html = _head('<meta name="twitter:image" content="https://cdn.example.org/t.png">')
        assert _fields(html)["image"] == "https://cdn.example.org/t.png"

    def test_unresolvable_og_image_falls_through(self):
        html = _head(
            '<meta property="og:image" content="javascript:alert(1)">',
            '<meta name="twitter:image" content="/t.png">',
        )
        assert _fields(html)["image"] == "https://example.com/t.png"

    def test_first_large_body_image(self):
        html = (
            "<html><body>"
            '<img src="/icon.png" width="32" height="32">'
            '<img src="/nodims.png">'
            '<img src="data:image/gif;base64,R0lGOD" width="900" height="900">'
            '<img src="/hero.jpg" width="800px" height="450">'
            '<img src="/second.jpg" width="800" height="450">'
            "</body></html>"
        )
        assert _fields(html)["image"] == "https://example.com/hero.jpg"

    def test_min_image_size_is_configurable(self):
        html = '<html><body><img src="/icon.png" width="32" height="32"></body></html>'
        assert "image" not in _fields(html)
        assert _fields(html, min_image_size=32)["image"] == "https://example.com/icon.png"


class TestLogoChain:
    def test_og_logo(self):
        html = _head(
            '<meta property="og:logo" content="/brand.svg">',
            '<link rel="icon" href="/favicon.ico">',
        )
        assert _fields(html)["logo"] == "https://example.com/brand.svg"

    def test_touch_icon_preferred_over_icon(self):
        html = _head(
            '<link rel="icon" href="/favicon.ico">',
            '<link rel="apple-touch-icon" href="/touch.png">',
        )
        assert _fields(html)["logo"] == "https://example.com/touch.png"

    def test_favicon_as_last_resort(self):
        html = _head('<link rel="shortcut icon" href="/favicon.ico">')
        assert _fields(html)["logo"] == "https://example.com/favicon.ico"


class TestAuthorChain:
    def test_jsonld_author_list(self):
        html = _head(
            '<script type="application/ld+json">'
            '{"@type": "NewsArticle", "author": [{"name": "Ada"}, {"name": "Bob"}]}'
            "</script>",
        )
        assert _fields(html)["author"] == "Ada"

    def test_profile_url_rejected_then_byline(self):
        html = (
            "<html><head>"
            '<meta property="article:author" content="https://facebook.com/someone">'
            "</head><body>"
            '<div class="byline">By  John   Doe</div>'
            "</body></html>"
        )
        assert _fields(html)["author"] == "John Doe"

    def test_rel_author_link(self):
        html = '<html><body><a rel="author" href="/u/jo">Jo March</a></body></html>'
        assert _fields(html)["author"] == "Jo March"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("By Jane Smith", "Jane Smith"),
            ("written by: Jane Smith", "Jane Smith"),
            ("Bylines Weekly", "Bylines Weekly"),
            ("https://example.com/authors/jane", None),
            ("x" * 150, None),
        ],
    )
    def test_author_normalization(self, raw, expected):
        assert as_author(raw, BASE) == expected


class TestDateChain:
    def test_article_published_time(self):
        html = _head('<meta property="article:published_time" content="2023-03-02T08:30:00+00:00">')
        assert _fields(html)["date"].startswith("2023-03-02T08:30:00")

    def test_meta_date(self):
        html = _head('<meta name="date" content="2023-05-01">')
        assert _fields(html)["date"].startswith("2023-05-01")

    def test_time_element(self):
        html = '<html><body><time datetime="2022-11-20T12:00:00Z">Nov 20</time></body></html>'
        assert _fields(html)["date"].startswith("2022-11-20")

    def test_unparsable_date_is_absent(self):
        html = _head('<meta name="date" content="not a date at all">')
        assert "date" not in _fields(html)

    def test_epoch_default_rejected(self):
        assert as_date("1970-01-01T00:00:00Z", BASE) is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2024", "2024-01-01T00:00:00+00:00"),
            ("March 2023", "2023-03-01T00:00:00+00:00"),
        ],
    )
    def test_partial_dates_fill_first_month_and_day(self, raw, expected):
        assert as_date(raw, BASE) == expected

    def test_year_only_meta_date(self):
        html = _head('<meta name="date" content="2024">')
        assert _fields(html)["date"] == "2024-01-01T00:00:00+00:00"


class TestPublisherChain:
    def test_meta_publisher(self):
        html = _head('<meta name="publisher" content="Daily Planet">')
        assert _fields(html)["publisher"] == "Daily Planet"

    def test_og_site_name_wins(self):
        html = _head(
            '<meta name="publisher" content="Daily Planet">',
            '<meta property="og:site_name" content="The Planet">',
        )
        assert _fields(html)["publisher"] == "The Planet"


class TestRuleConfiguration:
    def test_subset_of_fields(self, article_html):
        fields = _fields(article_html, fields=("title", "date"))
        assert set(fields) == {"title", "date"}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown metadata fields"):
            ExtractorConfig(fields=("title", "colour"))


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

class TestJsonLd:
    def test_article_node_preferred_in_graph(self):
        html = _head(
            '<script type="application/ld+json">'
            '{"@graph": [{"@type": "WebPage", "name": "Page"},'
            ' {"@type": "Article", "headline": "Story"}]}'
            "</script>",
        )
        assert find_jsonld(parse_html(html))["headline"] == "Story"

    def test_malformed_block_skipped(self):
        html = _head(
            '<script type="application/ld+json">{not json</script>',
            '<script type="application/ld+json">[{"@type": "WebSite", "name": "Site"}]</script>',
        )
        assert find_jsonld(parse_html(html))["name"] == "Site"

    def test_no_jsonld(self):
        assert find_jsonld(parse_html(_head())) == {}


# ---------------------------------------------------------------------------
# Auxiliary tag collector
# ---------------------------------------------------------------------------

class TestCollectTags:
    def test_article_tags(self, article_html):
        tags = collect_tags(parse_html(article_html), "https://example.com/blog/extract-structured-content")
        assert tags["og:type"] == "article"
        assert tags["og:title"] == "How to Extract Structured Content"
        assert tags["twitter:card"] == "summary_large_image"
        assert tags["viewport"] == "width=device-width, initial-scale=1"
        assert tags["canonical"] == "/blog/extract-structured-content"
        assert tags["favicon"] == "https://example.com/favicon.ico"
        assert tags["language"] == "en"
        assert tags["feeds"] == ["https://example.com/feed.xml", "https://example.com/atom.xml"]

    def test_last_duplicate_wins(self):
        html = _head(
            '<meta property="og:title" content="first">',
            '<meta property="og:title" content="second">',
        )
        assert collect_tags(parse_html(html), BASE)["og:title"] == "second"

    def test_empty_content_ignored(self):
        html = _head('<meta name="robots" content="">', '<meta name="theme-color">')
        assert collect_tags(parse_html(html), BASE) == {}

    def test_non_og_property_not_collected(self):
        html = _head('<meta property="article:section" content="Tech">')
        assert "article:section" not in collect_tags(parse_html(html), BASE)

    def test_favicon_priority_ignores_document_order(self):
        html = _head(
            '<link rel="apple-touch-icon" href="/touch.png">',
            '<link rel="shortcut icon" href="/shortcut.ico">',
            '<link rel="icon" href="/icon.png">',
        )
        tags = collect_tags(parse_html(html), "https://example.com/page")
        assert tags["favicon"] == "https://example.com/icon.png"

    def test_shortcut_icon_before_touch_icon(self):
        html = _head(
            '<link rel="apple-touch-icon" href="/touch.png">',
            '<link rel="shortcut icon" href="/shortcut.ico">',
        )
        tags = collect_tags(parse_html(html), "https://example.com/page")
        assert tags["favicon"] == "https://example.com/shortcut.ico"

    def test_language_from_http_equiv(self):
        html = _head('<meta http-equiv="Content-Language" content="de-DE">')
        assert collect_tags(parse_html(html), BASE)["language"] == "de-DE"

    def test_html_lang_beats_http_equiv(self):
        html = (
            '<html lang="fr"><head>'
            '<meta http-equiv="content-language" content="de">'
            "</head></html>"
        )
        assert collect_tags(parse_html(html), BASE)["language"] == "fr"

    def test_language_from_meta_name(self):
        html = _head('<meta name="language" content="es">')
        assert collect_tags(parse_html(html), BASE)["language"] == "es"

    def test_http_equiv_beats_meta_name_language(self):
        html = _head(
            '<meta http-equiv="content-language" content="de">',
            '<meta name="language" content="es">',
        )
        assert collect_tags(parse_html(html), BASE)["language"] == "de"

    def test_html_lang_beats_meta_name_language(self):
        html = '<html lang="en"><head><meta name="language" content="es"></head></html>'
        assert collect_tags(parse_html(html), BASE)["language"] == "en"

    def test_feeds_keep_order_and_duplicates(self):
        html = _head(
            '<link type="application/rss+xml" href="/a.xml">',
            '<link type="application/atom+xml" href="/b.xml">',
            '<link type="application/rss+xml" href="/a.xml">',
        )
        tags = collect_tags(parse_html(html), "https://example.com/page")
        assert tags["feeds"] == [
            "https://example.com/a.xml",
            "https://example.com/b.xml",
            "https://example.com/a.xml",
        ]

    def test_unresolvable_feed_dropped(self):
        html = _head(
            '<link type="application/rss+xml" href="javascript:void(0)">',
            '<link type="application/rss+xml" href="/ok.xml">',
        )
        tags = collect_tags(parse_html(html), "https://example.com/page")
        assert tags["feeds"] == ["https://example.com/ok.xml"]

    def test_meta_cannot_supply_link_keys(self):
        html = _head('<meta name="favicon" content="/raw.ico">')
        assert "favicon" not in collect_tags(parse_html(html), BASE)

    def test_no_tags(self, minimal_html):
        assert collect_tags(parse_html(minimal_html), BASE) == {}
