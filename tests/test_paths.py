"""
Tests for site path resolution.

Generation and auditing both depend on these rules, so the cases here pin
down fragments, external schemes, root-relative hrefs, the implicit
``.html`` suffix and escaping the site root.
"""

import pytest

from linkgraph.paths import is_external, relativize, resolve_href


# ===================================================================
# resolve_href Tests
# ===================================================================


class TestResolveHref:
    """Resolution relative to the linking page."""

    def test_parent_directory(self):
        assert resolve_href("../foo", "programmatic-pages/a.html") == "foo.html"

    def test_sibling_with_fragment(self):
        assert resolve_href("b.html#frag", "programmatic-pages/a.html") == "programmatic-pages/b.html"

    def test_root_relative(self):
        assert resolve_href("/bar.html", "programmatic-pages/a.html") == "bar.html"

    def test_directory_index(self):
        assert resolve_href("./", "index.html") == "index.html"
        assert resolve_href("/", "programmatic-pages/a.html") == "index.html"

    def test_fragment_only(self):
        assert resolve_href("#x", "a.html") is None

    @pytest.mark.parametrize(
        "href",
        [
            "https://example.com/a.html",
            "HTTP://EXAMPLE.COM",
            "mailto:hello@example.com",
            "tel:123",
            "//cdn.example.com/x.js",
        ],
    )
    def test_external_never_an_edge(self, href):
        assert is_external(href)
        assert resolve_href(href, "index.html") is None

    def test_escaping_root(self):
        assert resolve_href("../../x.html", "programmatic-pages/a.html") is None
        assert resolve_href("../index.html", "index.html") is None

    def test_non_page_keeps_extension(self):
        assert resolve_href("img/logo.png", "index.html") == "img/logo.png"


# ===================================================================
# relativize Tests
# ===================================================================


class TestRelativize:
    """Hrefs emitted into generated pages."""

    def test_up_one_level(self):
        assert relativize("programmatic-pages/a.html", "index.html") == "../index.html"

    def test_sibling(self):
        assert relativize("programmatic-pages/a.html", "programmatic-pages/b.html") == "b.html"

    def test_from_root(self):
        assert relativize("index.html", "programmatic-pages/b.html") == "programmatic-pages/b.html"

    @pytest.mark.parametrize(
        "source, target",
        [
            ("programmatic-pages/a.html", "index.html"),
            ("programmatic-pages/a.html", "programmatic-pages/b.html"),
            ("index.html", "programmatic-pages/b.html"),
            ("clothing/tops/a.html", "brands/nike.html"),
        ],
    )
    def test_crawler_resolves_what_generator_emits(self, source, target):
        assert resolve_href(relativize(source, target), source) == target
