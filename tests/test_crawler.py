"""
Tests for the site crawler and the href extractors.
"""

from linkgraph.crawler import SiteCrawler, SiteGraph
from linkgraph.html_links import extract_hrefs, parse_hrefs, required_sections


# ===================================================================
# Extractor Tests
# ===================================================================


class TestExtractors:

    def test_regex_extractor(self):
        html = '<p><a class="x" href="a.html">A</a> <A HREF=\'b.html#c\'>B</A></p>'
        assert extract_hrefs(html) == ["a.html", "b.html#c"]

    def test_parser_handles_unquoted(self):
        html = "<a class=x href=foo.html>Foo</a><link href=style.css>"
        assert extract_hrefs(html) == []
        assert parse_hrefs(html) == ["foo.html"]

    def test_entities_decoded(self):
        html = '<a href="kids&amp;teens.html">K</a><a href="men&#x27;s.html">M</a>'
        assert extract_hrefs(html) == ["kids&teens.html", "men's.html"]
        assert parse_hrefs(html) == extract_hrefs(html)

    def test_escaped_href_crawls_to_existing_page(self, site_root, write_page):
        write_page("kids&teens.html")
        (site_root / "index.html").write_text('<a href="kids&amp;teens.html">K</a>', encoding="utf-8")

        graph = SiteCrawler(site_root).crawl()

        assert graph.edges["index.html"] == {"kids&teens.html"}
        assert graph.missing_targets() == set()

    def test_required_sections(self):
        html = (
            '<section class="related-size-grid"></section>'
            '<section class="region-converters-block"></section>'
            "<h2>Authority Links</h2>"
        )
        assert required_sections(html) == {
            "related_size_grid": True,
            "region_converters": True,
            "authority_links": True,
        }

    def test_required_sections_from_links(self):
        html = '<a href="eu-to-us-shoe-size.html"></a><a href="brand-size-guides.html"></a><a href="measurement-tools.html"></a>'
        sections = required_sections(html)
        assert sections["region_converters"] is True
        assert sections["authority_links"] is True
        assert sections["related_size_grid"] is False


# ===================================================================
# Crawl Tests
# ===================================================================


class TestSiteCrawler:
    """Walking the site and building edges."""

    def test_edges_and_pages(self, site_root, write_page):
        write_page(
            "index.html",
            ["about.html", "https://example.com", "mailto:x@example.com", "#top", "programmatic-pages/a.html"],
        )
        write_page("about.html", ["/index.html"])
        write_page("programmatic-pages/a.html", ["../index.html", "b.html", "../missing.html"])

        graph = SiteCrawler(site_root).crawl()

        assert graph.pages == {"index.html", "about.html", "programmatic-pages/a.html"}
        assert graph.edges["index.html"] == {"about.html", "programmatic-pages/a.html"}
        assert graph.edges["programmatic-pages/a.html"] == {
            "index.html",
            "programmatic-pages/b.html",
            "missing.html",
        }
        assert graph.missing_targets() == {"programmatic-pages/b.html", "missing.html"}
        assert graph.inbound()["index.html"] == {"about.html", "programmatic-pages/a.html"}

    def test_excluded_and_hidden_directories(self, site_root, write_page):
        write_page("index.html")
        write_page("build/report.html")
        write_page("node_modules/pkg/readme.html")
        write_page(".cache/page.html")
        write_page("programmatic/templates/size.html")
        write_page("guides/fit.html")

        assert SiteCrawler(site_root).iter_pages() == ["guides/fit.html", "index.html"]

    def test_excluded_path_fragments(self, site_root, write_page):
        write_page("programmatic/templates/size.html")
        write_page("programmatic/landing.html")

        crawler = SiteCrawler(site_root, exclude_dirs=())
        assert crawler.iter_pages() == ["programmatic/landing.html"]

    def test_unreadable_page_is_recorded(self, site_root, write_page):
        write_page("index.html", ["bad.html"])
        (site_root / "bad.html").write_bytes(b"\xff\xfe\x00 not utf-8")

        graph = SiteCrawler(site_root).crawl()

        assert graph.unreadable == ["bad.html"]
        assert "bad.html" in graph.pages
        assert "bad.html" not in graph.edges
        assert graph.inbound()["bad.html"] == {"index.html"}

    def test_self_links_do_not_count_inbound(self, site_root, write_page):
        write_page("index.html", ["a.html"])
        write_page("a.html", ["a.html"])

        graph = SiteCrawler(site_root).crawl()
        assert graph.inbound()["a.html"] == {"index.html"}

    def test_custom_extractor(self, site_root):
        (site_root / "index.html").write_text("<a href=a.html>A</a>", encoding="utf-8")

        assert SiteCrawler(site_root).crawl().edges["index.html"] == set()
        assert SiteCrawler(site_root, extractor=parse_hrefs).crawl().edges["index.html"] == {"a.html"}

    def test_missing_root(self, tmp_path):
        graph = SiteCrawler(tmp_path / "nope").crawl()
        assert graph.pages == set()


# ===================================================================
# SiteGraph Tests
# ===================================================================


class TestSiteGraph:

    def test_round_trip(self):
        graph = SiteGraph(pages={"index.html", "a.html"}, edges={"index.html": {"a.html", "x.html"}})
        restored = SiteGraph.from_dict(graph.to_dict())
        assert restored.pages == graph.pages
        assert restored.edges == graph.edges

    def test_counts_and_summary(self):
        graph = SiteGraph(pages={"index.html", "a.html"}, edges={"index.html": {"a.html", "x.html"}, "a.html": set()})
        assert graph.page_count == 2
        assert graph.edge_count == 2
        assert graph.out_degree("index.html") == 2
        assert graph.out_degree("missing.html") == 0
        assert "Missing targets:    1" in graph.summary()
