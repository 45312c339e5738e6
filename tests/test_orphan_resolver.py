"""
Tests for the Orphan Resolver.

Builds a small site with four hubs and a few under-linked pages, then
checks planning, HTML injection, idempotence across runs and per-hub
failure reporting.
"""

import pytest

from linkgraph.checks import find_orphans
from linkgraph.config import DEFAULT_HUB_FILES
from linkgraph.crawler import SiteCrawler
from linkgraph.orphan_resolver import (
    OrphanResolver,
    ResolverPlan,
    inject_links,
    link_text,
)


# ===================================================================
# Fixtures
# ===================================================================


@pytest.fixture
def orphan_site(site_root, write_page):
    """Index links every hub and one programmatic page; two pages have no inbound links."""
    write_page("index.html", list(DEFAULT_HUB_FILES) + ["programmatic-pages/a.html"])
    for hub in DEFAULT_HUB_FILES:
        write_page(hub, ["index.html"])
    write_page("programmatic-pages/a.html", ["../index.html"])
    write_page("clothing/b.html", ["../index.html"])
    write_page("legal/c.html", ["../index.html"])
    return site_root


def _crawl(root):
    return SiteCrawler(root).crawl()


def _exempt():
    return {"index.html", *DEFAULT_HUB_FILES}


# ===================================================================
# Helper Tests
# ===================================================================


class TestHelpers:

    def test_link_text(self):
        assert link_text("programmatic-pages/eu-42-to-us-shoe-size.html") == "Eu 42 To Us Shoe Size"
        assert link_text("clothing/b.html") == "B"

    def test_inject_before_footer(self):
        doc = "<html><body>\n<main>x</main>\n  <footer>f</footer>\n</body></html>"
        out = inject_links(doc, [("a.html", "A")])
        assert out.index('id="orphan-resolver"') < out.index("<footer>")
        assert out.index("</main>") < out.index('id="orphan-resolver"')
        assert '<li><a href="a.html">A</a></li>' in out

    def test_inject_before_last_main(self):
        doc = "<html><body><main>x</main><main>y</main></body></html>"
        out = inject_links(doc, [("a.html", "A")])
        assert out.index('id="orphan-resolver"') > out.index("y")
        assert out.index('id="orphan-resolver"') < out.rindex("</main>")

    def test_inject_without_markers_appends(self):
        out = inject_links("<p>bare</p>", [("a.html", "A")])
        assert out.startswith("<p>bare</p>\n")
        assert 'href="a.html"' in out

    def test_inject_appends_to_existing_section(self):
        doc = "<main>x</main>\n  <footer>f</footer>\n"
        once = inject_links(doc, [("a.html", "A")])
        twice = inject_links(once, [("b.html", "B")])
        assert twice.count('id="orphan-resolver"') == 1
        assert twice.index('href="a.html"') < twice.index('href="b.html"') < twice.index("</ul>")

    def test_inject_escapes(self):
        out = inject_links("<main></main>", [("a.html?x=1&y=2", "A & B")])
        assert 'href="a.html?x=1&amp;y=2"' in out
        assert ">A &amp; B<" in out

    def test_inject_nothing(self):
        assert inject_links("<main></main>", []) == "<main></main>"


# ===================================================================
# Planning Tests
# ===================================================================


class TestPlan:

    def test_assignments_follow_categories(self, orphan_site):
        plan = OrphanResolver(orphan_site).plan(_crawl(orphan_site))

        assert [o.path for o in plan.orphans] == [
            "clothing/b.html",
            "legal/c.html",
            "programmatic-pages/a.html",
        ]
        assert plan.assignments["shoe-size-pages.html"] == [
            "clothing/b.html",
            "legal/c.html",
            "programmatic-pages/a.html",
        ]
        assert plan.assignments["brand-size-guides.html"] == ["clothing/b.html", "legal/c.html"]
        assert plan.assignments["measurement-tools.html"] == []
        assert plan.planned_links == 5
        assert plan.unmet == {}

    def test_plan_does_not_write(self, orphan_site):
        before = (orphan_site / "shoe-size-pages.html").read_text(encoding="utf-8")
        OrphanResolver(orphan_site).plan(_crawl(orphan_site))
        assert (orphan_site / "shoe-size-pages.html").read_text(encoding="utf-8") == before

    def test_hub_already_linking_is_skipped(self, orphan_site, write_page):
        write_page("shoe-size-pages.html", ["index.html", "clothing/b.html"])
        plan = OrphanResolver(orphan_site).plan(_crawl(orphan_site))
        assert "clothing/b.html" not in plan.assignments["shoe-size-pages.html"]
        assert plan.assignments["brand-size-guides.html"][0] == "clothing/b.html"

    def test_unmet_need_recorded(self, orphan_site):
        resolver = OrphanResolver(orphan_site, min_inbound=4)
        plan = resolver.plan(_crawl(orphan_site))
        assert plan.unmet["clothing/b.html"] == 2


# ===================================================================
# Apply Tests
# ===================================================================


class TestApply:

    def test_orphans_resolved(self, orphan_site):
        result = OrphanResolver(orphan_site).resolve(_crawl(orphan_site))

        assert result.links_added == {
            "shoe-size-pages.html": 3,
            "brand-size-guides.html": 2,
            "measurement-tools.html": 0,
            "shoe-sizing-guides.html": 0,
        }
        assert find_orphans(_crawl(orphan_site), min_inbound=2, exempt=_exempt()) == []

    def test_second_run_adds_nothing(self, orphan_site):
        resolver = OrphanResolver(orphan_site)
        resolver.resolve(_crawl(orphan_site))
        snapshot = {hub: (orphan_site / hub).read_text(encoding="utf-8") for hub in DEFAULT_HUB_FILES}

        second = resolver.resolve(_crawl(orphan_site))

        assert second.total_links_added == 0
        assert all(count == 0 for count in second.links_added.values())
        for hub, text in snapshot.items():
            assert (orphan_site / hub).read_text(encoding="utf-8") == text

    def test_existing_link_not_duplicated(self, orphan_site):
        plan = ResolverPlan(min_inbound=2, assignments={"shoe-size-pages.html": ["index.html"]})
        result = OrphanResolver(orphan_site).apply(plan)
        assert result.links_added["shoe-size-pages.html"] == 0
        assert "orphan-resolver" not in (orphan_site / "shoe-size-pages.html").read_text(encoding="utf-8")

    def test_escaped_href_not_reinjected(self, orphan_site, write_page):
        write_page("clothing/kids&teens.html", ["../index.html"])
        resolver = OrphanResolver(orphan_site)
        resolver.resolve(_crawl(orphan_site))
        hub = (orphan_site / "shoe-size-pages.html").read_text(encoding="utf-8")
        assert 'href="clothing/kids&amp;teens.html"' in hub

        second = resolver.resolve(_crawl(orphan_site))

        assert second.total_links_added == 0
        assert (orphan_site / "shoe-size-pages.html").read_text(encoding="utf-8") == hub

    def test_missing_hub_reported(self, orphan_site):
        (orphan_site / "brand-size-guides.html").unlink()
        result = OrphanResolver(orphan_site).resolve(_crawl(orphan_site))
        assert result.missing_hubs == ["brand-size-guides.html"]
        assert result.links_added["brand-size-guides.html"] == 0
        assert result.links_added["shoe-size-pages.html"] == 3

    def test_write_failure_leaves_hub_untouched(self, orphan_site, monkeypatch):
        def _fail(path, content):
            raise OSError("disk full")

        monkeypatch.setattr("linkgraph.orphan_resolver._write_atomic", _fail)
        before = (orphan_site / "shoe-size-pages.html").read_text(encoding="utf-8")

        result = OrphanResolver(orphan_site).resolve(_crawl(orphan_site))

        assert set(result.failed_hubs) == {"shoe-size-pages.html", "brand-size-guides.html"}
        assert "disk full" in result.failed_hubs["shoe-size-pages.html"]
        assert result.total_links_added == 0
        assert (orphan_site / "shoe-size-pages.html").read_text(encoding="utf-8") == before

    def test_no_temp_files_left(self, orphan_site):
        OrphanResolver(orphan_site).resolve(_crawl(orphan_site))
        assert list(orphan_site.glob("*.tmp")) == []

    def test_manifest(self, orphan_site):
        result = OrphanResolver(orphan_site).resolve(_crawl(orphan_site))
        manifest = result.to_manifest()

        assert manifest["min_inbound"] == 2
        assert manifest["orphan_count"] == 3
        assert manifest["orphans"][0] == {"path": "clothing/b.html", "category": "clothing", "inbound_count": 0}
        assert manifest["total_links_added"] == 5
        assert manifest["failed_hubs"] == {}
        assert "generated_at" in manifest
        assert "Links added:        5" in result.summary()
