"""
Page Materializer — GlobalSize Link Graph
=========================================

Writes one HTML file per route with every link section embedded verbatim,
the ``programmatic-index.html`` listing, and minimal hub pages for any
fixed anchor target that does not exist yet. Markup is deliberately plain;
the crawler only cares about ``<a href>`` values and section markers.

Usage:
    from linkgraph.materializer import PageMaterializer
    from linkgraph.routes import default_catalog

    materializer = PageMaterializer(Path("site"), default_catalog())
    written = materializer.materialize_all()

CLI:
    python -m linkgraph generate --site-root site
"""

from __future__ import annotations

import html
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from linkgraph.config import PROGRAMMATIC_INDEX, ROOT_PAGE, get_logger
from linkgraph.link_builders import (
    AUTHORITY_LINKS,
    CRAWL_DISCOVERY_LINKS,
    DISCOVERY_GRID_LINKS,
    INTERNAL_LINKS,
    MAIN_CONVERTER_LINKS,
    RELATED_SIZE_GRID,
    Candidate,
    Link,
    POOLS,
    anchor_links,
)
from linkgraph.paths import relativize
from linkgraph.routes import Route, RouteCatalog, RouteType, route_path

logger = get_logger("materializer")

# Hub pages that every generated page links to, plus the resolver's hubs
HUB_PAGES: Tuple[Candidate, ...] = tuple(
    dict.fromkeys(
        MAIN_CONVERTER_LINKS
        + AUTHORITY_LINKS
        + (("brand-size-guides.html", "Brand Size Guides"),)
    )
)

_GROUP_TITLES: Dict[RouteType, str] = {
    RouteType.CATEGORY: "Shoe Size Converters by Gender",
    RouteType.REGION: "Region Converters",
    RouteType.SIZE_PAIR: "Size Conversions",
}


def _esc(text: str) -> str:
    return html.escape(text, quote=True)


def _link_items(links: Iterable[Link], indent: str = "      ") -> List[str]:
    return [f'{indent}<li><a href="{_esc(l.href)}">{_esc(l.text)}</a></li>' for l in links]


def _section(css_class: str, heading: str, links: List[Link], tag: str = "section") -> List[str]:
    if not links:
        return []
    return [
        f'  <{tag} class="{css_class}">',
        f"    <h2>{_esc(heading)}</h2>",
        "    <ul>",
        *_link_items(links),
        "    </ul>",
        f"  </{tag}>",
    ]


def _document(title: str, body: List[str]) -> str:
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="utf-8">',
        f"  <title>{_esc(title)}</title>",
        "</head>",
        "<body>",
        *body,
        "</body>",
        "</html>",
        "",
    ]
    return "\n".join(lines)


class PageMaterializer:
    """Render and write route pages under a site root.

    Parameters
    ----------
    site_root:
        Directory the site is written into; created on demand.
    catalog:
        Read-only route catalog shared with the link builders.
    """

    def __init__(self, site_root: Path, catalog: RouteCatalog):
        self.site_root = Path(site_root)
        self.catalog = catalog

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, route: Route) -> str:
        own = route_path(route)
        breadcrumb = [
            Link(relativize(own, ROOT_PAGE), "Home", ROOT_PAGE),
            Link(relativize(own, PROGRAMMATIC_INDEX), "All Size Conversions", PROGRAMMATIC_INDEX),
        ]
        region_block = [
            Link(relativize(own, target), text, target)
            for target, text in POOLS["region_converters"](route, self.catalog)
            if target != own
        ]
        crumbs = " &rsaquo; ".join(
            f'<a href="{_esc(l.href)}">{_esc(l.text)}</a>' for l in breadcrumb
        )
        body = [
            f'  <nav class="breadcrumb">{crumbs} &rsaquo; {_esc(route.label)}</nav>',
            "  <main>",
            f"  <h1>{_esc(route.label)}</h1>",
            *_section("internal-links", "Related Converters", INTERNAL_LINKS.build(route, self.catalog)),
            *_section(
                "related-size-grid",
                "Explore Nearby Size Conversions",
                RELATED_SIZE_GRID.build(route, self.catalog),
            ),
            *_section("region-converters-block", "Region Converters", region_block),
            *_section("authority-links-block", "Authority Links", anchor_links(route, AUTHORITY_LINKS)),
            *_section(
                "crawl-discovery",
                "More Size Conversions",
                CRAWL_DISCOVERY_LINKS.build(route, self.catalog),
                tag="nav",
            ),
            *_section("discovery-grid", "Browse Conversions", DISCOVERY_GRID_LINKS.build(route, self.catalog)),
            "  </main>",
            "  <footer>",
            f'    <a href="{_esc(relativize(own, ROOT_PAGE))}">GlobalSize</a>',
            "  </footer>",
        ]
        return _document(route.label, body)

    def render_index(self) -> str:
        body = ["  <main>", "  <h1>All Size Conversions</h1>"]
        for route_type in (RouteType.CATEGORY, RouteType.REGION, RouteType.SIZE_PAIR):
            links = [
                Link(route_path(r), r.label, route_path(r))
                for r in self.catalog
                if r.type is route_type
            ]
            body.extend(_section(f"index-{route_type.value}", _GROUP_TITLES[route_type], links))
        body.extend(["  </main>", "  <footer>", '    <a href="index.html">GlobalSize</a>', "  </footer>"])
        return _document("All Size Conversions", body)

    def render_hub(self, path: str, title: str) -> str:
        links = [
            Link(relativize(path, target), text, target)
            for target, text in HUB_PAGES
            if target != path
        ]
        body = [
            "  <main>",
            f"  <h1>{_esc(title)}</h1>",
            *_section("hub-links", "Explore", links),
            "  </main>",
            "  <footer>",
            "  </footer>",
        ]
        return _document(title, body)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write(self, rel_path: str, content: str) -> Path:
        path = self.site_root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write(self, route: Route) -> Path:
        return self._write(route_path(route), self.render(route))

    def write_index(self) -> Path:
        return self._write(PROGRAMMATIC_INDEX, self.render_index())

    def ensure_hub_pages(self, hubs: Optional[Iterable[Candidate]] = None) -> List[Path]:
        """Create stub pages for hub targets that are missing on disk."""
        created: List[Path] = []
        for rel_path, title in hubs if hubs is not None else HUB_PAGES:
            if rel_path == PROGRAMMATIC_INDEX or (self.site_root / rel_path).exists():
                continue
            created.append(self._write(rel_path, self.render_hub(rel_path, title)))
        if created:
            logger.info("Created %d hub page(s)", len(created))
        return created

    def materialize_all(self, with_hubs: bool = True) -> List[Path]:
        """Write every route page, the programmatic index and missing hubs."""
        written = [self.write(route) for route in self.catalog]
        written.append(self.write_index())
        if with_hubs:
            written.extend(self.ensure_hub_pages())
        logger.info("Materialized %d route page(s) into %s", len(self.catalog), self.site_root)
        return written

