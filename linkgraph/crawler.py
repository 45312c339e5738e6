"""
Site Crawler — GlobalSize Link Graph
====================================

Walks the generated site on disk and rebuilds the internal link graph from
nothing but the HTML: the set of pages and, per page, the set of
site-root-relative targets it links to. Targets are recorded whether or
not they exist, so broken links stay visible to the checkers.

Every audit shares this one crawler and its path resolution, so the
prebuild gate, the structure audit and the orphan resolver can never
disagree about what a link points at.

Usage:
    from linkgraph.crawler import SiteCrawler

    graph = SiteCrawler(Path("site")).crawl()
    print(graph.summary())
    inbound = graph.inbound()

CLI:
    python -m linkgraph crawl --site-root site
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

from linkgraph.config import DEFAULT_EXCLUDE_DIRS, DEFAULT_EXCLUDE_PATHS, get_logger
from linkgraph.html_links import HrefExtractor, extract_hrefs
from linkgraph.paths import resolve_href

logger = get_logger("crawler")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class SiteGraph:
    """Snapshot of the site's internal links.

    ``edges`` maps every crawled page to the targets it links to; targets
    need not be in ``pages``. ``unreadable`` pages exist on disk but could
    not be read, so they have no outbound edges.
    """

    pages: Set[str] = field(default_factory=set)
    edges: Dict[str, Set[str]] = field(default_factory=dict)
    unreadable: List[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.edges.values())

    def out_degree(self, page: str) -> int:
        return len(self.edges.get(page, ()))

    def inbound(self) -> Dict[str, Set[str]]:
        """Page -> set of distinct pages linking to it (existing pages only)."""
        result: Dict[str, Set[str]] = {page: set() for page in self.pages}
        for source, targets in self.edges.items():
            for target in targets:
                if target in result and target != source:
                    result[target].add(source)
        return result

    def missing_targets(self) -> Set[str]:
        return {t for targets in self.edges.values() for t in targets if t not in self.pages}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": sorted(self.pages),
            "edges": {page: sorted(targets) for page, targets in sorted(self.edges.items())},
            "unreadable": sorted(self.unreadable),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SiteGraph:
        return cls(
            pages=set(data.get("pages", [])),
            edges={page: set(targets) for page, targets in data.get("edges", {}).items()},
            unreadable=list(data.get("unreadable", [])),
        )

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "=== Site Graph ===",
            f"  Pages:              {self.page_count}",
            f"  Internal edges:     {self.edge_count}",
            f"  Missing targets:    {len(self.missing_targets())}",
            f"  Unreadable pages:   {len(self.unreadable)}",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# SiteCrawler
# ---------------------------------------------------------------------------


class SiteCrawler:
    """Read every HTML page under a site root into a :class:`SiteGraph`.

    Parameters
    ----------
    root:
        Site root directory.
    exclude_dirs:
        Directory names skipped at any depth, in addition to hidden ones.
    exclude_paths:
        Substrings of the relative path that exclude a page.
    extractor:
        ``html -> [href, ...]``; defaults to the regex extractor.
    """

    def __init__(
        self,
        root: Path,
        exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
        exclude_paths: Sequence[str] = DEFAULT_EXCLUDE_PATHS,
        extractor: Optional[HrefExtractor] = None,
    ):
        self.root = Path(root)
        self.exclude_dirs = set(exclude_dirs)
        self.exclude_paths = tuple(exclude_paths)
        self.extractor: HrefExtractor = extractor or extract_hrefs

    def iter_pages(self) -> List[str]:
        """Sorted site-root-relative paths of every crawlable ``.html`` file."""
        pages: List[str] = []
        if not self.root.is_dir():
            logger.warning("Site root %s does not exist", self.root)
            return pages
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(
                d for d in dirnames if not d.startswith(".") and d not in self.exclude_dirs
            )
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            for name in filenames:
                if not name.endswith(".html"):
                    continue
                rel = name if rel_dir == "." else f"{rel_dir}/{name}"
                if any(fragment in rel for fragment in self.exclude_paths):
                    continue
                pages.append(rel)
        return sorted(pages)

    def page_links(self, rel_path: str, html: str) -> Set[str]:
        """Resolved internal targets of one page."""
        targets: Set[str] = set()
        for href in self.extractor(html):
            target = resolve_href(href, rel_path)
            if target is not None:
                targets.add(target)
        return targets

    def crawl(self) -> SiteGraph:
        graph = SiteGraph()
        for rel_path in self.iter_pages():
            graph.pages.add(rel_path)
            try:
                html = (self.root / rel_path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable page %s: %s", rel_path, exc)
                graph.unreadable.append(rel_path)
                continue
            graph.edges[rel_path] = self.page_links(rel_path, html)

        logger.info(
            "Crawled %d page(s), %d internal edge(s) under %s",
            graph.page_count,
            graph.edge_count,
            self.root,
        )
        return graph
