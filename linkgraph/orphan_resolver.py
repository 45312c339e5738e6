"""
Orphan Resolver — GlobalSize Link Graph
=======================================

Finds pages with too few inbound links and patches hub pages so every
page reaches the minimum. Hubs are chosen by the orphan's category
(clothing, measurement, brand, authority, legal, programmatic).

The resolver works in two phases. ``plan`` decides every hub -> page link
from the crawled graph without touching disk. ``apply`` then reads, patches
and atomically rewrites each hub exactly once; a hub that fails to write
is left untouched and reported in the manifest. Running it twice on an
unchanged site adds nothing the second time.

Usage:
    from linkgraph.crawler import SiteCrawler
    from linkgraph.orphan_resolver import OrphanResolver

    resolver = OrphanResolver(Path("site"))
    plan = resolver.plan(SiteCrawler(Path("site")).crawl())
    result = resolver.apply(plan)
    print(result.summary())

CLI:
    python -m linkgraph fix-orphans --site-root site
"""

from __future__ import annotations

import html
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from linkgraph.checks import DEFAULT_CATEGORY, OrphanRecord, find_orphans
from linkgraph.config import DEFAULT_CATEGORY_HUBS, DEFAULT_HUB_FILES, ROOT_PAGE, get_logger
from linkgraph.crawler import SiteGraph
from linkgraph.html_links import extract_hrefs
from linkgraph.paths import relativize, resolve_href
from linkgraph.reports import now_iso

logger = get_logger("orphan_resolver")

DEFAULT_MIN_INBOUND = 2
SECTION_ID = "orphan-resolver"

_SECTION_RE = re.compile(
    r'<section[^>]*id=["\']' + SECTION_ID + r'["\'][^>]*>.*?(</ul>)',
    re.IGNORECASE | re.DOTALL,
)
_FOOTER_RE = re.compile(r"^[ \t]*<footer\b", re.IGNORECASE | re.MULTILINE)


def link_text(path: str) -> str:
    """``programmatic-pages/eu-42-to-us.html`` -> ``Eu 42 To Us``."""
    stem = posixpath.basename(path)
    if stem.endswith(".html"):
        stem = stem[: -len(".html")]
    return " ".join(word[:1].upper() + word[1:] for word in stem.split("-") if word)


def _items(links: Sequence[Tuple[str, str]]) -> List[str]:
    return [
        f'      <li><a href="{html.escape(href, quote=True)}">{html.escape(text)}</a></li>'
        for href, text in links
    ]


def inject_links(document: str, links: Sequence[Tuple[str, str]]) -> str:
    """Add ``(href, text)`` links to the resolver section of *document*.

    Appends to an existing resolver section; otherwise inserts a new one
    before the footer, else before the last ``</main>``, else before
    ``</body>``, else at the end.
    """
    if not links:
        return document
    items = "\n".join(_items(links))

    existing = _SECTION_RE.search(document)
    if existing:
        at = existing.start(1)
        return document[:at] + items.lstrip() + "\n    " + document[at:]

    block = "\n".join(
        [
            f'  <section class="content-section" id="{SECTION_ID}">',
            "    <h2>More pages</h2>",
            '    <ul class="hub-links">',
            items,
            "    </ul>",
            "  </section>",
            "",
        ]
    )
    footer = _FOOTER_RE.search(document)
    if footer:
        at = footer.start()
    else:
        lowered = document.lower()
        at = lowered.rfind("</main>")
        if at < 0:
            at = lowered.rfind("</body>")
        if at < 0:
            return document + ("" if document.endswith("\n") else "\n") + block
    return document[:at] + block + document[at:]


def _write_atomic(path: Path, content: str) -> None:
    tmp = path.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            fh.write(content)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ResolverPlan:
    """Hub -> ordered orphan paths to link, computed before any write."""

    min_inbound: int
    orphans: List[OrphanRecord] = field(default_factory=list)
    assignments: Dict[str, List[str]] = field(default_factory=dict)
    unmet: Dict[str, int] = field(default_factory=dict)  # orphan -> links still short

    @property
    def planned_links(self) -> int:
        return sum(len(paths) for paths in self.assignments.values())


@dataclass
class ResolverResult:
    min_inbound: int
    orphans: List[OrphanRecord] = field(default_factory=list)
    links_added: Dict[str, int] = field(default_factory=dict)
    failed_hubs: Dict[str, str] = field(default_factory=dict)
    missing_hubs: List[str] = field(default_factory=list)
    unmet: Dict[str, int] = field(default_factory=dict)
    generated_at: str = field(default_factory=now_iso)

    @property
    def total_links_added(self) -> int:
        return sum(self.links_added.values())

    def to_manifest(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "min_inbound": self.min_inbound,
            "orphan_count": len(self.orphans),
            "orphans": [o.to_dict() for o in self.orphans],
            "links_added": dict(self.links_added),
            "total_links_added": self.total_links_added,
            "failed_hubs": dict(self.failed_hubs),
            "missing_hubs": list(self.missing_hubs),
            "unmet": dict(self.unmet),
        }

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "=== Orphan Resolver ===",
            f"  Min inbound:        {self.min_inbound}",
            f"  Orphans found:      {len(self.orphans)}",
            f"  Links added:        {self.total_links_added}",
        ]
        for hub, count in self.links_added.items():
            lines.append(f"    {hub}: +{count}")
        for hub, error in self.failed_hubs.items():
            lines.append(f"  FAILED {hub}: {error}")
        if self.missing_hubs:
            lines.append(f"  Missing hubs:       {', '.join(self.missing_hubs)}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# OrphanResolver
# ---------------------------------------------------------------------------


class OrphanResolver:
    """Patch hub pages until every page has ``min_inbound`` inbound links.

    Parameters
    ----------
    site_root:
        Site root the hub files live under.
    hub_files:
        Hubs that may be patched; they and *root_page* are never orphans.
    category_hubs:
        Category -> hubs to try, in order.
    min_inbound:
        Required number of distinct inbound links.
    """

    def __init__(
        self,
        site_root: Path,
        hub_files: Sequence[str] = DEFAULT_HUB_FILES,
        category_hubs: Optional[Mapping[str, Sequence[str]]] = None,
        min_inbound: int = DEFAULT_MIN_INBOUND,
        root_page: str = ROOT_PAGE,
    ):
        self.site_root = Path(site_root)
        self.hub_files = tuple(hub_files)
        self.category_hubs = {
            k: list(v) for k, v in (category_hubs or DEFAULT_CATEGORY_HUBS).items()
        }
        self.min_inbound = min_inbound
        self.root_page = root_page

    def _hubs_for(self, category: str) -> List[str]:
        return self.category_hubs.get(category) or self.category_hubs.get(DEFAULT_CATEGORY) or list(self.hub_files)

    def plan(self, graph: SiteGraph) -> ResolverPlan:
        """Decide every link to add; does not touch disk."""
        exempt = {self.root_page, *self.hub_files}
        orphans = find_orphans(graph, min_inbound=self.min_inbound, exempt=exempt)
        plan = ResolverPlan(
            min_inbound=self.min_inbound,
            orphans=orphans,
            assignments={hub: [] for hub in self.hub_files},
        )
        for orphan in orphans:
            need = self.min_inbound - orphan.inbound_count
            for hub in self._hubs_for(orphan.category):
                if need <= 0:
                    break
                queued = plan.assignments.setdefault(hub, [])
                if orphan.path in queued or orphan.path in graph.edges.get(hub, ()):
                    continue
                queued.append(orphan.path)
                need -= 1
            if need > 0:
                plan.unmet[orphan.path] = need

        logger.info(
            "Planned %d link(s) for %d orphan(s) (min inbound %d)",
            plan.planned_links,
            len(orphans),
            self.min_inbound,
        )
        return plan

    def _existing_targets(self, hub: str, document: str) -> Tuple[Set[str], Set[str]]:
        hrefs = {href.strip() for href in extract_hrefs(document)}
        resolved = {t for t in (resolve_href(h, hub) for h in hrefs) if t is not None}
        return hrefs, resolved

    def apply(self, plan: ResolverPlan) -> ResolverResult:
        """Patch each planned hub once, atomically."""
        result = ResolverResult(
            min_inbound=plan.min_inbound,
            orphans=list(plan.orphans),
            unmet=dict(plan.unmet),
        )
        for hub, targets in plan.assignments.items():
            result.links_added[hub] = 0
            if not targets:
                continue
            path = self.site_root / hub
            if not path.is_file():
                logger.warning("Hub %s not found, skipping %d link(s)", hub, len(targets))
                result.missing_hubs.append(hub)
                continue
            try:
                document = path.read_text(encoding="utf-8")
                hrefs, resolved = self._existing_targets(hub, document)
                links = [
                    (relativize(hub, target), link_text(target))
                    for target in targets
                    if relativize(hub, target) not in hrefs and target not in resolved
                ]
                if not links:
                    continue
                _write_atomic(path, inject_links(document, links))
            except (OSError, UnicodeDecodeError) as exc:
                logger.error("Failed to patch hub %s: %s", hub, exc)
                result.failed_hubs[hub] = str(exc)
                continue
            result.links_added[hub] = len(links)
            logger.info("Added %d link(s) to %s", len(links), hub)
        return result

    def resolve(self, graph: SiteGraph) -> ResolverResult:
        return self.apply(self.plan(graph))
