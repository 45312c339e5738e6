"""
Invariant Checkers — GlobalSize Link Graph
==========================================

Pure functions over a :class:`~linkgraph.crawler.SiteGraph` that turn the
crawled link graph into findings: broken links, orphans, under-linked
pages, crawl depth and reachability, hub coverage, missing generated pages
and the per-page section audit for programmatic pages.

``structure_report`` rolls the findings into itemised pass/fail criteria
and a single ``readiness`` flag; ``prebuild_gate`` is the one check that
can block a build.

Usage:
    from linkgraph.checks import prebuild_gate, structure_report
    from linkgraph.crawler import SiteCrawler

    graph = SiteCrawler(Path("site")).crawl()
    gate = prebuild_gate(graph, threshold=10)
    report = structure_report(graph)
    print(report.summary())
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from linkgraph.config import (
    DEFAULT_KNOWN_HUBS,
    PROGRAMMATIC_DIR,
    ROOT_PAGE,
    AuditThresholds,
    get_logger,
)
from linkgraph.crawler import SiteGraph
from linkgraph.html_links import required_sections
from linkgraph.reports import bounded

logger = get_logger("checks")

GATE_SAMPLE_SIZE = 20

# Path prefix -> page category
CATEGORY_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("clothing/", "clothing"),
    ("measurement/", "measurement"),
    ("brands/", "brand"),
    ("legal/", "legal"),
    ("programmatic-pages/", "programmatic"),
    ("semantic/", "authority"),
)
DEFAULT_CATEGORY = "programmatic"

# Directories whose pages are generated, for the missing-page report
TRACKED_PREFIXES: Tuple[str, ...] = (
    "programmatic-pages/",
    "measurement/",
    "converters/",
    "semantic/",
)

_REGION_PAIR_RE = re.compile(r"^(eu|us|uk|cm|japan|china)-to-(eu|us|uk|japan|china)-shoe-size$")
_LETTER_PAIR_RE = re.compile(r"^[a-z]+-to-[a-z]+-shoe-size$")


def page_category(path: str) -> str:
    for prefix, category in CATEGORY_PREFIXES:
        if path.startswith(prefix):
            return category
    return DEFAULT_CATEGORY


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class OrphanRecord:
    path: str
    category: str
    inbound_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> OrphanRecord:
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class GateResult:
    """Outcome of the prebuild missing-target gate."""

    passed: bool
    threshold: int
    missing_count: int
    missing_targets: List[str] = field(default_factory=list)
    sample: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        if self.missing_count == 0:
            return "Link validation OK (0 missing targets)"
        if self.passed:
            return (
                f"Link validation: {self.missing_count} missing target(s), "
                f"below threshold of {self.threshold}. Build allowed."
            )
        lines = [
            "BUILD BLOCKED: missing programmatic pages detected",
            f"  Missing targets: {self.missing_count} (threshold {self.threshold})",
        ]
        lines.extend(f"    - {target}" for target in self.sample)
        hidden = self.missing_count - len(self.sample)
        if hidden > 0:
            lines.append(f"    ... and {hidden} more")
        return "\n".join(lines)


@dataclass
class Reachability:
    root: str
    max_depth: int = 0
    visited: int = 0
    unreachable: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Criterion:
    required: str
    actual: int
    passed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"required": self.required, "actual": self.actual, "pass": self.passed}


@dataclass
class StructureReport:
    """Site-wide crawl-integrity report."""

    total_pages: int = 0
    total_internal_links: int = 0
    avg_internal_links: float = 0.0
    broken_links: List[Tuple[str, str]] = field(default_factory=list)
    broken_link_count: int = 0
    orphans: List[OrphanRecord] = field(default_factory=list)
    under_linked: List[Tuple[str, int]] = field(default_factory=list)
    under_linked_count: int = 0
    crawl_depth: int = 0
    unreachable: List[str] = field(default_factory=list)
    missing_hubs: List[str] = field(default_factory=list)
    pages_not_linked_from_hubs: List[str] = field(default_factory=list)
    unreadable: List[str] = field(default_factory=list)
    criteria: Dict[str, Criterion] = field(default_factory=dict)

    @property
    def readiness(self) -> bool:
        return all(c.passed for c in self.criteria.values())

    def to_dict(self, sample_limit: int = 100, broken_sample_limit: int = 200) -> Dict[str, Any]:
        return {
            "total_pages": self.total_pages,
            "total_internal_links": self.total_internal_links,
            "avg_internal_links": self.avg_internal_links,
            "broken_link_count": self.broken_link_count,
            "broken_links": [
                {"from": src, "to": dst} for src, dst in bounded(self.broken_links, broken_sample_limit)
            ],
            "orphan_count": len(self.orphans),
            "orphan_pages": [o.to_dict() for o in bounded(self.orphans, sample_limit)],
            "pages_under_min_links_count": self.under_linked_count,
            "pages_under_min_links": [
                {"path": path, "internal_links": count}
                for path, count in bounded(self.under_linked, sample_limit)
            ],
            "crawl_depth_estimate": self.crawl_depth,
            "unreachable_from_index": len(self.unreachable),
            "unreachable_pages": bounded(self.unreachable, sample_limit),
            "missing_hubs": self.missing_hubs,
            "pages_not_linked_from_hubs_count": len(self.pages_not_linked_from_hubs),
            "pages_not_linked_from_hubs": bounded(self.pages_not_linked_from_hubs, sample_limit),
            "unreadable_count": len(self.unreadable),
            "unreadable_pages": bounded(self.unreadable, sample_limit),
            "criteria": {name: c.to_dict() for name, c in self.criteria.items()},
            "readiness": self.readiness,
        }

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "=== Structure Report ===",
            f"  Total pages:           {self.total_pages}",
            f"  Avg internal links:    {self.avg_internal_links:.1f}",
            f"  Broken links:          {self.broken_link_count}",
            f"  Orphan pages:          {len(self.orphans)}",
            f"  Under-linked pages:    {self.under_linked_count}",
            f"  Crawl depth:           {self.crawl_depth}",
            f"  Unreachable pages:     {len(self.unreachable)}",
            f"  Missing hubs:          {len(self.missing_hubs)}",
        ]
        for name, c in self.criteria.items():
            mark = "PASS" if c.passed else "FAIL"
            lines.append(f"  [{mark}] {name}: {c.actual} (required {c.required})")
        lines.append(f"  Readiness:             {'READY' if self.readiness else 'NOT READY'}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Broken links & the prebuild gate
# ---------------------------------------------------------------------------


def find_broken_links(graph: SiteGraph) -> List[Tuple[str, str]]:
    """Sorted ``(source, target)`` pairs whose target is not a page."""
    return sorted(
        (source, target)
        for source, targets in graph.edges.items()
        for target in targets
        if target not in graph.pages
    )


def prebuild_gate(
    graph: SiteGraph,
    threshold: int = 10,
    sample_size: int = GATE_SAMPLE_SIZE,
) -> GateResult:
    """Fail when the number of distinct missing targets reaches *threshold*."""
    missing = sorted(graph.missing_targets())
    result = GateResult(
        passed=len(missing) < threshold,
        threshold=threshold,
        missing_count=len(missing),
        missing_targets=missing,
        sample=missing[:sample_size],
    )
    if not result.passed:
        logger.error("Prebuild gate failed: %d missing target(s)", result.missing_count)
    elif missing:
        logger.warning("%d missing target(s), below threshold %d", len(missing), threshold)
    return result


# ---------------------------------------------------------------------------
# Orphans, out-degree, reachability
# ---------------------------------------------------------------------------


def find_orphans(
    graph: SiteGraph,
    min_inbound: int = 2,
    exempt: Iterable[str] = (ROOT_PAGE,),
) -> List[OrphanRecord]:
    """Pages with fewer than *min_inbound* distinct linking pages."""
    skip = set(exempt)
    inbound = graph.inbound()
    return [
        OrphanRecord(path=page, category=page_category(page), inbound_count=len(inbound[page]))
        for page in sorted(graph.pages)
        if page not in skip and len(inbound[page]) < min_inbound
    ]


def find_under_linked(
    graph: SiteGraph,
    min_links: int = 10,
    pages: Optional[Iterable[str]] = None,
) -> List[Tuple[str, int]]:
    """``(page, out_degree)`` for readable pages linking to fewer than *min_links* targets."""
    candidates = sorted(graph.edges) if pages is None else sorted(set(pages) & set(graph.edges))
    return [
        (page, graph.out_degree(page))
        for page in candidates
        if graph.out_degree(page) < min_links
    ]


def crawl_depth(graph: SiteGraph, root: str = ROOT_PAGE) -> Reachability:
    """Breadth-first walk from *root* over existing pages."""
    result = Reachability(root=root)
    if root not in graph.pages:
        result.unreachable = sorted(graph.pages)
        return result

    depth: Dict[str, int] = {root: 0}
    queue = deque([root])
    while queue:
        page = queue.popleft()
        for target in sorted(graph.edges.get(page, ())):
            if target in graph.pages and target not in depth:
                depth[target] = depth[page] + 1
                queue.append(target)

    result.max_depth = max(depth.values())
    result.visited = len(depth)
    result.unreachable = sorted(graph.pages - set(depth))
    return result


# ---------------------------------------------------------------------------
# Hub coverage
# ---------------------------------------------------------------------------


def missing_hubs(graph: SiteGraph, known_hubs: Sequence[str] = DEFAULT_KNOWN_HUBS) -> List[str]:
    return [hub for hub in known_hubs if hub not in graph.pages]


def pages_not_linked_from_hubs(
    graph: SiteGraph,
    known_hubs: Sequence[str] = DEFAULT_KNOWN_HUBS,
) -> List[str]:
    """Non-hub pages that no known hub links to."""
    hubs = set(known_hubs)
    inbound = graph.inbound()
    return [
        page
        for page in sorted(graph.pages)
        if page not in hubs and not (inbound[page] & hubs)
    ]


# ---------------------------------------------------------------------------
# Missing generated pages
# ---------------------------------------------------------------------------


def classify_missing(path: str) -> str:
    """Bucket a missing generated page by the generator that should own it."""
    if path.startswith("measurement/"):
        return "measurement_converters"
    if path.startswith("semantic/"):
        return "semantic_converters"
    if path.startswith("converters/"):
        return "region_converters"
    if path.startswith("programmatic-pages/"):
        slug = path[len("programmatic-pages/"):]
        if slug.endswith(".html"):
            slug = slug[: -len(".html")]
        if slug.endswith("-kids") or slug.startswith("kids-"):
            return "kids_converters"
        if slug.endswith("-women") or slug.endswith("-men"):
            return "gender_converters"
        if _REGION_PAIR_RE.match(slug) or _LETTER_PAIR_RE.match(slug):
            return "region_converters"
    return "other"


def missing_pages_report(
    graph: SiteGraph,
    tracked_prefixes: Sequence[str] = TRACKED_PREFIXES,
) -> Dict[str, Any]:
    """Missing targets inside generated directories, grouped by type."""
    referrers: Dict[str, Set[str]] = {}
    for source, targets in graph.edges.items():
        for target in targets:
            if target not in graph.pages and target.startswith(tuple(tracked_prefixes)):
                referrers.setdefault(target, set()).add(source)

    by_type: Dict[str, int] = {}
    for target in referrers:
        kind = classify_missing(target)
        by_type[kind] = by_type.get(kind, 0) + 1

    generated = [p for p in graph.pages if p.startswith(tuple(tracked_prefixes))]
    return {
        "total_generated_pages": len(generated),
        "missing_count": len(referrers),
        "missing_by_type": dict(sorted(by_type.items())),
        "missing_pages": sorted(referrers),
        "referrers": {target: sorted(sources) for target, sources in sorted(referrers.items())},
    }


# ---------------------------------------------------------------------------
# Programmatic page section audit
# ---------------------------------------------------------------------------


def internal_link_audit(
    graph: SiteGraph,
    site_root: Path,
    scope: str = PROGRAMMATIC_DIR,
    min_links: int = 15,
    max_links: int = 25,
    sample_limit: int = 100,
) -> Dict[str, Any]:
    """Out-degree window and required sections for pages under *scope*."""
    prefix = scope.rstrip("/") + "/"
    rows: List[Dict[str, Any]] = []
    for page in sorted(p for p in graph.edges if p.startswith(prefix)):
        try:
            html = (Path(site_root) / page).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping %s in section audit: %s", page, exc)
            continue
        sections = required_sections(html)
        count = graph.out_degree(page)
        rows.append(
            {
                "path": page,
                "internal_links": count,
                "under_min": count < min_links,
                "over_recommended": count > max_links,
                **{f"has_{name}": present for name, present in sections.items()},
            }
        )

    def _failing(key: str) -> List[str]:
        return [row["path"] for row in rows if not row[key]]

    passing = [
        row["path"]
        for row in rows
        if not row["under_min"]
        and row["has_related_size_grid"]
        and row["has_region_converters"]
        and row["has_authority_links"]
    ]
    under = [row["path"] for row in rows if row["under_min"]]
    return {
        "scope": prefix,
        "min_links": min_links,
        "max_recommended_links": max_links,
        "summary": {
            "total_pages": len(rows),
            "pages_under_min_links": len(under),
            "pages_over_recommended": sum(1 for row in rows if row["over_recommended"]),
            "missing_related_size_grid": len(_failing("has_related_size_grid")),
            "missing_region_converters": len(_failing("has_region_converters")),
            "missing_authority_links": len(_failing("has_authority_links")),
            "pages_passing_all": len(passing),
        },
        "pages_under_min_links": bounded(under, sample_limit),
        "missing_related_size_grid": bounded(_failing("has_related_size_grid"), sample_limit),
        "missing_region_converters": bounded(_failing("has_region_converters"), sample_limit),
        "missing_authority_links": bounded(_failing("has_authority_links"), sample_limit),
    }


# ---------------------------------------------------------------------------
# Structure report
# ---------------------------------------------------------------------------


def structure_report(
    graph: SiteGraph,
    thresholds: Optional[AuditThresholds] = None,
    known_hubs: Sequence[str] = DEFAULT_KNOWN_HUBS,
    root_page: str = ROOT_PAGE,
) -> StructureReport:
    """Run every graph check and derive the readiness criteria."""
    limits = thresholds or AuditThresholds()
    broken = find_broken_links(graph)
    orphans = find_orphans(graph, min_inbound=limits.detector_min_inbound, exempt=(root_page,))
    under = find_under_linked(graph, min_links=limits.min_internal_links)
    reach = crawl_depth(graph, root=root_page)

    readable = len(graph.edges)
    total_links = graph.edge_count
    report = StructureReport(
        total_pages=graph.page_count,
        total_internal_links=total_links,
        avg_internal_links=round(total_links / readable, 1) if readable else 0.0,
        broken_links=broken,
        broken_link_count=len(broken),
        orphans=orphans,
        under_linked=under,
        under_linked_count=len(under),
        crawl_depth=reach.max_depth,
        unreachable=reach.unreachable,
        missing_hubs=missing_hubs(graph, known_hubs),
        pages_not_linked_from_hubs=pages_not_linked_from_hubs(graph, known_hubs),
        unreadable=sorted(graph.unreadable),
    )
    report.criteria = {
        "broken_links": Criterion("<= 0", len(broken), len(broken) <= 0),
        "orphan_pages": Criterion("<= 0", len(orphans), len(orphans) <= 0),
        "pages_under_min_links": Criterion(
            f"<= {limits.max_under_linked_pages}",
            len(under),
            len(under) <= limits.max_under_linked_pages,
        ),
        "crawl_depth": Criterion(
            f"<= {limits.max_crawl_depth}",
            reach.max_depth,
            reach.max_depth <= limits.max_crawl_depth,
        ),
        "unreachable_from_index": Criterion("== 0", len(reach.unreachable), not reach.unreachable),
    }
    logger.info(
        "Structure audit: %d page(s), readiness=%s",
        report.total_pages,
        report.readiness,
    )
    return report
