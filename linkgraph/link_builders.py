"""
Link-Set Builders — GlobalSize Link Graph
=========================================

Every programmatic page carries several link sections, each filled by a
builder that walks an ordered list of candidate pools (adjacent sizes,
same region, same gender, fixed converter anchors, ...) until it reaches
its size window. All four builders are instances of one ``LinkBuilder``
class and differ only in their ``LinkPolicy``.

Shared rules:
    * no link to the page itself, no target twice;
    * never more than ``max_links``;
    * below ``min_links`` after the preferred pools, fall back to
      same-gender sizes, then the region converters, then any size pair.

Usage:
    from linkgraph.link_builders import CRAWL_DISCOVERY_LINKS
    from linkgraph.routes import default_catalog

    catalog = default_catalog()
    route = catalog.get("eu-42-to-us-shoe-size")
    for link in CRAWL_DISCOVERY_LINKS.build(route, catalog):
        print(link.href, link.text)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from linkgraph.config import PROGRAMMATIC_DIR, PROGRAMMATIC_INDEX, ROOT_PAGE
from linkgraph.paths import relativize
from linkgraph.routes import Route, RouteCatalog, RouteType, route_path

Candidate = Tuple[str, str]  # (site-root-relative target, anchor text)
Pool = Callable[[Route, RouteCatalog], Iterable[Candidate]]

# ---------------------------------------------------------------------------
# Fixed anchors
# ---------------------------------------------------------------------------

CORE_CONVERTER_LINKS: Tuple[Candidate, ...] = (
    ("shoe-size-converter.html", "Shoe Size Converter"),
    ("clothing-size-converter.html", "Clothing Size Converter"),
    ("us-to-eu-size.html", "US to EU Size"),
    ("uk-to-us-size.html", "UK to US Size"),
    ("cm-to-us-shoe-size.html", "CM to US Shoe Size"),
    (ROOT_PAGE, "Home"),
)

MAIN_CONVERTER_LINKS: Tuple[Candidate, ...] = CORE_CONVERTER_LINKS[:-1] + (
    (PROGRAMMATIC_INDEX, "All Size Conversions"),
    (ROOT_PAGE, "Home"),
)

AUTHORITY_LINKS: Tuple[Candidate, ...] = (
    (ROOT_PAGE, "Home"),
    ("brand-sizing-guide.html", "Brand Sizing Guide"),
    ("shoe-size-pages.html", "Shoe Size Pages"),
    ("measurement-tools.html", "Measurement Tools"),
    ("shoe-sizing-guides.html", "Shoe Sizing Guides"),
)


# ---------------------------------------------------------------------------
# Candidate pools
# ---------------------------------------------------------------------------


def _routes(routes: Iterable[Optional[Route]]) -> Iterable[Candidate]:
    for r in routes:
        if r is not None:
            yield route_path(r), r.label


def _adjacent(route: Route, catalog: RouteCatalog) -> Iterable[Candidate]:
    if route.type is not RouteType.SIZE_PAIR:
        return ()
    return _routes(catalog.adjacent(route))


def _same_region(route: Route, catalog: RouteCatalog) -> Iterable[Candidate]:
    if route.type is RouteType.REGION:
        return _routes(catalog.pair_routes(route.from_region, route.to_region))
    if route.type is RouteType.SIZE_PAIR:
        return _routes(catalog.same_region(route))
    return ()


def _same_gender(route: Route, catalog: RouteCatalog) -> Iterable[Candidate]:
    if route.type is RouteType.REGION:
        return ()
    return _routes(catalog.same_gender(route))


def _other_genders(route: Route, catalog: RouteCatalog) -> Iterable[Candidate]:
    if route.type is not RouteType.SIZE_PAIR:
        return ()
    return _routes(catalog.other_genders(route))


def _region_converters(route: Route, catalog: RouteCatalog) -> Iterable[Candidate]:
    return ((f"{PROGRAMMATIC_DIR}/{slug}.html", label) for slug, label in catalog.region_converters)


def _fixed(anchors: Tuple[Candidate, ...]) -> Pool:
    return lambda route, catalog: anchors


POOLS: Dict[str, Pool] = {
    "main_converters": _fixed(MAIN_CONVERTER_LINKS),
    "core_converters": _fixed(CORE_CONVERTER_LINKS),
    "authority": _fixed(AUTHORITY_LINKS),
    "region_converters": _region_converters,
    "adjacent": _adjacent,
    "same_region": _same_region,
    "same_gender": _same_gender,
    "other_genders": _other_genders,
    "other_pairs": lambda route, catalog: _routes(catalog.other_pair_routes(route)),
    "region_pages": lambda route, catalog: _routes(catalog.region_pages()),
    "category_pages": lambda route, catalog: _routes(catalog.category_pages()),
    "any_size_pair": lambda route, catalog: _routes(catalog.size_pairs()),
}

DEFAULT_FALLBACK: Tuple[str, ...] = ("same_gender", "region_converters", "any_size_pair")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Link:
    """A link as emitted into a page."""

    href: str  # relative to the linking page
    text: str
    target: str  # site-root-relative

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PoolStep:
    """Draw from one pool.

    ``take`` caps how many links this step adds; ``until`` stops the step
    once the list as a whole has that many links.
    """

    pool: str
    take: Optional[int] = None
    until: Optional[int] = None


@dataclass(frozen=True)
class LinkPolicy:
    """Ordered pools per route type plus the size window."""

    name: str
    steps: Mapping[RouteType, Tuple[PoolStep, ...]] = field(default_factory=dict)
    min_links: int = 0
    max_links: Optional[int] = None
    fallback: Tuple[str, ...] = DEFAULT_FALLBACK

    def __post_init__(self):
        names = [s.pool for steps in self.steps.values() for s in steps] + list(self.fallback)
        unknown = sorted(set(names) - set(POOLS))
        if unknown:
            raise ValueError(f"Policy {self.name!r} uses unknown pool(s): {', '.join(unknown)}")
        if self.max_links is not None and self.min_links > self.max_links:
            raise ValueError(f"Policy {self.name!r}: min_links exceeds max_links")


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class LinkBuilder:
    """Build one link section for any route.

    Parameters
    ----------
    policy:
        Pools, ceilings and the size window for this section.
    """

    def __init__(self, policy: LinkPolicy):
        self.policy = policy

    @property
    def name(self) -> str:
        return self.policy.name

    def build(self, route: Route, catalog: RouteCatalog) -> List[Link]:
        """Return the ordered links for *route*.

        Never raises on an empty catalog: only the fixed anchors are
        emitted then.
        """
        own = route_path(route)
        links: List[Link] = []
        seen = {own}
        max_links = self.policy.max_links

        def offer(pool: str, take: Optional[int] = None, until: Optional[int] = None) -> None:
            added = 0
            for target, text in POOLS[pool](route, catalog):
                if max_links is not None and len(links) >= max_links:
                    return
                if until is not None and len(links) >= until:
                    return
                if take is not None and added >= take:
                    return
                if target in seen:
                    continue
                seen.add(target)
                links.append(Link(href=relativize(own, target), text=text, target=target))
                added += 1

        for step in self.policy.steps.get(route.type, ()):
            offer(step.pool, step.take, step.until)

        if len(links) < self.policy.min_links:
            for pool in self.policy.fallback:
                offer(pool, until=self.policy.min_links)

        return links

    def __repr__(self) -> str:
        return f"LinkBuilder({self.policy.name!r})"


# ---------------------------------------------------------------------------
# The four page sections
# ---------------------------------------------------------------------------

INTERNAL_LINKS = LinkBuilder(
    LinkPolicy(
        name="internal_links",
        steps={
            RouteType.SIZE_PAIR: (
                PoolStep("adjacent"),
                PoolStep("same_region", take=4),
                PoolStep("other_genders"),
                PoolStep("core_converters"),
            ),
            RouteType.REGION: (
                PoolStep("same_region", take=6),
                PoolStep("core_converters"),
            ),
            RouteType.CATEGORY: (
                PoolStep("category_pages"),
                PoolStep("same_gender", take=3),
                PoolStep("core_converters"),
            ),
        },
    )
)

MIN_CRAWL_DISCOVERY_LINKS = 12

CRAWL_DISCOVERY_LINKS = LinkBuilder(
    LinkPolicy(
        name="crawl_discovery",
        steps={
            RouteType.SIZE_PAIR: (
                PoolStep("main_converters"),
                PoolStep("adjacent"),
                PoolStep("same_region", until=20),
                PoolStep("other_genders"),
                PoolStep("same_gender", until=16),
                PoolStep("region_pages", until=14),
            ),
            RouteType.REGION: (
                PoolStep("main_converters"),
                PoolStep("same_region", take=10),
                PoolStep("other_pairs", until=MIN_CRAWL_DISCOVERY_LINKS),
            ),
            RouteType.CATEGORY: (
                PoolStep("main_converters"),
                PoolStep("category_pages"),
                PoolStep("same_gender", until=14),
            ),
        },
        min_links=MIN_CRAWL_DISCOVERY_LINKS,
    )
)

DISCOVERY_GRID_COUNT = 20

DISCOVERY_GRID_LINKS = LinkBuilder(
    LinkPolicy(
        name="discovery_grid",
        steps={
            RouteType.SIZE_PAIR: (
                PoolStep("main_converters"),
                PoolStep("adjacent"),
                PoolStep("same_region"),
                PoolStep("region_pages"),
                PoolStep("same_gender"),
                PoolStep("any_size_pair"),
            ),
            RouteType.REGION: (
                PoolStep("main_converters"),
                PoolStep("same_region"),
                PoolStep("any_size_pair"),
            ),
            RouteType.CATEGORY: (
                PoolStep("main_converters"),
                PoolStep("category_pages"),
                PoolStep("same_gender"),
                PoolStep("region_pages"),
            ),
        },
        min_links=DISCOVERY_GRID_COUNT,
        max_links=DISCOVERY_GRID_COUNT,
    )
)

RELATED_SIZE_GRID = LinkBuilder(
    LinkPolicy(
        name="related_size_grid",
        steps={
            RouteType.SIZE_PAIR: (
                PoolStep("adjacent"),
                PoolStep("same_region"),
                PoolStep("same_gender"),
            ),
            RouteType.REGION: (PoolStep("same_region"),),
            RouteType.CATEGORY: (PoolStep("same_gender"),),
        },
        max_links=20,
    )
)

BUILDERS: Dict[str, LinkBuilder] = {
    b.name: b for b in (INTERNAL_LINKS, CRAWL_DISCOVERY_LINKS, DISCOVERY_GRID_LINKS, RELATED_SIZE_GRID)
}


def anchor_links(route: Route, anchors: Iterable[Candidate]) -> List[Link]:
    """Fixed anchors as links relative to *route*'s page, minus a self-link."""
    own = route_path(route)
    return [
        Link(href=relativize(own, target), text=text, target=target)
        for target, text in anchors
        if target != own
    ]
