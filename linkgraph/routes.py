"""
Route Catalog — GlobalSize Link Graph
=====================================

The static list of programmatic pages the site generates, built once from
the shoe conversion table and then shared read-only by every link builder
and by the materializer.

A catalog is the cross product of table rows x region pairs x genders
(``size_pair`` routes), plus one ``region`` route per region pair and one
``category`` route per gender. It also answers the sibling questions the
link builders ask: adjacent size, same region, same gender, other genders.

Usage:
    from linkgraph.routes import default_catalog, route_path

    catalog = default_catalog()
    route = catalog.get("eu-42-to-us-shoe-size")
    prev_route, next_route = catalog.adjacent(route)
    route_path(route)   # 'programmatic-pages/eu-42-to-us-shoe-size.html'
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from linkgraph.config import PROGRAMMATIC_DIR, SHOE_TABLE_PATH, get_logger

logger = get_logger("routes")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------


class RouteType(str, Enum):
    SIZE_PAIR = "size_pair"
    REGION = "region"
    CATEGORY = "category"


GENDERS: Tuple[str, ...] = ("men", "women", "kids")

# Region code -> slug segment
REGION_SEGMENTS: Dict[str, str] = {
    "US": "us",
    "UK": "uk",
    "EU": "eu",
    "JP": "japan",
    "CN": "china",
    "CM": "cm",
    "KR": "korea",
    "INCH": "inch",
}

REGION_NAMES: Dict[str, str] = {
    "US": "US",
    "UK": "UK",
    "EU": "EU",
    "JP": "Japan",
    "CN": "China",
    "CM": "CM",
    "KR": "Korea",
    "INCH": "Inch",
}

GENDER_TAGS: Dict[str, str] = {"men": "", "women": "Women's ", "kids": "Kids' "}
GENDER_TITLES: Dict[str, str] = {"men": "Men's", "women": "Women's", "kids": "Kids'"}
GENDER_SLUG_PREFIX: Dict[str, str] = {"men": "mens", "women": "womens", "kids": "kids"}
GENDER_SLUG_SUFFIX: Dict[str, str] = {"men": "", "women": "-women", "kids": "-kids"}

# Region pairs the site publishes converters for
DEFAULT_REGION_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("EU", "US"),
    ("US", "EU"),
    ("US", "UK"),
    ("UK", "US"),
    ("UK", "EU"),
    ("CM", "US"),
    ("CM", "EU"),
    ("CM", "UK"),
    ("JP", "US"),
    ("JP", "EU"),
    ("EU", "JP"),
    ("US", "JP"),
    ("CN", "US"),
    ("CN", "EU"),
)

# Fixed "Region Converters" block shown on every programmatic page
REGION_CONVERTERS: Tuple[Tuple[str, str], ...] = (
    ("eu-to-us-shoe-size", "EU to US"),
    ("us-to-eu-shoe-size", "US to EU"),
    ("us-to-uk-shoe-size", "US to UK"),
    ("uk-to-us-shoe-size", "UK to US"),
    ("uk-to-eu-shoe-size", "UK to EU"),
    ("cm-to-us-shoe-size", "CM to US"),
    ("cm-to-eu-shoe-size", "CM to EU"),
    ("cm-to-uk-shoe-size", "CM to UK"),
    ("japan-to-us-shoe-size", "Japan to US"),
    ("japan-to-eu-shoe-size", "Japan to EU"),
    ("eu-to-japan-shoe-size", "EU to Japan"),
    ("us-to-japan-shoe-size", "US to Japan"),
    ("china-to-us-shoe-size", "China to US"),
    ("china-to-eu-shoe-size", "China to EU"),
)

ROUTE_DIRECTORIES: Dict[RouteType, str] = {
    RouteType.SIZE_PAIR: PROGRAMMATIC_DIR,
    RouteType.REGION: PROGRAMMATIC_DIR,
    RouteType.CATEGORY: PROGRAMMATIC_DIR,
}


# ---------------------------------------------------------------------------
# Size helpers
# ---------------------------------------------------------------------------


def format_size(value: Any) -> str:
    """Render a table value as a size string (``24.0`` -> ``'24'``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def size_sort_key(size: Optional[str]) -> Tuple[int, float, str]:
    """Numeric sizes first in numeric order, anything else after by text."""
    if size is None:
        return (2, 0.0, "")
    try:
        return (0, float(size), "")
    except ValueError:
        return (1, 0.0, size)


def same_size(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    if a == b:
        return True
    try:
        return float(a) == float(b)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Route:
    """One generated page."""

    type: RouteType
    slug: str
    from_region: Optional[str] = None
    to_region: Optional[str] = None
    gender: Optional[str] = None
    size: Optional[str] = None

    @property
    def pair(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.from_region, self.to_region)

    @property
    def pair_key(self) -> str:
        return f"{self.from_region}-{self.to_region}"

    @property
    def label(self) -> str:
        """Anchor text used wherever this route is linked."""
        src = REGION_NAMES.get(self.from_region or "", self.from_region or "")
        dst = REGION_NAMES.get(self.to_region or "", self.to_region or "")
        if self.type is RouteType.SIZE_PAIR:
            tag = GENDER_TAGS.get(self.gender or "", "")
            return f"{tag}{src} {self.size} to {dst}"
        if self.type is RouteType.REGION:
            return f"{src} to {dst} Shoe Size Converter"
        return f"{GENDER_TITLES.get(self.gender or '', '')} Shoe Size Converter".strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "slug": self.slug,
            "from_region": self.from_region,
            "to_region": self.to_region,
            "gender": self.gender,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Route:
        data = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if not data.get("slug"):
            raise ValueError(f"Route without slug: {data!r}")
        data["type"] = RouteType(data.get("type") or RouteType.SIZE_PAIR.value)
        if data.get("size") is not None:
            data["size"] = format_size(data["size"])
        return cls(**data)


def route_path(route: Route) -> str:
    """Site-root-relative file path of a route's page."""
    return f"{ROUTE_DIRECTORIES[route.type]}/{route.slug}.html"


def size_pair_slug(from_region: str, to_region: str, size: str, gender: str) -> str:
    src = REGION_SEGMENTS.get(from_region, from_region.lower())
    dst = REGION_SEGMENTS.get(to_region, to_region.lower())
    size_part = size.replace(".", "-")
    return f"{src}-{size_part}-to-{dst}-shoe-size{GENDER_SLUG_SUFFIX.get(gender, '-' + gender)}"


def region_slug(from_region: str, to_region: str) -> str:
    src = REGION_SEGMENTS.get(from_region, from_region.lower())
    dst = REGION_SEGMENTS.get(to_region, to_region.lower())
    return f"{src}-to-{dst}-shoe-size"


def category_slug(gender: str) -> str:
    return f"{GENDER_SLUG_PREFIX.get(gender, gender)}-shoe-size-converter"


# ---------------------------------------------------------------------------
# RouteCatalog
# ---------------------------------------------------------------------------


class RouteCatalog:
    """Immutable, ordered set of routes with sibling lookups.

    Parameters
    ----------
    routes:
        Routes in catalog order. Slugs must be unique.
    region_converters:
        ``(slug, label)`` pairs for the fixed Region Converters block.
        Defaults to :data:`REGION_CONVERTERS`.

    Raises
    ------
    ValueError
        If two routes share a slug.
    """

    def __init__(
        self,
        routes: Iterable[Route],
        region_converters: Optional[Sequence[Tuple[str, str]]] = None,
    ):
        self._routes: Tuple[Route, ...] = tuple(routes)
        self.region_converters: Tuple[Tuple[str, str], ...] = tuple(
            REGION_CONVERTERS if region_converters is None else region_converters
        )
        self._by_slug: Dict[str, Route] = {}
        for route in self._routes:
            if route.slug in self._by_slug:
                raise ValueError(f"Duplicate route slug: {route.slug}")
            self._by_slug[route.slug] = route

        order = {r.slug: i for i, r in enumerate(self._routes)}

        def _key(r: Route) -> Tuple[Tuple[int, float, str], int]:
            return (size_sort_key(r.size), order[r.slug])

        self._size_pairs = tuple(r for r in self._routes if r.type is RouteType.SIZE_PAIR)
        self._by_pair: Dict[Tuple[Optional[str], Optional[str]], List[Route]] = {}
        self._by_pair_gender: Dict[Tuple[Optional[str], Optional[str], Optional[str]], List[Route]] = {}
        for r in self._size_pairs:
            self._by_pair.setdefault(r.pair, []).append(r)
            self._by_pair_gender.setdefault((r.from_region, r.to_region, r.gender), []).append(r)
        for group in self._by_pair.values():
            group.sort(key=_key)
        for group in self._by_pair_gender.values():
            group.sort(key=_key)

    # -- container protocol --------------------------------------------------

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __contains__(self, slug: object) -> bool:
        return slug in self._by_slug

    @property
    def routes(self) -> Tuple[Route, ...]:
        return self._routes

    def get(self, slug: str) -> Optional[Route]:
        return self._by_slug.get(slug)

    # -- pools ---------------------------------------------------------------

    def size_pairs(self) -> Tuple[Route, ...]:
        return self._size_pairs

    def region_pages(self) -> List[Route]:
        return [r for r in self._routes if r.type is RouteType.REGION]

    def category_pages(self) -> List[Route]:
        return [r for r in self._routes if r.type is RouteType.CATEGORY]

    def adjacent(self, route: Route) -> Tuple[Optional[Route], Optional[Route]]:
        """Previous and next size in the same pair and gender."""
        group = self._by_pair_gender.get((route.from_region, route.to_region, route.gender), [])
        for index, candidate in enumerate(group):
            if candidate.slug == route.slug or (
                route.slug not in self._by_slug and same_size(candidate.size, route.size)
            ):
                prev_route = group[index - 1] if index > 0 else None
                next_route = group[index + 1] if index + 1 < len(group) else None
                return prev_route, next_route
        return None, None

    def pair_routes(self, from_region: Optional[str], to_region: Optional[str]) -> List[Route]:
        """All size pairs of one region pair, ascending by size."""
        return list(self._by_pair.get((from_region, to_region), []))

    def same_region(self, route: Route) -> List[Route]:
        """Same region pair, different size, ascending by size."""
        return [
            r
            for r in self._by_pair.get(route.pair, [])
            if r.slug != route.slug and not same_size(r.size, route.size)
        ]

    def same_gender(self, route: Route) -> List[Route]:
        """Same gender in other region pairs, by pair then size."""
        pool = [
            r
            for r in self._size_pairs
            if r.gender == route.gender and r.pair != route.pair
        ]
        return sorted(pool, key=lambda r: (r.pair_key, size_sort_key(r.size)))

    def other_genders(self, route: Route) -> List[Route]:
        """Same pair and size for the other genders."""
        return [
            r
            for r in self._by_pair.get(route.pair, [])
            if r.gender != route.gender and same_size(r.size, route.size)
        ]

    def other_pair_routes(self, route: Route) -> List[Route]:
        """Size pairs outside this route's region pair, in catalog order."""
        return [r for r in self._size_pairs if r.pair != route.pair]

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self._routes]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def expand_catalog(
    shoe_table: Dict[str, List[Dict[str, Any]]],
    region_pairs: Sequence[Tuple[str, str]] = DEFAULT_REGION_PAIRS,
    genders: Sequence[str] = GENDERS,
) -> RouteCatalog:
    """Expand a ``{gender: [row, ...]}`` table into a full catalog.

    Each row maps lower-case region codes to sizes. The size shown in a
    size-pair route comes from the *from* region's column; rows without
    that column are skipped.
    """
    routes: List[Route] = []
    for from_region, to_region in region_pairs:
        for gender in genders:
            for row in shoe_table.get(gender, []):
                value = row.get(from_region.lower())
                if value is None or row.get(to_region.lower()) is None:
                    continue
                size = format_size(value)
                routes.append(
                    Route(
                        type=RouteType.SIZE_PAIR,
                        slug=size_pair_slug(from_region, to_region, size, gender),
                        from_region=from_region,
                        to_region=to_region,
                        gender=gender,
                        size=size,
                    )
                )
    for from_region, to_region in region_pairs:
        routes.append(
            Route(
                type=RouteType.REGION,
                slug=region_slug(from_region, to_region),
                from_region=from_region,
                to_region=to_region,
            )
        )
    for gender in genders:
        routes.append(Route(type=RouteType.CATEGORY, slug=category_slug(gender), gender=gender))

    logger.debug("Expanded catalog: %d routes from %d region pairs", len(routes), len(region_pairs))
    return RouteCatalog(routes)


def load_shoe_table(path: Path = SHOE_TABLE_PATH) -> Dict[str, List[Dict[str, Any]]]:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def load_routes(path: Path) -> RouteCatalog:
    """Load a catalog from a JSON list of route objects."""
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON list of routes")
    return RouteCatalog(Route.from_dict(item) for item in raw)


def default_catalog() -> RouteCatalog:
    """Catalog expanded from the bundled shoe table."""
    return expand_catalog(load_shoe_table())
