"""
Configuration — GlobalSize Link Graph
=====================================

Defaults for every threshold and directory the audits use, plus a loader
that layers an optional JSON file and environment overrides on top.

Usage:
    from linkgraph.config import load_config

    config = load_config()                       # defaults + configs/linkgraph.json
    config = load_config(Path("my-site.json"))   # explicit file
    print(config.thresholds.broken_link_gate)

Environment:
    LINKGRAPH_SITE_ROOT   site root to crawl / generate into
    LINKGRAPH_BUILD_DIR   directory for JSON reports (default: <site_root>/build)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from linkgraph.reports import _load_json

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

PACKAGE_LOGGER = "linkgraph"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger, installing its handler once."""
    root = logging.getLogger(PACKAGE_LOGGER)
    if not root.handlers:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        root.addHandler(_handler)
        root.setLevel(logging.INFO)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


logger = get_logger("config")

# ---------------------------------------------------------------------------
# Paths & Constants
# ---------------------------------------------------------------------------

BASE_DIR = Path(__file__).resolve().parent.parent
PACKAGE_DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_CONFIG_PATH = BASE_DIR / "configs" / "linkgraph.json"
SHOE_TABLE_PATH = PACKAGE_DATA_DIR / "shoe_sizes.json"

ENV_SITE_ROOT = "LINKGRAPH_SITE_ROOT"
ENV_BUILD_DIR = "LINKGRAPH_BUILD_DIR"

ROOT_PAGE = "index.html"
PROGRAMMATIC_INDEX = "programmatic-index.html"
PROGRAMMATIC_DIR = "programmatic-pages"

# Directories that never contain crawlable pages
DEFAULT_EXCLUDE_DIRS: Tuple[str, ...] = (
    "programmatic",
    "components",
    "sitemaps",
    "config",
    "data",
    "build",
    "scripts",
    "node_modules",
)

# Path fragments excluded even when the directory itself is crawled
DEFAULT_EXCLUDE_PATHS: Tuple[str, ...] = ("programmatic/templates",)

# Hubs the orphan resolver may patch, in preference order
DEFAULT_HUB_FILES: Tuple[str, ...] = (
    "shoe-size-pages.html",
    "brand-size-guides.html",
    "measurement-tools.html",
    "shoe-sizing-guides.html",
)

# Page category -> hubs that should link to orphans of that category
DEFAULT_CATEGORY_HUBS: Dict[str, List[str]] = {
    "clothing": ["shoe-size-pages.html", "brand-size-guides.html"],
    "measurement": ["measurement-tools.html", "shoe-sizing-guides.html"],
    "brand": ["brand-size-guides.html", "measurement-tools.html"],
    "authority": ["shoe-sizing-guides.html", "measurement-tools.html"],
    "legal": ["shoe-size-pages.html", "brand-size-guides.html"],
    "programmatic": ["shoe-size-pages.html", "shoe-sizing-guides.html"],
}

# Pages every crawl-ready site is expected to have
DEFAULT_KNOWN_HUBS: Tuple[str, ...] = (
    "index.html",
    "shoe-size-converter.html",
    "shoe-sizing-guides.html",
    "shoe-size-pages.html",
    "programmatic-index.html",
    "clothing-size-pages.html",
    "brand-size-guides.html",
    "brand-sizing-guide.html",
    "cm-measurement-converters.html",
    "printable-size-guides.html",
    "measurement-tools.html",
    "mens-shoe-size-pages.html",
    "womens-shoe-size-pages.html",
    "kids-shoe-size-pages.html",
)


class ConfigError(ValueError):
    """Raised for malformed or unknown configuration values."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class AuditThresholds:
    """Numeric limits shared by the checkers, the gate and the resolver."""

    broken_link_gate: int = 10  # distinct missing targets that block a build
    orphan_min_inbound: int = 2  # strict audit / resolver target
    detector_min_inbound: int = 1  # zero-inbound detector
    min_internal_links: int = 10
    programmatic_min_links: int = 15
    programmatic_max_links: int = 25
    max_under_linked_pages: int = 4
    max_crawl_depth: int = 4
    sample_limit: int = 100
    broken_sample_limit: int = 200

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AuditThresholds:
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigError(f"Unknown threshold(s): {', '.join(sorted(unknown))}")
        values = {}
        for key, value in data.items():
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"Threshold {key!r} must be a non-negative integer, got {value!r}")
            values[key] = value
        return cls(**values)


@dataclass
class LinkGraphConfig:
    """Resolved configuration for one site."""

    site_root: Path = field(default_factory=Path.cwd)
    build_dir: Optional[Path] = None
    root_page: str = ROOT_PAGE
    exclude_dirs: Tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    exclude_paths: Tuple[str, ...] = DEFAULT_EXCLUDE_PATHS
    hub_files: Tuple[str, ...] = DEFAULT_HUB_FILES
    category_hubs: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORY_HUBS.items()}
    )
    known_hubs: Tuple[str, ...] = DEFAULT_KNOWN_HUBS
    thresholds: AuditThresholds = field(default_factory=AuditThresholds)

    @property
    def reports_dir(self) -> Path:
        return self.build_dir if self.build_dir is not None else self.site_root / "build"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["site_root"] = str(self.site_root)
        data["build_dir"] = str(self.reports_dir)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LinkGraphConfig:
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigError(f"Unknown config key(s): {', '.join(sorted(unknown))}")
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in ("site_root", "build_dir"):
                values[key] = Path(value) if value is not None else None
            elif key == "thresholds":
                values[key] = AuditThresholds.from_dict(value or {})
            elif key in ("exclude_dirs", "exclude_paths", "hub_files", "known_hubs"):
                if not isinstance(value, list):
                    raise ConfigError(f"{key!r} must be a list of strings")
                values[key] = tuple(value)
            elif key == "category_hubs":
                if not isinstance(value, dict):
                    raise ConfigError("'category_hubs' must map category -> list of hub files")
                values[key] = {str(k): list(v) for k, v in value.items()}
            else:
                values[key] = value
        if values.get("site_root") is None:
            values.pop("site_root", None)
        return cls(**values)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> LinkGraphConfig:
    """Build a config from defaults, an optional JSON file and the environment.

    An explicit *path* must exist; the default ``configs/linkgraph.json`` is
    optional. Environment variables win over file values.
    """
    env = os.environ if environ is None else environ
    config_path = path or DEFAULT_CONFIG_PATH
    if path is not None and not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = _load_json(config_path, default={})
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")
    if raw:
        logger.debug("Loaded config from %s", config_path)

    config = LinkGraphConfig.from_dict(raw)
    if env.get(ENV_SITE_ROOT):
        config.site_root = Path(env[ENV_SITE_ROOT])
    if env.get(ENV_BUILD_DIR):
        config.build_dir = Path(env[ENV_BUILD_DIR])
    return config
