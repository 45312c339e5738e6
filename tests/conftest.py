"""
Shared fixtures for the link graph test suite.

Provides throwaway site directories and small route catalogs so that every
test runs against files under ``tmp_path`` only.
"""

import pytest

from linkgraph.routes import RouteCatalog, default_catalog, expand_catalog


# ---------------------------------------------------------------------------
# Site fixtures
# ---------------------------------------------------------------------------


def render_page(hrefs=(), body=""):
    links = "\n".join(f'    <a href="{href}">{href}</a>' for href in hrefs)
    return (
        "<!DOCTYPE html>\n<html>\n<body>\n  <main>\n"
        f"{body}\n{links}\n"
        "  </main>\n  <footer>Footer</footer>\n</body>\n</html>\n"
    )


@pytest.fixture
def site_root(tmp_path):
    """Empty site root directory."""
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def write_page(site_root):
    """Write a page with the given hrefs: ``write_page("a.html", ["b.html"])``."""

    def _write(rel_path, hrefs=(), body=""):
        path = site_root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_page(hrefs, body), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def small_table():
    """Three men's sizes and one women's size."""
    return {
        "men": [
            {"us": 9, "eu": 42},
            {"us": 9.5, "eu": 42.5},
            {"us": 10, "eu": 43},
        ],
        "women": [{"us": 9, "eu": 40}],
    }


@pytest.fixture
def small_catalog(small_table) -> RouteCatalog:
    """US->EU only: 4 size pairs, 1 region page, 2 category pages."""
    return expand_catalog(small_table, region_pairs=[("US", "EU")], genders=("men", "women"))


@pytest.fixture(scope="session")
def full_catalog() -> RouteCatalog:
    """Catalog expanded from the bundled shoe table."""
    return default_catalog()
