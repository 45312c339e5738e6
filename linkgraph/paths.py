"""
Site path algebra.

Every href the site emits or crawls goes through these three functions so
that generation and auditing agree on what a link points at. All paths are
POSIX-style and relative to the site root (``programmatic-pages/x.html``).
"""

from __future__ import annotations

import posixpath
from typing import Optional

EXTERNAL_PREFIXES = ("http://", "https://", "mailto:", "tel:", "//")
ROOT_PAGE = "index.html"


def is_external(href: str) -> bool:
    return href.strip().lower().startswith(EXTERNAL_PREFIXES)


def _strip_fragment(href: str) -> str:
    return href.strip().split("#", 1)[0].strip()


def _as_page(path: str) -> str:
    """Apply the index / implicit ``.html`` rules to a normalised path."""
    if path in ("", "."):
        return ROOT_PAGE
    if path.endswith(".html"):
        return path
    if "." not in path:
        return path + ".html"
    return path


def resolve_href(href: str, from_path: str) -> Optional[str]:
    """Resolve *href* found in page *from_path* to a site-root-relative path.

    Returns ``None`` for fragments, external schemes and paths escaping the
    site root. The result is not checked for existence.
    """
    raw = _strip_fragment(href)
    if not raw or is_external(raw):
        return None
    raw = raw.replace("\\", "/")
    if raw.startswith("/"):
        joined = raw.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(from_path), raw)
    resolved = posixpath.normpath(joined) if joined else ""
    if resolved == ".." or resolved.startswith("../"):
        return None
    return _as_page(resolved)


def relativize(from_path: str, target_path: str) -> str:
    """Href that reaches *target_path* from the page at *from_path*."""
    start = posixpath.dirname(from_path) or "."
    return posixpath.relpath(target_path, start)
