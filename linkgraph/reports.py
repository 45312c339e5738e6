"""
Report persistence.

Every audit writes one JSON document under the build directory. Lists in
reports are sampled with :func:`bounded` so a badly broken site still
produces a readable file; full counts are always reported alongside.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Sequence, TypeVar

T = TypeVar("T")

REPORT_FILES = {
    "prebuild": "prebuild-link-validation.json",
    "structure": "structure-report.json",
    "link_audit": "internal-link-audit.json",
    "orphans": "orphan-report.json",
    "resolver": "orphan-resolver-manifest.json",
    "missing": "missing-pages.json",
    "graph": "site-graph.json",
}


def bounded(items: Sequence[T], limit: int) -> List[T]:
    """First *limit* items as a list."""
    return list(items[:limit])


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _save_json(path: Path, data: Any) -> None:
    """Atomically write JSON to a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    with open(tmp, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, default=str)
    tmp.replace(path)


def _load_json(path: Path, default: Any = None) -> Any:
    """Load JSON from a file, returning default if missing."""
    if not path.exists():
        return default if default is not None else {}
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def report_path(build_dir: Path, kind: str) -> Path:
    return Path(build_dir) / REPORT_FILES[kind]


def save_report(build_dir: Path, kind: str, data: Any) -> Path:
    """Write report *kind* into *build_dir*, stamping ``generated_at``."""
    path = report_path(build_dir, kind)
    if isinstance(data, dict) and "generated_at" not in data:
        data = {"generated_at": now_iso(), **data}
    _save_json(path, data)
    return path


def load_report(build_dir: Path, kind: str) -> Any:
    return _load_json(report_path(build_dir, kind))
