"""
GlobalSize Link Graph CLI
=========================

One entry point for generating the programmatic pages and running every
crawl-integrity audit against the generated site. Each audit writes its
JSON report into the build directory.

Usage:
    python -m linkgraph generate --site-root site
    python -m linkgraph prebuild --site-root site          # exit 1 when blocked
    python -m linkgraph audit --site-root site --strict    # exit 1 when not ready
    python -m linkgraph link-audit --site-root site
    python -m linkgraph orphans --site-root site
    python -m linkgraph fix-orphans --site-root site --dry-run
    python -m linkgraph missing --site-root site
    python -m linkgraph crawl --site-root site --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from linkgraph import checks
from linkgraph.config import PACKAGE_LOGGER, LinkGraphConfig, get_logger, load_config
from linkgraph.crawler import SiteCrawler, SiteGraph
from linkgraph.materializer import PageMaterializer
from linkgraph.orphan_resolver import OrphanResolver
from linkgraph.reports import bounded, save_report
from linkgraph.routes import default_catalog, load_routes

logger = get_logger("cli")


def _crawl(config: LinkGraphConfig) -> SiteGraph:
    crawler = SiteCrawler(
        config.site_root,
        exclude_dirs=config.exclude_dirs,
        exclude_paths=config.exclude_paths,
    )
    return crawler.crawl()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_generate(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    catalog = load_routes(Path(args.routes)) if args.routes else default_catalog()
    written = PageMaterializer(config.site_root, catalog).materialize_all(with_hubs=not args.no_hubs)
    print(f"Wrote {len(written)} file(s) for {len(catalog)} route(s) into {config.site_root}")
    return 0


def _cmd_crawl(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    graph = _crawl(config)
    if args.json:
        path = save_report(config.reports_dir, "graph", graph.to_dict())
        print(f"Graph written to {path}")
    print(graph.summary())
    return 0


def _cmd_prebuild(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    threshold = args.threshold if args.threshold is not None else config.thresholds.broken_link_gate
    gate = checks.prebuild_gate(_crawl(config), threshold=threshold)
    data = gate.to_dict()
    data["missing_targets"] = bounded(gate.missing_targets, config.thresholds.broken_sample_limit)
    save_report(config.reports_dir, "prebuild", data)
    print(gate.summary())
    return 0 if gate.passed else 1


def _cmd_audit(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    limits = config.thresholds
    report = checks.structure_report(
        _crawl(config),
        thresholds=limits,
        known_hubs=config.known_hubs,
        root_page=config.root_page,
    )
    path = save_report(
        config.reports_dir,
        "structure",
        report.to_dict(sample_limit=limits.sample_limit, broken_sample_limit=limits.broken_sample_limit),
    )
    print(report.summary())
    print(f"Report: {path}")
    return 1 if args.strict and not report.readiness else 0


def _cmd_link_audit(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    limits = config.thresholds
    data = checks.internal_link_audit(
        _crawl(config),
        config.site_root,
        scope=args.scope,
        min_links=limits.programmatic_min_links,
        max_links=limits.programmatic_max_links,
        sample_limit=limits.sample_limit,
    )
    path = save_report(config.reports_dir, "link_audit", data)
    summary = data["summary"]
    print(f"=== Internal Link Audit: {data['scope']} ===")
    for key, value in summary.items():
        print(f"  {key.replace('_', ' ').capitalize():<28} {value}")
    print(f"Report: {path}")
    return 0


def _cmd_orphans(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    min_inbound = args.min_inbound if args.min_inbound is not None else config.thresholds.detector_min_inbound
    orphans = checks.find_orphans(_crawl(config), min_inbound=min_inbound, exempt=(config.root_page,))
    save_report(
        config.reports_dir,
        "orphans",
        {
            "min_inbound": min_inbound,
            "orphan_count": len(orphans),
            "orphans": [o.to_dict() for o in bounded(orphans, config.thresholds.sample_limit)],
        },
    )
    print(f"Orphan pages (< {min_inbound} inbound): {len(orphans)}")
    for orphan in orphans[:30]:
        print(f"  {orphan.path} [{orphan.category}] inbound={orphan.inbound_count}")
    if len(orphans) > 30:
        print(f"  ... and {len(orphans) - 30} more")
    return 0


def _cmd_fix_orphans(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    min_inbound = args.min_inbound if args.min_inbound is not None else config.thresholds.orphan_min_inbound
    resolver = OrphanResolver(
        config.site_root,
        hub_files=config.hub_files,
        category_hubs=config.category_hubs,
        min_inbound=min_inbound,
        root_page=config.root_page,
    )
    plan = resolver.plan(_crawl(config))
    if args.dry_run:
        print(f"Would add {plan.planned_links} link(s) for {len(plan.orphans)} orphan(s):")
        for hub, paths in plan.assignments.items():
            print(f"  {hub}: +{len(paths)}")
        return 0
    result = resolver.apply(plan)
    path = save_report(config.reports_dir, "resolver", result.to_manifest())
    print(result.summary())
    print(f"Manifest: {path}")
    return 1 if result.failed_hubs else 0


def _cmd_missing(args: argparse.Namespace, config: LinkGraphConfig) -> int:
    data = checks.missing_pages_report(_crawl(config))
    path = save_report(config.reports_dir, "missing", data)
    print(f"Generated pages: {data['total_generated_pages']}")
    print(f"Missing pages:   {data['missing_count']}")
    for kind, count in data["missing_by_type"].items():
        print(f"  {kind}: {count}")
    print(f"Report: {path}")
    return 0


COMMANDS = {
    "generate": _cmd_generate,
    "crawl": _cmd_crawl,
    "prebuild": _cmd_prebuild,
    "audit": _cmd_audit,
    "link-audit": _cmd_link_audit,
    "orphans": _cmd_orphans,
    "fix-orphans": _cmd_fix_orphans,
    "missing": _cmd_missing,
}


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------


def _build_cli_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="linkgraph",
        description="Internal link graph and crawl-integrity audits for the GlobalSize site",
    )
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    parser.add_argument("--site-root", default=None, help="Site root directory")
    parser.add_argument("--build-dir", default=None, help="Report directory (default: <site-root>/build)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    p_gen = subparsers.add_parser("generate", help="Write every programmatic page and the index")
    p_gen.add_argument("--routes", default=None, help="JSON route list (default: bundled shoe table)")
    p_gen.add_argument("--no-hubs", action="store_true", help="Do not create missing hub pages")

    p_crawl = subparsers.add_parser("crawl", help="Crawl the site and print graph totals")
    p_crawl.add_argument("--json", action="store_true", help="Also write the full graph as JSON")

    p_pre = subparsers.add_parser("prebuild", help="Block the build when too many targets are missing")
    p_pre.add_argument("--threshold", type=int, default=None, help="Missing targets that fail the gate")

    p_audit = subparsers.add_parser("audit", help="Site structure report and readiness criteria")
    p_audit.add_argument("--strict", action="store_true", help="Exit 1 when the site is not ready")

    p_link = subparsers.add_parser("link-audit", help="Out-degree and required sections of programmatic pages")
    p_link.add_argument("--scope", default="programmatic-pages", help="Directory to audit")

    p_orph = subparsers.add_parser("orphans", help="List pages with too few inbound links")
    p_orph.add_argument("--min-inbound", type=int, default=None, help="Inbound links required (default: 1)")

    p_fix = subparsers.add_parser("fix-orphans", help="Link orphans from hub pages")
    p_fix.add_argument("--min-inbound", type=int, default=None, help="Inbound links required (default: 2)")
    p_fix.add_argument("--dry-run", action="store_true", help="Show the plan without writing")

    subparsers.add_parser("missing", help="Classify link targets missing from generated directories")

    return parser


def _resolve_config(args: argparse.Namespace) -> LinkGraphConfig:
    config = load_config(Path(args.config) if args.config else None)
    if args.site_root:
        config.site_root = Path(args.site_root)
    if args.build_dir:
        config.build_dir = Path(args.build_dir)
    return config


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    parser = _build_cli_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = _resolve_config(args)
        code = COMMANDS[args.command](args, config)
    except KeyboardInterrupt:
        print("\nAborted.")
        sys.exit(130)
    except (ValueError, json.JSONDecodeError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    except Exception as exc:
        logger.exception("CLI error: %s", exc)
        print(f"Error: {exc}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
