#!/usr/bin/env python3
"""
altsource CLI

Command-line interface for validating, inspecting and publishing a source
catalog document.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from common.exceptions import SourceError
from common.logging_config import setup_logging

from .catalog import CatalogStore
from .config import ToolConfig
from .enricher import SourceEnricher
from .models import format_size, parse_version_date
from .schema import schema_document
from .validator import validate_document

logger = logging.getLogger(__name__)


def load_store(path: str, strict: bool = True) -> CatalogStore:
    """Load the catalog at ``path``."""
    store = CatalogStore(path)
    store.load(strict=strict)
    return store


def make_enricher(args) -> SourceEnricher:
    config = ToolConfig.load(Path(args.config) if getattr(args, "config", None) else None)
    enricher = SourceEnricher(config)
    enricher.set_progress_callback(progress_callback)
    return enricher


def progress_callback(current: int, total: int, message: str):
    """Display per-request progress on stderr."""
    print(f"  [{current}/{total}] {message}", file=sys.stderr)


def cmd_validate(args):
    """Validate a source document."""
    store = CatalogStore(args.path)
    report = validate_document(store.read_document())

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0 if report.ok else 1

    if report.ok:
        print(f"{args.path}: OK")
        return 0

    print(f"{args.path}: {len(report.issues)} issue(s)\n")
    for issue in report.issues:
        print(f"  {issue}")
    return 1


def cmd_list(args):
    """List apps in the source."""
    store = load_store(args.path, strict=False)
    catalog = store.catalog

    print(f"{catalog.name} ({catalog.identifier})")
    if not catalog.apps:
        print("No apps listed.")
        return 0

    print(f"{len(catalog.apps)} app(s):\n")
    for app in catalog.apps:
        beta = " [beta]" if app.beta else ""
        print(f"  {app.bundle_identifier}")
        print(f"    {app.name} {app.version}{beta}")
    return 0


def cmd_info(args):
    """Show detailed app information."""
    store = load_store(args.path, strict=False)
    app = store.get(args.bundle_id)

    if not app:
        print(f"App not found: {args.bundle_id}", file=sys.stderr)
        return 1

    print(f"Name:        {app.name}")
    print(f"Bundle ID:   {app.bundle_identifier}")
    print(f"Developer:   {app.developer_name}")
    if app.subtitle:
        print(f"Subtitle:    {app.subtitle}")
    print(f"Version:     {app.version}{' (beta)' if app.beta else ''}")
    print(f"Date:        {app.version_date}")
    if app.version_description:
        print(f"Notes:       {app.version_description}")
    if isinstance(app.size, int) and not isinstance(app.size, bool):
        print(f"Size:        {format_size(app.size)} ({app.size} bytes)")
    print(f"Download:    {app.download_url}")
    print(f"Icon:        {app.icon_url}")
    if app.tint_color:
        print(f"Tint:        #{app.tint_color}")
    if app.screenshot_urls:
        print(f"Screenshots: {len(app.screenshot_urls)}")
    if app.localized_description:
        print(f"\n{app.localized_description}")
    return 0


def cmd_search(args):
    """Search apps by text."""
    store = load_store(args.path, strict=False)
    results = store.search(query=args.query or "", include_beta=not args.no_beta)

    if not results:
        print(f"No apps found for: {args.query or '(all)'}")
        return 0

    print(f"Found {len(results)} app(s):\n")
    for app in results:
        print(f"  {app.bundle_identifier}")
        print(f"    {app.name} {app.version}")
        if app.subtitle:
            print(f"    {app.subtitle[:80]}")
        print()
    return 0


def cmd_init(args):
    """Create a new, empty source."""
    path = Path(args.path)
    if path.exists() and not args.force:
        print(f"{path} already exists (use --force to overwrite)", file=sys.stderr)
        return 1

    store = CatalogStore.create(path, name=args.name, identifier=args.identifier)
    store.save()
    print(f"Created {path}")
    return 0


def cmd_remove(args):
    """Remove an app from the source."""
    store = load_store(args.path)
    app = store.remove(args.bundle_id)
    store.save(backup=args.backup)
    print(f"Removed {app.name} ({app.bundle_identifier})")
    return 0


def cmd_release(args):
    """Publish a new version of an app."""
    store = load_store(args.path)

    if args.date:
        try:
            parse_version_date(args.date)
        except ValueError as e:
            print(f"Invalid --date: {e}", file=sys.stderr)
            return 2

    previous = store.require(args.bundle_id)

    size = args.size
    if args.fetch_size:
        with make_enricher(args) as enricher:
            print(f"Measuring {args.url}...")
            size = enricher.fetch_size(args.url)

    release = store.publish_release(
        args.bundle_id,
        version=args.version,
        download_url=args.url,
        version_date=args.date,
        description=args.notes,
        size=size,
        beta=args.beta,
    )
    store.save(backup=args.backup)

    print(f"{release.name}: {previous.version} -> {release.version} ({release.version_date})")
    if size is not None:
        print(f"Size: {format_size(size)}")
    return 0


def cmd_check_urls(args):
    """Check that every URL in the source answers."""
    store = load_store(args.path, strict=False)
    if args.bundle_id:
        store.require(args.bundle_id)

    with make_enricher(args) as enricher:
        results = enricher.check_catalog(store.catalog, bundle_id=args.bundle_id)

    failed = [r for r in results if not r.ok]

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return 1 if failed else 0

    print(f"Checked {len(results)} URL(s), {len(failed)} failed")
    for r in failed:
        print(f"  {r.bundle_id} {r.field}: {r.url}")
        print(f"    {r.error}")
    return 1 if failed else 0


def cmd_enrich(args):
    """Recompute app sizes from their download URLs."""
    store = load_store(args.path)
    if args.bundle_id:
        store.require(args.bundle_id)

    with make_enricher(args) as enricher:
        result = enricher.enrich_sizes(store.catalog, bundle_id=args.bundle_id)

    for change in result.changes:
        if change.changed:
            print(f"  {change.bundle_id}: {change.old_size} -> {change.new_size}")
        else:
            print(f"  {change.bundle_id}: unchanged ({change.new_size})")
    for bundle_id, error in result.failures:
        print(f"  {bundle_id}: {error.message}", file=sys.stderr)

    changed = any(c.changed for c in result.changes)
    if changed and not args.dry_run:
        for app in result.catalog.apps:
            if store.get(app.bundle_identifier) is not app:
                store.replace(app)
        store.save(backup=args.backup)
        print(f"Saved {args.path}")
    elif changed:
        print("Dry run, nothing written.")

    return 0 if result.ok else 1


def cmd_schema(args):
    """Print the JSON Schema for source documents."""
    print(json.dumps(schema_document(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="altsource",
        description="Maintain an app source catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  altsource validate source.json
  altsource release source.json com.example.App --version 1.1 \\
      --url https://example.com/App.ipa --fetch-size
  altsource check-urls source.json
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--log-file", help="Also write a debug log to this file")
    parser.add_argument("--json-logs", action="store_true", help="Write the log file as JSON lines")
    parser.add_argument("--config", help="Config file (default: ~/.config/altsource/config.json)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # validate
    validate_p = subparsers.add_parser("validate", help="Validate a source")
    validate_p.add_argument("path", help="Source JSON file")
    validate_p.add_argument("--json", action="store_true", help="Machine-readable output")
    validate_p.set_defaults(func=cmd_validate)

    # list
    list_p = subparsers.add_parser("list", help="List apps")
    list_p.add_argument("path", help="Source JSON file")
    list_p.set_defaults(func=cmd_list)

    # info
    info_p = subparsers.add_parser("info", help="Show app details")
    info_p.add_argument("path", help="Source JSON file")
    info_p.add_argument("bundle_id", help="Bundle identifier")
    info_p.set_defaults(func=cmd_info)

    # search
    search_p = subparsers.add_parser("search", help="Search apps")
    search_p.add_argument("path", help="Source JSON file")
    search_p.add_argument("query", nargs="?", default="", help="Search query")
    search_p.add_argument("--no-beta", action="store_true", help="Skip beta apps")
    search_p.set_defaults(func=cmd_search)

    # init
    init_p = subparsers.add_parser("init", help="Create a new source")
    init_p.add_argument("path", help="Source JSON file to create")
    init_p.add_argument("--name", required=True, help="Source name")
    init_p.add_argument("--identifier", required=True, help="Reverse-domain source identifier")
    init_p.add_argument("--force", action="store_true", help="Overwrite an existing file")
    init_p.set_defaults(func=cmd_init)

    # remove
    remove_p = subparsers.add_parser("remove", help="Remove an app")
    remove_p.add_argument("path", help="Source JSON file")
    remove_p.add_argument("bundle_id", help="Bundle identifier")
    remove_p.add_argument("--backup", action="store_true", help="Keep the previous file as .bak")
    remove_p.set_defaults(func=cmd_remove)

    # release
    release_p = subparsers.add_parser("release", help="Publish a new app version")
    release_p.add_argument("path", help="Source JSON file")
    release_p.add_argument("bundle_id", help="Bundle identifier")
    release_p.add_argument("--version", required=True, help="New version string")
    release_p.add_argument("--url", required=True, help="Download URL of the new build")
    release_p.add_argument("--date", help="Version date, YYYY-MM-DD (default: today)")
    release_p.add_argument("--notes", help="Version description")
    beta_group = release_p.add_mutually_exclusive_group()
    beta_group.add_argument("--beta", dest="beta", action="store_true", default=None,
                            help="Mark the release as beta")
    beta_group.add_argument("--stable", dest="beta", action="store_false",
                            help="Mark the release as stable")
    size_group = release_p.add_mutually_exclusive_group()
    size_group.add_argument("--size", type=int, help="Build size in bytes")
    size_group.add_argument("--fetch-size", action="store_true",
                            help="Measure the size from the download URL")
    release_p.add_argument("--backup", action="store_true", help="Keep the previous file as .bak")
    release_p.set_defaults(func=cmd_release)

    # check-urls
    check_p = subparsers.add_parser("check-urls", help="Verify that all URLs answer")
    check_p.add_argument("path", help="Source JSON file")
    check_p.add_argument("--bundle-id", help="Only check this app")
    check_p.add_argument("--json", action="store_true", help="Machine-readable output")
    check_p.set_defaults(func=cmd_check_urls)

    # enrich
    enrich_p = subparsers.add_parser("enrich", help="Recompute app sizes")
    enrich_p.add_argument("path", help="Source JSON file")
    enrich_p.add_argument("--bundle-id", help="Only enrich this app")
    enrich_p.add_argument("--dry-run", action="store_true", help="Report without writing")
    enrich_p.add_argument("--backup", action="store_true", help="Keep the previous file as .bak")
    enrich_p.set_defaults(func=cmd_enrich)

    # schema
    schema_p = subparsers.add_parser("schema", help="Print the JSON Schema")
    schema_p.set_defaults(func=cmd_schema)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        log_file=Path(args.log_file) if args.log_file else None,
        json_logs=args.json_logs,
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except SourceError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        report = getattr(e, "report", None)
        if report is not None:
            for issue in report.issues:
                print(f"  {issue}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
