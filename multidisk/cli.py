"""Command-line front-end: ``multidisk ROMS_ROOT [options]``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import load_config
from .core.context import RunReport
from .engine import MultiDiskEngine
from .exceptions import BaseError, ConfigurationError
from .logging_config import cleanup_logging, setup_logging
from .version import load_version

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(
        prog="multidisk",
        description="Build playlists or catalog patches for multi-disk ROM sets",
    )
    parser.add_argument("roms_root", nargs="?", help="Folder holding one sub-folder per platform")
    parser.add_argument("--config", metavar="PATH", help="YAML or JSON config file")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Report only, write nothing")
    parser.add_argument(
        "--catalog-platform",
        action="append",
        dest="catalog_platforms",
        metavar="ID",
        help="Platform folder handled through its catalog instead of playlists (repeatable)",
    )
    parser.add_argument("--catalog-mode", choices=["patch", "ignore"], default=None)
    parser.add_argument("--catalog-policy", choices=["reconcile", "per_set"], default=None)
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default=None)
    parser.add_argument("--json-logs", action="store_true", default=None, help="Emit JSON log lines")
    parser.add_argument("--version", action="store_true", help="Show version information")
    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "dry_run": args.dry_run,
        "catalog_platforms": args.catalog_platforms,
        "catalog_mode": args.catalog_mode,
        "catalog_policy": args.catalog_policy,
        "logging": {"level": args.log_level, "json": args.json_logs},
    }


def format_summary(report: RunReport) -> List[str]:
    counts = report.counts()
    prefix = "[DRY-RUN] " if report.dry_run else ""
    lines = [f"{prefix}Multi-disk summary"]
    for summary in report.platforms:
        kind = "catalog" if summary.is_catalog else "playlist"
        lines.append(
            f"  {summary.platform} ({kind}): {summary.candidates} candidates, "
            f"{summary.sets} sets, {summary.existing_playlist_disks} disks in playlists"
        )
    for platform_id in report.ignored_platforms:
        lines.append(f"  {platform_id}: ignored")
    lines.append(
        "  playlists: {0} written, {1} overwritten, {2} unchanged, {3} planned".format(
            counts["playlists_written"], counts["playlists_overwritten"],
            counts["playlists_unchanged"], counts["playlists_planned"],
        )
    )
    lines.append(
        "  catalog: {0} hidden, {1} unhidden, {2} renamed, {3} missing records".format(
            counts["records_hidden"], counts["records_unhidden"],
            counts["records_renamed"], counts["missing_records"],
        )
    )
    lines.append(
        "  sets: {0} incomplete, {1} duplicate, {2} suppressed, {3} skipped".format(
            counts["incomplete_sets"], counts["duplicate_sets"],
            counts["suppressed_sets"], counts["skipped_sets"],
        )
    )
    for backup in report.backups:
        lines.append(f"  backup: {backup.backup_path}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)

    if args.version:
        print(f"multidisk v{load_version()}")
        return EXIT_OK

    if not args.roms_root:
        print("error: ROMS_ROOT is required", file=sys.stderr)
        return EXIT_CONFIG

    try:
        config = load_config(args.config, build_overrides(args))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    setup_logging(
        log_level=config.logging.level,
        log_dir=config.logging.log_dir,
        enable_file_logging=config.logging.file_logging,
        structured_json=config.logging.json_output or None,
    )

    try:
        report = MultiDiskEngine(config).run(args.roms_root)
    except BaseError as exc:
        logger.error("Run failed: %s", exc, extra={"error": exc.to_dict()})
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        cleanup_logging()

    for line in format_summary(report):
        print(line)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
