"""Run orchestration.

One run walks every platform folder below the ROM root:

    scan -> group -> select -> name -> resolve -> write

then, for catalog platforms, reconciles hidden state and flushes each
catalog once. Everything a run decides is recorded in its
:class:`~multidisk.core.context.RunReport`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from .config.models import MultiDiskConfig
from .core.collisions import CollisionResolver
from .core.context import IncompleteSet, PlatformSummary, RunContext, RunReport, SkippedSet, SuppressedSet
from .core.grouping import GroupIndex
from .core.models import Platform, PlatformScan
from .core.naming import build_set_name
from .core.scanner import count_playlist_disks, discover_platforms, make_platform, scan_platform
from .core.selector import DiskSlotSelector, SelectionResult, SelectionStatus
from .exports.catalog_patch import CatalogPatchWriter, CatalogStore
from .exports.playlist_writer import PlaylistWriter
from .exports.reconcile import reconcile_platform

logger = logging.getLogger(__name__)


class MultiDiskEngine:
    """Infers multi-disk sets and writes playlists or catalog patches."""

    def __init__(self, config: Optional[MultiDiskConfig] = None):
        self.config = config or MultiDiskConfig()

    def new_context(self) -> RunContext:
        return RunContext(
            config=self.config,
            report=RunReport(dry_run=self.config.dry_run),
            catalogs=CatalogStore(self.config.catalog_filename, self.config.backup_suffix),
        )

    def run(self, roms_root: Union[str, Path]) -> RunReport:
        """Process every platform folder directly below ``roms_root``."""
        context = self.new_context()
        if context.dry_run:
            logger.info("DRY-RUN: no playlist, catalog or backup will be written")

        scans: Dict[str, PlatformScan] = {}
        for platform in discover_platforms(roms_root, self.config):
            scan = self.process_platform(context, platform)
            if scan is not None:
                scans[platform.platform_id] = scan

        self.finish(context, scans)
        return context.report

    def run_platform(self, platform_path: Union[str, Path]) -> RunReport:
        """Process a single platform folder."""
        context = self.new_context()
        platform = make_platform(platform_path, self.config)
        scan = self.process_platform(context, platform)
        self.finish(context, {platform.platform_id: scan} if scan is not None else {})
        return context.report

    def process_platform(self, context: RunContext, platform: Platform) -> Optional[PlatformScan]:
        if platform.is_catalog and self.config.catalog_mode == "ignore":
            logger.info("%s: catalog platform ignored", platform.platform_id)
            context.report.ignored_platforms.append(platform.platform_id)
            return None

        scan = scan_platform(platform, self.config)
        index = GroupIndex(scan.candidates, self.config.preference_marker)
        selector = DiskSlotSelector(index)
        resolver = CollisionResolver(context)

        emitted = 0
        for group in index.iter_groups():
            for result in selector.select(group):
                if self._handle(context, platform, result, resolver):
                    emitted += 1

        context.report.platforms.append(PlatformSummary(
            platform=platform.platform_id,
            is_catalog=platform.is_catalog,
            files_seen=scan.files_seen,
            candidates=len(scan.candidates),
            groups=len(index),
            sets=emitted,
            existing_playlist_disks=count_playlist_disks(platform.root, self.config.playlist_extension),
        ))
        return scan

    def _handle(
        self,
        context: RunContext,
        platform: Platform,
        result: SelectionResult,
        resolver: CollisionResolver,
    ) -> bool:
        selected = result.selected
        report = context.report

        if result.status == SelectionStatus.TOO_FEW:
            report.skipped.append(SkippedSet(
                platform.platform_id, selected.directory, selected.base_prefix, "fewer than two disks",
            ))
            return False
        if result.status == SelectionStatus.SUPPRESSED:
            logger.debug("%s: %s suppressed by preferred sibling", platform.platform_id, selected.base_prefix)
            report.suppressed.append(SuppressedSet(
                platform.platform_id, selected.directory, selected.base_prefix,
                selected.base_tags_key, selected.alt_variant,
            ))
            return False

        name = build_set_name(selected)
        if not name:
            report.skipped.append(SkippedSet(
                platform.platform_id, selected.directory, selected.base_prefix, "empty name",
            ))
            return False

        if not selected.is_complete:
            if selected.signature in context.incomplete_signatures:
                return False
            context.incomplete_signatures.add(selected.signature)
            logger.warning(
                "%s: %s incomplete, missing disk(s) %s of %s",
                platform.platform_id, name,
                ", ".join(str(p) for p in selected.missing_positions), selected.root_total,
            )
            report.incomplete.append(IncompleteSet(
                platform.platform_id, selected.directory, name,
                selected.root_total, selected.missing_positions,
            ))
            if platform.is_catalog:
                CatalogPatchWriter(context).apply_set(platform, name, selected)
            return False

        resolution = resolver.resolve(platform, selected, name)
        if resolution.duplicate:
            return False

        if platform.is_catalog:
            CatalogPatchWriter(context).apply_set(platform, resolution.name, selected)
        else:
            PlaylistWriter(context).write(
                platform, resolution.playlist_path, resolution.name, list(selected.members),
            )
        context.confirm(platform.platform_id, resolution.name, selected)
        return True

    def finish(self, context: RunContext, scans: Dict[str, PlatformScan]) -> None:
        """Reconcile touched catalog platforms, then flush every catalog."""
        if self.config.catalog_policy == "reconcile":
            for platform_id in sorted(scans):
                scan = scans[platform_id]
                if scan.platform.is_catalog and scan.candidates:
                    reconcile_platform(context, scan.platform, scan.candidates)

        CatalogPatchWriter(context).flush_all()

        counts = context.report.counts()
        logger.info(
            "%sRun finished: %d playlists written, %d unchanged, %d records hidden, %d incomplete sets",
            "DRY-RUN: " if context.dry_run else "",
            counts["playlists_written"] + counts["playlists_overwritten"],
            counts["playlists_unchanged"],
            counts["records_hidden"],
            counts["incomplete_sets"],
        )
