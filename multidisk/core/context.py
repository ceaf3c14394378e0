"""Run-scoped state and the typed outcome report.

One :class:`RunContext` is created per run and passed explicitly through
grouping, selection, writing and reconciliation. Every report bucket is an
append-only list of frozen outcome records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Literal, Optional, Set, Tuple

from ..config.models import MultiDiskConfig
from .models import SelectedSet

if TYPE_CHECKING:
    from ..exports.catalog_patch import CatalogStore

PlaylistStatus = Literal["written", "unchanged", "overwritten", "would_write", "would_overwrite"]
CatalogAction = Literal["hide", "unhide", "rename", "reorder"]


@dataclass(frozen=True)
class PlaylistOutcome:
    platform: str
    path: str
    name: str
    status: PlaylistStatus
    members: int


@dataclass(frozen=True)
class CatalogEdit:
    platform: str
    record_path: str
    action: CatalogAction
    detail: str = ""


@dataclass(frozen=True)
class PrimaryEntry:
    platform: str
    record_path: str
    set_name: str
    members: int
    missing_members: bool = False


@dataclass(frozen=True)
class MissingRecord:
    platform: str
    record_path: str
    catalog_path: str


@dataclass(frozen=True)
class IncompleteSet:
    platform: str
    directory: str
    set_name: str
    expected_total: Optional[int]
    missing_positions: Tuple[int, ...]


@dataclass(frozen=True)
class DuplicateSet:
    platform: str
    set_name: str
    identity: str
    original_identity: str


@dataclass(frozen=True)
class SuppressedSet:
    platform: str
    directory: str
    base_prefix: str
    base_tags_key: str
    alt_variant: Optional[str]


@dataclass(frozen=True)
class SkippedSet:
    platform: str
    directory: str
    base_prefix: str
    reason: str


@dataclass(frozen=True)
class BackupRecord:
    platform: str
    catalog_path: str
    backup_path: str


@dataclass(frozen=True)
class PlatformSummary:
    platform: str
    is_catalog: bool
    files_seen: int
    candidates: int
    groups: int
    sets: int
    existing_playlist_disks: int


@dataclass(frozen=True)
class ConfirmedSet:
    """A complete, emitted set; the reconciliation sweep works from these."""

    platform: str
    name: str
    selected: SelectedSet


@dataclass
class RunReport:
    dry_run: bool = False
    playlists: List[PlaylistOutcome] = field(default_factory=list)
    catalog_edits: List[CatalogEdit] = field(default_factory=list)
    primaries: List[PrimaryEntry] = field(default_factory=list)
    missing: List[MissingRecord] = field(default_factory=list)
    incomplete: List[IncompleteSet] = field(default_factory=list)
    duplicates: List[DuplicateSet] = field(default_factory=list)
    suppressed: List[SuppressedSet] = field(default_factory=list)
    skipped: List[SkippedSet] = field(default_factory=list)
    backups: List[BackupRecord] = field(default_factory=list)
    ignored_platforms: List[str] = field(default_factory=list)
    platforms: List[PlatformSummary] = field(default_factory=list)

    def playlists_with(self, *statuses: str) -> List[PlaylistOutcome]:
        return [p for p in self.playlists if p.status in statuses]

    def edits_with(self, action: str) -> List[CatalogEdit]:
        return [e for e in self.catalog_edits if e.action == action]

    @property
    def write_count(self) -> int:
        """Playlists actually written to disk this run."""
        return len(self.playlists_with("written", "overwritten"))

    def counts(self) -> Dict[str, int]:
        return {
            "playlists_written": len(self.playlists_with("written")),
            "playlists_overwritten": len(self.playlists_with("overwritten")),
            "playlists_unchanged": len(self.playlists_with("unchanged")),
            "playlists_planned": len(self.playlists_with("would_write", "would_overwrite")),
            "records_hidden": len(self.edits_with("hide")),
            "records_unhidden": len(self.edits_with("unhide")),
            "records_renamed": len(self.edits_with("rename")),
            "primaries": len(self.primaries),
            "missing_records": len(self.missing),
            "incomplete_sets": len(self.incomplete),
            "duplicate_sets": len(self.duplicates),
            "suppressed_sets": len(self.suppressed),
            "skipped_sets": len(self.skipped),
            "backups": len(self.backups),
        }


@dataclass
class RunContext:
    config: MultiDiskConfig
    report: RunReport
    catalogs: "CatalogStore"
    claimed_identities: Set[str] = field(default_factory=set)
    signatures: Dict[Tuple[str, ...], str] = field(default_factory=dict)
    used_files: Set[str] = field(default_factory=set)
    incomplete_signatures: Set[Tuple[str, ...]] = field(default_factory=set)
    confirmed: Dict[str, List[ConfirmedSet]] = field(default_factory=dict)

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    def confirm(self, platform: str, name: str, selected: SelectedSet) -> None:
        self.confirmed.setdefault(platform, []).append(ConfirmedSet(platform, name, selected))
