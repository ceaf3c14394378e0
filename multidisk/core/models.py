#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
multidisk - Core Models

Candidates are produced once per file by the filename parser and never
mutated afterwards. Groups and selected sets are derived per run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

TitleKey = Tuple[str, str]
GroupKey = Tuple[str, str, str]


@dataclass(frozen=True)
class Candidate:
    """One ROM file that carries a disk/side designator in its name."""

    file_name: str
    directory: str
    base_prefix: str
    base_tags: Tuple[str, ...] = ()
    alt_tag: Optional[str] = None
    disk_sort: Optional[int] = None
    side_sort: int = 0
    total_disks: Optional[int] = None
    name_hint: Optional[str] = None
    extension: str = ""

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.file_name)

    @property
    def base_tags_key(self) -> str:
        return "".join(self.base_tags)

    @property
    def title_key(self) -> TitleKey:
        return (self.directory, self.base_prefix)

    @property
    def group_key(self) -> GroupKey:
        return (self.directory, self.base_prefix, self.base_tags_key)

    @property
    def slot(self) -> Tuple[int, int]:
        return (self.disk_sort or 0, self.side_sort)

    @property
    def is_usable(self) -> bool:
        """A candidate without a disk value cannot fill any slot."""
        return self.disk_sort is not None

    def non_bang_key(self, marker: str) -> str:
        return "".join(tag for tag in self.base_tags if tag != marker)

    def has_marker(self, marker: str) -> bool:
        return marker in self.base_tags


@dataclass(frozen=True)
class SelectedSet:
    """Members chosen for one (group, alt variant, root total) combination.

    Members are ordered by (disk_sort, side_sort); the first member is the
    primary record of the set.
    """

    group_key: GroupKey
    alt_variant: Optional[str]
    root_total: Optional[int]
    members: Tuple[Candidate, ...]
    missing_positions: Tuple[int, ...] = ()

    @property
    def directory(self) -> str:
        return self.group_key[0]

    @property
    def base_prefix(self) -> str:
        return self.group_key[1]

    @property
    def base_tags_key(self) -> str:
        return self.group_key[2]

    @property
    def is_multi_disk(self) -> bool:
        return len(self.members) >= 2

    @property
    def is_complete(self) -> bool:
        return not self.missing_positions

    @property
    def primary(self) -> Candidate:
        return self.members[0]

    @property
    def secondaries(self) -> Tuple[Candidate, ...]:
        return self.members[1:]

    @property
    def signature(self) -> Tuple[str, ...]:
        return tuple(os.path.normcase(os.path.abspath(m.path)) for m in self.members)


@dataclass(frozen=True)
class Platform:
    """One platform folder directly below the ROM root."""

    platform_id: str
    root: str
    is_catalog: bool = False

    def catalog_path(self, catalog_filename: str) -> str:
        return os.path.join(self.root, catalog_filename)


@dataclass
class PlatformScan:
    platform: Platform
    candidates: list = field(default_factory=list)
    files_seen: int = 0
    sheet_tracks_skipped: int = 0
