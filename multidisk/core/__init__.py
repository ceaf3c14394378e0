#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
multidisk - Core Package

Filename parsing, grouping, disk-slot selection, naming and same-run
collision handling. Nothing in here writes files.
"""

from .collisions import CollisionResolver, Resolution
from .context import RunContext, RunReport
from .filename_parser import normalize_disk_token, normalize_side_token, parse_filename
from .grouping import GroupIndex, StrictGroup
from .models import Candidate, Platform, PlatformScan, SelectedSet
from .naming import build_set_name
from .scanner import count_playlist_disks, discover_platforms, scan_platform
from .selector import DiskSlotSelector, SelectionResult, SelectionStatus

__all__ = [
    "Candidate",
    "CollisionResolver",
    "DiskSlotSelector",
    "GroupIndex",
    "Platform",
    "PlatformScan",
    "Resolution",
    "RunContext",
    "RunReport",
    "SelectedSet",
    "SelectionResult",
    "SelectionStatus",
    "StrictGroup",
    "build_set_name",
    "count_playlist_disks",
    "discover_platforms",
    "normalize_disk_token",
    "normalize_side_token",
    "parse_filename",
    "scan_platform",
]
