"""ROM tree enumeration.

Every immediate sub-directory of the ROM root is a platform. Each platform is
walked once, in sorted order, and every remaining filename is handed to the
filename parser. Track files of a cue sheet (same stem as a sibling
``.cue``/``.gdi``/... file) are not standalone disks and are skipped.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, List, Tuple, Union

from ..config.models import MultiDiskConfig
from ..exceptions import ScannerError
from .filename_parser import parse_filename
from .models import Platform, PlatformScan

logger = logging.getLogger(__name__)


def discover_platforms(roms_root: Union[str, Path], config: MultiDiskConfig) -> List[Platform]:
    root = Path(roms_root)
    if not root.is_dir():
        raise ScannerError("ROM root is not a directory", file_path=str(root))

    platforms: List[Platform] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name.lower()):
        if not entry.is_dir() or entry.name.startswith("."):
            continue
        platforms.append(Platform(
            platform_id=entry.name,
            root=str(entry.resolve()),
            is_catalog=config.is_catalog_platform(entry.name),
        ))
    logger.debug("Discovered %d platform folders under %s", len(platforms), root)
    return platforms


def make_platform(path: Union[str, Path], config: MultiDiskConfig) -> Platform:
    folder = Path(path)
    if not folder.is_dir():
        raise ScannerError("Platform folder is not a directory", file_path=str(folder))
    return Platform(
        platform_id=folder.name,
        root=str(folder.resolve()),
        is_catalog=config.is_catalog_platform(folder.name),
    )


def _walk_sorted(root: str) -> Iterator[Tuple[str, List[str]]]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        yield dirpath, sorted(filenames)


def _sheet_stems(filenames: List[str], sheet_extensions: List[str]) -> set:
    stems = set()
    for name in filenames:
        stem, ext = os.path.splitext(name)
        if ext.lower() in sheet_extensions:
            stems.add(stem.lower())
    return stems


def scan_platform(platform: Platform, config: MultiDiskConfig) -> PlatformScan:
    """Parse every eligible file of ``platform`` into candidates."""
    scan = PlatformScan(platform=platform)
    ignored = set(config.ignored_extensions)
    ignored.add(config.playlist_extension)
    sheets = set(config.sheet_extensions)

    for dirpath, filenames in _walk_sorted(platform.root):
        sheet_stems = _sheet_stems(filenames, config.sheet_extensions)
        for name in filenames:
            stem, ext = os.path.splitext(name)
            ext = ext.lower()
            if ext in ignored or name == config.catalog_filename:
                continue
            scan.files_seen += 1
            if ext not in sheets and stem.lower() in sheet_stems:
                scan.sheet_tracks_skipped += 1
                continue
            candidate = parse_filename(name, dirpath, hint_max_length=config.name_hint_max_length)
            if candidate is not None:
                scan.candidates.append(candidate)

    logger.info(
        "%s: %d files, %d multi-disk candidates",
        platform.platform_id, scan.files_seen, len(scan.candidates),
    )
    return scan


def read_playlist_entries(playlist_path: Union[str, Path]) -> List[str]:
    """Non-blank, non-comment entries of a list-style playlist file."""
    path = Path(playlist_path)
    try:
        content = path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as exc:
        logger.warning("Could not read playlist %s: %s", path, exc)
        return []

    entries: List[str] = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(line)
    return entries


def count_playlist_disks(root: Union[str, Path], extension: str = ".m3u") -> int:
    """Total disk entries across the playlists directly in ``root``."""
    folder = Path(root)
    if not folder.is_dir():
        return 0
    total = 0
    for entry in sorted(folder.iterdir()):
        if entry.is_file() and entry.suffix.lower() == extension:
            total += len(read_playlist_entries(entry))
    return total
