from __future__ import annotations

from pathlib import Path

import pytest

from multidisk.config.models import MultiDiskConfig
from multidisk.core.scanner import count_playlist_disks, discover_platforms, make_platform, scan_platform
from multidisk.exceptions import ScannerError


def test_discover_platforms_sorted_and_flagged(rom_tree, roms_root: Path) -> None:
    rom_tree("psx", [])
    rom_tree("Amiga", [])
    (roms_root / ".hidden").mkdir()
    (roms_root / "readme.txt").write_text("x", encoding="utf-8")
    config = MultiDiskConfig(catalog_platforms=["amiga"])

    platforms = discover_platforms(roms_root, config)

    assert [p.platform_id for p in platforms] == ["Amiga", "psx"]
    assert [p.is_catalog for p in platforms] == [True, False]


def test_discover_platforms_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(ScannerError):
        discover_platforms(tmp_path / "nope", MultiDiskConfig())


def test_scan_skips_ignored_files_and_sheet_tracks(rom_tree) -> None:
    folder = rom_tree("psx", [
        "Game (Disc 1).cue",
        "Game (Disc 1).bin",
        "Game (Disc 2).cue",
        "Game (Disc 2).bin",
        "Game.m3u",
        "Game (Disc 1).png",
        "Solo.bin",
        "sub/Other (Disk 1).chd",
    ], catalog="<gameList/>")
    config = MultiDiskConfig()

    scan = scan_platform(make_platform(folder, config), config)

    names = sorted(c.file_name for c in scan.candidates)
    assert names == ["Game (Disc 1).cue", "Game (Disc 2).cue", "Other (Disk 1).chd"]
    assert scan.sheet_tracks_skipped == 2
    assert scan.files_seen == 6
    nested = [c for c in scan.candidates if c.file_name.startswith("Other")][0]
    assert nested.directory == str(folder.resolve() / "sub")


def test_count_playlist_disks(rom_tree) -> None:
    folder = rom_tree("psx", [])
    (folder / "A.m3u").write_text("A (Disc 1).cue\nA (Disc 2).cue\n", encoding="utf-8")
    (folder / "B.M3U").write_text("#EXTM3U\n\nB (Disc 1).cue\r\nB (Disc 2).cue\r\nB (Disc 3).cue", encoding="utf-8")
    (folder / "notes.txt").write_text("x\ny\n", encoding="utf-8")

    assert count_playlist_disks(folder) == 5
    assert count_playlist_disks(folder / "missing") == 0
