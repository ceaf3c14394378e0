from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Optional

import pytest

from multidisk.config.models import MultiDiskConfig
from multidisk.core.context import RunContext, RunReport
from multidisk.exports.catalog_patch import CatalogStore


def pytest_configure() -> None:
    """Ensure pytest base temp directory exists for CI runs."""

    repo_root = Path(__file__).resolve().parents[2]
    base_temp = repo_root / "temp" / "pytest"
    base_temp.mkdir(parents=True, exist_ok=True)


def touch_files(folder: Path, names: Iterable[str]) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    for name in names:
        target = folder / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(b"\x00")
    return folder


def gamelist_text(records: Iterable[dict], newline: str = "\n") -> str:
    """Build a gamelist.xml the way EmulationStation writes it (tab indented)."""
    lines = ['<?xml version="1.0"?>', "<gameList>"]
    for record in records:
        lines.append("\t<game>")
        lines.append(f"\t\t<path>{record['path']}</path>")
        if "name" in record:
            lines.append(f"\t\t<name>{record['name']}</name>")
        if "hidden" in record:
            lines.append(f"\t\t<hidden>{record['hidden']}</hidden>")
        lines.append("\t\t<rating>0</rating>")
        lines.append("\t</game>")
    lines.append("</gameList>")
    return newline.join(lines) + newline


@pytest.fixture
def rom_tree(tmp_path: Path) -> Callable[..., Path]:
    """Create ``<tmp>/roms/<platform>/`` with the given files; returns the platform folder."""

    def _make(platform: str, names: Iterable[str], catalog: Optional[str] = None) -> Path:
        folder = touch_files(tmp_path / "roms" / platform, names)
        if catalog is not None:
            (folder / "gamelist.xml").write_bytes(catalog.encode("utf-8"))
        return folder

    return _make


@pytest.fixture
def roms_root(tmp_path: Path) -> Path:
    root = tmp_path / "roms"
    root.mkdir(exist_ok=True)
    return root


@pytest.fixture
def make_context() -> Callable[..., RunContext]:
    def _make(**settings) -> RunContext:
        config = MultiDiskConfig(**settings)
        return RunContext(
            config=config,
            report=RunReport(dry_run=config.dry_run),
            catalogs=CatalogStore(config.catalog_filename, config.backup_suffix),
        )

    return _make


@pytest.fixture
def gamelist() -> Callable[..., str]:
    return gamelist_text
