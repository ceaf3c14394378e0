"""Tests for the catalog reconciliation sweep."""

from __future__ import annotations

from pathlib import Path

from multidisk.core.filename_parser import parse_filename
from multidisk.core.models import Platform, SelectedSet
from multidisk.exports.catalog_patch import CatalogPatcher
from multidisk.exports.reconcile import hidden_targets, reconcile_platform


def _selected(directory: str, names) -> SelectedSet:
    members = tuple(parse_filename(name, directory) for name in names)
    return SelectedSet(members[0].group_key, None, None, members)


def test_primaries_are_never_hidden(tmp_path: Path, make_context) -> None:
    root = str(tmp_path)
    platform = Platform("amiga", root, is_catalog=True)
    context = make_context(catalog_platforms=["amiga"])
    context.confirm("amiga", "A", _selected(root, ["A (Disk 1).adf", "A (Disk 2).adf"]))
    # a second reading that treats A's second disk as its own primary
    context.confirm("amiga", "A2", _selected(root, ["A (Disk 2).adf", "A (Disk 3).adf"]))

    targets = hidden_targets(context, platform)

    assert targets == {str(tmp_path / "A (Disk 3).adf")}


def test_nested_folders_are_out_of_reach(tmp_path: Path, make_context) -> None:
    nested = str(tmp_path / "sub")
    platform = Platform("amiga", str(tmp_path), is_catalog=True)
    context = make_context(catalog_platforms=["amiga"])
    context.confirm("amiga", "B", _selected(nested, ["B (Disk 1).adf", "B (Disk 2).adf"]))

    assert hidden_targets(context, platform) == set()


def test_sweep_unhides_stale_and_hides_targets(tmp_path: Path, make_context, gamelist) -> None:
    root = str(tmp_path)
    (tmp_path / "gamelist.xml").write_text(gamelist([
        {"path": "./A (Disk 1).adf", "name": "A"},
        {"path": "./A (Disk 2).adf", "name": "A"},
        {"path": "./Old (Disk 1).adf", "name": "Old", "hidden": "true"},
        {"path": "./Loose.adf", "name": "Loose", "hidden": "true"},
    ]), encoding="utf-8")
    platform = Platform("amiga", root, is_catalog=True)
    context = make_context(catalog_platforms=["amiga"])
    selected = _selected(root, ["A (Disk 1).adf", "A (Disk 2).adf"])
    context.confirm("amiga", "A", selected)
    candidates = list(selected.members) + [parse_filename("Old (Disk 1).adf", root)]

    reconcile_platform(context, platform, candidates)

    state = context.catalogs.get(platform)
    patcher = CatalogPatcher(context)
    assert patcher.is_hidden(state, "./A (Disk 2).adf")
    assert not patcher.is_hidden(state, "./A (Disk 1).adf")
    assert not patcher.is_hidden(state, "./Old (Disk 1).adf")
    # not a candidate, so user-hidden entries stay as they are
    assert patcher.is_hidden(state, "./Loose.adf")
    assert [e.action for e in context.report.catalog_edits if e.action != "reorder"] == ["unhide", "hide"]


def test_sweep_without_catalog_is_silent(tmp_path: Path, make_context) -> None:
    platform = Platform("amiga", str(tmp_path), is_catalog=True)
    context = make_context(catalog_platforms=["amiga"])

    reconcile_platform(context, platform, [parse_filename("A (Disk 1).adf", str(tmp_path))])

    assert context.report.missing == []
    assert context.report.catalog_edits == []
