"""Tests for line-level gamelist.xml patching."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from multidisk.core.filename_parser import parse_filename
from multidisk.core.models import Platform, SelectedSet
from multidisk.exceptions import BackupError, CatalogError
from multidisk.exports.catalog_patch import (
    RESULT_CHANGED,
    RESULT_MISSING,
    RESULT_UNCHANGED,
    CatalogPatcher,
    CatalogPatchWriter,
    record_path_for,
)

DISK1 = "./Game (Disk 1 of 2).adf"
DISK2 = "./Game (Disk 2 of 2).adf"


@pytest.fixture
def platform(tmp_path: Path) -> Platform:
    return Platform("amiga", str(tmp_path), is_catalog=True)


def _write_catalog(platform: Platform, text: str) -> Path:
    path = Path(platform.root) / "gamelist.xml"
    path.write_bytes(text.encode("utf-8"))
    return path


def _selected(platform: Platform, names) -> SelectedSet:
    members = tuple(parse_filename(name, platform.root) for name in names)
    return SelectedSet(members[0].group_key, None, 2, members)


class TestHideUnhide:
    def test_hide_inserts_after_name_and_unhide_restores(self, platform, make_context, gamelist) -> None:
        original = gamelist([{"path": DISK1, "name": "Game"}, {"path": DISK2, "name": "Game"}])
        _write_catalog(platform, original)
        context = make_context(catalog_platforms=["amiga"])
        state = context.catalogs.get(platform)
        patcher = CatalogPatcher(context)
        line_count = len(state.lines)

        assert patcher.hide(state, DISK2) == RESULT_CHANGED
        assert state.lines[8:11] == [
            f"\t\t<path>{DISK2}</path>\n",
            "\t\t<name>Game</name>\n",
            "\t\t<hidden>true</hidden>\n",
        ]
        assert patcher.is_hidden(state, DISK2)
        assert not patcher.is_hidden(state, DISK1)

        assert patcher.unhide(state, DISK2) == RESULT_CHANGED
        assert len(state.lines) == line_count
        assert state.text == original

    def test_hide_without_name_goes_right_after_path(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK2}]))
        context = make_context()
        state = context.catalogs.get(platform)

        CatalogPatcher(context).hide(state, DISK2)

        assert state.lines[3] == f"\t\t<path>{DISK2}</path>\n"
        assert state.lines[4] == "\t\t<hidden>true</hidden>\n"

    def test_hide_is_idempotent(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK2, "name": "Game", "hidden": "true"}]))
        context = make_context()
        state = context.catalogs.get(platform)

        assert CatalogPatcher(context).hide(state, DISK2) == RESULT_UNCHANGED
        assert not state.changed
        assert context.report.catalog_edits == []

    def test_hidden_false_is_flipped_in_place(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK2, "name": "Game", "hidden": "false"}]))
        context = make_context()
        state = context.catalogs.get(platform)
        count = len(state.lines)

        CatalogPatcher(context).hide(state, DISK2)

        assert len(state.lines) == count
        assert "\t\t<hidden>true</hidden>\n" in state.lines

    def test_unhide_leaves_non_true_values(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK2, "hidden": "false"}]))
        context = make_context()
        state = context.catalogs.get(platform)

        assert CatalogPatcher(context).unhide(state, DISK2) == RESULT_UNCHANGED

    def test_hidden_before_name_is_reordered(self, platform, make_context) -> None:
        text = (
            "<gameList>\n"
            "  <game>\n"
            f"    <path>{DISK2}</path>\n"
            "    <hidden>false</hidden>\n"
            "    <name>Game</name>\n"
            "  </game>\n"
            "</gameList>\n"
        )
        _write_catalog(platform, text)
        context = make_context()
        state = context.catalogs.get(platform)

        CatalogPatcher(context).hide(state, DISK2)

        assert state.lines[3:5] == ["    <name>Game</name>\n", "    <hidden>true</hidden>\n"]
        assert [e.action for e in context.report.catalog_edits] == ["hide", "reorder"]

    def test_lookup_is_case_insensitive_and_unescaped(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": "./Tom &amp; Jerry (Disk 2).adf"}]))
        context = make_context()
        state = context.catalogs.get(platform)
        patcher = CatalogPatcher(context)

        assert patcher.find_record(state, "./TOM & JERRY (disk 2).ADF") is not None

    def test_missing_record_is_reported(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK1}]))
        context = make_context()
        state = context.catalogs.get(platform)

        assert CatalogPatcher(context).hide(state, DISK2) == RESULT_MISSING
        assert [m.record_path for m in context.report.missing] == [DISK2]
        assert not state.changed

    def test_crlf_catalog_keeps_crlf(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK2, "name": "Game"}], newline="\r\n"))
        context = make_context()
        state = context.catalogs.get(platform)

        CatalogPatcher(context).hide(state, DISK2)

        assert "\t\t<hidden>true</hidden>\r\n" in state.lines
        assert all(line.endswith("\r\n") for line in state.lines)

    def test_dry_run_reports_without_touching_lines(self, platform, make_context, gamelist) -> None:
        original = gamelist([{"path": DISK2, "name": "Game"}])
        _write_catalog(platform, original)
        context = make_context(dry_run=True)
        state = context.catalogs.get(platform)

        assert CatalogPatcher(context).hide(state, DISK2) == RESULT_CHANGED
        assert state.text == original
        assert not state.changed
        assert context.report.catalog_edits[0].detail == "(dry-run)"


class TestUntouchedRecords:
    def test_other_records_stay_byte_identical(self, platform, make_context) -> None:
        original = (
            '<?xml version="1.0" encoding="UTF-8"?>\r\n'
            "<gameList>\r\n"
            "<!-- scraped -->\r\n"
            '\t<game id="12" source="ScreenScraper.fr">\r\n'
            "\t\t<path>./Alpha.adf</path>\r\n"
            "\t\t<name>Alpha &amp; Omega</name>\r\n"
            "\t\t<desc>Two\r\nlines</desc>\r\n"
            "\t</game>\r\n"
            "\t<game>\r\n"
            f"\t\t<path>{DISK2}</path>\r\n"
            "\t\t<name>Game</name>\r\n"
            "\t\t<image>./media/images/game.png</image>\r\n"
            "\t</game>\r\n"
            "  <folder><path>./sub</path></folder>\r\n"
            "</gameList>"
        )
        path = _write_catalog(platform, original)
        context = make_context()
        writer = CatalogPatchWriter(context)
        state = context.catalogs.get(platform)

        writer.patcher.hide(state, DISK2)
        writer.flush_all()

        patched = path.read_bytes().decode("utf-8")
        assert patched != original
        assert patched.replace("\t\t<hidden>true</hidden>\r\n", "", 1) == original


class TestCanonicalNames:
    def test_disk_one_name_propagates(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([
            {"path": DISK1, "name": "Game"},
            {"path": DISK2, "name": "Game Disk 2"},
        ]))
        context = make_context()
        state = context.catalogs.get(platform)
        patcher = CatalogPatcher(context)

        patcher.enforce_canonical_name(state, [DISK1, DISK2], "Fallback")

        assert patcher.get_name(state, DISK2) == "Game"
        assert [e.action for e in context.report.catalog_edits] == ["rename"]

    def test_equal_names_with_different_escaping_are_left_alone(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([
            {"path": DISK1, "name": "Baldur's Gate"},
            {"path": DISK2, "name": "Baldur&apos;s Gate"},
        ]))
        context = make_context()
        state = context.catalogs.get(platform)
        patcher = CatalogPatcher(context)

        patcher.enforce_canonical_name(state, [DISK1, DISK2], "Fallback")

        assert patcher.get_name(state, DISK2) == "Baldur&apos;s Gate"
        assert context.report.catalog_edits == []
        assert state.changed is False

    def test_fallback_name_is_escaped(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK1}, {"path": DISK2}]))
        context = make_context()
        state = context.catalogs.get(platform)
        patcher = CatalogPatcher(context)

        patcher.enforce_canonical_name(state, [DISK1, DISK2], "Tom & Jerry")

        assert patcher.get_name(state, DISK1) is None
        assert patcher.get_name(state, DISK2) == "Tom &amp; Jerry"


class TestPatchWriter:
    def test_complete_set_hides_secondaries(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([
            {"path": DISK1, "name": "Game", "hidden": "true"},
            {"path": DISK2, "name": "Game"},
        ]))
        context = make_context(catalog_platforms=["amiga"])
        writer = CatalogPatchWriter(context)
        selected = _selected(platform, ["Game (Disk 1 of 2).adf", "Game (Disk 2 of 2).adf"])

        writer.apply_set(platform, "Game", selected)

        state = context.catalogs.get(platform)
        assert not writer.patcher.is_hidden(state, DISK1)
        assert writer.patcher.is_hidden(state, DISK2)
        entry = context.report.primaries[0]
        assert entry.record_path == DISK1
        assert not entry.missing_members

    def test_missing_member_annotates_primary(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK1, "name": "Game"}]))
        context = make_context(catalog_platforms=["amiga"])
        writer = CatalogPatchWriter(context)

        writer.apply_set(platform, "Game", _selected(platform, ["Game (Disk 1 of 2).adf", "Game (Disk 2 of 2).adf"]))

        assert context.report.primaries[0].missing_members
        assert [m.record_path for m in context.report.missing] == [DISK2]

    def test_missing_catalog_reports_every_record(self, platform, make_context) -> None:
        context = make_context(catalog_platforms=["amiga"])
        writer = CatalogPatchWriter(context)

        writer.apply_set(platform, "Game", _selected(platform, ["Game (Disk 1 of 2).adf", "Game (Disk 2 of 2).adf"]))
        writer.flush_all()

        assert [m.record_path for m in context.report.missing] == [DISK1, DISK2]
        assert not (Path(platform.root) / "gamelist.xml").exists()

    def test_record_path_for_nested_file(self, platform) -> None:
        nested = str(Path(platform.root) / "sub" / "Game.adf")
        assert record_path_for(nested, platform.root) == "./sub/Game.adf"


class TestFlush:
    def test_flush_takes_one_backup(self, platform, make_context, gamelist) -> None:
        original = gamelist([{"path": DISK1, "name": "Game"}, {"path": DISK2, "name": "Game"}])
        path = _write_catalog(platform, original)
        (Path(platform.root) / "gamelist.multidisk-backup.xml").write_text("older", encoding="utf-8")
        context = make_context()
        writer = CatalogPatchWriter(context)
        state = context.catalogs.get(platform)

        writer.patcher.hide(state, DISK2)
        writer.flush_all()
        writer.flush_all()

        backup = Path(platform.root) / "gamelist.multidisk-backup (1).xml"
        assert backup.read_bytes() == original.encode("utf-8")
        assert [b.backup_path for b in context.report.backups] == [str(backup)]
        assert "<hidden>true</hidden>" in path.read_text(encoding="utf-8")

    def test_unchanged_catalog_is_not_written(self, platform, make_context, gamelist) -> None:
        _write_catalog(platform, gamelist([{"path": DISK2, "name": "Game"}]))
        context = make_context()
        writer = CatalogPatchWriter(context)
        state = context.catalogs.get(platform)

        writer.patcher.hide(state, DISK2)
        writer.patcher.unhide(state, DISK2)
        writer.flush_all()

        assert context.report.backups == []
        assert list(Path(platform.root).glob("*backup*")) == []

    def test_backup_failure_aborts_flush(self, platform, make_context, gamelist) -> None:
        original = gamelist([{"path": DISK2, "name": "Game"}])
        path = _write_catalog(platform, original)
        context = make_context()
        writer = CatalogPatchWriter(context)
        writer.patcher.hide(context.catalogs.get(platform), DISK2)

        with patch("multidisk.exports.catalog_patch.backup_file", side_effect=BackupError("disk full")):
            with pytest.raises(BackupError):
                writer.flush_all()

        assert path.read_text(encoding="utf-8") == original

    def test_broken_patch_is_refused(self, platform, make_context, gamelist) -> None:
        original = gamelist([{"path": DISK2, "name": "Game"}])
        path = _write_catalog(platform, original)
        context = make_context()
        state = context.catalogs.get(platform)
        state.lines.insert(3, "\t\t<name>unclosed\n")
        state.changed = True

        with pytest.raises(CatalogError):
            CatalogPatchWriter(context).flush_all()

        assert path.read_text(encoding="utf-8") == original
        assert list(Path(platform.root).glob("*backup*")) == []
