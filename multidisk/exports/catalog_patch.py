"""Catalog-patch backend (EmulationStation/Batocera ``gamelist.xml``).

Multi-disk sets on catalog platforms are presented as one entry by hiding
every secondary record. The catalog belongs to the front-end, so it is
edited as text lines: untouched records keep their exact bytes.

Record layout handled here::

    <game>
        <path>./Game (Disk 2 of 2).adf</path>
        <name>Game</name>
        <hidden>true</hidden>
    </game>

Each platform catalog is loaded once per run, mutated in memory, and flushed
at most once after a single backup copy. In dry-run mode every line splice
is a no-op that is still reported.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape, unescape

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as ET

from ..core.context import BackupRecord, CatalogEdit, MissingRecord, PrimaryEntry, RunContext
from ..core.models import Platform, SelectedSet
from ..exceptions import CatalogError, DataError, FileOperationError
from ..utils.backup_utils import backup_file

logger = logging.getLogger(__name__)

_ENTITIES = {"&quot;": '"', "&apos;": "'"}
_ENTITIES_OUT = {'"': "&quot;"}

_PATH_RE = re.compile(r"^(?P<indent>\s*)<path>(?P<value>.*?)</path>\s*$")
_NAME_RE = re.compile(r"^(?P<indent>\s*)(?:<name>(?P<value>.*?)</name>|<name\s*/>)\s*$")
_HIDDEN_RE = re.compile(r"^(?P<indent>\s*)(?:<hidden>(?P<value>.*?)</hidden>|<hidden\s*/>)\s*$")
_RECORD_START_RE = re.compile(r"^\s*<(?:game|folder)(?:\s[^>]*)?>\s*$")
_RECORD_END_RE = re.compile(r"^\s*</(?:game|folder)>\s*$")

RESULT_CHANGED = "changed"
RESULT_UNCHANGED = "unchanged"
RESULT_MISSING = "missing"


def record_path_for(file_path: str, root: str) -> str:
    """Catalog-relative ``./``-prefixed forward-slash path of ``file_path``."""
    rel = os.path.relpath(file_path, root)
    return "./" + rel.replace(os.sep, "/")


def _normalize_record_path(value: str) -> str:
    text = unescape(value.strip(), _ENTITIES).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    return text.lower()


def _line_body(line: str) -> str:
    return line.rstrip("\r\n")


def _line_ending(line: str) -> str:
    return line[len(line.rstrip("\r\n")):]


def _is_true(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def _parses(text: str) -> bool:
    try:
        ET.fromstring(text.lstrip("\ufeff").encode("utf-8"))
    except (ET.ParseError, DefusedXmlException):
        return False
    return True


@dataclass
class RecordSpan:
    """Line indices of one record: ``start``/``end`` bound the fields."""

    start: int
    path_index: int
    end: int


@dataclass
class CatalogState:
    platform_id: str
    root_path: str
    catalog_path: str
    lines: List[str] = field(default_factory=list)
    exists: bool = False
    changed: bool = False
    newline: str = "\n"
    parsed_at_load: bool = False
    backup_path: Optional[str] = None
    flushed: bool = False
    original_text: str = ""

    @property
    def text(self) -> str:
        return "".join(self.lines)

    @classmethod
    def load(cls, platform: Platform, catalog_filename: str) -> "CatalogState":
        catalog_path = platform.catalog_path(catalog_filename)
        state = cls(platform.platform_id, platform.root, catalog_path)
        path = Path(catalog_path)
        if not path.is_file():
            logger.warning("%s: catalog not found at %s", platform.platform_id, catalog_path)
            return state
        try:
            text = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("%s: catalog unreadable (%s)", platform.platform_id, exc)
            return state

        state.original_text = text
        state.lines = text.splitlines(keepends=True)
        state.exists = True
        for line in state.lines:
            ending = _line_ending(line)
            if ending:
                state.newline = ending
                break
        state.parsed_at_load = _parses(text)
        if not state.parsed_at_load:
            logger.warning("%s: catalog is not well-formed XML, editing lines as found", platform.platform_id)
        logger.debug("%s: loaded catalog with %d lines", platform.platform_id, len(state.lines))
        return state


class CatalogStore:
    """Per-run cache of catalog states, one per platform."""

    def __init__(self, catalog_filename: str = "gamelist.xml", backup_suffix: str = ".multidisk-backup"):
        self.catalog_filename = catalog_filename
        self.backup_suffix = backup_suffix
        self._states: Dict[str, CatalogState] = {}

    def get(self, platform: Platform) -> CatalogState:
        state = self._states.get(platform.platform_id)
        if state is None:
            state = CatalogState.load(platform, self.catalog_filename)
            self._states[platform.platform_id] = state
        return state

    def states(self) -> List[CatalogState]:
        return [self._states[key] for key in sorted(self._states)]

    def flush(self, state: CatalogState, *, dry_run: bool) -> Optional[str]:
        """Write ``state`` back once, after backing up the original file.

        Returns the backup path, or ``None`` when nothing was written.
        """
        if not state.exists or not state.changed or state.flushed:
            return None
        if dry_run:
            logger.info("DRY-RUN: would update catalog %s", state.catalog_path)
            return None

        text = state.text
        if text == state.original_text:
            logger.debug("%s: catalog edits cancel out, nothing to write", state.platform_id)
            state.changed = False
            return None
        if state.parsed_at_load and not _parses(text):
            raise CatalogError(
                "Patched catalog is no longer well-formed; not writing it",
                catalog_path=state.catalog_path,
                platform=state.platform_id,
            )

        backup = backup_file(state.catalog_path, suffix=self.backup_suffix)
        state.backup_path = str(backup)
        try:
            with open(state.catalog_path, "w", encoding="utf-8", newline="") as handle:
                handle.write(text)
        except OSError as exc:
            raise FileOperationError(
                f"Cannot write catalog: {exc}", file_path=state.catalog_path, operation="write"
            ) from exc
        state.flushed = True
        logger.info("Updated catalog %s", state.catalog_path)
        return state.backup_path


class CatalogPatcher:
    """Line-level record edits on one run's catalogs."""

    def __init__(self, context: RunContext):
        self.context = context
        self.window = context.config.record_search_window

    @property
    def dry_run(self) -> bool:
        return self.context.dry_run

    # ------------------------------------------------------------------
    # Record lookup
    # ------------------------------------------------------------------

    def find_record(self, state: CatalogState, record_path: str) -> Optional[RecordSpan]:
        if not state.exists:
            return None
        wanted = _normalize_record_path(record_path)
        for index, line in enumerate(state.lines):
            match = _PATH_RE.match(_line_body(line))
            if match and _normalize_record_path(match.group("value")) == wanted:
                return self._bounds(state, index)
        return None

    def _bounds(self, state: CatalogState, path_index: int) -> RecordSpan:
        lines = state.lines
        start = path_index
        lowest = max(0, path_index - self.window)
        for index in range(path_index - 1, lowest - 1, -1):
            body = _line_body(lines[index])
            if _RECORD_START_RE.match(body):
                start = index
                break
            if _RECORD_END_RE.match(body):
                start = index
                break
            start = index

        end = path_index
        highest = min(len(lines) - 1, path_index + self.window)
        for index in range(path_index + 1, highest + 1):
            body = _line_body(lines[index])
            if _RECORD_END_RE.match(body) or _RECORD_START_RE.match(body):
                end = index
                break
            end = index
        return RecordSpan(start, path_index, end)

    def _field(self, state: CatalogState, span: RecordSpan, pattern: re.Pattern) -> Tuple[Optional[int], Optional[str]]:
        for index in range(span.start, span.end + 1):
            if index == span.path_index:
                continue
            match = pattern.match(_line_body(state.lines[index]))
            if match:
                return index, match.group("value")
        return None, None

    def get_name(self, state: CatalogState, record_path: str) -> Optional[str]:
        """Raw (still escaped) name value of a record, ``None`` when absent."""
        span = self.find_record(state, record_path)
        if span is None:
            return None
        _, value = self._field(state, span, _NAME_RE)
        return value

    def is_hidden(self, state: CatalogState, record_path: str) -> bool:
        span = self.find_record(state, record_path)
        if span is None:
            return False
        _, value = self._field(state, span, _HIDDEN_RE)
        return _is_true(value)

    # ------------------------------------------------------------------
    # Line splicing (no-ops in dry-run)
    # ------------------------------------------------------------------

    def _replace(self, state: CatalogState, index: int, body: str) -> None:
        if self.dry_run:
            return
        state.lines[index] = body + (_line_ending(state.lines[index]) or state.newline)
        state.changed = True

    def _insert_after(self, state: CatalogState, index: int, body: str) -> None:
        if self.dry_run:
            return
        if not _line_ending(state.lines[index]):
            state.lines[index] += state.newline
        state.lines.insert(index + 1, body + state.newline)
        state.changed = True

    def _delete(self, state: CatalogState, index: int) -> None:
        if self.dry_run:
            return
        removed = state.lines.pop(index)
        if index == len(state.lines) and index > 0 and not _line_ending(removed):
            state.lines[index - 1] = _line_body(state.lines[index - 1])
        state.changed = True

    def _swap(self, state: CatalogState, first: int, second: int) -> None:
        if self.dry_run:
            return
        lines = state.lines
        body_a, end_a = _line_body(lines[first]), _line_ending(lines[first])
        body_b, end_b = _line_body(lines[second]), _line_ending(lines[second])
        lines[first], lines[second] = body_b + end_a, body_a + end_b
        state.changed = True

    def _record_edit(self, state: CatalogState, record_path: str, action: str, detail: str = "") -> None:
        if self.dry_run:
            detail = f"{detail} (dry-run)".strip()
        edit = CatalogEdit(state.platform_id, record_path, action, detail)
        # dry-run lines never change, so the sweep would repeat pending edits
        if self.dry_run and edit in self.context.report.catalog_edits:
            return
        self.context.report.catalog_edits.append(edit)

    def report_missing(self, state: CatalogState, record_path: str) -> None:
        logger.warning("%s: %s missing from catalog", state.platform_id, record_path)
        self.context.report.missing.append(
            MissingRecord(state.platform_id, record_path, state.catalog_path)
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def hide(self, state: CatalogState, record_path: str, *, report_missing: bool = True) -> str:
        span = self.find_record(state, record_path)
        if span is None:
            if report_missing:
                self.report_missing(state, record_path)
            return RESULT_MISSING

        index, value = self._field(state, span, _HIDDEN_RE)
        if index is not None:
            if _is_true(value):
                return RESULT_UNCHANGED
            indent = _HIDDEN_RE.match(_line_body(state.lines[index])).group("indent")
            self._replace(state, index, f"{indent}<hidden>true</hidden>")
        else:
            indent = _PATH_RE.match(_line_body(state.lines[span.path_index])).group("indent")
            self._insert_after(state, span.path_index, f"{indent}<hidden>true</hidden>")

        logger.info("%sHide %s", "DRY-RUN: " if self.dry_run else "", record_path)
        self._record_edit(state, record_path, "hide")
        self.enforce_field_order(state, record_path)
        return RESULT_CHANGED

    def unhide(self, state: CatalogState, record_path: str, *, report_missing: bool = True) -> str:
        span = self.find_record(state, record_path)
        if span is None:
            if report_missing:
                self.report_missing(state, record_path)
            return RESULT_MISSING

        index, value = self._field(state, span, _HIDDEN_RE)
        if index is None or not _is_true(value):
            return RESULT_UNCHANGED

        self._delete(state, index)
        logger.info("%sUnhide %s", "DRY-RUN: " if self.dry_run else "", record_path)
        self._record_edit(state, record_path, "unhide")
        self.enforce_field_order(state, record_path)
        return RESULT_CHANGED

    def enforce_field_order(self, state: CatalogState, record_path: str) -> bool:
        """Swap name and hidden lines when hidden precedes name."""
        span = self.find_record(state, record_path)
        if span is None:
            return False
        name_index, _ = self._field(state, span, _NAME_RE)
        hidden_index, _ = self._field(state, span, _HIDDEN_RE)
        if name_index is None or hidden_index is None or name_index < hidden_index:
            return False
        self._swap(state, hidden_index, name_index)
        self._record_edit(state, record_path, "reorder")
        return True

    def set_name(self, state: CatalogState, record_path: str, raw_value: str) -> str:
        span = self.find_record(state, record_path)
        if span is None:
            return RESULT_MISSING

        index, value = self._field(state, span, _NAME_RE)
        if index is not None:
            if unescape(value or "", _ENTITIES) == unescape(raw_value, _ENTITIES):
                return RESULT_UNCHANGED
            indent = _NAME_RE.match(_line_body(state.lines[index])).group("indent")
            self._replace(state, index, f"{indent}<name>{raw_value}</name>")
        else:
            indent = _PATH_RE.match(_line_body(state.lines[span.path_index])).group("indent")
            self._insert_after(state, span.path_index, f"{indent}<name>{raw_value}</name>")

        self._record_edit(state, record_path, "rename", unescape(raw_value, _ENTITIES))
        self.enforce_field_order(state, record_path)
        return RESULT_CHANGED

    def enforce_canonical_name(self, state: CatalogState, record_paths: Sequence[str], fallback_name: str) -> None:
        """Copy the first record's name into every other record of the set."""
        if not record_paths:
            return
        primary_name = self.get_name(state, record_paths[0])
        if primary_name is None or not primary_name.strip():
            wanted = escape(fallback_name, _ENTITIES_OUT)
        else:
            wanted = primary_name
        for record_path in record_paths[1:]:
            self.set_name(state, record_path, wanted)


class CatalogPatchWriter:
    """Applies one set's decision to its platform catalog."""

    def __init__(self, context: RunContext):
        self.context = context
        self.patcher = CatalogPatcher(context)

    def apply_set(self, platform: Platform, name: str, selected: SelectedSet) -> None:
        """Patch the records of one set.

        Complete sets get a visible primary, hidden secondaries and one shared
        name. Incomplete sets keep every member visible.
        """
        state = self.context.catalogs.get(platform)
        record_paths = [record_path_for(m.path, platform.root) for m in selected.members]

        if not state.exists:
            for record_path in record_paths:
                self.patcher.report_missing(state, record_path)
            if selected.is_complete:
                self.context.report.primaries.append(
                    PrimaryEntry(platform.platform_id, record_paths[0], name, len(record_paths), True)
                )
            return

        if not selected.is_complete:
            for record_path in record_paths:
                self.patcher.unhide(state, record_path)
            return

        primary, secondaries = record_paths[0], record_paths[1:]
        results = [self.patcher.unhide(state, primary)]
        for record_path in secondaries:
            results.append(self.patcher.hide(state, record_path))
        self.patcher.enforce_canonical_name(state, record_paths, name)

        missing = RESULT_MISSING in results
        self.context.report.primaries.append(
            PrimaryEntry(platform.platform_id, primary, name, len(record_paths), missing)
        )
        if missing:
            logger.warning("%s: %s (some set entries missing)", platform.platform_id, name)

    def flush_all(self) -> None:
        """Flush every changed catalog; the first fatal error is re-raised."""
        errors: List[Exception] = []
        for state in self.context.catalogs.states():
            try:
                backup = self.context.catalogs.flush(state, dry_run=self.context.dry_run)
            except DataError as exc:
                logger.error("%s: catalog flush failed: %s", state.platform_id, exc)
                errors.append(exc)
                continue
            if backup:
                self.context.report.backups.append(
                    BackupRecord(state.platform_id, state.catalog_path, backup)
                )
        if errors:
            raise errors[0]
