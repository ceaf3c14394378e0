"""Playlist-file backend.

Writes one playlist per complete set: bare member filenames in set order,
joined by the configured line separator, no trailing terminator, UTF-8
without BOM. An existing file is compared first (BOM and line-ending style
ignored, blank lines significant); identical content is never rewritten.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Union

from ..core.context import PlaylistOutcome, RunContext
from ..core.models import Candidate, Platform
from ..exceptions import FileOperationError

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


def playlist_lines(members: Iterable[Candidate]) -> List[str]:
    lines = [os.path.basename(m.file_name).rstrip() for m in members]
    return [line for line in lines if line.strip()]


def render_playlist(members: Iterable[Candidate], newline: str) -> str:
    return newline.join(playlist_lines(members))


def normalize_playlist_text(text: str) -> List[str]:
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.split("\n")


def read_existing(path: Union[str, Path]) -> List[str]:
    raw = Path(path).read_bytes()
    return normalize_playlist_text(raw.decode("utf-8", errors="replace"))


class PlaylistWriter:
    def __init__(self, context: RunContext):
        self.context = context

    def write(self, platform: Platform, path: str, name: str, members: List[Candidate]) -> PlaylistOutcome:
        newline = self.context.config.newline
        content = render_playlist(members, newline)
        wanted = normalize_playlist_text(content)
        target = Path(path)
        dry_run = self.context.dry_run

        if target.exists():
            try:
                existing = read_existing(target)
            except OSError as exc:
                raise FileOperationError(
                    f"Cannot read existing playlist: {exc}", file_path=str(target), operation="read"
                ) from exc
            if existing == wanted:
                logger.debug("Playlist %s pre-existing, unchanged", target.name)
                return self._record(platform, target, name, "unchanged", members)
            status = "would_overwrite" if dry_run else "overwritten"
        else:
            status = "would_write" if dry_run else "written"

        if dry_run:
            logger.info("DRY-RUN: would %s playlist %s", "overwrite" if target.exists() else "write", target)
            return self._record(platform, target, name, status, members)

        try:
            with open(target, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
        except OSError as exc:
            raise FileOperationError(
                f"Cannot write playlist: {exc}", file_path=str(target), operation="write"
            ) from exc

        if status == "overwritten":
            logger.info("Overwrote existing content of playlist %s", target)
        else:
            logger.info("Wrote playlist %s (%d entries)", target, len(wanted))
        return self._record(platform, target, name, status, members)

    def _record(self, platform: Platform, target: Path, name: str, status, members) -> PlaylistOutcome:
        outcome = PlaylistOutcome(platform.platform_id, str(target), name, status, len(members))
        self.context.report.playlists.append(outcome)
        return outcome
