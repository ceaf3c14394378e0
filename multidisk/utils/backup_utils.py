"""Backup helpers for catalog files.

Backups are written next to the original with a deterministic name:
``gamelist.multidisk-backup.xml``, then ``gamelist.multidisk-backup (1).xml``,
``(2)``, ... so earlier backups are never overwritten.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Union

from ..exceptions import BackupError

logger = logging.getLogger(__name__)

MAX_BACKUP_INDEX = 9999


def backup_base_name(file_path: Union[str, Path], suffix: str) -> Path:
    path = Path(file_path)
    return path.with_name(f"{path.stem}{suffix}{path.suffix}")


def next_backup_path(file_path: Union[str, Path], suffix: str) -> Path:
    """First backup path for ``file_path`` that does not exist yet."""
    base = backup_base_name(file_path, suffix)
    if not base.exists():
        return base
    for index in range(1, MAX_BACKUP_INDEX + 1):
        candidate = base.with_name(f"{base.stem} ({index}){base.suffix}")
        if not candidate.exists():
            return candidate
    raise BackupError("No free backup name left", file_path=str(file_path), backup_path=str(base))


def backup_file(file_path: Union[str, Path], *, suffix: str) -> Path:
    """Copy ``file_path`` to its next free backup name and return that path.

    Raises :class:`BackupError` when the source is missing or the copy fails.
    """
    source = Path(file_path)
    if not source.is_file():
        raise BackupError("Backup source is missing", file_path=str(source))
    if source.is_symlink():
        raise BackupError("Refusing to back up a symlinked catalog", file_path=str(source))

    target = next_backup_path(source, suffix)
    try:
        shutil.copy2(source, target)
    except OSError as exc:
        raise BackupError(f"Backup copy failed: {exc}", file_path=str(source), backup_path=str(target)) from exc

    logger.info("Backup saved: %s", target)
    return target
