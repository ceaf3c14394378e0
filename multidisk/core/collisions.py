"""Same-run duplicate and output-collision handling.

Two checks run for every emitted set:

- content signature: the ordered absolute member paths. A signature seen
  earlier in the run marks the new set a duplicate; it is not emitted.
- output identity: the playlist path (playlist platforms) or a composite
  key (catalog platforms). A claimed identity gets ``[alt]``, ``[alt2]``, ...
  appended until it is free.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .context import DuplicateSet, RunContext
from .models import Platform, SelectedSet

logger = logging.getLogger(__name__)

MAX_ALT_SUFFIX = 999


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one set.

    ``identity`` is the claimed identity; ``name`` the (possibly suffixed) set
    name; ``playlist_path`` is set for playlist platforms only.
    """

    duplicate: bool
    name: str
    identity: str
    playlist_path: Optional[str] = None


def alt_suffix(index: int) -> str:
    return "[alt]" if index == 1 else f"[alt{index}]"


def playlist_identity(path: str) -> str:
    return os.path.normcase(os.path.abspath(path)).lower()


def catalog_identity(platform: Platform, selected: SelectedSet) -> str:
    title = os.path.normcase(os.path.join(selected.directory, selected.base_prefix)).lower()
    return "|".join((
        platform.platform_id.lower(),
        title,
        selected.base_tags_key,
        selected.alt_variant or "",
        str(selected.root_total or ""),
    ))


class CollisionResolver:
    def __init__(self, context: RunContext):
        self.context = context

    def resolve(self, platform: Platform, selected: SelectedSet, name: str) -> Resolution:
        signature = selected.signature
        previous = self.context.signatures.get(signature)
        if previous is not None:
            self.context.used_files.update(signature)
            self.context.report.duplicates.append(
                DuplicateSet(platform.platform_id, name, self._base_identity(platform, selected, name), previous)
            )
            logger.debug("Duplicate set %s (same members as %s)", name, previous)
            return Resolution(True, name, previous)

        resolution = self._claim(platform, selected, name)
        self.context.signatures[signature] = resolution.identity
        self.context.used_files.update(signature)
        return resolution

    def _base_identity(self, platform: Platform, selected: SelectedSet, name: str) -> str:
        if platform.is_catalog:
            return catalog_identity(platform, selected)
        return playlist_identity(self._playlist_path(selected, name))

    def _playlist_path(self, selected: SelectedSet, name: str) -> str:
        return os.path.join(selected.directory, name + self.context.config.playlist_extension)

    def _claim(self, platform: Platform, selected: SelectedSet, name: str) -> Resolution:
        claimed = self.context.claimed_identities

        if platform.is_catalog:
            base = catalog_identity(platform, selected)
            identity, final_name = base, name
            index = 0
            while identity in claimed:
                index += 1
                if index > MAX_ALT_SUFFIX:
                    raise RuntimeError(f"No free identity for {name}")
                identity = base + alt_suffix(index)
                final_name = name + alt_suffix(index)
            claimed.add(identity)
            return Resolution(False, final_name, identity)

        final_name = name
        path = self._playlist_path(selected, final_name)
        index = 0
        while playlist_identity(path) in claimed:
            index += 1
            if index > MAX_ALT_SUFFIX:
                raise RuntimeError(f"No free playlist name for {name}")
            final_name = name + alt_suffix(index)
            path = self._playlist_path(selected, final_name)
        identity = playlist_identity(path)
        claimed.add(identity)
        if final_name != name:
            logger.info("Playlist name %s already used this run, using %s", name, final_name)
        return Resolution(False, final_name, identity, path)
