"""Reconciliation sweep for catalog platforms.

After every set of a platform is decided, the hidden state of the records
in the platform's root folder is derived again from this run's confirmed
sets alone and forced onto the catalog. Earlier per-set edits, including
stale ones from previous runs, are overridden. Nested folders are never
touched.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Set

from ..core.context import RunContext
from ..core.models import Candidate, Platform
from .catalog_patch import CatalogPatcher, record_path_for

logger = logging.getLogger(__name__)


def hidden_targets(context: RunContext, platform: Platform) -> Set[str]:
    """Root-folder paths that must end up hidden: secondaries minus primaries."""
    secondaries: Set[str] = set()
    primaries: Set[str] = set()
    for confirmed in context.confirmed.get(platform.platform_id, []):
        selected = confirmed.selected
        if selected.primary.directory == platform.root:
            primaries.add(selected.primary.path)
        secondaries.update(m.path for m in selected.secondaries if m.directory == platform.root)
    return secondaries - primaries


def reconcile_platform(context: RunContext, platform: Platform, candidates: Iterable[Candidate]) -> None:
    state = context.catalogs.get(platform)
    if not state.exists:
        logger.debug("%s: no catalog, nothing to reconcile", platform.platform_id)
        return

    patcher = CatalogPatcher(context)
    targets = hidden_targets(context, platform)
    root_paths: List[str] = sorted({c.path for c in candidates if c.directory == platform.root})

    # unhide first so no set is ever left without a visible record
    for path in root_paths:
        if path not in targets:
            patcher.unhide(state, record_path_for(path, platform.root), report_missing=False)
    for path in sorted(targets):
        patcher.hide(state, record_path_for(path, platform.root), report_missing=False)

    logger.info(
        "%s: reconciled %d root records (%d hidden)",
        platform.platform_id, len(root_paths), len(targets),
    )
