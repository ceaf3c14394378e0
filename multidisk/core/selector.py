"""Disk-slot selection.

For every strict group, alt variant and declared root total the selector
fills each expected disk position, stopping at the first step that yields
a match:

1. same group, same alt
2. (alt "none" only) the single alt-tagged candidate of the group
3. title-compatible pool, same alt
4. alt fallback chain (``a2`` -> ``a`` -> none), group first then pool

A declared root total makes positions 1..total mandatory; any gap marks the
set incomplete.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .grouping import GroupIndex, StrictGroup
from .models import Candidate, SelectedSet

logger = logging.getLogger(__name__)

_NUMBERED_ALT_RE = re.compile(r"^(?P<base>[A-Za-z]+)\d+$")


class SelectionStatus(Enum):
    SELECTED = "selected"
    TOO_FEW = "too_few"
    SUPPRESSED = "suppressed"


@dataclass(frozen=True)
class SelectionResult:
    status: SelectionStatus
    selected: SelectedSet

    @property
    def qualifies(self) -> bool:
        return self.status == SelectionStatus.SELECTED


def alt_fallback_chain(alt: Optional[str]) -> List[Optional[str]]:
    """More generic alt forms to try after ``alt`` itself, ending at none."""
    if alt is None:
        return []
    match = _NUMBERED_ALT_RE.match(alt)
    if match:
        return [match.group("base"), None]
    return [None]


class DiskSlotSelector:
    """Fills disk positions for the strict groups of one :class:`GroupIndex`."""

    def __init__(self, index: GroupIndex):
        self.index = index
        self.marker = index.marker

    def select(self, group: StrictGroup) -> List[SelectionResult]:
        results: List[SelectionResult] = []
        totals = self.index.root_totals(group)
        for variant in group.alt_variants():
            for root_total in totals:
                selected = self.assemble(group, variant, root_total)
                if not selected.is_multi_disk:
                    status = SelectionStatus.TOO_FEW
                elif self._is_suppressed(group, variant):
                    status = SelectionStatus.SUPPRESSED
                else:
                    status = SelectionStatus.SELECTED
                logger.debug(
                    "Group %r alt=%s total=%s -> %s (%d members)",
                    group.key, variant, root_total, status.value, len(selected.members),
                )
                results.append(SelectionResult(status, selected))
        return results

    def assemble(self, group: StrictGroup, variant: Optional[str], root_total: Optional[int]) -> SelectedSet:
        if root_total:
            targets = list(range(1, root_total + 1))
        else:
            targets = self.index.observed_disks(group.title_key)

        members: List[Candidate] = []
        missing: List[int] = []
        for disk in targets:
            found = self.fill_position(group, variant, root_total, disk)
            if found:
                members.extend(found)
            elif root_total:
                missing.append(disk)

        members.sort(key=lambda c: c.slot)
        return SelectedSet(
            group_key=group.key,
            alt_variant=variant,
            root_total=root_total,
            members=tuple(members),
            missing_positions=tuple(missing),
        )

    def fill_position(
        self,
        group: StrictGroup,
        variant: Optional[str],
        root_total: Optional[int],
        disk: int,
    ) -> List[Candidate]:
        group_pool = [c for c in group.members if c.disk_sort == disk and _total_ok(c, root_total)]

        found = [c for c in group_pool if c.alt_tag == variant]
        if found:
            return self._pick_sides(found, group)

        if variant is None:
            alt_tagged = [c for c in group_pool if c.alt_tag is not None]
            if len(alt_tagged) == 1:
                return alt_tagged

        same, wider = self.index.relaxed_pool(group)
        tiers = [
            [c for c in tier if c.disk_sort == disk and _total_ok(c, root_total)]
            for tier in (same, wider)
        ]

        found = self._first_tier_match(tiers, variant)
        if found:
            return self._pick_sides(found, group)

        for fallback in alt_fallback_chain(variant):
            found = [c for c in group_pool if c.alt_tag == fallback]
            if not found:
                found = self._first_tier_match(tiers, fallback)
            if found:
                return self._pick_sides(found, group)

        return []

    @staticmethod
    def _first_tier_match(tiers: Sequence[List[Candidate]], alt: Optional[str]) -> List[Candidate]:
        for tier in tiers:
            found = [c for c in tier if c.alt_tag == alt]
            if found:
                return found
        return []

    def _pick_sides(self, found: List[Candidate], group: StrictGroup) -> List[Candidate]:
        """One candidate per side, ascending side order."""
        by_side: Dict[int, List[Candidate]] = {}
        for cand in found:
            by_side.setdefault(cand.side_sort, []).append(cand)

        picked: List[Candidate] = []
        for side in sorted(by_side):
            options = sorted(
                by_side[side],
                key=lambda c: (
                    c.group_key != group.key,
                    not c.has_marker(self.marker),
                    c.file_name,
                ),
            )
            picked.append(options[0])
        return picked

    def _is_suppressed(self, group: StrictGroup, variant: Optional[str]) -> bool:
        if group.has_marker(self.marker):
            return False
        return self.index.has_marked_sibling(group, variant)


def _total_ok(cand: Candidate, root_total: Optional[int]) -> bool:
    return not root_total or cand.total_disks is None or cand.total_disks == root_total
