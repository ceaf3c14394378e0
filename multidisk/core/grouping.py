"""Grouping of parsed candidates.

Strict groups share (directory, base prefix, base tags). The title index
collects every candidate of a title regardless of tags and backs the relaxed
lookups of the slot selector. Preference-marker flags record which
(title, tags-without-marker[, alt]) combinations have a marked sibling.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .models import Candidate, GroupKey, TitleKey

MarkerKey = Tuple[TitleKey, str]
MarkerAltKey = Tuple[TitleKey, str, Optional[str]]


@dataclass
class StrictGroup:
    key: GroupKey
    members: List[Candidate] = field(default_factory=list)

    @property
    def directory(self) -> str:
        return self.key[0]

    @property
    def base_prefix(self) -> str:
        return self.key[1]

    @property
    def base_tags_key(self) -> str:
        return self.key[2]

    @property
    def title_key(self) -> TitleKey:
        return (self.key[0], self.key[1])

    @property
    def base_tags(self) -> Tuple[str, ...]:
        return self.members[0].base_tags if self.members else ()

    def alt_variants(self) -> List[Optional[str]]:
        """Distinct alt tags of the group, "none" first then sorted."""
        values = {m.alt_tag for m in self.members}
        ordered: List[Optional[str]] = [None] if None in values else []
        ordered.extend(sorted(v for v in values if v is not None))
        return ordered

    def has_marker(self, marker: str) -> bool:
        return marker in self.base_tags


class GroupIndex:
    """All grouping structures derived from one platform's candidates."""

    def __init__(self, candidates: Iterable[Candidate], preference_marker: str = "[!]"):
        self.marker = preference_marker
        self.groups: Dict[GroupKey, StrictGroup] = {}
        self.titles: Dict[TitleKey, List[Candidate]] = defaultdict(list)
        self.marked: Set[MarkerKey] = set()
        self.marked_alts: Set[MarkerAltKey] = set()

        ordered = sorted(candidates, key=lambda c: (c.directory, c.base_prefix, c.base_tags_key, c.file_name))
        for cand in ordered:
            group = self.groups.get(cand.group_key)
            if group is None:
                group = StrictGroup(cand.group_key)
                self.groups[cand.group_key] = group
            group.members.append(cand)
            self.titles[cand.title_key].append(cand)

            if cand.has_marker(self.marker):
                nb = cand.non_bang_key(self.marker)
                self.marked.add((cand.title_key, nb))
                self.marked_alts.add((cand.title_key, nb, cand.alt_tag))

    def __len__(self) -> int:
        return len(self.groups)

    def iter_groups(self) -> List[StrictGroup]:
        return [self.groups[key] for key in sorted(self.groups)]

    def non_bang_key(self, group: StrictGroup) -> str:
        return "".join(tag for tag in group.base_tags if tag != self.marker)

    def title_pool(self, title_key: TitleKey) -> List[Candidate]:
        return list(self.titles.get(title_key, ()))

    def relaxed_pool(self, group: StrictGroup) -> Tuple[List[Candidate], List[Candidate]]:
        """Title-compatible candidates for ``group`` in two tiers.

        The first tier shares the group's tags once the preference marker is
        ignored. The second tier carries every tag of the group plus extra
        one-off tags.
        """
        wanted = [t for t in group.base_tags if t != self.marker]
        wanted_key = "".join(wanted)
        same: List[Candidate] = []
        wider: List[Candidate] = []
        for cand in self.titles.get(group.title_key, ()):
            nb_tags = [t for t in cand.base_tags if t != self.marker]
            if "".join(nb_tags) == wanted_key:
                same.append(cand)
            elif all(tag in nb_tags for tag in wanted):
                wider.append(cand)
        return same, wider

    def observed_disks(self, title_key: TitleKey) -> List[int]:
        return sorted({c.disk_sort for c in self.titles.get(title_key, ()) if c.disk_sort is not None})

    def root_totals(self, group: StrictGroup) -> List[Optional[int]]:
        """Declared totals of disk-1 candidates compatible with ``group``.

        Returns ``[None]`` when nothing declares a total.
        """
        same, wider = self.relaxed_pool(group)
        pool = list(group.members) + same + wider
        totals = sorted({c.total_disks for c in pool if c.disk_sort == 1 and c.total_disks})
        return list(totals) if totals else [None]

    def has_marked_sibling(self, group: StrictGroup, alt: Optional[str]) -> bool:
        nb = self.non_bang_key(group)
        if (group.title_key, nb) not in self.marked:
            return False
        return (group.title_key, nb, alt) in self.marked_alts
