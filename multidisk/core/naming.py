"""Canonical names for selected sets.

The name is the title prefix plus only what every member agrees on: the
name hint, the base tags present on all members (in first-member order) and
the alt tag. One-off tags never change the shared name.
"""

from __future__ import annotations

import re
from typing import List, Optional

from .models import SelectedSet

_WHITESPACE_RE = re.compile(r"\s+")
_EMPTY_GROUP_RE = re.compile(r"\(\s*\)|\[\s*\]")
_TRAILING_JUNK = " \t-_.,;:"


def common_tags(selected: SelectedSet) -> List[str]:
    members = selected.members
    if not members:
        return []
    rest = [set(m.base_tags) for m in members[1:]]
    return [tag for tag in members[0].base_tags if all(tag in tags for tags in rest)]


def common_hint(selected: SelectedSet) -> Optional[str]:
    hints = {m.name_hint for m in selected.members}
    if len(hints) == 1:
        return next(iter(hints))
    return None


def common_alt(selected: SelectedSet) -> Optional[str]:
    alts = {m.alt_tag for m in selected.members}
    if len(alts) == 1:
        return next(iter(alts))
    return None


def clean_name(name: str) -> str:
    """Collapse whitespace and strip dangling punctuation at the end."""
    text = _WHITESPACE_RE.sub(" ", name or "").strip()
    previous = None
    while text != previous:
        previous = text
        text = _EMPTY_GROUP_RE.sub("", text)
        text = text.rstrip(_TRAILING_JUNK)
        if text.endswith(("(", "[")):
            text = text[:-1]
        if text.count("(") < text.count(")") and text.endswith(")"):
            text = text[:-1]
        if text.count("[") < text.count("]") and text.endswith("]"):
            text = text[:-1]
        text = _WHITESPACE_RE.sub(" ", text).strip()
    return text


def build_set_name(selected: SelectedSet) -> Optional[str]:
    """Return the playlist base name, or ``None`` when nothing usable is left."""
    if not selected.members:
        return None
    parts = [selected.members[0].base_prefix]

    hint = common_hint(selected)
    if hint:
        parts.append(f" ({hint})")

    parts.extend(common_tags(selected))

    alt = common_alt(selected)
    if alt:
        parts.append(f"[{alt}]")

    name = clean_name("".join(parts))
    return name or None
