"""Disk/side designator parsing for ROM filenames.

Turns one filename into a :class:`Candidate` or rejects it. Two patterns are
tried in order:

- a disk/disc designator: ``Title (Disk 2 of 4)(Side B)[a][cr XYZ]``
- a side-only designator: ``Title (Side A)`` (treated as disk 1)

Disk tokens may be digits, a single letter (``Disc B`` -> 2) or a roman
numeral I..XX (``Disk IV`` -> 4). Roman numerals take precedence over the
letter reading, so ``Disk I`` is disk 1, not disk 9.
"""

from __future__ import annotations

import logging
import os
import re
from typing import List, Optional, Tuple

from .models import Candidate

logger = logging.getLogger(__name__)

ROMAN_NUMERALS = {
    "I": 1, "II": 2, "III": 3, "IV": 4, "V": 5,
    "VI": 6, "VII": 7, "VIII": 8, "IX": 9, "X": 10,
    "XI": 11, "XII": 12, "XIII": 13, "XIV": 14, "XV": 15,
    "XVI": 16, "XVII": 17, "XVIII": 18, "XIX": 19, "XX": 20,
}

# Letter and roman tokens need a separator after the keyword so that words
# such as "Disco" or "Sides" are not read as designators.
_SIDE_PART = (
    r"(?:[\s_\-,]*[\(\[]?\s*side"
    r"(?:\s*[-_]?\s*(?P<side>\d+)|(?:\s+|\s*[-_]\s*)(?P<side_word>[a-z]))\b\s*[\)\]]?)"
)

_DISK_RE = re.compile(
    r"""^(?P<prefix>.*?)
        [\s_\-.,]*[\(\[]?\s*
        (?<![a-z])dis[ck]
        (?:\s*[-_\#.]?\s*(?P<disk>\d+)|(?:\s+|\s*[-_\#.]\s*)(?P<disk_word>[ivx]+|[a-z]))\b
        (?:\s*(?:of|/)\s*(?P<total>\d+))?
        \s*[\)\]]?
        """ + _SIDE_PART + r"""?
        (?P<rest>.*)$""",
    re.IGNORECASE | re.VERBOSE,
)

_SIDE_ONLY_RE = re.compile(
    r"""^(?P<prefix>.*?)
        [\s_\-.,]*[\(\[]?\s*
        (?<![a-z])side
        (?:\s*[-_]?\s*(?P<side>\d+)|(?:\s+|\s*[-_]\s*)(?P<side_word>[a-z]))\b
        \s*[\)\]]?
        (?P<rest>.*)$""",
    re.IGNORECASE | re.VERBOSE,
)

_HINT_RE = re.compile(r"^\s*\((?P<hint>[^()\[\]]+)\)")
_TAG_RE = re.compile(r"\[([^\[\]]*)\]")
_ALT_TAG_RE = re.compile(r"^[ab]\d*$")
_DISK_NOISE_RE = re.compile(r"^\s*(?:dis[ck]|side)\b|^\s*dis[ck]\s*\d", re.IGNORECASE)
_PREFIX_TRAILING = " \t-_.,;:([{"


def normalize_disk_token(token: Optional[str]) -> Optional[int]:
    """Map a disk token to its 1-based position; ``None`` when unrecognized."""
    if not token:
        return None
    token = token.strip()
    if token.isdigit():
        value = int(token)
        return value if value >= 1 else None
    upper = token.upper()
    if upper in ROMAN_NUMERALS:
        return ROMAN_NUMERALS[upper]
    if len(token) == 1 and token.isalpha():
        return ord(upper) - ord("A") + 1
    return None


def normalize_side_token(token: Optional[str]) -> int:
    """Absent side is 0; letters map to their alphabet position."""
    if not token:
        return 0
    token = token.strip()
    if token.isdigit():
        return int(token)
    if len(token) == 1 and token.isalpha():
        return ord(token.upper()) - ord("A") + 1
    return 0


def normalize_prefix(prefix: str) -> str:
    text = re.sub(r"\s+", " ", prefix or "").strip()
    return text.rstrip(_PREFIX_TRAILING)


def split_tags(rest: str, extension: str) -> Tuple[Tuple[str, ...], Optional[str]]:
    """Partition the bracket tags of ``rest`` into base tags and one alt tag.

    Tags restating a disk/side descriptor and tags equal to the file
    extension are dropped.
    """
    ext = extension.lstrip(".").lower()
    base: List[str] = []
    alt: Optional[str] = None
    for match in _TAG_RE.finditer(rest or ""):
        inner = match.group(1).strip()
        if not inner:
            continue
        if _DISK_NOISE_RE.search(inner):
            continue
        if ext and inner.lower() == ext:
            continue
        if alt is None and _ALT_TAG_RE.match(inner):
            alt = inner
            continue
        base.append(f"[{inner}]")
    return tuple(base), alt


def _extract_hint(rest: str, max_length: int) -> Tuple[Optional[str], str]:
    match = _HINT_RE.match(rest or "")
    if not match:
        return None, rest
    hint = re.sub(r"\s+", " ", match.group("hint")).strip()
    if not hint or len(hint) > max_length or _DISK_NOISE_RE.search(hint):
        return None, rest
    return hint, rest[match.end():]


def parse_filename(
    file_name: str,
    directory: str = "",
    *,
    hint_max_length: int = 40,
) -> Optional[Candidate]:
    """Parse ``file_name`` into a candidate, or ``None`` when it has no designator."""
    stem, extension = os.path.splitext(file_name)
    if not stem:
        return None

    disk_sort: Optional[int] = None
    total: Optional[int] = None

    match = _DISK_RE.match(stem)
    if match:
        disk_sort = normalize_disk_token(match.group("disk") or match.group("disk_word"))
        if match.group("total"):
            total = int(match.group("total")) or None
    else:
        match = _SIDE_ONLY_RE.match(stem)
        if not match:
            return None
        disk_sort = 1

    prefix = normalize_prefix(match.group("prefix"))
    if not prefix:
        logger.debug("Rejected %s: empty title before designator", file_name)
        return None

    side_sort = normalize_side_token(match.group("side") or match.group("side_word"))
    hint, rest = _extract_hint(match.group("rest"), hint_max_length)
    base_tags, alt = split_tags(rest, extension)

    if disk_sort is None:
        logger.debug("Unrecognized disk token in %s", file_name)

    return Candidate(
        file_name=file_name,
        directory=directory,
        base_prefix=prefix,
        base_tags=base_tags,
        alt_tag=alt,
        disk_sort=disk_sort,
        side_sort=side_sort,
        total_disks=total,
        name_hint=hint,
        extension=extension.lower(),
    )
