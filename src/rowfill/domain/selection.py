from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Sequence

from .errors import SelectionInvalid


_NTH_RE = re.compile(r"^(?P<name>.+)\[(?P<nth>\d+)\]$")


@dataclass(frozen=True)
class Selection:
    """Ordered set of distinct 0-based column indices, fixed for a run."""

    indices: tuple[int, ...]

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices)

    def __len__(self) -> int:
        return len(self.indices)

    def __contains__(self, index: object) -> bool:
        return index in self.indices

    def sorted(self) -> "Selection":
        return Selection(tuple(sorted(self.indices)))

    @property
    def max_index(self) -> int:
        return max(self.indices) if self.indices else -1


def _resolve_one(token: str, header: Sequence[str], has_headers: bool) -> int:
    """Resolve a single position or name to a 0-based index."""
    token = token.strip()
    if token.isdigit():
        pos = int(token)
        if not 1 <= pos <= len(header):
            raise SelectionInvalid(
                f"column position {pos} is out of bounds (1..{len(header)})"
            )
        return pos - 1
    if not has_headers:
        raise SelectionInvalid(f"column name {token!r} used without a header row")
    nth = 0
    m = _NTH_RE.match(token)
    if m and token not in header:
        token, nth = m.group("name"), int(m.group("nth"))
    matches = [i for i, name in enumerate(header) if name == token]
    if nth >= len(matches):
        raise SelectionInvalid(f"unknown column {token!r}" + (f"[{nth}]" if nth else ""))
    return matches[nth]


def _resolve_item(item: str, header: Sequence[str], has_headers: bool) -> list[int]:
    try:
        return [_resolve_one(item, header, has_headers)]
    except SelectionInvalid:
        if "-" not in item:
            raise
    # Ranges: try every hyphen as the separator so hyphenated names still work.
    for pos in [i for i, ch in enumerate(item) if ch == "-"]:
        start, end = item[:pos].strip(), item[pos + 1 :].strip()
        try:
            lo = _resolve_one(start, header, has_headers) if start else 0
            hi = _resolve_one(end, header, has_headers) if end else len(header) - 1
        except SelectionInvalid:
            continue
        if lo > hi:
            raise SelectionInvalid(f"range {item!r} is reversed")
        return list(range(lo, hi + 1))
    raise SelectionInvalid(f"cannot resolve column selection {item!r}")


def resolve_selection(spec: str, header: Sequence[str], has_headers: bool = True) -> Selection:
    """Resolve a column specification against the header (or first) row.

    Supported items, comma separated:
    - 1-based positions: ``3``
    - header names: ``city``; the n-th duplicate name: ``city[1]``
    - inclusive ranges of either: ``2-4``, ``a-c``, open ended ``3-`` / ``-2``
    - a leading ``!`` inverts the whole selection
    """
    text = spec.strip()
    invert = text.startswith("!")
    if invert:
        text = text[1:]
    if not text.strip():
        raise SelectionInvalid("empty column selection")

    chosen: list[int] = []
    for item in text.split(","):
        if not item.strip():
            raise SelectionInvalid(f"empty item in column selection {spec!r}")
        for idx in _resolve_item(item, header, has_headers):
            if idx not in chosen:
                chosen.append(idx)

    if invert:
        chosen = [i for i in range(len(header)) if i not in chosen]
        if not chosen:
            raise SelectionInvalid(f"selection {spec!r} excludes every column")
    return Selection(tuple(chosen))
