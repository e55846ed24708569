from __future__ import annotations

from typing import Callable, Sequence


Record = list[str]


def map_selected(
    record: Sequence[str],
    indices: Sequence[int],
    transform: Callable[[int, str], str],
) -> Record:
    """Return a copy of ``record`` with ``transform(i, field)`` applied at ``indices``.

    ``indices`` must be sorted ascending. Fields outside the selection pass
    through untouched; order and count are preserved. Raises IndexError if an
    index lies past the end of the record.
    """
    out: Record = []
    nxt = 0
    for i, field in enumerate(record):
        if nxt < len(indices) and indices[nxt] == i:
            out.append(transform(i, field))
            nxt += 1
        else:
            out.append(field)
    if nxt < len(indices):
        raise IndexError(f"selected column {indices[nxt]} beyond record width {len(record)}")
    return out


def has_empty(record: Sequence[str], indices: Sequence[int]) -> bool:
    return any(record[i] == "" for i in indices)


def count_empty(record: Sequence[str], indices: Sequence[int]) -> int:
    return sum(1 for i in indices if record[i] == "")
