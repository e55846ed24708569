from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

from ...domain.errors import InputMalformed
from ...domain.selection import Selection
from .fields import Record, count_empty, has_empty
from .grouping import GroupKey, GroupKeyExtractor
from .memory import FillPolicy, ValueMemory


@dataclass
class FillStats:
    rows_read: int = 0
    rows_emitted: int = 0
    cells_filled: int = 0
    rows_buffered: int = 0
    peak_pending: int = 0
    groups: int = 0


@dataclass
class _Pending:
    record: Record
    # empty target fields in the original input row, for fill accounting
    empties_in: int


@dataclass
class _Group:
    memory: ValueMemory
    pending: deque[_Pending] = field(default_factory=deque)


class Filler:
    """Streaming fill state machine.

    Per record: compute the group key, update that group's memory under the
    active policy, fill the record's empty target fields, then emit it or (with
    backfill) hold it until a later row of the same group leaves nothing empty.
    Held rows are re-filled with the group's memory at release time.

    With backfill and unsorted groups, global output order may differ from
    input order; order within a group is always preserved. ``finish()`` flushes
    every group still holding rows, in first-seen group order, leaving fields
    that never resolved empty.
    """

    def __init__(
        self,
        targets: Selection,
        groupby: Optional[Selection] = None,
        policy: FillPolicy = FillPolicy.FORWARD,
        backfill: bool = False,
    ) -> None:
        self.targets: tuple[int, ...] = targets.sorted().indices
        self.keys = GroupKeyExtractor(groupby)
        self.policy = policy
        self.backfill = backfill
        self.stats = FillStats()
        self._groups: dict[GroupKey, _Group] = {}
        self._pending = 0
        self._min_width = max(max(self.targets, default=-1), self.keys.max_index) + 1

    @property
    def pending(self) -> int:
        return self._pending

    def _check_width(self, record: Sequence[str], row_index: int) -> None:
        if len(record) < self._min_width:
            raise InputMalformed(
                f"record has {len(record)} fields but column {self._min_width} is selected",
                row_index=row_index,
            )

    def _group(self, key: GroupKey) -> _Group:
        group = self._groups.get(key)
        if group is None:
            group = _Group(memory=ValueMemory(self.policy))
            self._groups[key] = group
            self.stats.groups += 1
        return group

    def _emit(self, record: Record, empties_in: int) -> Record:
        self.stats.rows_emitted += 1
        self.stats.cells_filled += empties_in - count_empty(record, self.targets)
        return record

    def _drain(self, group: _Group) -> list[Record]:
        out: list[Record] = []
        while group.pending:
            held = group.pending.popleft()
            self._pending -= 1
            refilled = group.memory.fill(held.record, self.targets)
            out.append(self._emit(refilled, held.empties_in))
        return out

    def feed(self, record: Sequence[str]) -> list[Record]:
        """Consume one record; return the records released by it (possibly none)."""
        self.stats.rows_read += 1
        self._check_width(record, self.stats.rows_read)

        group = self._group(self.keys.key(record))
        group.memory.update(record, self.targets)
        empties_in = count_empty(record, self.targets)
        filled = group.memory.fill(record, self.targets)

        if not self.backfill:
            return [self._emit(filled, empties_in)]

        if has_empty(filled, self.targets):
            group.pending.append(_Pending(record=filled, empties_in=empties_in))
            self._pending += 1
            self.stats.rows_buffered += 1
            self.stats.peak_pending = max(self.stats.peak_pending, self._pending)
            return []

        out = self._drain(group)
        out.append(self._emit(filled, empties_in))
        return out

    def finish(self) -> list[Record]:
        """Flush every held row; call once the input is exhausted."""
        out: list[Record] = []
        for group in self._groups.values():
            out.extend(self._drain(group))
        return out

    def run(self, records: Iterable[Sequence[str]]) -> Iterator[Record]:
        for record in records:
            yield from self.feed(record)
        yield from self.finish()
