from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from .fields import Record, map_selected


class FillPolicy(str, Enum):
    FORWARD = "forward"
    FIRST = "first"


class ValueMemory:
    """Remembered fill values for one group, keyed by column index."""

    def __init__(self, policy: FillPolicy = FillPolicy.FORWARD) -> None:
        self.policy = policy
        self._values: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._values)

    def get(self, index: int) -> Optional[str]:
        return self._values.get(index)

    def memorize(self, record: Sequence[str], indices: Sequence[int]) -> None:
        """Most recent non-empty value wins."""
        for i in indices:
            if record[i] != "":
                self._values[i] = record[i]

    def memorize_first(self, record: Sequence[str], indices: Sequence[int]) -> None:
        """First non-empty value wins; later values are ignored."""
        for i in indices:
            if record[i] != "" and i not in self._values:
                self._values[i] = record[i]

    def update(self, record: Sequence[str], indices: Sequence[int]) -> None:
        if self.policy is FillPolicy.FIRST:
            self.memorize_first(record, indices)
        else:
            self.memorize(record, indices)

    def fill(self, record: Sequence[str], indices: Sequence[int]) -> Record:
        """Copy of ``record`` with empty target fields replaced by remembered values.

        Non-empty fields are never altered; columns with nothing remembered
        stay empty.
        """

        def _fill_field(i: int, field: str) -> str:
            if field != "":
                return field
            return self._values.get(i, "")

        return map_selected(record, indices, _fill_field)
