from __future__ import annotations

from typing import Optional, Sequence

from ...domain.selection import Selection


GroupKey = tuple[str, ...]

NO_GROUP: GroupKey = ()


class GroupKeyExtractor:
    """Project the group-by columns of a record into a hashable key.

    Without a group-by selection every record maps to ``NO_GROUP``, so the
    whole stream behaves as one implicit group.
    """

    def __init__(self, groupby: Optional[Selection] = None) -> None:
        self.groupby = groupby

    @property
    def max_index(self) -> int:
        return -1 if self.groupby is None else self.groupby.max_index

    def key(self, record: Sequence[str]) -> GroupKey:
        if self.groupby is None:
            return NO_GROUP
        return tuple(record[i] for i in self.groupby)
