from __future__ import annotations

from rowfill.domain.selection import Selection
from rowfill.services.fill.grouping import NO_GROUP, GroupKeyExtractor
from rowfill.services.fill.memory import FillPolicy, ValueMemory


def test_forward_memory_keeps_latest_non_empty() -> None:
    mem = ValueMemory(FillPolicy.FORWARD)
    mem.update(["a", "x"], [0, 1])
    mem.update(["", "y"], [0, 1])
    mem.update(["b", ""], [0, 1])
    assert mem.get(0) == "b"
    assert mem.get(1) == "y"


def test_first_memory_never_changes_once_set() -> None:
    mem = ValueMemory(FillPolicy.FIRST)
    mem.update(["", "x"], [0, 1])
    mem.update(["a", "y"], [0, 1])
    mem.update(["b", "z"], [0, 1])
    assert mem.get(0) == "a"
    assert mem.get(1) == "x"
    assert len(mem) == 2


def test_fill_replaces_only_empty_targets() -> None:
    mem = ValueMemory()
    mem.memorize(["a", "b", "c"], [0, 2])
    assert mem.fill(["", "", "z"], [0, 2]) == ["a", "", "z"]


def test_fill_leaves_unknown_columns_empty() -> None:
    mem = ValueMemory()
    assert mem.fill(["", "q"], [0]) == ["", "q"]
    assert mem.get(0) is None


def test_group_key_without_groupby_is_constant() -> None:
    keys = GroupKeyExtractor()
    assert keys.key(["a", "b"]) == NO_GROUP
    assert keys.key([]) == NO_GROUP
    assert keys.max_index == -1


def test_group_key_projects_in_selection_order() -> None:
    keys = GroupKeyExtractor(Selection((2, 0)))
    assert keys.key(["a", "b", "c"]) == ("c", "a")
    assert keys.key(["a", "z", "c"]) == keys.key(["a", "y", "c"])
    assert keys.max_index == 2
