from __future__ import annotations

import pytest

from rowfill.services.fill.fields import count_empty, has_empty, map_selected


def test_map_selected_only_touches_selected_positions() -> None:
    seen: list[int] = []

    def upper(i: int, field: str) -> str:
        seen.append(i)
        return field.upper()

    record = ["a", "b", "c", "d"]
    out = map_selected(record, [1, 3], upper)
    assert out == ["a", "B", "c", "D"]
    assert seen == [1, 3]
    # original record is never mutated
    assert record == ["a", "b", "c", "d"]


def test_map_selected_empty_selection_copies() -> None:
    record = ["x", ""]
    out = map_selected(record, [], lambda i, f: "!")
    assert out == record
    assert out is not record


def test_map_selected_index_past_width_raises() -> None:
    with pytest.raises(IndexError):
        map_selected(["a"], [0, 2], lambda i, f: f)


def test_empty_helpers() -> None:
    record = ["", "x", "", "y"]
    assert has_empty(record, [0, 1])
    assert not has_empty(record, [1, 3])
    assert count_empty(record, [0, 1, 2]) == 2
