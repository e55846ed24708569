from __future__ import annotations

import pytest

from rowfill.domain.errors import ErrorCategory, SelectionInvalid
from rowfill.domain.selection import Selection, resolve_selection


HEADER = ["id", "city", "zip", "city", "note-1"]


def test_positions_are_one_based() -> None:
    assert resolve_selection("1,3", HEADER).indices == (0, 2)


def test_names_and_duplicate_index() -> None:
    assert resolve_selection("city", HEADER).indices == (1,)
    assert resolve_selection("city[1]", HEADER).indices == (3,)


def test_ranges_keep_selection_order_and_drop_repeats() -> None:
    assert resolve_selection("4-5,2-3", HEADER).indices == (3, 4, 1, 2)
    assert resolve_selection("id-zip", HEADER).indices == (0, 1, 2)
    assert resolve_selection("2,1-3", HEADER).indices == (1, 0, 2)


def test_open_ended_ranges() -> None:
    assert resolve_selection("4-", HEADER).indices == (3, 4)
    assert resolve_selection("-2", HEADER).indices == (0, 1)


def test_hyphenated_name_is_not_a_range() -> None:
    assert resolve_selection("note-1", HEADER).indices == (4,)


def test_inversion() -> None:
    assert resolve_selection("!1,city", HEADER).indices == (2, 3, 4)


def test_no_headers_allows_positions_only() -> None:
    row = ["a", "b", "c"]
    assert resolve_selection("2-3", row, has_headers=False).indices == (1, 2)
    with pytest.raises(SelectionInvalid):
        resolve_selection("a", row, has_headers=False)


@pytest.mark.parametrize("spec", ["6", "0", "nope", "", "1,,2", "3-1", "city[2]", "!1-5"])
def test_invalid_selections(spec: str) -> None:
    with pytest.raises(SelectionInvalid) as err:
        resolve_selection(spec, HEADER)
    assert err.value.category is ErrorCategory.SELECTION_INVALID


def test_sorted_and_max_index() -> None:
    sel = Selection((3, 0, 2))
    assert sel.sorted().indices == (0, 2, 3)
    assert sel.max_index == 3
    assert 2 in sel
    assert len(sel) == 3
