from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Union

import pandas as pd

from ..domain.errors import SelectionInvalid
from ..domain.selection import Selection
from .fill.fields import Record
from .fill.filler import Filler, FillStats
from .fill.memory import FillPolicy


def _frame_selection(header: list[str], names: Union[str, Sequence[str]]) -> Selection:
    # A single column name is accepted as-is, not as a sequence of characters
    if isinstance(names, str):
        names = [names]
    if not names:
        raise SelectionInvalid("no DataFrame columns selected")
    missing = [n for n in names if str(n) not in header]
    if missing:
        raise SelectionInvalid(f"unknown DataFrame column(s): {missing}")
    return Selection(tuple(dict.fromkeys(header.index(str(n)) for n in names)))


@dataclass(frozen=True)
class FrameFillResult:
    df: pd.DataFrame
    stats: FillStats


def fill_frame(
    df: pd.DataFrame,
    columns: Union[str, Sequence[str]],
    groupby: Optional[Union[str, Sequence[str]]] = None,
    policy: FillPolicy = FillPolicy.FORWARD,
    backfill: bool = False,
) -> FrameFillResult:
    """Fill blank cells of selected DataFrame columns with the streaming engine.

    NA cells are treated as empty. Every cell is handled as text, so the result
    has object dtype. Backfill on unsorted groups reorders rows exactly as the
    streaming output does; the original index labels travel with their rows.
    """
    header = [str(c) for c in df.columns]
    targets = _frame_selection(header, columns)
    group_sel = _frame_selection(header, groupby) if groupby is not None else None

    labels = list(df.index)
    # The index label rides along as a trailing field so reordered rows keep it
    rows = (
        [("" if pd.isna(v) else str(v)) for v in values] + [str(pos)]
        for pos, values in enumerate(df.itertuples(index=False, name=None))
    )
    filler = Filler(targets, group_sel, policy, backfill)
    out_rows = list(filler.run(rows))
    out = pd.DataFrame(
        [r[:-1] for r in out_rows],
        columns=df.columns,
        index=[labels[int(r[-1])] for r in out_rows],
        dtype=object,
    )
    return FrameFillResult(df=out, stats=filler.stats)


class FillService:
    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def build_filler(
        self,
        targets: Selection,
        groupby: Optional[Selection],
        policy: FillPolicy,
        backfill: bool,
    ) -> Filler:
        self.logger.info(
            "Filling columns",
            extra={
                "targets": [i + 1 for i in targets],
                "groupby": None if groupby is None else [i + 1 for i in groupby],
                "policy": policy.value,
                "backfill": backfill,
            },
        )
        return Filler(targets, groupby, policy, backfill)

    def fill(self, filler: Filler, records: Iterable[Sequence[str]]) -> Iterator[Record]:
        yield from filler.run(records)
        st = filler.stats
        self.logger.info(
            f"Filled {st.cells_filled} cells across {st.rows_emitted} rows "
            f"({st.groups} groups, {st.rows_buffered} rows held for backfill)",
            extra={
                "rows_read": st.rows_read,
                "rows_emitted": st.rows_emitted,
                "cells_filled": st.cells_filled,
                "rows_buffered": st.rows_buffered,
                "peak_pending": st.peak_pending,
                "groups": st.groups,
            },
        )
