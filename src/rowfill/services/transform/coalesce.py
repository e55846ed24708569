from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence

from ...domain.errors import InputMalformed
from ...domain.selection import Selection
from ..fill.fields import Record


def coalesce_record(record: Sequence[str], selection: Selection) -> Record:
    """Append the first non-empty selected field (selection order), or ''."""
    value = next((record[i] for i in selection if record[i] != ""), "")
    return [*record, value]


def coalesce_header(header: Sequence[str], selection: Selection, name: Optional[str] = None) -> Record:
    if name is not None:
        return [*header, name]
    return coalesce_record(header, selection)


def coalesce_records(records: Iterable[Sequence[str]], selection: Selection) -> Iterator[Record]:
    need = selection.max_index + 1
    for row, record in enumerate(records, start=1):
        if len(record) < need:
            raise InputMalformed(
                f"record has {len(record)} fields but column {need} is selected", row_index=row
            )
        yield coalesce_record(record, selection)
