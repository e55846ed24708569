from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional, Sequence

from ..domain.selection import Selection
from .fill.fields import Record
from .transform.coalesce import coalesce_header, coalesce_records


class TransformService:
    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def coalesce_header(
        self, header: Sequence[str], selection: Selection, name: Optional[str] = None
    ) -> Record:
        return coalesce_header(header, selection, name)

    def coalesce(self, records: Iterable[Sequence[str]], selection: Selection) -> Iterator[Record]:
        self.logger.info("Coalescing columns", extra={"columns": [i + 1 for i in selection]})
        count = 0
        for record in coalesce_records(records, selection):
            count += 1
            yield record
        self.logger.info(f"Coalesced {count} rows", extra={"rows": count})
