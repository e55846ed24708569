from __future__ import annotations

import itertools
import logging
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, Optional, Union

from ..config import Config
from ..domain.errors import RowfillError
from ..domain.selection import Selection, resolve_selection
from ..services.fill.filler import FillStats
from ..services.io_tables import CsvRecordWriter, ExcelRecordWriter
from ..services.output.manifest_writer import write_manifest
from .container import Container


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Orchestrator:
    container: Container
    cfg: Config
    logger: logging.Logger
    run_dir: Optional[Path] = None

    def _records(self, input_path: Optional[Path]) -> Generator[list[str], None, None]:
        return self.container.io.read_records(
            input_path, self.cfg.delimiter, self.cfg.encoding, self.cfg.excel_sheet
        )

    def _resolve(self, spec: str, first: list[str]) -> Selection:
        return resolve_selection(spec, first, has_headers=not self.cfg.no_headers)

    def _open_writer(self, output_path: Optional[Path]) -> Union[CsvRecordWriter, ExcelRecordWriter]:
        return self.container.io.open_writer(
            output_path, not self.cfg.no_headers, self.cfg.delimiter, self.cfg.encoding
        )

    def run_fill(
        self,
        selection: str,
        input_path: Optional[Path],
        output_path: Optional[Path],
        groupby: Optional[str] = None,
    ) -> int:
        """Header row passes through untouched; data rows go through the filler."""
        started = _now()
        io = self.container.io
        has_headers = not self.cfg.no_headers
        stats: Optional[FillStats] = None
        try:
            with closing(self._records(input_path)) as records:
                first = next(records, None)
                if first is None:
                    self.logger.warning("Input is empty; nothing to fill")
                    self._open_writer(output_path).close()
                else:
                    targets = self._resolve(selection, first)
                    group_sel = self._resolve(groupby, first) if groupby else None
                    filler = self.container.fill.build_filler(
                        targets, group_sel, self.cfg.policy, self.cfg.backfill
                    )
                    body = records if has_headers else itertools.chain([first], records)
                    with self._open_writer(output_path) as writer:
                        if has_headers:
                            writer.write(first)
                        io.write_all(writer, self.container.fill.fill(filler, body))
                    stats = filler.stats
        except RowfillError as e:
            self.logger.error(f"{e.category.value}: {e}")
            return 1
        except OSError as e:
            self.logger.error(f"IO_ERROR: {e}")
            return 1

        self._finish("fill", selection, groupby, input_path, output_path, started, stats)
        return 0

    def run_coalesce(
        self,
        selection: str,
        input_path: Optional[Path],
        output_path: Optional[Path],
        name: Optional[str] = None,
    ) -> int:
        started = _now()
        io = self.container.io
        tr = self.container.transform
        has_headers = not self.cfg.no_headers
        try:
            with closing(self._records(input_path)) as records:
                first = next(records, None)
                if first is None:
                    self.logger.warning("Input is empty; nothing to coalesce")
                    self._open_writer(output_path).close()
                else:
                    sel = self._resolve(selection, first)
                    body = records if has_headers else itertools.chain([first], records)
                    with self._open_writer(output_path) as writer:
                        if has_headers:
                            writer.write(tr.coalesce_header(first, sel, name))
                        io.write_all(writer, tr.coalesce(body, sel))
        except RowfillError as e:
            self.logger.error(f"{e.category.value}: {e}")
            return 1
        except OSError as e:
            self.logger.error(f"IO_ERROR: {e}")
            return 1

        self._finish("coalesce", selection, None, input_path, output_path, started, None)
        return 0

    def _finish(
        self,
        command: str,
        selection: str,
        groupby: Optional[str],
        input_path: Optional[Path],
        output_path: Optional[Path],
        started: str,
        stats: Optional[FillStats],
    ) -> None:
        if self.run_dir is None:
            return
        write_manifest(
            run_dir=self.run_dir,
            command=command,
            selection=selection,
            groupby=groupby,
            input_path=input_path,
            output_path=output_path,
            started_at=started,
            finished_at=_now(),
            cfg=self.cfg,
            stats=stats,
            logger=self.logger,
        )
