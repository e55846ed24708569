from __future__ import annotations

import csv
import io
import logging
import re
import sys
import zipfile
from pathlib import Path
from types import TracebackType
from typing import Generator, Iterable, Optional, Protocol, Sequence, TextIO, Union

import pandas as pd

from ..domain.errors import InputMalformed


EXCEL_SUFFIXES = {".xlsx", ".xlsm"}

SheetRef = Union[int, str]

# Undecodable input bytes, kept by surrogateescape
_SURROGATES_RE = re.compile("[\ud800-\udfff]")


def is_excel(path: Optional[Path]) -> bool:
    return path is not None and path.suffix.lower() in EXCEL_SUFFIXES


def parse_delimiter(value: str) -> str:
    """Accept a single character, or ``\\t`` / ``tab`` for tab-separated data."""
    if value in ("\\t", "tab"):
        return "\t"
    if len(value) != 1:
        raise ValueError(f"delimiter must be a single character, got {value!r}")
    return value


def _wrap_std(stream: TextIO, encoding: str) -> TextIO:
    raw = getattr(stream, "buffer", None)
    if raw is None:
        return stream
    return io.TextIOWrapper(raw, encoding=encoding, errors="surrogateescape", newline="")


def _release(handle: TextIO, std: TextIO) -> None:
    """Close a handle we opened; only detach wrappers around stdin/stdout."""
    if handle is std:
        handle.flush()
    elif isinstance(handle, io.TextIOWrapper) and handle.buffer is getattr(std, "buffer", None):
        handle.flush()
        handle.detach()
    else:
        handle.close()


def iter_csv_records(
    path: Optional[Path], delimiter: str = ",", encoding: str = "utf-8"
) -> Generator[list[str], None, None]:
    """Stream rows from a CSV file (or stdin when ``path`` is None).

    Bytes that do not decode are kept via surrogateescape so they are written
    back unchanged. Ragged rows are passed through as-is; blank lines are
    skipped.
    """
    if path is None:
        handle = _wrap_std(sys.stdin, encoding)
    else:
        handle = open(path, "r", encoding=encoding, errors="surrogateescape", newline="")
    try:
        reader = csv.reader(handle, delimiter=delimiter)
        try:
            for record in reader:
                if record:
                    yield record
        except csv.Error as e:
            raise InputMalformed(f"unreadable CSV near line {reader.line_num}: {e}") from e
    finally:
        _release(handle, sys.stdin)


def read_excel_records(path: Path, sheet: SheetRef = 0) -> Generator[list[str], None, None]:
    """Read one worksheet as text rows; blank cells become empty fields."""
    try:
        df = pd.read_excel(path, sheet_name=sheet, header=None, dtype=str)
    except (ValueError, IndexError, KeyError, zipfile.BadZipFile) as e:
        raise OSError(f"{path}: cannot read worksheet {sheet!r}: {e}") from e
    df = df.fillna("")
    for row in df.itertuples(index=False, name=None):
        yield [str(v) for v in row]


class RecordWriter(Protocol):
    def write(self, record: Sequence[str]) -> None: ...

    def close(self) -> None: ...


class CsvRecordWriter:
    def __init__(
        self, path: Optional[Path], delimiter: str = ",", encoding: str = "utf-8"
    ) -> None:
        if path is None:
            self._handle = _wrap_std(sys.stdout, encoding)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(
                path, "w", encoding=encoding, errors="surrogateescape", newline=""
            )
        self._writer = csv.writer(self._handle, delimiter=delimiter, lineterminator="\n")
        self.rows_written = 0

    def write(self, record: Sequence[str]) -> None:
        self._writer.writerow(record)
        self.rows_written += 1

    def close(self) -> None:
        _release(self._handle, sys.stdout)

    def __enter__(self) -> "CsvRecordWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


def _check_cell_text(record: Sequence[str], row_index: Optional[int] = None) -> None:
    """Raise InputMalformed if a field cannot be stored in a worksheet cell."""
    from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

    for pos, value in enumerate(record, start=1):
        if _SURROGATES_RE.search(value):
            raise InputMalformed(
                f"field {pos} holds bytes that are not valid text; use CSV output", row_index
            )
        if ILLEGAL_CHARACTERS_RE.search(value):
            raise InputMalformed(
                f"field {pos} holds control characters Excel cannot store", row_index
            )


def write_excel(
    rows: Sequence[Sequence[str]], out_path: Path, has_header: bool, sheet_name: str = "Sheet1"
) -> None:
    """Write rows to an Excel sheet, wrapped as a native Table when the header allows.

    Ragged rows are padded with empty cells to the widest row. Fields that a
    worksheet cannot hold raise InputMalformed before anything is written.
    """
    from openpyxl.styles import Alignment, Font
    from openpyxl.utils import get_column_letter
    from openpyxl.worksheet.table import Table, TableStyleInfo

    for i, row in enumerate(rows):
        _check_cell_text(row, (i if has_header else i + 1) or None)

    width = max((len(r) for r in rows), default=0)
    padded = [list(r) + [""] * (width - len(r)) for r in rows]
    header: list[str] = padded[0] if has_header and padded else []
    body = padded[1:] if has_header else padded
    df_out = pd.DataFrame(body, columns=header or None)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        df_out.to_excel(writer, sheet_name=sheet_name, index=False, header=bool(header))
        ws = writer.sheets[sheet_name]

        # Excel tables need unique, non-empty header cells and at least one data row
        if header and body and width and len(set(header)) == len(header) and all(header):
            ref = f"A1:{get_column_letter(width)}{len(body) + 1}"
            table = Table(displayName=sheet_name.replace(" ", "_"), ref=ref)
            table.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium2",
                showFirstColumn=False,
                showLastColumn=False,
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(table)
            for idx in range(1, width + 1):
                cell = ws.cell(row=1, column=idx)
                cell.alignment = Alignment(horizontal="left")
                cell.font = Font(color="FFFFFFFF")

        for idx, name in enumerate(header or [""] * width, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = max(12, min(40, len(name) + 2))


class ExcelRecordWriter:
    """Collects rows and writes the workbook on close."""

    def __init__(self, path: Path, has_header: bool) -> None:
        self.path = path
        self.has_header = has_header
        self._rows: list[list[str]] = []
        self.rows_written = 0

    def write(self, record: Sequence[str]) -> None:
        self._rows.append(list(record))
        self.rows_written += 1

    def close(self) -> None:
        write_excel(self._rows, self.path, self.has_header)

    def __enter__(self) -> "ExcelRecordWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        # A failed run leaves no half-written workbook behind
        if exc_type is None:
            self.close()


class IOService:
    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def read_records(
        self,
        path: Optional[Path],
        delimiter: str = ",",
        encoding: str = "utf-8",
        sheet: SheetRef = 0,
    ) -> Generator[list[str], None, None]:
        source = "<stdin>" if path is None else str(path)
        if path is not None and is_excel(path):
            self.logger.info("Reading workbook", extra={"path": source, "sheet": sheet})
            return read_excel_records(path, sheet)
        self.logger.info("Reading CSV", extra={"path": source})
        return iter_csv_records(path, delimiter, encoding)

    def open_writer(
        self,
        path: Optional[Path],
        has_header: bool,
        delimiter: str = ",",
        encoding: str = "utf-8",
    ) -> Union[CsvRecordWriter, ExcelRecordWriter]:
        target = "<stdout>" if path is None else str(path)
        self.logger.info("Writing output", extra={"path": target})
        if path is not None and is_excel(path):
            return ExcelRecordWriter(path, has_header)
        return CsvRecordWriter(path, delimiter, encoding)

    def write_all(self, writer: RecordWriter, records: Iterable[Sequence[str]]) -> None:
        for record in records:
            writer.write(record)
