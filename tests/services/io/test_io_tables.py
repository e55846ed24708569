from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from rowfill.domain.errors import InputMalformed
from rowfill.services.io_tables import (
    CsvRecordWriter,
    ExcelRecordWriter,
    is_excel,
    iter_csv_records,
    parse_delimiter,
    read_excel_records,
)


def test_parse_delimiter() -> None:
    assert parse_delimiter(";") == ";"
    assert parse_delimiter("\\t") == "\t"
    assert parse_delimiter("tab") == "\t"
    with pytest.raises(ValueError):
        parse_delimiter(";;")


def test_is_excel() -> None:
    assert is_excel(Path("a.XLSX"))
    assert not is_excel(Path("a.csv"))
    assert not is_excel(None)


def test_csv_reader_keeps_ragged_rows_and_skips_blank_lines(tmp_path: Path) -> None:
    src = tmp_path / "in.csv"
    src.write_text("a,b,c\n\n1,2\n3,4,5,6\n", encoding="utf-8")
    assert list(iter_csv_records(src)) == [["a", "b", "c"], ["1", "2"], ["3", "4", "5", "6"]]


def test_csv_round_trip_preserves_undecodable_bytes(tmp_path: Path) -> None:
    raw = b"h1;h2\n\xff\xfe;caf\xc3\xa9\n"
    src = tmp_path / "in.csv"
    src.write_bytes(raw)
    out = tmp_path / "out.csv"
    with CsvRecordWriter(out, delimiter=";") as w:
        for rec in iter_csv_records(src, delimiter=";"):
            w.write(rec)
    assert out.read_bytes() == raw


def test_csv_writer_quotes_when_needed(tmp_path: Path) -> None:
    out = tmp_path / "out.csv"
    with CsvRecordWriter(out) as w:
        w.write(["a,b", "c"])
        assert w.rows_written == 1
    assert out.read_text(encoding="utf-8") == '"a,b",c\n'


def test_csv_reader_reports_malformed_input(tmp_path: Path) -> None:
    src = tmp_path / "in.csv"
    # a field beyond the csv module's field size limit
    src.write_text("a,b\n" + "x" * 200_000 + ",z\n", encoding="utf-8")
    with pytest.raises(InputMalformed):
        list(iter_csv_records(src))


def test_excel_writer_and_reader(tmp_path: Path) -> None:
    out = tmp_path / "out.xlsx"
    with ExcelRecordWriter(out, has_header=True) as w:
        w.write(["id", "city"])
        w.write(["1", "Oslo"])
        w.write(["2"])
    df = pd.read_excel(out, dtype=str).fillna("")
    assert list(df.columns) == ["id", "city"]
    assert df["city"].tolist() == ["Oslo", ""]

    rows = list(read_excel_records(out))
    assert rows == [["id", "city"], ["1", "Oslo"], ["2", ""]]


def test_excel_writer_skips_workbook_on_error(tmp_path: Path) -> None:
    out = tmp_path / "out.xlsx"
    with pytest.raises(RuntimeError):
        with ExcelRecordWriter(out, has_header=False) as w:
            w.write(["1"])
            raise RuntimeError("boom")
    assert not out.exists()


def test_excel_writer_rejects_undecodable_text(tmp_path: Path) -> None:
    src = tmp_path / "in.csv"
    src.write_bytes(b"h1,h2\n\xff,x\n,y\n")
    out = tmp_path / "out.xlsx"
    with pytest.raises(InputMalformed) as info:
        with ExcelRecordWriter(out, has_header=True) as w:
            for record in iter_csv_records(src):
                w.write(record)
    assert info.value.row_index == 1
    assert not out.exists()


def test_excel_writer_rejects_control_characters(tmp_path: Path) -> None:
    out = tmp_path / "out.xlsx"
    with pytest.raises(InputMalformed):
        with ExcelRecordWriter(out, has_header=False) as w:
            w.write(["ok"])
            w.write(["bell\x07"])
    assert not out.exists()


def test_excel_header_only_output_has_no_table(tmp_path: Path) -> None:
    from openpyxl import load_workbook

    out = tmp_path / "out.xlsx"
    with ExcelRecordWriter(out, has_header=True) as w:
        w.write(["id", "city"])
    ws = load_workbook(out).active
    assert [c.value for c in ws[1]] == ["id", "city"]
    assert not ws.tables


def test_excel_output_with_rows_has_table(tmp_path: Path) -> None:
    from openpyxl import load_workbook

    out = tmp_path / "out.xlsx"
    with ExcelRecordWriter(out, has_header=True) as w:
        w.write(["id", "city"])
        w.write(["1", "Oslo"])
    ws = load_workbook(out).active
    assert ws.tables["Sheet1"].ref == "A1:B2"


def test_unreadable_workbook_is_an_os_error(tmp_path: Path) -> None:
    src = tmp_path / "in.xlsx"
    src.write_bytes(b"not a zip")
    with pytest.raises(OSError):
        list(read_excel_records(src))
