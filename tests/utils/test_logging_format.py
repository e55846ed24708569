from __future__ import annotations

import json
import logging
from pathlib import Path

from rowfill.utils.logging_setup import JsonLineFormatter, setup_logging


def test_json_formatter_includes_extras() -> None:
    rec = logging.LogRecord(
        name="rowfill.fill",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Filled %d cells",
        args=(3,),
        exc_info=None,
    )
    rec.cells_filled = 3
    payload = json.loads(JsonLineFormatter().format(rec))
    assert payload["message"] == "Filled 3 cells"
    assert payload["level"] == "INFO"
    assert payload["cells_filled"] == 3
    assert "lineno" not in payload


def test_setup_logging_is_repeatable(tmp_path: Path) -> None:
    root = logging.getLogger()
    setup_logging(tmp_path / "a")
    files = setup_logging(tmp_path / "b")
    ours = [h for h in root.handlers if getattr(h, "_rowfill", False)]
    # one console handler plus the two file handlers of the latest run
    assert len(ours) == 3
    assert files is not None
    logging.getLogger("rowfill.test").info("hello", extra={"rows": 1})
    for h in ours:
        h.flush()
    assert "hello" in files.human.read_text(encoding="utf-8")
    line = files.jsonl.read_text(encoding="utf-8").splitlines()[-1]
    assert json.loads(line)["rows"] == 1
    setup_logging(None)
