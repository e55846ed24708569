from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler


# Attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_KEYS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


@dataclass(frozen=True)
class LogFiles:
    human: Path
    jsonl: Path


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_KEYS:
                payload[key] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(log_dir: Optional[Path] = None, level: str = "INFO") -> Optional[LogFiles]:
    """Console logging to stderr (stdout carries data); file logs when ``log_dir`` is set."""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Drop handlers from a previous run; leave foreign ones (e.g. test capture) alone
    for h in list(logger.handlers):
        if getattr(h, "_rowfill", False):
            logger.removeHandler(h)
            h.close()

    console = RichHandler(
        level=level,
        console=Console(stderr=True),
        markup=False,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    console.setFormatter(logging.Formatter("%(message)s"))
    console._rowfill = True  # type: ignore[attr-defined]
    logger.addHandler(console)

    if log_dir is None:
        return None

    log_dir.mkdir(parents=True, exist_ok=True)
    human_log = log_dir / "latest_run.log"
    jsonl_log = log_dir / "logs.jsonl"

    human_handler = logging.FileHandler(human_log, encoding="utf-8")
    human_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )
    human_handler.setLevel(level)

    json_handler = logging.FileHandler(jsonl_log, encoding="utf-8")
    json_handler.setFormatter(JsonLineFormatter())
    json_handler.setLevel(level)

    for handler in (human_handler, json_handler):
        handler._rowfill = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return LogFiles(human=human_log, jsonl=jsonl_log)
