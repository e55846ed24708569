from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..utils.logging_setup import setup_logging


@dataclass(frozen=True)
class RunContext:
    run_dir: Optional[Path]
    logger: logging.Logger


def start_run(
    log_dir: Optional[Path], level: str = "INFO", base_logger_name: str = "rowfill"
) -> RunContext:
    run_dir = None
    if log_dir is not None:
        run_dir = log_dir / datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    setup_logging(run_dir, level)
    logger = logging.getLogger(base_logger_name)
    logger.debug("Run started", extra={"run_dir": None if run_dir is None else str(run_dir)})
    return RunContext(run_dir=run_dir, logger=logger)
