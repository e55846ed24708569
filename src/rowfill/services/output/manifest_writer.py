from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from ...config import Config
from ..fill.filler import FillStats
from .utils import sha256_file
from ...types import (
    Manifest,
    ManifestEnvironment,
    ManifestInputsEntry,
    ManifestParameters,
    ManifestStats,
)


def write_manifest(
    *,
    run_dir: Path,
    command: str,
    selection: str,
    groupby: Optional[str],
    input_path: Optional[Path],
    output_path: Optional[Path],
    started_at: str,
    finished_at: str,
    cfg: Config,
    stats: Optional[FillStats],
    logger: logging.Logger,
) -> Path:
    import platform
    import sys
    import yaml

    source: ManifestInputsEntry = {
        "path": "<stdin>" if input_path is None else str(input_path),
        "sha256": None if input_path is None else sha256_file(input_path),
    }

    params: ManifestParameters = {
        "command": command,
        "selection": selection,
        "groupby": groupby,
        "policy": cfg.policy.value,
        "backfill": cfg.backfill,
        "delimiter": cfg.delimiter,
        "no_headers": cfg.no_headers,
    }

    run_stats: ManifestStats = {}
    if stats is not None:
        run_stats = {
            "rows_read": stats.rows_read,
            "rows_emitted": stats.rows_emitted,
            "cells_filled": stats.cells_filled,
            "rows_buffered": stats.rows_buffered,
            "peak_pending": stats.peak_pending,
            "groups": stats.groups,
        }

    env: ManifestEnvironment = {
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "pandas": pd.__version__,
    }

    manifest: Manifest = {
        "started_at": started_at,
        "finished_at": finished_at,
        "input": source,
        "output": "<stdout>" if output_path is None else str(output_path),
        "parameters": params,
        "stats": run_stats,
        "environment": env,
    }

    out_path = run_dir / "run_manifest.yaml"
    logger.info("Writing run_manifest.yaml", extra={"path": str(out_path)})
    with out_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(manifest, f, sort_keys=False, allow_unicode=True)
    return out_path
