from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import Config, load_config
from .types import ConfigOverrides
from .app.container import build_container
from .app.orchestrator import Orchestrator
from .app.run_manager import start_run


logger = logging.getLogger(__name__)


def _make_orchestrator(cfg: Config, log_dir: Optional[Path] = None) -> Orchestrator:
    run_ctx = start_run(log_dir, cfg.log_level)
    container = build_container("rowfill", cfg)
    return Orchestrator(
        container=container,
        cfg=cfg,
        logger=logging.getLogger("rowfill.main"),
        run_dir=run_ctx.run_dir,
    )


def run_fill(
    selection: str,
    input_path: Optional[Path],
    output_path: Optional[Path],
    groupby: Optional[str] = None,
    cfg: Config | None = None,
    log_dir: Optional[Path] = None,
) -> int:
    orch = _make_orchestrator(cfg or Config(), log_dir)
    return orch.run_fill(selection, input_path, output_path, groupby)


def run_coalesce(
    selection: str,
    input_path: Optional[Path],
    output_path: Optional[Path],
    name: Optional[str] = None,
    cfg: Config | None = None,
    log_dir: Optional[Path] = None,
) -> int:
    orch = _make_orchestrator(cfg or Config(), log_dir)
    return orch.run_coalesce(selection, input_path, output_path, name)


def _add_common(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("selection", help="Columns by 1-based position, name or range, e.g. '1,3-4,city'")
    ap.add_argument(
        "input", nargs="?", type=Path, default=None, help="Input CSV or .xlsx (default: stdin)"
    )
    ap.add_argument(
        "-o", "--output", type=Path, default=None, help="Write output here instead of stdout"
    )
    ap.add_argument(
        "-n",
        "--no-headers",
        action="store_true",
        help="The first row is data, not headers; select columns by position only",
    )
    ap.add_argument(
        "-d", "--delimiter", default=None, help="Single-character field delimiter (default: ,)"
    )
    ap.add_argument("--config", type=Path, default=None, help="Optional YAML config file")
    ap.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Write run logs and run_manifest.yaml under a timestamped directory here",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="rowfill", description="Fill empty fields in CSV data")
    sub = ap.add_subparsers(dest="command", required=True)

    fill = sub.add_parser(
        "fill",
        help="Fill empty fields in the selected columns from previously seen values",
        description=(
            "Fill empty fields in the selected columns using the last seen non-empty "
            "value (or the first one with --first), optionally per group."
        ),
    )
    _add_common(fill)
    fill.add_argument(
        "-g", "--groupby", default=None, help="Columns whose values scope the fill memory"
    )
    fill.add_argument(
        "--first", action="store_true", help="Fill with the first value seen instead of the last"
    )
    fill.add_argument(
        "--backfill",
        action="store_true",
        help="Hold rows with unresolved empties until a later row supplies a value",
    )

    coalesce = sub.add_parser(
        "coalesce",
        help="Append a column holding the first non-empty selected field",
    )
    _add_common(coalesce)
    coalesce.add_argument(
        "--name", default=None, help="Header for the new column (default: first selected header)"
    )
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides: ConfigOverrides = {}
    # Optional overrides only when provided, so config files can set them
    if args.delimiter is not None:
        overrides["delimiter"] = args.delimiter
    if args.no_headers:
        overrides["no_headers"] = True
    if args.command == "fill":
        if args.first:
            overrides["policy"] = "first"
        if args.backfill:
            overrides["backfill"] = True

    try:
        cfg = load_config(args.config, overrides=overrides)
    except (OSError, ValueError) as exc:
        start_run(None)
        logger.error(f"Invalid configuration: {exc}")
        return 2

    try:
        if args.command == "fill":
            return run_fill(
                args.selection, args.input, args.output, args.groupby, cfg, args.log_dir
            )
        return run_coalesce(args.selection, args.input, args.output, args.name, cfg, args.log_dir)
    except Exception as exc:  # pragma: no cover
        logging.exception("Unhandled exception: %s", exc)
        return 3


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
