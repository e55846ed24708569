from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union, cast

from .services.fill.memory import FillPolicy
from .services.io_tables import parse_delimiter
from .types import ConfigOverrides, YamlConfig


DEFAULT_CONFIG = Path("rowfill.yaml")

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass(frozen=True)
class Config:
    delimiter: str = ","
    no_headers: bool = False
    encoding: str = "utf-8"
    policy: FillPolicy = FillPolicy.FORWARD
    backfill: bool = False
    # Worksheet for Excel input: index or name
    excel_sheet: Union[int, str] = 0
    log_level: str = "INFO"


def _read_yaml(path: Path) -> YamlConfig:
    import yaml

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"{path}: invalid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return cast(YamlConfig, raw)


def load_config(path: Optional[Path], overrides: Optional[ConfigOverrides] = None) -> Config:
    data: YamlConfig = {}

    # Project-level rowfill.yaml is picked up when present
    if DEFAULT_CONFIG.exists():
        data.update(_read_yaml(DEFAULT_CONFIG))

    # Explicit --config overrides it; a missing explicit file is an error
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"config file not found: {path}")
        data.update(_read_yaml(path))

    if overrides:
        data.update(cast(YamlConfig, {k: v for k, v in overrides.items() if v is not None}))

    # Coerce booleans from strings if needed (env/CLI friendliness)
    for key in ("no_headers", "backfill"):
        if key in data:
            val = data.get(key)
            if isinstance(val, str):
                data[key] = val.strip().lower() in {"1", "true", "yes", "y"}

    defaults = Config()
    sheet: Union[int, str] = data.get("excel_sheet", defaults.excel_sheet)
    if isinstance(sheet, str) and sheet.isdigit():
        sheet = int(sheet)
    log_level = str(data.get("log_level", defaults.log_level)).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"unknown log_level {log_level!r}")

    return Config(
        delimiter=parse_delimiter(str(data.get("delimiter", defaults.delimiter))),
        no_headers=bool(data.get("no_headers", defaults.no_headers)),
        encoding=str(data.get("encoding", defaults.encoding)),
        policy=FillPolicy(str(data.get("policy", defaults.policy.value)).lower()),
        backfill=bool(data.get("backfill", defaults.backfill)),
        excel_sheet=sheet,
        log_level=log_level,
    )
