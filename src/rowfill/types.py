from __future__ import annotations

from typing import Optional, TypedDict, Union


class ConfigOverrides(TypedDict, total=False):
    delimiter: str
    no_headers: bool
    encoding: str
    policy: str
    backfill: bool
    excel_sheet: Union[int, str]
    log_level: str


class YamlConfig(TypedDict, total=False):
    delimiter: str
    no_headers: bool
    encoding: str
    policy: str
    backfill: bool
    excel_sheet: Union[int, str]
    log_level: str


class ManifestInputsEntry(TypedDict):
    path: str
    sha256: Optional[str]


class ManifestParameters(TypedDict):
    command: str
    selection: str
    groupby: Optional[str]
    policy: str
    backfill: bool
    delimiter: str
    no_headers: bool


class ManifestEnvironment(TypedDict):
    python: str
    platform: str
    pandas: str


class ManifestStats(TypedDict, total=False):
    rows_read: int
    rows_emitted: int
    cells_filled: int
    rows_buffered: int
    peak_pending: int
    groups: int


class Manifest(TypedDict):
    started_at: str
    finished_at: str
    input: ManifestInputsEntry
    output: str
    parameters: ManifestParameters
    stats: ManifestStats
    environment: ManifestEnvironment
