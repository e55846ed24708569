from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import Config
from ..services.fill_service import FillService
from ..services.io_tables import IOService
from ..services.transform_service import TransformService


@dataclass(frozen=True)
class Container:
    io: IOService
    fill: FillService
    transform: TransformService


def build_container(base_logger_name: str, cfg: Config) -> Container:
    base = logging.getLogger(base_logger_name)
    io = IOService(base.getChild("io"))
    fill = FillService(base.getChild("fill"))
    transform = TransformService(base.getChild("transform"))
    return Container(io=io, fill=fill, transform=transform)
