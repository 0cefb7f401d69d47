"""Console logging setup for scripts and notebooks using the package."""
from __future__ import annotations

import logging
from typing import Union

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("isoterrain").setLevel(level)
