"""
Logging setup — stdlib ``logging`` driven by ``Settings``.

Every module logs through ``logging.getLogger(__name__)``; this module
only wires handlers and the level once, from the application factory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from machine_status.core.config import settings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``machine_status`` logger hierarchy.

    Args:
        level:    Overrides ``settings.LOG_LEVEL``.
        log_file: Overrides ``settings.LOG_FILE``; empty disables file output.

    Returns:
        The configured package root logger.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_file = settings.LOG_FILE if log_file is None else log_file

    root = logging.getLogger("machine_status")
    root.setLevel(level_name)
    root.handlers.clear()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    root.info(f"[Logging] Initialized (level={level_name})")
    return root
