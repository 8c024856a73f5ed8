"""loguru sinks for the CLI. Library modules just import ``logger``."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<level>{level: <7}</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {name}:{function}:{line} | {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | Path | None = None,
    *,
    file_level: str | None = None,
    rotation: str = "5 MB",
    retention: int = 3,
) -> list[int]:
    """Replace loguru's default handler with a stderr sink and, optionally, a rotating file.

    The file sink defaults to the console level; pass *file_level* to keep a
    more detailed record on disk than on screen. Returns the new sink ids.
    """
    logger.remove()
    sink_ids = [logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT)]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        sink_ids.append(
            logger.add(
                path,
                level=(file_level or level).upper(),
                format=FILE_FORMAT,
                rotation=rotation,
                retention=retention,
                encoding="utf-8",
            )
        )
    return sink_ids
