"""Loguru sinks for the app, configured from ``Settings``."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Tuple

from loguru import logger

from shred.config import Settings, get_settings

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> <cyan>{name}</cyan> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {thread.name} | {name}:{line} | {message}"

_active: Optional[Tuple[str, Optional[str]]] = None


def setup_logger(settings: Optional[Settings] = None) -> None:
    """Replace loguru's default sink with ours.

    Streamlit runs this once per browser session; a call with the same level and
    file as the active configuration is a no-op. The file sink is enqueued because
    photo uploads log from a background thread.
    """
    global _active
    s = settings or get_settings()
    level = s.LOG_LEVEL.upper()
    key = (level, s.LOG_FILE)
    if key == _active:
        return

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)
    if s.LOG_FILE:
        path = Path(s.LOG_FILE).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=FILE_FORMAT,
            level=level,
            rotation=s.LOG_ROTATION,
            retention=s.LOG_RETENTION,
            enqueue=True,
            diagnose=s.APP_ENV == "dev",
        )
    _active = key
    logger.debug(f"Logging at {level} ({s.APP_ENV}){' to ' + str(s.LOG_FILE) if s.LOG_FILE else ''}")
