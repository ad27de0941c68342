from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROGRAM_PATH = Path(__file__).resolve().parent / "data" / "workouts.json"
DEFAULT_STATE_FILE = Path.home() / ".shred" / "state.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_ROTATION: str = "5 MB"
    LOG_RETENTION: str = "14 days"

    PROGRAM_PATH: Path = DEFAULT_PROGRAM_PATH
    STATE_FILE: Path = DEFAULT_STATE_FILE

    # Remote photo store; photos are disabled when no URL is configured
    PHOTO_STORE_URL: Optional[str] = None
    PHOTO_STORE_TOKEN: Optional[str] = None
    PHOTO_STORE_TIMEOUT: float = 15.0

    TIMER_TICK_SECONDS: float = 1.0


_SECRET_KEYS = [
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_FILE",
    "LOG_ROTATION",
    "LOG_RETENTION",
    "STATE_FILE",
    "PHOTO_STORE_URL",
    "PHOTO_STORE_TOKEN",
    "PHOTO_STORE_TIMEOUT",
]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Allow Streamlit Cloud secrets to override or provide env values
    overrides: dict = {}
    try:
        import streamlit as _st  # type: ignore
        sec = getattr(_st, "secrets", None)
        if sec:
            for k in _SECRET_KEYS:
                if k in sec and sec[k] is not None and sec[k] != "":
                    overrides[k] = sec[k]
    except Exception:
        pass
    return Settings(**overrides)  # type: ignore[call-arg]
