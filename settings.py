"""
settings
--------
Environment-driven configuration for the plan progress tracker.

Values are read from ``PLAN_TRACKER_*`` environment variables (or a local
``.env`` file) and validated once per process.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class TrackerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PLAN_TRACKER_",
        env_file=".env",
        extra="ignore",
    )

    # JSON document holding every plan's progress record
    store_path: Path = Field(default=Path("data/plan_progress.json"))
    # How often the progress panel recomputes time-based figures
    refresh_seconds: int = Field(default=60, ge=1)
    log_level: str = Field(default="INFO")
    default_plan_id: str = Field(default="unbroke-1")


@lru_cache(maxsize=1)
def get_settings() -> TrackerSettings:
    return TrackerSettings()


def configure_logging(settings: Optional[TrackerSettings] = None) -> None:
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
