"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_optional_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_hour_range(name: str, default: tuple[int, int]) -> tuple[int, int]:
    """Parse an ``HH-HH`` environment value into a half-open hour range."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    parts = value.strip().split("-")
    if len(parts) != 2 or not all(part.strip().isdigit() for part in parts):
        raise ValueError(f"{name} must follow HH-HH format, got {value!r}")
    return int(parts[0]), int(parts[1])


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    database_path: Path
    log_level: str
    admin_token: Optional[str]
    session_ttl_minutes: int
    schedule_default_duration_minutes: int
    schedule_slot_minutes: int
    attendance_bucket_minutes: int
    attendance_anchor_minutes: int
    blackout_start_hours: tuple[int, int]
    blackout_end_hours: tuple[int, int]
    schedule_timezone: str
    seed_demo_data: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process; call ``cache_clear`` to reload."""
    database_path = Path(_env_str("DATABASE_PATH", "data/game_night.db"))
    if not database_path.is_absolute():
        database_path = PROJECT_ROOT / database_path

    return Settings(
        app_name=_env_str("APP_NAME", "Game Night Planner"),
        app_version=_env_str("APP_VERSION", "1.0.0"),
        database_path=database_path,
        log_level=_env_str("LOG_LEVEL", "INFO"),
        admin_token=_env_optional_str("ADMIN_TOKEN"),
        session_ttl_minutes=_env_int("SESSION_TTL_MINUTES", 720),
        schedule_default_duration_minutes=_env_int("SCHEDULE_DEFAULT_DURATION_MINUTES", 120),
        schedule_slot_minutes=_env_int("SCHEDULE_SLOT_MINUTES", 30),
        attendance_bucket_minutes=_env_int("ATTENDANCE_BUCKET_MINUTES", 360),
        attendance_anchor_minutes=_env_int("ATTENDANCE_ANCHOR_MINUTES", 360),
        blackout_start_hours=_env_hour_range("BLACKOUT_START_HOURS", (1, 10)),
        blackout_end_hours=_env_hour_range("BLACKOUT_END_HOURS", (2, 10)),
        schedule_timezone=_env_str("SCHEDULE_TIMEZONE", "UTC"),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
    )
