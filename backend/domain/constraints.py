"""Domain-level rules for game-night scheduling."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from backend.domain.models import SchedulerInput
from backend.utils.config import Settings


MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class SchedulerConfig:
    slot_minutes: int = 30
    bucket_minutes: int = 360
    anchor_minutes: int = 360
    blackout_start_hours: tuple[int, int] = (1, 10)
    blackout_end_hours: tuple[int, int] = (2, 10)
    timezone_name: str = "UTC"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SchedulerConfig":
        return cls(
            slot_minutes=settings.schedule_slot_minutes,
            bucket_minutes=settings.attendance_bucket_minutes,
            anchor_minutes=settings.attendance_anchor_minutes,
            blackout_start_hours=tuple(settings.blackout_start_hours),
            blackout_end_hours=tuple(settings.blackout_end_hours),
            timezone_name=settings.schedule_timezone,
        )

    @property
    def zone(self) -> tzinfo:
        if self.timezone_name.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone_name)


DEFAULT_SCHEDULER_CONFIG = SchedulerConfig()


def _validate_hour_range(name: str, hours: tuple[int, int]) -> None:
    if len(hours) != 2:
        raise ValueError(f"{name} must contain exactly two hours")
    lower, upper = hours
    if not 0 <= lower < upper <= 24:
        raise ValueError(f"{name} must satisfy 0 <= lower < upper <= 24")


def validate_scheduler_config(config: SchedulerConfig) -> None:
    if config.slot_minutes <= 0:
        raise ValueError("slot_minutes must be > 0")
    if config.bucket_minutes <= 0:
        raise ValueError("bucket_minutes must be > 0")
    if not 0 <= config.anchor_minutes < MINUTES_PER_DAY:
        raise ValueError("anchor_minutes must fall within a single day")
    _validate_hour_range("blackout_start_hours", config.blackout_start_hours)
    _validate_hour_range("blackout_end_hours", config.blackout_end_hours)
    try:
        config.zone
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown timezone: {config.timezone_name}") from exc


def validate_scheduler_input(scheduler_input: SchedulerInput) -> None:
    """Preconditions callers must check before invoking the scheduler."""
    if scheduler_input.event_end <= scheduler_input.event_start:
        raise ValueError("event_end must be after event_start")
    if scheduler_input.default_duration_minutes <= 0:
        raise ValueError("default_duration_minutes must be > 0")


def to_schedule_time(value: datetime, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG) -> datetime:
    """Express a timestamp in the schedule timezone; naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(config.zone)


def is_blackout_slot(
    start: datetime,
    end: datetime,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> bool:
    """Return True when a game over [start, end) would run through the night.

    Starting at the lower start bound (01:00) is rejected while ending exactly
    at 01:00 is accepted, because the end bound only starts at 02:00.
    """
    start_lower, start_upper = config.blackout_start_hours
    end_lower, end_upper = config.blackout_end_hours
    start_hour = to_schedule_time(start, config).hour
    end_hour = to_schedule_time(end, config).hour
    if start_lower <= start_hour < start_upper:
        return True
    return end_lower <= end_hour < end_upper
