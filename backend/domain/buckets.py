"""Attendance bucket arithmetic.

Attendance is tracked in fixed-width buckets (6 hours by default) anchored at
06:00 on the calendar date the event starts. Bucket 0 is the 06:00-12:00
bucket of that date; anything earlier clamps to bucket 0. A voter's
attendance array does not start at bucket 0 but at the bucket holding the
event start (the "first valid bucket"), so absolute bucket indices have to be
shifted before indexing into it.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta

from backend.domain.constraints import (
    DEFAULT_SCHEDULER_CONFIG,
    MINUTES_PER_DAY,
    SchedulerConfig,
    to_schedule_time,
)
from backend.domain.models import AttendanceBucket


WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
PERIOD_NAMES = ("morning", "afternoon", "evening", "overnight")


def event_midnight(event_start: datetime, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG) -> datetime:
    local_start = to_schedule_time(event_start, config)
    return datetime.combine(local_start.date(), time(0, 0), tzinfo=config.zone)


def minutes_since_midnight(
    value: datetime,
    event_start: datetime,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> int:
    elapsed = to_schedule_time(value, config) - event_midnight(event_start, config)
    return int(elapsed.total_seconds() // 60)


def bucket_index(
    value: datetime,
    event_start: datetime,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> int:
    """Absolute bucket holding ``value``; times before the anchor map to 0."""
    offset = minutes_since_midnight(value, event_start, config) - config.anchor_minutes
    if offset < 0:
        return 0
    return offset // config.bucket_minutes


def _bucket_ceiling(
    value: datetime,
    event_start: datetime,
    config: SchedulerConfig,
) -> int:
    offset = minutes_since_midnight(value, event_start, config) - config.anchor_minutes
    if offset < 0:
        return 0
    return -(-offset // config.bucket_minutes)


def first_valid_bucket(event_start: datetime, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG) -> int:
    return bucket_index(event_start, event_start, config)


def voter_array_index(absolute_bucket: int, first_valid: int) -> int:
    return max(0, absolute_bucket - first_valid)


def bucket_span(
    slot_start: datetime,
    duration_minutes: int,
    event_start: datetime,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> range:
    """Absolute buckets touched by ``[slot_start, slot_start + duration)``."""
    slot_end = slot_start + timedelta(minutes=duration_minutes)
    return range(
        bucket_index(slot_start, event_start, config),
        _bucket_ceiling(slot_end, event_start, config),
    )


def attendance_bucket_count(
    time_begin: datetime,
    time_end: datetime,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> int:
    """Length an attendance array must have for the ``[time_begin, time_end)`` window."""
    if time_end <= time_begin:
        return 0
    return max(0, _bucket_ceiling(time_end, time_begin, config) - first_valid_bucket(time_begin, config))


def _period_name(absolute_bucket: int, bucket_start: datetime, config: SchedulerConfig) -> str:
    buckets_per_day = MINUTES_PER_DAY // config.bucket_minutes
    if buckets_per_day == len(PERIOD_NAMES) and MINUTES_PER_DAY % config.bucket_minutes == 0:
        return PERIOD_NAMES[absolute_bucket % buckets_per_day]
    return bucket_start.strftime("%H:%M")


def build_attendance_buckets(
    time_begin: datetime,
    time_end: datetime,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> list[AttendanceBucket]:
    """Labelled buckets backing an attendance array, in array order.

    Overnight buckets carry the name of the day on which the night started.
    """
    midnight = event_midnight(time_begin, config)
    first = first_valid_bucket(time_begin, config)
    buckets: list[AttendanceBucket] = []
    for array_index in range(attendance_bucket_count(time_begin, time_end, config)):
        absolute = first + array_index
        start = midnight + timedelta(minutes=config.anchor_minutes + absolute * config.bucket_minutes)
        label_day = start - timedelta(minutes=config.anchor_minutes)
        buckets.append(
            AttendanceBucket(
                index=array_index,
                day_name=WEEKDAY_NAMES[label_day.weekday()],
                period=_period_name(absolute, start, config),
                start=start,
                end=start + timedelta(minutes=config.bucket_minutes),
            )
        )
    return buckets
