"""Tests for attendance bucket arithmetic."""

from __future__ import annotations

from datetime import datetime, timezone

from backend.domain.buckets import (
    attendance_bucket_count,
    bucket_index,
    bucket_span,
    build_attendance_buckets,
    first_valid_bucket,
    minutes_since_midnight,
    voter_array_index,
)


def utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 11, day, hour, minute, tzinfo=timezone.utc)


EVENT_START = utc(24, 10)


def test_minutes_since_midnight_counts_across_days() -> None:
    assert minutes_since_midnight(utc(24, 10), EVENT_START) == 600
    assert minutes_since_midnight(utc(25, 1), EVENT_START) == 1500


def test_bucket_index_clamps_before_anchor() -> None:
    assert bucket_index(utc(24, 5), EVENT_START) == 0
    assert bucket_index(utc(24, 0), EVENT_START) == 0


def test_bucket_index_follows_six_hour_grid() -> None:
    assert bucket_index(utc(24, 6), EVENT_START) == 0
    assert bucket_index(utc(24, 11, 59), EVENT_START) == 0
    assert bucket_index(utc(24, 12), EVENT_START) == 1
    assert bucket_index(utc(24, 18), EVENT_START) == 2
    assert bucket_index(utc(25, 0), EVENT_START) == 3
    assert bucket_index(utc(25, 6), EVENT_START) == 4


def test_first_valid_bucket_for_evening_start() -> None:
    assert first_valid_bucket(utc(24, 10)) == 0
    assert first_valid_bucket(utc(24, 21)) == 2


def test_voter_array_index_shifts_and_clamps() -> None:
    assert voter_array_index(5, 2) == 3
    assert voter_array_index(2, 2) == 0
    assert voter_array_index(0, 2) == 0


def test_bucket_span_within_one_bucket() -> None:
    assert list(bucket_span(utc(24, 10), 120, EVENT_START)) == [0]


def test_bucket_span_crossing_boundary() -> None:
    assert list(bucket_span(utc(24, 11), 120, EVENT_START)) == [0, 1]


def test_bucket_span_ending_on_boundary_excludes_next_bucket() -> None:
    assert list(bucket_span(utc(24, 10), 120, EVENT_START)) == [0]
    assert list(bucket_span(utc(24, 12), 360, EVENT_START)) == [1]


def test_bucket_span_overnight() -> None:
    assert list(bucket_span(utc(24, 23), 120, utc(24, 21))) == [2, 3]


def test_attendance_bucket_count_for_two_and_a_half_days() -> None:
    assert attendance_bucket_count(utc(24, 10), utc(26, 22)) == 11


def test_attendance_bucket_count_for_overnight_event() -> None:
    assert attendance_bucket_count(utc(24, 21), utc(25, 13)) == 4


def test_attendance_bucket_count_empty_window() -> None:
    assert attendance_bucket_count(utc(24, 10), utc(24, 10)) == 0


def test_build_attendance_buckets_labels_overnight_with_previous_day() -> None:
    buckets = build_attendance_buckets(utc(24, 10), utc(25, 13))

    assert [bucket.label for bucket in buckets] == [
        "Sunday morning",
        "Sunday afternoon",
        "Sunday evening",
        "Sunday overnight",
        "Monday morning",
        "Monday afternoon",
    ]
    assert buckets[3].start == utc(25, 0)
    assert buckets[3].end == utc(25, 6)
    assert [bucket.index for bucket in buckets] == list(range(6))
