"""Tests for the greedy game scheduler and its helpers."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from backend.domain.constraints import is_blackout_slot
from backend.domain.models import Game, OccupiedSlot, SchedulerInput, Voter
from backend.services.scheduling_service import (
    build_time_slots,
    calculate_availability_score,
    format_date_with_ordinal,
    overlaps_with_any,
    schedule_games,
)


def utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 11, day, hour, minute, tzinfo=timezone.utc)


def make_input(
    games: list[Game],
    voters: list[Voter],
    start: datetime,
    end: datetime,
    pinned: list[OccupiedSlot] | None = None,
    duration: int = 120,
) -> SchedulerInput:
    return SchedulerInput(
        games=games,
        voters={voter.voter_id: voter for voter in voters},
        event_start=start,
        event_end=end,
        pinned_slots=pinned or [],
        default_duration_minutes=duration,
    )


def assert_no_overlap(intervals: list[tuple[datetime, datetime]]) -> None:
    for index, (start, end) in enumerate(intervals):
        for other_start, other_end in intervals[index + 1:]:
            assert not (start < other_end and end > other_start)


# --- Time slots ---

def test_slots_every_thirty_minutes_inside_window() -> None:
    assert build_time_slots(utc(24, 10), utc(24, 11), []) == [utc(24, 10), utc(24, 10, 30)]


def test_partial_last_slot_is_still_a_candidate() -> None:
    assert build_time_slots(utc(24, 10), utc(24, 10, 45), []) == [utc(24, 10), utc(24, 10, 30)]


def test_slots_overlapping_pinned_games_are_dropped() -> None:
    pinned = [OccupiedSlot(start_time=utc(24, 10, 15), duration_minutes=30)]
    assert build_time_slots(utc(24, 10), utc(24, 11, 30), pinned) == [utc(24, 11)]


def test_slot_touching_pinned_game_is_kept() -> None:
    pinned = [OccupiedSlot(start_time=utc(24, 9), duration_minutes=60)]
    assert build_time_slots(utc(24, 10), utc(24, 11), pinned)[0] == utc(24, 10)


def test_overlap_is_strict() -> None:
    occupied = [OccupiedSlot(start_time=utc(24, 10), duration_minutes=120)]
    assert overlaps_with_any(occupied, utc(24, 11), 120)
    assert not overlaps_with_any(occupied, utc(24, 12), 120)
    assert not overlaps_with_any(occupied, utc(24, 8), 120)


# --- Availability score ---

def test_score_counts_voters_free_for_every_bucket() -> None:
    voters = {
        "a": Voter("a", [1, 1]),
        "b": Voter("b", [1, 0]),
    }
    assert calculate_availability_score(voters, ["a", "b"], utc(24, 10), utc(24, 10), 120) == 2
    assert calculate_availability_score(voters, ["a", "b"], utc(24, 10), utc(24, 11), 120) == 1


def test_score_ignores_unknown_voters() -> None:
    voters = {"a": Voter("a", [1])}
    assert calculate_availability_score(voters, ["a", "ghost"], utc(24, 10), utc(24, 10), 60) == 1


def test_short_attendance_array_means_unavailable() -> None:
    voters = {"a": Voter("a", [1])}
    assert calculate_availability_score(voters, ["a"], utc(24, 10), utc(24, 12), 60) == 0


def test_flags_other_than_one_mean_unavailable() -> None:
    voters = {"a": Voter("a", [2, 1])}
    assert calculate_availability_score(voters, ["a"], utc(24, 10), utc(24, 10), 60) == 0


def test_score_uses_offset_for_evening_events() -> None:
    # Event starts in bucket 2, so array index 0 is the evening bucket.
    voters = {"a": Voter("a", [1, 0])}
    assert calculate_availability_score(voters, ["a"], utc(24, 21), utc(24, 21), 120) == 1
    assert calculate_availability_score(voters, ["a"], utc(24, 21), utc(24, 23), 120) == 0


# --- Scenarios ---

def test_two_voters_over_two_days() -> None:
    voter1 = Voter("voter1", [1, 1, 1, 0, 1, 1, 1, 0])
    voter2 = Voter("voter2", [0, 0, 0, 0, 1, 1, 1, 0])
    game_a = Game(1, "Game A", 2, ["voter1", "voter2"])
    game_b = Game(2, "Game B", 1, ["voter1"])

    output = schedule_games(make_input([game_a, game_b], [voter1, voter2], utc(24, 10), utc(26, 22)))
    by_game = {entry.game_id: entry for entry in output.suggested_schedules}

    assert set(by_game) == {1, 2}
    assert by_game[1].start_time == utc(25, 10)
    assert by_game[1].availability_score == 2
    assert by_game[2].start_time == utc(24, 10)
    assert by_game[2].availability_score == 1
    assert_no_overlap([(entry.start_time, entry.end_time) for entry in output.suggested_schedules])


def test_higher_votes_win_under_time_pressure() -> None:
    voters = [Voter("a", [1, 1]), Voter("b", [1, 1])]
    games = [
        Game(1, "One vote", 1, ["a", "b"]),
        Game(3, "Three votes", 3, ["a", "b"]),
        Game(2, "Two votes", 2, ["a", "b"]),
    ]

    output = schedule_games(make_input(games, voters, utc(24, 10), utc(24, 14)))
    scheduled = {entry.game_id: entry for entry in output.suggested_schedules}

    assert set(scheduled) == {2, 3}
    assert [entry.game_id for entry in output.suggested_schedules] == [3, 2]
    assert scheduled[3].start_time == utc(24, 10)
    assert scheduled[2].start_time == utc(24, 12)


def test_pinned_slot_pushes_game_later() -> None:
    voters = [Voter("a", [1, 1]), Voter("b", [1, 1])]
    pinned = [OccupiedSlot(start_time=utc(24, 10), duration_minutes=60)]

    output = schedule_games(
        make_input([Game(1, "Game", 2, ["a", "b"])], voters, utc(24, 10), utc(24, 15), pinned)
    )

    assert len(output.suggested_schedules) == 1
    entry = output.suggested_schedules[0]
    assert entry.start_time == utc(24, 11)
    assert entry.availability_score == 2


def test_overnight_games_respect_blackout_and_adjacency() -> None:
    voter = Voter("a", [1, 1, 1, 1])
    pinned = [OccupiedSlot(start_time=utc(25, 1), duration_minutes=180)]
    games = [Game(1, "First", 1, ["a"]), Game(2, "Second", 1, ["a"])]

    output = schedule_games(make_input(games, [voter], utc(24, 21), utc(25, 13), pinned))
    entries = output.suggested_schedules

    assert [entry.start_time for entry in entries] == [utc(24, 21), utc(24, 23)]
    assert entries[1].end_time == utc(25, 1)
    for entry in entries:
        assert not overlaps_with_any(pinned, entry.start_time, entry.duration_minutes)
        assert not is_blackout_slot(entry.start_time, entry.end_time)


# --- Properties ---

def test_game_without_available_voters_is_omitted() -> None:
    voters = [Voter("a", [0, 0])]
    output = schedule_games(make_input([Game(1, "Nobody", 1, ["a"])], voters, utc(24, 10), utc(24, 14)))
    assert output.suggested_schedules == []


def test_game_without_supporters_is_omitted() -> None:
    output = schedule_games(make_input([Game(1, "Lonely", 0, [])], [], utc(24, 10), utc(24, 14)))
    assert output.suggested_schedules == []


def test_window_shorter_than_duration_yields_nothing() -> None:
    voters = [Voter("a", [1])]
    output = schedule_games(make_input([Game(1, "Long", 1, ["a"])], voters, utc(24, 10), utc(24, 11)))
    assert output.suggested_schedules == []


def test_window_fully_pinned_yields_nothing() -> None:
    voters = [Voter("a", [1, 1])]
    pinned = [OccupiedSlot(start_time=utc(24, 10), duration_minutes=240)]
    output = schedule_games(
        make_input([Game(1, "Game", 1, ["a"])], voters, utc(24, 10), utc(24, 14), pinned)
    )
    assert output.suggested_schedules == []


def test_results_never_overlap_pinned_or_each_other_and_avoid_blackout() -> None:
    voters = [Voter(f"v{index}", [1] * 11) for index in range(4)]
    games = [Game(index, f"Game {index}", index % 3, [f"v{index % 4}", "v0"]) for index in range(1, 13)]
    pinned = [
        OccupiedSlot(start_time=utc(24, 14), duration_minutes=90),
        OccupiedSlot(start_time=utc(25, 12), duration_minutes=60),
    ]

    output = schedule_games(make_input(games, voters, utc(24, 10), utc(26, 22), pinned))

    intervals = [(entry.start_time, entry.end_time) for entry in output.suggested_schedules]
    assert intervals
    assert_no_overlap(intervals + [(slot.start_time, slot.end_time) for slot in pinned])
    for start, end in intervals:
        assert not is_blackout_slot(start, end)
        assert utc(24, 10) <= start
        assert end <= utc(26, 22)


def test_scheduling_is_deterministic_and_leaves_input_untouched() -> None:
    voters = [Voter("a", [1, 1, 1, 0, 1, 1, 1, 0]), Voter("b", [0, 1, 1, 0, 1, 0, 1, 0])]
    games = [Game(1, "A", 2, ["a", "b"]), Game(2, "B", 2, ["b"]), Game(3, "C", 1, ["a"])]
    scheduler_input = make_input(games, voters, utc(24, 10), utc(26, 22))
    snapshot = replace(scheduler_input, games=list(games), pinned_slots=[])

    first = schedule_games(scheduler_input)
    second = schedule_games(scheduler_input)

    assert first == second
    assert scheduler_input == snapshot
    assert scheduler_input.pinned_slots == []


def test_equal_votes_keep_input_order() -> None:
    voters = [Voter("a", [1, 1])]
    games = [Game(7, "Seventh", 1, ["a"]), Game(3, "Third", 1, ["a"])]
    output = schedule_games(make_input(games, voters, utc(24, 10), utc(24, 14)))
    assert [entry.game_id for entry in output.suggested_schedules] == [7, 3]


# --- Formatting ---

def test_format_date_with_ordinal() -> None:
    assert format_date_with_ordinal(utc(1, 10)) == "1st Nov"
    assert format_date_with_ordinal(utc(22, 10)) == "22nd Nov"
    assert format_date_with_ordinal(utc(23, 10)) == "23rd Nov"
    assert format_date_with_ordinal(utc(24, 10)) == "24th Nov"
    assert format_date_with_ordinal(utc(11, 10)) == "11th Nov"
