from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from backend.repository.data_repository import DataRepository
from backend.services.scheduling_service import (
    GameScheduleService,
    ScheduleEntryNotFoundError,
    ScheduleEventNotFoundError,
    SchedulingValidationError,
)
from backend.utils.config import get_settings


def utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 11, day, hour, minute, tzinfo=timezone.utc)


def _build_service(tmp_path) -> tuple[GameScheduleService, DataRepository]:
    get_settings.cache_clear()
    settings = replace(
        get_settings(),
        database_path=tmp_path / "schedule.db",
        admin_token=None,
        seed_demo_data=False,
        schedule_timezone="UTC",
    )
    repository = DataRepository(settings)
    repository.initialize_database()
    return GameScheduleService(repository=repository, settings=settings), repository


def _seed_two_day_event(repository: DataRepository) -> int:
    event_id = repository.create_event("LAN", utc(24, 10), utc(26, 22))
    repository.upsert_game(1, "Game A")
    repository.upsert_game(2, "Game B")
    for email, attendance in (
        ("voter1@example.com", [1, 1, 1, 0, 1, 1, 1, 0]),
        ("voter2@example.com", [0, 0, 0, 0, 1, 1, 1, 0]),
    ):
        repository.create_invitation(event_id, email)
        repository.update_invitation_response(event_id, email, None, "yes", attendance)
    repository.create_game_suggestion(event_id, 1, "voter1@example.com")
    repository.set_game_vote(event_id, 1, "voter2@example.com", "yes")
    repository.create_game_suggestion(event_id, 2, "voter1@example.com")
    return event_id


def test_build_scheduler_input_reads_votes_and_attendance(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)
    repository.set_game_vote(event_id, 2, "nobody@example.com", "yes")

    scheduler_input = service.build_scheduler_input(event_id)
    games = {game.game_id: game for game in scheduler_input.games}

    assert games[1].votes == 2
    assert games[2].votes == 2
    assert "nobody@example.com" in games[2].voter_ids
    assert set(scheduler_input.voters) == {"voter1@example.com", "voter2@example.com"}
    assert scheduler_input.default_duration_minutes == 120


def test_no_vote_is_not_counted(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)
    repository.set_game_vote(event_id, 1, "voter2@example.com", "noVote")

    games = {game.game_id: game for game in service.build_scheduler_input(event_id).games}
    assert games[1].votes == 1
    assert games[1].voter_ids == ["voter1@example.com"]


def test_recalculate_persists_suggestions(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)

    suggested = service.recalculate(event_id)

    assert [(entry.game_id, entry.start_time) for entry in suggested] == [
        (2, utc(24, 10)),
        (1, utc(25, 10)),
    ]
    assert all(entry.is_suggested and entry.schedule_id > 0 for entry in suggested)
    assert [entry.availability_score for entry in suggested] == [1, 2]


def test_recalculate_replaces_previous_suggestions(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)

    service.recalculate(event_id)
    service.recalculate(event_id)

    assert repository.count_schedule_entries(event_id, is_pinned=False) == 2


def test_preview_does_not_persist(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)

    preview = service.preview_schedule(event_id)

    assert [entry.schedule_id for entry in preview] == [0, 0]
    assert [entry.game_id for entry in preview] == [2, 1]
    assert service.list_schedule(event_id) == []


def test_pinned_game_is_not_rescheduled(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)
    service.recalculate(event_id)

    pinned = service.pin(event_id, 1, utc(25, 14), 120)

    assert pinned.is_pinned
    schedule = service.list_schedule(event_id)
    assert [(entry.game_id, entry.is_pinned) for entry in schedule] == [(2, False), (1, True)]


def test_pinned_entry_blocks_suggestion_slot(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)
    repository.upsert_game(3, "Pinned Game")

    service.create_pinned_entry(event_id, 3, utc(24, 10), 60)

    suggestions = service.list_schedule(event_id, is_pinned=False)
    game_b = next(entry for entry in suggestions if entry.game_id == 2)
    assert game_b.start_time == utc(24, 11)


def test_update_only_applies_to_pinned_entries(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)
    suggested = service.recalculate(event_id)

    with pytest.raises(SchedulingValidationError):
        service.update_entry(suggested[0].schedule_id, utc(24, 12), 120)

    pinned = service.create_pinned_entry(event_id, 1, utc(25, 14), 120)
    updated = service.update_entry(pinned.schedule_id, utc(25, 16), 90)
    assert updated.start_time == utc(25, 16)
    assert updated.duration_minutes == 90


def test_deleting_pinned_entry_restores_suggestion(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)
    pinned = service.create_pinned_entry(event_id, 1, utc(25, 14), 120)
    assert 1 not in {entry.game_id for entry in service.list_schedule(event_id, is_pinned=False)}

    service.delete_entry(pinned.schedule_id)

    suggested = service.list_schedule(event_id, is_pinned=False)
    assert {entry.game_id for entry in suggested} == {1, 2}
    with pytest.raises(ScheduleEntryNotFoundError):
        service.get_entry(pinned.schedule_id)


def test_create_pinned_entry_validates_inputs(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = _seed_two_day_event(repository)

    with pytest.raises(SchedulingValidationError):
        service.create_pinned_entry(event_id, 999, utc(24, 10), 120)
    with pytest.raises(SchedulingValidationError):
        service.create_pinned_entry(event_id, 1, utc(24, 10), 0)
    with pytest.raises(ScheduleEventNotFoundError):
        service.create_pinned_entry(event_id + 1, 1, utc(24, 10), 120)


def test_unknown_event_raises(tmp_path) -> None:
    service, _ = _build_service(tmp_path)

    with pytest.raises(ScheduleEventNotFoundError):
        service.recalculate(42)
    with pytest.raises(ScheduleEventNotFoundError):
        service.list_schedule(42)


def test_event_without_games_has_empty_schedule(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    event_id = repository.create_event("Quiet night", utc(24, 18), utc(24, 23))

    assert service.recalculate(event_id) == []
    assert service.preview_schedule(event_id) == []
