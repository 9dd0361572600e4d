"""Greedy game-night scheduler and the service that feeds it from storage."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Sequence

from backend.domain.buckets import bucket_span, first_valid_bucket, voter_array_index
from backend.domain.constraints import (
    DEFAULT_SCHEDULER_CONFIG,
    SchedulerConfig,
    is_blackout_slot,
    to_schedule_time,
    validate_scheduler_config,
    validate_scheduler_input,
)
from backend.domain.models import (
    Game,
    OccupiedSlot,
    SchedulerInput,
    SchedulerOutput,
    SuggestedSchedule,
    Voter,
)
from backend.repository.data_repository import (
    DataRepository,
    EventRecord,
    ScheduleEntryRecord,
    utc_now,
)
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class SchedulingError(Exception):
    """Base class for game schedule failures."""


class SchedulingValidationError(SchedulingError):
    """Raised when schedule inputs are invalid."""


class ScheduleEventNotFoundError(SchedulingError):
    """Raised when the event to schedule does not exist."""


class ScheduleEntryNotFoundError(SchedulingError):
    """Raised when a schedule row does not exist."""


def build_time_slots(
    event_start: datetime,
    event_end: datetime,
    pinned_slots: Sequence[OccupiedSlot],
    slot_minutes: int = DEFAULT_SCHEDULER_CONFIG.slot_minutes,
) -> list[datetime]:
    """Candidate start times every ``slot_minutes`` inside the event window.

    A candidate is dropped when its own slot interval, clipped to the event
    end, overlaps a pinned game. Whether a whole game fits is decided later.
    """
    step = timedelta(minutes=slot_minutes)
    slots: list[datetime] = []
    current = event_start
    while current < event_end:
        slot_end = min(current + step, event_end)
        if not any(
            _intervals_overlap(current, slot_end, pinned.start_time, pinned.end_time)
            for pinned in pinned_slots
        ):
            slots.append(current)
        current += step
    return slots


def _intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    # Touching endpoints do not overlap.
    return first_start < second_end and first_end > second_start


def overlaps_with_any(
    occupied: Iterable[OccupiedSlot],
    start_time: datetime,
    duration_minutes: int,
) -> bool:
    end_time = start_time + timedelta(minutes=duration_minutes)
    return any(
        _intervals_overlap(start_time, end_time, slot.start_time, slot.end_time)
        for slot in occupied
    )


def calculate_availability_score(
    voters: Mapping[str, Voter],
    voter_ids: Sequence[str],
    event_start: datetime,
    slot_start: datetime,
    duration_minutes: int,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> int:
    """Count supporters free in every bucket the game touches.

    Unknown voter ids, flags other than 1 and buckets past the end of an
    attendance array all count as unavailable.
    """
    buckets = bucket_span(slot_start, duration_minutes, event_start, config)
    first_valid = first_valid_bucket(event_start, config)
    score = 0
    for voter_id in voter_ids:
        voter = voters.get(voter_id)
        if voter is None:
            continue
        attendance = voter.attendance
        available = True
        for absolute_bucket in buckets:
            position = voter_array_index(absolute_bucket, first_valid)
            if position >= len(attendance) or attendance[position] != 1:
                available = False
                break
        if available:
            score += 1
    return score


def schedule_games(
    scheduler_input: SchedulerInput,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> SchedulerOutput:
    """Greedily place each game at its best-scoring free slot, most votes first.

    Callers check ``validate_scheduler_input`` beforehand. A game whose best
    score is 0, or that has no admissible slot, is left out. Earlier choices
    are never revisited.
    """
    occupied: list[OccupiedSlot] = list(scheduler_input.pinned_slots)
    slots = build_time_slots(
        scheduler_input.event_start,
        scheduler_input.event_end,
        occupied,
        config.slot_minutes,
    )
    if not slots:
        logger.info("Scheduling skipped | reason=no_slots | games=%s", len(scheduler_input.games))
        return SchedulerOutput(suggested_schedules=[])

    duration = scheduler_input.default_duration_minutes
    ordered_games = sorted(scheduler_input.games, key=lambda game: -game.votes)
    suggestions: list[SuggestedSchedule] = []

    for game in ordered_games:
        best_start: Optional[datetime] = None
        best_score = -1
        for slot_start in slots:
            slot_end = slot_start + timedelta(minutes=duration)
            if slot_end > scheduler_input.event_end:
                continue
            if is_blackout_slot(slot_start, slot_end, config):
                continue
            if overlaps_with_any(occupied, slot_start, duration):
                continue
            score = calculate_availability_score(
                scheduler_input.voters,
                game.voter_ids,
                scheduler_input.event_start,
                slot_start,
                duration,
                config,
            )
            if score > best_score:
                best_score = score
                best_start = slot_start

        if best_start is None or best_score <= 0:
            logger.debug(
                "Game omitted | game_id=%s | votes=%s | best_score=%s",
                game.game_id,
                game.votes,
                best_score,
            )
            continue

        occupied.append(OccupiedSlot(start_time=best_start, duration_minutes=duration))
        suggestions.append(
            SuggestedSchedule(
                game_id=game.game_id,
                game_name=game.name,
                start_time=best_start,
                duration_minutes=duration,
                availability_score=best_score,
            )
        )
        logger.debug(
            "Game scheduled | game_id=%s | start=%s | score=%s",
            game.game_id,
            best_start.isoformat(),
            best_score,
        )

    logger.info(
        "Scheduling completed | games=%s | scheduled=%s | pinned=%s | slots=%s",
        len(ordered_games),
        len(suggestions),
        len(scheduler_input.pinned_slots),
        len(slots),
    )
    return SchedulerOutput(suggested_schedules=suggestions)


def format_date_with_ordinal(value: datetime, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG) -> str:
    """Render ``24th Nov`` style dates."""
    local = to_schedule_time(value, config)
    day = local.day
    if day in (1, 21, 31):
        suffix = "st"
    elif day in (2, 22):
        suffix = "nd"
    elif day in (3, 23):
        suffix = "rd"
    else:
        suffix = "th"
    return f"{day}{suffix} {local.strftime('%b')}"


class GameScheduleService:
    """Runs the scheduler against persisted event state and manages pinned games."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._config = SchedulerConfig.from_settings(self._settings)
        validate_scheduler_config(self._config)

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    def _require_event(self, event_id: int) -> EventRecord:
        event = self._repository.get_event(event_id)
        if event is None:
            raise ScheduleEventNotFoundError(f"Event {event_id} not found")
        return event

    def build_scheduler_input(self, event_id: int) -> SchedulerInput:
        event = self._require_event(event_id)
        pinned_entries = self._repository.list_schedule_entries(event_id, is_pinned=True)
        pinned_game_ids = {entry.game_id for entry in pinned_entries}

        games: list[Game] = []
        voters: dict[str, Voter] = {}
        for tally in self._repository.list_games_with_votes(event_id):
            if tally.game_id in pinned_game_ids:
                continue
            voter_records = self._repository.list_voters_for_game(event_id, tally.game_id)
            for record in voter_records:
                if record.attendance is not None:
                    voters.setdefault(
                        record.email,
                        Voter(voter_id=record.email, attendance=list(record.attendance)),
                    )
            games.append(
                Game(
                    game_id=tally.game_id,
                    name=tally.game_name,
                    votes=tally.vote_count,
                    voter_ids=[record.email for record in voter_records],
                )
            )

        scheduler_input = SchedulerInput(
            games=games,
            voters=voters,
            event_start=event.time_begin,
            event_end=event.time_end,
            pinned_slots=[
                OccupiedSlot(start_time=entry.start_time, duration_minutes=entry.duration_minutes)
                for entry in pinned_entries
            ],
            default_duration_minutes=self._settings.schedule_default_duration_minutes,
        )
        try:
            validate_scheduler_input(scheduler_input)
        except ValueError as exc:
            raise SchedulingValidationError(str(exc)) from exc
        return scheduler_input

    def _compute(self, event_id: int) -> SchedulerOutput:
        return schedule_games(self.build_scheduler_input(event_id), self._config)

    def _log_suggestions(self, event_id: int, suggestions: Sequence[SuggestedSchedule]) -> None:
        logger.info("Suggested schedule | event_id=%s | entries=%s", event_id, len(suggestions))
        for position, suggestion in enumerate(suggestions, start=1):
            local_start = to_schedule_time(suggestion.start_time, self._config)
            logger.info(
                "%s. %s - %s at %s",
                position,
                suggestion.game_name,
                format_date_with_ordinal(suggestion.start_time, self._config),
                local_start.strftime("%I:%M%p"),
            )

    def preview_schedule(self, event_id: int) -> list[ScheduleEntryRecord]:
        """Pinned entries plus freshly computed suggestions, without persisting."""
        output = self._compute(event_id)
        now = utc_now()
        previews = [
            ScheduleEntryRecord(
                schedule_id=0,
                event_id=event_id,
                game_id=suggestion.game_id,
                game_name=suggestion.game_name,
                start_time=suggestion.start_time,
                duration_minutes=suggestion.duration_minutes,
                is_pinned=False,
                availability_score=suggestion.availability_score,
                created_at=now,
                last_modified=now,
            )
            for suggestion in output.suggested_schedules
        ]
        pinned = self._repository.list_schedule_entries(event_id, is_pinned=True)
        return sorted(pinned + previews, key=lambda entry: entry.start_time)

    def recalculate(self, event_id: int) -> list[ScheduleEntryRecord]:
        """Recompute suggestions and replace the persisted ones wholesale."""
        output = self._compute(event_id)
        stored = self._repository.replace_suggested_schedules(
            event_id,
            [
                (
                    suggestion.game_id,
                    suggestion.start_time,
                    suggestion.duration_minutes,
                    suggestion.availability_score,
                )
                for suggestion in output.suggested_schedules
            ],
        )
        self._log_suggestions(event_id, output.suggested_schedules)
        logger.info("Suggestions persisted | event_id=%s | stored=%s", event_id, stored)
        return self._repository.list_schedule_entries(event_id, is_pinned=False)

    def list_schedule(self, event_id: int, is_pinned: Optional[bool] = None) -> list[ScheduleEntryRecord]:
        self._require_event(event_id)
        return self._repository.list_schedule_entries(event_id, is_pinned=is_pinned)

    def create_pinned_entry(
        self,
        event_id: int,
        game_id: int,
        start_time: datetime,
        duration_minutes: int,
    ) -> ScheduleEntryRecord:
        self._require_event(event_id)
        if duration_minutes <= 0:
            raise SchedulingValidationError("duration_minutes must be > 0")
        if self._repository.get_game(game_id) is None:
            raise SchedulingValidationError(f"Game {game_id} is not in the catalogue")

        schedule_id = self._repository.create_schedule_entry(
            event_id=event_id,
            game_id=game_id,
            start_time=start_time,
            duration_minutes=duration_minutes,
            is_pinned=True,
        )
        logger.info(
            "Pinned entry created | event_id=%s | schedule_id=%s | game_id=%s",
            event_id,
            schedule_id,
            game_id,
        )
        self.recalculate(event_id)
        return self.get_entry(schedule_id)

    def pin(
        self,
        event_id: int,
        game_id: int,
        start_time: datetime,
        duration_minutes: int,
    ) -> ScheduleEntryRecord:
        """Turn a suggestion into a pinned entry."""
        return self.create_pinned_entry(event_id, game_id, start_time, duration_minutes)

    def get_entry(self, schedule_id: int) -> ScheduleEntryRecord:
        entry = self._repository.get_schedule_entry(schedule_id)
        if entry is None:
            raise ScheduleEntryNotFoundError(f"Schedule entry {schedule_id} not found")
        return entry

    def update_entry(
        self,
        schedule_id: int,
        start_time: datetime,
        duration_minutes: int,
    ) -> ScheduleEntryRecord:
        entry = self.get_entry(schedule_id)
        if not entry.is_pinned:
            raise SchedulingValidationError("Only pinned entries can be updated; pin the suggestion first")
        if duration_minutes <= 0:
            raise SchedulingValidationError("duration_minutes must be > 0")

        self._repository.update_schedule_entry(schedule_id, start_time, duration_minutes)
        logger.info("Pinned entry updated | schedule_id=%s", schedule_id)
        self.recalculate(entry.event_id)
        return self.get_entry(schedule_id)

    def delete_entry(self, schedule_id: int) -> None:
        entry = self.get_entry(schedule_id)
        self._repository.delete_schedule_entry(schedule_id)
        logger.info(
            "Schedule entry deleted | schedule_id=%s | pinned=%s",
            schedule_id,
            entry.is_pinned,
        )
        if entry.is_pinned:
            self.recalculate(entry.event_id)
