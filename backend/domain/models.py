"""Domain models for game-night scheduling."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Mapping


@dataclass(frozen=True)
class Game:
    game_id: int
    name: str
    votes: int
    voter_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Voter:
    """A supporter and their per-bucket attendance flags (1 = attending)."""

    voter_id: str
    attendance: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class OccupiedSlot:
    start_time: datetime
    duration_minutes: int

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class SchedulerInput:
    games: list[Game]
    voters: Mapping[str, Voter]
    event_start: datetime
    event_end: datetime
    pinned_slots: list[OccupiedSlot]
    default_duration_minutes: int


@dataclass(frozen=True)
class SuggestedSchedule:
    game_id: int
    game_name: str
    start_time: datetime
    duration_minutes: int
    availability_score: int

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class SchedulerOutput:
    suggested_schedules: list[SuggestedSchedule]


@dataclass(frozen=True)
class AttendanceBucket:
    """One labelled 6-hour attendance bucket of an event window."""

    index: int
    day_name: str
    period: str
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return f"{self.day_name} {self.period}"
