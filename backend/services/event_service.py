"""Events, invitations, RSVP and game suggestion workflows."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional, Sequence

from backend.domain.buckets import attendance_bucket_count
from backend.repository.data_repository import (
    RESPONSE_VALUES,
    VOTE_NO_VOTE,
    VOTE_YES,
    DataRepository,
    EventRecord,
    GameRecord,
    GameSuggestionRecord,
    InvitationRecord,
)
from backend.services.scheduling_service import GameScheduleService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

ACCEPTED_VOTES = (VOTE_YES, VOTE_NO_VOTE)


class EventError(Exception):
    """Base class for event workflow failures."""


class EventValidationError(EventError):
    """Raised when event workflow inputs are invalid."""


class EventNotFoundError(EventError):
    """Raised when an event does not exist."""


class InvitationNotFoundError(EventError):
    """Raised when an email was never invited to an event."""


class GameNotFoundError(EventError):
    """Raised when a game is missing from the catalogue or the event."""


class EventPermissionError(EventError):
    """Raised when the caller may not act on an event."""


class EventNotActiveError(EventPermissionError):
    """Raised when acting on an event that already ended."""


class NotAttendingError(EventPermissionError):
    """Raised when a non-attending invitee suggests or votes."""


def normalize_email(email: str) -> str:
    normalized = email.strip().lower()
    if not normalized or "@" not in normalized:
        raise EventValidationError("email must be a valid address")
    return normalized


def validate_attendance(
    attendance: Sequence[int],
    expected_length: int,
) -> list[int]:
    if len(attendance) != expected_length:
        raise EventValidationError(
            "You must indicate attendance for the exact duration of the event. "
            f"Expected: {expected_length}, got: {len(attendance)}"
        )
    if any(flag not in (0, 1) for flag in attendance):
        raise EventValidationError("attendance flags must be 0 or 1")
    return [int(flag) for flag in attendance]


class EventService:
    """Event lifecycle plus the inputs the game scheduler reads."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        schedule_service: Optional[GameScheduleService] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._schedule_service = schedule_service or GameScheduleService(
            repository=self._repository,
            settings=self._settings,
        )

    def create_event(
        self,
        *,
        title: str,
        time_begin: datetime,
        time_end: datetime,
        description: str = "",
    ) -> EventRecord:
        if not title.strip():
            raise EventValidationError("title must not be blank")
        if time_end <= time_begin:
            raise EventValidationError("time_end must be after time_begin")
        event_id = self._repository.create_event(
            title=title.strip(),
            time_begin=time_begin,
            time_end=time_end,
            description=description,
        )
        logger.info("Event created | event_id=%s", event_id)
        return self.get_event(event_id)

    def get_event(self, event_id: int) -> EventRecord:
        event = self._repository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        return event

    def _require_active_event(self, event_id: int) -> EventRecord:
        event = self.get_event(event_id)
        if not event.is_active():
            raise EventNotActiveError("You can only act on active events")
        return event

    def _require_attending(self, event_id: int, email: str) -> InvitationRecord:
        invitation = self._repository.get_invitation(event_id, email)
        if invitation is None or not invitation.is_attending:
            raise NotAttendingError("You can only suggest or vote for events you are attending")
        return invitation

    def expected_attendance_length(self, event: EventRecord) -> int:
        return attendance_bucket_count(
            event.time_begin,
            event.time_end,
            self._schedule_service.config,
        )

    # --- Invitations ---

    def invite(self, event_id: int, email: str) -> InvitationRecord:
        self.get_event(event_id)
        normalized = normalize_email(email)
        try:
            self._repository.create_invitation(event_id, normalized)
        except sqlite3.IntegrityError as exc:
            raise EventValidationError(f"{normalized} is already invited") from exc
        logger.info("Invitation created | event_id=%s", event_id)
        return self.get_invitation(event_id, normalized)

    def get_invitation(self, event_id: int, email: str) -> InvitationRecord:
        invitation = self._repository.get_invitation(event_id, normalize_email(email))
        if invitation is None:
            raise InvitationNotFoundError(f"No invitation for event {event_id}")
        return invitation

    def list_invitations(self, event_id: int) -> list[InvitationRecord]:
        self.get_event(event_id)
        return self._repository.list_invitations(event_id)

    def respond(
        self,
        event_id: int,
        email: str,
        *,
        response: str,
        handle: Optional[str] = None,
        attendance: Optional[Sequence[int]] = None,
    ) -> InvitationRecord:
        """Record an RSVP and reschedule, since attendance feeds the scores."""
        event = self._require_active_event(event_id)
        invitation = self.get_invitation(event_id, email)
        if response not in RESPONSE_VALUES:
            raise EventValidationError(f"response must be one of {', '.join(RESPONSE_VALUES)}")

        validated = None
        if attendance is not None:
            validated = validate_attendance(attendance, self.expected_attendance_length(event))

        self._repository.update_invitation_response(
            event_id=event_id,
            email=invitation.email,
            handle=handle,
            response=response,
            attendance=validated,
        )
        logger.info(
            "Invitation answered | event_id=%s | response=%s | attendance_buckets=%s",
            event_id,
            response,
            None if validated is None else len(validated),
        )
        self._schedule_service.recalculate(event_id)
        return self.get_invitation(event_id, invitation.email)

    # --- Games ---

    def add_game(self, game_id: int, name: str) -> GameRecord:
        if game_id <= 0:
            raise EventValidationError("game_id must be > 0")
        if not name.strip():
            raise EventValidationError("name must not be blank")
        self._repository.upsert_game(game_id, name.strip())
        game = self._repository.get_game(game_id)
        if game is None:  # pragma: no cover - defensive fallback
            raise GameNotFoundError(f"Game {game_id} not found after insert")
        return game

    def list_game_suggestions(
        self,
        event_id: int,
        email: Optional[str] = None,
    ) -> list[GameSuggestionRecord]:
        self.get_event(event_id)
        return self._repository.list_game_suggestions(
            event_id,
            email=None if email is None else normalize_email(email),
        )

    def _get_suggestion(self, event_id: int, game_id: int, email: str) -> GameSuggestionRecord:
        suggestions = self._repository.list_game_suggestions(event_id, email=email, game_id=game_id)
        if not suggestions:
            raise GameNotFoundError(f"Game {game_id} was not suggested for event {event_id}")
        return suggestions[0]

    def suggest_game(
        self,
        event_id: int,
        email: str,
        game_id: int,
        comment: Optional[str] = None,
    ) -> GameSuggestionRecord:
        """Suggest a game; the suggester's yes vote is recorded with it."""
        self._require_active_event(event_id)
        normalized = normalize_email(email)
        self._require_attending(event_id, normalized)
        if self._repository.get_game(game_id) is None:
            raise GameNotFoundError(f"Game {game_id} is not in the catalogue")
        try:
            self._repository.create_game_suggestion(event_id, game_id, normalized, comment)
        except sqlite3.IntegrityError as exc:
            raise EventValidationError(f"Game {game_id} was already suggested") from exc

        logger.info("Game suggested | event_id=%s | game_id=%s", event_id, game_id)
        self._schedule_service.recalculate(event_id)
        return self._get_suggestion(event_id, game_id, normalized)

    def vote(self, event_id: int, game_id: int, email: str, vote: str) -> GameSuggestionRecord:
        if vote not in ACCEPTED_VOTES:
            raise EventValidationError(f"vote must be one of {', '.join(ACCEPTED_VOTES)}")
        self._require_active_event(event_id)
        normalized = normalize_email(email)
        self._require_attending(event_id, normalized)
        self._get_suggestion(event_id, game_id, normalized)

        self._repository.set_game_vote(event_id, game_id, normalized, vote)
        logger.info("Vote recorded | event_id=%s | game_id=%s | vote=%s", event_id, game_id, vote)
        self._schedule_service.recalculate(event_id)
        return self._get_suggestion(event_id, game_id, normalized)
