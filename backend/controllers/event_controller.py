"""Controller layer for events, invitations, games and votes."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import (
    get_attendance_service,
    get_event_service,
    require_admin,
)
from backend.repository.data_repository import (
    EventRecord,
    GameSuggestionRecord,
    InvitationRecord,
)
from backend.services.attendance_service import AttendanceService
from backend.services.event_service import (
    EventError,
    EventNotFoundError,
    EventPermissionError,
    EventService,
    EventValidationError,
    GameNotFoundError,
    InvitationNotFoundError,
)
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["events"])


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    time_begin: datetime
    time_end: datetime


class EventResponse(BaseModel):
    id: int
    title: str
    description: str
    time_begin: datetime
    time_end: datetime
    created_at: datetime
    last_modified: datetime

    @classmethod
    def from_record(cls, record: EventRecord) -> "EventResponse":
        return cls(
            id=record.event_id,
            title=record.title,
            description=record.description,
            time_begin=record.time_begin,
            time_end=record.time_end,
            created_at=record.created_at,
            last_modified=record.last_modified,
        )


class InvitationCreateRequest(BaseModel):
    email: str = Field(min_length=3)


class InvitationPatchRequest(BaseModel):
    handle: Optional[str] = None
    response: Literal["yes", "no", "maybe"]
    attendance: Optional[list[int]] = None


class InvitationResponse(BaseModel):
    event_id: int
    email: str
    handle: Optional[str] = None
    response: Optional[str] = None
    attendance: Optional[list[int]] = None
    invited_at: datetime
    responded_at: Optional[datetime] = None
    last_modified: datetime

    @classmethod
    def from_record(cls, record: InvitationRecord) -> "InvitationResponse":
        return cls(
            event_id=record.event_id,
            email=record.email,
            handle=record.handle,
            response=record.response,
            attendance=record.attendance,
            invited_at=record.invited_at,
            responded_at=record.responded_at,
            last_modified=record.last_modified,
        )


class GameCreateRequest(BaseModel):
    appid: int = Field(gt=0)
    name: str = Field(min_length=1)


class GameResponse(BaseModel):
    appid: int
    name: str
    last_modified: datetime


class GameSuggestionRequest(BaseModel):
    email: str = Field(min_length=3)
    appid: int = Field(gt=0)
    comment: Optional[str] = None


class GameVoteRequest(BaseModel):
    email: str = Field(min_length=3)
    vote: Literal["yes", "noVote", "no"]


class GameSuggestionResponse(BaseModel):
    game_id: int
    game_name: str
    user_email: str
    comment: Optional[str] = None
    self_vote: Optional[str] = None
    votes: int = Field(ge=0)
    requested_at: datetime
    last_modified: datetime

    @classmethod
    def from_record(cls, record: GameSuggestionRecord) -> "GameSuggestionResponse":
        return cls(
            game_id=record.game_id,
            game_name=record.game_name,
            user_email=record.user_email,
            comment=record.comment,
            self_vote=record.self_vote,
            votes=record.votes,
            requested_at=record.requested_at,
            last_modified=record.last_modified,
        )


class AttendanceBucketRow(BaseModel):
    index: int = Field(ge=0)
    label: str
    start: datetime
    end: datetime
    headcount: int = Field(ge=0)


class AttendeeRow(BaseModel):
    email: str
    handle: Optional[str] = None
    response: Optional[str] = None
    description: str


class AttendanceSummaryResponse(BaseModel):
    event_id: int
    buckets: list[AttendanceBucketRow]
    attendees: list[AttendeeRow]
    peak_bucket: Optional[str] = None


def _to_http_exception(exc: EventError) -> HTTPException:
    if isinstance(exc, EventValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (EventNotFoundError, InvitationNotFoundError, GameNotFoundError)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, EventPermissionError):
        status_code = status.HTTP_403_FORBIDDEN
    else:  # pragma: no cover - defensive fallback
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=status_code, detail=str(exc))


@router.post(
    "/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_event(
    payload: EventCreateRequest,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        record = event_service.create_event(
            title=payload.title,
            time_begin=payload.time_begin,
            time_end=payload.time_end,
            description=payload.description,
        )
        return EventResponse.from_record(record)
    except EventError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected event creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event",
        ) from exc


@router.get("/events/{event_id}", response_model=EventResponse, status_code=status.HTTP_200_OK)
async def get_event(
    event_id: int,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        return EventResponse.from_record(event_service.get_event(event_id))
    except EventError as exc:
        raise _to_http_exception(exc) from exc


@router.post(
    "/events/{event_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def invite(
    event_id: int,
    payload: InvitationCreateRequest,
    event_service: EventService = Depends(get_event_service),
) -> InvitationResponse:
    try:
        return InvitationResponse.from_record(event_service.invite(event_id, payload.email))
    except EventError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected invitation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create invitation",
        ) from exc


@router.patch(
    "/events/{event_id}/invitations/{email}",
    response_model=InvitationResponse,
    status_code=status.HTTP_200_OK,
)
async def respond_to_invitation(
    event_id: int,
    email: str,
    payload: InvitationPatchRequest,
    event_service: EventService = Depends(get_event_service),
) -> InvitationResponse:
    try:
        record = event_service.respond(
            event_id,
            email,
            response=payload.response,
            handle=payload.handle,
            attendance=payload.attendance,
        )
        return InvitationResponse.from_record(record)
    except EventError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected RSVP failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record response",
        ) from exc


@router.get(
    "/events/{event_id}/attendance",
    response_model=AttendanceSummaryResponse,
    status_code=status.HTTP_200_OK,
)
async def attendance_summary(
    event_id: int,
    attendance_service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceSummaryResponse:
    try:
        return AttendanceSummaryResponse(**attendance_service.summarize_event_attendance(event_id))
    except EventError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected attendance summary failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to summarize attendance",
        ) from exc


@router.post(
    "/games",
    response_model=GameResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def add_game(
    payload: GameCreateRequest,
    event_service: EventService = Depends(get_event_service),
) -> GameResponse:
    try:
        game = event_service.add_game(payload.appid, payload.name)
        return GameResponse(appid=game.game_id, name=game.name, last_modified=game.last_modified)
    except EventError as exc:
        raise _to_http_exception(exc) from exc


@router.get(
    "/events/{event_id}/games",
    response_model=list[GameSuggestionResponse],
    status_code=status.HTTP_200_OK,
)
async def list_game_suggestions(
    event_id: int,
    email: Optional[str] = None,
    event_service: EventService = Depends(get_event_service),
) -> list[GameSuggestionResponse]:
    try:
        return [
            GameSuggestionResponse.from_record(record)
            for record in event_service.list_game_suggestions(event_id, email=email)
        ]
    except EventError as exc:
        raise _to_http_exception(exc) from exc


@router.post(
    "/events/{event_id}/games",
    response_model=GameSuggestionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def suggest_game(
    event_id: int,
    payload: GameSuggestionRequest,
    event_service: EventService = Depends(get_event_service),
) -> GameSuggestionResponse:
    try:
        record = event_service.suggest_game(
            event_id,
            payload.email,
            payload.appid,
            comment=payload.comment,
        )
        return GameSuggestionResponse.from_record(record)
    except EventError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game suggestion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to suggest game",
        ) from exc


@router.patch(
    "/events/{event_id}/games/{game_id}",
    response_model=GameSuggestionResponse,
    status_code=status.HTTP_200_OK,
)
async def vote(
    event_id: int,
    game_id: int,
    payload: GameVoteRequest,
    event_service: EventService = Depends(get_event_service),
) -> GameSuggestionResponse:
    try:
        record = event_service.vote(event_id, game_id, payload.email, payload.vote)
        return GameSuggestionResponse.from_record(record)
    except EventError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected vote failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record vote",
        ) from exc
