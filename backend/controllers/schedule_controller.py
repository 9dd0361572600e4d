"""Controller layer for the game schedule of an event."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_schedule_service, require_admin
from backend.repository.data_repository import ScheduleEntryRecord
from backend.services.scheduling_service import (
    GameScheduleService,
    ScheduleEntryNotFoundError,
    ScheduleEventNotFoundError,
    SchedulingError,
    SchedulingValidationError,
)
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["game_schedule"])


class GameScheduleRequest(BaseModel):
    game_id: int = Field(gt=0)
    start_time: datetime
    duration_minutes: int = Field(gt=0)


class GameScheduleUpdateRequest(BaseModel):
    start_time: datetime
    duration_minutes: int = Field(gt=0)


class GameScheduleEntry(BaseModel):
    id: int = Field(ge=0)
    event_id: int
    game_id: int
    game_name: str
    start_time: datetime
    duration_minutes: int = Field(gt=0)
    is_pinned: bool
    is_suggested: bool
    availability_score: Optional[int] = None
    created_at: datetime
    last_modified: datetime

    @classmethod
    def from_record(cls, record: ScheduleEntryRecord) -> "GameScheduleEntry":
        return cls(
            id=record.schedule_id,
            event_id=record.event_id,
            game_id=record.game_id,
            game_name=record.game_name,
            start_time=record.start_time,
            duration_minutes=record.duration_minutes,
            is_pinned=record.is_pinned,
            is_suggested=record.is_suggested,
            availability_score=record.availability_score,
            created_at=record.created_at,
            last_modified=record.last_modified,
        )


def _to_http_exception(exc: SchedulingError) -> HTTPException:
    if isinstance(exc, (ScheduleEventNotFoundError, ScheduleEntryNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, SchedulingValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(  # pragma: no cover - defensive fallback
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc),
    )


def _entries(records: list[ScheduleEntryRecord]) -> list[GameScheduleEntry]:
    return [GameScheduleEntry.from_record(record) for record in records]


@router.get(
    "/events/{event_id}/game_schedule",
    response_model=list[GameScheduleEntry],
    status_code=status.HTTP_200_OK,
)
async def get_game_schedule(
    event_id: int,
    schedule_service: GameScheduleService = Depends(get_schedule_service),
) -> list[GameScheduleEntry]:
    try:
        return _entries(schedule_service.list_schedule(event_id))
    except SchedulingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game schedule listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load game schedule",
        ) from exc


@router.get(
    "/events/{event_id}/game_schedule/preview",
    response_model=list[GameScheduleEntry],
    status_code=status.HTTP_200_OK,
)
async def preview_game_schedule(
    event_id: int,
    schedule_service: GameScheduleService = Depends(get_schedule_service),
) -> list[GameScheduleEntry]:
    try:
        return _entries(schedule_service.preview_schedule(event_id))
    except SchedulingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game schedule preview failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to preview game schedule",
        ) from exc


@router.post(
    "/events/{event_id}/game_schedule",
    response_model=GameScheduleEntry,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_game_schedule(
    event_id: int,
    payload: GameScheduleRequest,
    schedule_service: GameScheduleService = Depends(get_schedule_service),
) -> GameScheduleEntry:
    try:
        record = schedule_service.create_pinned_entry(
            event_id,
            payload.game_id,
            payload.start_time,
            payload.duration_minutes,
        )
        return GameScheduleEntry.from_record(record)
    except SchedulingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game schedule creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create game schedule",
        ) from exc


@router.post(
    "/events/{event_id}/game_schedule/pin",
    response_model=GameScheduleEntry,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def pin_game_schedule(
    event_id: int,
    payload: GameScheduleRequest,
    schedule_service: GameScheduleService = Depends(get_schedule_service),
) -> GameScheduleEntry:
    try:
        record = schedule_service.pin(
            event_id,
            payload.game_id,
            payload.start_time,
            payload.duration_minutes,
        )
        return GameScheduleEntry.from_record(record)
    except SchedulingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game schedule pin failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to pin game",
        ) from exc


@router.post(
    "/events/{event_id}/game_schedule/recalculate",
    response_model=list[GameScheduleEntry],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def recalculate_game_schedule(
    event_id: int,
    schedule_service: GameScheduleService = Depends(get_schedule_service),
) -> list[GameScheduleEntry]:
    try:
        return _entries(schedule_service.recalculate(event_id))
    except SchedulingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game schedule recalculation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to recalculate game schedule",
        ) from exc


@router.put(
    "/game_schedule/{schedule_id}",
    response_model=GameScheduleEntry,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def update_game_schedule(
    schedule_id: int,
    payload: GameScheduleUpdateRequest,
    schedule_service: GameScheduleService = Depends(get_schedule_service),
) -> GameScheduleEntry:
    try:
        record = schedule_service.update_entry(
            schedule_id,
            payload.start_time,
            payload.duration_minutes,
        )
        return GameScheduleEntry.from_record(record)
    except SchedulingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game schedule update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update game schedule",
        ) from exc


@router.delete(
    "/game_schedule/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_game_schedule(
    schedule_id: int,
    schedule_service: GameScheduleService = Depends(get_schedule_service),
) -> Response:
    try:
        schedule_service.delete_entry(schedule_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except SchedulingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected game schedule deletion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete game schedule",
        ) from exc
