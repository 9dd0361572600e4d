"""Attendance descriptions and per-bucket headcount summaries."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from backend.domain.buckets import build_attendance_buckets
from backend.domain.constraints import DEFAULT_SCHEDULER_CONFIG, SchedulerConfig
from backend.repository.data_repository import ATTENDING_RESPONSES, DataRepository
from backend.services.event_service import EventNotFoundError
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def _join_labels(labels: Sequence[str]) -> str:
    if len(labels) == 1:
        return labels[0]
    if len(labels) == 2:
        return f"{labels[0]} and {labels[1]}"
    return f"{', '.join(labels[:-1])}, and {labels[-1]}"


def describe_attendance(
    attendance: Optional[Sequence[int]],
    time_begin: datetime,
    time_end: datetime,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
) -> str:
    """Human-readable form of an attendance array, e.g. ``Sunday morning and Monday evening``."""
    buckets = build_attendance_buckets(time_begin, time_end, config)
    if not attendance:
        return "none"
    selected = [
        bucket.label
        for bucket, flag in zip(buckets, attendance)
        if flag == 1
    ]
    if not selected:
        return "none"
    if len(selected) == len(buckets) and len(buckets) > 1:
        return f"{buckets[0].label} until {buckets[-1].label}"
    return _join_labels(selected)


class AttendanceService:
    """Aggregates invitee attendance arrays into per-bucket headcounts."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        config: Optional[SchedulerConfig] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._config = config or SchedulerConfig.from_settings(self._settings)

    def summarize_event_attendance(self, event_id: int) -> dict[str, Any]:
        event = self._repository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")

        buckets = build_attendance_buckets(event.time_begin, event.time_end, self._config)
        attending = [
            invitation
            for invitation in self._repository.list_invitations(event_id)
            if invitation.response in ATTENDING_RESPONSES
        ]

        frame = pd.DataFrame(
            [
                {
                    "email": invitation.email,
                    "handle": invitation.handle,
                    "response": invitation.response,
                    "attendance": invitation.attendance or [],
                }
                for invitation in attending
            ],
            columns=["email", "handle", "response", "attendance"],
        )

        headcounts = np.zeros(len(buckets), dtype=int)
        if not frame.empty and buckets:
            matrix = np.array(
                [
                    (list(flags) + [0] * len(buckets))[: len(buckets)]
                    for flags in frame["attendance"]
                ],
                dtype=int,
            )
            headcounts = (matrix == 1).sum(axis=0)

        frame["description"] = [
            describe_attendance(flags, event.time_begin, event.time_end, self._config)
            for flags in frame["attendance"]
        ]

        bucket_rows = [
            {
                "index": bucket.index,
                "label": bucket.label,
                "start": bucket.start.isoformat(),
                "end": bucket.end.isoformat(),
                "headcount": int(headcounts[bucket.index]),
            }
            for bucket in buckets
        ]
        peak_label = None
        if buckets and int(headcounts.max()) > 0:
            peak_label = buckets[int(np.argmax(headcounts))].label

        logger.info(
            "Attendance summarized | event_id=%s | attendees=%s | buckets=%s",
            event_id,
            len(frame),
            len(buckets),
        )
        return {
            "event_id": event_id,
            "buckets": bucket_rows,
            "attendees": [
                {
                    "email": row["email"],
                    "handle": row["handle"],
                    "response": row["response"],
                    "description": row["description"],
                }
                for row in frame.to_dict(orient="records")
            ],
            "peak_bucket": peak_label,
        }
