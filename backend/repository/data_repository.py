"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional, Sequence

from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


VOTE_YES = "yes"
VOTE_NO_VOTE = "noVote"
VOTE_NO = "no"
VOTE_VALUES = (VOTE_YES, VOTE_NO_VOTE, VOTE_NO)

RESPONSE_VALUES = ("yes", "no", "maybe")
ATTENDING_RESPONSES = ("yes", "maybe")


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_db_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def from_db_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_attendance(value: Optional[str]) -> Optional[list[int]]:
    if value is None:
        return None
    return [int(item) for item in json.loads(value)]


@dataclass(frozen=True)
class EventRecord:
    event_id: int
    title: str
    description: str
    time_begin: datetime
    time_end: datetime
    created_at: datetime
    last_modified: datetime

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return self.time_end > (now or utc_now())


@dataclass(frozen=True)
class GameRecord:
    game_id: int
    name: str
    last_modified: datetime


@dataclass(frozen=True)
class InvitationRecord:
    event_id: int
    email: str
    handle: Optional[str]
    response: Optional[str]
    attendance: Optional[list[int]]
    invited_at: datetime
    responded_at: Optional[datetime]
    last_modified: datetime

    @property
    def is_attending(self) -> bool:
        return self.response in ATTENDING_RESPONSES


@dataclass(frozen=True)
class GameSuggestionRecord:
    event_id: int
    game_id: int
    game_name: str
    user_email: str
    comment: Optional[str]
    self_vote: Optional[str]
    votes: int
    requested_at: datetime
    last_modified: datetime


@dataclass(frozen=True)
class GameVoteTally:
    game_id: int
    game_name: str
    vote_count: int


@dataclass(frozen=True)
class VoterRecord:
    email: str
    attendance: Optional[list[int]]


@dataclass(frozen=True)
class ScheduleEntryRecord:
    """Persisted or previewed game schedule row."""

    schedule_id: int
    event_id: int
    game_id: int
    game_name: str
    start_time: datetime
    duration_minutes: int
    is_pinned: bool
    availability_score: Optional[int]
    created_at: datetime
    last_modified: datetime

    @property
    def is_suggested(self) -> bool:
        return not self.is_pinned

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)


_SCHEDULE_SELECT = """
    SELECT
        gs.id,
        gs.event_id,
        gs.game_id,
        g.name AS game_name,
        gs.start_time,
        gs.duration_minutes,
        gs.is_pinned,
        gs.availability_score,
        gs.created_at,
        gs.last_modified
    FROM GameSchedule AS gs
    INNER JOIN Games AS g ON g.id = gs.game_id
"""


def _schedule_from_row(row: sqlite3.Row) -> ScheduleEntryRecord:
    score = row["availability_score"]
    return ScheduleEntryRecord(
        schedule_id=int(row["id"]),
        event_id=int(row["event_id"]),
        game_id=int(row["game_id"]),
        game_name=str(row["game_name"]),
        start_time=from_db_timestamp(row["start_time"]),
        duration_minutes=int(row["duration_minutes"]),
        is_pinned=bool(row["is_pinned"]),
        availability_score=None if score is None else int(score),
        created_at=from_db_timestamp(row["created_at"]),
        last_modified=from_db_timestamp(row["last_modified"]),
    )


def _invitation_from_row(row: sqlite3.Row) -> InvitationRecord:
    responded_at = row["responded_at"]
    return InvitationRecord(
        event_id=int(row["event_id"]),
        email=str(row["email"]),
        handle=row["handle"],
        response=row["response"],
        attendance=_load_attendance(row["attendance"]),
        invited_at=from_db_timestamp(row["invited_at"]),
        responded_at=None if responded_at is None else from_db_timestamp(responded_at),
        last_modified=from_db_timestamp(row["last_modified"]),
    )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Events (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        title TEXT NOT NULL,
                        description TEXT NOT NULL DEFAULT '',
                        time_begin TEXT NOT NULL,
                        time_end TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        last_modified TEXT NOT NULL,
                        CHECK (time_end > time_begin)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Games (
                        id INTEGER PRIMARY KEY,
                        name TEXT NOT NULL,
                        last_modified TEXT NOT NULL
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Invitations (
                        event_id INTEGER NOT NULL,
                        email TEXT NOT NULL,
                        handle TEXT,
                        response TEXT CHECK (response IN ('yes', 'no', 'maybe')),
                        attendance TEXT,
                        invited_at TEXT NOT NULL,
                        responded_at TEXT,
                        last_modified TEXT NOT NULL,
                        PRIMARY KEY (event_id, email),
                        FOREIGN KEY (event_id) REFERENCES Events(id) ON DELETE CASCADE
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS GameSuggestions (
                        event_id INTEGER NOT NULL,
                        game_id INTEGER NOT NULL,
                        user_email TEXT NOT NULL,
                        comment TEXT,
                        requested_at TEXT NOT NULL,
                        last_modified TEXT NOT NULL,
                        PRIMARY KEY (event_id, game_id),
                        FOREIGN KEY (event_id) REFERENCES Events(id) ON DELETE CASCADE,
                        FOREIGN KEY (game_id) REFERENCES Games(id)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS GameVotes (
                        event_id INTEGER NOT NULL,
                        game_id INTEGER NOT NULL,
                        email TEXT NOT NULL,
                        vote TEXT NOT NULL CHECK (vote IN ('yes', 'noVote', 'no')),
                        vote_date TEXT NOT NULL,
                        last_modified TEXT NOT NULL,
                        PRIMARY KEY (event_id, game_id, email),
                        FOREIGN KEY (event_id, game_id)
                            REFERENCES GameSuggestions(event_id, game_id) ON DELETE CASCADE
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS GameSchedule (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        event_id INTEGER NOT NULL,
                        game_id INTEGER NOT NULL,
                        start_time TEXT NOT NULL,
                        duration_minutes INTEGER NOT NULL CHECK (duration_minutes > 0),
                        is_pinned INTEGER NOT NULL CHECK (is_pinned IN (0, 1)),
                        availability_score INTEGER,
                        created_at TEXT NOT NULL,
                        last_modified TEXT NOT NULL,
                        FOREIGN KEY (event_id) REFERENCES Events(id) ON DELETE CASCADE,
                        FOREIGN KEY (game_id) REFERENCES Games(id)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_schedule_event_pinned_start
                    ON GameSchedule(event_id, is_pinned, start_time);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_votes_event_game_vote
                    ON GameVotes(event_id, game_id, vote);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_data(self) -> Optional[int]:
        """Seed one demo event when no events exist; return its id if seeded."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Events;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Demo data already present; skipping seed")
                    return None

                now = to_db_timestamp(utc_now())
                start_day = utc_now().date() + timedelta(days=7)
                time_begin = datetime.combine(start_day, time(10, 0), tzinfo=timezone.utc)
                time_end = time_begin + timedelta(days=2, hours=12)
                cursor.execute(
                    """
                    INSERT INTO Events (title, description, time_begin, time_end, created_at, last_modified)
                    VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    (
                        "Demo LAN weekend",
                        "Seeded event for local development",
                        to_db_timestamp(time_begin),
                        to_db_timestamp(time_end),
                        now,
                        now,
                    ),
                )
                event_id = int(cursor.lastrowid)

                cursor.executemany(
                    "INSERT OR IGNORE INTO Games (id, name, last_modified) VALUES (?, ?, ?);",
                    [
                        (730, "Counter-Strike 2", now),
                        (570, "Dota 2", now),
                        (440, "Team Fortress 2", now),
                        (252950, "Rocket League", now),
                    ],
                )

                # 11 buckets: Day 1 morning through Day 3 evening
                attendees = [
                    ("alice@example.com", "alice", [1, 1, 1, 0, 1, 1, 1, 0, 1, 1, 1]),
                    ("bob@example.com", "bob", [0, 0, 0, 0, 1, 1, 1, 0, 1, 1, 0]),
                    ("carol@example.com", "carol", [1, 1, 0, 0, 1, 1, 1, 1, 1, 0, 0]),
                ]
                cursor.executemany(
                    """
                    INSERT INTO Invitations (
                        event_id, email, handle, response, attendance,
                        invited_at, responded_at, last_modified
                    )
                    VALUES (?, ?, ?, 'yes', ?, ?, ?, ?);
                    """,
                    [
                        (event_id, email, handle, json.dumps(attendance), now, now, now)
                        for email, handle, attendance in attendees
                    ],
                )

                suggestions = [
                    (730, "alice@example.com", ("bob@example.com", "carol@example.com")),
                    (252950, "alice@example.com", ()),
                    (570, "carol@example.com", ("bob@example.com",)),
                ]
                for game_id, suggester, supporters in suggestions:
                    cursor.execute(
                        """
                        INSERT INTO GameSuggestions (
                            event_id, game_id, user_email, comment, requested_at, last_modified
                        )
                        VALUES (?, ?, ?, NULL, ?, ?);
                        """,
                        (event_id, game_id, suggester, now, now),
                    )
                    cursor.executemany(
                        """
                        INSERT INTO GameVotes (event_id, game_id, email, vote, vote_date, last_modified)
                        VALUES (?, ?, ?, 'yes', ?, ?);
                        """,
                        [
                            (event_id, game_id, email, now, now)
                            for email in (suggester, *supporters)
                        ],
                    )
                conn.commit()
            logger.info("Demo seed completed | event_id=%s", event_id)
            return event_id
        except sqlite3.Error as exc:
            raise RuntimeError(f"Demo data seeding failed: {exc}") from exc

    # --- Events ---

    def create_event(
        self,
        title: str,
        time_begin: datetime,
        time_end: datetime,
        description: str = "",
    ) -> int:
        now = to_db_timestamp(utc_now())
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Events (title, description, time_begin, time_end, created_at, last_modified)
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (title, description, to_db_timestamp(time_begin), to_db_timestamp(time_end), now, now),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def get_event(self, event_id: int) -> Optional[EventRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, title, description, time_begin, time_end, created_at, last_modified
                FROM Events
                WHERE id = ?;
                """,
                (event_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return EventRecord(
                event_id=int(row["id"]),
                title=str(row["title"]),
                description=str(row["description"]),
                time_begin=from_db_timestamp(row["time_begin"]),
                time_end=from_db_timestamp(row["time_end"]),
                created_at=from_db_timestamp(row["created_at"]),
                last_modified=from_db_timestamp(row["last_modified"]),
            )

    def list_event_ids(self) -> list[int]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM Events ORDER BY id ASC;")
            return [int(row["id"]) for row in cursor.fetchall()]

    # --- Game catalogue ---

    def upsert_game(self, game_id: int, name: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO Games (id, name, last_modified)
                VALUES (?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET name = excluded.name, last_modified = excluded.last_modified;
                """,
                (game_id, name, to_db_timestamp(utc_now())),
            )
            conn.commit()

    def get_game(self, game_id: int) -> Optional[GameRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, name, last_modified FROM Games WHERE id = ?;",
                (game_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return GameRecord(
                game_id=int(row["id"]),
                name=str(row["name"]),
                last_modified=from_db_timestamp(row["last_modified"]),
            )

    # --- Invitations ---

    def create_invitation(self, event_id: int, email: str) -> None:
        now = to_db_timestamp(utc_now())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO Invitations (event_id, email, invited_at, last_modified)
                VALUES (?, ?, ?, ?);
                """,
                (event_id, email.lower(), now, now),
            )
            conn.commit()

    def get_invitation(self, event_id: int, email: str) -> Optional[InvitationRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT event_id, email, handle, response, attendance,
                       invited_at, responded_at, last_modified
                FROM Invitations
                WHERE event_id = ? AND email = ?;
                """,
                (event_id, email.lower()),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _invitation_from_row(row)

    def list_invitations(self, event_id: int) -> list[InvitationRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT event_id, email, handle, response, attendance,
                       invited_at, responded_at, last_modified
                FROM Invitations
                WHERE event_id = ?
                ORDER BY email ASC;
                """,
                (event_id,),
            )
            return [_invitation_from_row(row) for row in cursor.fetchall()]

    def update_invitation_response(
        self,
        event_id: int,
        email: str,
        handle: Optional[str],
        response: str,
        attendance: Optional[Sequence[int]],
    ) -> None:
        now = to_db_timestamp(utc_now())
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE Invitations
                SET handle = ?,
                    response = ?,
                    attendance = ?,
                    responded_at = ?,
                    last_modified = ?
                WHERE event_id = ? AND email = ?;
                """,
                (
                    handle,
                    response,
                    None if attendance is None else json.dumps(list(attendance)),
                    now,
                    now,
                    event_id,
                    email.lower(),
                ),
            )
            conn.commit()

    # --- Game suggestions and votes ---

    def create_game_suggestion(
        self,
        event_id: int,
        game_id: int,
        email: str,
        comment: Optional[str] = None,
    ) -> None:
        """Insert a suggestion and the suggester's yes vote in one transaction."""
        now = to_db_timestamp(utc_now())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO GameSuggestions (
                    event_id, game_id, user_email, comment, requested_at, last_modified
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (event_id, game_id, email.lower(), comment, now, now),
            )
            conn.execute(
                """
                INSERT INTO GameVotes (event_id, game_id, email, vote, vote_date, last_modified)
                VALUES (?, ?, ?, 'yes', ?, ?)
                ON CONFLICT (event_id, game_id, email)
                DO UPDATE SET vote = 'yes', last_modified = excluded.last_modified;
                """,
                (event_id, game_id, email.lower(), now, now),
            )
            conn.commit()

    def set_game_vote(self, event_id: int, game_id: int, email: str, vote: str) -> None:
        now = to_db_timestamp(utc_now())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO GameVotes (event_id, game_id, email, vote, vote_date, last_modified)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (event_id, game_id, email)
                DO UPDATE SET vote = excluded.vote, last_modified = excluded.last_modified;
                """,
                (event_id, game_id, email.lower(), vote, now, now),
            )
            conn.commit()

    def list_game_suggestions(
        self,
        event_id: int,
        email: Optional[str] = None,
        game_id: Optional[int] = None,
    ) -> list[GameSuggestionRecord]:
        """Return suggestions with yes-vote counts and the caller's own vote."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    s.event_id,
                    s.game_id,
                    g.name AS game_name,
                    s.user_email,
                    s.comment,
                    self_vote.vote AS self_vote,
                    (
                        SELECT COUNT(*)
                        FROM GameVotes AS v
                        WHERE v.event_id = s.event_id
                          AND v.game_id = s.game_id
                          AND v.vote = 'yes'
                    ) AS votes,
                    s.requested_at,
                    s.last_modified
                FROM GameSuggestions AS s
                INNER JOIN Games AS g ON g.id = s.game_id
                LEFT JOIN GameVotes AS self_vote
                    ON self_vote.event_id = s.event_id
                    AND self_vote.game_id = s.game_id
                    AND self_vote.email = ?
                WHERE s.event_id = ?
                  AND (? IS NULL OR s.game_id = ?)
                ORDER BY s.requested_at ASC, s.game_id ASC;
                """,
                (None if email is None else email.lower(), event_id, game_id, game_id),
            )
            return [
                GameSuggestionRecord(
                    event_id=int(row["event_id"]),
                    game_id=int(row["game_id"]),
                    game_name=str(row["game_name"]),
                    user_email=str(row["user_email"]),
                    comment=row["comment"],
                    self_vote=row["self_vote"],
                    votes=int(row["votes"]),
                    requested_at=from_db_timestamp(row["requested_at"]),
                    last_modified=from_db_timestamp(row["last_modified"]),
                )
                for row in cursor.fetchall()
            ]

    def list_games_with_votes(self, event_id: int) -> list[GameVoteTally]:
        """Return every suggested game of an event with its yes-vote count."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    s.game_id,
                    g.name AS game_name,
                    COUNT(v.email) AS vote_count
                FROM GameSuggestions AS s
                INNER JOIN Games AS g ON g.id = s.game_id
                LEFT JOIN GameVotes AS v
                    ON v.event_id = s.event_id
                    AND v.game_id = s.game_id
                    AND v.vote = 'yes'
                WHERE s.event_id = ?
                GROUP BY s.game_id, g.name
                ORDER BY s.game_id ASC;
                """,
                (event_id,),
            )
            return [
                GameVoteTally(
                    game_id=int(row["game_id"]),
                    game_name=str(row["game_name"]),
                    vote_count=int(row["vote_count"]),
                )
                for row in cursor.fetchall()
            ]

    def list_voters_for_game(self, event_id: int, game_id: int) -> list[VoterRecord]:
        """Return yes-voters of a game with their invitation attendance."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT v.email, i.attendance
                FROM GameVotes AS v
                LEFT JOIN Invitations AS i
                    ON i.event_id = v.event_id
                    AND i.email = v.email
                WHERE v.event_id = ?
                  AND v.game_id = ?
                  AND v.vote = 'yes'
                ORDER BY v.vote_date ASC, v.email ASC;
                """,
                (event_id, game_id),
            )
            return [
                VoterRecord(
                    email=str(row["email"]),
                    attendance=_load_attendance(row["attendance"]),
                )
                for row in cursor.fetchall()
            ]

    # --- Game schedule ---

    def list_schedule_entries(
        self,
        event_id: int,
        is_pinned: Optional[bool] = None,
    ) -> list[ScheduleEntryRecord]:
        pinned_flag = None if is_pinned is None else int(is_pinned)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                _SCHEDULE_SELECT
                + """
                WHERE gs.event_id = ?
                  AND (? IS NULL OR gs.is_pinned = ?)
                ORDER BY gs.start_time ASC, gs.id ASC;
                """,
                (event_id, pinned_flag, pinned_flag),
            )
            return [_schedule_from_row(row) for row in cursor.fetchall()]

    def get_schedule_entry(self, schedule_id: int) -> Optional[ScheduleEntryRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(_SCHEDULE_SELECT + " WHERE gs.id = ?;", (schedule_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _schedule_from_row(row)

    def create_schedule_entry(
        self,
        event_id: int,
        game_id: int,
        start_time: datetime,
        duration_minutes: int,
        is_pinned: bool = True,
        availability_score: Optional[int] = None,
    ) -> int:
        now = to_db_timestamp(utc_now())
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO GameSchedule (
                    event_id, game_id, start_time, duration_minutes,
                    is_pinned, availability_score, created_at, last_modified
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    event_id,
                    game_id,
                    to_db_timestamp(start_time),
                    duration_minutes,
                    int(is_pinned),
                    availability_score,
                    now,
                    now,
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def update_schedule_entry(
        self,
        schedule_id: int,
        start_time: datetime,
        duration_minutes: int,
    ) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE GameSchedule
                SET start_time = ?, duration_minutes = ?, last_modified = ?
                WHERE id = ?;
                """,
                (
                    to_db_timestamp(start_time),
                    duration_minutes,
                    to_db_timestamp(utc_now()),
                    schedule_id,
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_schedule_entry(self, schedule_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM GameSchedule WHERE id = ?;", (schedule_id,))
            conn.commit()
            return cursor.rowcount > 0

    def replace_suggested_schedules(
        self,
        event_id: int,
        entries: Iterable[tuple[int, datetime, int, int]],
    ) -> int:
        """Swap an event's suggested rows for ``(game_id, start, duration, score)`` rows.

        Delete and insert share one transaction, so concurrent recalculations
        resolve as last write wins.
        """
        rows = list(entries)
        now = to_db_timestamp(utc_now())
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM GameSchedule WHERE event_id = ? AND is_pinned = 0;",
                (event_id,),
            )
            cursor.executemany(
                """
                INSERT INTO GameSchedule (
                    event_id, game_id, start_time, duration_minutes,
                    is_pinned, availability_score, created_at, last_modified
                )
                VALUES (?, ?, ?, ?, 0, ?, ?, ?);
                """,
                [
                    (event_id, game_id, to_db_timestamp(start_time), duration, score, now, now)
                    for game_id, start_time, duration, score in rows
                ],
            )
            conn.commit()
        return len(rows)

    def count_schedule_entries(self, event_id: int, is_pinned: Optional[bool] = None) -> int:
        return len(self.list_schedule_entries(event_id, is_pinned=is_pinned))
