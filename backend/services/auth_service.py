"""Admin token authentication with expiring bearer sessions."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Optional

from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided token is invalid."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Validates login credentials and bearer tokens."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock
        self._sessions: dict[str, datetime] = {}
        self._lock = Lock()

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    def _expected_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def _prune_expired(self, now: datetime) -> None:
        expired = [token for token, expires_at in self._sessions.items() if expires_at <= now]
        for token in expired:
            del self._sessions[token]

    def login(self, provided_admin_token: str) -> str:
        expected = self._expected_token()
        if not secrets.compare_digest(provided_admin_token, expected):
            logger.warning("Admin login rejected")
            raise InvalidAdminTokenError("Invalid admin token")
        now = self._clock()
        session_token = secrets.token_urlsafe(32)
        with self._lock:
            self._prune_expired(now)
            self._sessions[session_token] = now + timedelta(minutes=self._settings.session_ttl_minutes)
            active = len(self._sessions)
        logger.info("Admin session opened | active_sessions=%s", active)
        return session_token

    def logout(self, bearer_token: str) -> None:
        with self._lock:
            removed = self._sessions.pop(bearer_token, None)
        if removed is None:
            raise InvalidAdminTokenError("Invalid bearer token")
        logger.info("Admin session closed")

    def validate_bearer_token(self, bearer_token: str) -> None:
        if not self.auth_enabled:
            return
        now = self._clock()
        with self._lock:
            self._prune_expired(now)
            if not self._sessions:
                raise InvalidAdminTokenError("No active session. Login first.")
            for token in self._sessions:
                if secrets.compare_digest(bearer_token, token):
                    return
        raise InvalidAdminTokenError("Invalid bearer token")
