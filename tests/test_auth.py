from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from backend.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from backend.utils.config import get_settings


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 11, 24, 10, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def _service(admin_token, clock=None) -> AuthService:
    get_settings.cache_clear()
    settings = replace(get_settings(), admin_token=admin_token, session_ttl_minutes=60)
    if clock is None:
        return AuthService(settings=settings)
    return AuthService(settings=settings, clock=clock)


def test_auth_disabled_without_admin_token() -> None:
    service = _service(None)
    assert not service.auth_enabled
    service.validate_bearer_token("anything")
    with pytest.raises(AdminTokenNotConfiguredError):
        service.login("anything")


def test_login_rejects_wrong_token() -> None:
    with pytest.raises(InvalidAdminTokenError):
        _service("secret").login("wrong")


def test_multiple_sessions_stay_valid() -> None:
    service = _service("secret")
    first = service.login("secret")
    second = service.login("secret")

    service.validate_bearer_token(first)
    service.validate_bearer_token(second)
    with pytest.raises(InvalidAdminTokenError):
        service.validate_bearer_token("forged")


def test_session_expires_after_ttl() -> None:
    clock = FakeClock()
    service = _service("secret", clock)
    token = service.login("secret")

    clock.now += timedelta(minutes=59)
    service.validate_bearer_token(token)

    clock.now += timedelta(minutes=1)
    with pytest.raises(InvalidAdminTokenError):
        service.validate_bearer_token(token)


def test_logout_revokes_only_that_session() -> None:
    service = _service("secret")
    first = service.login("secret")
    second = service.login("secret")

    service.logout(first)

    with pytest.raises(InvalidAdminTokenError):
        service.validate_bearer_token(first)
    service.validate_bearer_token(second)
    with pytest.raises(InvalidAdminTokenError):
        service.logout(first)
