"""Shared test fixtures for userauth.

Provides an in-memory user directory standing in for the application's
credential backend, token stores, sessions, coordinator builders, and
isolated XDG directories so that tests never touch real user config.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import pytest

from userauth.auth import (
    AuthCoordinator,
    CookieJar,
    MemorySession,
    MemoryTokenStore,
    RequestContext,
    SessionRegistry,
    create_default_coordinator,
)
from userauth.output import reset_output


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager so CliRunner stream swaps do not leak."""
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class User:
    id: str
    name: str


class UserDirectory:
    """Application-side user backend used by the coordinator in tests."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.passwords: dict[str, str] = {}

    def add(self, user_id: str, name: str, password: str) -> User:
        user = User(user_id, name)
        self.users[user_id] = user
        self.passwords[name] = password
        return user

    def identity_id(self, user: User) -> str:
        return user.id

    def get(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def check_password(self, username: str, password: str) -> Optional[User]:
        if self.passwords.get(username) != password:
            return None
        return next((u for u in self.users.values() if u.name == username), None)


@pytest.fixture
def directory() -> UserDirectory:
    users = UserDirectory()
    users.add("A1", "alice", "secret")
    users.add("B2", "bob", "hunter2")
    return users


@pytest.fixture
def alice(directory: UserDirectory) -> User:
    return directory.users["A1"]


@pytest.fixture
def bob(directory: UserDirectory) -> User:
    return directory.users["B2"]


# ---------------------------------------------------------------------------
# Stores, sessions, coordinators
# ---------------------------------------------------------------------------


@pytest.fixture
def token_store(directory: UserDirectory) -> MemoryTokenStore:
    return MemoryTokenStore(identity_id=directory.identity_id, identity_for_id=directory.get)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def session() -> MemorySession:
    return MemorySession("s-1")


@pytest.fixture
def coordinator(
    directory: UserDirectory, token_store: MemoryTokenStore, registry: SessionRegistry
) -> AuthCoordinator:
    """Coordinator with the password and remember-me strategies."""
    return create_default_coordinator(
        identity_id=directory.identity_id,
        identity_for_id=directory.get,
        validate_credentials=directory.check_password,
        token_store=token_store,
        registry=registry,
    )


def make_context(
    session: Optional[MemorySession] = None,
    params: Optional[dict[str, str]] = None,
    cookies: Optional[dict[str, str]] = None,
    cookie_support: bool = True,
) -> RequestContext:
    """Build a RequestContext the way a transport adapter would."""
    return RequestContext(
        params=params or {},
        session=session if session is not None else MemorySession(),
        cookies=CookieJar(cookies) if cookie_support else None,
    )


def set_cookie_headers(ctx: RequestContext) -> list[str]:
    return [value for name, value in ctx.response_headers() if name == "Set-Cookie"]


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME / XDG_DATA_HOME into tmp_path and chdir there.

    Also clears every USERAUTH_* environment variable.
    """
    monkeypatch.setattr("userauth.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "USERAUTH_COOKIE_SECURE",
        "USERAUTH_COOKIE_MAX_AGE",
        "USERAUTH_TOKEN_STORE",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner() -> Any:
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def make_ctx() -> Any:
    """Factory fixture returning :func:`make_context`."""
    return make_context


@pytest.fixture
def cookie_headers() -> Any:
    """Factory fixture returning :func:`set_cookie_headers`."""
    return set_cookie_headers
