"""Canonical Pydantic models shared across userauth.

**Settings models** -- serialised as JSON in the user's config directory
(see :mod:`userauth.config`):
    :class:`RememberMeConfig`, :class:`SessionConfig`,
    :class:`PasswordConfig`, and the top-level :class:`AuthSettings`.

**Storage models** -- persisted by the reference token stores:
    :class:`StoredToken`.

Request-scoped values (results, request contexts, cookies) are plain
dataclasses in :mod:`userauth.auth` because they carry arbitrary
application identity objects that pydantic should not validate.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_COOKIE_MAX_AGE = 7 * 24 * 3600
"""Default remember-me cookie and token lifetime in seconds (one week)."""

DEFAULT_CONFLICT_MESSAGE = (
    "Multiple authentication login error - please contact support and quote "
    "this message verbatim!"
)


# --- Settings ---


class RememberMeConfig(BaseModel):
    """Settings for the remember-me cookie strategy.

    ``cookie_secure`` should be switched on whenever the site is served over
    TLS, otherwise the token travels in clear text and anyone capturing it
    can log in until it expires.
    """

    cookie_name: str = Field(
        default="rememberMe", description="Name of the remember-me cookie"
    )
    checkbox_name: str = Field(
        default="rememberMe",
        description="Login form field that requests a remember-me cookie",
    )
    cookie_max_age: int = Field(
        default=DEFAULT_COOKIE_MAX_AGE,
        ge=0,
        description="Cookie Max-Age and token lifetime in seconds",
    )
    cookie_secure: bool = Field(
        default=False, description="Only send the cookie over secure connections"
    )
    cookie_path: Optional[str] = Field(
        default=None, description="Optional Path attribute for the cookie"
    )


class SessionConfig(BaseModel):
    """Settings for how an authenticated user is recorded in the session."""

    user_key: str = Field(
        default="UserID", description="Session attribute holding the identity id"
    )


class PasswordConfig(BaseModel):
    """Request parameter names read by the password strategy."""

    username_param: str = "username"
    password_param: str = "password"


class AuthSettings(BaseModel):
    """Top-level settings persisted at ``~/.config/userauth/config.json``.

    Loaded by :func:`~userauth.config.load_settings` and layered with
    project-local config and environment overrides by
    :func:`~userauth.config.resolve_settings`.
    """

    remember_me: RememberMeConfig = Field(default_factory=RememberMeConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    password: PasswordConfig = Field(default_factory=PasswordConfig)
    conflict_message: str = Field(
        default=DEFAULT_CONFLICT_MESSAGE,
        description="Message returned when strategies authenticate different users",
    )
    token_store_path: Optional[str] = Field(
        default=None,
        description="Location of the file token store (default: data directory)",
    )


# --- Storage ---


class StoredToken(BaseModel):
    """A remember-me token recorded server-side for one identity.

    An empty :attr:`token` is the revocation marker written on logout or
    when a token is cleared.

    Attributes:
        identity_id: Unique id of the identity that owns the token.
        token: The full cookie value, or ``""`` when revoked.
        issued_at: UTC time the token was stored.
        expires_at: UTC expiry; ``None`` means the token never expires.
    """

    identity_id: str
    token: str = ""
    issued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: Optional[datetime] = None

    @property
    def revoked(self) -> bool:
        return not self.token

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now >= expires

    def status(self, now: Optional[datetime] = None) -> str:
        """Return ``"revoked"``, ``"expired"`` or ``"active"``."""
        if self.revoked:
            return "revoked"
        if self.is_expired(now):
            return "expired"
        return "active"
