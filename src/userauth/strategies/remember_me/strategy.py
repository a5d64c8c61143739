"""Authenticate a user from a remember-me cookie.

A unique random token is generated for the user at login, stored as a cookie
on the client and recorded by the server through a
:class:`~userauth.auth.token_store.TokenStore`. When the user returns, the
token in the cookie is checked against the record and the user is logged in
automatically.

Without TLS the cookie travels unencrypted and anyone capturing it can log
in as the user until it expires; set ``cookie_secure`` on sites served over
TLS. Plain session ids share the same weakness.
"""

from __future__ import annotations

import logging
from typing import Optional

from userauth.auth.base import AuthAttemptResult, AuthStrategy, CredentialValidator, Failure, Success
from userauth.auth.context import RequestContext
from userauth.auth.token_store import TokenStore
from userauth.auth.transport import Cookie
from userauth.exceptions import TokenFormatError
from userauth.models import RememberMeConfig
from userauth.strategies.remember_me.token import RememberMeToken

logger = logging.getLogger(__name__)

CHECKBOX_TRUE_VALUES = frozenset({"yes", "y", "1", "true"})


def checkbox_ticked(value: Optional[str]) -> bool:
    """Interpret a login-form checkbox value (case-sensitive)."""
    return value in CHECKBOX_TRUE_VALUES


class RememberMeStrategy(AuthStrategy):
    """Authenticate from a remember-me cookie and issue new ones at login.

    Args:
        token_store: Server-side token persistence. Required in practice;
            a missing store is reported by :meth:`validate_config`.
        config: Cookie name, checkbox name, lifetime and secure flag.
    """

    def __init__(
        self,
        token_store: Optional[TokenStore] = None,
        config: Optional[RememberMeConfig] = None,
    ) -> None:
        self._store = token_store
        self._config = config or RememberMeConfig()
        logger.debug("RememberMe strategy initialised (cookie '%s')", self._config.cookie_name)

    @property
    def name(self) -> str:
        return "remember_me"

    @property
    def config(self) -> RememberMeConfig:
        return self._config

    def validate_config(self) -> list[str]:
        if self._store is None:
            return ["remember_me strategy requires a token store"]
        return []

    def is_applicable(self, ctx: RequestContext) -> bool:
        if ctx.cookies is None:
            logger.debug("RememberMe not applicable: request has no cookie support")
            return False
        result = ctx.cookies.get(self._config.cookie_name) is not None
        logger.debug("RememberMeStrategy.is_applicable = %s", result)
        return result

    def attempt(
        self, ctx: RequestContext, validate_credentials: CredentialValidator
    ) -> AuthAttemptResult:
        if ctx.cookies is None or self._store is None:
            return Failure()
        raw = ctx.cookies.get(self._config.cookie_name)
        token = RememberMeToken.parse(raw)
        if token is None or raw is None:
            logger.debug("RememberMe cookie is malformed, ignoring it")
            return Failure()
        identity = self._store.validate_remember_me_token(token.identity_id, raw)
        if identity is None:
            logger.debug("RememberMe token rejected for '%s'", token.identity_id)
            self._remove_cookie_from_client(ctx)
            return Failure()
        return Success(identity)

    def after_auth_processing(self, ctx: RequestContext) -> None:
        ticked = checkbox_ticked(ctx.param(self._config.checkbox_name))
        if not ticked or ctx.identity is None or ctx.identity_id is None:
            return
        if self._store is None:
            logger.error("RememberMe needs a token store to issue tokens; skipping")
            return
        if ctx.cookies is None:
            logger.error("RememberMe needs cookie support to issue tokens; skipping")
            return
        try:
            token = RememberMeToken.generate(ctx.identity_id)
        except TokenFormatError:
            logger.error(
                "RememberMe cannot issue a token for identity id '%s'; skipping",
                ctx.identity_id,
            )
            return
        logger.debug("Storing RememberMe token for '%s'", ctx.identity_id)
        self._store.store_remember_me_token(ctx.identity, str(token))
        ctx.cookies.set(
            Cookie(
                name=self._config.cookie_name,
                value=str(token),
                max_age=self._config.cookie_max_age,
                path=self._config.cookie_path,
                secure=self._config.cookie_secure,
                http_only=True,
            )
        )

    def before_logout(self, ctx: RequestContext) -> None:
        if ctx.identity is not None and self._store is not None:
            # Blank marker cancels any outstanding token.
            self._store.store_remember_me_token(ctx.identity, None)
        self._remove_cookie_from_client(ctx)

    def _remove_cookie_from_client(self, ctx: RequestContext) -> None:
        if ctx.cookies is not None and ctx.cookies.get(self._config.cookie_name) is not None:
            ctx.cookies.delete(self._config.cookie_name, path=self._config.cookie_path)
