"""Authenticate a request from ``username`` and ``password`` parameters.

The password check itself belongs to the application: the coordinator
passes its credential validator into :meth:`PasswordStrategy.attempt`.
"""

from __future__ import annotations

import logging
from typing import Optional

from userauth.auth.base import AuthAttemptResult, AuthStrategy, CredentialValidator, Failure, Success
from userauth.auth.context import RequestContext
from userauth.models import PasswordConfig

logger = logging.getLogger(__name__)


class PasswordStrategy(AuthStrategy):
    """Authenticate a user from a username (or email) and password pair.

    Applicable whenever both parameters are present, even if empty. A wrong
    password is a silent :class:`~userauth.auth.base.Failure` so the
    response never reveals which factor was wrong.
    """

    def __init__(self, config: Optional[PasswordConfig] = None) -> None:
        self._config = config or PasswordConfig()

    @property
    def name(self) -> str:
        return "password"

    def is_applicable(self, ctx: RequestContext) -> bool:
        has_username = ctx.param(self._config.username_param) is not None
        has_password = ctx.param(self._config.password_param) is not None
        logger.debug(
            "PasswordStrategy: username present=%s, password present=%s",
            has_username,
            has_password,
        )
        return has_username and has_password

    def attempt(
        self, ctx: RequestContext, validate_credentials: CredentialValidator
    ) -> AuthAttemptResult:
        username = ctx.param(self._config.username_param)
        password = ctx.param(self._config.password_param)
        if username is None or password is None:
            return Failure()
        identity = validate_credentials(username, password)
        if identity is None:
            logger.debug("PasswordStrategy: credentials rejected for '%s'", username)
            return Failure()
        return Success(identity)
