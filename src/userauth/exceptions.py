"""Exception hierarchy for userauth.

Authentication *outcomes* are never raised: strategies and the coordinator
return :class:`~userauth.auth.base.Success` or
:class:`~userauth.auth.base.Failure` values. Exceptions are reserved for
misconfiguration, programming errors, and transport-state conditions.

Every class carries an ``exit_code`` from :mod:`userauth.exit_codes`; the
CLI entry point in :func:`userauth.app.main` catches ``UserAuthError`` and
exits with that code.

Subclass hierarchy::

    UserAuthError (exit 1)
    +-- InvalidUsageError       (exit 2)
    |   +-- TokenFormatError    (exit 2)
    +-- AuthError               (exit 3)
    +-- NotFoundError           (exit 4)
    +-- ConfigError             (exit 1)
    |   +-- StrategyConfigError (exit 1)
    +-- SessionInvalidatedError (exit 1)
"""

from userauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
)


class UserAuthError(Exception):
    """Base exception for all userauth errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(UserAuthError):
    """Raised for invalid CLI arguments or values that cannot be interpreted."""

    exit_code = EXIT_INVALID_USAGE


class TokenFormatError(InvalidUsageError):
    """Raised when a remember-me token cannot be built for an identity id.

    Identity ids containing the token separator (``-``) would not parse back
    to the same id, so they are refused at generation time.
    """


class AuthError(UserAuthError):
    """Raised by the CLI when a credential or token is rejected."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(UserAuthError):
    """Raised when a stored record (e.g. a remember-me token) does not exist."""

    exit_code = EXIT_NOT_FOUND


class ConfigError(UserAuthError):
    """Raised for configuration problems (unreadable or invalid settings files)."""

    exit_code = EXIT_GENERIC_FAILURE


class StrategyConfigError(ConfigError):
    """Raised at coordinator construction when a strategy is misconfigured.

    Args:
        message: Summary line.
        problems: Every individual problem reported by the strategies.
    """

    def __init__(self, message: str, problems: list[str] | None = None):
        self.problems = list(problems or [])
        if self.problems:
            message = message + ": " + "; ".join(self.problems)
        super().__init__(message)


class SessionInvalidatedError(UserAuthError):
    """Raised by a session whose underlying transport session is no longer valid.

    The coordinator swallows this while clearing a session, because an
    invalidated session already holds no authenticated user.
    """
