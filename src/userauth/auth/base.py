"""Abstract base class for authentication strategies.

This module defines the foundational types of the auth subsystem:

- :class:`Success` / :class:`Failure` -- the two variants of an
  authentication attempt result (:data:`AuthAttemptResult`).
- :class:`AuthStrategy` -- the abstract base class that every pluggable
  way of authenticating a request must extend.

To implement a new strategy, subclass :class:`AuthStrategy`, set the
:attr:`~AuthStrategy.name` property, and implement
:meth:`~AuthStrategy.is_applicable` and :meth:`~AuthStrategy.attempt`.
Optionally override :meth:`~AuthStrategy.after_auth_processing`,
:meth:`~AuthStrategy.before_logout` and
:meth:`~AuthStrategy.validate_config`.

See Also:
    :mod:`userauth.auth.coordinator` for how strategies are combined.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

if TYPE_CHECKING:
    from userauth.auth.context import RequestContext


@dataclass(frozen=True)
class Success:
    """A strategy (or the coordinator) authenticated *identity*."""

    identity: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Authentication did not produce an identity.

    An empty :attr:`message` is a *silent* failure: the strategy was
    applicable but did not authenticate, and has nothing worth showing to
    the user. A non-empty message is a policy-level explanation (for
    example a login-intercept veto) that should reach the end user.
    """

    message: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def is_silent(self) -> bool:
        return not self.message


AuthAttemptResult = Union[Success, Failure]

CredentialValidator = Callable[[str, str], Optional[Any]]
"""``(username, password) -> identity or None``, supplied by the application."""


class AuthStrategy(ABC):
    """Abstract base class for authentication strategies.

    A strategy inspects one request and either opts out
    (:meth:`is_applicable` returns ``False``) or attempts to authenticate it.
    Strategies never mutate the session themselves; recording the outcome is
    the job of :class:`~userauth.auth.coordinator.AuthCoordinator`. None of
    the hooks raise for expected conditions such as missing parameters or an
    absent cookie.

    The lifecycle for one :meth:`~AuthCoordinator.authenticate` call is:

    1. :meth:`is_applicable` on every strategy.
    2. :meth:`attempt` on every applicable strategy (no short-circuit).
    3. The coordinator records the reconciled outcome in the session.
    4. :meth:`after_auth_processing` on every strategy, applicable or not.

    On logout, :meth:`before_logout` runs on every strategy while the user is
    still recorded in the session.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique strategy identifier (e.g. ``"password"``)."""
        ...

    @abstractmethod
    def is_applicable(self, ctx: RequestContext) -> bool:
        """Decide whether :meth:`attempt` should run for this request.

        Must be free of side effects other than logging.
        """
        ...

    @abstractmethod
    def attempt(
        self, ctx: RequestContext, validate_credentials: CredentialValidator
    ) -> AuthAttemptResult:
        """Try to authenticate the request.

        Args:
            ctx: The current request context.
            validate_credentials: Username/password check bound by the
                coordinator for this call.

        Returns:
            :class:`Success` with the identity, or :class:`Failure`.
        """
        ...

    def after_auth_processing(self, ctx: RequestContext) -> None:
        """Run after the coordinator has recorded the outcome.

        Called on every strategy regardless of whether authentication
        succeeded or whether this strategy took part. ``ctx.identity``
        reflects the final session state.
        """

    def before_logout(self, ctx: RequestContext) -> None:
        """Run before the coordinator clears the session on logout.

        ``ctx.identity`` is still the logged-in user, if any, so the strategy
        can revoke its own persisted state.
        """

    def validate_config(self) -> list[str]:
        """Report misconfiguration before the strategy is used.

        Called once when the coordinator is constructed.

        Returns:
            Human-readable problems. An empty list means the strategy is
            ready to use.
        """
        return []
