"""Auth coordinator -- runs the strategies and reconciles their results.

The :class:`AuthCoordinator` is the central piece of the auth subsystem. It
owns a fixed, ordered list of :class:`~userauth.auth.base.AuthStrategy`
instances and, for each request:

1. runs every applicable strategy (no short-circuit, so that two strategies
   authenticating *different* users in one request are detected),
2. reconciles the results into one identity or a failure message,
3. records the outcome in the session and the
   :class:`~userauth.auth.registry.SessionRegistry`,
4. runs every strategy's post-authentication hook.

Use :func:`create_default_coordinator` for the built-in password and
remember-me strategies.

See Also:
    :class:`~userauth.auth.base.AuthStrategy` -- the strategy interface.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from userauth.auth.base import AuthAttemptResult, AuthStrategy, Failure, Success
from userauth.auth.context import RequestContext
from userauth.auth.registry import SessionRegistry
from userauth.auth.token_store import TokenStore
from userauth.auth.transport import Session
from userauth.exceptions import SessionInvalidatedError, StrategyConfigError
from userauth.models import AuthSettings

logger = logging.getLogger(__name__)

LoginIntercept = Callable[[Any], AuthAttemptResult]


def accept_login(identity: Any) -> AuthAttemptResult:
    """Default login intercept: let every authenticated identity in."""
    return Success(identity)


def _ignore(identity: Any) -> None:
    return None


class AuthCoordinator:
    """Resolve a request to one identity using an ordered set of strategies.

    Args:
        strategies: Strategies in evaluation order. Fixed for the lifetime of
            the coordinator.
        identity_id: Maps an identity to its unique string id.
        identity_for_id: Resolves an id from the session back to an identity.
        validate_credentials: ``(username, password) -> identity or None``.
        registry: Session registry shared across the process. A private one
            is created when omitted.
        settings: Session key and conflict message.
        login_intercept: Veto hook run on the single authenticated identity;
            returns :class:`~userauth.auth.base.Success` to accept or
            :class:`~userauth.auth.base.Failure` with a message to reject.
        post_login: Called with the identity after a successful login.
        post_logout: Called with the identity after a logout.

    Raises:
        StrategyConfigError: If two strategies share a name or any strategy
            reports a configuration problem.

    Example::

        coordinator = AuthCoordinator(
            [PasswordStrategy()],
            identity_id=lambda user: user.id,
            identity_for_id=users.get,
            validate_credentials=users.check_password,
        )
        outcome = coordinator.authenticate(ctx)
    """

    def __init__(
        self,
        strategies: Sequence[AuthStrategy],
        *,
        identity_id: Callable[[Any], str],
        identity_for_id: Callable[[str], Optional[Any]],
        validate_credentials: Callable[[str, str], Optional[Any]],
        registry: Optional[SessionRegistry] = None,
        settings: Optional[AuthSettings] = None,
        login_intercept: Optional[LoginIntercept] = None,
        post_login: Optional[Callable[[Any], None]] = None,
        post_logout: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self._strategies: tuple[AuthStrategy, ...] = tuple(strategies)
        self._identity_id = identity_id
        self._identity_for_id = identity_for_id
        self._validate_credentials = validate_credentials
        self._registry = registry if registry is not None else SessionRegistry()
        self._settings = settings or AuthSettings()
        self._login_intercept = login_intercept or accept_login
        self._post_login = post_login or _ignore
        self._post_logout = post_logout or _ignore
        self._check_strategies()

    def _check_strategies(self) -> None:
        problems: list[str] = []
        seen: set[str] = set()
        for strategy in self._strategies:
            if strategy.name in seen:
                problems.append(f"strategy '{strategy.name}' is registered twice")
            seen.add(strategy.name)
            problems.extend(strategy.validate_config())
        if problems:
            raise StrategyConfigError("Invalid authentication strategies", problems)

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def session_key(self) -> str:
        return self._settings.session.user_key

    def strategy_names(self) -> list[str]:
        return [strategy.name for strategy in self._strategies]

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def user_option(self, session: Optional[Session]) -> Optional[Any]:
        """Return the identity recorded in *session*, or ``None``."""
        if session is None:
            return None
        try:
            identity_id = session.get(self.session_key)
        except SessionInvalidatedError:
            return None
        if identity_id is None:
            return None
        return self._identity_for_id(identity_id)

    def is_authenticated(self, session: Optional[Session]) -> bool:
        return self.user_option(session) is not None

    def record_in_session(self, session: Optional[Session], identity: Optional[Any]) -> None:
        """Record *identity* in *session*, or clear the session when ``None``.

        Recording writes the identity id into the session attribute and
        tracks the session in the registry. Clearing untracks the session
        (only if the registry still points at it) and removes the attribute.
        A session already invalidated by the transport layer is left alone.
        """
        if session is None:
            return
        if identity is not None:
            identity_id = self._identity_id(identity)
            session.set(self.session_key, identity_id)
            self._registry.put(identity_id, session)
            return
        try:
            identity_id = session.get(self.session_key)
            if identity_id is not None:
                self._registry.remove(identity_id, session)
            session.remove(self.session_key)
        except SessionInvalidatedError:
            # Nothing to clear in an invalidated session.
            pass

    def invalidate_all_sessions_for_identity(self, identity: Any) -> bool:
        """Log *identity* out of the session it is tracked in.

        Returns:
            ``True`` if a tracked session was found and cleared.
        """
        identity_id = self._identity_id(identity)
        session = self._registry.get(identity_id)
        if session is None:
            return False
        logger.info("Logging out '%s' from its tracked session", identity_id)
        self.record_in_session(session, None)
        return True

    def _refresh_context(self, ctx: RequestContext, identity: Optional[Any] = None) -> None:
        ctx.identity = identity if identity is not None else self.user_option(ctx.session)
        ctx.identity_id = None if ctx.identity is None else self._identity_id(ctx.identity)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, ctx: RequestContext) -> AuthAttemptResult:
        """Authenticate the request with every applicable strategy.

        Returns:
            :class:`~userauth.auth.base.Success` with the logged-in identity,
            or :class:`~userauth.auth.base.Failure`. The failure message is
            the comma-joined non-empty strategy messages (possibly ``""``),
            the login-intercept rejection, or the generic conflict message.
        """

        def validate(username: str, password: str) -> Optional[Any]:
            return self._validate_credentials(username, password)

        logger.debug("Trying to authenticate with %s", self.strategy_names())
        results = [
            strategy.attempt(ctx, validate)
            for strategy in self._strategies
            if strategy.is_applicable(ctx)
        ]

        identities: list[Any] = []
        for result in results:
            if isinstance(result, Success) and result.identity not in identities:
                identities.append(result.identity)
        errors = [
            result.message
            for result in results
            if isinstance(result, Failure) and result.message
        ]

        outcome: AuthAttemptResult
        if len(identities) > 1:
            logger.error(
                "Multiple authentication strategies authenticated different users "
                "in one request"
            )
            logger.debug("Conflicting identities: %r", identities)
            self.record_in_session(ctx.session, None)
            outcome = Failure(self._settings.conflict_message)
        elif len(identities) == 1:
            verdict = self._login_intercept(identities[0])
            if isinstance(verdict, Success):
                self.record_in_session(ctx.session, verdict.identity)
                logger.info("Authenticated '%s'", self._identity_id(verdict.identity))
                outcome = Success(verdict.identity)
            else:
                logger.info("Login intercepted: %s", verdict.message)
                self.record_in_session(ctx.session, None)
                outcome = verdict
        else:
            outcome = Failure(", ".join(errors))

        known = outcome.identity if isinstance(outcome, Success) else None
        self._refresh_context(ctx, known)
        for strategy in self._strategies:
            strategy.after_auth_processing(ctx)

        if isinstance(outcome, Success):
            self._post_login(outcome.identity)
        return outcome

    def logout(self, ctx: RequestContext) -> None:
        """Log the current user out of ``ctx.session``.

        Strategies' :meth:`~userauth.auth.base.AuthStrategy.before_logout`
        hooks run first, while the user is still recorded; then the session
        and registry entry are cleared and ``post_logout`` is called.
        """
        self._refresh_context(ctx)
        for strategy in self._strategies:
            strategy.before_logout(ctx)

        identity = self.user_option(ctx.session)
        logger.debug("Cancelling authentication of user")
        self.record_in_session(ctx.session, None)
        ctx.identity = None
        ctx.identity_id = None

        if identity is not None:
            logger.info("Logged out '%s'", self._identity_id(identity))
            self._post_logout(identity)


def create_default_coordinator(
    *,
    identity_id: Callable[[Any], str],
    identity_for_id: Callable[[str], Optional[Any]],
    validate_credentials: Callable[[str, str], Optional[Any]],
    token_store: Optional[TokenStore] = None,
    settings: Optional[AuthSettings] = None,
    **kwargs: Any,
) -> AuthCoordinator:
    """Create an :class:`AuthCoordinator` with the built-in strategies.

    The following strategies are registered, in order:

    - ``password`` -- username and password request parameters.
    - ``remember_me`` -- remember-me cookie, only when *token_store* is given.

    Extra keyword arguments (``registry``, ``login_intercept``,
    ``post_login``, ``post_logout``) are passed to the coordinator.
    """
    from userauth.strategies.password import PasswordStrategy
    from userauth.strategies.remember_me import RememberMeStrategy

    settings = settings or AuthSettings()
    strategies: list[AuthStrategy] = [PasswordStrategy(settings.password)]
    if token_store is not None:
        strategies.append(RememberMeStrategy(token_store, settings.remember_me))
    return AuthCoordinator(
        strategies,
        identity_id=identity_id,
        identity_for_id=identity_for_id,
        validate_credentials=validate_credentials,
        settings=settings,
        **kwargs,
    )
