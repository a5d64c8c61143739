"""Strategy-based authentication core for userauth.

The main entry points are:

- :class:`AuthStrategy` -- abstract base class for ways of authenticating a
  request; :class:`Success` and :class:`Failure` are its results.
- :class:`AuthCoordinator` -- runs the strategies, reconciles their results
  and records the outcome in the session.
- :func:`create_default_coordinator` -- coordinator pre-loaded with the
  built-in password and remember-me strategies.
- :class:`SessionRegistry` -- identity id to session map used to force a
  user out of their session.
- :class:`TokenStore` -- remember-me token persistence contract, with
  :class:`MemoryTokenStore` and :class:`FileTokenStore` implementations.

Typical usage::

    from userauth.auth import CookieJar, RequestContext, create_default_coordinator

    ctx = RequestContext(params=form, session=session, cookies=CookieJar(cookies))
    outcome = coordinator.authenticate(ctx)
    for name, value in ctx.response_headers():
        response.headers.append(name, value)
"""

from userauth.auth.base import AuthAttemptResult, AuthStrategy, CredentialValidator, Failure, Success
from userauth.auth.context import RequestContext
from userauth.auth.coordinator import AuthCoordinator, accept_login, create_default_coordinator
from userauth.auth.registry import SessionRegistry
from userauth.auth.token_store import FileTokenStore, MemoryTokenStore, TokenStore
from userauth.auth.transport import Cookie, CookieJar, MemorySession, Session

__all__ = [
    "AuthAttemptResult",
    "AuthCoordinator",
    "AuthStrategy",
    "Cookie",
    "CookieJar",
    "CredentialValidator",
    "Failure",
    "FileTokenStore",
    "MemorySession",
    "MemoryTokenStore",
    "RequestContext",
    "Session",
    "SessionRegistry",
    "Success",
    "TokenStore",
    "accept_login",
    "create_default_coordinator",
]
