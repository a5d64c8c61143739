"""Per-request context handed to every strategy hook."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from userauth.auth.transport import CookieJar, Session


@dataclass
class RequestContext:
    """Mutable request state threaded through the strategy hooks.

    The transport layer fills ``params``, ``session`` and ``cookies``; the
    coordinator fills ``identity`` and ``identity_id`` before running the
    :meth:`~userauth.auth.base.AuthStrategy.after_auth_processing` and
    :meth:`~userauth.auth.base.AuthStrategy.before_logout` hooks.

    Attributes:
        params: Request parameters (query string and form fields). Only
            presence matters for some strategies, so empty strings are kept.
        session: The session this request belongs to.
        cookies: Cookie capability, or ``None`` when the transport cannot
            read and write cookies.
        identity: The authenticated identity as seen by the hooks.
        identity_id: Unique id of :attr:`identity`.
    """

    params: Mapping[str, str] = field(default_factory=dict)
    session: Optional[Session] = None
    cookies: Optional[CookieJar] = None
    identity: Any = None
    identity_id: Optional[str] = None

    def param(self, name: str) -> Optional[str]:
        return self.params.get(name)

    def response_headers(self) -> list[tuple[str, str]]:
        """Headers the transport must add to the response."""
        if self.cookies is None:
            return []
        return self.cookies.headers()
