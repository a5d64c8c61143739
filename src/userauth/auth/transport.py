"""Narrow transport capabilities the core needs: sessions and cookies.

The HTTP layer is an external collaborator. It adapts its own request,
response and session objects to the small interfaces defined here:

* :class:`Session` -- attribute read/write on the user's session.
* :class:`CookieJar` -- request cookie access plus pending ``Set-Cookie``
  response headers.

:class:`MemorySession` is an in-process session used by tests, the CLI and
applications that keep sessions in memory.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, runtime_checkable

from userauth.exceptions import SessionInvalidatedError

_EPOCH_EXPIRES = "Thu, 01 Jan 1970 00:00:00 GMT"


@runtime_checkable
class Session(Protocol):
    """A user session as seen by the coordinator.

    Implementations raise
    :class:`~userauth.exceptions.SessionInvalidatedError` when the session
    has been invalidated by the transport layer.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemorySession:
    """Thread-safe in-memory :class:`Session`.

    Args:
        session_id: Optional identifier; a random UUID when omitted.
    """

    def __init__(self, session_id: Optional[str] = None) -> None:
        self.id = session_id or uuid.uuid4().hex
        self._attributes: dict[str, str] = {}
        self._valid = True
        self._lock = threading.Lock()

    @property
    def valid(self) -> bool:
        return self._valid

    def _check(self) -> None:
        if not self._valid:
            raise SessionInvalidatedError(f"Session {self.id} has been invalidated")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            self._check()
            return self._attributes.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._check()
            self._attributes[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._check()
            self._attributes.pop(key, None)

    def invalidate(self) -> None:
        """Drop every attribute and refuse further access."""
        with self._lock:
            self._attributes.clear()
            self._valid = False

    def __repr__(self) -> str:
        state = "valid" if self._valid else "invalidated"
        return f"MemorySession(id={self.id!r}, {state})"


@dataclass(frozen=True)
class Cookie:
    """A cookie to send to the client.

    Attributes:
        name: Cookie name.
        value: Cookie value (ASCII, no ``;``).
        max_age: ``Max-Age`` in seconds; ``None`` for a session cookie,
            ``0`` to delete the cookie.
        path: Optional ``Path`` attribute.
        secure: Add the ``Secure`` flag.
        http_only: Add the ``HttpOnly`` flag.
    """

    name: str
    value: str
    max_age: Optional[int] = None
    path: Optional[str] = None
    secure: bool = False
    http_only: bool = True

    @property
    def expired(self) -> bool:
        return self.max_age == 0

    def to_header(self) -> str:
        """Render the value of a ``Set-Cookie`` header."""
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
            if self.max_age == 0:
                parts.append(f"Expires={_EPOCH_EXPIRES}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.secure:
            parts.append("Secure")
        if self.http_only:
            parts.append("HttpOnly")
        return "; ".join(parts)


class CookieJar:
    """Request cookies plus the cookies queued for the response.

    Reads see cookies set during this request, so a cookie deleted by one
    hook is absent for the next.

    Args:
        request_cookies: Cookies sent by the client.
    """

    def __init__(self, request_cookies: Optional[Mapping[str, str]] = None) -> None:
        self._request = dict(request_cookies or {})
        self._response: dict[str, Cookie] = {}

    def get(self, name: str) -> Optional[str]:
        if name in self._response:
            cookie = self._response[name]
            return None if cookie.expired else cookie.value
        return self._request.get(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def set(self, cookie: Cookie) -> None:
        self._response[cookie.name] = cookie

    def delete(self, name: str, path: Optional[str] = None) -> None:
        """Queue a removal cookie for *name*."""
        self.set(Cookie(name=name, value="", max_age=0, path=path))

    def pending(self) -> list[Cookie]:
        return list(self._response.values())

    def headers(self) -> list[tuple[str, str]]:
        """Return ``("Set-Cookie", value)`` pairs for every queued cookie."""
        return [("Set-Cookie", cookie.to_header()) for cookie in self._response.values()]
