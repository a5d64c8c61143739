"""Process-wide registry from identity id to active session.

The registry lets an administrator (or a password-change handler) find the
session a user is logged in with and clear it. One registry is created at
service startup, shared by every request-handling thread, and cleared at
shutdown.

Only the most recent session per identity is tracked: a second login for the
same identity replaces the entry without invalidating the earlier session.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from userauth.auth.transport import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Thread-safe mapping of identity id to :class:`~userauth.auth.transport.Session`.

    Every operation is atomic on its own. Sequences of operations are not
    serialised across calls, so two concurrent logins for the same identity
    race and the last writer wins.

    Example::

        registry = SessionRegistry()
        registry.put("alice", session)
        assert registry.get("alice") is session
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def put(self, identity_id: str, session: Session) -> Optional[Session]:
        """Track *session* for *identity_id*.

        Returns:
            The session previously tracked for the identity, if any. It is
            not invalidated.
        """
        with self._lock:
            previous = self._sessions.get(identity_id)
            self._sessions[identity_id] = session
        if previous is not None and previous is not session:
            logger.debug("Session for '%s' superseded by a newer login", identity_id)
        return previous

    def get(self, identity_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(identity_id)

    def remove(self, identity_id: str, session: Optional[Session] = None) -> bool:
        """Stop tracking *identity_id*.

        Args:
            identity_id: The identity to untrack.
            session: When given, the entry is removed only if it still
                points at this session.

        Returns:
            ``True`` if an entry was removed.
        """
        with self._lock:
            current = self._sessions.get(identity_id)
            if current is None:
                return False
            if session is not None and current is not session:
                return False
            del self._sessions[identity_id]
            return True

    def identity_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def clear(self) -> None:
        """Forget every tracked session (service shutdown)."""
        with self._lock:
            self._sessions.clear()

    def __contains__(self, identity_id: object) -> bool:
        with self._lock:
            return identity_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
