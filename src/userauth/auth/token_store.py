"""Server-side storage of remember-me tokens.

The remember-me strategy delegates two decisions to a token store:

* whether a raw cookie value matches the token on record for an identity
  and has not expired or been revoked, and
* persisting (or clearing) the token issued at login.

:class:`TokenStore` is that contract. Two reference implementations are
provided: :class:`MemoryTokenStore` for single-process services and tests,
and :class:`FileTokenStore`, which keeps every record in one JSON file
written atomically with ``0o600`` permissions so that tokens are never
world-readable, even momentarily.

Clearing a token writes an empty-token marker rather than deleting the
record, so there is no delete-then-recreate window.
"""

from __future__ import annotations

import json
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from userauth.config import atomic_write
from userauth.exceptions import ConfigError
from userauth.models import DEFAULT_COOKIE_MAX_AGE, StoredToken

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenStore(Protocol):
    """Contract between the remember-me strategy and token persistence."""

    def validate_remember_me_token(self, identity_id: str, raw_token: str) -> Optional[Any]:
        """Return the identity if *raw_token* is its current, unexpired token."""
        ...

    def store_remember_me_token(self, identity: Any, token: Optional[str]) -> None:
        """Persist *token* for *identity*; ``None`` revokes the stored token."""
        ...


def _same_identity(value: Any) -> Any:
    return value


class _RecordTokenStore(ABC):
    """Shared validation and issuance logic over a mapping of records.

    Subclasses provide :meth:`_load` and :meth:`_save`.

    Args:
        identity_id: Maps an identity to its unique string id.
        identity_for_id: Resolves an id back to the identity, or ``None``.
        max_age: Token lifetime in seconds; ``None`` for no expiry.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        identity_id: Callable[[Any], str] = str,
        identity_for_id: Callable[[str], Optional[Any]] = _same_identity,
        max_age: Optional[int] = DEFAULT_COOKIE_MAX_AGE,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._identity_id = identity_id
        self._identity_for_id = identity_for_id
        self._max_age = max_age
        self._clock = clock
        self._lock = threading.RLock()

    @abstractmethod
    def _load(self) -> dict[str, StoredToken]:
        """Return a copy of every stored record keyed by identity id."""

    @abstractmethod
    def _save(self, records: dict[str, StoredToken]) -> None:
        """Replace the stored records with *records*."""

    def validate_remember_me_token(self, identity_id: str, raw_token: str) -> Optional[Any]:
        with self._lock:
            record = self._load().get(identity_id)
        if record is None or record.revoked:
            logger.debug("No remember-me token on record for '%s'", identity_id)
            return None
        if not secrets.compare_digest(record.token.encode(), raw_token.encode()):
            logger.debug("Remember-me token mismatch for '%s'", identity_id)
            return None
        if record.is_expired(self._clock()):
            logger.debug("Remember-me token for '%s' has expired", identity_id)
            return None
        return self._identity_for_id(identity_id)

    def store_remember_me_token(self, identity: Any, token: Optional[str]) -> None:
        identity_id = self._identity_id(identity)
        now = self._clock()
        expires_at = None
        if token and self._max_age is not None:
            expires_at = now + timedelta(seconds=self._max_age)
        record = StoredToken(
            identity_id=identity_id,
            token=token or "",
            issued_at=now,
            expires_at=expires_at,
        )
        with self._lock:
            records = self._load()
            records[identity_id] = record
            self._save(records)
        if token:
            logger.debug("Stored remember-me token for '%s'", identity_id)
        else:
            logger.debug("Cleared remember-me token for '%s'", identity_id)

    def get(self, identity_id: str) -> Optional[StoredToken]:
        with self._lock:
            return self._load().get(identity_id)

    def records(self) -> list[StoredToken]:
        """Return every stored record, ordered by identity id."""
        with self._lock:
            records = self._load()
        return [records[key] for key in sorted(records)]


class MemoryTokenStore(_RecordTokenStore):
    """Remember-me tokens held in process memory."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._records: dict[str, StoredToken] = {}

    def _load(self) -> dict[str, StoredToken]:
        return dict(self._records)

    def _save(self, records: dict[str, StoredToken]) -> None:
        self._records = dict(records)


class FileTokenStore(_RecordTokenStore):
    """Remember-me tokens persisted in a single JSON file.

    The lock serialises access within one process only; run one writer
    process per file.

    Args:
        path: The JSON file. Created on first write.
        *args, **kwargs: See :class:`_RecordTokenStore`.

    Example::

        store = FileTokenStore(tmp_path / "tokens.json")
        store.store_remember_me_token("alice", "3f9c...-alice")
        assert store.validate_remember_me_token("alice", "3f9c...-alice") == "alice"
    """

    def __init__(self, path: Path, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, StoredToken]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return {
                key: StoredToken.model_validate(value)
                for key, value in data.get("tokens", {}).items()
            }
        except (json.JSONDecodeError, ValidationError, AttributeError, OSError) as exc:
            raise ConfigError(f"Unreadable token store at {self._path}: {exc}") from exc

    def _save(self, records: dict[str, StoredToken]) -> None:
        data = {
            "tokens": {key: record.model_dump(mode="json") for key, record in records.items()}
        }
        atomic_write(self._path, json.dumps(data, indent=2) + "\n", mode=0o600)
