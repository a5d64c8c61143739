"""Remember-me token format: generate, serialise, parse.

Wire form: ``"<nonce>-<identity_id>"``. Parsing splits on the *last*
separator, so the nonce may contain ``-`` but the identity id may not::

    >>> RememberMeToken.parse("deadbeef-1234-A1")
    RememberMeToken(nonce='deadbeef-1234', identity_id='A1')

The nonce is 16 bytes from :mod:`secrets`, hex encoded. Token
unguessability is the only protection a remember-me cookie has on an
unencrypted channel, so nonces are never reused.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from typing import Optional

from userauth.exceptions import TokenFormatError

SEPARATOR = "-"
NONCE_BYTES = 16

_TOKEN_RE = re.compile(r"(.+)-([^-]+)")


def generate_nonce() -> str:
    return secrets.token_hex(NONCE_BYTES)


@dataclass(frozen=True)
class RememberMeToken:
    """A remember-me token bound to one identity id."""

    nonce: str
    identity_id: str

    @classmethod
    def generate(cls, identity_id: str) -> RememberMeToken:
        """Mint a token with a fresh random nonce.

        Raises:
            TokenFormatError: If *identity_id* is empty or contains the
                separator, since the token would not parse back to it.
        """
        if not identity_id or SEPARATOR in identity_id:
            raise TokenFormatError(
                f"Identity id {identity_id!r} cannot be used in a remember-me token "
                f"(must be non-empty and must not contain {SEPARATOR!r})"
            )
        return cls(nonce=generate_nonce(), identity_id=identity_id)

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional[RememberMeToken]:
        """Parse a cookie value, returning ``None`` if it is malformed."""
        if not value:
            return None
        match = _TOKEN_RE.fullmatch(value)
        if match is None:
            return None
        return cls(nonce=match.group(1), identity_id=match.group(2))

    def __str__(self) -> str:
        return f"{self.nonce}{SEPARATOR}{self.identity_id}"
