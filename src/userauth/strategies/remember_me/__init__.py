"""Remember-me cookie strategy and its token codec.

A random token is issued to the client as a long-lived cookie and recorded
server-side. On a later visit the cookie is checked against the record and
the user is logged in without a password.

See Also:
    :class:`~userauth.strategies.remember_me.strategy.RememberMeStrategy`
    :class:`~userauth.strategies.remember_me.token.RememberMeToken`
"""

from userauth.strategies.remember_me.strategy import RememberMeStrategy, checkbox_ticked
from userauth.strategies.remember_me.token import RememberMeToken

__all__ = ["RememberMeStrategy", "RememberMeToken", "checkbox_ticked"]
