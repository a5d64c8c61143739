"""Built-in authentication strategies.

* :class:`PasswordStrategy` -- ``username`` / ``password`` request parameters.
* :class:`RememberMeStrategy` -- long-lived remember-me cookie backed by a
  :class:`~userauth.auth.token_store.TokenStore`.
"""

from userauth.strategies.password import PasswordStrategy
from userauth.strategies.remember_me import RememberMeStrategy, RememberMeToken

__all__ = ["PasswordStrategy", "RememberMeStrategy", "RememberMeToken"]
