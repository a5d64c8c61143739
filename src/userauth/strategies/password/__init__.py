"""Username and password strategy.

See Also:
    :class:`~userauth.strategies.password.strategy.PasswordStrategy`
"""

from userauth.strategies.password.strategy import PasswordStrategy

__all__ = ["PasswordStrategy"]
