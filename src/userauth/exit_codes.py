"""Numeric process exit codes for the ``userauth`` admin CLI.

Each constant maps to an error category and is referenced by the matching
:class:`~userauth.exceptions.UserAuthError` subclass, so shell wrappers can
tell a rejected token from a bad argument without parsing stderr.

Example::

    $ userauth token check 3f9c...-alice
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the token store rejected the value
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, or a value that could not be parsed."""

EXIT_AUTH_FAILURE = 3
"""A credential or token was rejected."""

EXIT_NOT_FOUND = 4
"""The requested record does not exist."""
