"""Built-in CLI sub-commands (``token``, ``config``)."""
