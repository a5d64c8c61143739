"""userauth -- pluggable multi-strategy user authentication.

This package resolves whether an inbound request carries valid proof of
identity by running an ordered list of independent authentication
strategies (username/password, persistent "remember me" cookie) and
reconciling their results into a single authenticated identity or a
well-defined failure. It also keeps a process-wide registry from identity
id to active session so that every session of a user can be force-expired.

Typical usage::

    from userauth.auth import create_default_coordinator, RequestContext

    coordinator = create_default_coordinator(
        identity_id=lambda user: user.id,
        identity_for_id=directory.get,
        validate_credentials=directory.check_password,
        token_store=token_store,
    )
    outcome = coordinator.authenticate(RequestContext(params, session, cookies))

Modules:
    auth: Strategy interface, coordinator, session registry, token stores.
    strategies: The built-in password and remember-me strategies.
    models: Pydantic settings models.
    config: XDG-aware settings resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer admin CLI entry point.
"""

__version__ = "0.1.0"
