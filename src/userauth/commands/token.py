"""Token commands -- administer the file-backed remember-me token store.

Provides the ``userauth token`` sub-command group for issuing, inspecting,
checking and revoking remember-me tokens. The store location comes from
:func:`~userauth.config.resolve_settings` (``token_store_path`` setting or
``USERAUTH_TOKEN_STORE``).

Typical workflow::

    userauth token issue alice --header   # mint a token, print Set-Cookie
    userauth token check <cookie value>   # does the store accept it?
    userauth token revoke alice           # log alice out of remember-me
"""

from __future__ import annotations

import typer

from userauth.exceptions import UserAuthError

token_app = typer.Typer(no_args_is_help=True)


def _open_store():
    from userauth.auth.token_store import FileTokenStore
    from userauth.config import resolve_settings, token_store_path

    settings = resolve_settings()
    store = FileTokenStore(
        token_store_path(settings), max_age=settings.remember_me.cookie_max_age
    )
    return settings, store


def _fail(exc: UserAuthError) -> typer.Exit:
    from userauth.output import error

    error(str(exc))
    return typer.Exit(code=exc.exit_code)


@token_app.command("issue")
def token_issue(
    identity_id: str = typer.Argument(help="Identity id the token is bound to."),
    header: bool = typer.Option(
        False, "--header", help="Print the full Set-Cookie header value."
    ),
) -> None:
    """Mint a new remember-me token and record it in the store.

    Any token previously issued to the identity stops being valid.

    Example::

        userauth token issue alice
    """
    from userauth.auth.transport import Cookie
    from userauth.output import debug, print_data, success
    from userauth.strategies.remember_me import RememberMeToken

    try:
        settings, store = _open_store()
        token = RememberMeToken.generate(identity_id)
        store.store_remember_me_token(identity_id, str(token))
    except UserAuthError as exc:
        raise _fail(exc) from None

    debug(f"Token store: {store.path}")
    if header:
        config = settings.remember_me
        cookie = Cookie(
            name=config.cookie_name,
            value=str(token),
            max_age=config.cookie_max_age,
            path=config.cookie_path,
            secure=config.cookie_secure,
        )
        print_data(cookie.to_header())
    else:
        print_data(str(token))
    success(f'Issued remember-me token for "{identity_id}".')


@token_app.command("parse")
def token_parse(
    value: str = typer.Argument(help="Remember-me cookie value."),
) -> None:
    """Split a cookie value into its nonce and identity id."""
    from userauth.output import error, print_record
    from userauth.strategies.remember_me import RememberMeToken

    token = RememberMeToken.parse(value)
    if token is None:
        error("Not a remember-me token (expected '<nonce>-<identity id>').")
        raise typer.Exit(code=2)
    print_record({"nonce": token.nonce, "identity_id": token.identity_id})


@token_app.command("check")
def token_check(
    value: str = typer.Argument(help="Remember-me cookie value."),
) -> None:
    """Check a cookie value against the store.

    Exits with code 3 when the token is unknown, revoked or expired.
    """
    from userauth.exceptions import AuthError, InvalidUsageError
    from userauth.output import print_data, success
    from userauth.strategies.remember_me import RememberMeToken

    try:
        token = RememberMeToken.parse(value)
        if token is None:
            raise InvalidUsageError("Not a remember-me token.")
        _, store = _open_store()
        identity = store.validate_remember_me_token(token.identity_id, value)
        if identity is None:
            raise AuthError(f'Token rejected for "{token.identity_id}".')
    except UserAuthError as exc:
        raise _fail(exc) from None

    print_data(str(identity))
    success("Token accepted.")


@token_app.command("revoke")
def token_revoke(
    identity_id: str = typer.Argument(help="Identity whose token is revoked."),
) -> None:
    """Revoke the stored token of an identity."""
    from userauth.exceptions import NotFoundError
    from userauth.output import success

    try:
        _, store = _open_store()
        if store.get(identity_id) is None:
            raise NotFoundError(f'No remember-me token recorded for "{identity_id}".')
        store.store_remember_me_token(identity_id, None)
    except UserAuthError as exc:
        raise _fail(exc) from None
    success(f'Revoked remember-me token for "{identity_id}".')


@token_app.command("list")
def token_list() -> None:
    """List stored tokens with their status."""
    from userauth.output import info, print_table

    try:
        _, store = _open_store()
        records = store.records()
    except UserAuthError as exc:
        raise _fail(exc) from None

    if not records:
        info("No remember-me tokens stored.")
        return
    rows = [
        [
            record.identity_id,
            record.status(),
            record.issued_at.isoformat(),
            record.expires_at.isoformat() if record.expires_at else "never",
        ]
        for record in records
    ]
    print_table(["identity_id", "status", "issued_at", "expires_at"], rows, title="Remember-me tokens")
