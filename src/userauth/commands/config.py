"""Config commands -- view and modify the global settings file.

Provides the ``userauth config`` sub-command group for reading, updating
and resetting :class:`~userauth.models.AuthSettings`.
"""

from __future__ import annotations

import typer

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    effective: bool = typer.Option(
        False,
        "--effective",
        help="Include project config and environment overrides.",
    ),
) -> None:
    """Show the current settings.

    Example::

        userauth config show --effective --json
    """
    from userauth.config import load_settings, resolve_settings, settings_path
    from userauth.exceptions import UserAuthError
    from userauth.output import error, info, print_record

    try:
        settings = resolve_settings() if effective else load_settings()
    except UserAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Settings file: {settings_path()}")
    print_record(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Settings key (dot notation, e.g. 'remember_me.cookie_secure')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a settings value.

    The value is coerced to the type of the existing field and the result
    is validated against :class:`~userauth.models.AuthSettings` before it
    is saved.

    Example::

        userauth config set remember_me.cookie_max_age 86400
    """
    from pydantic import ValidationError

    from userauth.config import load_settings, save_settings
    from userauth.exceptions import UserAuthError
    from userauth.models import AuthSettings
    from userauth.output import error, success

    try:
        data = load_settings().model_dump(mode="json")
    except UserAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    keys = key.split(".")
    target = data
    for part in keys[:-1]:
        if not isinstance(target.get(part), dict):
            error(f"Invalid settings key: {key}")
            raise typer.Exit(code=2)
        target = target[part]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown settings key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    if isinstance(current, bool):
        coerced: object = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value
    target[final_key] = coerced

    try:
        settings = AuthSettings.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_settings(settings)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the settings file to defaults."""
    from userauth.config import save_settings
    from userauth.models import AuthSettings
    from userauth.output import info, success

    if not force and not typer.confirm("Reset all settings to defaults?"):
        info("Cancelled.")
        raise typer.Exit()
    save_settings(AuthSettings())
    success("Settings reset to defaults.")
