"""Settings management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for userauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.userauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global settings** -- a single :class:`~userauth.models.AuthSettings`
  JSON file. See :func:`load_settings` and :func:`save_settings`.
* **Precedence resolution** -- :func:`resolve_settings` layers project-local
  ``./userauth.json`` and ``USERAUTH_*`` environment variables over the
  global file.

All file writes go through :func:`atomic_write` so that a crash never
leaves a half-written settings or token file behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from userauth.exceptions import ConfigError
from userauth.models import AuthSettings

_APP_NAME = "userauth"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "userauth.json"
_TOKEN_STORE_FILENAME = "remember_me_tokens.json"

ENV_COOKIE_SECURE = "USERAUTH_COOKIE_SECURE"
ENV_COOKIE_MAX_AGE = "USERAUTH_COOKIE_MAX_AGE"
ENV_TOKEN_STORE = "USERAUTH_TOKEN_STORE"

_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/userauth/`` (default ``~/.config/userauth/``).
    On macOS/Windows: ``~/.userauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (token store, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/userauth/`` (default ``~/.local/share/userauth/``).
    On macOS/Windows: ``~/.userauth/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using a temp file and rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX. When *mode* is given the
    permissions are applied before any content is written.

    Args:
        path: Destination file.
        data: Text content.
        mode: Optional permission bits (e.g. ``0o600`` for secrets).
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global settings ---


def settings_path() -> Path:
    """Path to the global settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, what: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {what} at {path}: expected a JSON object")
    return data


def load_settings() -> AuthSettings:
    """Load the global settings from the config directory.

    Returns:
        The deserialised :class:`~userauth.models.AuthSettings`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = settings_path()
    if not path.is_file():
        return AuthSettings()
    data = _read_json(path, "settings")
    try:
        return AuthSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: AuthSettings) -> None:
    """Persist *settings* atomically to the config directory."""
    data = settings.model_dump(mode="json")
    atomic_write(settings_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./userauth.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json(path, "project config")


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got: {raw!r}")


# --- Precedence resolution ---


def resolve_settings() -> AuthSettings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. Environment variables (``USERAUTH_COOKIE_SECURE``,
           ``USERAUTH_COOKIE_MAX_AGE``, ``USERAUTH_TOKEN_STORE``)
        2. Project config (``./userauth.json``), deep-merged
        3. User config (``~/.config/userauth/config.json``)
        4. Defaults

    Raises:
        ConfigError: If any layer is invalid.
    """
    data = load_settings().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    secure = os.environ.get(ENV_COOKIE_SECURE)
    if secure:
        data["remember_me"]["cookie_secure"] = _parse_bool(ENV_COOKIE_SECURE, secure)

    max_age = os.environ.get(ENV_COOKIE_MAX_AGE)
    if max_age:
        try:
            data["remember_me"]["cookie_max_age"] = int(max_age)
        except ValueError:
            raise ConfigError(
                f"Environment variable {ENV_COOKIE_MAX_AGE} must be an integer, "
                f"got: {max_age!r}"
            ) from None

    store = os.environ.get(ENV_TOKEN_STORE)
    if store:
        data["token_store_path"] = store

    try:
        return AuthSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid effective settings: {exc}") from exc


def token_store_path(settings: AuthSettings) -> Path:
    """Return the file token store location for *settings*.

    Uses ``settings.token_store_path`` when set (``~`` is expanded),
    otherwise ``<data_dir>/remember_me_tokens.json``.
    """
    if settings.token_store_path:
        return Path(settings.token_store_path).expanduser()
    return get_data_dir() / _TOKEN_STORE_FILENAME
