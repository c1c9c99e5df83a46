"""Configuration loading with XDG paths and precedence resolution.

A :class:`~rtdb_cache.models.StoreConfig` is assembled from, in order of
decreasing precedence:

1. Explicit arguments (command line flags).
2. Environment variables ``RTDB_CACHE_NAME``, ``RTDB_CACHE_SECRET``,
   ``RTDB_CACHE_TTL_MS``, ``RTDB_CACHE_BASE_URL``.
3. The user config file ``config.json`` in :func:`get_config_dir`.
4. Model defaults.

The secret may be given literally or as a source descriptor
(``env:VAR``, ``file:/path``); see :func:`resolve_credential`.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from rtdb_cache.exceptions import ConfigError
from rtdb_cache.models import StoreConfig

_APP_NAME = "rtdb-cache"
_CONFIG_FILENAME = "config.json"

ENV_NAME = "RTDB_CACHE_NAME"
ENV_SECRET = "RTDB_CACHE_SECRET"
ENV_TTL_MS = "RTDB_CACHE_TTL_MS"
ENV_BASE_URL = "RTDB_CACHE_BASE_URL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory spec (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory (not created).

    On Linux/BSD: ``$XDG_CONFIG_HOME/rtdb-cache/`` (default ``~/.config/rtdb-cache/``).
    Elsewhere: ``~/.rtdb-cache/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


def config_file_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Config file ---


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the raw user config file.

    Args:
        path: Explicit file to read. Defaults to :func:`config_file_path`.

    Returns:
        The parsed JSON object, or an empty dict when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or is not an object.
    """
    path = path or config_file_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_store_config(
    name: Optional[str] = None,
    secret: Optional[str] = None,
    ttl_ms: Optional[int] = None,
    base_url: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> StoreConfig:
    """Resolve the effective store configuration.

    Precedence (high to low): arguments, environment, config file, defaults.
    The returned config carries the *resolved* secret, never a descriptor.

    Raises:
        ConfigError: If no database name or secret can be found, a value is
            malformed, or the secret source cannot be read.
    """
    merged: dict[str, Any] = dict(load_config_file(config_path))

    env_overrides = {
        "name": os.environ.get(ENV_NAME),
        "secret": os.environ.get(ENV_SECRET),
        "ttl_ms": os.environ.get(ENV_TTL_MS),
        "base_url": os.environ.get(ENV_BASE_URL),
    }
    merged.update({k: v for k, v in env_overrides.items() if v})

    cli_overrides = {
        "name": name,
        "secret": secret,
        "ttl_ms": ttl_ms,
        "base_url": base_url,
    }
    merged.update({k: v for k, v in cli_overrides.items() if v is not None})

    if not merged.get("name"):
        raise ConfigError(
            f"No database name configured (use --name, {ENV_NAME}, or {config_file_path()})"
        )
    if not merged.get("secret"):
        raise ConfigError(
            f"No database secret configured (use --secret, {ENV_SECRET}, or {config_file_path()})"
        )

    merged["secret"] = resolve_credential(str(merged["secret"]))

    try:
        return StoreConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid store configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else is taken as the literal secret

    Raises:
        ConfigError: If the referenced variable or file is missing.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Secret file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read secret file {path}: {exc}") from exc

    return source
