"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for proxycache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.proxycache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~proxycache.models.GlobalConfig`
  JSON file storing server, cache, and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`), which the disk cache backend also relies on for
its entry files.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from proxycache.exceptions import ConfigError
from proxycache.models import GlobalConfig

_APP_NAME = "proxycache"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "proxycache.json"

ENV_ORIGIN = "PROXYCACHE_ORIGIN"
ENV_PORT = "PROXYCACHE_PORT"
ENV_TTL = "PROXYCACHE_TTL"
ENV_BACKEND = "PROXYCACHE_BACKEND"
ENV_CACHE_DIR = "PROXYCACHE_CACHE_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/proxycache/`` (default ``~/.config/proxycache/``).
    On macOS/Windows: ``~/.proxycache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Root for the persistent response backends. Its contents can be deleted
    at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/proxycache/`` (default ``~/.cache/proxycache/``).
    On macOS/Windows: ``~/.proxycache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/proxycache/`` (default ``~/.local/share/proxycache/``).
    On macOS/Windows: ``~/.proxycache/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str | bytes) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Text is encoded as
    UTF-8; bytes are written unchanged. On any failure the temp file is
    removed and the exception re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = data.encode("utf-8") if isinstance(data, str) else data
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(payload)
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


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~proxycache.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


def reset_global_config() -> GlobalConfig:
    """Overwrite the global config file with defaults and return them."""
    config = GlobalConfig()
    save_global_config(config)
    return config


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./proxycache.json``.

    The file holds a partial :class:`~proxycache.models.GlobalConfig`
    (for example only ``{"server": {"origin": ...}}``) and sits between the
    global config and environment variables in the precedence chain.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_overrides() -> dict[str, Any]:
    """Collect ``PROXYCACHE_*`` environment overrides as a partial config dict."""
    server: dict[str, Any] = {}
    cache: dict[str, Any] = {}
    if os.environ.get(ENV_ORIGIN):
        server["origin"] = os.environ[ENV_ORIGIN]
    if os.environ.get(ENV_PORT):
        server["port"] = os.environ[ENV_PORT]
    if os.environ.get(ENV_TTL):
        cache["ttl_seconds"] = os.environ[ENV_TTL]
    if os.environ.get(ENV_BACKEND):
        cache["backend"] = os.environ[ENV_BACKEND]
    if os.environ.get(ENV_CACHE_DIR):
        cache["directory"] = os.environ[ENV_CACHE_DIR]

    overrides: dict[str, Any] = {}
    if server:
        overrides["server"] = server
    if cache:
        overrides["cache"] = cache
    return overrides


# --- Precedence resolution ---


def resolve_config(
    cli_overrides: Optional[dict[str, Any]] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_overrides``, a partial config dict; ``None``
           values are ignored)
        2. Environment variables (``PROXYCACHE_ORIGIN``, ``PROXYCACHE_PORT``,
           ``PROXYCACHE_TTL``, ``PROXYCACHE_BACKEND``, ``PROXYCACHE_CACHE_DIR``)
        3. Project config (``./proxycache.json``)
        4. User config (``~/.config/proxycache/config.json``)
        5. Defaults

    Returns:
        The effective :class:`~proxycache.models.GlobalConfig`.

    Raises:
        ConfigError: If any layer holds values that fail validation.
    """
    # 5 + 4
    data = load_global_config().model_dump(mode="json")

    # 3
    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    # 2
    data = _deep_merge(data, _env_overrides())

    # 1
    if cli_overrides:
        data = _deep_merge(data, _drop_none(cli_overrides))

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, dict):
            nested = _drop_none(value)
            if nested:
                cleaned[key] = nested
        elif value is not None:
            cleaned[key] = value
    return cleaned
