"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for phoxy:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.phoxy/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~phoxy.models.GlobalConfig`
  JSON file storing the cache and output settings.
* **Precedence resolution** -- :func:`resolve_cache_config` merges CLI
  flags, environment variables, and the global config file into the
  :class:`~phoxy.models.CacheConfig` handed to the cache layer.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from phoxy.exceptions import ConfigError
from phoxy.models import AdapterType, CacheConfig, GlobalConfig

_APP_NAME = "phoxy"
_CONFIG_FILENAME = "config.json"

ENV_CACHE_ADAPTER = "PHOXY_CACHE_ADAPTER"
ENV_CACHE_DIR = "PHOXY_CACHE_DIR"
ENV_CACHE_NAMESPACE = "PHOXY_CACHE_NAMESPACE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/phoxy/`` (default ``~/.config/phoxy/``).
    On macOS/Windows: ``~/.phoxy/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Cached responses can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/phoxy/`` (default ``~/.cache/phoxy/``).
    On macOS/Windows: ``~/.phoxy/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/phoxy/`` (default ``~/.local/share/phoxy/``).
    On macOS/Windows: ``~/.phoxy/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
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
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config(path: Optional[Path] = None) -> GlobalConfig:
    """Load the global configuration.

    Args:
        path: Explicit config file; defaults to :func:`global_config_path`.

    Returns:
        The deserialised :class:`~phoxy.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = path or global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig, path: Optional[Path] = None) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
        path: Explicit config file; defaults to :func:`global_config_path`.
    """
    data = config.model_dump(mode="json", by_alias=True)
    _atomic_write(path or global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_cache_config(
    cli_adapter: Optional[str] = None,
    cli_directory: Optional[str] = None,
    global_config: Optional[GlobalConfig] = None,
) -> CacheConfig:
    """Resolve the cache configuration with its full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_adapter``, ``cli_directory``)
        2. Environment variables (``PHOXY_CACHE_ADAPTER``,
           ``PHOXY_CACHE_DIR``, ``PHOXY_CACHE_NAMESPACE``)
        3. User config (``~/.config/phoxy/config.json``)
        4. Defaults

    An unset directory is filled in with ``<cache dir>/responses``.

    Args:
        cli_adapter: Adapter name from the command line.
        cli_directory: Cache directory from the command line.
        global_config: Already loaded config; loaded from disk when omitted.

    Returns:
        A fresh :class:`~phoxy.models.CacheConfig`; the input config is
        not modified.

    Raises:
        ConfigError: If an override names an unknown adapter or produces
            an invalid configuration.
    """
    base = (global_config or load_global_config()).cache
    data = base.model_dump(mode="json", by_alias=True)

    env_adapter = os.environ.get(ENV_CACHE_ADAPTER)
    env_directory = os.environ.get(ENV_CACHE_DIR)
    env_namespace = os.environ.get(ENV_CACHE_NAMESPACE)

    if env_adapter:
        data["adapter"] = env_adapter
    if env_directory:
        data["directory"] = env_directory
    if env_namespace:
        data["namespace"] = env_namespace

    if cli_adapter is not None:
        data["adapter"] = cli_adapter
    if cli_directory is not None:
        data["directory"] = cli_directory

    try:
        resolved = CacheConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid cache configuration: {exc}") from exc

    if resolved.directory is None and resolved.adapter is not AdapterType.ARRAY:
        resolved.directory = str(get_cache_dir() / "responses")
    return resolved
