"""Config commands -- view and modify the global configuration.

Provides the ``phoxy config`` sub-command group for reading, updating and
resetting the user's configuration file
(:class:`~phoxy.models.GlobalConfig`). The ``cache`` section selects the
adapter, namespace and directory, and holds the per-category TTL and size
tables used by :class:`~phoxy.cache.ProxyCache`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

from phoxy.exceptions import ConfigError
from phoxy.exit_codes import EXIT_INVALID_USAGE
from phoxy.output import error, info, print_mapping, success


config_app = typer.Typer(no_args_is_help=True)

_NULL_VALUES = ("null", "none")


def _config_path(ctx: typer.Context) -> Optional[Path]:
    config_file = ctx.obj.get("config_file") if ctx.obj else None
    return Path(config_file) if config_file else None


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested dicts into dot-separated keys (``cache.ttl.json``)."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def _coerce(key: str, current: Any, value: str) -> Any:
    """Coerce *value* to the type of the field's *current* value.

    ``null`` / ``none`` clear a field; validation decides whether the field
    may be cleared.

    Raises:
        typer.BadParameter: If an integer is expected and *value* is not one.
    """
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if value.lower() in _NULL_VALUES:
        return None
    if isinstance(current, int) or current is None:
        if value.lstrip("-").isdigit():
            return int(value)
        if isinstance(current, int):
            raise typer.BadParameter(f"Expected integer for {key}, got: {value}")
    return value


def _load(ctx: typer.Context):
    from phoxy.config import load_global_config

    try:
        return load_global_config(_config_path(ctx))
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the current configuration as dot-separated keys.

    Example::

        phoxy config show
        phoxy --json config show
    """
    from phoxy.config import global_config_path

    config = _load(ctx)
    info(f"Config file: {_config_path(ctx) or global_config_path()}")
    print_mapping(_flatten(config.model_dump(mode="json", by_alias=True)), title="Configuration")


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'cache.ttl.json')."),
    value: str = typer.Argument(help="Value to set; 'null' clears an optional field."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int or str) and the updated config is
    validated against :class:`~phoxy.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        phoxy config set cache.adapter diskcache
        phoxy config set cache.ttl.json 600
        phoxy config set cache.ttl.html null
    """
    from phoxy.config import save_global_config
    from phoxy.models import GlobalConfig

    config = _load(ctx)
    data = config.model_dump(mode="json", by_alias=True)

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    try:
        coerced = _coerce(key, target[final_key], value)
    except typer.BadParameter as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config, _config_path(ctx))
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset the configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        phoxy --force config reset
    """
    from phoxy.config import save_global_config
    from phoxy.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig(), _config_path(ctx))
    success("Configuration reset to defaults.")
