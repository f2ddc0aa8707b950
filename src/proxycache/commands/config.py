"""Config commands -- view and modify global configuration.

Provides the ``proxycache config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~proxycache.models.GlobalConfig`). Settings are persisted in the
proxycache config directory and control defaults such as the origin,
listening port, cache backend, and TTL.
"""

from __future__ import annotations

import typer

from proxycache.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration.

    Prints the config directory path, then the configuration after
    merging the global file, ``./proxycache.json`` and ``PROXYCACHE_*``
    environment variables.

    Example::

        proxycache config show
        proxycache --json config show
    """
    from proxycache.config import get_config_dir, resolve_config

    config = resolve_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int, float, or str) and the result is
    validated against :class:`~proxycache.models.GlobalConfig` before
    saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        proxycache config set server.origin https://api.example.com
        proxycache config set cache.backend disk
        proxycache config set cache.ttl_seconds 600
    """
    from pydantic import ValidationError

    from proxycache.config import load_global_config, save_global_config
    from proxycache.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    coerced: object
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, (int, float)):
        try:
            coerced = type(current)(value)
        except ValueError:
            error(f"Expected a number for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    elif current is None and value.lower() in ("none", "null", ""):
        coerced = None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults.

    Example::

        proxycache config reset
        proxycache config reset --force
    """
    from proxycache.config import reset_global_config

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    reset_global_config()
    success("Configuration reset to defaults.")
