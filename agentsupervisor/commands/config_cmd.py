"""CLI handlers for config commands."""

from __future__ import annotations

import click

from agentsupervisor.config import DEFAULT_CONFIG_PATH, init_config, load_config


@click.group("config")
def config_group():
    """Manage configuration."""
    pass


@config_group.command("init")
def config_init():
    """Create default configuration file."""
    path = init_config()
    click.echo(f"Configuration created at: {path}")


@config_group.command("show")
def config_show():
    """Show current configuration."""
    config = load_config()
    sup = config.supervisor
    click.echo(f"Config file: {config.config_path}")
    click.echo(f"  MongoDB: {config.mongodb.uri}/{config.mongodb.database}")
    click.echo(f"  Store: {config.store.backend} (collection={config.store.collection})")
    click.echo(
        f"  Loop breaker: {sup.loop_threshold} repeats in last {sup.loop_window} calls"
    )
    click.echo(f"  Gathering after: {sup.gathering_threshold} investigation calls")
    click.echo(
        f"  TTLs: session={sup.session_ttl}s, cancel flag={sup.cancel_flag_ttl}s, "
        f"message queue={sup.message_queue_ttl}s"
    )
    click.echo(
        f"  Memory: {config.memory.max_entries_per_context} per context, "
        f"expires after {config.memory.expiry_days} days"
    )
    if config.activity.enabled:
        has_token = "configured" if config.activity.token else "not set"
        click.echo(f"  Activity: {config.activity.base_url} (token {has_token})")
    else:
        click.echo("  Activity: operator log")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a configuration value.

    Modifies the TOML config file. Key uses dot notation, e.g.:
    mongodb.uri, supervisor.loop_threshold, activity.enabled
    """
    import tomli_w

    path = DEFAULT_CONFIG_PATH
    if not path.exists():
        click.echo("No config file found. Run 'agentsupervisor config init' first.", err=True)
        return

    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    with open(path, "rb") as f:
        data = tomllib.load(f)

    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        target = target.setdefault(part, {})

    final_key = parts[-1]
    if value.lower() in ("true", "false"):
        target[final_key] = value.lower() == "true"
    elif value.isdigit():
        target[final_key] = int(value)
    else:
        try:
            target[final_key] = float(value)
        except ValueError:
            target[final_key] = value

    with open(path, "wb") as f:
        tomli_w.dump(data, f)

    click.echo(f"Set {key} = {value}")
