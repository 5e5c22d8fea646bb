"""Click CLI definitions - main entry point."""

from __future__ import annotations

import logging
import sys

import click

from agentsupervisor.commands.config_cmd import config_group
from agentsupervisor.commands.memory_cmd import memory_group
from agentsupervisor.commands.message_cmd import message_group
from agentsupervisor.commands.session_cmd import session_group


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, debug: bool) -> None:
    """agentsupervisor - Operator tools for supervised agent runs."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(session_group, "session")
cli.add_command(message_group, "message")
cli.add_command(memory_group, "memory")
cli.add_command(config_group, "config")


if __name__ == "__main__":
    cli()
