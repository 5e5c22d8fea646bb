"""CLI handlers for queuing interjections into running sessions."""

from __future__ import annotations

import click

from agentsupervisor.commands._helpers import _run, get_context
from agentsupervisor.models.message import MessageType, QueuedMessage


@click.group("message")
def message_group():
    """Send messages to running sessions."""
    pass


@message_group.command("send")
@click.argument("session_id")
@click.argument("text")
@click.option(
    "--type", "-t", "message_type",
    type=click.Choice([MessageType.CREATED.value, MessageType.PROMPTED.value]),
    default=MessageType.PROMPTED.value,
    help="Message type",
)
@click.option("--user", "-u", default="", help="Sender user id")
def message_send(session_id: str, text: str, message_type: str, user: str):
    """Queue a message for a running session."""

    async def _send():
        ctx = await get_context()
        try:
            session = await ctx.session_service.get_active(session_id)
            if session is None:
                click.echo(f"No active session: {session_id}", err=True)
                return
            message = QueuedMessage(
                content=text,
                type=MessageType(message_type),
                session_id=session_id,
                issue_id=session.context_id,
                user_id=user,
            )
            length = await ctx.message_queue.queue_message(session_id, message)
            click.echo(f"Queued message for {session_id} ({length} pending)")
        finally:
            await ctx.close()

    _run(_send())


@message_group.command("stop")
@click.argument("session_id")
@click.argument("text", default="stop")
def message_stop(session_id: str, text: str):
    """Queue a stop command; the run ends at its next tool call."""

    async def _stop():
        ctx = await get_context()
        try:
            if await ctx.session_service.get_active(session_id) is None:
                click.echo(f"No active session: {session_id}", err=True)
                return
            await ctx.message_queue.queue_stop(session_id, text)
            click.echo(f"Stop queued for {session_id}")
        finally:
            await ctx.close()

    _run(_stop())
