"""CLI handlers for session commands."""

from __future__ import annotations

import click

from agentsupervisor.commands._helpers import _run, format_time, get_context


@click.group("session")
def session_group():
    """Inspect and cancel supervised runs."""
    pass


@session_group.command("list")
def session_list():
    """List active sessions."""

    async def _list():
        ctx = await get_context()
        try:
            sessions = await ctx.session_service.list_active()
            if not sessions:
                click.echo("No active sessions.")
                return
            for s in sessions:
                tool = f" tool={s.current_tool}" if s.current_tool else ""
                click.echo(
                    f"  {s.session_id} [{s.phase}] {s.context_id} ({s.platform.value}){tool}"
                )
        finally:
            await ctx.close()

    _run(_list())


@session_group.command("show")
@click.argument("session_id")
def session_show(session_id: str):
    """Show an active or completed session."""

    async def _show():
        ctx = await get_context()
        try:
            session = await ctx.session_service.get_active(session_id)
            if session is None:
                session = await ctx.session_service.get_completed(session_id)
            if session is None:
                click.echo(f"Session not found: {session_id}", err=True)
                return
            click.echo(f"Session: {session.session_id}")
            click.echo(f"  Context: {session.context_id}")
            click.echo(f"  Platform: {session.platform.value}")
            click.echo(f"  Status: {session.status.value}")
            click.echo(f"  Phase: {session.phase}")
            if session.current_tool:
                click.echo(f"  Current tool: {session.current_tool}")
            click.echo(f"  Tools used: {', '.join(session.tools_used) or '-'}")
            click.echo(f"  Actions performed: {len(session.actions_performed)}")
            click.echo(f"  Messages: {len(session.messages)}")
            click.echo(f"  Started: {format_time(session.start_time)}")
            if session.end_time:
                click.echo(f"  Ended: {format_time(session.end_time)} ({session.duration:.1f}s)")
            if session.error:
                click.echo(f"  Error: {session.error}")
        finally:
            await ctx.close()

    _run(_show())


@session_group.command("completed")
@click.option("--limit", "-l", default=20, help="Max sessions to show")
def session_completed(limit: int):
    """List recently completed sessions."""

    async def _completed():
        ctx = await get_context()
        try:
            sessions = await ctx.session_service.list_completed(limit=limit)
            if not sessions:
                click.echo("No completed sessions.")
                return
            for s in sessions:
                click.echo(
                    f"  {s.session_id} [{s.status.value}] {s.context_id} "
                    f"ended {format_time(s.end_time)}"
                )
        finally:
            await ctx.close()

    _run(_completed())


@session_group.command("cancel")
@click.argument("session_id")
def session_cancel(session_id: str):
    """Request cancellation of an active session."""

    async def _cancel():
        ctx = await get_context()
        try:
            if await ctx.session_service.request_cancellation(session_id):
                click.echo(f"Cancellation requested: {session_id}")
            else:
                click.echo(f"No active session: {session_id}", err=True)
        finally:
            await ctx.close()

    _run(_cancel())


@session_group.command("cancel-all")
@click.confirmation_option(prompt="Cancel every active session?")
def session_cancel_all():
    """Request cancellation of every active session."""

    async def _cancel_all():
        ctx = await get_context()
        try:
            flagged = await ctx.session_service.cancel_all()
            click.echo(f"Cancellation requested for {len(flagged)} session(s).")
        finally:
            await ctx.close()

    _run(_cancel_all())
