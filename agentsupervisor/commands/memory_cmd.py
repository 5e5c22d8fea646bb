"""CLI handlers for memory commands."""

from __future__ import annotations

import json

import click

from agentsupervisor.commands._helpers import _run, format_time, get_context
from agentsupervisor.models.memory import MemoryKind


@click.group("memory")
def memory_group():
    """Browse recorded run memories."""
    pass


@memory_group.command("list")
@click.argument("context_id")
@click.option(
    "--kind", "-k", type=click.Choice([k.value for k in MemoryKind]), default=None,
    help="Only entries of this kind",
)
@click.option("--limit", "-l", default=20, help="Max entries")
def memory_list(context_id: str, kind: str | None, limit: int):
    """List memories for a context, newest first."""

    async def _list():
        ctx = await get_context()
        try:
            entries = await ctx.memory_service.list_memories(
                context_id, MemoryKind(kind) if kind else None, limit=limit,
            )
            if not entries:
                click.echo(f"No memories for {context_id}.")
                return
            for e in entries:
                tool = e.data.get("tool", "")
                if e.success is None:
                    outcome = ""
                else:
                    outcome = " ok" if e.success else " failed"
                summary = json.dumps(e.data.get("input", e.data), default=str)[:80]
                click.echo(
                    f"  {format_time(e.created_at)} [{e.kind.value}] "
                    f"{tool}{outcome} {summary} (score={e.relevance_score:.1f})"
                )
        finally:
            await ctx.close()

    _run(_list())


@memory_group.command("prune")
def memory_prune():
    """Delete memories past the retention window."""

    async def _prune():
        ctx = await get_context()
        try:
            removed = await ctx.memory_service.prune_expired()
            click.echo(f"Pruned {removed} expired memories.")
        finally:
            await ctx.close()

    _run(_prune())
