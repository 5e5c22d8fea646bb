"""CLI helpers for connecting to the coordination store and database."""

from __future__ import annotations

import asyncio
from datetime import datetime

from pymongo.errors import PyMongoError

from agentsupervisor.context import AppContext


def _run(coro):
    """Run an async function from sync context."""
    return asyncio.run(coro)


async def get_context() -> AppContext:
    """Create and initialize an AppContext. Exits if MongoDB is unreachable."""
    ctx = AppContext()
    try:
        await ctx.initialize()
    except PyMongoError as e:
        raise SystemExit(
            f"Cannot reach MongoDB at {ctx.config.mongodb.uri}: {e}"
        ) from e
    return ctx


def format_time(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M:%S")
