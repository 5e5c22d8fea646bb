"""Protocols for user-visible narration and platform session objects."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ActivityLogger(Protocol):
    """Posts progress narration to the conversation or issue a run belongs to."""

    async def thought(self, context_id: str, text: str) -> None:
        """Intermediate narration (tool starts, results, phase changes)."""
        ...

    async def response(self, context_id: str, text: str) -> None:
        """A message addressed to the user."""
        ...


@runtime_checkable
class PlatformSession(Protocol):
    """A platform's own notion of an agent session (e.g. an issue tracker's)."""

    async def complete(self, context_id: str) -> None:
        ...
