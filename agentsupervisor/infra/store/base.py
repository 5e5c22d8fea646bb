"""Coordination store protocol definition."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CoordinationStore(Protocol):
    """Key/value store shared by every process that touches a run.

    Values are strings (callers serialize JSON themselves). Every method is
    a single atomic operation; ``ttl`` is in seconds and ``None`` means the
    key never expires. Lists pop from the head, so ``list_push`` followed
    by repeated ``list_pop`` yields values oldest first.
    """

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def expire(self, key: str, ttl: int) -> bool:
        ...

    async def set_add(self, key: str, member: str, ttl: int | None = None) -> bool:
        """Add *member*; True only if it was not already present."""
        ...

    async def set_remove(self, key: str, member: str) -> bool:
        ...

    async def set_members(self, key: str) -> set[str]:
        ...

    async def list_push(self, key: str, value: str, ttl: int | None = None) -> int:
        """Append to the tail; returns the new length."""
        ...

    async def list_pop(self, key: str) -> str | None:
        """Remove and return the head, or None when empty."""
        ...

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> list[str]:
        """Read without removing; *stop* is inclusive, -1 means the end."""
        ...
