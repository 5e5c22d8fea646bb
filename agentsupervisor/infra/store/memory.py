"""Process-local coordination store with per-key expiry."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from agentsupervisor.errors import CoordinationStoreError

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: str | set[str] | deque[str]
    expires_at: float | None = None


class InMemoryCoordinationStore:
    """Dict-backed CoordinationStore.

    Only shares state inside one process, so it suits tests and
    single-process deployments. No method awaits internally, which makes
    each call atomic with respect to other tasks on the loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._data: dict[str, _Entry] = {}
        self._clock = clock

    def _live(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    def _typed(self, key: str, kind: type) -> _Entry | None:
        entry = self._live(key)
        if entry is not None and not isinstance(entry.value, kind):
            raise CoordinationStoreError(
                f"Key {key} holds a {type(entry.value).__name__}, not a {kind.__name__}"
            )
        return entry

    def _deadline(self, ttl: int | None) -> float | None:
        return None if ttl is None else self._clock() + ttl

    async def get(self, key: str) -> str | None:
        entry = self._typed(key, str)
        return entry.value if entry else None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        self._data[key] = _Entry(value=value, expires_at=self._deadline(ttl))

    async def delete(self, key: str) -> bool:
        return self._live(key) is not None and self._data.pop(key, None) is not None

    async def expire(self, key: str, ttl: int) -> bool:
        entry = self._live(key)
        if entry is None:
            return False
        entry.expires_at = self._deadline(ttl)
        return True

    async def set_add(self, key: str, member: str, ttl: int | None = None) -> bool:
        entry = self._typed(key, set)
        if entry is None:
            entry = self._data[key] = _Entry(value=set())
        if ttl is not None:
            entry.expires_at = self._deadline(ttl)
        if member in entry.value:
            return False
        entry.value.add(member)
        return True

    async def set_remove(self, key: str, member: str) -> bool:
        entry = self._typed(key, set)
        if entry is None or member not in entry.value:
            return False
        entry.value.discard(member)
        return True

    async def set_members(self, key: str) -> set[str]:
        entry = self._typed(key, set)
        return set(entry.value) if entry else set()

    async def list_push(self, key: str, value: str, ttl: int | None = None) -> int:
        entry = self._typed(key, deque)
        if entry is None:
            entry = self._data[key] = _Entry(value=deque())
        entry.value.append(value)
        if ttl is not None:
            entry.expires_at = self._deadline(ttl)
        return len(entry.value)

    async def list_pop(self, key: str) -> str | None:
        entry = self._typed(key, deque)
        if entry is None or not entry.value:
            return None
        value = entry.value.popleft()
        if not entry.value:
            del self._data[key]
        return value

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> list[str]:
        entry = self._typed(key, deque)
        if entry is None:
            return []
        items = list(entry.value)
        end = None if stop == -1 else stop + 1
        return items[start:end]
