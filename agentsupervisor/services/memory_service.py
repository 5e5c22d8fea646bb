"""Memory business logic: durable per-context log of what a run did."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

from agentsupervisor.config import MemoryConfig
from agentsupervisor.infra.db.memory import MemoryRepo
from agentsupervisor.models.memory import MemoryEntry, MemoryKind

logger = logging.getLogger(__name__)

IMPORTANT_KEYWORDS = (
    "error", "bug", "issue", "problem", "fix", "urgent", "critical", "deploy",
    "release", "merge", "review", "approve", "block", "decision", "meeting",
    "deadline", "priority",
)
MAX_RELEVANCE = 3.0


def relevance_score(data: dict, kind: MemoryKind) -> float:
    """Static importance of an entry, computed once at write time."""
    score = 1.0
    if kind == MemoryKind.ACTION:
        score += 0.5

    content = data.get("content")
    if isinstance(content, str):
        text = content.lower()
        score += 0.2 * sum(1 for keyword in IMPORTANT_KEYWORDS if keyword in text)
        if len(text) > 100:
            score += 0.3
        if len(text) > 300:
            score += 0.2

    return min(score, MAX_RELEVANCE)


def context_relevance(entry: MemoryEntry, current_context: str) -> float:
    """Word overlap between an entry's content and the current context."""
    content = entry.data.get("content")
    if not current_context or not content:
        return 0.0
    if not isinstance(content, str):
        content = json.dumps(content, default=str)
    memory_words = set(content.lower().split())
    common = [w for w in current_context.lower().split() if len(w) > 3 and w in memory_words]
    return min(len(common) * 0.1, 1.0)


def _json_safe(value):
    """Tool inputs/outputs can be anything; store what JSON can express."""
    return json.loads(json.dumps(value, default=str))


class MemoryService:
    """Appends entries and retrieves the most relevant ones."""

    def __init__(self, memory_repo: MemoryRepo, config: MemoryConfig | None = None) -> None:
        self._repo = memory_repo
        self._config = config or MemoryConfig()

    async def record(self, context_id: str, kind: MemoryKind | str, payload: dict) -> MemoryEntry:
        """Append one entry and trim the context's log to its cap."""
        kind = MemoryKind(kind)
        data = _json_safe(payload)
        entry = MemoryEntry(
            context_id=context_id,
            kind=kind,
            data=data,
            relevance_score=relevance_score(data, kind),
        )
        stored = await self._repo.insert(entry)
        removed = await self._repo.trim(context_id, kind, self._config.max_entries_per_context)
        logger.debug(
            "Stored %s memory for %s (trimmed %d)", kind.value, context_id, removed,
        )
        return stored

    async def retrieve_relevant(
        self,
        context_id: str,
        kind: MemoryKind,
        current_context: str = "",
        limit: int | None = None,
    ) -> list[MemoryEntry]:
        """Entries ranked by relevance, context overlap and recency."""
        entries = await self._repo.list_by_context(
            context_id, kind, limit=self._config.max_entries_per_context,
        )
        now = datetime.now(timezone.utc)

        def rank(entry: MemoryEntry) -> float:
            created = entry.created_at
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            age_days = (now - created).total_seconds() / 86400
            return (
                entry.relevance_score
                + context_relevance(entry, current_context)
                - 0.1 * age_days
            )

        entries.sort(key=rank, reverse=True)
        return entries[: limit or self._config.max_entries_to_include]

    async def list_memories(
        self, context_id: str, kind: MemoryKind | None = None, limit: int = 50
    ) -> list[MemoryEntry]:
        """Newest first."""
        return await self._repo.list_by_context(context_id, kind, limit=limit)

    async def prune_expired(self) -> int:
        """Drop entries past the retention window."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=self._config.expiry_days)
        removed = await self._repo.delete_older_than(cutoff)
        if removed:
            logger.info("Pruned %d expired memories", removed)
        return removed
