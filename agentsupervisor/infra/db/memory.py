"""Memory repository - MongoDB append log per context."""

from __future__ import annotations

import logging
from datetime import datetime

import pymongo

from agentsupervisor.models.memory import MemoryEntry, MemoryKind

logger = logging.getLogger(__name__)


class MemoryRepo:
    """Append/list/trim operations for context memories in MongoDB."""

    COLLECTION = "memories"

    def __init__(self, db) -> None:
        self._col = db[self.COLLECTION]

    async def insert(self, entry: MemoryEntry) -> MemoryEntry:
        """Insert a new memory entry. Returns entry with assigned id."""
        doc = entry.to_doc()
        doc.pop("_id", None)
        result = await self._col.insert_one(doc)
        return MemoryEntry(
            id=str(result.inserted_id),
            context_id=entry.context_id,
            kind=entry.kind,
            data=entry.data,
            relevance_score=entry.relevance_score,
            created_at=entry.created_at,
        )

    async def list_by_context(
        self, context_id: str, kind: MemoryKind | None = None, limit: int = 50
    ) -> list[MemoryEntry]:
        """List memories for a context, newest first."""
        query: dict = {"context_id": context_id}
        if kind:
            query["kind"] = kind.value
        cursor = (
            self._col.find(query)
            .sort("created_at", pymongo.DESCENDING)
            .limit(limit)
        )
        return [MemoryEntry.from_doc(doc) async for doc in cursor]

    async def trim(self, context_id: str, kind: MemoryKind, keep: int) -> int:
        """Delete all but the newest *keep* entries. Returns deleted count."""
        cursor = (
            self._col.find({"context_id": context_id, "kind": kind.value}, {"_id": 1})
            .sort("created_at", pymongo.DESCENDING)
            .skip(keep)
        )
        stale = [doc["_id"] async for doc in cursor]
        if not stale:
            return 0
        result = await self._col.delete_many({"_id": {"$in": stale}})
        return result.deleted_count

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete entries created before *cutoff*."""
        result = await self._col.delete_many({"created_at": {"$lt": cutoff}})
        return result.deleted_count
