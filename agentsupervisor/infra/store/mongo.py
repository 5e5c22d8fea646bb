"""Coordination store backed by a MongoDB collection.

One document per key::

    {"_id": key, "kind": "value" | "set" | "list",
     "value": str, "members": [str], "items": [str], "expires_at": datetime | None}

A TTL index on ``expires_at`` reaps expired keys eventually; reads treat a
past ``expires_at`` as absent because the TTL monitor only runs once a minute.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from agentsupervisor.errors import CoordinationStoreError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _live_filter(key: str) -> dict:
    return {
        "_id": key,
        "$or": [{"expires_at": None}, {"expires_at": {"$gt": _now()}}],
    }


class MongoCoordinationStore:
    """CoordinationStore over Motor. Each method issues single-document operations."""

    COLLECTION = "coordination"

    def __init__(self, db, collection: str = COLLECTION) -> None:
        self._col = db[collection]

    @staticmethod
    def _deadline(ttl: int | None) -> datetime | None:
        return None if ttl is None else _now() + timedelta(seconds=ttl)

    async def _purge_expired(self, key: str) -> None:
        await self._col.delete_one({"_id": key, "expires_at": {"$lte": _now()}})

    async def _find(self, key: str, kind: str) -> dict | None:
        doc = await self._col.find_one(_live_filter(key))
        if doc is not None and doc.get("kind") != kind:
            raise CoordinationStoreError(f"Key {key} holds a {doc.get('kind')}, not a {kind}")
        return doc

    async def get(self, key: str) -> str | None:
        try:
            doc = await self._find(key, "value")
        except PyMongoError as e:
            raise CoordinationStoreError(f"get {key} failed: {e}") from e
        return doc["value"] if doc else None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            await self._col.replace_one(
                {"_id": key},
                {"_id": key, "kind": "value", "value": value, "expires_at": self._deadline(ttl)},
                upsert=True,
            )
        except PyMongoError as e:
            raise CoordinationStoreError(f"set {key} failed: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            result = await self._col.delete_one(_live_filter(key))
            await self._purge_expired(key)
        except PyMongoError as e:
            raise CoordinationStoreError(f"delete {key} failed: {e}") from e
        return result.deleted_count > 0

    async def expire(self, key: str, ttl: int) -> bool:
        try:
            result = await self._col.update_one(
                _live_filter(key), {"$set": {"expires_at": self._deadline(ttl)}},
            )
        except PyMongoError as e:
            raise CoordinationStoreError(f"expire {key} failed: {e}") from e
        return result.matched_count > 0

    async def set_add(self, key: str, member: str, ttl: int | None = None) -> bool:
        update: dict = {
            "$addToSet": {"members": member},
            "$setOnInsert": {"kind": "set"},
        }
        if ttl is not None:
            update["$set"] = {"expires_at": self._deadline(ttl)}
        else:
            update["$setOnInsert"]["expires_at"] = None
        try:
            await self._purge_expired(key)
            result = await self._col.update_one({"_id": key}, update, upsert=True)
        except PyMongoError as e:
            raise CoordinationStoreError(f"set_add {key} failed: {e}") from e
        return result.upserted_id is not None or result.modified_count > 0

    async def set_remove(self, key: str, member: str) -> bool:
        try:
            result = await self._col.update_one(
                {**_live_filter(key), "members": member},
                {"$pull": {"members": member}},
            )
        except PyMongoError as e:
            raise CoordinationStoreError(f"set_remove {key} failed: {e}") from e
        return result.modified_count > 0

    async def set_members(self, key: str) -> set[str]:
        try:
            doc = await self._find(key, "set")
        except PyMongoError as e:
            raise CoordinationStoreError(f"set_members {key} failed: {e}") from e
        return set(doc.get("members", [])) if doc else set()

    async def list_push(self, key: str, value: str, ttl: int | None = None) -> int:
        update: dict = {
            "$push": {"items": value},
            "$setOnInsert": {"kind": "list"},
        }
        if ttl is not None:
            update["$set"] = {"expires_at": self._deadline(ttl)}
        else:
            update["$setOnInsert"]["expires_at"] = None
        try:
            await self._purge_expired(key)
            doc = await self._col.find_one_and_update(
                {"_id": key},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise CoordinationStoreError(f"list_push {key} failed: {e}") from e
        return len(doc.get("items", []))

    async def list_pop(self, key: str) -> str | None:
        try:
            doc = await self._col.find_one_and_update(
                {**_live_filter(key), "items.0": {"$exists": True}},
                {"$pop": {"items": -1}},
                projection={"items": {"$slice": 1}},
                return_document=ReturnDocument.BEFORE,
            )
        except PyMongoError as e:
            raise CoordinationStoreError(f"list_pop {key} failed: {e}") from e
        if not doc or not doc.get("items"):
            return None
        return doc["items"][0]

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> list[str]:
        try:
            doc = await self._find(key, "list")
        except PyMongoError as e:
            raise CoordinationStoreError(f"list_range {key} failed: {e}") from e
        if not doc:
            return []
        items = doc.get("items", [])
        end = None if stop == -1 else stop + 1
        return items[start:end]
