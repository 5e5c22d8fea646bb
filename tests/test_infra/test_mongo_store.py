"""Tests for MongoCoordinationStore with a mocked collection."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import PyMongoError

from agentsupervisor.errors import CoordinationStoreError
from agentsupervisor.infra.store.mongo import MongoCoordinationStore


@pytest.fixture
def collection():
    return AsyncMock()


@pytest.fixture
def store(collection):
    return MongoCoordinationStore({"coordination": collection})


class TestMongoCoordinationStore:
    @pytest.mark.asyncio
    async def test_get_reads_live_document(self, store, collection):
        collection.find_one.return_value = {"_id": "k", "kind": "value", "value": "v"}
        assert await store.get("k") == "v"
        query = collection.find_one.call_args.args[0]
        assert query["_id"] == "k"
        assert "$or" in query

    @pytest.mark.asyncio
    async def test_get_missing(self, store, collection):
        collection.find_one.return_value = None
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_get_wrong_kind_raises(self, store, collection):
        collection.find_one.return_value = {"_id": "k", "kind": "list", "items": []}
        with pytest.raises(CoordinationStoreError):
            await store.get("k")

    @pytest.mark.asyncio
    async def test_set_upserts_with_deadline(self, store, collection):
        await store.set("k", "v", ttl=60)
        args, kwargs = collection.replace_one.call_args
        assert args[0] == {"_id": "k"}
        assert args[1]["value"] == "v"
        assert args[1]["expires_at"] is not None
        assert kwargs["upsert"] is True

    @pytest.mark.asyncio
    async def test_set_without_ttl_never_expires(self, store, collection):
        await store.set("k", "v")
        assert collection.replace_one.call_args.args[1]["expires_at"] is None

    @pytest.mark.asyncio
    async def test_set_add_reports_new_member(self, store, collection):
        collection.update_one.return_value = SimpleNamespace(upserted_id="k", modified_count=0)
        assert await store.set_add("s", "a") is True
        collection.update_one.return_value = SimpleNamespace(upserted_id=None, modified_count=0)
        assert await store.set_add("s", "a") is False

    @pytest.mark.asyncio
    async def test_list_push_returns_length(self, store, collection):
        collection.find_one_and_update.return_value = {"_id": "q", "items": ["a", "b"]}
        assert await store.list_push("q", "b", ttl=3600) == 2
        update = collection.find_one_and_update.call_args.args[1]
        assert update["$push"] == {"items": "b"}
        assert "expires_at" in update["$set"]

    @pytest.mark.asyncio
    async def test_list_pop_returns_head(self, store, collection):
        collection.find_one_and_update.return_value = {"_id": "q", "items": ["first"]}
        assert await store.list_pop("q") == "first"
        update = collection.find_one_and_update.call_args.args[1]
        assert update == {"$pop": {"items": -1}}

    @pytest.mark.asyncio
    async def test_list_pop_empty(self, store, collection):
        collection.find_one_and_update.return_value = None
        assert await store.list_pop("q") is None

    @pytest.mark.asyncio
    async def test_driver_errors_are_wrapped(self, store, collection):
        collection.find_one.side_effect = PyMongoError("connection refused")
        with pytest.raises(CoordinationStoreError, match="connection refused"):
            await store.get("k")
