"""Tests for the in-memory coordination store."""

import pytest

from agentsupervisor.errors import CoordinationStoreError
from agentsupervisor.infra.store.base import CoordinationStore
from agentsupervisor.infra.store.memory import InMemoryCoordinationStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryCoordinationStore(clock=clock)


class TestInMemoryCoordinationStore:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, CoordinationStore)

    @pytest.mark.asyncio
    async def test_get_set_delete(self, store):
        assert await store.get("k") is None
        await store.set("k", "v")
        assert await store.get("k") == "v"
        assert await store.delete("k") is True
        assert await store.delete("k") is False
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, store, clock):
        await store.set("flag", "true", ttl=300)
        clock.now += 299
        assert await store.get("flag") == "true"
        clock.now += 1
        assert await store.get("flag") is None

    @pytest.mark.asyncio
    async def test_expire_refreshes_deadline(self, store, clock):
        await store.set("k", "v", ttl=10)
        clock.now += 5
        assert await store.expire("k", 10) is True
        clock.now += 8
        assert await store.get("k") == "v"
        assert await store.expire("missing", 10) is False

    @pytest.mark.asyncio
    async def test_set_operations(self, store):
        assert await store.set_add("s", "a") is True
        assert await store.set_add("s", "a") is False
        assert await store.set_add("s", "b") is True
        assert await store.set_members("s") == {"a", "b"}
        assert await store.set_remove("s", "a") is True
        assert await store.set_remove("s", "a") is False
        assert await store.set_members("s") == {"b"}
        assert await store.set_members("missing") == set()

    @pytest.mark.asyncio
    async def test_set_add_after_expiry_is_new(self, store, clock):
        assert await store.set_add("claim", "x", ttl=60) is True
        assert await store.set_add("claim", "x", ttl=60) is False
        clock.now += 61
        assert await store.set_add("claim", "x", ttl=60) is True

    @pytest.mark.asyncio
    async def test_list_is_fifo(self, store):
        assert await store.list_push("q", "1") == 1
        assert await store.list_push("q", "2") == 2
        assert await store.list_push("q", "3") == 3
        assert await store.list_range("q") == ["1", "2", "3"]
        assert await store.list_pop("q") == "1"
        assert await store.list_pop("q") == "2"
        assert await store.list_pop("q") == "3"
        assert await store.list_pop("q") is None

    @pytest.mark.asyncio
    async def test_empty_list_removes_key(self, store):
        await store.list_push("q", "1")
        await store.list_pop("q")
        # The key is gone, so it can be reused as another type
        await store.set("q", "scalar")
        assert await store.get("q") == "scalar"

    @pytest.mark.asyncio
    async def test_list_range_slices(self, store):
        for i in range(5):
            await store.list_push("l", str(i))
        assert await store.list_range("l", 1, 2) == ["1", "2"]
        assert await store.list_range("l", -2, -1) == ["3", "4"]
        assert await store.list_range("l", -20, -1) == ["0", "1", "2", "3", "4"]
        assert await store.list_range("missing") == []

    @pytest.mark.asyncio
    async def test_list_ttl_applies_to_whole_queue(self, store, clock):
        await store.list_push("q", "1", ttl=3600)
        clock.now += 3601
        assert await store.list_pop("q") is None

    @pytest.mark.asyncio
    async def test_type_mismatch_raises(self, store):
        await store.set("k", "v")
        with pytest.raises(CoordinationStoreError):
            await store.list_push("k", "x")
        with pytest.raises(CoordinationStoreError):
            await store.set_members("k")
