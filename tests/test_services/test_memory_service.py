"""Tests for MemoryService with a mocked repository."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from agentsupervisor.config import MemoryConfig
from agentsupervisor.models.memory import MemoryEntry, MemoryKind
from agentsupervisor.services.memory_service import (
    MemoryService,
    context_relevance,
    relevance_score,
)


@pytest.fixture
def mock_repo():
    repo = AsyncMock()
    repo.insert.side_effect = lambda entry: entry
    repo.trim.return_value = 0
    return repo


@pytest.fixture
def service(mock_repo):
    return MemoryService(mock_repo, MemoryConfig(max_entries_per_context=50, max_entries_to_include=2))


def _entry(score=1.0, days_old=0, content=None):
    data = {"content": content} if content else {}
    return MemoryEntry(
        context_id="ENG-1",
        kind=MemoryKind.ACTION,
        data=data,
        relevance_score=score,
        created_at=datetime.now(timezone.utc) - timedelta(days=days_old),
    )


class TestRelevance:
    def test_base_scores(self):
        assert relevance_score({}, MemoryKind.CONVERSATION) == 1.0
        assert relevance_score({}, MemoryKind.ACTION) == 1.5

    def test_keywords_and_length(self):
        assert relevance_score({"content": "urgent bug"}, MemoryKind.CONVERSATION) == pytest.approx(1.4)
        long_text = "x" * 150
        assert relevance_score({"content": long_text}, MemoryKind.CONVERSATION) == pytest.approx(1.3)
        longer = "x" * 350
        assert relevance_score({"content": longer}, MemoryKind.CONVERSATION) == pytest.approx(1.5)

    def test_capped(self):
        text = " ".join(["error bug issue problem fix urgent critical deploy"] * 10)
        assert relevance_score({"content": text}, MemoryKind.ACTION) == 3.0

    def test_context_overlap(self):
        entry = _entry(content="the deploy pipeline failed on staging")
        assert context_relevance(entry, "why did staging deploy fail") == pytest.approx(0.2)
        assert context_relevance(entry, "") == 0.0
        assert context_relevance(_entry(), "deploy") == 0.0


class TestMemoryService:
    @pytest.mark.asyncio
    async def test_record_inserts_and_trims(self, service, mock_repo):
        entry = await service.record("ENG-1", MemoryKind.ACTION, {"tool": "createFile", "success": True})
        assert entry.kind == MemoryKind.ACTION
        assert entry.relevance_score == 1.5
        assert entry.data == {"tool": "createFile", "success": True}
        mock_repo.insert.assert_called_once()
        mock_repo.trim.assert_called_once_with("ENG-1", MemoryKind.ACTION, 50)

    @pytest.mark.asyncio
    async def test_record_accepts_kind_value(self, service):
        entry = await service.record("ENG-1", "conversation", {"content": "hi"})
        assert entry.kind == MemoryKind.CONVERSATION

    @pytest.mark.asyncio
    async def test_record_normalizes_payload(self, service):
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = await service.record("ENG-1", MemoryKind.ACTION, {"output": {"at": when, "ids": (1, 2)}})
        assert entry.data == {"output": {"at": str(when), "ids": [1, 2]}}

    @pytest.mark.asyncio
    async def test_retrieve_relevant_ranks_and_limits(self, service, mock_repo):
        fresh = _entry(score=1.0)
        stale = _entry(score=2.0, days_old=20)
        matching = _entry(score=1.0, content="staging deploy failed")
        mock_repo.list_by_context.return_value = [stale, fresh, matching]
        results = await service.retrieve_relevant("ENG-1", MemoryKind.ACTION, "staging deploy")
        assert results == [matching, fresh]
        mock_repo.list_by_context.assert_called_once_with("ENG-1", MemoryKind.ACTION, limit=50)

    @pytest.mark.asyncio
    async def test_list_memories(self, service, mock_repo):
        mock_repo.list_by_context.return_value = []
        await service.list_memories("ENG-1", limit=5)
        mock_repo.list_by_context.assert_called_once_with("ENG-1", None, limit=5)

    @pytest.mark.asyncio
    async def test_prune_expired(self, service, mock_repo):
        mock_repo.delete_older_than.return_value = 3
        assert await service.prune_expired() == 3
        cutoff = mock_repo.delete_older_than.call_args.args[0]
        expected = datetime.now(timezone.utc) - timedelta(days=90)
        assert abs((cutoff - expected).total_seconds()) < 5
