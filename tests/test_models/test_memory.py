"""Tests for MemoryEntry model."""

from datetime import datetime, timezone

import pytest

from agentsupervisor.models.memory import MemoryEntry, MemoryKind


class TestMemoryEntry:
    def test_create(self):
        entry = MemoryEntry(context_id="ENG-1", kind=MemoryKind.ACTION, data={"tool": "x"})
        assert entry.relevance_score == 1.0
        assert entry.id is None

    def test_empty_context_raises(self):
        with pytest.raises(ValueError, match="must have a context_id"):
            MemoryEntry(context_id="", kind=MemoryKind.ACTION, data={})

    def test_success_flag(self):
        ok = MemoryEntry(context_id="c", kind=MemoryKind.ACTION, data={"success": True})
        failed = MemoryEntry(context_id="c", kind=MemoryKind.ACTION, data={"success": False})
        note = MemoryEntry(context_id="c", kind=MemoryKind.CONTEXT, data={"content": "x"})
        assert ok.success is True
        assert failed.success is False
        assert note.success is None

    def test_to_doc_without_id(self):
        entry = MemoryEntry(context_id="c", kind=MemoryKind.CONVERSATION, data={"content": "hi"})
        doc = entry.to_doc()
        assert "_id" not in doc
        assert doc["kind"] == "conversation"

    def test_from_doc(self):
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = MemoryEntry.from_doc({
            "_id": "abc",
            "context_id": "c",
            "kind": "action",
            "data": {"tool": "t"},
            "relevance_score": 1.5,
            "created_at": created,
        })
        assert entry.id == "abc"
        assert entry.kind == MemoryKind.ACTION
        assert entry.relevance_score == 1.5
        assert entry.created_at == created
