"""Memory domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MemoryKind(str, Enum):
    CONVERSATION = "conversation"
    ACTION = "action"
    CONTEXT = "context"


@dataclass(frozen=True)
class MemoryEntry:
    """One durable record appended to a context's memory log."""

    context_id: str
    kind: MemoryKind
    data: dict
    relevance_score: float = 1.0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str | None = None

    def __post_init__(self) -> None:
        if not self.context_id:
            raise ValueError("MemoryEntry must have a context_id")

    @property
    def success(self) -> bool | None:
        """Outcome flag for ``action`` entries, None for other kinds."""
        return self.data.get("success")

    def to_doc(self) -> dict:
        doc: dict = {
            "context_id": self.context_id,
            "kind": self.kind.value,
            "data": self.data,
            "relevance_score": self.relevance_score,
            "created_at": self.created_at,
        }
        if self.id:
            doc["_id"] = self.id
        return doc

    @classmethod
    def from_doc(cls, doc: dict) -> MemoryEntry:
        return cls(
            id=str(doc["_id"]),
            context_id=doc["context_id"],
            kind=MemoryKind(doc["kind"]),
            data=doc.get("data") or {},
            relevance_score=doc.get("relevance_score", 1.0),
            created_at=doc.get("created_at", datetime.now(timezone.utc)),
        )
