"""Queued interjection messages addressed to a running session."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from agentsupervisor.models.session import from_epoch_ms


class MessageType(str, Enum):
    CREATED = "created"
    PROMPTED = "prompted"
    STOP = "stop"

    @classmethod
    def _missing_(cls, value):
        # Producers send other labels ("content", ...); anything but stop is content
        return cls.PROMPTED


@dataclass(frozen=True)
class QueuedMessage:
    """A message injected into a session from outside its own call stack.

    ``timestamp`` is epoch milliseconds, as written by the producing process.
    """

    content: str
    type: MessageType = MessageType.PROMPTED
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))
    session_id: str = ""
    issue_id: str = ""
    user_id: str = ""
    metadata: dict | None = None

    @property
    def is_stop(self) -> bool:
        return self.type == MessageType.STOP

    @property
    def sent_at(self) -> datetime:
        return from_epoch_ms(self.timestamp)

    def as_transcript_turn(self) -> dict:
        """User turn tagged with the original send time."""
        stamp = self.sent_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return {"role": "user", "content": f"[INTERJECTION {stamp}] {self.content}"}

    def to_doc(self) -> dict:
        doc: dict = {
            "timestamp": self.timestamp,
            "type": self.type.value,
            "content": self.content,
            "sessionId": self.session_id,
            "issueId": self.issue_id,
        }
        if self.user_id:
            doc["userId"] = self.user_id
        if self.metadata:
            doc["metadata"] = self.metadata
        return doc

    @classmethod
    def from_doc(cls, doc: dict) -> QueuedMessage:
        return cls(
            content=doc.get("content", ""),
            type=MessageType(doc.get("type", MessageType.PROMPTED.value)),
            timestamp=int(doc.get("timestamp", 0)),
            session_id=doc.get("sessionId", ""),
            issue_id=doc.get("issueId", ""),
            user_id=doc.get("userId", ""),
            metadata=doc.get("metadata"),
        )
