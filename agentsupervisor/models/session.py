"""Session domain model: the externally visible record of one agent run."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


class Platform(str, Enum):
    SLACK = "slack"
    LINEAR = "linear"
    GITHUB = "github"
    GENERAL = "general"


def to_epoch_ms(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int | float | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class Session:
    """State of one run as seen by every other process.

    Stored as JSON in the coordination store, so timestamps are serialized
    as epoch milliseconds.
    """

    session_id: str
    context_id: str
    platform: Platform = Platform.GENERAL
    status: SessionStatus = SessionStatus.ACTIVE
    phase: str = "planning"
    current_tool: str = ""
    tools_used: tuple[str, ...] = ()
    actions_performed: tuple[str, ...] = ()
    messages: list[dict] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: datetime | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.session_id:
            raise ValueError("Session must have a session_id")

    @property
    def duration(self) -> float | None:
        """Seconds between start and end, once the session has ended."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def with_updates(self, **changes) -> Session:
        """Return a copy with the given fields replaced."""
        if "status" in changes:
            status = SessionStatus(changes["status"])
            if self.status.is_terminal and status != self.status:
                raise ValueError(
                    f"Session {self.session_id} is already {self.status.value}"
                )
            changes["status"] = status
        if "tools_used" in changes:
            changes["tools_used"] = tuple(sorted(set(changes["tools_used"])))
        if "actions_performed" in changes:
            changes["actions_performed"] = tuple(changes["actions_performed"])
        return dataclasses.replace(self, **changes)

    def finished(self, status: SessionStatus, error: str | None = None) -> Session:
        """Return the terminal copy of this session."""
        if not status.is_terminal:
            raise ValueError("finished() requires a terminal status")
        return self.with_updates(
            status=status,
            current_tool="",
            end_time=datetime.now(timezone.utc),
            error=error,
        )

    def to_doc(self) -> dict:
        return {
            "session_id": self.session_id,
            "context_id": self.context_id,
            "platform": self.platform.value,
            "status": self.status.value,
            "phase": self.phase,
            "current_tool": self.current_tool,
            "tools_used": list(self.tools_used),
            "actions_performed": list(self.actions_performed),
            "messages": list(self.messages),
            "metadata": dict(self.metadata),
            "start_time": to_epoch_ms(self.start_time),
            "end_time": to_epoch_ms(self.end_time),
            "duration": self.duration,
            "error": self.error,
        }

    @classmethod
    def from_doc(cls, doc: dict) -> Session:
        return cls(
            session_id=doc["session_id"],
            context_id=doc.get("context_id", ""),
            platform=Platform(doc.get("platform", Platform.GENERAL.value)),
            status=SessionStatus(doc.get("status", SessionStatus.ACTIVE.value)),
            phase=doc.get("phase", "planning"),
            current_tool=doc.get("current_tool") or "",
            tools_used=tuple(doc.get("tools_used", ())),
            actions_performed=tuple(doc.get("actions_performed", ())),
            messages=list(doc.get("messages", [])),
            metadata=dict(doc.get("metadata") or {}),
            start_time=from_epoch_ms(doc.get("start_time")) or datetime.now(timezone.utc),
            end_time=from_epoch_ms(doc.get("end_time")),
            error=doc.get("error"),
        )
