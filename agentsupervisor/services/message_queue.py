"""Interjection queue: messages for a running session from other processes."""

from __future__ import annotations

import json
import logging

from agentsupervisor.infra.store.base import CoordinationStore
from agentsupervisor.models.message import MessageType, QueuedMessage

logger = logging.getLogger(__name__)

MESSAGE_QUEUE_KEY = "message_queue:{}"


class MessageQueue:
    """FIFO queue per session over the coordination store."""

    def __init__(self, store: CoordinationStore, ttl: int = 3600) -> None:
        self._store = store
        self._ttl = ttl

    async def queue_message(self, session_id: str, message: QueuedMessage) -> int:
        """Append a message for *session_id*. Returns the queue length."""
        length = await self._store.list_push(
            MESSAGE_QUEUE_KEY.format(session_id),
            json.dumps(message.to_doc(), default=str),
            ttl=self._ttl,
        )
        logger.info("Queued %s message for session %s", message.type.value, session_id)
        return length

    async def queue_stop(self, session_id: str, content: str = "stop") -> int:
        return await self.queue_message(
            session_id,
            QueuedMessage(content=content, type=MessageType.STOP, session_id=session_id),
        )

    async def drain(self, session_id: str) -> list[QueuedMessage]:
        """Pop every queued message, oldest first.

        Each pop is atomic, so two drains never see the same message. A store
        error after the first message returns the messages popped so far.
        """
        key = MESSAGE_QUEUE_KEY.format(session_id)
        messages = []
        while True:
            try:
                raw = await self._store.list_pop(key)
            except Exception:
                if not messages:
                    raise
                # Popped messages are gone from the store, so they go back to the caller
                logger.warning(
                    "Queue read for %s failed after %d messages", session_id, len(messages),
                    exc_info=True,
                )
                break
            if raw is None:
                break
            try:
                messages.append(QueuedMessage.from_doc(json.loads(raw)))
            except (ValueError, TypeError, AttributeError):
                logger.warning("Skipping malformed queued message for %s: %r", session_id, raw[:200])
        if messages:
            logger.info("Drained %d queued messages for session %s", len(messages), session_id)
        return messages
