"""Session records in the coordination store: active, completed, cancelled."""

from __future__ import annotations

import json
import logging
import random
import string
import time

from agentsupervisor.config import SupervisorConfig
from agentsupervisor.infra.store.base import CoordinationStore
from agentsupervisor.models.session import Session, SessionStatus

logger = logging.getLogger(__name__)

ACTIVE_SESSION_KEY = "active_session:{}"
ACTIVE_SESSIONS_SET = "active_sessions_list"
COMPLETED_SESSION_KEY = "completed_session:{}"
COMPLETED_SESSIONS_LIST = "completed_sessions_list"
CANCELLED_FLAG_KEY = "session_cancelled:{}"
FINALIZED_CLAIM_KEY = "session_finalized:{}"


def generate_session_id() -> str:
    """Unique, roughly time-ordered run identifier."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=13))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class SessionService:
    """Business logic for session records shared across processes.

    Updates are read-modify-write and last-writer-wins; the store offers no
    transactions and the records tolerate it.
    """

    def __init__(self, store: CoordinationStore, config: SupervisorConfig | None = None) -> None:
        self._store = store
        self._config = config or SupervisorConfig()

    async def _load(self, key: str) -> Session | None:
        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return Session.from_doc(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable session record %s", key, exc_info=True)
            return None

    # --- Active sessions ---

    async def store_active(self, session: Session) -> Session:
        """Write the active record and index it."""
        await self._store.set(
            ACTIVE_SESSION_KEY.format(session.session_id),
            json.dumps(session.to_doc(), default=str),
            ttl=self._config.session_ttl,
        )
        await self._store.set_add(ACTIVE_SESSIONS_SET, session.session_id)
        logger.debug("Stored active session %s for %s", session.session_id, session.context_id)
        return session

    async def get_active(self, session_id: str) -> Session | None:
        return await self._load(ACTIVE_SESSION_KEY.format(session_id))

    async def update_active(self, session_id: str, **changes) -> Session | None:
        """Apply field changes to an active record. No-op if it is gone."""
        session = await self.get_active(session_id)
        if session is None:
            return None
        updated = session.with_updates(**changes)
        await self._store.set(
            ACTIVE_SESSION_KEY.format(session_id),
            json.dumps(updated.to_doc(), default=str),
            ttl=self._config.session_ttl,
        )
        return updated

    async def list_active(self) -> list[Session]:
        """All active sessions, newest first. Prunes ids whose record expired."""
        sessions = []
        for session_id in await self._store.set_members(ACTIVE_SESSIONS_SET):
            session = await self.get_active(session_id)
            if session is None:
                await self._store.set_remove(ACTIVE_SESSIONS_SET, session_id)
                logger.debug("Removed orphaned session id %s", session_id)
                continue
            sessions.append(session)
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions

    async def active_session_for_context(self, context_id: str) -> str | None:
        """Id of an active session already running for *context_id*, if any."""
        for session in await self.list_active():
            if session.context_id == context_id and session.status == SessionStatus.ACTIVE:
                return session.session_id
        return None

    async def remove_active(self, session_id: str) -> None:
        await self._store.delete(ACTIVE_SESSION_KEY.format(session_id))
        await self._store.set_remove(ACTIVE_SESSIONS_SET, session_id)

    # --- Completed sessions ---

    async def store_completed(self, session: Session) -> Session:
        """Persist a terminal record without expiry."""
        if not session.status.is_terminal:
            raise ValueError(f"Session {session.session_id} is not in a terminal state")
        await self._store.set(
            COMPLETED_SESSION_KEY.format(session.session_id),
            json.dumps(session.to_doc(), default=str),
        )
        await self._store.list_push(COMPLETED_SESSIONS_LIST, session.session_id)
        return session

    async def close_session(
        self,
        session_id: str,
        context_id: str,
        status: SessionStatus,
        error: str | None = None,
    ) -> Session:
        """Move a session from active to completed storage.

        The completed record is written before the active one is deleted,
        so a reader may briefly see both but never neither.
        """
        session = await self.get_active(session_id)
        if session is None:
            completed = await self.get_completed(session_id)
            if completed is not None:
                logger.info("Session %s already completed, keeping its record", session_id)
                return completed
            logger.warning(
                "No active record for session %s, storing a minimal completed record",
                session_id,
            )
            session = Session(session_id=session_id, context_id=context_id)
        finished = session.finished(status, error)
        await self.store_completed(finished)
        await self.remove_active(session_id)
        return finished

    async def get_completed(self, session_id: str) -> Session | None:
        return await self._load(COMPLETED_SESSION_KEY.format(session_id))

    async def list_completed(self, limit: int = 20) -> list[Session]:
        """Most recently completed sessions first."""
        ids = await self._store.list_range(COMPLETED_SESSIONS_LIST, -limit, -1)
        sessions = []
        for session_id in reversed(ids):
            session = await self.get_completed(session_id)
            if session is not None:
                sessions.append(session)
        return sessions

    async def claim_finalization(self, session_id: str) -> bool:
        """True for exactly one caller per session id.

        The claim lives as long as the completed record, which never expires.
        """
        return await self._store.set_add(FINALIZED_CLAIM_KEY.format(session_id), session_id)

    async def release_finalization(self, session_id: str) -> None:
        """Drop the claim so a later finalize can retry the move."""
        await self._store.delete(FINALIZED_CLAIM_KEY.format(session_id))

    # --- Cancellation ---

    async def request_cancellation(self, session_id: str) -> bool:
        """Flag an active session for cancellation at its next tool call."""
        if await self.get_active(session_id) is None:
            return False
        await self._store.set(
            CANCELLED_FLAG_KEY.format(session_id), "true", ttl=self._config.cancel_flag_ttl,
        )
        logger.info("Cancellation requested for session %s", session_id)
        return True

    async def cancel_all(self) -> list[str]:
        """Flag every active session. Returns the flagged ids."""
        flagged = []
        for session in await self.list_active():
            await self._store.set(
                CANCELLED_FLAG_KEY.format(session.session_id),
                "true",
                ttl=self._config.cancel_flag_ttl,
            )
            flagged.append(session.session_id)
        logger.info("Cancellation requested for %d active sessions", len(flagged))
        return flagged

    async def is_cancelled(self, session_id: str) -> bool:
        return bool(await self._store.get(CANCELLED_FLAG_KEY.format(session_id)))
