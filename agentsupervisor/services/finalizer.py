"""Exactly-once transition of a session to its terminal state."""

from __future__ import annotations

import logging

from agentsupervisor.infra.activity.base import ActivityLogger, PlatformSession
from agentsupervisor.models.session import SessionStatus
from agentsupervisor.services.session_service import SessionService

logger = logging.getLogger(__name__)


def terminal_message(status: SessionStatus, error: str | None = None) -> str:
    if status == SessionStatus.COMPLETED:
        return "Session completed successfully"
    if status == SessionStatus.CANCELLED:
        return "Session cancelled by user"
    return f"Session ended with error: {error or 'Unknown error'}"


class SessionFinalizer:
    """Moves a session to completed storage and notifies collaborators.

    Safe to call any number of times per session: a claim in the
    coordination store lets only the first caller through, so the
    cancellation path and the natural completion path can race freely.
    """

    def __init__(
        self,
        session_service: SessionService,
        activity: ActivityLogger | None = None,
        platform_session: PlatformSession | None = None,
    ) -> None:
        self._sessions = session_service
        self._activity = activity
        self._platform = platform_session

    async def finalize(
        self,
        session_id: str,
        context_id: str,
        status: SessionStatus,
        error: str | None = None,
        *,
        activity: ActivityLogger | None = None,
        platform_session: PlatformSession | None = None,
    ) -> bool:
        """Finalize once. Returns True if this call did the transition."""
        if not status.is_terminal:
            raise ValueError(f"Cannot finalize session with status {status.value}")

        try:
            claimed = await self._sessions.claim_finalization(session_id)
        except Exception:
            logger.error("Could not claim finalization of session %s", session_id, exc_info=True)
            return False
        if not claimed:
            logger.debug("Session %s already finalized, skipping", session_id)
            return False

        logger.info("Cleaning up session %s with status: %s", session_id, status.value)
        try:
            await self._sessions.close_session(session_id, context_id, status, error)
        except Exception:
            logger.error("Error storing completed session %s", session_id, exc_info=True)
            try:
                await self._sessions.release_finalization(session_id)
            except Exception:
                logger.error(
                    "Could not release finalization claim of session %s", session_id,
                    exc_info=True,
                )
            return False

        platform = platform_session or self._platform
        if platform is not None:
            try:
                await platform.complete(context_id)
            except Exception:
                logger.error(
                    "Error completing platform session for %s", context_id, exc_info=True,
                )

        narrator = activity or self._activity
        if narrator is not None:
            try:
                await narrator.thought(context_id, terminal_message(status, error))
            except Exception:
                logger.warning("Failed to post final status for %s", context_id, exc_info=True)

        logger.info("Successfully cleaned up session %s", session_id)
        return True
