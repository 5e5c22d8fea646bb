"""Run lifecycle: create the session record, supervise, finalize once."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from agentsupervisor.errors import Cancelled
from agentsupervisor.infra.activity.base import ActivityLogger, PlatformSession
from agentsupervisor.models.execution import execution_summary
from agentsupervisor.models.session import Platform, Session, SessionStatus
from agentsupervisor.services.context_extractor import determine_platform
from agentsupervisor.services.finalizer import SessionFinalizer
from agentsupervisor.services.session_service import SessionService, generate_session_id
from agentsupervisor.services.supervisor import RunContext, ToolSupervisor

logger = logging.getLogger(__name__)


class RunService:
    """Caller side of a supervised run.

    Typical use::

        run = await runs.start_run(messages, context_id="ENG-42")
        async with runs.supervise(run):
            tools = run.wrap_all(raw_tools)
            await reasoning_loop(run.messages, tools)
    """

    def __init__(
        self,
        session_service: SessionService,
        supervisor: ToolSupervisor,
        finalizer: SessionFinalizer,
        activity: ActivityLogger | None = None,
        platform_session: PlatformSession | None = None,
    ) -> None:
        self._sessions = session_service
        self._supervisor = supervisor
        self._finalizer = finalizer
        self._activity = activity
        self._platform = platform_session

    async def start_run(
        self,
        messages: list[dict],
        context_id: str = "",
        platform: Platform | None = None,
        session_id: str | None = None,
        metadata: dict | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> RunContext:
        """Store the active session record and return the run's shared state."""
        session_id = session_id or generate_session_id()
        context_id = context_id or "general"
        platform = platform or determine_platform(context_id)

        session = Session(
            session_id=session_id,
            context_id=context_id,
            platform=platform,
            messages=list(messages),
            metadata=dict(metadata or {}),
        )
        await self._sessions.store_active(session)
        logger.info("Started session %s for %s (%s)", session_id, context_id, platform.value)

        run = self._supervisor.new_run(
            session_id,
            context_id,
            messages=list(messages),
            cancel_event=cancel_event,
            activity=self._activity,
            platform_session=self._platform,
        )
        if run.activity is not None:
            try:
                await run.activity.thought(context_id, f"Session initialized for {context_id}")
            except Exception:
                logger.warning("Failed to post activity for %s", context_id, exc_info=True)
        return run

    async def finish(
        self,
        run: RunContext,
        status: SessionStatus,
        error: str | None = None,
    ) -> bool:
        logger.info("Session %s: %s", run.session_id, execution_summary(run.tracker, run.strategy))
        return await self._finalizer.finalize(
            run.session_id,
            run.context_id,
            status,
            error,
            activity=run.activity,
            platform_session=run.platform_session,
        )

    @asynccontextmanager
    async def supervise(self, run: RunContext) -> AsyncIterator[RunContext]:
        """Finalize the run exactly once however the block exits."""
        try:
            yield run
        except Cancelled as e:
            await self.finish(run, SessionStatus.CANCELLED, e.reason)
            raise
        except asyncio.CancelledError:
            await self.finish(run, SessionStatus.CANCELLED, "Request was aborted")
            raise
        except Exception as e:
            await self.finish(run, SessionStatus.ERROR, str(e) or type(e).__name__)
            raise
        else:
            await self.finish(run, SessionStatus.COMPLETED)
