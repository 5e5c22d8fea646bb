"""Tool invocation supervisor.

Every tool a run calls goes through :meth:`ToolSupervisor.wrap`. The wrapper
applies the same policy to every call, in this order:

1. local cancellation (process-local event)
2. external cancellation (flag in the coordination store)
3. circuit breaker on repeated identical calls
4. interjection drain (queued messages, stop commands)
5. phase/strategy update
6. narration of the call
7. execution, then memory recording and narration of the outcome

The tool's own exceptions are re-raised unchanged. ``Cancelled`` and
``LoopDetected`` are raised before the tool runs.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from agentsupervisor.config import SupervisorConfig
from agentsupervisor.errors import Cancelled, LoopDetected
from agentsupervisor.infra.activity.base import ActivityLogger, PlatformSession
from agentsupervisor.models.execution import (
    ExecutionPhase,
    ExecutionStrategy,
    ExecutionTracker,
    ToolCategory,
)
from agentsupervisor.models.memory import MemoryKind
from agentsupervisor.models.session import SessionStatus
from agentsupervisor.services.finalizer import SessionFinalizer
from agentsupervisor.services.memory_service import MemoryService
from agentsupervisor.services.message_queue import MessageQueue
from agentsupervisor.services.session_service import SessionService
from agentsupervisor.services.tool_catalog import ToolCatalog
from agentsupervisor.services.tool_reporting import (
    call_signature,
    classify_failure,
    describe_tool_call,
    summarize_success,
)

logger = logging.getLogger(__name__)

# Executors are called as executor(args, update_status=None) and may be async
ToolExecutor = Callable[..., Any]

STOP_ANNOUNCEMENT = (
    "**Immediately stopping all operations** as requested. Processing has been terminated."
)


def _best_effort(describe: Callable[..., str], *args: Any, fallback: str) -> str:
    """Narration text never fails a call; tool results can be arbitrary objects."""
    try:
        return describe(*args)
    except Exception:
        logger.warning("Could not describe %s call", args[0], exc_info=True)
        return fallback


@dataclass
class RunContext:
    """Shared state of one run, passed to every wrapped tool."""

    session_id: str
    context_id: str
    messages: list[dict] = field(default_factory=list)
    tracker: ExecutionTracker = field(default_factory=ExecutionTracker)
    strategy: ExecutionStrategy = field(default_factory=ExecutionStrategy)
    cancel_event: asyncio.Event | None = None
    activity: ActivityLogger | None = None
    platform_session: PlatformSession | None = None
    cancelled: bool = False
    supervisor: ToolSupervisor | None = field(default=None, repr=False)

    @property
    def cancel_requested(self) -> bool:
        return self.cancelled or (self.cancel_event is not None and self.cancel_event.is_set())

    def wrap(self, tool_name: str, executor: ToolExecutor) -> ToolExecutor:
        if self.supervisor is None:
            raise RuntimeError(f"Run {self.session_id} has no supervisor attached")
        return self.supervisor.wrap(tool_name, executor, self)

    def wrap_all(self, tools: Mapping[str, ToolExecutor]) -> dict[str, ToolExecutor]:
        return {name: self.wrap(name, executor) for name, executor in tools.items()}


class ToolSupervisor:
    """Wraps tool executors with cancellation, loop detection and recording."""

    def __init__(
        self,
        session_service: SessionService,
        message_queue: MessageQueue,
        finalizer: SessionFinalizer,
        memory: MemoryService | None = None,
        catalog: ToolCatalog | None = None,
        config: SupervisorConfig | None = None,
    ) -> None:
        self._sessions = session_service
        self._queue = message_queue
        self._finalizer = finalizer
        self._memory = memory
        self._catalog = catalog or ToolCatalog()
        self._config = config or SupervisorConfig()

    def new_run(
        self,
        session_id: str,
        context_id: str,
        messages: list[dict] | None = None,
        cancel_event: asyncio.Event | None = None,
        activity: ActivityLogger | None = None,
        platform_session: PlatformSession | None = None,
    ) -> RunContext:
        """RunContext whose tracker and strategy use the configured bounds."""
        return RunContext(
            session_id=session_id,
            context_id=context_id,
            messages=messages if messages is not None else [],
            tracker=ExecutionTracker(max_recent_calls=self._config.loop_window),
            strategy=ExecutionStrategy(gathering_threshold=self._config.gathering_threshold),
            cancel_event=cancel_event,
            activity=activity,
            platform_session=platform_session,
            supervisor=self,
        )

    # --- Wrapping ---

    def wrap(self, tool_name: str, executor: ToolExecutor, run: RunContext) -> ToolExecutor:
        """Return a drop-in replacement for *executor* that enforces run policy."""
        category = self._catalog.category_for(tool_name)

        @functools.wraps(executor)
        async def supervised(*args, **kwargs):
            params = args[0] if args else None

            await self._check_local_cancellation(run)
            await self._check_external_cancellation(run)
            await self._check_loop(run, tool_name, call_signature(tool_name, params))
            await self._drain_interjections(run)
            await self._update_strategy(run, tool_name, category)
            description = _best_effort(
                describe_tool_call, tool_name, params, fallback=f"**Tool:** {tool_name}",
            )
            await self._narrate(run, description)

            try:
                result = executor(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                await self._on_failure(run, tool_name, params, e)
                raise

            await self._on_success(run, tool_name, category, params, result)
            return result

        return supervised

    def wrap_all(self, tools: Mapping[str, ToolExecutor], run: RunContext) -> dict[str, ToolExecutor]:
        return {name: self.wrap(name, executor, run) for name, executor in tools.items()}

    # --- Checks ---

    async def _cancel(self, run: RunContext, reason: str) -> None:
        """Finalize as cancelled and abort the current call."""
        run.cancelled = True
        await self._finalizer.finalize(
            run.session_id,
            run.context_id,
            SessionStatus.CANCELLED,
            reason,
            activity=run.activity,
            platform_session=run.platform_session,
        )
        raise Cancelled(reason)

    async def _check_local_cancellation(self, run: RunContext) -> None:
        if run.cancel_requested:
            await self._cancel(run, "Request was aborted during tool execution")

    async def _check_external_cancellation(self, run: RunContext) -> None:
        try:
            flagged = await self._sessions.is_cancelled(run.session_id)
        except Exception:
            logger.warning(
                "Error checking cancellation status for %s", run.session_id, exc_info=True,
            )
            return
        if flagged:
            logger.info("Session %s was cancelled externally", run.session_id)
            await self._cancel(run, "Request was cancelled by user")

    async def _check_loop(self, run: RunContext, tool_name: str, signature: str) -> None:
        previous = run.tracker.count_recent(signature)
        run.tracker.record_call(signature)
        if previous < self._config.loop_threshold:
            return
        error = LoopDetected(tool_name, signature, previous + 1)
        logger.warning("Session %s: %s", run.session_id, error)
        await self._narrate(run, str(error))
        raise error

    async def _drain_interjections(self, run: RunContext) -> None:
        try:
            queued = await self._queue.drain(run.session_id)
        except Exception:
            logger.warning(
                "Error checking for queued messages for %s", run.session_id, exc_info=True,
            )
            return
        if not queued:
            return

        await self._narrate(
            run, f"Processing {len(queued)} new message(s) received during analysis",
        )

        if any(message.is_stop for message in queued):
            logger.info("Stop command found in queued messages for session %s", run.session_id)
            await self._respond(run, STOP_ANNOUNCEMENT)
            await self._cancel(run, "Stop command received")

        for message in queued:
            run.messages.append(message.as_transcript_turn())
        try:
            await self._sessions.update_active(run.session_id, messages=list(run.messages))
        except Exception:
            logger.warning(
                "Failed to persist interjections for %s", run.session_id, exc_info=True,
            )
        logger.info(
            "Added %d interjection messages to session %s", len(queued), run.session_id,
        )

    async def _update_strategy(
        self, run: RunContext, tool_name: str, category: ToolCategory
    ) -> None:
        strategy = run.strategy
        transition = strategy.record(tool_name, category)

        if transition == ExecutionPhase.ACTING:
            await self._narrate(run, f"Starting to take some action with {tool_name}")
        elif transition == ExecutionPhase.GATHERING:
            await self._narrate(
                run,
                "Moving from planning to information gathering. "
                f"Completed {strategy.investigation_operations} operations.",
            )

        try:
            await self._sessions.update_active(
                run.session_id,
                current_tool=tool_name,
                tools_used=run.tracker.tools_used | {tool_name},
                phase=strategy.phase.value,
            )
        except Exception:
            logger.warning("Failed to update session %s", run.session_id, exc_info=True)

    # --- Outcomes ---

    async def _on_success(
        self,
        run: RunContext,
        tool_name: str,
        category: ToolCategory,
        params: Any,
        result: Any,
    ) -> None:
        run.tracker.tools_used.add(tool_name)
        summary = _best_effort(
            summarize_success, tool_name, category, result, params, fallback="Completed successfully",
        )
        await self._narrate(run, f"{tool_name}: {summary}")

        if category == ToolCategory.ACTION:
            run.tracker.actions_performed.append(f"{tool_name}: {summary}")
            try:
                await self._sessions.update_active(
                    run.session_id, actions_performed=list(run.tracker.actions_performed),
                )
            except Exception:
                logger.warning("Failed to update session %s", run.session_id, exc_info=True)

        await self._remember(run, {
            "tool": tool_name,
            "input": params if params is not None else {},
            "success": True,
            "output": result,
            "timestamp": int(time.time() * 1000),
        })

    async def _on_failure(
        self, run: RunContext, tool_name: str, params: Any, error: Exception
    ) -> None:
        message = str(error)
        report = classify_failure(message, params)
        logger.info("Tool %s failed (%s) in session %s", tool_name, report.kind, run.session_id)
        await self._narrate(
            run, f"{tool_name}: {report.summary}\n**Suggestion**: {report.hint}",
        )
        await self._remember(run, {
            "tool": tool_name,
            "input": params if params is not None else {},
            "success": False,
            "error": message,
            "timestamp": int(time.time() * 1000),
        })

    async def _remember(self, run: RunContext, payload: dict) -> None:
        if self._memory is None:
            return
        try:
            await self._memory.record(run.context_id, MemoryKind.ACTION, payload)
        except Exception:
            logger.error(
                "Error storing tool execution in memory for %s", run.context_id, exc_info=True,
            )

    # --- Narration (best-effort) ---

    async def _narrate(self, run: RunContext, text: str) -> None:
        if run.activity is None:
            return
        try:
            await run.activity.thought(run.context_id, text)
        except Exception:
            logger.warning("Failed to post activity for %s", run.context_id, exc_info=True)

    async def _respond(self, run: RunContext, text: str) -> None:
        if run.activity is None:
            return
        try:
            await run.activity.response(run.context_id, text)
        except Exception:
            logger.warning("Failed to post response for %s", run.context_id, exc_info=True)
