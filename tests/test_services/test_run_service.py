"""Tests for the run lifecycle around supervised tool calls."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from agentsupervisor.errors import Cancelled, LoopDetected
from agentsupervisor.infra.store.memory import InMemoryCoordinationStore
from agentsupervisor.models.session import Platform, SessionStatus
from agentsupervisor.services.finalizer import SessionFinalizer
from agentsupervisor.services.message_queue import MessageQueue
from agentsupervisor.services.run_service import RunService
from agentsupervisor.services.session_service import SessionService
from agentsupervisor.services.supervisor import ToolSupervisor


@pytest.fixture
def store():
    return InMemoryCoordinationStore()


@pytest.fixture
def sessions(store):
    return SessionService(store)


@pytest.fixture
def activity():
    return AsyncMock()


@pytest.fixture
def runs(store, sessions, activity):
    queue = MessageQueue(store)
    finalizer = SessionFinalizer(sessions)
    supervisor = ToolSupervisor(sessions, queue, finalizer, memory=AsyncMock())
    return RunService(sessions, supervisor, finalizer, activity=activity)


def _thoughts(activity):
    return [c.args[1] for c in activity.thought.call_args_list]


class TestStartRun:
    @pytest.mark.asyncio
    async def test_stores_active_session(self, runs, sessions, activity):
        messages = [{"role": "user", "content": "Fix ENG-7"}]
        run = await runs.start_run(messages, context_id="ENG-7", metadata={"issueId": "ENG-7"})
        session = await sessions.get_active(run.session_id)
        assert session.status == SessionStatus.ACTIVE
        assert session.phase == "planning"
        assert session.platform == Platform.LINEAR
        assert session.messages == messages
        assert session.metadata == {"issueId": "ENG-7"}
        assert run.messages == messages
        assert run.messages is not messages
        assert "Session initialized for ENG-7" in _thoughts(activity)

    @pytest.mark.asyncio
    async def test_explicit_ids(self, runs):
        run = await runs.start_run([], context_id="slack:C1", session_id="agent-session-9",
                                   platform=Platform.SLACK)
        assert run.session_id == "agent-session-9"
        assert run.context_id == "slack:C1"

    @pytest.mark.asyncio
    async def test_default_context(self, runs, sessions):
        run = await runs.start_run([])
        session = await sessions.get_active(run.session_id)
        assert session.context_id == "general"
        assert session.platform == Platform.GENERAL


class TestSupervise:
    @pytest.mark.asyncio
    async def test_normal_exit_completes(self, runs, sessions, activity):
        run = await runs.start_run([], context_id="ENG-1")
        async with runs.supervise(run):
            tools = run.wrap_all({"searchLinearIssues": AsyncMock(return_value=[])})
            await tools["searchLinearIssues"]({"query": "x"})
        completed = await sessions.get_completed(run.session_id)
        assert completed.status == SessionStatus.COMPLETED
        assert completed.tools_used == ("searchLinearIssues",)
        assert await sessions.get_active(run.session_id) is None
        assert _thoughts(activity)[-1] == "Session completed successfully"

    @pytest.mark.asyncio
    async def test_tool_error_finalizes_error(self, runs, sessions):
        run = await runs.start_run([], context_id="ENG-1")
        with pytest.raises(RuntimeError, match="disk full"):
            async with runs.supervise(run):
                tool = run.wrap("createFile", AsyncMock(side_effect=RuntimeError("disk full")))
                await tool({"path": "a"})
        completed = await sessions.get_completed(run.session_id)
        assert completed.status == SessionStatus.ERROR
        assert completed.error == "disk full"

    @pytest.mark.asyncio
    async def test_loop_detected_finalizes_error(self, runs, sessions):
        run = await runs.start_run([], context_id="ENG-1")
        with pytest.raises(LoopDetected):
            async with runs.supervise(run):
                tool = run.wrap("getFileContent", AsyncMock(return_value="x"))
                for _ in range(4):
                    await tool({"path": "a"})
        completed = await sessions.get_completed(run.session_id)
        assert completed.status == SessionStatus.ERROR
        assert "Circuit breaker activated" in completed.error

    @pytest.mark.asyncio
    async def test_cancellation_finalized_once(self, runs, sessions, activity):
        run = await runs.start_run([], context_id="ENG-1")
        with pytest.raises(Cancelled):
            async with runs.supervise(run):
                tool = run.wrap("getFileContent", AsyncMock(return_value="x"))
                await tool({"path": "a"})
                await sessions.request_cancellation(run.session_id)
                await tool({"path": "b"})
        completed = await sessions.get_completed(run.session_id)
        assert completed.status == SessionStatus.CANCELLED
        assert _thoughts(activity).count("Session cancelled by user") == 1

    @pytest.mark.asyncio
    async def test_task_cancellation_finalizes_cancelled(self, runs, sessions):
        run = await runs.start_run([], context_id="ENG-1")
        with pytest.raises(asyncio.CancelledError):
            async with runs.supervise(run):
                raise asyncio.CancelledError()
        assert (await sessions.get_completed(run.session_id)).status == SessionStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_local_cancel_event(self, runs, sessions):
        event = asyncio.Event()
        run = await runs.start_run([], context_id="ENG-1", cancel_event=event)
        with pytest.raises(Cancelled):
            async with runs.supervise(run):
                tool = run.wrap("getFileContent", AsyncMock(return_value="x"))
                event.set()
                await tool({"path": "a"})
        assert (await sessions.get_completed(run.session_id)).status == SessionStatus.CANCELLED
