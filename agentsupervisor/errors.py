"""Failure kinds synthesized by the supervisor.

A tool's own exception is never wrapped: it propagates unchanged. Failures
of optional collaborators are logged where they happen and never raised.
"""

from __future__ import annotations


class SupervisorError(Exception):
    """Base class for failures raised by the supervision layer itself."""


class Cancelled(SupervisorError):
    """The run was cancelled locally, externally, or by a stop interjection."""

    def __init__(self, reason: str = "Request was cancelled by user") -> None:
        super().__init__(reason)
        self.reason = reason


class LoopDetected(SupervisorError):
    """The circuit breaker refused a repeated identical tool call."""

    def __init__(self, tool_name: str, signature: str, count: int) -> None:
        self.tool_name = tool_name
        self.signature = signature
        self.count = count
        super().__init__(
            f"Circuit breaker activated: {tool_name} called {count} times with "
            "identical parameters. This suggests an infinite retry loop. "
            "Try a different approach or tool."
        )


class CoordinationStoreError(SupervisorError):
    """The shared coordination store could not complete an operation."""
