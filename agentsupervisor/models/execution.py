"""Process-local execution state for one run.

Neither the tracker nor the strategy is ever persisted: both live only as
long as the run's call stack. A run is single-task cooperative, so neither
needs locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ExecutionPhase(str, Enum):
    PLANNING = "planning"
    GATHERING = "gathering"
    ACTING = "acting"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER = [ExecutionPhase.PLANNING, ExecutionPhase.GATHERING, ExecutionPhase.ACTING]


class ToolCategory(str, Enum):
    SEARCH = "search"
    READ = "read"
    ANALYSIS = "analysis"
    ACTION = "action"
    UNCATEGORIZED = "uncategorized"

    @property
    def is_investigation(self) -> bool:
        return self in (ToolCategory.SEARCH, ToolCategory.READ, ToolCategory.ANALYSIS)


@dataclass
class ExecutionTracker:
    """Tools used, actions performed, and recent call signatures."""

    tools_used: set[str] = field(default_factory=set)
    actions_performed: list[str] = field(default_factory=list)
    recent_tool_calls: list[str] = field(default_factory=list)
    ended_explicitly: bool = False
    max_recent_calls: int = 10

    def count_recent(self, signature: str) -> int:
        """How many of the remembered signatures equal *signature*."""
        return sum(1 for call in self.recent_tool_calls if call == signature)

    def record_call(self, signature: str) -> None:
        """Remember a call signature, evicting the oldest past the bound."""
        self.recent_tool_calls.append(signature)
        overflow = len(self.recent_tool_calls) - self.max_recent_calls
        if overflow > 0:
            del self.recent_tool_calls[:overflow]


@dataclass
class ExecutionStrategy:
    """Monotone phase tracker driven by per-call tool classification.

    ``phase`` only ever moves forward: planning -> gathering -> acting.
    """

    phase: ExecutionPhase = ExecutionPhase.PLANNING
    tool_usage_counts: dict[str, int] = field(default_factory=dict)
    search_operations: int = 0
    read_operations: int = 0
    analysis_operations: int = 0
    action_operations: int = 0
    has_started_actions: bool = False
    should_force_action: bool = False
    gathering_threshold: int = 3

    @property
    def investigation_operations(self) -> int:
        return self.search_operations + self.read_operations + self.analysis_operations

    @property
    def total_operations(self) -> int:
        return self.investigation_operations + self.action_operations

    def record(self, tool_name: str, category: ToolCategory) -> ExecutionPhase | None:
        """Count one invocation and advance the phase if warranted.

        Returns the new phase when this call caused a transition, else None.
        """
        self.tool_usage_counts[tool_name] = self.tool_usage_counts.get(tool_name, 0) + 1

        if category == ToolCategory.SEARCH:
            self.search_operations += 1
        elif category == ToolCategory.READ:
            self.read_operations += 1
        elif category == ToolCategory.ANALYSIS:
            self.analysis_operations += 1
        elif category == ToolCategory.ACTION:
            self.action_operations += 1
            self.has_started_actions = True
            return self._advance(ExecutionPhase.ACTING)

        if (
            self.phase == ExecutionPhase.PLANNING
            and self.investigation_operations >= self.gathering_threshold
        ):
            return self._advance(ExecutionPhase.GATHERING)
        return None

    def _advance(self, target: ExecutionPhase) -> ExecutionPhase | None:
        if target.rank <= self.phase.rank:
            return None
        self.phase = target
        return target


def execution_summary(tracker: ExecutionTracker, strategy: ExecutionStrategy) -> str:
    """One-line summary of a run's execution state for the operator log."""
    return " | ".join([
        f"Phase: {strategy.phase.value}",
        f"Total operations: {strategy.total_operations}",
        f"Tools used: {len(tracker.tools_used)}",
        f"Actions performed: {len(tracker.actions_performed)}",
        f"Search: {strategy.search_operations}",
        f"Read: {strategy.read_operations}",
        f"Analysis: {strategy.analysis_operations}",
        f"Action: {strategy.action_operations}",
    ])
