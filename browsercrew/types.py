"""Core data types shared by the planner, coordinator and orchestrator."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from browsercrew.utils.redaction import redact


class InterventionMode(str, Enum):
    """How much a human is involved in approving proposed tool calls."""

    AUTONOMOUS = "autonomous"
    CONFIRM = "confirm"
    EDIT = "edit"


@dataclass(frozen=True, slots=True)
class Milestone:
    """A high-level checkpoint produced by the planner.

    A terminal milestone carries no work; it tells the orchestrator the task
    cannot be achieved and why.
    """

    description: str
    completion_criteria: str
    terminal: bool = False
    justification: str = ""


@dataclass(frozen=True, slots=True)
class Subgoal:
    """A concrete unit of work handed to one coordinator run."""

    description: str
    success_criteria: str

    @classmethod
    def from_milestone(cls, milestone: Milestone) -> "Subgoal":
        return cls(description=milestone.description, success_criteria=milestone.completion_criteria)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A single proposed tool invocation."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")

    def to_langchain(self) -> Dict[str, Any]:
        return {"name": self.name, "args": dict(self.args), "id": self.id, "type": "tool_call"}


@dataclass(frozen=True, slots=True)
class ExecutionRecord:
    """Outcome of one tool invocation. Exactly one of result/error is meaningful."""

    tool_call: ToolCall
    result: Any = None
    error: Optional[str] = None
    subgoal_description: Optional[str] = None
    success_criteria: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self, max_chars: Optional[int] = None) -> Dict[str, Any]:
        """Render for prompts. Secrets in args are masked; long args/results are cut to ``max_chars``."""

        def _clip(value: Any) -> Any:
            if max_chars is None or value is None:
                return value
            text = value if isinstance(value, str) else repr(value)
            return value if len(text) <= max_chars else text[:max_chars] + "..."

        data: Dict[str, Any] = {
            "tool": self.tool_call.name,
            "args": _clip(redact(dict(self.tool_call.args))),
        }
        if self.error is not None:
            data["error"] = _clip(self.error)
        else:
            data["result"] = _clip(self.result)
        if self.subgoal_description:
            data["subgoal"] = self.subgoal_description
        return data


@dataclass(frozen=True, slots=True)
class TabInfo:
    index: int
    title: str
    url: str
    is_active: bool = False


@dataclass(frozen=True, slots=True)
class EnvironmentSnapshot:
    """URL and title of the active tab at the moment of a failure."""

    url: str
    title: str

    def key(self) -> str:
        return f"{self.url}::{self.title}"


@dataclass(frozen=True, slots=True)
class RepeatedFailure:
    tool_name: str
    args: Dict[str, Any]
    count: int


@dataclass(frozen=True, slots=True)
class FailureContext:
    """Derived view of the failure tracker, fed to the replanning prompt."""

    consecutive_failures: int
    stagnation_count: int
    summary: str
    repeated_failure: Optional[RepeatedFailure] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consecutive_failures": self.consecutive_failures,
            "stagnation_count": self.stagnation_count,
            "summary": self.summary,
            "repeated_failure": (
                {
                    "tool_name": self.repeated_failure.tool_name,
                    "args": self.repeated_failure.args,
                    "count": self.repeated_failure.count,
                }
                if self.repeated_failure
                else None
            ),
        }


@dataclass(frozen=True, slots=True)
class SubgoalSucceeded:
    subgoal: Subgoal
    loops: int = 0


@dataclass(frozen=True, slots=True)
class NeedsReplan:
    """Returned by the coordinator when a subgoal cannot be finished locally."""

    reason: str
    failure_context: FailureContext
    failed_tool_call: Optional[ToolCall] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def describe(self) -> Dict[str, Any]:
        return {
            "reason": self.reason,
            "error_type": self.error_type,
            "error": self.error,
            "failed_tool": (
                {"name": self.failed_tool_call.name, "args": redact(dict(self.failed_tool_call.args))}
                if self.failed_tool_call
                else None
            ),
            "failure_context": self.failure_context.summary,
        }


SubgoalOutcome = Union[SubgoalSucceeded, NeedsReplan]


@dataclass(frozen=True, slots=True)
class PreconditionResult:
    success: bool
    message: str = ""

    @classmethod
    def ok(cls) -> "PreconditionResult":
        return cls(success=True)

    @classmethod
    def fail(cls, message: str) -> "PreconditionResult":
        return cls(success=False, message=message)


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Final verdict of a task run."""

    is_success: bool
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {"is_success": self.is_success, "reasoning": self.reasoning}


@dataclass(slots=True)
class PlanResult:
    """Planner output: either milestones to run or a terminal verdict."""

    milestones: List[Milestone]
    reasoning: str = ""

    @property
    def is_terminal(self) -> bool:
        return len(self.milestones) == 1 and self.milestones[0].terminal

    @property
    def justification(self) -> str:
        if self.is_terminal:
            return self.milestones[0].justification or self.reasoning
        return ""
