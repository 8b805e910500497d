"""Shared state definition for the subgoal coordinator graph."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional, TypedDict

from langchain_core.messages import BaseMessage
from langgraph.graph import add_messages

from browsercrew.types import Subgoal, SubgoalOutcome, ToolCall


class CoordinatorState(TypedDict, total=False):
    """State of one subgoal run.

    Each loop goes analyze → approve → execute, then reflect on an error or
    verify on success. A node that decides the subgoal's fate sets ``outcome``
    and the graph ends.
    """

    # ========== Conversation ==========
    messages: Annotated[List[BaseMessage], add_messages]  # Reflections folded back into the analyst prompt
    subgoal: Subgoal

    # ========== Budgets ==========
    loops: int
    max_loops: int
    reflections: int
    max_reflections: int
    qa_fails: int
    max_qa_fails: int

    # ========== Current step ==========
    pending_calls: List[ToolCall]
    last_tool_call: Optional[ToolCall]   # Most recent executed or attempted call
    last_error: Optional[Dict[str, Any]]  # Structured error of the current step, None on success

    # ========== Result ==========
    outcome: Optional[SubgoalOutcome]
