"""Conditional routing helpers for the subgoal coordinator."""

from __future__ import annotations

import logging
from typing import Literal

from browsercrew.graph.state import CoordinatorState
from browsercrew.utils.logging_utils import log_routing_decision

LOGGER = logging.getLogger("browsercrew.routing")


def analyze_route(state: CoordinatorState) -> Literal["approve", "reflect", "end"]:
    """Route after the analyst.

    Returns:
        "end": Loop budget exhausted
        "reflect": No proposal was made, handled like an execution error
        "approve": One call proposed
    """
    if state.get("outcome") is not None:
        decision, reason = "end", "Loop budget exhausted"
    elif state.get("last_error"):
        decision, reason = "reflect", "No tool call proposed"
    else:
        decision, reason = "approve", f"Proposed {len(state.get('pending_calls', []))} call(s)"

    log_routing_decision(LOGGER, "analyze", decision, reason)
    return decision


def approve_route(state: CoordinatorState) -> Literal["execute", "end"]:
    if state.get("outcome") is not None:
        decision, reason = "end", "Proposal rejected"
    else:
        decision, reason = "execute", f"Approved {len(state.get('pending_calls', []))} call(s)"

    log_routing_decision(LOGGER, "approve", decision, reason)
    return decision


def execute_route(state: CoordinatorState) -> Literal["reflect", "verify"]:
    """Errors go to reflection; successful executions to QA."""
    error = state.get("last_error")
    if error:
        decision, reason = "reflect", f"Execution failed: {error.get('name')}"
    else:
        decision, reason = "verify", "Execution succeeded"

    log_routing_decision(LOGGER, "execute", decision, reason)
    return decision


def reflect_route(state: CoordinatorState) -> Literal["analyze", "end"]:
    if state.get("outcome") is not None:
        decision, reason = "end", state["outcome"].reason
    else:
        decision, reason = "analyze", f"Reflection {state.get('reflections', 0)}/{state.get('max_reflections')}"

    log_routing_decision(LOGGER, "reflect", decision, reason)
    return decision


def verify_route(state: CoordinatorState) -> Literal["analyze", "end"]:
    if state.get("outcome") is not None:
        decision, reason = "end", type(state["outcome"]).__name__
    else:
        decision, reason = "analyze", f"QA rejected ({state.get('qa_fails', 0)}/{state.get('max_qa_fails')})"

    log_routing_decision(LOGGER, "verify", decision, reason)
    return decision
