"""Executor node: runs the approved calls and feeds the failure tracker."""

from __future__ import annotations

import logging
from typing import Any, Dict

from browsercrew.browser.driver import BrowserDriver, take_snapshot
from browsercrew.errors import BrowserCrewError
from browsercrew.graph.state import CoordinatorState
from browsercrew.tools.executor import ToolExecutor
from browsercrew.tracking import FailureTracker
from browsercrew.utils.logging_utils import log_node_entry, log_node_exit

LOGGER = logging.getLogger("browsercrew.executor")


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """Structured error for the reflection prompt."""
    if isinstance(exc, BrowserCrewError):
        return exc.to_payload()
    return {"name": type(exc).__name__, "message": str(exc)}


def build_execute_node(*, executor: ToolExecutor, driver: BrowserDriver, tracker: FailureTracker):
    async def execute_node(state: CoordinatorState) -> CoordinatorState:
        log_node_entry(LOGGER, "execute", state)
        calls = list(state.get("pending_calls", []))

        # UnknownToolError is fatal and leaves the graph from here.
        runs = await executor.run_batch(calls, state["subgoal"])
        failures = [run for run in runs if run.failed]

        if failures:
            snapshot = await take_snapshot(driver)
            for run in failures:
                tracker.record_failure(run.record.tool_call, snapshot)
            first = failures[0]
            updates = {
                "pending_calls": [],
                "last_tool_call": first.record.tool_call,
                "last_error": error_payload(first.exception),
            }
        else:
            tracker.record_success()
            updates = {
                "pending_calls": [],
                "last_tool_call": runs[-1].record.tool_call,
                "last_error": None,
                "reflections": 0,
            }

        log_node_exit(LOGGER, "execute", updates)
        return updates

    return execute_node
