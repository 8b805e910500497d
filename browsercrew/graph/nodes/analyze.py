"""Analyst node: proposes the next tool call for the current subgoal."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from langchain_core.messages import HumanMessage, SystemMessage

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver, take_snapshot
from browsercrew.graph.context import capture_context
from browsercrew.graph.state import CoordinatorState
from browsercrew.memory.session import SessionMemory
from browsercrew.prompts import analyst_prompt, system_prompt
from browsercrew.tracking import FailureTracker
from browsercrew.types import ExecutionRecord, NeedsReplan, ToolCall
from browsercrew.utils.logging_utils import log_node_entry, log_node_exit, log_prompt

LOGGER = logging.getLogger("browsercrew.analyst")

NO_PROPOSAL_TOOL_NAME = "no_tool_call"
NO_PROPOSAL_ERROR = "The model did not propose any tool call"


def build_analyze_node(
    *,
    memory: SessionMemory,
    driver: BrowserDriver,
    llm: LanguageModel,
    tracker: FailureTracker,
    tool_descriptors: List[Dict[str, Any]],
    headless: bool = False,
    history_window: int = 5,
    summary_chars: int = 2000,
    prompt_log_max_length: int = 2000,
):
    """Create the analyst node bound to the run's collaborators."""

    async def analyze_node(state: CoordinatorState) -> CoordinatorState:
        log_node_entry(LOGGER, "analyze", state)

        loops = state.get("loops", 0)
        max_loops = state.get("max_loops", 15)
        if loops >= max_loops:
            LOGGER.warning(f"Loop budget exhausted ({loops}/{max_loops})")
            updates = {
                "outcome": NeedsReplan(
                    reason="loop budget exhausted",
                    failure_context=tracker.get_failure_context(),
                    failed_tool_call=state.get("last_tool_call"),
                )
            }
            log_node_exit(LOGGER, "analyze", updates)
            return updates

        subgoal = state["subgoal"]
        context = await capture_context(
            memory, driver, history_window=history_window, summary_chars=summary_chars
        )
        prompt = analyst_prompt(subgoal, context.rendered)
        log_prompt(LOGGER, "analyst", prompt, prompt_log_max_length)

        messages = [
            SystemMessage(content=system_prompt(headless)),
            *state.get("messages", []),
            HumanMessage(content=prompt),
        ]
        proposals = await llm.propose_tool_calls(messages, tool_descriptors)

        if not proposals:
            # Handled like a failed execution: one record, one tracker entry, then reflection.
            call = ToolCall(name=NO_PROPOSAL_TOOL_NAME)
            memory.add_history(
                ExecutionRecord(
                    tool_call=call,
                    error=NO_PROPOSAL_ERROR,
                    subgoal_description=subgoal.description,
                    success_criteria=subgoal.success_criteria,
                )
            )
            tracker.record_failure(call, await take_snapshot(driver))
            LOGGER.warning(NO_PROPOSAL_ERROR)
            updates = {
                "loops": loops + 1,
                "pending_calls": [],
                "last_tool_call": call,
                "last_error": {"name": "NoToolCallProposed", "message": NO_PROPOSAL_ERROR},
            }
            log_node_exit(LOGGER, "analyze", updates)
            return updates

        if len(proposals) > 1:
            LOGGER.info(f"Model proposed {len(proposals)} calls; keeping only '{proposals[0].name}'")

        updates = {
            "loops": loops + 1,
            "pending_calls": [proposals[0]],
            "last_error": None,
        }
        log_node_exit(LOGGER, "analyze", updates)
        return updates

    return analyze_node
