"""QA node: checks the subgoal's success criteria against the current page."""

from __future__ import annotations

import logging

from langchain_core.messages import HumanMessage

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver
from browsercrew.graph.context import capture_context
from browsercrew.graph.schema import QAVerdictModel
from browsercrew.graph.state import CoordinatorState
from browsercrew.memory.session import SessionMemory
from browsercrew.prompts import qa_prompt
from browsercrew.tracking import FailureTracker
from browsercrew.types import NeedsReplan, SubgoalSucceeded
from browsercrew.utils.logging_utils import log_node_entry, log_node_exit

LOGGER = logging.getLogger("browsercrew.qa")


def build_verify_node(
    *,
    memory: SessionMemory,
    driver: BrowserDriver,
    llm: LanguageModel,
    tracker: FailureTracker,
    history_window: int = 5,
    summary_chars: int = 2000,
):
    """Create the QA node. A rejection never triggers reflection."""

    async def verify_node(state: CoordinatorState) -> CoordinatorState:
        log_node_entry(LOGGER, "verify", state)
        subgoal = state["subgoal"]

        context = await capture_context(
            memory, driver, history_window=history_window, summary_chars=summary_chars
        )
        verdict = await llm.generate_structured(
            QAVerdictModel, [HumanMessage(content=qa_prompt(subgoal, context.rendered))]
        )

        if verdict.is_success:
            LOGGER.info(f"QA passed: {verdict.reasoning}")
            memory.complete_subgoal(subgoal.description)
            updates = {"outcome": SubgoalSucceeded(subgoal=subgoal, loops=state.get("loops", 0))}
            log_node_exit(LOGGER, "verify", updates)
            return updates

        qa_fails = state.get("qa_fails", 0) + 1
        max_qa_fails = state.get("max_qa_fails", 3)
        LOGGER.info(f"QA rejected ({qa_fails}/{max_qa_fails}): {verdict.reasoning}")
        memory.add_qa_failure_feedback(verdict.reasoning)

        updates = {"qa_fails": qa_fails}
        if qa_fails >= max_qa_fails:
            updates["outcome"] = NeedsReplan(
                reason=f"QA rejected the subgoal {qa_fails} times. Last reason: {verdict.reasoning}",
                failure_context=tracker.get_failure_context(),
                failed_tool_call=state.get("last_tool_call"),
            )
        log_node_exit(LOGGER, "verify", updates)
        return updates

    return verify_node
