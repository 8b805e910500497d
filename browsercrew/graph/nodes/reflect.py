"""Reflection node: analyses an execution error before the next attempt."""

from __future__ import annotations

import logging

from langchain_core.messages import AIMessage, HumanMessage

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver, page_summary
from browsercrew.graph.schema import ReflectionModel
from browsercrew.graph.state import CoordinatorState
from browsercrew.memory.session import SessionMemory
from browsercrew.prompts import reflection_prompt
from browsercrew.tracking import FailureTracker
from browsercrew.types import NeedsReplan
from browsercrew.utils.logging_utils import log_node_entry, log_node_exit

LOGGER = logging.getLogger("browsercrew.reflection")


def format_reflection(tool_name: str, reflection: ReflectionModel) -> str:
    lines = [f"Reflection on the failed '{tool_name}' call: {reflection.cause_analysis}"]
    if reflection.alternative_approaches:
        lines.append("Alternatives to try next:")
        lines.extend(f"{i}. {approach}" for i, approach in enumerate(reflection.alternative_approaches, 1))
    return "\n".join(lines)


def build_reflect_node(
    *,
    memory: SessionMemory,
    driver: BrowserDriver,
    llm: LanguageModel,
    tracker: FailureTracker,
    summary_chars: int = 2000,
):
    async def reflect_node(state: CoordinatorState) -> CoordinatorState:
        log_node_entry(LOGGER, "reflect", state)
        error = state.get("last_error") or {}
        failed_call = state.get("last_tool_call")

        def needs_replan(reason: str) -> CoordinatorState:
            updates = {
                "outcome": NeedsReplan(
                    reason=reason,
                    failure_context=tracker.get_failure_context(),
                    failed_tool_call=failed_call,
                    error=error.get("message"),
                    error_type=error.get("name"),
                )
            }
            log_node_exit(LOGGER, "reflect", updates)
            return updates

        if tracker.is_stuck():
            LOGGER.warning("Failure tracker reports the agent is stuck")
            return needs_replan(f"stuck: {tracker.get_failure_context().summary}")

        reflections = state.get("reflections", 0) + 1
        max_reflections = state.get("max_reflections", 2)
        if reflections > max_reflections:
            LOGGER.warning(f"Reflection budget exhausted ({max_reflections})")
            return needs_replan(f"reflection budget exhausted after {reflections} failed attempts")

        url = await driver.current_url()
        summary = await page_summary(driver, summary_chars)
        prompt = reflection_prompt(memory.task, error, url, summary)
        reflection = await llm.generate_structured(ReflectionModel, [HumanMessage(content=prompt)])
        note = format_reflection(failed_call.name if failed_call else "unknown", reflection)
        LOGGER.info(note)

        updates = {"reflections": reflections, "messages": [AIMessage(content=note)]}
        log_node_exit(LOGGER, "reflect", updates)
        return updates

    return reflect_node
