"""Factory for assembling the subgoal coordinator's LangGraph state machine."""

from __future__ import annotations

from typing import Any, Dict, List

from langgraph.graph import END, START, StateGraph

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver
from browsercrew.graph.nodes import (
    build_analyze_node,
    build_approve_node,
    build_execute_node,
    build_reflect_node,
    build_verify_node,
)
from browsercrew.graph.routing import analyze_route, approve_route, execute_route, reflect_route, verify_route
from browsercrew.graph.state import CoordinatorState
from browsercrew.hitl import Approver
from browsercrew.memory.session import SessionMemory
from browsercrew.tools.executor import ToolExecutor
from browsercrew.tracking import FailureTracker


def build_coordinator_graph(
    *,
    memory: SessionMemory,
    driver: BrowserDriver,
    llm: LanguageModel,
    executor: ToolExecutor,
    tracker: FailureTracker,
    approver: Approver,
    tool_descriptors: List[Dict[str, Any]],
    headless: bool = False,
    history_window: int = 5,
    summary_chars: int = 2000,
    prompt_log_max_length: int = 2000,
):
    """Compose the per-subgoal loop.

        START → analyze → approve → execute → verify → END
                   ↑                   ↓         │
                   ├─────────────── reflect      │
                   └────────(QA rejected)────────┘

    analyze also routes to reflect when no call is proposed. Any node that
    decides the outcome routes to END.
    """

    analyze_node = build_analyze_node(
        memory=memory,
        driver=driver,
        llm=llm,
        tracker=tracker,
        tool_descriptors=tool_descriptors,
        headless=headless,
        history_window=history_window,
        summary_chars=summary_chars,
        prompt_log_max_length=prompt_log_max_length,
    )
    approve_node = build_approve_node(approver=approver, tracker=tracker)
    execute_node = build_execute_node(executor=executor, driver=driver, tracker=tracker)
    reflect_node = build_reflect_node(
        memory=memory,
        driver=driver,
        llm=llm,
        tracker=tracker,
        summary_chars=summary_chars,
    )
    verify_node = build_verify_node(
        memory=memory,
        driver=driver,
        llm=llm,
        tracker=tracker,
        history_window=history_window,
        summary_chars=summary_chars,
    )

    graph = StateGraph(CoordinatorState)

    graph.add_node("analyze", analyze_node)
    graph.add_node("approve", approve_node)
    graph.add_node("execute", execute_node)
    graph.add_node("reflect", reflect_node)
    graph.add_node("verify", verify_node)

    graph.add_edge(START, "analyze")

    graph.add_conditional_edges(
        "analyze",
        analyze_route,
        {
            "approve": "approve",
            "reflect": "reflect",  # No proposal
            "end": END,            # Loop budget exhausted
        },
    )
    graph.add_conditional_edges("approve", approve_route, {"execute": "execute", "end": END})
    graph.add_conditional_edges("execute", execute_route, {"reflect": "reflect", "verify": "verify"})
    graph.add_conditional_edges("reflect", reflect_route, {"analyze": "analyze", "end": END})
    graph.add_conditional_edges("verify", verify_route, {"analyze": "analyze", "end": END})

    return graph.compile()
