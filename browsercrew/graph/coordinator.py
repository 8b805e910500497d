"""Subgoal coordinator: runs one subgoal through the analyst/executor/QA loop."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver
from browsercrew.graph.builder import build_coordinator_graph
from browsercrew.hitl import Approver, approve_all
from browsercrew.memory.session import SessionMemory
from browsercrew.tools.executor import ToolExecutor
from browsercrew.tools.registry import ToolRegistry
from browsercrew.tracking import FailureTracker
from browsercrew.types import NeedsReplan, Subgoal, SubgoalOutcome, SubgoalSucceeded

LOGGER = logging.getLogger("browsercrew.coordinator")

# Upper bound of graph steps per loop: analyze, approve, execute, reflect or verify
NODES_PER_LOOP = 4


class SubgoalCoordinator:
    """Drives a single subgoal to ``SubgoalSucceeded`` or ``NeedsReplan``.

    Local recovery (reflection, QA retries) happens here; anything that
    exhausts a local budget comes back as ``NeedsReplan``. Fatal errors such as
    ``UnknownToolError`` propagate to the caller.
    """

    def __init__(
        self,
        *,
        memory: SessionMemory,
        driver: BrowserDriver,
        llm: LanguageModel,
        registry: ToolRegistry,
        executor: ToolExecutor,
        approver: Approver = approve_all,
        headless: bool = False,
        max_loops: int = 15,
        max_reflections: int = 2,
        max_qa_fails: int = 3,
        history_window: int = 5,
        summary_chars: int = 2000,
        prompt_log_max_length: int = 2000,
        tracker_factory: Callable[[], FailureTracker] = FailureTracker,
    ) -> None:
        self.memory = memory
        self.driver = driver
        self.llm = llm
        self.registry = registry
        self.executor = executor
        self.approver = approver
        self.headless = headless
        self.max_loops = max_loops
        self.max_reflections = max_reflections
        self.max_qa_fails = max_qa_fails
        self.history_window = history_window
        self.summary_chars = summary_chars
        self.prompt_log_max_length = prompt_log_max_length
        self.tracker_factory = tracker_factory
        self.last_tracker: Optional[FailureTracker] = None

    def _tool_descriptors(self):
        tools = self.registry.headless_tools() if self.headless else self.registry.list_tools()
        return self.registry.descriptors(tools)

    async def run(self, subgoal: Subgoal) -> SubgoalOutcome:
        LOGGER.info(f"Starting subgoal: {subgoal.description}")
        self.memory.clear_working_memory()
        self.memory.set_current_subgoal(subgoal)

        tracker = self.tracker_factory()
        self.last_tracker = tracker
        graph = build_coordinator_graph(
            memory=self.memory,
            driver=self.driver,
            llm=self.llm,
            executor=self.executor,
            tracker=tracker,
            approver=self.approver,
            tool_descriptors=self._tool_descriptors(),
            headless=self.headless,
            history_window=self.history_window,
            summary_chars=self.summary_chars,
            prompt_log_max_length=self.prompt_log_max_length,
        )

        initial_state = {
            "messages": [],
            "subgoal": subgoal,
            "loops": 0,
            "max_loops": self.max_loops,
            "reflections": 0,
            "max_reflections": self.max_reflections,
            "qa_fails": 0,
            "max_qa_fails": self.max_qa_fails,
            "pending_calls": [],
            "last_tool_call": None,
            "last_error": None,
            "outcome": None,
        }
        final_state = await graph.ainvoke(
            initial_state,
            config={"recursion_limit": (self.max_loops + 1) * NODES_PER_LOOP + 1},
        )

        outcome = final_state.get("outcome")
        if outcome is None:
            outcome = NeedsReplan(reason="loop budget exhausted", failure_context=tracker.get_failure_context())

        if isinstance(outcome, SubgoalSucceeded):
            LOGGER.info(f"Subgoal succeeded after {outcome.loops} loop(s): {subgoal.description}")
        else:
            LOGGER.warning(f"Subgoal needs replanning ({outcome.reason}): {subgoal.description}")
        return outcome
