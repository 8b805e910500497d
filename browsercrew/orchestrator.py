"""Top-level control loop: milestones through the coordinator, replanning on failure."""

from __future__ import annotations

import logging
from collections import deque
from typing import List, Optional

from langchain_core.messages import HumanMessage

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver
from browsercrew.errors import ReplanBudgetExceededError, SchemaValidationError
from browsercrew.events import EventHub, EventType
from browsercrew.graph.coordinator import SubgoalCoordinator
from browsercrew.memory.session import SessionMemory
from browsercrew.memory.updater import update_memory_after_milestone
from browsercrew.planning.planner import Planner
from browsercrew.planning.schema import ProgressEvaluationModel
from browsercrew.prompts import progress_prompt
from browsercrew.tools.builtin.finish import FINISH_TOOL_NAME, parse_finish_result
from browsercrew.types import ExecutionResult, Milestone, NeedsReplan, SubgoalOutcome, SubgoalSucceeded
from browsercrew.utils.logging_utils import log_error

LOGGER = logging.getLogger("browsercrew.orchestrator")

NO_FINISH_REASONING = "All milestones were completed; the agent did not report a final answer."


class Orchestrator:
    """Runs a task to a verdict.

    ``run`` raises fatal errors; ``run_safely`` turns them into a failed
    ``ExecutionResult`` carrying the diagnostic.
    """

    def __init__(
        self,
        *,
        planner: Planner,
        coordinator: SubgoalCoordinator,
        memory: SessionMemory,
        llm: LanguageModel,
        driver: BrowserDriver,
        events: Optional[EventHub] = None,
        max_replan_attempts: int = 3,
        history_window: int = 5,
        memory_record_chars: int = 200,
    ) -> None:
        self.planner = planner
        self.coordinator = coordinator
        self.memory = memory
        self.llm = llm
        self.driver = driver
        self.events = events
        self.max_replan_attempts = max_replan_attempts
        self.history_window = history_window
        self.memory_record_chars = memory_record_chars

    async def run(self, task: str) -> ExecutionResult:
        LOGGER.info(f"Starting task: {task}")
        self.memory.set_task(task)
        run_start = self.memory.history_length()
        self._log(f"Task received: {task}")

        plan = await self.planner.plan(task)
        milestones = deque(plan.milestones)
        completed: List[Milestone] = []
        replan_attempts = 0

        while milestones:
            milestone = milestones.popleft()
            self.memory.set_current_milestone(milestone)
            milestone_start = self.memory.history_length()
            self._log(f"Milestone: {milestone.description}")

            outcome = await self._run_milestone(milestone, task)

            if isinstance(outcome, SubgoalSucceeded):
                completed.append(milestone)
                replan_attempts = 0
                LOGGER.info(f"Milestone completed ({len(completed)} done): {milestone.description}")
                await update_memory_after_milestone(
                    self.memory, self.llm, task, milestone, milestone_start, self.memory_record_chars
                )
                if milestones:
                    early = await self._evaluate_progress(task)
                    if early is not None:
                        return self._conclude(early)
                continue

            if replan_attempts >= self.max_replan_attempts:
                raise ReplanBudgetExceededError(self.max_replan_attempts, outcome.reason)
            replan_attempts += 1
            LOGGER.warning(
                f"Replanning ({replan_attempts}/{self.max_replan_attempts}) after '{milestone.description}': "
                f"{outcome.reason}"
            )
            self._log(f"Replanning: {outcome.reason}", level="warning")

            plan = await self.planner.plan(task, outcome, completed=completed, failed_milestone=milestone)
            if plan.is_terminal:
                return self._conclude(ExecutionResult(is_success=False, reasoning=plan.justification))
            milestones = deque(plan.milestones)

        return self._conclude(self._final_verdict(run_start))

    async def run_safely(self, task: str) -> ExecutionResult:
        """Like ``run``, but a run that cannot continue becomes a failed verdict.

        Fatal run errors, exhausted model retries and driver faults all end
        here with the error type and message as the reasoning.
        """
        try:
            return await self.run(task)
        except Exception as exc:
            log_error(LOGGER, exc, context=f"task={task!r}")
            return self._conclude(
                ExecutionResult(is_success=False, reasoning=f"Run aborted ({type(exc).__name__}): {exc}")
            )

    async def _run_milestone(self, milestone: Milestone, task: str) -> SubgoalOutcome:
        subgoals = await self.planner.decompose(milestone, task)
        outcome: Optional[SubgoalOutcome] = None
        for subgoal in subgoals:
            outcome = await self.coordinator.run(subgoal)
            if isinstance(outcome, NeedsReplan):
                return outcome
        return outcome

    async def _evaluate_progress(self, task: str) -> Optional[ExecutionResult]:
        """Ask whether the task is already done. None means keep going."""
        try:
            url = await self.driver.current_url()
            prompt = progress_prompt(task, self.memory.recent_history(self.history_window), url)
            evaluation = await self.llm.generate_structured(ProgressEvaluationModel, [HumanMessage(content=prompt)])
        except SchemaValidationError as exc:
            LOGGER.warning(f"Progress evaluation failed, continuing with the plan: {exc}")
            return None

        if not evaluation.is_task_completed:
            LOGGER.info(f"Task not complete yet: {evaluation.reasoning}")
            return None
        LOGGER.info(f"Task completed early: {evaluation.reasoning}")
        return ExecutionResult(is_success=True, reasoning=evaluation.reasoning)

    def _final_verdict(self, run_start: int) -> ExecutionResult:
        """Verdict from the run's last successful finish record.

        Raises:
            FinishPayloadError: The finish record is malformed
        """
        for record in reversed(self.memory.history_since(run_start)):
            if record.tool_call.name == FINISH_TOOL_NAME and record.succeeded:
                return parse_finish_result(record.result)
        return ExecutionResult(is_success=True, reasoning=NO_FINISH_REASONING)

    def _conclude(self, verdict: ExecutionResult) -> ExecutionResult:
        self.memory.set_current_milestone(None)
        level = "info" if verdict.is_success else "warning"
        LOGGER.log(logging.INFO if verdict.is_success else logging.WARNING, f"Verdict: {verdict.to_dict()}")
        if self.events is not None:
            self.events.emit(EventType.VERDICT, **verdict.to_dict())
            self.events.log(f"Task finished: {verdict.reasoning}", level=level)
        return verdict

    def _log(self, message: str, level: str = "info") -> None:
        if self.events is not None:
            self.events.log(message, level=level)
