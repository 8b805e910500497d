"""Hierarchical planner: task → milestones → subgoals.

Initial plans come from the task alone. Replans also see the current page,
the completed milestones, the milestone that failed and the failure report,
and may instead declare the task unachievable. Every plan is written to the
run store for auditing.
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Sequence

from langchain_core.messages import HumanMessage

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.browser.driver import BrowserDriver
from browsercrew.errors import PlanningError, SchemaValidationError
from browsercrew.events import EventHub, EventType
from browsercrew.graph.context import capture_context
from browsercrew.memory.session import SessionMemory
from browsercrew.persistence.store import RunStore
from browsercrew.planning.schema import (
    MAX_MILESTONES,
    MIN_MILESTONES,
    InitialPlanModel,
    ReplanModel,
    TacticalPlanModel,
)
from browsercrew.prompts import planner_prompt, replan_prompt, tactical_prompt
from browsercrew.types import Milestone, NeedsReplan, PlanResult, Subgoal
from browsercrew.utils.logging_utils import log_plan_created

LOGGER = logging.getLogger("browsercrew.planner")

UNACHIEVABLE_DESCRIPTION = "Task is unachievable"


class Planner:
    def __init__(
        self,
        *,
        llm: LanguageModel,
        memory: SessionMemory,
        driver: BrowserDriver,
        store: Optional[RunStore] = None,
        events: Optional[EventHub] = None,
        run_id: Optional[str] = None,
        max_milestones: int = 10,
        max_subgoals: int = 5,
        history_window: int = 5,
        summary_chars: int = 2000,
    ) -> None:
        self.llm = llm
        self.memory = memory
        self.driver = driver
        self.store = store
        self.events = events
        self.run_id = run_id or uuid.uuid4().hex
        self.max_milestones = max_milestones
        self.max_subgoals = max_subgoals
        self.history_window = history_window
        self.summary_chars = summary_chars

    async def plan(
        self,
        task: str,
        prior_failure: Optional[NeedsReplan] = None,
        *,
        completed: Sequence[Milestone] = (),
        failed_milestone: Optional[Milestone] = None,
    ) -> PlanResult:
        """Produce milestones for ``task``, or a terminal verdict when replanning.

        Raises:
            PlanningError: The model never produced a schema-valid plan
        """
        if prior_failure is None:
            result = await self._initial_plan(task)
            mode = "initial"
        else:
            result = await self._replan(task, prior_failure, completed, failed_milestone)
            mode = "replan"

        if len(result.milestones) > self.max_milestones:
            LOGGER.warning(f"Plan has {len(result.milestones)} milestones; keeping the first {self.max_milestones}")
            result = PlanResult(milestones=result.milestones[: self.max_milestones], reasoning=result.reasoning)

        log_plan_created(LOGGER, result.reasoning, result.milestones)
        self._persist(task, mode, result)
        if self.events is not None:
            self.events.emit(
                EventType.PLAN_CREATED,
                mode=mode,
                reasoning=result.reasoning,
                terminal=result.is_terminal,
                milestones=[
                    {"description": m.description, "completion_criteria": m.completion_criteria}
                    for m in result.milestones
                ],
            )
        return result

    async def _initial_plan(self, task: str) -> PlanResult:
        prompt = planner_prompt(task, MIN_MILESTONES, min(MAX_MILESTONES, self.max_milestones))
        try:
            model = await self.llm.generate_structured(InitialPlanModel, [HumanMessage(content=prompt)])
        except SchemaValidationError as exc:
            raise PlanningError(f"Initial planning failed: {exc}") from exc
        return PlanResult(milestones=[m.to_milestone() for m in model.milestones], reasoning=model.reasoning)

    async def _replan(
        self,
        task: str,
        failure: NeedsReplan,
        completed: Sequence[Milestone],
        failed_milestone: Optional[Milestone],
    ) -> PlanResult:
        context = await capture_context(
            self.memory, self.driver, history_window=self.history_window, summary_chars=self.summary_chars
        )
        report = failure.describe()
        report["failure_details"] = failure.failure_context.to_dict()
        prompt = replan_prompt(task, context.rendered, completed, failed_milestone, report, self.max_milestones)
        try:
            model = await self.llm.generate_structured(ReplanModel, [HumanMessage(content=prompt)])
        except SchemaValidationError as exc:
            raise PlanningError(f"Replanning failed: {exc}") from exc

        if model.unachievable:
            LOGGER.warning(f"Planner declared the task unachievable: {model.justification}")
            terminal = Milestone(
                description=UNACHIEVABLE_DESCRIPTION,
                completion_criteria="",
                terminal=True,
                justification=model.justification.strip(),
            )
            return PlanResult(milestones=[terminal], reasoning=model.reasoning)
        return PlanResult(milestones=[m.to_milestone() for m in model.milestones], reasoning=model.reasoning)

    def _persist(self, task: str, mode: str, result: PlanResult) -> None:
        if self.store is None:
            return
        try:
            self.store.save_plan(self.run_id, task, mode, result.reasoning, result.milestones)
        except Exception as exc:
            LOGGER.warning(f"Failed to persist {mode} plan: {exc}")

    async def decompose(self, milestone: Milestone, task: str) -> List[Subgoal]:
        """Split ``milestone`` into concrete subgoals.

        Falls back to a single subgoal built from the milestone itself when the
        model output is unusable.
        """
        context = await capture_context(
            self.memory, self.driver, history_window=self.history_window, summary_chars=self.summary_chars
        )
        prompt = tactical_prompt(task, milestone, context.rendered, self.max_subgoals)
        try:
            model = await self.llm.generate_structured(TacticalPlanModel, [HumanMessage(content=prompt)])
        except SchemaValidationError as exc:
            LOGGER.warning(f"Tactical planning failed, using the milestone as the only subgoal: {exc}")
            return [Subgoal.from_milestone(milestone)]

        subgoals = [s.to_subgoal() for s in model.subgoals][: self.max_subgoals]
        if not subgoals:
            LOGGER.info("Tactical planner returned no subgoals, using the milestone as the only subgoal")
            return [Subgoal.from_milestone(milestone)]

        LOGGER.info(f"Milestone '{milestone.description}' decomposed into {len(subgoals)} subgoal(s)")
        for i, subgoal in enumerate(subgoals, 1):
            LOGGER.info(f"  {i}. {subgoal.description} (success: {subgoal.success_criteria})")
        return subgoals
