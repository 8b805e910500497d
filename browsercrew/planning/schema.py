"""Structured output schemas for the planner."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from browsercrew.types import Milestone, Subgoal

MIN_MILESTONES = 2
MAX_MILESTONES = 5


class MilestoneModel(BaseModel):
    """One verifiable checkpoint towards the task."""

    description: str = Field(min_length=1, description="What has to be achieved.")
    completion_criteria: str = Field(
        min_length=1,
        description="An observable condition of the browser or workspace that proves the milestone is done.",
    )

    def to_milestone(self) -> Milestone:
        return Milestone(description=self.description.strip(), completion_criteria=self.completion_criteria.strip())


class InitialPlanModel(BaseModel):
    """Plan for a fresh task."""

    reasoning: str = Field(description="Why the task is split this way.")
    milestones: List[MilestoneModel] = Field(min_length=MIN_MILESTONES, max_length=MAX_MILESTONES)


class ReplanModel(BaseModel):
    """Repaired plan, or a verdict that the task cannot be achieved."""

    reasoning: str = Field(description="How the new plan avoids the failure that was reported.")
    unachievable: bool = Field(
        default=False,
        description="True when no alternative approach can complete the task.",
    )
    justification: Optional[str] = Field(
        default=None,
        description="Required when unachievable is true: a human-readable explanation.",
    )
    milestones: List[MilestoneModel] = Field(default_factory=list, max_length=MAX_MILESTONES)

    @model_validator(mode="after")
    def _check_outcome(self) -> "ReplanModel":
        if self.unachievable:
            if not (self.justification or "").strip():
                raise ValueError("justification is required when unachievable is true")
        elif not self.milestones:
            raise ValueError("milestones must not be empty unless the task is unachievable")
        return self


class SubgoalModel(BaseModel):
    description: str = Field(min_length=1, description="A concrete browser step sequence to perform.")
    success_criteria: str = Field(min_length=1, description="How to verify the subgoal from the page state.")

    def to_subgoal(self) -> Subgoal:
        return Subgoal(description=self.description.strip(), success_criteria=self.success_criteria.strip())


class TacticalPlanModel(BaseModel):
    """Decomposition of one milestone into concrete subgoals."""

    subgoals: List[SubgoalModel] = Field(default_factory=list, max_length=10)


class ProgressEvaluationModel(BaseModel):
    is_task_completed: bool = Field(
        description="True only if the whole task is already achieved given the history and current page.",
    )
    reasoning: str = Field(description="Short justification; when completed, summarize the final answer.")
