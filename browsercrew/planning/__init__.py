"""Milestone and subgoal planning."""

from .planner import Planner
from .schema import InitialPlanModel, ProgressEvaluationModel, ReplanModel, TacticalPlanModel

__all__ = ["InitialPlanModel", "Planner", "ProgressEvaluationModel", "ReplanModel", "TacticalPlanModel"]
