"""LangGraph state machine for subgoal execution."""

from .builder import build_coordinator_graph
from .coordinator import SubgoalCoordinator
from .state import CoordinatorState

__all__ = ["CoordinatorState", "SubgoalCoordinator", "build_coordinator_graph"]
