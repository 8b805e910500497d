"""Per-run session memory.

One ``SessionMemory`` is owned by one orchestrator run and passed explicitly
to every component. All mutation goes through its methods; accessors hand out
copies so callers cannot reorder or edit history behind its back.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from browsercrew.events import EventHub, EventType
from browsercrew.persistence.store import RunStore
from browsercrew.types import ExecutionRecord, InterventionMode, Milestone, Subgoal, TabInfo

LOGGER = logging.getLogger("browsercrew.memory")

_WHITESPACE = re.compile(r"\s+")


def normalize_fact(fact: str) -> str:
    """Case- and whitespace-insensitive key used to deduplicate facts."""
    return _WHITESPACE.sub(" ", fact).strip().lower()


class SessionMemory:
    """History, working and long-term memory, tabs and intervention mode of one run."""

    def __init__(
        self,
        *,
        intervention_mode: InterventionMode = InterventionMode.CONFIRM,
        store: Optional[RunStore] = None,
        events: Optional[EventHub] = None,
    ) -> None:
        self._task = ""
        self._history: List[ExecutionRecord] = []
        self._working_memory: List[str] = []
        self._milestone_summaries: List[str] = []
        self._long_term_memory: List[str] = []
        self._long_term_keys: set[str] = set()
        self._completed_subgoals: List[str] = []
        self._tabs: List[TabInfo] = []
        self._current_subgoal: Optional[Subgoal] = None
        self._current_milestone: Optional[Milestone] = None
        self._intervention_mode = InterventionMode(intervention_mode)
        self._awaiting_approval = False
        self._store = store
        self._events = events

        if store is not None:
            for fact in store.load_facts():
                self._remember(fact)
            LOGGER.info(f"Loaded {len(self._long_term_memory)} long-term facts from store")

    # ========== Task ==========

    def set_task(self, task: str) -> None:
        self._task = task

    @property
    def task(self) -> str:
        return self._task

    # ========== History ==========

    def add_history(self, record: ExecutionRecord) -> None:
        self._history.append(record)

    @property
    def history(self) -> Tuple[ExecutionRecord, ...]:
        return tuple(self._history)

    def history_length(self) -> int:
        return len(self._history)

    def history_since(self, index: int) -> Tuple[ExecutionRecord, ...]:
        return tuple(self._history[index:])

    def recent_history(self, n: int) -> Tuple[ExecutionRecord, ...]:
        if n <= 0:
            return ()
        return tuple(self._history[-n:])

    # ========== Working memory ==========

    def clear_working_memory(self) -> None:
        self._working_memory.clear()

    def add_to_working_memory(self, item: str) -> None:
        self._working_memory.append(item)

    def add_qa_failure_feedback(self, reasoning: str) -> None:
        self._working_memory.append(f"QA rejected the last attempt: {reasoning}")

    @property
    def working_memory(self) -> List[str]:
        return list(self._working_memory)

    # ========== Milestone summaries ==========

    def add_milestone_summary(self, summary: str) -> None:
        """Summary of a finished milestone. Survives working-memory resets."""
        self._milestone_summaries.append(summary)

    @property
    def milestone_summaries(self) -> List[str]:
        return list(self._milestone_summaries)

    # ========== Long-term memory ==========

    def _remember(self, fact: str) -> bool:
        key = normalize_fact(fact)
        if not key or key in self._long_term_keys:
            return False
        self._long_term_keys.add(key)
        self._long_term_memory.append(fact.strip())
        return True

    def add_long_term_fact(self, fact: str) -> bool:
        """Store ``fact`` unless an equivalent one is already known.

        Returns:
            True when the fact was new
        """
        if not self._remember(fact):
            return False
        if self._store is not None:
            try:
                self._store.add_fact(normalize_fact(fact), fact.strip())
            except Exception as exc:
                # The in-memory copy is authoritative for this run.
                LOGGER.warning(f"Failed to persist long-term fact: {exc}")
        return True

    @property
    def long_term_memory(self) -> List[str]:
        return list(self._long_term_memory)

    # ========== Subgoals and milestones ==========

    def set_current_subgoal(self, subgoal: Optional[Subgoal]) -> None:
        self._current_subgoal = subgoal

    @property
    def current_subgoal(self) -> Optional[Subgoal]:
        return self._current_subgoal

    def set_current_milestone(self, milestone: Optional[Milestone]) -> None:
        self._current_milestone = milestone
        self._broadcast()

    @property
    def current_milestone(self) -> Optional[Milestone]:
        return self._current_milestone

    def complete_subgoal(self, description: str) -> None:
        self._completed_subgoals.append(description)

    @property
    def completed_subgoals(self) -> List[str]:
        return list(self._completed_subgoals)

    # ========== Tabs ==========

    def update_tabs(self, tabs: List[TabInfo]) -> None:
        tabs = list(tabs)
        if tabs == self._tabs:
            return
        self._tabs = tabs
        self._broadcast()

    @property
    def tabs(self) -> List[TabInfo]:
        return list(self._tabs)

    def active_tab(self) -> Optional[TabInfo]:
        for tab in self._tabs:
            if tab.is_active:
                return tab
        return None

    def tab_at(self, index: int) -> TabInfo:
        for tab in self._tabs:
            if tab.index == index:
                return tab
        raise IndexError(f"Tab index {index} is out of range (open tabs: {len(self._tabs)})")

    # ========== Intervention ==========

    @property
    def intervention_mode(self) -> InterventionMode:
        return self._intervention_mode

    def set_intervention_mode(self, mode: InterventionMode | str) -> None:
        try:
            new_mode = InterventionMode(mode)
        except ValueError:
            raise ValueError(
                f"Invalid intervention mode: {mode!r}. "
                f"Expected one of {[m.value for m in InterventionMode]}"
            ) from None
        self._intervention_mode = new_mode
        LOGGER.info(f"Intervention mode set to {new_mode.value}")
        if self._events is not None:
            self._events.log(f"Intervention mode changed to {new_mode.value}", level="system")
        self._broadcast()

    @property
    def awaiting_approval(self) -> bool:
        return self._awaiting_approval

    def set_awaiting_approval(self, value: bool) -> None:
        self._awaiting_approval = value
        self._broadcast()

    # ========== Snapshots ==========

    def snapshot(self) -> Dict[str, Any]:
        """Viewer-facing summary of the session."""
        return {
            "task": self._task,
            "intervention_mode": self._intervention_mode.value,
            "awaiting_approval": self._awaiting_approval,
            "current_milestone": self._current_milestone.description if self._current_milestone else None,
            "current_subgoal": self._current_subgoal.description if self._current_subgoal else None,
            "completed_subgoals": list(self._completed_subgoals),
            "history_length": len(self._history),
            "working_memory": list(self._working_memory),
            "milestone_summaries": list(self._milestone_summaries),
            "long_term_memory": list(self._long_term_memory),
            "tabs": [
                {"index": t.index, "title": t.title, "url": t.url, "is_active": t.is_active} for t in self._tabs
            ],
        }

    def _broadcast(self) -> None:
        if self._events is not None:
            self._events.emit(EventType.STATE_CHANGED, state=self.snapshot())
