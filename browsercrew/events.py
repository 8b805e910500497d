"""Event hub connecting the orchestration core to front-ends.

The core never talks to a terminal or GUI directly. It emits events here and
front-ends subscribe:

- ``plan_created``: a plan (initial or repaired) was produced
- ``approval_requested`` / ``approval_responded``: approval gate traffic
- ``log``: human-readable progress messages
- ``state_changed``: a session memory snapshot after a mutation that matters to viewers
- ``verdict``: the final result of a run
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

LOGGER = logging.getLogger("browsercrew.events")


class EventType(str, Enum):
    PLAN_CREATED = "plan_created"
    APPROVAL_REQUESTED = "approval_requested"
    APPROVAL_RESPONDED = "approval_responded"
    LOG = "log"
    STATE_CHANGED = "state_changed"
    VERDICT = "verdict"


@dataclass
class AgentEvent:
    """Structured event data"""

    event_type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "type": self.event_type.value,
            "payload": self.payload,
            "timestamp": self.timestamp,
            "timestamp_iso": datetime.fromtimestamp(self.timestamp).isoformat(),
        }


EventCallback = Callable[[AgentEvent], None]


class EventHub:
    """Synchronous publish/subscribe hub with a bounded event history."""

    def __init__(self, max_history: int = 1000):
        self._subscribers: List[tuple[Optional[frozenset], EventCallback]] = []
        self._history: List[AgentEvent] = []
        self._max_history = max_history

    def subscribe(self, callback: EventCallback, event_types: Optional[Iterable[EventType]] = None) -> Callable[[], None]:
        """Register ``callback`` for all events, or only for ``event_types``.

        Returns a function that removes the subscription.
        """
        entry = (frozenset(event_types) if event_types else None, callback)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def emit(self, event_type: EventType, **payload: Any) -> AgentEvent:
        event = AgentEvent(event_type=event_type, payload=payload)
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history.pop(0)

        for types, callback in list(self._subscribers):
            if types is not None and event_type not in types:
                continue
            try:
                callback(event)
            except Exception:
                # A broken front-end must not abort the run.
                LOGGER.exception(f"Event subscriber failed on {event_type.value}")
        return event

    def log(self, message: str, level: str = "info") -> AgentEvent:
        return self.emit(EventType.LOG, level=level, message=message)

    @property
    def history(self) -> List[AgentEvent]:
        return list(self._history)
