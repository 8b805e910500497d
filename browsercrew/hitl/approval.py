"""Human approval gate for proposed tool calls.

The policy follows the session's intervention mode:

- ``autonomous``: approve after a short delay so a viewer can follow along
- ``confirm``: wait for a yes/no from the responder
- ``edit``: like confirm, but the responder may drop individual calls
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from browsercrew.events import EventHub, EventType
from browsercrew.memory.session import SessionMemory
from browsercrew.types import InterventionMode, ToolCall
from browsercrew.utils.redaction import redact

LOGGER = logging.getLogger("browsercrew.approval")

Approver = Callable[[Sequence[ToolCall]], Awaitable[Optional[List[ToolCall]]]]


@dataclass
class ApprovalDecision:
    """Answer from a human responder.

    ``tool_calls`` is only honoured in edit mode and may only remove calls.
    """

    approved: bool
    tool_calls: Optional[List[ToolCall]] = None


ApprovalResponder = Callable[[List[ToolCall], InterventionMode], Awaitable[ApprovalDecision]]


async def approve_all(tool_calls: Sequence[ToolCall]) -> Optional[List[ToolCall]]:
    """Approve everything. Used for tests and unattended runs."""
    return list(tool_calls)


class ApprovalGate:
    def __init__(
        self,
        memory: SessionMemory,
        *,
        responder: Optional[ApprovalResponder] = None,
        events: Optional[EventHub] = None,
        autonomous_delay_seconds: float = 1.0,
    ) -> None:
        self.memory = memory
        self.responder = responder
        self.events = events
        self.autonomous_delay_seconds = autonomous_delay_seconds

    def _emit(self, event_type: EventType, **payload) -> None:
        if self.events is not None:
            self.events.emit(event_type, **payload)

    async def approve(self, tool_calls: Sequence[ToolCall]) -> Optional[List[ToolCall]]:
        """Return the approved calls, or None when the proposal is rejected."""
        calls = list(tool_calls)
        mode = self.memory.intervention_mode

        if mode == InterventionMode.AUTONOMOUS:
            LOGGER.info(f"Autonomous mode: approving {len(calls)} call(s) in {self.autonomous_delay_seconds}s")
            if self.autonomous_delay_seconds > 0:
                await asyncio.sleep(self.autonomous_delay_seconds)
            return calls

        if self.responder is None:
            LOGGER.error(f"No approval responder configured for {mode.value} mode; rejecting proposal")
            self._emit(EventType.LOG, level="error", message="Approval required but nobody can answer; plan rejected")
            return None

        self._emit(
            EventType.APPROVAL_REQUESTED,
            mode=mode.value,
            count=len(calls),
            tool_calls=[{"id": c.id, "name": c.name, "args": redact(dict(c.args))} for c in calls],
        )
        self.memory.set_awaiting_approval(True)
        try:
            decision = await self.responder(calls, mode)
        finally:
            self.memory.set_awaiting_approval(False)

        approved = self._apply(decision, calls, mode)
        self._emit(
            EventType.APPROVAL_RESPONDED,
            approved=approved is not None,
            edited=approved is not None and len(approved) != len(calls),
            tool_calls=[c.id for c in approved] if approved else [],
        )
        return approved

    def _apply(
        self, decision: ApprovalDecision, calls: List[ToolCall], mode: InterventionMode
    ) -> Optional[List[ToolCall]]:
        if not decision.approved:
            LOGGER.info("Proposal rejected by the user")
            return None
        if mode != InterventionMode.EDIT or decision.tool_calls is None:
            return calls

        # Edits can drop calls but never add or alter them.
        kept_ids = {c.id for c in decision.tool_calls}
        kept = [c for c in calls if c.id in kept_ids]
        if not kept:
            LOGGER.info("User removed every proposed call; treating as rejection")
            return None
        LOGGER.info(f"User kept {len(kept)} of {len(calls)} proposed call(s)")
        return kept
