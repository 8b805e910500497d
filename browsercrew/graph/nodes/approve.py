"""Approval node: routes the proposal through the approval gate."""

from __future__ import annotations

import logging

from browsercrew.graph.state import CoordinatorState
from browsercrew.hitl import Approver
from browsercrew.tracking import FailureTracker
from browsercrew.types import NeedsReplan
from browsercrew.utils.logging_utils import log_node_entry, log_node_exit

LOGGER = logging.getLogger("browsercrew.approval")


def build_approve_node(*, approver: Approver, tracker: FailureTracker):
    async def approve_node(state: CoordinatorState) -> CoordinatorState:
        log_node_entry(LOGGER, "approve", state)
        pending = list(state.get("pending_calls", []))

        approved = await approver(pending)
        if not approved:
            updates = {
                "outcome": NeedsReplan(
                    reason="plan rejected",
                    failure_context=tracker.get_failure_context(),
                    failed_tool_call=pending[0] if pending else None,
                )
            }
        else:
            updates = {"pending_calls": approved}

        log_node_exit(LOGGER, "approve", updates)
        return updates

    return approve_node
