"""Detection of agents that are stuck in a failure loop.

Three independent signals are tracked:

- consecutive failures, reset by any success
- repeats of the same failing call, keyed by tool name plus argument content
  regardless of key order
- stagnation: failures that leave the active tab's URL and title unchanged
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from browsercrew.types import EnvironmentSnapshot, FailureContext, RepeatedFailure, ToolCall
from browsercrew.utils.redaction import redact

LOGGER = logging.getLogger("browsercrew.tracking")

MAX_CONSECUTIVE_FAILURES = 5
MAX_REPEATED_FAILURES = 3
MAX_STAGNATION_COUNT = 3


@dataclass(slots=True)
class _FailurePattern:
    tool_call: ToolCall
    count: int = 0


def hash_tool_call(tool_call: ToolCall) -> str:
    """Stable sha256 of a tool call; dict key order does not matter."""
    data = json.dumps(
        {"tool_name": tool_call.name, "args": tool_call.args},
        sort_keys=True,
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class FailureTracker:
    def __init__(
        self,
        max_consecutive_failures: int = MAX_CONSECUTIVE_FAILURES,
        max_repeated_failures: int = MAX_REPEATED_FAILURES,
        max_stagnation_count: int = MAX_STAGNATION_COUNT,
    ) -> None:
        self.max_consecutive_failures = max_consecutive_failures
        self.max_repeated_failures = max_repeated_failures
        self.max_stagnation_count = max_stagnation_count

        self.consecutive_failures = 0
        self.stagnation_count = 0
        self._last_snapshot: Optional[str] = None
        self._patterns: Dict[str, _FailurePattern] = {}

    def record_success(self) -> None:
        self.consecutive_failures = 0
        self.stagnation_count = 0
        self._last_snapshot = None
        # Pattern counts are kept so a call that keeps failing between
        # unrelated successes is still recognized.

    def record_failure(self, tool_call: ToolCall, snapshot: EnvironmentSnapshot) -> None:
        self.consecutive_failures += 1

        key = hash_tool_call(tool_call)
        pattern = self._patterns.setdefault(key, _FailurePattern(tool_call=tool_call))
        pattern.count += 1

        # The first failure on a page counts as one stalled attempt there.
        current = snapshot.key()
        if self._last_snapshot == current:
            self.stagnation_count += 1
        else:
            self.stagnation_count = 1
        self._last_snapshot = current

        LOGGER.debug(
            f"Failure recorded for {tool_call.name}: consecutive={self.consecutive_failures}, "
            f"pattern={pattern.count}, stagnation={self.stagnation_count}"
        )

    def _repeated(self) -> Optional[_FailurePattern]:
        for pattern in self._patterns.values():
            if pattern.count >= self.max_repeated_failures:
                return pattern
        return None

    def is_stuck(self) -> bool:
        if self.consecutive_failures >= self.max_consecutive_failures:
            return True
        if self.stagnation_count >= self.max_stagnation_count:
            return True
        return self._repeated() is not None

    def get_failure_context(self) -> FailureContext:
        summary = f"The agent has failed {self.consecutive_failures} time(s) in a row."
        repeated = self._repeated()
        if repeated is not None:
            summary += (
                f" The tool '{repeated.tool_call.name}' failed {repeated.count} times with the same arguments."
            )
        if self.stagnation_count >= self.max_stagnation_count:
            summary += (
                f" The browser state (URL and title) has not changed across {self.stagnation_count} "
                "attempts, so progress has stalled."
            )

        return FailureContext(
            consecutive_failures=self.consecutive_failures,
            stagnation_count=self.stagnation_count,
            summary=summary,
            repeated_failure=(
                RepeatedFailure(
                    tool_name=repeated.tool_call.name,
                    args=redact(dict(repeated.tool_call.args)),
                    count=repeated.count,
                )
                if repeated is not None
                else None
            ),
        )
