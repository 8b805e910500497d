"""Execution of approved tool calls against the catalog.

Every call produces exactly one ``ExecutionRecord`` in session memory, in the
order the calls complete. Tool failures are captured in the record; only
fatal and model errors escape. The tab list in session memory is re-read
after every call, since any action may open or close a tab.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from browsercrew.errors import (
    FatalRunError,
    InvalidToolArgumentError,
    ModelInvocationError,
    UnknownToolError,
)
from browsercrew.tools.registry import ToolContext, ToolRegistry
from browsercrew.types import ExecutionRecord, Subgoal, ToolCall
from browsercrew.utils.logging_utils import log_tool_call, log_tool_result

LOGGER = logging.getLogger("browsercrew.executor")


@dataclass(frozen=True, slots=True)
class ToolRun:
    record: ExecutionRecord
    exception: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.exception is not None


class ToolExecutor:
    def __init__(self, registry: ToolRegistry, context: ToolContext) -> None:
        self.registry = registry
        self.context = context

    def _record(self, call: ToolCall, subgoal: Optional[Subgoal], *, result=None, error=None) -> ExecutionRecord:
        record = ExecutionRecord(
            tool_call=call,
            result=result,
            error=error,
            subgoal_description=subgoal.description if subgoal else None,
            success_criteria=subgoal.success_criteria if subgoal else None,
        )
        self.context.memory.add_history(record)
        return record

    async def run(self, call: ToolCall, subgoal: Optional[Subgoal] = None) -> ToolRun:
        tool = self.registry.get_tool_optional(call.name)
        if tool is None:
            error = UnknownToolError(call.name)
            self._record(call, subgoal, error=str(error))
            log_tool_result(LOGGER, call.name, str(error), success=False)
            raise error

        try:
            parsed = tool.parse_args(call.args)
            if tool.changes_tabs:
                # Tab preconditions check indices against the live tab list.
                await self.refresh_tabs()
            if tool.precondition is not None:
                check = await tool.precondition(self.context, parsed)
                if not check.success:
                    raise InvalidToolArgumentError(
                        f"Precondition failed: {check.message}", tool_name=call.name, args=call.args
                    )

            log_tool_call(LOGGER, call.name, call.args)
            result = await tool.execute(self.context, parsed)
        except (FatalRunError, ModelInvocationError):
            raise
        except Exception as exc:
            record = self._record(call, subgoal, error=f"{type(exc).__name__}: {exc}")
            log_tool_result(LOGGER, call.name, exc, success=False)
            await self._sync_tabs(call)
            return ToolRun(record=record, exception=exc)

        record = self._record(call, subgoal, result=result)
        log_tool_result(LOGGER, call.name, result, success=True)
        await self._sync_tabs(call)
        return ToolRun(record=record)

    async def refresh_tabs(self) -> None:
        self.context.memory.update_tabs(await self.context.driver.list_tabs())

    async def _sync_tabs(self, call: ToolCall) -> None:
        """Refresh tabs once the call is recorded; a failure here leaves the stale list in place."""
        try:
            await self.refresh_tabs()
        except Exception as exc:
            LOGGER.warning(f"Could not refresh the tab list after {call.name}: {type(exc).__name__}: {exc}")

    async def run_batch(self, calls: Sequence[ToolCall], subgoal: Optional[Subgoal] = None) -> List[ToolRun]:
        """Run jointly approved calls concurrently.

        Results come back in proposal order; history holds them in completion order.
        """
        if len(calls) == 1:
            return [await self.run(calls[0], subgoal)]
        return list(await asyncio.gather(*(self.run(call, subgoal) for call in calls)))
