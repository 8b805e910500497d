"""Tests for post-milestone memory consolidation."""

import pytest

from browsercrew.errors import RateLimitError
from browsercrew.memory.updater import update_memory_after_milestone
from browsercrew.types import ExecutionRecord, Milestone, ToolCall

MILESTONE = Milestone(description="Log in", completion_criteria="The dashboard is shown")


def _add_record(memory, result="Performed 'click the Log in button'"):
    memory.add_history(ExecutionRecord(tool_call=ToolCall(name="act", args={"instruction": "click"}), result=result))


@pytest.mark.asyncio
async def test_summary_and_facts_are_stored(memory, llm):
    _add_record(memory)
    llm.script(
        "MemoryUpdateModel",
        {
            "subgoal_summary": "Logged in as alice",
            "long_term_memory_facts": ["Login id is alice", "login ID is Alice"],
        },
    )

    updated = await update_memory_after_milestone(memory, llm, memory.task, MILESTONE, 0)

    assert updated is True
    assert memory.milestone_summaries == ["Log in: Logged in as alice"]
    assert memory.long_term_memory == ["Login id is alice"]


@pytest.mark.asyncio
async def test_only_the_milestone_slice_is_used(memory, llm):
    _add_record(memory)
    start = memory.history_length()

    assert await update_memory_after_milestone(memory, llm, memory.task, MILESTONE, start) is False
    assert llm.count("MemoryUpdateModel") == 0


@pytest.mark.asyncio
async def test_model_failure_leaves_memory_untouched(memory, llm):
    _add_record(memory)
    llm.script("MemoryUpdateModel", RateLimitError("quota exceeded"))

    assert await update_memory_after_milestone(memory, llm, memory.task, MILESTONE, 0) is False
    assert memory.milestone_summaries == []
    assert memory.long_term_memory == []
