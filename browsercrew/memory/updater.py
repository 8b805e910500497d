"""Memory consolidation after a milestone completes."""

from __future__ import annotations

import logging
from typing import List

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, Field

from browsercrew.agents.interfaces import LanguageModel
from browsercrew.memory.session import SessionMemory
from browsercrew.prompts import memory_update_prompt
from browsercrew.types import Milestone

LOGGER = logging.getLogger("browsercrew.memory")


class MemoryUpdateModel(BaseModel):
    subgoal_summary: str = Field(description="Short summary of what the milestone did and produced.")
    long_term_memory_facts: List[str] = Field(
        default_factory=list,
        description="Facts that stay true for the rest of the task, e.g. a login id or an extracted value.",
    )


async def update_memory_after_milestone(
    memory: SessionMemory,
    llm: LanguageModel,
    task: str,
    milestone: Milestone,
    history_start: int,
    max_chars: int = 200,
) -> bool:
    """Fold the milestone's history slice into working and long-term memory.

    Args:
        history_start: History length when the milestone began
        max_chars: Truncation limit for args and results in the prompt

    Returns:
        True when memory was updated, False when there was nothing to do or the model call failed
    """
    records = memory.history_since(history_start)
    if not records:
        LOGGER.debug(f"No history for milestone '{milestone.description}', skipping memory update")
        return False

    prompt = memory_update_prompt(task, milestone.description, records, max_chars)
    try:
        update = await llm.generate_structured(MemoryUpdateModel, [HumanMessage(content=prompt)])
    except Exception as exc:
        LOGGER.warning(f"Memory update failed for milestone '{milestone.description}': {exc}")
        return False

    memory.add_milestone_summary(f"{milestone.description}: {update.subgoal_summary}")
    added = sum(1 for fact in update.long_term_memory_facts if memory.add_long_term_fact(fact))
    LOGGER.info(f"Memory updated: {added} new long-term fact(s)")
    return True
