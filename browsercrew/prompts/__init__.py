"""Prompt rendering for every language-model call site."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Sequence

from browsercrew.prompts.builder import PromptBuilder
from browsercrew.types import ExecutionRecord, Milestone, Subgoal

if TYPE_CHECKING:
    from browsercrew.memory.session import SessionMemory

HISTORY_CHAR_LIMIT = 200


def history_payload(records: Iterable[ExecutionRecord], max_chars: int = HISTORY_CHAR_LIMIT) -> List[Dict[str, Any]]:
    """JSON-ready, redacted and truncated view of execution records."""
    return [record.to_dict(max_chars=max_chars) for record in records]


def system_prompt(headless: bool = False) -> str:
    return PromptBuilder.render(PromptBuilder.SYSTEM_TEMPLATE, headless=headless)


def format_context(
    memory: SessionMemory,
    *,
    url: str,
    summary: str,
    history_window: int = 5,
    summary_chars: int = 2000,
) -> str:
    tabs = [{"index": t.index, "title": t.title, "url": t.url, "is_active": t.is_active} for t in memory.tabs]
    return PromptBuilder.render(
        PromptBuilder.CONTEXT_TEMPLATE,
        url=url,
        tabs=tabs,
        summary=summary,
        summary_chars=summary_chars,
        milestone_summaries=memory.milestone_summaries,
        long_term_memory=memory.long_term_memory,
        working_memory=memory.working_memory,
        history=history_payload(memory.recent_history(history_window)),
    )


def analyst_prompt(subgoal: Subgoal, context: str) -> str:
    return PromptBuilder.render(PromptBuilder.ANALYST_TEMPLATE, subgoal=subgoal, context=context)


def reflection_prompt(task: str, error: Dict[str, Any], url: str, summary: str) -> str:
    return PromptBuilder.render(PromptBuilder.REFLECTION_TEMPLATE, task=task, error=error, url=url, summary=summary)


def qa_prompt(subgoal: Subgoal, context: str) -> str:
    return PromptBuilder.render(PromptBuilder.QA_TEMPLATE, subgoal=subgoal, context=context)


def planner_prompt(task: str, min_milestones: int, max_milestones: int) -> str:
    return PromptBuilder.render(
        PromptBuilder.PLANNER_TEMPLATE, task=task, min_milestones=min_milestones, max_milestones=max_milestones
    )


def replan_prompt(
    task: str,
    context: str,
    completed: Sequence[Milestone],
    failed: Milestone | None,
    failure: Dict[str, Any],
    max_milestones: int,
) -> str:
    failed_text = "(unknown)"
    if failed is not None:
        failed_text = f"{failed.description} (completion criteria: {failed.completion_criteria})"
    return PromptBuilder.render(
        PromptBuilder.REPLAN_TEMPLATE,
        task=task,
        context=context,
        completed=[m.description for m in completed],
        failed_milestone=failed_text,
        failure=failure,
        max_milestones=max_milestones,
    )


def tactical_prompt(task: str, milestone: Milestone, context: str, max_subgoals: int = 5) -> str:
    return PromptBuilder.render(
        PromptBuilder.TACTICAL_TEMPLATE, task=task, milestone=milestone, context=context, max_subgoals=max_subgoals
    )


def memory_update_prompt(task: str, milestone: str, records: Iterable[ExecutionRecord], max_chars: int) -> str:
    return PromptBuilder.render(
        PromptBuilder.MEMORY_UPDATE_TEMPLATE,
        task=task,
        milestone=milestone,
        history=history_payload(records, max_chars),
    )


def progress_prompt(task: str, records: Iterable[ExecutionRecord], url: str) -> str:
    return PromptBuilder.render(PromptBuilder.PROGRESS_TEMPLATE, task=task, history=history_payload(records), url=url)


def evaluation_prompt(task: str, answer: str, records: Iterable[ExecutionRecord]) -> str:
    return PromptBuilder.render(
        PromptBuilder.EVALUATION_TEMPLATE, task=task, answer=answer, history=history_payload(records)
    )
