"""finish tool - report the final answer and self-evaluate it.

The tool's result is ``SELF_EVALUATION_COMPLETE: {"is_success": ..., "reasoning": ...}``.
The orchestrator looks for this record in history to produce the run verdict.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, Field, ValidationError

from browsercrew.errors import FinishPayloadError
from browsercrew.prompts import evaluation_prompt
from browsercrew.tools.registry import CatalogTool, ToolContext
from browsercrew.types import ExecutionResult

LOGGER = logging.getLogger(__name__)

FINISH_TOOL_NAME = "finish"
FINISH_PREFIX = "SELF_EVALUATION_COMPLETE:"
EVALUATION_HISTORY_WINDOW = 5


class FinishInput(BaseModel):
    answer: str = Field(..., description="The final answer to the user's task.")


class SelfEvaluationModel(BaseModel):
    is_success: bool = Field(description="True if the agent fully achieved the user's task.")
    reasoning: str = Field(description="Short justification: a summary on success, what is missing otherwise.")


async def _finish(ctx: ToolContext, args: FinishInput) -> str:
    LOGGER.info(f"Agent reported completion: {args.answer[:200]}")
    prompt = evaluation_prompt(ctx.memory.task, args.answer, ctx.memory.recent_history(EVALUATION_HISTORY_WINDOW))
    evaluation = await ctx.llm.generate_structured(SelfEvaluationModel, [HumanMessage(content=prompt)])
    LOGGER.info(f"Self-evaluation: success={evaluation.is_success} ({evaluation.reasoning})")
    return f"{FINISH_PREFIX} {evaluation.model_dump_json()}"


def parse_finish_result(result: Any) -> ExecutionResult:
    """Decode a finish record's result into the run verdict.

    Raises:
        FinishPayloadError: The prefix is missing or the JSON after it is malformed
    """
    if not isinstance(result, str) or not result.startswith(FINISH_PREFIX):
        raise FinishPayloadError(f"Finish result lacks the {FINISH_PREFIX} prefix: {str(result)[:200]}")
    payload = result[len(FINISH_PREFIX):].strip()
    try:
        evaluation = SelfEvaluationModel.model_validate(json.loads(payload))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise FinishPayloadError(f"Malformed self-evaluation payload: {exc}") from exc
    return ExecutionResult(is_success=evaluation.is_success, reasoning=evaluation.reasoning)


finish_tool = CatalogTool(
    name=FINISH_TOOL_NAME,
    description="Report the final answer to the user's task once everything is done.",
    args_schema=FinishInput,
    execute=_finish,
)
