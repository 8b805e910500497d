"""Tests for the finish tool and its self-evaluation payload."""

import pytest

from browsercrew.errors import FinishPayloadError
from browsercrew.tools.builtin import FINISH_PREFIX, parse_finish_result
from browsercrew.types import ExecutionResult, ToolCall


@pytest.mark.asyncio
async def test_finish_records_self_evaluation(executor, llm):
    llm.script("SelfEvaluationModel", {"is_success": True, "reasoning": "The title is 'Dashboard'"})

    run = await executor.run(ToolCall(name="finish", args={"answer": "The dashboard title is Dashboard"}))

    assert run.record.result.startswith(FINISH_PREFIX)
    assert parse_finish_result(run.record.result) == ExecutionResult(True, "The title is 'Dashboard'")


def test_parse_failed_evaluation():
    result = parse_finish_result(f'{FINISH_PREFIX} {{"is_success": false, "reasoning": "No title found"}}')
    assert result == ExecutionResult(is_success=False, reasoning="No title found")


@pytest.mark.parametrize(
    "payload",
    [
        "Task done",
        f"{FINISH_PREFIX} not json",
        f'{FINISH_PREFIX} {{"reasoning": "missing verdict"}}',
        None,
    ],
)
def test_malformed_payload_is_fatal(payload):
    with pytest.raises(FinishPayloadError):
        parse_finish_result(payload)
